"""
Agenda Mode - document-driven agenda generation and chat for AgendaGenius.

Components:
- encode_files: turns uploads into base64 FileRecords
- GeminiAgendaService / DemoAgendaService: structured agenda generation
- GeminiChatService / DemoChatService: streaming chat about the documents
- ModeSelector: demo/live switch handing out the active services
- SessionController: files, agenda and conversation state
- ChatHandler: WebSocket handler streaming chat replies
"""

from .models import (
    AgendaItem,
    ChatMessage,
    ChatRole,
    FileRecord,
    MeetingData,
    Stakeholder,
)
from .errors import (
    AgendaError,
    ConfigurationError,
    EmptyFileSetError,
    GenerationError,
    NoAgendaError,
    SessionBusyError,
)
from .encoder import encode_file, encode_files
from .generation import DemoAgendaService, GeminiAgendaService
from .chat import DemoChatService, GeminiChatService
from .mode import ModeSelector, get_mode_selector
from .session import SessionController, get_session_controller
from .router import ChatHandler, chat_handler

__all__ = [
    "AgendaItem",
    "ChatMessage",
    "ChatRole",
    "FileRecord",
    "MeetingData",
    "Stakeholder",
    "AgendaError",
    "ConfigurationError",
    "EmptyFileSetError",
    "GenerationError",
    "NoAgendaError",
    "SessionBusyError",
    "encode_file",
    "encode_files",
    "DemoAgendaService",
    "GeminiAgendaService",
    "DemoChatService",
    "GeminiChatService",
    "ModeSelector",
    "get_mode_selector",
    "SessionController",
    "get_session_controller",
    "ChatHandler",
    "chat_handler",
]
