"""
Conversational Service - streaming chat about the documents and agenda.

Both implementations yield incremental deltas; the consumer accumulates.
"""

import asyncio
import json
import logging
from typing import AsyncIterator, List, Optional, Sequence

from google import genai
from google.genai import types

from .base import ChatService, GeminiBackend
from .encoder import decode_payload
from .errors import GenerationError
from .models import ChatTurn, FileRecord, MeetingData

logger = logging.getLogger(__name__)


CHAT_BASE_INSTRUCTION = "You are a helpful assistant answering questions about the uploaded meeting documents. "
CHAT_AGENDA_INSTRUCTION = (
    "You also have access to the currently generated/edited meeting agenda. "
    "Use this agenda context to answer questions about time, roles, and topics."
)
CHAT_PLAIN_INSTRUCTION = "Be concise and accurate."

SOURCE_DOCUMENTS_LABEL = "Here are the source documents:"
AGENDA_CONTEXT_PREFIX = "[CURRENT AGENDA CONTEXT]: "


def chat_system_instruction(has_agenda: bool) -> str:
    return CHAT_BASE_INSTRUCTION + (CHAT_AGENDA_INSTRUCTION if has_agenda else CHAT_PLAIN_INSTRUCTION)


def build_chat_contents(
    history: Sequence[ChatTurn],
    new_message: str,
    files: Sequence[FileRecord],
    agenda_context: Optional[MeetingData] = None,
) -> List[types.Content]:
    """
    Reconstruct the conversation for Gemini.

    Documents ride along only on the first turn. The agenda is serialized
    on every turn so the model sees the user's latest edits.
    """
    contents = [
        types.Content(role=turn.role.value, parts=[types.Part.from_text(text=turn.text)])
        for turn in history
    ]

    current_parts = [types.Part.from_text(text=new_message)]

    if not history and files:
        file_parts = [
            types.Part.from_bytes(data=decode_payload(f), mime_type=f.mime_type)
            for f in files
        ]
        current_parts = [types.Part.from_text(text=SOURCE_DOCUMENTS_LABEL)] + file_parts + current_parts

    if agenda_context is not None:
        context_json = json.dumps(agenda_context.to_dict())
        current_parts.insert(0, types.Part.from_text(text=AGENDA_CONTEXT_PREFIX + context_json))

    contents.append(types.Content(role="user", parts=current_parts))
    return contents


class GeminiChatService(GeminiBackend, ChatService):
    """Live chat via Gemini streaming generation."""

    name = "gemini-chat"

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: str = "gemini-3-pro-preview",
        client: Optional[genai.Client] = None,
    ):
        super().__init__(api_key=api_key, client=client)
        self.model = model

    async def stream_chat(
        self,
        history: Sequence[ChatTurn],
        new_message: str,
        files: Sequence[FileRecord],
        agenda_context: Optional[MeetingData] = None,
    ) -> AsyncIterator[str]:
        client = self._get_client()

        contents = build_chat_contents(history, new_message, files, agenda_context)
        config = types.GenerateContentConfig(
            system_instruction=chat_system_instruction(agenda_context is not None),
        )

        try:
            stream = await client.aio.models.generate_content_stream(
                model=self.model,
                contents=contents,
                config=config,
            )
        except Exception as e:
            logger.error(f"Gemini chat request failed: {e}")
            raise GenerationError(f"Gemini chat request failed: {e}") from e

        try:
            async for chunk in stream:
                text = chunk.text
                if text:
                    yield text
        except Exception as e:
            logger.error(f"Gemini chat stream error: {e}")
            raise GenerationError(f"Gemini chat stream interrupted: {e}") from e
        finally:
            # Closing early (cancel) must also stop the upstream stream
            aclose = getattr(stream, "aclose", None)
            if aclose is not None:
                await aclose()


DEMO_TIMING_RESPONSE = "In demo mode, I can confirm the timeline looks tight but achievable."
DEMO_STAKEHOLDER_RESPONSE = (
    "Based on the mock agenda, Emily is presenting the marketing campaign for 30 minutes."
)
DEMO_RISK_RESPONSE = "The main risk identified in this demo scenario is the budget allocation for QA."
DEMO_DEFAULT_RESPONSE = (
    "I am running in Demo Mode (No API Key). I cannot read your actual file content, "
    "but I'm simulating a conversation based on the generated example agenda."
)

# First match wins
DEMO_KEYWORD_RESPONSES = (
    ("who", DEMO_STAKEHOLDER_RESPONSE),
    ("risk", DEMO_RISK_RESPONSE),
    ("time", DEMO_TIMING_RESPONSE),
)


def select_demo_response(message: str) -> str:
    """Pick a canned reply by case-insensitive keyword (who > risk > time)."""
    message_lower = message.lower()
    for keyword, response in DEMO_KEYWORD_RESPONSES:
        if keyword in message_lower:
            return response
    return DEMO_DEFAULT_RESPONSE


class DemoChatService(ChatService):
    """Offline stand-in that "types" a canned reply in small deltas."""

    name = "demo-chat"
    is_demo = True

    def __init__(
        self,
        initial_delay_s: float = 0.6,
        chunk_delay_s: float = 0.03,
        chunk_size: int = 5,
    ):
        if chunk_size < 1:
            raise ValueError("chunk_size must be at least 1")
        self.initial_delay_s = initial_delay_s
        self.chunk_delay_s = chunk_delay_s
        self.chunk_size = chunk_size

    async def stream_chat(
        self,
        history: Sequence[ChatTurn],
        new_message: str,
        files: Sequence[FileRecord],
        agenda_context: Optional[MeetingData] = None,
    ) -> AsyncIterator[str]:
        if self.initial_delay_s > 0:
            await asyncio.sleep(self.initial_delay_s)

        text = select_demo_response(new_message)

        for start in range(0, len(text), self.chunk_size):
            if start and self.chunk_delay_s > 0:
                await asyncio.sleep(self.chunk_delay_s)
            yield text[start:start + self.chunk_size]
