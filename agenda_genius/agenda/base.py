"""Service contracts shared by the live (Gemini) and demo implementations."""
import logging
from abc import ABC, abstractmethod
from typing import AsyncIterator, Optional, Sequence

from google import genai

from .errors import ConfigurationError
from .models import ChatTurn, FileRecord, MeetingData

logger = logging.getLogger(__name__)


class AgendaService(ABC):
    """Turns a set of documents into a structured MeetingData."""

    # Shown in logs and notifications
    name: str = "agenda"
    is_demo: bool = False

    @abstractmethod
    async def generate_agenda(self, files: Sequence[FileRecord]) -> MeetingData:
        """Generate an agenda.

        Args:
            files: Encoded documents; callers guarantee at least one

        Returns:
            A complete MeetingData

        Raises:
            ConfigurationError: live mode without a credential
            GenerationError: empty, malformed or failed response
        """
        pass


class ChatService(ABC):
    """Answers questions about the documents and the current agenda."""

    name: str = "chat"
    is_demo: bool = False

    @abstractmethod
    def stream_chat(
        self,
        history: Sequence[ChatTurn],
        new_message: str,
        files: Sequence[FileRecord],
        agenda_context: Optional[MeetingData] = None,
    ) -> AsyncIterator[str]:
        """Stream a reply as incremental text deltas.

        The consumer concatenates deltas in order. The iterator is finite and
        not restartable; closing it early stops the upstream request.
        """
        pass


class GeminiBackend:
    """Lazily builds a google-genai client, failing fast without a key."""

    def __init__(self, api_key: Optional[str] = None, client: Optional[genai.Client] = None):
        self.api_key = api_key
        self._client = client

    @property
    def is_available(self) -> bool:
        return self._client is not None or bool(self.api_key)

    def _get_client(self) -> genai.Client:
        if self._client is not None:
            return self._client

        if not self.api_key:
            raise ConfigurationError(
                "API Key is missing. Please check your environment configuration."
            )

        self._client = genai.Client(api_key=self.api_key)
        logger.info("Gemini client initialized")
        return self._client
