"""
Session State Controller - the single writer for files, agenda and chat log.

Handles:
- File list and the one active agenda (or none)
- Structural agenda edits by index
- Generation with stale-result protection
- Chat streaming into the conversation log

Every mutation swaps in new tuples / frozen records, so a snapshot taken by
any reader stays internally consistent.
"""

import logging
from dataclasses import replace
from typing import AsyncIterator, Iterable, List, Optional, Tuple

from .base import AgendaService, ChatService
from .errors import EmptyFileSetError, NoAgendaError, SessionBusyError
from .models import (
    AgendaItem,
    ChatMessage,
    ChatRole,
    ChatTurn,
    FileRecord,
    MeetingData,
    SessionSnapshot,
    Stakeholder,
)

logger = logging.getLogger(__name__)

CHAT_ERROR_MESSAGE = "Sorry, I encountered an error. Please check your connection."


class SessionController:
    """
    Holds one user's working state.

    Not safe for concurrent writers; the event loop is the only thread and
    the busy flags keep a second generation or stream from starting.
    """

    def __init__(self):
        self._files: Tuple[FileRecord, ...] = ()
        self._agenda: Optional[MeetingData] = None
        self._messages: Tuple[ChatMessage, ...] = ()

        # Bumped by every agenda replacement; a generation result is applied
        # only if no other replacement happened while it was pending.
        self._agenda_token = 0
        self._is_generating = False

        self._is_streaming = False
        self._cancel_requested = False
        self.last_chat_error: Optional[Exception] = None
        self.last_chat_cancelled = False

    # ==================== Read access ====================

    @property
    def files(self) -> Tuple[FileRecord, ...]:
        return self._files

    @property
    def agenda(self) -> Optional[MeetingData]:
        return self._agenda

    @property
    def messages(self) -> Tuple[ChatMessage, ...]:
        return self._messages

    @property
    def is_generating(self) -> bool:
        return self._is_generating

    @property
    def is_streaming(self) -> bool:
        return self._is_streaming

    def snapshot(self) -> SessionSnapshot:
        return SessionSnapshot(
            files=self._files,
            agenda=self._agenda,
            messages=self._messages,
            is_generating=self._is_generating,
            is_streaming=self._is_streaming,
        )

    def get_file(self, file_id: str) -> Optional[FileRecord]:
        return next((f for f in self._files if f.id == file_id), None)

    # ==================== Files ====================

    def add_files(self, records: Iterable[FileRecord]) -> Tuple[FileRecord, ...]:
        """Append a whole batch of encoded files."""
        records = tuple(records)
        self._files = self._files + records
        logger.info(f"Added {len(records)} file(s), {len(self._files)} total")
        return self._files

    def remove_file(self, file_id: str) -> bool:
        """
        Remove a file by id.

        Returns:
            True if a file was removed
        """
        remaining = tuple(f for f in self._files if f.id != file_id)
        if len(remaining) == len(self._files):
            return False
        self._files = remaining
        return True

    # ==================== Agenda ====================

    def set_agenda(self, data: MeetingData) -> MeetingData:
        """Replace the agenda wholesale."""
        self._agenda_token += 1
        self._agenda = data
        return data

    def clear_agenda(self):
        """Drop agenda, files and conversation; back to the empty state."""
        self._agenda_token += 1
        self._agenda = None
        self._files = ()
        self._messages = ()
        if self._is_streaming:
            self._cancel_requested = True
        logger.info("Session cleared")

    def _require_agenda(self) -> MeetingData:
        if self._agenda is None:
            raise NoAgendaError("No agenda has been generated yet")
        return self._agenda

    @staticmethod
    def _check_index(index: int, size: int, what: str):
        if not 0 <= index < size:
            raise IndexError(f"{what} index {index} out of range (0..{size - 1})")

    def update_agenda_item(self, index: int, item: AgendaItem) -> MeetingData:
        """Replace the item at index; every other position is untouched."""
        agenda = self._require_agenda()
        self._check_index(index, len(agenda.agenda_items), "Agenda item")

        items = list(agenda.agenda_items)
        items[index] = item
        self._agenda = replace(agenda, agenda_items=tuple(items))
        return self._agenda

    def add_stakeholder(self, entry: Stakeholder) -> MeetingData:
        agenda = self._require_agenda()
        self._agenda = replace(agenda, stakeholders=agenda.stakeholders + (entry,))
        return self._agenda

    def remove_stakeholder(self, index: int) -> MeetingData:
        agenda = self._require_agenda()
        self._check_index(index, len(agenda.stakeholders), "Stakeholder")

        stakeholders = agenda.stakeholders[:index] + agenda.stakeholders[index + 1:]
        self._agenda = replace(agenda, stakeholders=stakeholders)
        return self._agenda

    async def generate(self, service: AgendaService) -> Optional[MeetingData]:
        """
        Generate an agenda from the current files and install it.

        Returns:
            The new agenda, or None if the session was cleared or replaced
            while the request was pending (the stale result is discarded).

        Raises:
            EmptyFileSetError: no files uploaded
            SessionBusyError: a generation is already running
            ConfigurationError, GenerationError: from the service; state is untouched
        """
        if not self._files:
            raise EmptyFileSetError("Please upload at least one file.")
        if self._is_generating:
            raise SessionBusyError("An agenda is already being generated")

        token = self._agenda_token
        files = self._files
        self._is_generating = True
        try:
            data = await service.generate_agenda(files)
        finally:
            self._is_generating = False

        if token != self._agenda_token:
            logger.warning("Discarding stale agenda: session changed while generating")
            return None

        return self.set_agenda(data)

    # ==================== Chat ====================

    def history(self) -> List[ChatTurn]:
        """Completed turns, oldest first."""
        return [ChatTurn(role=m.role, text=m.text) for m in self._messages]

    def cancel_chat(self) -> bool:
        """Ask the active stream to stop at its next fragment."""
        if not self._is_streaming:
            return False
        self._cancel_requested = True
        return True

    def _replace_last(self, message: ChatMessage) -> bool:
        if not self._messages or self._messages[-1].id != message.id:
            return False
        self._messages = self._messages[:-1] + (message,)
        return True

    async def send_message(self, text: str, service: ChatService) -> AsyncIterator[ChatMessage]:
        """
        Send a user message and stream the model reply into the log.

        Yields the reply message after it is created (empty) and again after
        every fragment, each time as a new record that replaced the last
        log entry. A failing stream is turned into an apology message.

        Raises:
            ValueError: empty message
            SessionBusyError: another stream is active
        """
        if not text or not text.strip():
            raise ValueError("Message is empty")
        if self._is_streaming:
            raise SessionBusyError("Wait for the current reply to finish")

        history = self.history()
        self._messages = self._messages + (ChatMessage(role=ChatRole.USER, text=text),)

        reply = ChatMessage(role=ChatRole.MODEL, text="")
        self._messages = self._messages + (reply,)

        self._is_streaming = True
        self._cancel_requested = False
        self.last_chat_error = None
        self.last_chat_cancelled = False

        stream = service.stream_chat(history, text, self._files, self._agenda)
        try:
            yield reply

            async for delta in stream:
                if self._cancel_requested:
                    self.last_chat_cancelled = True
                    break
                updated = replace(reply, text=reply.text + delta)
                if not self._replace_last(updated):
                    # Log was cleared underneath us
                    self.last_chat_cancelled = True
                    break
                reply = updated
                yield reply

        except Exception as e:
            logger.error(f"Chat error: {e}")
            self.last_chat_error = e
            reply = ChatMessage(role=ChatRole.MODEL, text=CHAT_ERROR_MESSAGE, id=reply.id)
            self._replace_last(reply)
            yield reply

        finally:
            aclose = getattr(stream, "aclose", None)
            if aclose is not None:
                await aclose()
            self._is_streaming = False
            self._cancel_requested = False


# Singleton instance
_session_controller: Optional[SessionController] = None


def get_session_controller() -> SessionController:
    """Get the global session controller instance."""
    global _session_controller
    if _session_controller is None:
        _session_controller = SessionController()
        logger.info("Created session controller")
    return _session_controller
