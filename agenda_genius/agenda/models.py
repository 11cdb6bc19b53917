"""
Agenda Data Models

Defines all data structures for the agenda assistant. Records are frozen:
every edit goes through SessionController, which builds a new snapshot.
Wire format (to_dict / from_dict) uses the camelCase names the browser
client and the Gemini response schema share.
"""

import time
import uuid
from dataclasses import dataclass, field
from datetime import time as clock_time
from enum import Enum
from typing import Optional, Dict, Any, Tuple


def _short_id() -> str:
    return uuid.uuid4().hex[:8]


def _now_ms() -> int:
    return int(time.time() * 1000)


class ChatRole(Enum):
    """Author of a chat turn."""
    USER = "user"
    MODEL = "model"


@dataclass(frozen=True)
class FileRecord:
    """An uploaded document, encoded as a data URI for transport to Gemini."""
    name: str
    mime_type: str
    content: str  # data:<mime>;base64,<payload>
    size_bytes: int
    id: str = field(default_factory=_short_id)

    @property
    def payload(self) -> str:
        """Base64 payload without the data URI prefix."""
        return self.content.split(",", 1)[1] if "," in self.content else self.content

    def to_dict(self, include_content: bool = False) -> Dict[str, Any]:
        data = {
            "id": self.id,
            "name": self.name,
            "type": self.mime_type,
            "size": self.size_bytes,
        }
        if include_content:
            data["content"] = self.content
        return data


@dataclass(frozen=True)
class Stakeholder:
    """A meeting attendee. Identity is the position in the stakeholder list."""
    name: str
    role: str

    @property
    def initials(self) -> str:
        words = [w for w in self.name.split(" ") if w]
        return "".join(w[0] for w in words[:2]).upper()

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "role": self.role}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Stakeholder":
        return cls(name=str(data["name"]), role=str(data["role"]))


@dataclass(frozen=True)
class AgendaItem:
    """One topic on the agenda. Order in MeetingData.agenda_items is significant."""
    title: str
    description: str
    duration_minutes: int
    presenter: Optional[str] = None
    id: Optional[str] = None

    def __post_init__(self):
        if isinstance(self.duration_minutes, bool) or not isinstance(self.duration_minutes, int):
            raise TypeError(f"duration_minutes must be an int, got {self.duration_minutes!r}")
        if self.duration_minutes < 0:
            raise ValueError(f"duration_minutes must be non-negative, got {self.duration_minutes}")

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "title": self.title,
            "description": self.description,
            "durationMinutes": self.duration_minutes,
        }
        if self.id is not None:
            data["id"] = self.id
        if self.presenter is not None:
            data["presenter"] = self.presenter
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AgendaItem":
        presenter = data.get("presenter")
        item_id = data.get("id")
        return cls(
            title=str(data["title"]),
            description=str(data["description"]),
            duration_minutes=int(data["durationMinutes"]),
            presenter=str(presenter) if presenter is not None else None,
            id=str(item_id) if item_id is not None else None,
        )


@dataclass(frozen=True)
class MeetingData:
    """The structured agenda produced by a generation call."""
    meeting_title: str
    summary: str
    stakeholders: Tuple[Stakeholder, ...] = ()
    agenda_items: Tuple[AgendaItem, ...] = ()
    date: Optional[str] = None

    def __post_init__(self):
        # Accept lists from callers but always store tuples
        object.__setattr__(self, "stakeholders", tuple(self.stakeholders))
        object.__setattr__(self, "agenda_items", tuple(self.agenda_items))

    @property
    def total_duration_minutes(self) -> int:
        return sum(item.duration_minutes for item in self.agenda_items)

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "meetingTitle": self.meeting_title,
            "summary": self.summary,
            "stakeholders": [s.to_dict() for s in self.stakeholders],
            "agendaItems": [i.to_dict() for i in self.agenda_items],
        }
        if self.date is not None:
            data["date"] = self.date
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "MeetingData":
        """
        Build MeetingData from the Gemini response shape.

        Raises:
            KeyError, TypeError, ValueError: if the shape does not match
        """
        if not isinstance(data, dict):
            raise TypeError(f"Expected a JSON object, got {type(data).__name__}")

        stakeholders = data["stakeholders"]
        items = data["agendaItems"]
        if not isinstance(stakeholders, list) or not isinstance(items, list):
            raise TypeError("stakeholders and agendaItems must be arrays")

        date = data.get("date")
        return cls(
            meeting_title=str(data["meetingTitle"]),
            summary=str(data["summary"]),
            stakeholders=tuple(Stakeholder.from_dict(s) for s in stakeholders),
            agenda_items=tuple(AgendaItem.from_dict(i) for i in items),
            date=str(date) if date is not None else None,
        )


@dataclass(frozen=True)
class ChatMessage:
    """A single turn in the conversation log."""
    role: ChatRole
    text: str = ""
    id: str = field(default_factory=_short_id)
    timestamp: int = field(default_factory=_now_ms)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "role": self.role.value,
            "text": self.text,
            "timestamp": self.timestamp,
        }


@dataclass(frozen=True)
class ChatTurn:
    """Role and text of a completed turn, as handed to a ChatService."""
    role: ChatRole
    text: str


@dataclass(frozen=True)
class ScheduledItem:
    """An agenda item placed on the clock."""
    index: int
    item: AgendaItem
    start: clock_time
    end: clock_time

    def to_dict(self) -> Dict[str, Any]:
        return {
            "index": self.index,
            "title": self.item.title,
            "start": self.start.strftime("%H:%M"),
            "end": self.end.strftime("%H:%M"),
            "durationMinutes": self.item.duration_minutes,
        }


@dataclass(frozen=True)
class SessionSnapshot:
    """A consistent view of a session at one point in time."""
    files: Tuple[FileRecord, ...]
    agenda: Optional[MeetingData]
    messages: Tuple[ChatMessage, ...]
    is_generating: bool
    is_streaming: bool

    def to_dict(self) -> Dict[str, Any]:
        return {
            "files": [f.to_dict() for f in self.files],
            "agenda": self.agenda.to_dict() if self.agenda else None,
            "messages": [m.to_dict() for m in self.messages],
            "is_generating": self.is_generating,
            "is_streaming": self.is_streaming,
        }


# WebSocket Message Types
class WSMessageType(Enum):
    """WebSocket message types for the chat channel."""
    # Client → Server
    CHAT_MESSAGE = "chat_message"
    CHAT_CANCEL = "chat_cancel"

    # Server → Client
    CHAT_STARTED = "chat_started"
    CHAT_DELTA = "chat_delta"
    CHAT_REPLACE = "chat_replace"
    CHAT_DONE = "chat_done"
    STATUS = "status"
    ERROR = "error"
