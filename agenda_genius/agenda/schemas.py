"""
AgendaGenius API - Pydantic models for requests and responses.

Field names follow the camelCase wire format of the browser client.
"""
from typing import List, Optional
from pydantic import BaseModel, Field

from .models import AgendaItem, ChatMessage, FileRecord, MeetingData, ScheduledItem, Stakeholder


# ============================================================
# Mode
# ============================================================

class ModeUpdate(BaseModel):
    """Request to switch between demo and live mode."""
    demo_mode: bool


class ModeResponse(BaseModel):
    demo_mode: bool
    mode: str
    credential_present: bool


# ============================================================
# Files
# ============================================================

class FileInfo(BaseModel):
    """Uploaded file metadata (content is never echoed back)."""
    id: str
    name: str
    type: str
    size: int

    @classmethod
    def from_record(cls, record: FileRecord) -> "FileInfo":
        return cls(id=record.id, name=record.name, type=record.mime_type, size=record.size_bytes)


class FileListResponse(BaseModel):
    files: List[FileInfo]
    count: int


# ============================================================
# Agenda
# ============================================================

class StakeholderModel(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    role: str = Field("", max_length=200)
    initials: Optional[str] = None

    def to_domain(self) -> Stakeholder:
        return Stakeholder(name=self.name, role=self.role)

    @classmethod
    def from_domain(cls, stakeholder: Stakeholder) -> "StakeholderModel":
        return cls(name=stakeholder.name, role=stakeholder.role, initials=stakeholder.initials)


class AgendaItemModel(BaseModel):
    id: Optional[str] = None
    title: str = Field(..., min_length=1, max_length=500)
    description: str = ""
    durationMinutes: int = Field(..., ge=0, le=24 * 60)
    presenter: Optional[str] = None

    def to_domain(self) -> AgendaItem:
        return AgendaItem(
            id=self.id,
            title=self.title,
            description=self.description,
            duration_minutes=self.durationMinutes,
            presenter=self.presenter,
        )

    @classmethod
    def from_domain(cls, item: AgendaItem) -> "AgendaItemModel":
        return cls(
            id=item.id,
            title=item.title,
            description=item.description,
            durationMinutes=item.duration_minutes,
            presenter=item.presenter,
        )


class ScheduleEntry(BaseModel):
    index: int
    title: str
    start: str  # HH:MM
    end: str
    durationMinutes: int

    @classmethod
    def from_domain(cls, entry: ScheduledItem) -> "ScheduleEntry":
        return cls(**entry.to_dict())


class AgendaResponse(BaseModel):
    """The active agenda plus its computed timeline."""
    meetingTitle: str
    summary: str
    date: Optional[str] = None
    stakeholders: List[StakeholderModel]
    agendaItems: List[AgendaItemModel]
    totalDurationMinutes: int
    totalDurationLabel: str
    schedule: List[ScheduleEntry]

    @classmethod
    def from_domain(
        cls,
        data: MeetingData,
        schedule: List[ScheduledItem],
        duration_label: str,
    ) -> "AgendaResponse":
        return cls(
            meetingTitle=data.meeting_title,
            summary=data.summary,
            date=data.date,
            stakeholders=[StakeholderModel.from_domain(s) for s in data.stakeholders],
            agendaItems=[AgendaItemModel.from_domain(i) for i in data.agenda_items],
            totalDurationMinutes=data.total_duration_minutes,
            totalDurationLabel=duration_label,
            schedule=[ScheduleEntry.from_domain(e) for e in schedule],
        )


# ============================================================
# Chat / Session
# ============================================================

class ChatMessageModel(BaseModel):
    id: str
    role: str
    text: str
    timestamp: int

    @classmethod
    def from_domain(cls, message: ChatMessage) -> "ChatMessageModel":
        return cls(**message.to_dict())


class ChatHistoryResponse(BaseModel):
    messages: List[ChatMessageModel]
    is_streaming: bool


class SessionStatus(BaseModel):
    file_count: int
    has_agenda: bool
    message_count: int
    is_generating: bool
    is_streaming: bool
    demo_mode: bool


# ============================================================
# Notifications / Generic
# ============================================================

class NotificationModel(BaseModel):
    id: str
    message: str
    type: str
    created_at: float
    expires_at: Optional[float] = None


class NotificationListResponse(BaseModel):
    notifications: List[NotificationModel]


class SuccessResponse(BaseModel):
    success: bool = True
    message: str = ""
