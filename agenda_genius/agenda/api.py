"""
AgendaGenius - FastAPI Routes.

REST surface over the session controller: uploads, generation, agenda
edits, export, mode switching and notifications. Every failure is turned
into an HTTP error *and* an error notification, including request bodies
rejected by validation (422, see validation_exception_handler). The one
exception is dismissing an unknown notification, which only returns 404.
"""
import logging
from typing import List, NoReturn

from fastapi import APIRouter, Depends, File, HTTPException, Request, UploadFile
from fastapi.exception_handlers import request_validation_exception_handler
from fastapi.exceptions import RequestValidationError
from fastapi.responses import PlainTextResponse, Response

from agenda_genius.config import Settings, get_settings

from .encoder import RawUpload, encode_files
from .errors import (
    ConfigurationError,
    EmptyFileSetError,
    GenerationError,
    NoAgendaError,
    SessionBusyError,
)
from .export import (
    MARKDOWN_FILENAME,
    compute_schedule,
    format_duration,
    to_clipboard_text,
    to_markdown,
)
from .mode import ModeSelector, get_mode_selector
from .models import MeetingData
from .notifications import NotificationCenter, get_notification_center
from .schemas import (
    AgendaItemModel,
    AgendaResponse,
    ChatHistoryResponse,
    ChatMessageModel,
    FileInfo,
    FileListResponse,
    ModeResponse,
    ModeUpdate,
    NotificationListResponse,
    NotificationModel,
    SessionStatus,
    StakeholderModel,
    SuccessResponse,
)
from .session import SessionController, get_session_controller

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Agenda"])


def _fail(notifications: NotificationCenter, status_code: int, message: str) -> NoReturn:
    notifications.error(message)
    raise HTTPException(status_code=status_code, detail=message)


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Report rejected request bodies as a notification, then answer 422 as usual."""
    provider = request.app.dependency_overrides.get(get_notification_center, get_notification_center)
    errors = exc.errors()
    if errors:
        location = ".".join(str(part) for part in errors[0].get("loc", ()))
        message = f"Invalid request: {location}: {errors[0].get('msg', 'invalid value')}"
    else:
        message = "Invalid request"
    logger.warning(f"{request.method} {request.url.path} rejected: {message}")
    provider().error(message)
    return await request_validation_exception_handler(request, exc)


def _agenda_response(data: MeetingData) -> AgendaResponse:
    return AgendaResponse.from_domain(
        data,
        schedule=compute_schedule(data),
        duration_label=format_duration(data.total_duration_minutes),
    )


def _require_agenda(session: SessionController, notifications: NotificationCenter) -> MeetingData:
    if session.agenda is None:
        _fail(notifications, 404, "No agenda has been generated yet")
    return session.agenda


# ============================================================
# Mode
# ============================================================

@router.get("/mode", response_model=ModeResponse)
async def get_mode(selector: ModeSelector = Depends(get_mode_selector)):
    return ModeResponse(**selector.to_dict())


@router.put("/mode", response_model=ModeResponse)
async def set_mode(update: ModeUpdate, selector: ModeSelector = Depends(get_mode_selector)):
    selector.set_demo_mode(update.demo_mode)
    return ModeResponse(**selector.to_dict())


@router.post("/mode/toggle", response_model=ModeResponse)
async def toggle_mode(selector: ModeSelector = Depends(get_mode_selector)):
    selector.toggle()
    return ModeResponse(**selector.to_dict())


@router.get("/session", response_model=SessionStatus)
async def session_status(
    session: SessionController = Depends(get_session_controller),
    selector: ModeSelector = Depends(get_mode_selector),
):
    snapshot = session.snapshot()
    return SessionStatus(
        file_count=len(snapshot.files),
        has_agenda=snapshot.agenda is not None,
        message_count=len(snapshot.messages),
        is_generating=snapshot.is_generating,
        is_streaming=snapshot.is_streaming,
        demo_mode=selector.demo_mode,
    )


# ============================================================
# Files
# ============================================================

@router.get("/files", response_model=FileListResponse)
async def list_files(session: SessionController = Depends(get_session_controller)):
    files = [FileInfo.from_record(f) for f in session.files]
    return FileListResponse(files=files, count=len(files))


@router.post("/files", response_model=FileListResponse)
async def upload_files(
    files: List[UploadFile] = File(...),
    session: SessionController = Depends(get_session_controller),
    notifications: NotificationCenter = Depends(get_notification_center),
    settings: Settings = Depends(get_settings),
):
    """Upload one or more documents; the batch is added all at once."""
    uploads = []
    for upload in files:
        data = await upload.read()
        if len(data) > settings.max_upload_bytes:
            _fail(
                notifications,
                413,
                f"{upload.filename} is larger than {settings.max_upload_bytes // (1024 * 1024)} MB",
            )
        uploads.append(RawUpload(
            name=upload.filename or "upload",
            data=data,
            mime_type=upload.content_type,
        ))

    records = await encode_files(uploads)
    session.add_files(records)

    added = [FileInfo.from_record(r) for r in records]
    return FileListResponse(files=added, count=len(added))


@router.delete("/files/{file_id}", response_model=SuccessResponse)
async def remove_file(
    file_id: str,
    session: SessionController = Depends(get_session_controller),
    notifications: NotificationCenter = Depends(get_notification_center),
):
    if not session.remove_file(file_id):
        _fail(notifications, 404, "File not found")
    return SuccessResponse(message=f"Removed {file_id}")


# ============================================================
# Agenda
# ============================================================

@router.post("/agenda/generate", response_model=AgendaResponse)
async def generate_agenda(
    session: SessionController = Depends(get_session_controller),
    selector: ModeSelector = Depends(get_mode_selector),
    notifications: NotificationCenter = Depends(get_notification_center),
):
    """Generate an agenda from the uploaded files with the active backend."""
    service = selector.agenda_service()

    try:
        data = await session.generate(service)
    except EmptyFileSetError as e:
        _fail(notifications, 400, str(e))
    except SessionBusyError as e:
        _fail(notifications, 409, str(e))
    except ConfigurationError as e:
        _fail(notifications, 503, str(e))
    except GenerationError as e:
        logger.error(f"Agenda generation failed: {e}")
        _fail(notifications, 502, str(e) or "Failed to generate agenda.")

    if data is None:
        _fail(notifications, 409, "Session changed while the agenda was generating")

    notifications.success("Demo agenda generated!" if service.is_demo else "Agenda generated successfully!")
    return _agenda_response(data)


@router.get("/agenda", response_model=AgendaResponse)
async def get_agenda(
    session: SessionController = Depends(get_session_controller),
    notifications: NotificationCenter = Depends(get_notification_center),
):
    return _agenda_response(_require_agenda(session, notifications))


@router.delete("/agenda", response_model=SuccessResponse)
async def clear_agenda(
    session: SessionController = Depends(get_session_controller),
    notifications: NotificationCenter = Depends(get_notification_center),
):
    """Start over: drop agenda, files and conversation."""
    session.clear_agenda()
    notifications.info("Ready for new agenda")
    return SuccessResponse(message="Ready for new agenda")


@router.put("/agenda/items/{index}", response_model=AgendaResponse)
async def update_agenda_item(
    index: int,
    item: AgendaItemModel,
    session: SessionController = Depends(get_session_controller),
    notifications: NotificationCenter = Depends(get_notification_center),
):
    try:
        data = session.update_agenda_item(index, item.to_domain())
    except NoAgendaError as e:
        _fail(notifications, 404, str(e))
    except IndexError as e:
        _fail(notifications, 404, str(e))

    notifications.success("Agenda item updated")
    return _agenda_response(data)


@router.post("/agenda/stakeholders", response_model=AgendaResponse)
async def add_stakeholder(
    stakeholder: StakeholderModel,
    session: SessionController = Depends(get_session_controller),
    notifications: NotificationCenter = Depends(get_notification_center),
):
    try:
        data = session.add_stakeholder(stakeholder.to_domain())
    except NoAgendaError as e:
        _fail(notifications, 404, str(e))

    notifications.success("Stakeholder added")
    return _agenda_response(data)


@router.delete("/agenda/stakeholders/{index}", response_model=AgendaResponse)
async def remove_stakeholder(
    index: int,
    session: SessionController = Depends(get_session_controller),
    notifications: NotificationCenter = Depends(get_notification_center),
):
    try:
        data = session.remove_stakeholder(index)
    except NoAgendaError as e:
        _fail(notifications, 404, str(e))
    except IndexError as e:
        _fail(notifications, 404, str(e))

    notifications.info("Stakeholder removed")
    return _agenda_response(data)


@router.get("/agenda/export/markdown")
async def export_markdown(
    session: SessionController = Depends(get_session_controller),
    notifications: NotificationCenter = Depends(get_notification_center),
):
    data = _require_agenda(session, notifications)
    return Response(
        content=to_markdown(data),
        media_type="text/markdown",
        headers={"Content-Disposition": f"attachment; filename={MARKDOWN_FILENAME}"},
    )


@router.get("/agenda/export/text", response_class=PlainTextResponse)
async def export_text(
    session: SessionController = Depends(get_session_controller),
    notifications: NotificationCenter = Depends(get_notification_center),
):
    data = _require_agenda(session, notifications)
    notifications.success("Agenda copied to clipboard")
    return PlainTextResponse(to_clipboard_text(data))


# ============================================================
# Chat log / Notifications
# ============================================================

@router.get("/chat/messages", response_model=ChatHistoryResponse)
async def chat_messages(session: SessionController = Depends(get_session_controller)):
    return ChatHistoryResponse(
        messages=[ChatMessageModel.from_domain(m) for m in session.messages],
        is_streaming=session.is_streaming,
    )


@router.get("/notifications", response_model=NotificationListResponse)
async def list_notifications(
    notifications: NotificationCenter = Depends(get_notification_center),
):
    return NotificationListResponse(
        notifications=[NotificationModel(**n.to_dict()) for n in notifications.active()]
    )


@router.delete("/notifications/{notification_id}", response_model=SuccessResponse)
async def dismiss_notification(
    notification_id: str,
    notifications: NotificationCenter = Depends(get_notification_center),
):
    if not notifications.dismiss(notification_id):
        raise HTTPException(status_code=404, detail="Notification not found")
    return SuccessResponse()


@router.delete("/notifications", response_model=SuccessResponse)
async def clear_notifications(
    notifications: NotificationCenter = Depends(get_notification_center),
):
    notifications.clear()
    return SuccessResponse()
