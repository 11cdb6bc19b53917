"""
Shared test fixtures for AgendaGenius.

Provides:
- Zero-delay settings and demo services
- Fresh session controller / notification center / mode selector
- Mock WebSocket connections
- Fake google-genai client (bypasses the Gemini API)
- Sample documents and agendas
"""

import pytest
from datetime import datetime
from types import SimpleNamespace
from typing import List, Dict, Any, Optional
from unittest.mock import AsyncMock, MagicMock

from agenda_genius.config import Settings
from agenda_genius.agenda.encoder import encode_file
from agenda_genius.agenda.generation import DEMO_MEETING
from agenda_genius.agenda.mode import ModeSelector
from agenda_genius.agenda.models import AgendaItem, FileRecord, MeetingData, Stakeholder
from agenda_genius.agenda.notifications import NotificationCenter
from agenda_genius.agenda.session import SessionController


@pytest.fixture
def settings() -> Settings:
    """Settings with no credential and no artificial demo latency."""
    return Settings(
        api_key=None,
        demo_generation_delay_s=0.0,
        demo_chat_initial_delay_s=0.0,
        demo_chat_chunk_delay_s=0.0,
    )


@pytest.fixture
def live_settings(settings) -> Settings:
    settings.api_key = "test-key"
    return settings


@pytest.fixture
def selector(settings) -> ModeSelector:
    return ModeSelector.from_settings(settings)


@pytest.fixture
def session() -> SessionController:
    return SessionController()


@pytest.fixture
def notifications() -> NotificationCenter:
    return NotificationCenter(ttl_s=60.0)


@pytest.fixture
def brief_file() -> FileRecord:
    """A small plain-text meeting brief."""
    return encode_file("brief.txt", b"Launch planning: marketing, budget, QA.", "text/plain")


@pytest.fixture
def pdf_file() -> FileRecord:
    return encode_file("notes.pdf", b"%PDF-1.4 fake", "application/pdf")


@pytest.fixture
def sample_meeting() -> MeetingData:
    """A three-item agenda that is not the demo one."""
    return MeetingData(
        meeting_title="Sprint Review",
        summary="Review the sprint outcome and plan the next one.",
        stakeholders=(
            Stakeholder(name="Ada Lovelace", role="Engineering Manager"),
            Stakeholder(name="Alan Turing", role="Tech Lead"),
        ),
        agenda_items=(
            AgendaItem(id="1", title="Demo", description="Show finished work.", duration_minutes=20, presenter="Alan Turing"),
            AgendaItem(id="2", title="Metrics", description="Velocity and bugs.", duration_minutes=10),
            AgendaItem(id="3", title="Planning", description="Pick the next stories.", duration_minutes=30, presenter="Ada Lovelace"),
        ),
    )


@pytest.fixture
def demo_meeting() -> MeetingData:
    return DEMO_MEETING


@pytest.fixture
def mock_websocket():
    """Create a mock WebSocket that records sent messages."""
    ws = AsyncMock()
    ws.sent_messages: List[Dict[str, Any]] = []

    async def record_send(data: dict):
        ws.sent_messages.append(data)

    ws.send_json = AsyncMock(side_effect=record_send)
    return ws


class MockConnectionInfo:
    """Mock connection info for testing."""
    def __init__(self):
        self.connected_at = datetime.utcnow()
        self.metadata = {}


@pytest.fixture
def mock_connection_info():
    return MockConnectionInfo()


def make_chunk_stream(chunks: List[Optional[str]], fail_after: Optional[int] = None):
    """Async generator of response chunks with a .text attribute."""
    async def stream():
        for i, text in enumerate(chunks):
            if fail_after is not None and i == fail_after:
                raise ConnectionError("stream dropped")
            yield SimpleNamespace(text=text)
    return stream()


@pytest.fixture
def fake_genai_client():
    """
    MagicMock standing in for genai.Client.

    models.generate_content returns a response whose .text is set by the
    test; aio.models.generate_content_stream returns an async generator.
    """
    client = MagicMock()
    client.models.generate_content = MagicMock(return_value=SimpleNamespace(text=""))
    client.aio.models.generate_content_stream = AsyncMock(
        return_value=make_chunk_stream([])
    )
    return client


@pytest.fixture
def chunk_stream():
    """Factory for fake Gemini chunk streams."""
    return make_chunk_stream
