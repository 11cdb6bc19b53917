"""
Agenda Generation - Gemini structured output and the offline demo.

Handles:
- Building the multi-part request (one part per document + instruction)
- Declaring the strict response schema
- Parsing and validating the JSON body into MeetingData
"""

import asyncio
import json
import logging
from dataclasses import replace
from typing import Optional, Sequence

from google import genai
from google.genai import types

from .base import AgendaService, GeminiBackend
from .encoder import decode_payload
from .errors import GenerationError
from .models import AgendaItem, FileRecord, MeetingData, Stakeholder

logger = logging.getLogger(__name__)


AGENDA_SYSTEM_INSTRUCTION = (
    "You are an expert project manager and executive assistant. "
    "Your goal is to organize efficient, goal-oriented meetings based on raw documentation."
)

AGENDA_TASK_PROMPT = """Analyze the provided document(s) and generate a structured meeting agenda.
Identify key stakeholders who should attend.
Create a timeline of topics with estimated durations.
Ensure the tone is professional and the times are realistic."""


AGENDA_SCHEMA = types.Schema(
    type=types.Type.OBJECT,
    properties={
        "meetingTitle": types.Schema(
            type=types.Type.STRING,
            description="A concise and professional title for the meeting.",
        ),
        "summary": types.Schema(
            type=types.Type.STRING,
            description="A brief 2-3 sentence summary of the meeting goals.",
        ),
        "stakeholders": types.Schema(
            type=types.Type.ARRAY,
            items=types.Schema(
                type=types.Type.OBJECT,
                properties={
                    "name": types.Schema(type=types.Type.STRING),
                    "role": types.Schema(type=types.Type.STRING),
                },
                required=["name", "role"],
            ),
        ),
        "agendaItems": types.Schema(
            type=types.Type.ARRAY,
            items=types.Schema(
                type=types.Type.OBJECT,
                properties={
                    "title": types.Schema(type=types.Type.STRING),
                    "description": types.Schema(
                        type=types.Type.STRING,
                        description="Actionable details about what will be discussed.",
                    ),
                    "durationMinutes": types.Schema(
                        type=types.Type.INTEGER,
                        description="Estimated time in minutes.",
                    ),
                    "presenter": types.Schema(
                        type=types.Type.STRING,
                        description="Suggested presenter based on context, or 'All'",
                    ),
                },
                required=["title", "description", "durationMinutes"],
            ),
        ),
    },
    required=["meetingTitle", "summary", "stakeholders", "agendaItems"],
)


def build_agenda_parts(files: Sequence[FileRecord]) -> list:
    """One inline-data part per file, followed by the task instruction."""
    parts = [
        types.Part.from_bytes(data=decode_payload(f), mime_type=f.mime_type)
        for f in files
    ]
    parts.append(types.Part.from_text(text=AGENDA_TASK_PROMPT))
    return parts


def parse_agenda_response(text: Optional[str]) -> MeetingData:
    """
    Parse the structured JSON body into MeetingData.

    Items without an id get positional ids ("1", "2", ...).

    Raises:
        GenerationError: on an empty body, invalid JSON or wrong shape
    """
    if not text or not text.strip():
        raise GenerationError("No response from Gemini")

    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise GenerationError(f"Gemini returned invalid JSON: {e}") from e

    try:
        meeting = MeetingData.from_dict(data)
    except (KeyError, TypeError, ValueError) as e:
        raise GenerationError(f"Gemini response does not match the agenda schema: {e!r}") from e

    items = tuple(
        item if item.id is not None else replace(item, id=str(i + 1))
        for i, item in enumerate(meeting.agenda_items)
    )
    return replace(meeting, agenda_items=items)


class GeminiAgendaService(GeminiBackend, AgendaService):
    """
    Live agenda generation via Gemini structured output.

    The request carries every document as inline data, the fixed task
    instruction, the response schema and the system instruction.
    """

    name = "gemini-agenda"

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: str = "gemini-3-pro-preview",
        timeout_s: float = 120.0,
        client: Optional[genai.Client] = None,
    ):
        super().__init__(api_key=api_key, client=client)
        self.model = model
        self.timeout_s = timeout_s

    async def generate_agenda(self, files: Sequence[FileRecord]) -> MeetingData:
        client = self._get_client()

        contents = [types.Content(role="user", parts=build_agenda_parts(files))]
        config = types.GenerateContentConfig(
            response_mime_type="application/json",
            response_schema=AGENDA_SCHEMA,
            system_instruction=AGENDA_SYSTEM_INSTRUCTION,
        )

        try:
            response = await asyncio.wait_for(
                asyncio.to_thread(
                    client.models.generate_content,
                    model=self.model,
                    contents=contents,
                    config=config,
                ),
                timeout=self.timeout_s,
            )
        except asyncio.TimeoutError as e:
            logger.error(f"Gemini agenda generation timed out after {self.timeout_s}s")
            raise GenerationError(f"Gemini did not respond within {self.timeout_s:.0f}s") from e
        except Exception as e:
            logger.error(f"Gemini agenda generation error: {e}")
            raise GenerationError(f"Gemini request failed: {e}") from e

        meeting = parse_agenda_response(response.text)
        logger.info(
            f"Generated agenda '{meeting.meeting_title}' from {len(files)} file(s): "
            f"{len(meeting.agenda_items)} items, {meeting.total_duration_minutes} min"
        )
        return meeting


# Pre-defined realistic meeting data for demo mode
DEMO_MEETING = MeetingData(
    meeting_title="Q3 Product Launch Strategy",
    summary=(
        "Strategic planning session for the upcoming 'AgendaGenius' mobile app launch. "
        "Focus on marketing channels, technical readiness, and budget allocation."
    ),
    stakeholders=(
        Stakeholder(name="Sarah Connor", role="Product Owner"),
        Stakeholder(name="John Smith", role="Lead Developer"),
        Stakeholder(name="Emily Blunt", role="Marketing Director"),
        Stakeholder(name="Michael Ross", role="UX Designer"),
    ),
    agenda_items=(
        AgendaItem(
            id="1",
            title="Review Q2 Development Milestones",
            description="Analyze completed features, pending bugs, and overall velocity from the previous quarter.",
            duration_minutes=15,
            presenter="John Smith",
        ),
        AgendaItem(
            id="2",
            title="Marketing Campaign Reveal",
            description="Presentation of the visual identity, social media roadmap, and influencer partnership targets.",
            duration_minutes=30,
            presenter="Emily Blunt",
        ),
        AgendaItem(
            id="3",
            title="Budget & Resource Allocation",
            description="Finalizing the budget for ad spend and contracting additional QA support.",
            duration_minutes=20,
            presenter="Sarah Connor",
        ),
        AgendaItem(
            id="4",
            title="Go/No-Go Decision Criteria",
            description="Defining the critical metrics that must be met 48 hours before launch.",
            duration_minutes=10,
            presenter="All",
        ),
    ),
)


class DemoAgendaService(AgendaService):
    """Offline stand-in: waits, then returns DEMO_MEETING regardless of input."""

    name = "demo-agenda"
    is_demo = True

    def __init__(self, delay_s: float = 2.0):
        self.delay_s = delay_s

    async def generate_agenda(self, files: Sequence[FileRecord]) -> MeetingData:
        # Simulate network delay
        if self.delay_s > 0:
            await asyncio.sleep(self.delay_s)
        return DEMO_MEETING
