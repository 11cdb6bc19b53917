"""
Agenda export and schedule projections.

Two text formats are produced:
- clipboard: compact plain text, no stakeholders
- markdown: downloadable file with headings, stakeholders and presenters

parse_markdown reverses to_markdown so exported files can be re-imported.
"""

import re
from datetime import date, datetime, time, timedelta
from typing import List, Optional

from .models import AgendaItem, MeetingData, ScheduledItem, Stakeholder

DEFAULT_START_TIME = time(9, 0)
MARKDOWN_FILENAME = "meeting-agenda.md"
NO_PRESENTER = "N/A"

_TITLE_RE = re.compile(r"^# (?P<title>.*)$")
_SUMMARY_RE = re.compile(r"^\*\*Summary:\*\* (?P<summary>.*)$")
_STAKEHOLDER_RE = re.compile(r"^- (?P<name>.*?) \((?P<role>.*)\)$")
_ITEM_RE = re.compile(r"^### (?P<title>.*) \((?P<minutes>\d+) min\)$")
_PRESENTER_RE = re.compile(r"^\*Presenter: (?P<presenter>.*)\*$")


def format_duration(minutes: int) -> str:
    """75 -> '1h 15m'"""
    return f"{minutes // 60}h {minutes % 60}m"


def compute_schedule(data: MeetingData, start: time = DEFAULT_START_TIME) -> List[ScheduledItem]:
    """Place items back to back starting at `start`."""
    cursor = datetime.combine(date.today(), start)
    schedule = []
    for index, item in enumerate(data.agenda_items):
        end = cursor + timedelta(minutes=item.duration_minutes)
        schedule.append(ScheduledItem(index=index, item=item, start=cursor.time(), end=end.time()))
        cursor = end
    return schedule


def to_clipboard_text(data: MeetingData) -> str:
    agenda = "\n".join(
        f"- {item.title} ({item.duration_minutes} min): {item.description}"
        for item in data.agenda_items
    )
    return f"Meeting: {data.meeting_title}\n\nSummary: {data.summary}\n\nAgenda:\n{agenda}"


def to_markdown(data: MeetingData) -> str:
    stakeholders = "\n".join(f"- {s.name} ({s.role})" for s in data.stakeholders)
    agenda = "\n\n".join(
        f"### {item.title} ({item.duration_minutes} min)\n"
        f"{item.description}\n"
        f"*Presenter: {item.presenter or NO_PRESENTER}*"
        for item in data.agenda_items
    )
    return (
        f"# {data.meeting_title}\n\n"
        f"**Summary:** {data.summary}\n\n"
        f"## Stakeholders\n{stakeholders}\n\n"
        f"## Agenda\n{agenda}"
    )


def parse_markdown(text: str) -> MeetingData:
    """
    Rebuild MeetingData from to_markdown output.

    Stakeholder lines split on the first " (", so a role may contain
    parentheses but a name may not. Description lines are kept as written,
    blank ones included; a description line that itself reads as an item
    heading or presenter line cannot be told apart and ends the description.

    Raises:
        ValueError: if the title line is missing
    """
    title: Optional[str] = None
    summary = ""
    stakeholders: List[Stakeholder] = []
    items: List[AgendaItem] = []

    section = None
    current = None  # dict for the item being read

    def flush():
        if current is not None:
            items.append(AgendaItem(
                id=str(len(items) + 1),
                title=current["title"],
                description="\n".join(current["description"]),
                duration_minutes=current["minutes"],
                presenter=current["presenter"],
            ))

    for line in text.splitlines():
        if title is None:
            match = _TITLE_RE.match(line)
            if match:
                title = match.group("title")
            continue

        if line == "## Stakeholders":
            section = "stakeholders"
            continue
        if line == "## Agenda":
            section = "agenda"
            continue

        if section is None:
            match = _SUMMARY_RE.match(line)
            if match:
                summary = match.group("summary")

        elif section == "stakeholders":
            match = _STAKEHOLDER_RE.match(line)
            if match:
                stakeholders.append(Stakeholder(name=match.group("name"), role=match.group("role")))

        else:
            match = _ITEM_RE.match(line)
            if match:
                flush()
                current = {
                    "title": match.group("title"),
                    "minutes": int(match.group("minutes")),
                    "description": [],
                    "presenter": None,
                    "closed": False,
                }
                continue
            if current is None:
                continue
            match = _PRESENTER_RE.match(line)
            if match:
                presenter = match.group("presenter")
                current["presenter"] = None if presenter == NO_PRESENTER else presenter
                current["closed"] = True
            elif not current["closed"]:
                current["description"].append(line)

    flush()

    if title is None:
        raise ValueError("Markdown has no '# ' title line")

    return MeetingData(
        meeting_title=title,
        summary=summary,
        stakeholders=tuple(stakeholders),
        agenda_items=tuple(items),
    )
