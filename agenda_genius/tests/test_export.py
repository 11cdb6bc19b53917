"""
Tests for agenda export formats and the computed schedule.
"""

from datetime import time

import pytest

from agenda_genius.agenda.export import (
    compute_schedule,
    format_duration,
    parse_markdown,
    to_clipboard_text,
    to_markdown,
)
from agenda_genius.agenda.models import AgendaItem, MeetingData, Stakeholder


class TestSchedule:

    def test_back_to_back_from_nine(self, demo_meeting):
        schedule = compute_schedule(demo_meeting)
        assert [(e.start, e.end) for e in schedule] == [
            (time(9, 0), time(9, 15)),
            (time(9, 15), time(9, 45)),
            (time(9, 45), time(10, 5)),
            (time(10, 5), time(10, 15)),
        ]
        assert schedule[1].to_dict()["start"] == "09:15"

    def test_custom_start(self, sample_meeting):
        schedule = compute_schedule(sample_meeting, start=time(13, 30))
        assert schedule[-1].end == time(14, 30)

    def test_zero_duration_item(self):
        data = MeetingData(
            meeting_title="t",
            summary="s",
            agenda_items=(AgendaItem(title="Quick", description="", duration_minutes=0),),
        )
        entry = compute_schedule(data)[0]
        assert entry.start == entry.end

    @pytest.mark.parametrize("minutes,label", [
        (0, "0h 0m"),
        (45, "0h 45m"),
        (75, "1h 15m"),
        (120, "2h 0m"),
    ])
    def test_format_duration(self, minutes, label):
        assert format_duration(minutes) == label


class TestClipboardText:

    def test_exact_format(self, demo_meeting):
        text = to_clipboard_text(demo_meeting)
        lines = text.split("\n")

        assert lines[0] == "Meeting: Q3 Product Launch Strategy"
        assert lines[1] == ""
        assert lines[2].startswith("Summary: Strategic planning session")
        assert lines[4] == "Agenda:"
        assert lines[5] == (
            "- Review Q2 Development Milestones (15 min): "
            "Analyze completed features, pending bugs, and overall velocity from the previous quarter."
        )
        assert len(lines) == 9
        assert "Sarah Connor" not in text


class TestMarkdown:

    def test_structure(self, demo_meeting):
        md = to_markdown(demo_meeting)

        assert md.startswith("# Q3 Product Launch Strategy\n\n**Summary:** ")
        assert "## Stakeholders\n- Sarah Connor (Product Owner)\n- John Smith (Lead Developer)" in md
        assert "### Marketing Campaign Reveal (30 min)\n" in md
        assert "*Presenter: Emily Blunt*" in md

    def test_missing_presenter_is_na(self, sample_meeting):
        assert "### Metrics (10 min)\nVelocity and bugs.\n*Presenter: N/A*" in to_markdown(sample_meeting)

    def test_round_trip(self, sample_meeting, demo_meeting):
        for meeting in (sample_meeting, demo_meeting):
            assert parse_markdown(to_markdown(meeting)) == meeting

    def test_parse_requires_title(self):
        with pytest.raises(ValueError):
            parse_markdown("**Summary:** nothing here")

    def test_round_trip_role_with_parentheses(self, sample_meeting):
        meeting = MeetingData(
            meeting_title=sample_meeting.meeting_title,
            summary=sample_meeting.summary,
            stakeholders=(
                Stakeholder(name="Bob", role="Lead (Interim)"),
                Stakeholder(name="Ann", role="PM"),
            ),
            agenda_items=sample_meeting.agenda_items,
        )
        md = to_markdown(meeting)
        assert "- Bob (Lead (Interim))\n- Ann (PM)" in md

        parsed = parse_markdown(md)
        assert parsed.stakeholders == meeting.stakeholders
        assert parsed == meeting

    def test_round_trip_keeps_description_newlines(self):
        meeting = MeetingData(
            meeting_title="Sync",
            summary="Weekly",
            agenda_items=(
                AgendaItem(id="1", title="Intro", description="\nLine one\nLine two\n", duration_minutes=5),
                AgendaItem(id="2", title="Wrap", description="", duration_minutes=5, presenter="Ann"),
                AgendaItem(id="3", title="Notes", description="a\n\nb", duration_minutes=5),
            ),
        )
        parsed = parse_markdown(to_markdown(meeting))
        assert [i.description for i in parsed.agenda_items] == ["\nLine one\nLine two\n", "", "a\n\nb"]
        assert parsed == meeting
