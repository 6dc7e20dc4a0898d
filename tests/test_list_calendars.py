"""
Tests for the calendar listing script.
"""

from datetime import datetime, timezone
from zoneinfo import ZoneInfo

from models.events import CalendarEvent
from scripts.list_calendars import format_start


def test_timed_event_in_display_zone():
    event = CalendarEvent(id="e1", start=datetime(2025, 11, 3, 9, 30, tzinfo=timezone.utc))
    assert format_start(event, ZoneInfo("Europe/Berlin")) == "10:30"


def test_all_day_event():
    event = CalendarEvent(id="e2", start=datetime(2025, 11, 3, tzinfo=timezone.utc), all_day=True)
    assert format_start(event, timezone.utc) == "all day"


def test_timed_event_without_start():
    """Should not fail on an event whose start time could not be parsed."""
    assert format_start(CalendarEvent(id="e3"), timezone.utc) == "all day"
