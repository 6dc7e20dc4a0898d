"""
Data models for calendars, events and availability.

Remote entities are frozen Pydantic models: screens hold them by value and a
reloaded list never invalidates a selection taken from the previous one.
"""

from datetime import date, datetime, timedelta, tzinfo

from pydantic import BaseModel, ConfigDict, Field


class Calendar(BaseModel):
    """Calendar belonging to the mailbox."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str = ""
    description: str = ""
    is_primary: bool = False
    read_only: bool = False


class CalendarEvent(BaseModel):
    """Event as returned by the remote service."""

    model_config = ConfigDict(frozen=True)

    id: str
    calendar_id: str = ""
    title: str = ""
    description: str = ""
    location: str = ""
    start: datetime | None = None
    end: datetime | None = None
    all_day: bool = False
    busy: bool = True
    status: str = "confirmed"  # "confirmed", "tentative" or "cancelled"
    read_only: bool = False
    participant_count: int = 0
    conferencing_url: str = ""

    @property
    def display_title(self) -> str:
        return self.title or "(No title)"

    def occurs_on(self, day: date, tz: tzinfo) -> bool:
        """Check whether the event covers ``day`` in the display timezone."""
        if self.start is None:
            return False
        if self.all_day:
            # All-day ends are exclusive
            start_day = self.start.date()
            end_day = self.end.date() if self.end else start_day + timedelta(days=1)
            return start_day <= day < max(end_day, start_day + timedelta(days=1))
        return self.start.astimezone(tz).date() == day


class AvailabilitySlot(BaseModel):
    """Free time range common to every requested participant."""

    model_config = ConfigDict(frozen=True)

    start: datetime
    end: datetime


class EventRequest(BaseModel):
    """Create/update payload built from the event form."""

    title: str
    description: str = ""
    location: str = ""
    start: datetime
    end: datetime
    all_day: bool = False
    busy: bool = True
    timezone: str = "UTC"


class AvailabilityRequest(BaseModel):
    """Free/busy query for a set of participants."""

    participants: list[str] = Field(min_length=1)
    start: datetime
    end: datetime
    duration_minutes: int = Field(gt=0)
    interval_minutes: int = 15
