"""
Dialog state for the calendar screen: event form, delete confirmation and
availability check.
"""

from dataclasses import dataclass, field
from datetime import date, datetime, timedelta, tzinfo
from enum import Enum
from typing import Callable

from core.config import (
    AVAILABILITY_INTERVAL_MINUTES,
    AVAILABILITY_RANGE_DAYS,
    DATE_FORMAT,
    DEFAULT_MEETING_MINUTES,
    TIME_FORMAT,
    WORKDAY_END_HOUR,
    WORKDAY_START_HOUR,
)
from core.validation import (
    parse_date,
    parse_participants,
    parse_positive_int,
    parse_time,
)
from models.errors import ValidationError
from models.events import AvailabilityRequest, AvailabilitySlot, CalendarEvent, EventRequest
from screens.selection import SelectionIndexer


def cycle_focus(index: int, count: int, step: int, hidden: Callable[[int], bool]) -> int:
    """Move focus by ``step`` (+1/-1), skipping hidden positions."""
    for _ in range(count):
        index = (index + step) % count
        if not hidden(index):
            break
    return index


def zone_name(tz: tzinfo) -> str:
    return getattr(tz, "key", None) or str(tz)


class EventFormKind(Enum):
    CREATE = "create"
    EDIT = "edit"


EVENT_FORM_FIELDS = [
    "title",
    "location",
    "description",
    "start_date",
    "start_time",
    "end_date",
    "end_time",
    "all_day",
    "busy",
]
TOGGLE_FIELDS = {"all_day", "busy"}
TIME_FIELDS = {"start_time", "end_time"}


@dataclass
class EventFormState:
    """Create/edit form. Text values stay strings until the request is built."""

    kind: EventFormKind
    values: dict[str, str]
    all_day: bool = False
    busy: bool = True
    event_id: str | None = None
    focus_index: int = 0
    errors: dict[str, str] = field(default_factory=dict)

    @classmethod
    def for_create(cls, day: date, tz: tzinfo) -> "EventFormState":
        start = datetime.combine(day, datetime.min.time(), tz).replace(hour=WORKDAY_START_HOUR)
        return cls.for_range(start, start + timedelta(minutes=DEFAULT_MEETING_MINUTES), tz)

    @classmethod
    def for_range(cls, start: datetime, end: datetime, tz: tzinfo) -> "EventFormState":
        start = start.astimezone(tz)
        end = end.astimezone(tz)
        return cls(
            kind=EventFormKind.CREATE,
            values={
                "title": "",
                "location": "",
                "description": "",
                "start_date": start.strftime(DATE_FORMAT),
                "start_time": start.strftime(TIME_FORMAT),
                "end_date": end.strftime(DATE_FORMAT),
                "end_time": end.strftime(TIME_FORMAT),
            },
        )

    @classmethod
    def for_edit(cls, event: CalendarEvent, tz: tzinfo) -> "EventFormState":
        start = event.start.astimezone(tz) if event.start else datetime.now(tz)
        end = event.end.astimezone(tz) if event.end else start
        if event.all_day:
            # Stored end is exclusive, the form shows the last day
            start = event.start or start
            end = max(start, (event.end or start + timedelta(days=1)) - timedelta(days=1))
        return cls(
            kind=EventFormKind.EDIT,
            event_id=event.id,
            all_day=event.all_day,
            busy=event.busy,
            values={
                "title": event.title,
                "location": event.location,
                "description": event.description,
                "start_date": start.strftime(DATE_FORMAT),
                "start_time": start.strftime(TIME_FORMAT),
                "end_date": end.strftime(DATE_FORMAT),
                "end_time": end.strftime(TIME_FORMAT),
            },
        )

    @property
    def focused_field(self) -> str:
        return EVENT_FORM_FIELDS[self.focus_index]

    def is_hidden(self, index: int) -> bool:
        return self.all_day and EVENT_FORM_FIELDS[index] in TIME_FIELDS

    def focus_next(self) -> None:
        self.focus_index = cycle_focus(self.focus_index, len(EVENT_FORM_FIELDS), 1, self.is_hidden)

    def focus_previous(self) -> None:
        self.focus_index = cycle_focus(self.focus_index, len(EVENT_FORM_FIELDS), -1, self.is_hidden)

    def edit(self, field_name: str, value: str) -> bool:
        """Store a text value. Returns False for unknown or toggle fields."""
        if field_name not in self.values:
            return False
        self.values[field_name] = value
        self.errors.pop(field_name, None)
        return True

    def toggle_focused(self) -> bool:
        name = self.focused_field
        if name == "all_day":
            self.all_day = not self.all_day
        elif name == "busy":
            self.busy = not self.busy
        else:
            return False
        return True

    def build_request(self, tz: tzinfo) -> EventRequest:
        """
        Validate and convert the form.

        Raises:
            ValidationError: for the first invalid field (also recorded in ``errors``)
        """
        self.errors = {}
        try:
            return self._build_request(tz)
        except ValidationError as e:
            self.errors[e.field] = e.message
            raise

    def _build_request(self, tz: tzinfo) -> EventRequest:
        title = self.values["title"].strip()
        if not title:
            raise ValidationError("title", "Title is required")

        start_date = parse_date("start_date", self.values["start_date"])
        end_date = parse_date("end_date", self.values["end_date"])

        if self.all_day:
            if end_date < start_date:
                raise ValidationError("end_date", "End date must not be before start date")
            start = datetime.combine(start_date, datetime.min.time(), tz)
            end = datetime.combine(end_date + timedelta(days=1), datetime.min.time(), tz)
        else:
            start = datetime.combine(start_date, parse_time("start_time", self.values["start_time"]), tz)
            end = datetime.combine(end_date, parse_time("end_time", self.values["end_time"]), tz)
            if end < start:
                raise ValidationError("end_time", "End time must be after start time")

        return EventRequest(
            title=title,
            location=self.values["location"].strip(),
            description=self.values["description"].strip(),
            start=start,
            end=end,
            all_day=self.all_day,
            busy=self.busy,
            timezone=zone_name(tz),
        )


@dataclass
class ConfirmDeleteState:
    event: CalendarEvent

    @property
    def prompt(self) -> str:
        return f"Are you sure you want to delete '{self.event.display_title}'?"


AVAILABILITY_FIELDS = ["participants", "start_date", "end_date", "duration"]


@dataclass
class AvailabilityDialogState:
    """Availability query form plus its results."""

    values: dict[str, str]
    calendar_id: str = ""
    focus_index: int = 0
    loading: bool = False
    error: str = ""
    slots: tuple[AvailabilitySlot, ...] = ()
    selection: SelectionIndexer = field(default_factory=SelectionIndexer)

    @classmethod
    def for_week(cls, day: date, calendar_id: str = "") -> "AvailabilityDialogState":
        return cls(
            calendar_id=calendar_id,
            values={
                "participants": "",
                "start_date": day.strftime(DATE_FORMAT),
                "end_date": (day + timedelta(days=AVAILABILITY_RANGE_DAYS)).strftime(DATE_FORMAT),
                "duration": str(DEFAULT_MEETING_MINUTES),
            },
        )

    @property
    def selected_slot(self) -> AvailabilitySlot | None:
        return self.selection.selected(self.slots)

    def focus_next(self) -> None:
        self.focus_index = cycle_focus(self.focus_index, len(AVAILABILITY_FIELDS), 1, lambda i: False)

    def focus_previous(self) -> None:
        self.focus_index = cycle_focus(self.focus_index, len(AVAILABILITY_FIELDS), -1, lambda i: False)

    def edit(self, field_name: str, value: str) -> bool:
        if field_name not in self.values:
            return False
        self.values[field_name] = value
        self.error = ""
        return True

    def set_results(self, slots: tuple[AvailabilitySlot, ...]) -> None:
        self.loading = False
        self.error = ""
        self.slots = slots
        self.selection.reset()

    def set_error(self, message: str) -> None:
        self.loading = False
        self.error = message

    def build_request(self, tz: tzinfo) -> AvailabilityRequest:
        """
        Validate the query: working hours from the start date to the end date.

        Raises:
            ValidationError: for the first invalid field
        """
        participants = parse_participants("participants", self.values["participants"])
        start_date = parse_date("start_date", self.values["start_date"])
        end_date = parse_date("end_date", self.values["end_date"])

        start = datetime.combine(start_date, datetime.min.time(), tz).replace(hour=WORKDAY_START_HOUR)
        end = datetime.combine(end_date, datetime.min.time(), tz).replace(hour=WORKDAY_END_HOUR)
        if end < start:
            raise ValidationError("end_date", "End date must be after start date")

        duration = parse_positive_int("duration", self.values["duration"])

        return AvailabilityRequest(
            participants=participants,
            start=start,
            end=end,
            duration_minutes=duration,
            interval_minutes=AVAILABILITY_INTERVAL_MINUTES,
        )
