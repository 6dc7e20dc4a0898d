"""
Messages delivered to screen controllers.

Every message is a frozen dataclass. Each screen accepts a closed set of them
(``CalendarMessage`` / ``ComposeMessage``) and routes on the concrete type.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Union

from models.errors import RemoteError
from models.events import AvailabilitySlot, Calendar, CalendarEvent
from models.mail import Contact, EmailMessage


class CommandNames:
    """Names of the remote commands, used to tag results and failures."""

    FETCH_CALENDARS = "fetch_calendars"
    FETCH_EVENTS = "fetch_events"
    CREATE_EVENT = "create_event"
    UPDATE_EVENT = "update_event"
    DELETE_EVENT = "delete_event"
    CHECK_AVAILABILITY = "check_availability"
    SEND_MESSAGE = "send_message"
    SAVE_DRAFT = "save_draft"
    DELETE_DRAFT = "delete_draft"
    FETCH_CONTACTS = "fetch_contacts"


# =============================================================================
# HOST / INPUT
# =============================================================================


@dataclass(frozen=True)
class KeyPressed:
    """Key chord as a name, e.g. ``"n"``, ``"ctrl+s"``, ``"shift+tab"``, ``"esc"``."""

    key: str


@dataclass(frozen=True)
class FieldEdited:
    """A text widget reports the new value of one of the screen's fields."""

    field: str
    value: str


@dataclass(frozen=True)
class WindowResized:
    width: int
    height: int


@dataclass(frozen=True)
class NavigateBack:
    """Leave the current screen."""


@dataclass(frozen=True)
class Quit:
    """Stop the program."""


# =============================================================================
# COMMAND RESULTS
# =============================================================================


@dataclass(frozen=True)
class CommandFailed:
    """Error outcome of any remote command."""

    command: str
    error: RemoteError


@dataclass(frozen=True)
class CalendarsLoaded:
    calendars: tuple[Calendar, ...]


@dataclass(frozen=True)
class EventsLoaded:
    calendar_id: str
    events: tuple[CalendarEvent, ...]


@dataclass(frozen=True)
class EventCreated:
    event: CalendarEvent


@dataclass(frozen=True)
class EventUpdated:
    event: CalendarEvent


@dataclass(frozen=True)
class EventDeleted:
    event_id: str


@dataclass(frozen=True)
class AvailabilityLoaded:
    slots: tuple[AvailabilitySlot, ...]


@dataclass(frozen=True)
class AutosaveTick:
    at: datetime


@dataclass(frozen=True)
class DraftSaved:
    """A draft create/update finished.

    ``content_hash`` is the form hash at the time the save was dispatched.
    """

    draft_id: str
    content_hash: str


@dataclass(frozen=True)
class MessageSent:
    message: EmailMessage | None = None


@dataclass(frozen=True)
class DraftDeleted:
    draft_id: str


@dataclass(frozen=True)
class ContactsLoaded:
    contacts: tuple[Contact, ...]


CalendarMessage = Union[
    KeyPressed,
    FieldEdited,
    WindowResized,
    CalendarsLoaded,
    EventsLoaded,
    EventCreated,
    EventUpdated,
    EventDeleted,
    AvailabilityLoaded,
    CommandFailed,
]

ComposeMessage = Union[
    KeyPressed,
    FieldEdited,
    WindowResized,
    AutosaveTick,
    DraftSaved,
    MessageSent,
    DraftDeleted,
    ContactsLoaded,
    CommandFailed,
]

Message = Union[CalendarMessage, ComposeMessage, NavigateBack, Quit]
