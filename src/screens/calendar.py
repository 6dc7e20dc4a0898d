"""
Calendar screen controller.

Modes: VIEW, EVENT_FORM (create or edit), CONFIRM_DELETE and AVAILABILITY.
Submitting a form or confirming a delete schedules the remote command and
returns to VIEW straight away; the result message later refreshes the events or
shows an error, it never changes the mode back.
"""

import calendar as monthgrid
import logging
from datetime import date, datetime, timedelta
from enum import Enum

from core.config import EVENT_WINDOW_PADDING_DAYS
from models.errors import RemoteError, ValidationError, truncate_error
from models.events import AvailabilitySlot, Calendar, CalendarEvent
from models.messages import (
    AvailabilityLoaded,
    CalendarsLoaded,
    CommandFailed,
    CommandNames,
    EventCreated,
    EventDeleted,
    EventsLoaded,
    EventUpdated,
    FieldEdited,
    KeyPressed,
    NavigateBack,
    Quit,
    WindowResized,
)
from screens.commands import Command
from screens.context import ScreenContext, Severity
from screens.forms import (
    AVAILABILITY_FIELDS,
    EVENT_FORM_FIELDS,
    AvailabilityDialogState,
    ConfirmDeleteState,
    EventFormKind,
    EventFormState,
)
from screens.router import ModeRouter
from screens.selection import SelectionIndexer

logger = logging.getLogger(__name__)


class CalendarMode(Enum):
    VIEW = "view"
    EVENT_FORM = "event_form"
    CONFIRM_DELETE = "confirm_delete"
    AVAILABILITY = "availability"


class ViewMode(Enum):
    MONTH = "month"
    WEEK = "week"
    AGENDA = "agenda"


VIEW_MODE_KEYS = {"m": ViewMode.MONTH, "w": ViewMode.WEEK, "g": ViewMode.AGENDA}

# Availability slots drawn at once; the list scrolls to keep the selection in view
VISIBLE_SLOTS = 20

# Days moved by each navigation key
NAVIGATION_KEYS = {
    "h": -1,
    "left": -1,
    "l": 1,
    "right": 1,
    "k": -7,
    "up": -7,
    "j": 7,
    "down": 7,
}

FAILURE_LABELS = {
    CommandNames.FETCH_CALENDARS: "Loading calendars",
    CommandNames.FETCH_EVENTS: "Loading events",
    CommandNames.CREATE_EVENT: "Creating event",
    CommandNames.UPDATE_EVENT: "Updating event",
    CommandNames.DELETE_EVENT: "Deleting event",
}

HELP_TEXT = {
    CalendarMode.VIEW: "n: new  e: edit  d: delete  J/K: select  A: availability  t: today  m/w/g: view  [/]: calendar  Ctrl+R: refresh  Esc: back",
    CalendarMode.EVENT_FORM: "Tab: next field  Space: toggle  Enter: save  Esc: cancel",
    CalendarMode.CONFIRM_DELETE: "y/Enter: delete  n/Esc: cancel",
    CalendarMode.AVAILABILITY: "Tab: next field  Enter: check / pick slot  Up/Down: select slot  Ctrl+R: re-check  Esc: cancel",
}


class CalendarScreen:
    """Calendar view with event create/edit/delete and availability checks."""

    def __init__(self, context: ScreenContext, today: date | None = None):
        self.context = context
        self.commands = context.commands
        self.status = context.status
        self.tz = context.timezone

        self.calendars: tuple[Calendar, ...] = ()
        self.selected_calendar: Calendar | None = None
        self.events: tuple[CalendarEvent, ...] = ()
        self.selected_date = today or context.now().date()
        self.fetched_month: tuple[int, int] | None = None
        self.selection = SelectionIndexer()
        self.view_mode = ViewMode.MONTH

        self.event_form: EventFormState | None = None
        self.confirm_dialog: ConfirmDeleteState | None = None
        self.availability_dialog: AvailabilityDialogState | None = None

        self.loading = False
        self.loading_events = False
        self.calendars_loaded = False
        self.error: RemoteError | None = None
        self.width = 0
        self.height = 0

        self.router: ModeRouter[CalendarMode] = ModeRouter(CalendarMode.VIEW, name="calendar")
        self._register_routes()

    def _register_routes(self) -> None:
        r = self.router
        r.on(CalendarMode.VIEW, KeyPressed, self._on_view_key)

        r.on(CalendarMode.EVENT_FORM, KeyPressed, self._on_form_key)
        r.on(CalendarMode.EVENT_FORM, FieldEdited, self._on_form_edit)

        r.on(CalendarMode.CONFIRM_DELETE, KeyPressed, self._on_confirm_key)

        r.on(CalendarMode.AVAILABILITY, KeyPressed, self._on_availability_key)
        r.on(CalendarMode.AVAILABILITY, FieldEdited, self._on_availability_edit)
        r.on(CalendarMode.AVAILABILITY, AvailabilityLoaded, self._on_availability_loaded)
        r.on(CalendarMode.AVAILABILITY, CommandFailed, self._on_availability_failed)

        r.on_any(WindowResized, self._on_resize)
        r.on_any(CalendarsLoaded, self._on_calendars_loaded)
        r.on_any(EventsLoaded, self._on_events_loaded)
        r.on_any(EventCreated, self._on_event_created)
        r.on_any(EventUpdated, self._on_event_updated)
        r.on_any(EventDeleted, self._on_event_deleted)
        r.on_any(CommandFailed, self._on_command_failed)

    @property
    def mode(self) -> CalendarMode:
        return self.router.mode

    # =========================================================================
    # PUBLIC CONTRACT
    # =========================================================================

    def init(self) -> list[Command]:
        self.loading = True
        return [self.commands.fetch_calendars()]

    def update(self, message) -> list[Command]:
        return self.router.dispatch(message)

    def view(self) -> str:
        if self.mode == CalendarMode.EVENT_FORM and self.event_form:
            body = self._render_event_form(self.event_form)
        elif self.mode == CalendarMode.CONFIRM_DELETE and self.confirm_dialog:
            body = f"Delete Event\n\n{self.confirm_dialog.prompt}\n\n[Delete]  [Cancel]"
        elif self.mode == CalendarMode.AVAILABILITY and self.availability_dialog:
            body = self._render_availability(self.availability_dialog)
        else:
            body = self._render_calendar()
        return body + "\n\n" + HELP_TEXT[self.mode]

    # =========================================================================
    # DAY / SELECTION
    # =========================================================================

    def day_events(self) -> list[CalendarEvent]:
        """Events of the selected day, all-day first, then by start time."""
        events = [e for e in self.events if e.occurs_on(self.selected_date, self.tz)]
        return sorted(events, key=lambda e: (not e.all_day, e.start.timestamp()))

    def selected_event(self) -> CalendarEvent | None:
        return self.selection.selected(self.day_events())

    def _move_to(self, day: date) -> list[Command]:
        self.selected_date = day
        self.selection.reset()
        if (day.year, day.month) != self.fetched_month:
            return self._fetch_events()
        return []

    def _fetch_events(self) -> list[Command]:
        """Fetch the displayed month padded on both sides."""
        if self.selected_calendar is None:
            return []
        first = self.selected_date.replace(day=1)
        next_first = (first + timedelta(days=32)).replace(day=1)
        padding = timedelta(days=EVENT_WINDOW_PADDING_DAYS)
        start = datetime.combine(first - padding, datetime.min.time(), self.tz)
        end = datetime.combine(next_first + padding, datetime.min.time(), self.tz)

        self.loading_events = True
        self.fetched_month = (first.year, first.month)
        return [self.commands.fetch_events(self.selected_calendar.id, start, end)]

    # =========================================================================
    # VIEW MODE
    # =========================================================================

    def _on_view_key(self, msg: KeyPressed) -> list[Command]:
        key = msg.key

        if key == "esc":
            return [self.commands.emit(NavigateBack())]
        if key == "ctrl+c":
            return [self.commands.emit(Quit())]
        if key == "ctrl+r":
            self.loading = True
            return [self.commands.fetch_calendars()]

        if key in VIEW_MODE_KEYS:
            self.view_mode = VIEW_MODE_KEYS[key]
            return []
        if key == "t":
            self.selected_date = self.context.now().date()
            self.selection.reset()
            return self._fetch_events()
        if key in NAVIGATION_KEYS:
            return self._move_to(self.selected_date + timedelta(days=NAVIGATION_KEYS[key]))

        if key == "J":
            self.selection.next(len(self.day_events()))
            return []
        if key == "K":
            self.selection.previous(len(self.day_events()))
            return []
        if key in ("[", "]"):
            return self._switch_calendar(-1 if key == "[" else 1)

        if key == "n":
            return self._open_create_form()
        if key == "e":
            return self._open_edit_form()
        if key == "d":
            return self._open_delete_confirmation()
        if key == "A":
            return self._open_availability()
        return []

    def _switch_calendar(self, step: int) -> list[Command]:
        if len(self.calendars) < 2 or self.selected_calendar is None:
            return []
        ids = [c.id for c in self.calendars]
        current = ids.index(self.selected_calendar.id) if self.selected_calendar.id in ids else 0
        self.selected_calendar = self.calendars[(current + step) % len(self.calendars)]
        self.events = ()
        self.selection.reset()
        self.status.set_status(f"Calendar: {self.selected_calendar.name}")
        return self._fetch_events()

    def _writable_calendar(self, advisory: str) -> Calendar | None:
        """The selected calendar, or None after posting an advisory."""
        if self.selected_calendar is None:
            self.status.set_status("No calendar selected", Severity.WARNING)
            return None
        if self.selected_calendar.read_only:
            self.status.set_status(advisory, Severity.WARNING)
            return None
        return self.selected_calendar

    def _open_create_form(self) -> list[Command]:
        if self._writable_calendar("Cannot modify events on read-only calendar") is None:
            return []
        self.event_form = EventFormState.for_create(self.selected_date, self.tz)
        self.router.transition(CalendarMode.EVENT_FORM)
        return []

    def _open_edit_form(self) -> list[Command]:
        event = self.selected_event()
        if event is None:
            self.status.set_status("No event selected to edit", Severity.WARNING)
            return []
        if self._writable_calendar("Cannot modify events on read-only calendar") is None:
            return []
        if event.read_only:
            self.status.set_status("Cannot edit read-only event", Severity.WARNING)
            return []
        self.event_form = EventFormState.for_edit(event, self.tz)
        self.router.transition(CalendarMode.EVENT_FORM)
        return []

    def _open_delete_confirmation(self) -> list[Command]:
        event = self.selected_event()
        if event is None:
            self.status.set_status("No event selected to delete", Severity.WARNING)
            return []
        if self._writable_calendar("Cannot delete events on read-only calendar") is None:
            return []
        if event.read_only:
            self.status.set_status("Cannot delete read-only event", Severity.WARNING)
            return []
        self.confirm_dialog = ConfirmDeleteState(event)
        self.router.transition(CalendarMode.CONFIRM_DELETE)
        return []

    def _open_availability(self) -> list[Command]:
        calendar_id = self.selected_calendar.id if self.selected_calendar else ""
        self.availability_dialog = AvailabilityDialogState.for_week(self.selected_date, calendar_id)
        self.router.transition(CalendarMode.AVAILABILITY)
        return []

    def _close_dialogs(self) -> None:
        self.event_form = None
        self.confirm_dialog = None
        self.availability_dialog = None
        self.router.transition(CalendarMode.VIEW)

    # =========================================================================
    # EVENT FORM MODE
    # =========================================================================

    def _on_form_key(self, msg: KeyPressed) -> list[Command]:
        form = self.event_form
        key = msg.key
        if key == "esc":
            self._close_dialogs()
        elif key == "tab":
            form.focus_next()
        elif key == "shift+tab":
            form.focus_previous()
        elif key == "space":
            form.toggle_focused()
        elif key in ("enter", "ctrl+s"):
            return self._submit_form(form)
        return []

    def _on_form_edit(self, msg: FieldEdited) -> list[Command]:
        if not self.event_form.edit(msg.field, msg.value):
            logger.debug("event form has no text field %r", msg.field)
        return []

    def _submit_form(self, form: EventFormState) -> list[Command]:
        try:
            request = form.build_request(self.tz)
        except ValidationError as e:
            self.status.set_status(f"Cannot save event: {e.message}", Severity.WARNING)
            return []

        calendar = self._writable_calendar("Cannot modify events on read-only calendar")
        self._close_dialogs()
        if calendar is None:
            return []

        self.loading = True
        if form.kind == EventFormKind.CREATE:
            self.status.set_status("Creating event...")
            return [self.commands.create_event(calendar.id, request)]
        self.status.set_status("Updating event...")
        return [self.commands.update_event(calendar.id, form.event_id, request)]

    # =========================================================================
    # CONFIRM DELETE MODE
    # =========================================================================

    def _on_confirm_key(self, msg: KeyPressed) -> list[Command]:
        if msg.key in ("y", "enter"):
            event = self.confirm_dialog.event
            calendar = self._writable_calendar("Cannot delete events on read-only calendar")
            self._close_dialogs()
            if calendar is None:
                return []
            self.loading = True
            self.status.set_status("Deleting event...")
            return [self.commands.delete_event(calendar.id, event.id)]
        if msg.key in ("n", "esc"):
            self._close_dialogs()
        return []

    # =========================================================================
    # AVAILABILITY MODE
    # =========================================================================

    def _on_availability_key(self, msg: KeyPressed) -> list[Command]:
        dialog = self.availability_dialog
        key = msg.key
        if key == "esc":
            self._close_dialogs()
        elif key == "tab":
            dialog.focus_next()
        elif key == "shift+tab":
            dialog.focus_previous()
        elif key == "down":
            dialog.selection.next(len(dialog.slots))
        elif key == "up":
            dialog.selection.previous(len(dialog.slots))
        elif key == "ctrl+r":
            return self._check_availability(dialog)
        elif key == "enter":
            slot = dialog.selected_slot
            if slot is not None:
                return self._create_from_slot(slot)
            return self._check_availability(dialog)
        return []

    def _on_availability_edit(self, msg: FieldEdited) -> list[Command]:
        if self.availability_dialog.edit(msg.field, msg.value):
            # New query values invalidate old results
            self.availability_dialog.set_results(())
        return []

    def _check_availability(self, dialog: AvailabilityDialogState) -> list[Command]:
        try:
            request = dialog.build_request(self.tz)
        except ValidationError as e:
            dialog.set_error(e.message)
            return []
        dialog.loading = True
        dialog.error = ""
        return [self.commands.check_availability(request)]

    def _on_availability_loaded(self, msg: AvailabilityLoaded) -> list[Command]:
        self.availability_dialog.set_results(msg.slots)
        self.status.set_status(f"Found {len(msg.slots)} available slots")
        return []

    def _on_availability_failed(self, msg: CommandFailed) -> list[Command]:
        if msg.command != CommandNames.CHECK_AVAILABILITY:
            return self._on_command_failed(msg)
        self.availability_dialog.set_error(truncate_error(str(msg.error)))
        return []

    def _create_from_slot(self, slot: AvailabilitySlot) -> list[Command]:
        if self._writable_calendar("Cannot create events on read-only calendar") is None:
            self._close_dialogs()
            return []
        self._close_dialogs()
        self.event_form = EventFormState.for_range(slot.start, slot.end, self.tz)
        self.router.transition(CalendarMode.EVENT_FORM)
        return []

    # =========================================================================
    # RESULTS (ANY MODE)
    # =========================================================================

    def _on_resize(self, msg: WindowResized) -> list[Command]:
        self.width = msg.width
        self.height = msg.height
        return []

    def _on_calendars_loaded(self, msg: CalendarsLoaded) -> list[Command]:
        self.calendars_loaded = True
        self.loading = False
        self.error = None
        self.calendars = msg.calendars

        # First primary calendar, otherwise the first one
        primary = [c for c in self.calendars if c.is_primary]
        if primary:
            self.selected_calendar = primary[0]
        elif self.calendars:
            self.selected_calendar = self.calendars[0]
        else:
            self.selected_calendar = None

        if self.selected_calendar is None:
            self.events = ()
            self.selection.reset()
            self.status.set_status("No calendars found", Severity.WARNING)
            return []
        return self._fetch_events()

    def _on_events_loaded(self, msg: EventsLoaded) -> list[Command]:
        if self.selected_calendar is None or msg.calendar_id != self.selected_calendar.id:
            logger.info("dropping events for calendar %s (no longer selected)", msg.calendar_id)
            return []
        self.loading_events = False
        self.error = None
        self.events = msg.events
        self.selection.reset()
        self.status.set_status(f"Loaded {len(self.events)} events")
        return []

    def _on_event_created(self, msg: EventCreated) -> list[Command]:
        self.loading = False
        self.status.set_status(f"Event '{msg.event.display_title}' created")
        return self._fetch_events()

    def _on_event_updated(self, msg: EventUpdated) -> list[Command]:
        self.loading = False
        self.status.set_status(f"Event '{msg.event.display_title}' updated")
        return self._fetch_events()

    def _on_event_deleted(self, msg: EventDeleted) -> list[Command]:
        self.loading = False
        self.status.set_status("Event deleted")
        return self._fetch_events()

    def _on_command_failed(self, msg: CommandFailed) -> list[Command]:
        if msg.command == CommandNames.CHECK_AVAILABILITY:
            # Dialog already closed
            logger.info("availability result arrived after the dialog closed")
            return []
        if msg.command == CommandNames.FETCH_EVENTS:
            self.loading_events = False
        else:
            self.loading = False
        self.error = msg.error
        label = FAILURE_LABELS.get(msg.command, msg.command)
        self.status.set_status(
            f"{label} failed: {truncate_error(str(msg.error))}", Severity.ERROR
        )
        return []

    # =========================================================================
    # RENDERING
    # =========================================================================

    def _render_calendar(self) -> str:
        name = "No calendar"
        if self.selected_calendar:
            name = self.selected_calendar.name or self.selected_calendar.id
            if self.selected_calendar.is_primary:
                name += " ★"
            if self.selected_calendar.read_only:
                name += " (read-only)"

        header = f"{name}  [{self.view_mode.value}]"
        if self.loading or self.loading_events:
            header += "  Loading..."
        lines = [header, ""]

        if self.error:
            lines.append(f"Error: {truncate_error(str(self.error))}")
            lines.append("")

        if self.view_mode == ViewMode.MONTH:
            lines.extend(self._render_month())
        elif self.view_mode == ViewMode.WEEK:
            lines.extend(self._render_week())
        else:
            lines.extend(self._render_agenda())

        lines.append("")
        lines.extend(self._render_schedule())
        return "\n".join(lines)

    def _event_days(self) -> set[date]:
        days = set()
        for event in self.events:
            if event.start is not None:
                days.add(event.start.astimezone(self.tz).date())
        return days

    def _render_month(self) -> list[str]:
        busy_days = self._event_days()
        year, month = self.selected_date.year, self.selected_date.month
        lines = [self.selected_date.strftime("%B %Y"), " Mo  Tu  We  Th  Fr  Sa  Su"]
        for week in monthgrid.Calendar().monthdatescalendar(year, month):
            cells = []
            for day in week:
                if day.month != month:
                    cells.append("   ")
                    continue
                if day == self.selected_date:
                    mark = "<"
                elif day in busy_days:
                    mark = "*"
                else:
                    mark = " "
                cells.append(f"{day.day:2d}{mark}")
            lines.append(" ".join(cells))
        return lines

    def _render_week(self) -> list[str]:
        monday = self.selected_date - timedelta(days=self.selected_date.weekday())
        lines = []
        for offset in range(7):
            day = monday + timedelta(days=offset)
            count = sum(1 for e in self.events if e.occurs_on(day, self.tz))
            marker = ">" if day == self.selected_date else " "
            lines.append(f"{marker} {day.strftime('%a %d %b')}  {count} event(s)")
        return lines

    def _render_agenda(self) -> list[str]:
        upcoming = [
            e for e in self.events if e.start and e.start.astimezone(self.tz).date() >= self.selected_date
        ]
        upcoming.sort(key=lambda e: e.start)
        if not upcoming:
            return ["No upcoming events"]
        return [
            f"{e.start.astimezone(self.tz).strftime('%a %d %b %H:%M')}  {e.display_title}"
            for e in upcoming[:20]
        ]

    def _render_schedule(self) -> list[str]:
        lines = [self.selected_date.strftime("%A, %b %d")]
        events = self.day_events()
        if not events:
            return lines + ["No events scheduled", "Press 'n' to create"]

        if len(events) > 1:
            lines.append(f"{len(events)} events")
        for i, event in enumerate(events):
            marker = ">" if i == self.selection.index else " "
            lines.append(f"{marker} {self._format_time_range(event)}  {self._format_summary(event)}")
        return lines

    def _format_time_range(self, event: CalendarEvent) -> str:
        if event.all_day or event.start is None:
            return "All day      "
        start = event.start.astimezone(self.tz).strftime("%H:%M")
        end = event.end.astimezone(self.tz).strftime("%H:%M") if event.end else "?"
        return f"{start} - {end}"

    def _format_summary(self, event: CalendarEvent) -> str:
        text = event.display_title
        if event.status == "cancelled":
            text += " (cancelled)"
        if not event.busy:
            text += " (Free)"
        if event.location:
            text += f" @ {truncate_error(event.location, 30)}"
        if event.conferencing_url:
            text += " [video]"
        if event.participant_count > 1:
            text += f" ({event.participant_count} people)"
        return text

    def _render_event_form(self, form: EventFormState) -> str:
        title = "New Event" if form.kind == EventFormKind.CREATE else "Edit Event"
        lines = [title, ""]
        for i, name in enumerate(EVENT_FORM_FIELDS):
            if form.is_hidden(i):
                continue
            label = name.replace("_", " ").capitalize() + ":"
            if name == "all_day":
                value = "[x]" if form.all_day else "[ ]"
            elif name == "busy":
                value = "[x]" if form.busy else "[ ]"
            else:
                value = form.values[name]
            marker = ">" if i == form.focus_index else " "
            line = f"{marker} {label:<14}{value}"
            if name in form.errors:
                line += f"  ! {form.errors[name]}"
            lines.append(line)
        return "\n".join(lines)

    def _render_availability(self, dialog: AvailabilityDialogState) -> str:
        lines = ["Check Availability", ""]
        for i, name in enumerate(AVAILABILITY_FIELDS):
            marker = ">" if i == dialog.focus_index else " "
            label = name.replace("_", " ").capitalize() + ":"
            lines.append(f"{marker} {label:<14}{dialog.values[name]}")
        lines.append("")
        if dialog.loading:
            lines.append("Checking availability...")
        elif dialog.error:
            lines.append(f"Error: {dialog.error}")
        elif dialog.slots:
            lines.append(f"{len(dialog.slots)} available slots:")
            offset = max(0, dialog.selection.index - VISIBLE_SLOTS + 1)
            for i, slot in enumerate(dialog.slots[offset : offset + VISIBLE_SLOTS], start=offset):
                marker = ">" if i == dialog.selection.index else " "
                start = slot.start.astimezone(self.tz)
                end = slot.end.astimezone(self.tz)
                lines.append(f"{marker} {start:%a %d %b %H:%M} - {end:%H:%M}")
        return "\n".join(lines)
