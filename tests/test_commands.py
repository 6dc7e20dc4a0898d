"""
Tests for CommandScheduler: every command resolves to exactly one message.
"""

import asyncio
import logging
from datetime import datetime, timezone

import httpx

from conftest import run_command
from models.errors import ErrorCodes, RemoteError
from models.events import AvailabilityRequest, CalendarEvent, EventRequest
from models.mail import DraftRequest, EmailParticipant, SendMessageRequest
from models.messages import (
    AutosaveTick,
    AvailabilityLoaded,
    CalendarsLoaded,
    CommandFailed,
    CommandNames,
    DraftSaved,
    EventCreated,
    EventDeleted,
    EventsLoaded,
    MessageSent,
    NavigateBack,
)
from services.graph_errors import code_for_status, to_remote_error

START = datetime(2025, 11, 1, tzinfo=timezone.utc)
END = datetime(2025, 12, 1, tzinfo=timezone.utc)


# =============================================================================
# SUCCESS MAPPING
# =============================================================================


class TestSuccessMessages:
    def test_fetch_calendars(self, scheduler, client, calendars):
        client.calendars = calendars
        message = run_command(scheduler.fetch_calendars())
        assert message == CalendarsLoaded(tuple(calendars))

    def test_fetch_events_is_tagged_with_calendar(self, scheduler, client, day_events):
        client.events = day_events
        message = run_command(scheduler.fetch_events("cal1", START, END))

        assert isinstance(message, EventsLoaded)
        assert message.calendar_id == "cal1"
        assert len(message.events) == 4
        assert client.called("list_events") == [("cal1", START, END)]

    def test_create_and_delete_event(self, scheduler, client):
        request = EventRequest(title="Lunch", start=START, end=END)
        created = run_command(scheduler.create_event("cal1", request))
        deleted = run_command(scheduler.delete_event("cal1", "ev-9"))

        assert isinstance(created, EventCreated)
        assert created.event.title == "Lunch"
        assert deleted == EventDeleted("ev-9")

    def test_check_availability(self, scheduler, client):
        request = AvailabilityRequest(participants=["a@x.com"], start=START, end=END, duration_minutes=30)
        assert run_command(scheduler.check_availability(request)) == AvailabilityLoaded(())

    def test_send_message(self, scheduler, client):
        request = SendMessageRequest(to=[EmailParticipant(email="a@x.com")], subject="Hi")
        assert run_command(scheduler.send_message(request)) == MessageSent(None)


class TestSaveDraft:
    def test_creates_without_id(self, scheduler, client):
        message = run_command(scheduler.save_draft("", DraftRequest(subject="s"), "hash-1"))

        assert message == DraftSaved("draft-1", "hash-1")
        assert len(client.called("create_draft")) == 1
        assert client.called("update_draft") == []

    def test_updates_with_id(self, scheduler, client):
        message = run_command(scheduler.save_draft("draft-7", DraftRequest(subject="s"), "hash-2"))

        assert message == DraftSaved("draft-7", "hash-2")
        assert client.called("update_draft")[0][0] == "draft-7"


# =============================================================================
# FAILURE MAPPING
# =============================================================================


class TestFailures:
    def test_remote_error_passes_through(self, scheduler, client):
        client.failures["list_calendars"] = RemoteError(ErrorCodes.AUTH, "token expired", 401)
        message = run_command(scheduler.fetch_calendars())

        assert isinstance(message, CommandFailed)
        assert message.command == CommandNames.FETCH_CALENDARS
        assert message.error.code == ErrorCodes.AUTH

    def test_unexpected_exception_becomes_internal(self, scheduler, client):
        client.failures["delete_draft"] = KeyError("boom")
        message = run_command(scheduler.delete_draft("d1"))

        assert message.command == CommandNames.DELETE_DRAFT
        assert message.error.code == ErrorCodes.INTERNAL

    def test_timeout(self, scheduler, client, monkeypatch):
        """Should turn an expired timeout into a TIMEOUT failure."""
        client.delay = 1.0
        monkeypatch.setattr(scheduler, "timeout_for", lambda name: 0.01)
        message = run_command(scheduler.fetch_contacts())

        assert message.command == CommandNames.FETCH_CONTACTS
        assert message.error.code == ErrorCodes.TIMEOUT

    def test_failures_are_logged(self, scheduler, client, caplog):
        client.failures["list_calendars"] = RemoteError(ErrorCodes.SERVER, "unavailable", 503)
        with caplog.at_level(logging.WARNING, logger="commands"):
            run_command(scheduler.fetch_calendars())
        assert "command=fetch_calendars outcome=error code=SERVER" in caplog.text

    def test_no_retry(self, scheduler, client):
        client.failures["send_message"] = RemoteError(ErrorCodes.NETWORK, "down")
        run_command(scheduler.send_message(SendMessageRequest(to=[EmailParticipant(email="a@x.com")])))
        assert len(client.called("send_message")) == 1


class TestTimeouts:
    def test_per_command_timeouts(self, scheduler):
        assert scheduler.timeout_for(CommandNames.SEND_MESSAGE) == 30
        assert scheduler.timeout_for(CommandNames.CHECK_AVAILABILITY) == 30
        assert scheduler.timeout_for(CommandNames.SAVE_DRAFT) == 10
        assert scheduler.timeout_for(CommandNames.FETCH_EVENTS) == 15


class TestTimersAndEmit:
    def test_after_delivers_message(self, scheduler):
        message = run_command(scheduler.after(0, AutosaveTick))
        assert isinstance(message, AutosaveTick)
        assert message.at.tzinfo is not None

    def test_emit(self, scheduler):
        command = scheduler.emit(NavigateBack())
        assert command.name == "NavigateBack"
        assert run_command(command) == NavigateBack()


class TestErrorClassification:
    def test_status_codes(self):
        assert code_for_status(401) == ErrorCodes.AUTH
        assert code_for_status(403) == ErrorCodes.AUTH
        assert code_for_status(422) == ErrorCodes.VALIDATION
        assert code_for_status(404) == ErrorCodes.NOT_FOUND
        assert code_for_status(503) == ErrorCodes.SERVER
        assert code_for_status(None) == ErrorCodes.INTERNAL

    def test_transport_errors(self):
        request = httpx.Request("GET", "https://graph.microsoft.com")
        assert to_remote_error(httpx.ConnectError("refused", request=request)).code == ErrorCodes.NETWORK
        assert to_remote_error(httpx.ReadTimeout("slow", request=request)).code == ErrorCodes.TIMEOUT
        assert to_remote_error(asyncio.TimeoutError()).code == ErrorCodes.TIMEOUT
