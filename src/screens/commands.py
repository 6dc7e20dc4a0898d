"""
Deferred commands.

A ``Command`` describes one unit of work: wait for the rate limiter, make one
remote call under a timeout, and turn the outcome into exactly one message.
Screens only build commands; the host program executes them outside ``update``
and feeds the resulting message back in. A command never touches screen state.
"""

import asyncio
import logging
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Awaitable, Callable, TypeVar

from core.config import (
    AVAILABILITY_TIMEOUT_SECONDS,
    DRAFT_TIMEOUT_SECONDS,
    EVENT_MUTATION_TIMEOUT_SECONDS,
    FETCH_TIMEOUT_SECONDS,
    SEND_TIMEOUT_SECONDS,
)
from core.logging import CommandLog, log_command
from core.rate_limiter import RateLimiter
from models.errors import ErrorCodes, RemoteError
from models.events import AvailabilityRequest, EventRequest
from models.mail import DraftRequest, SendMessageRequest
from models.messages import (
    AvailabilityLoaded,
    CalendarsLoaded,
    CommandFailed,
    CommandNames,
    ContactsLoaded,
    DraftDeleted,
    DraftSaved,
    EventCreated,
    EventDeleted,
    EventsLoaded,
    EventUpdated,
    Message,
    MessageSent,
)
from services.client import RemoteClient
from services.graph_errors import to_remote_error

logger = logging.getLogger(__name__)

T = TypeVar("T")

TIMEOUTS = {
    CommandNames.SEND_MESSAGE: SEND_TIMEOUT_SECONDS,
    CommandNames.CHECK_AVAILABILITY: AVAILABILITY_TIMEOUT_SECONDS,
    CommandNames.SAVE_DRAFT: DRAFT_TIMEOUT_SECONDS,
    CommandNames.DELETE_DRAFT: DRAFT_TIMEOUT_SECONDS,
    CommandNames.CREATE_EVENT: EVENT_MUTATION_TIMEOUT_SECONDS,
    CommandNames.UPDATE_EVENT: EVENT_MUTATION_TIMEOUT_SECONDS,
    CommandNames.DELETE_EVENT: EVENT_MUTATION_TIMEOUT_SECONDS,
}


@dataclass(frozen=True)
class Command:
    """Deferred computation that resolves to exactly one message."""

    name: str
    run: Callable[[], Awaitable[Message]]

    async def execute(self) -> Message:
        return await self.run()


class CommandScheduler:
    """Builds commands for every remote operation the screens use."""

    def __init__(self, client: RemoteClient, rate_limiter: RateLimiter | None = None):
        self.client = client
        self.rate_limiter = rate_limiter or RateLimiter()

    def timeout_for(self, name: str) -> float:
        return TIMEOUTS.get(name, FETCH_TIMEOUT_SECONDS)

    def remote(
        self,
        name: str,
        call: Callable[[], Awaitable[T]],
        on_success: Callable[[T], Message],
    ) -> Command:
        """
        Wrap a remote call.

        The rate limiter wait is outside the timeout; the timeout covers only the
        call. Every failure becomes ``CommandFailed(name, error)``. No retries.
        """
        timeout = self.timeout_for(name)

        async def run() -> Message:
            log = CommandLog(command=name)
            start_time = time.monotonic()
            try:
                await self.rate_limiter.wait()
                result = await asyncio.wait_for(call(), timeout)
                message = on_success(result)
                log.outcome = "ok"
            except asyncio.CancelledError:
                raise
            except asyncio.TimeoutError:
                error = RemoteError(ErrorCodes.TIMEOUT, f"Timed out after {timeout:g}s")
                message = CommandFailed(name, error)
                log.outcome = "error"
                log.error_code = error.code
                log.error_message = error.message
            except Exception as e:
                error = to_remote_error(e)
                message = CommandFailed(name, error)
                log.outcome = "error"
                log.error_code = error.code
                log.error_message = error.message
            finally:
                log.processing_time_ms = int((time.monotonic() - start_time) * 1000)
                if log.outcome != "pending":
                    log_command(log)
            return message

        return Command(name, run)

    def after(self, delay: float, make_message: Callable[[datetime], Message], name: str = "timer") -> Command:
        """Deliver a message once ``delay`` seconds have passed. Not rate limited."""

        async def run() -> Message:
            await asyncio.sleep(delay)
            return make_message(datetime.now(timezone.utc))

        return Command(name, run)

    def emit(self, message: Message) -> Command:
        """Deliver a message on the next loop turn."""

        async def run() -> Message:
            return message

        return Command(type(message).__name__, run)

    # =========================================================================
    # CALENDAR
    # =========================================================================

    def fetch_calendars(self) -> Command:
        return self.remote(
            CommandNames.FETCH_CALENDARS,
            self.client.list_calendars,
            lambda calendars: CalendarsLoaded(tuple(calendars)),
        )

    def fetch_events(self, calendar_id: str, start: datetime, end: datetime) -> Command:
        return self.remote(
            CommandNames.FETCH_EVENTS,
            lambda: self.client.list_events(calendar_id, start, end),
            lambda events: EventsLoaded(calendar_id, tuple(events)),
        )

    def create_event(self, calendar_id: str, request: EventRequest) -> Command:
        return self.remote(
            CommandNames.CREATE_EVENT,
            lambda: self.client.create_event(calendar_id, request),
            EventCreated,
        )

    def update_event(self, calendar_id: str, event_id: str, request: EventRequest) -> Command:
        return self.remote(
            CommandNames.UPDATE_EVENT,
            lambda: self.client.update_event(calendar_id, event_id, request),
            EventUpdated,
        )

    def delete_event(self, calendar_id: str, event_id: str) -> Command:
        return self.remote(
            CommandNames.DELETE_EVENT,
            lambda: self.client.delete_event(calendar_id, event_id),
            lambda _: EventDeleted(event_id),
        )

    def check_availability(self, request: AvailabilityRequest) -> Command:
        return self.remote(
            CommandNames.CHECK_AVAILABILITY,
            lambda: self.client.get_availability(request),
            lambda slots: AvailabilityLoaded(tuple(slots)),
        )

    # =========================================================================
    # MAIL
    # =========================================================================

    def send_message(self, request: SendMessageRequest) -> Command:
        return self.remote(
            CommandNames.SEND_MESSAGE,
            lambda: self.client.send_message(request),
            MessageSent,
        )

    def save_draft(self, draft_id: str, request: DraftRequest, content_hash: str) -> Command:
        """Create the draft when ``draft_id`` is empty, update it otherwise."""

        async def call():
            if draft_id:
                return await self.client.update_draft(draft_id, request)
            return await self.client.create_draft(request)

        return self.remote(
            CommandNames.SAVE_DRAFT,
            call,
            lambda draft: DraftSaved(draft.id if draft else "", content_hash),
        )

    def delete_draft(self, draft_id: str) -> Command:
        return self.remote(
            CommandNames.DELETE_DRAFT,
            lambda: self.client.delete_draft(draft_id),
            lambda _: DraftDeleted(draft_id),
        )

    def fetch_contacts(self) -> Command:
        return self.remote(
            CommandNames.FETCH_CONTACTS,
            self.client.list_contacts,
            lambda contacts: ContactsLoaded(tuple(contacts)),
        )
