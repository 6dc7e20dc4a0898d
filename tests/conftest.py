"""
Pytest configuration and shared fixtures.
"""

import asyncio
import sys
from datetime import datetime, timezone
from pathlib import Path

import pytest

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from core.rate_limiter import RateLimiter
from models.events import AvailabilitySlot, Calendar, CalendarEvent
from models.mail import Contact, Draft, EmailMessage, EmailParticipant
from screens.commands import CommandScheduler
from screens.context import ScreenContext, Severity

FIXED_NOW = datetime(2025, 11, 3, 10, 0, tzinfo=timezone.utc)  # a Monday
USER_EMAIL = "me@example.com"


class FakeRemoteClient:
    """
    In-memory RemoteClient.

    Results are plain attributes; set ``failures[method] = exc`` to make a method
    raise. Every call is recorded in ``calls`` as ``(method, args)``.
    """

    def __init__(self):
        self.calendars: list[Calendar] = []
        self.events: list[CalendarEvent] = []
        self.slots: list[AvailabilitySlot] = []
        self.contacts: list[Contact] = []
        self.draft_ids = iter(f"draft-{i}" for i in range(1, 100))
        self.failures: dict[str, Exception] = {}
        self.delay = 0.0
        self.calls: list[tuple[str, tuple]] = []

    async def _call(self, method: str, *args):
        self.calls.append((method, args))
        if self.delay:
            await asyncio.sleep(self.delay)
        if method in self.failures:
            raise self.failures[method]

    def called(self, method: str) -> list[tuple]:
        return [args for name, args in self.calls if name == method]

    async def list_calendars(self):
        await self._call("list_calendars")
        return list(self.calendars)

    async def list_events(self, calendar_id, start, end):
        await self._call("list_events", calendar_id, start, end)
        return [e for e in self.events if e.calendar_id == calendar_id]

    async def create_event(self, calendar_id, request):
        await self._call("create_event", calendar_id, request)
        return CalendarEvent(
            id="new-event",
            calendar_id=calendar_id,
            title=request.title,
            start=request.start,
            end=request.end,
            all_day=request.all_day,
        )

    async def update_event(self, calendar_id, event_id, request):
        await self._call("update_event", calendar_id, event_id, request)
        return CalendarEvent(
            id=event_id,
            calendar_id=calendar_id,
            title=request.title,
            start=request.start,
            end=request.end,
        )

    async def delete_event(self, calendar_id, event_id):
        await self._call("delete_event", calendar_id, event_id)

    async def get_availability(self, request):
        await self._call("get_availability", request)
        return list(self.slots)

    async def send_message(self, request):
        await self._call("send_message", request)
        return None

    async def create_draft(self, request):
        await self._call("create_draft", request)
        return Draft(id=next(self.draft_ids), subject=request.subject, body=request.body)

    async def update_draft(self, draft_id, request):
        await self._call("update_draft", draft_id, request)
        return Draft(id=draft_id, subject=request.subject, body=request.body)

    async def delete_draft(self, draft_id):
        await self._call("delete_draft", draft_id)

    async def list_contacts(self):
        await self._call("list_contacts")
        return list(self.contacts)


class RecordingStatus:
    """Status sink that keeps every update."""

    def __init__(self):
        self.history: list[tuple[str, Severity]] = []

    def set_status(self, text: str, severity: Severity = Severity.INFO) -> None:
        self.history.append((text, severity))

    @property
    def text(self) -> str:
        return self.history[-1][0] if self.history else ""

    @property
    def severity(self) -> Severity:
        return self.history[-1][1] if self.history else Severity.INFO


def run_command(command):
    """Execute one deferred command and return its message."""
    return asyncio.run(command.execute())


@pytest.fixture
def utc():
    return timezone.utc


@pytest.fixture
def client():
    return FakeRemoteClient()


@pytest.fixture
def status():
    return RecordingStatus()


@pytest.fixture
def scheduler(client):
    return CommandScheduler(client, RateLimiter(requests_per_minute=60000, burst=1000))


@pytest.fixture
def context(scheduler, status, utc):
    return ScreenContext(
        commands=scheduler,
        status=status,
        user_email=USER_EMAIL,
        timezone=utc,
        clock=lambda: FIXED_NOW,
    )


@pytest.fixture
def calendars():
    return [
        Calendar(id="cal2", name="Team", is_primary=False),
        Calendar(id="cal1", name="Work", is_primary=True),
        Calendar(id="cal3", name="Holidays", is_primary=False, read_only=True),
    ]


@pytest.fixture
def day_events():
    """Three events on 2025-11-03 in cal1, plus one the next day."""
    return [
        CalendarEvent(
            id="ev-standup",
            calendar_id="cal1",
            title="Standup",
            start=datetime(2025, 11, 3, 9, 0, tzinfo=timezone.utc),
            end=datetime(2025, 11, 3, 9, 15, tzinfo=timezone.utc),
        ),
        CalendarEvent(
            id="ev-review",
            calendar_id="cal1",
            title="Design review",
            start=datetime(2025, 11, 3, 14, 0, tzinfo=timezone.utc),
            end=datetime(2025, 11, 3, 15, 0, tzinfo=timezone.utc),
            read_only=True,
        ),
        CalendarEvent(
            id="ev-offsite",
            calendar_id="cal1",
            title="Offsite",
            start=datetime(2025, 11, 3, 0, 0, tzinfo=timezone.utc),
            end=datetime(2025, 11, 4, 0, 0, tzinfo=timezone.utc),
            all_day=True,
        ),
        CalendarEvent(
            id="ev-tomorrow",
            calendar_id="cal1",
            title="Planning",
            start=datetime(2025, 11, 4, 11, 0, tzinfo=timezone.utc),
            end=datetime(2025, 11, 4, 12, 0, tzinfo=timezone.utc),
        ),
    ]


@pytest.fixture
def source_message():
    """Message being replied to or forwarded."""
    return EmailMessage(
        id="msg-1",
        subject="Quarterly numbers",
        from_=[EmailParticipant(email="jane@example.com", name="Jane Roe")],
        to=[
            EmailParticipant(email=USER_EMAIL, name="Me"),
            EmailParticipant(email="bob@example.com"),
        ],
        cc=[EmailParticipant(email="carol@example.com", name="Carol")],
        date=datetime(2025, 10, 31, 15, 4, tzinfo=timezone.utc),
        body="Hi\n--\nJohn Doe\nAcme Inc",
    )
