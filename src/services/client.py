"""
Remote client used by the screens.

``RemoteClient`` is the narrow contract the screens depend on; ``GraphRemoteClient``
implements it for one mailbox over MS Graph. Every method may raise ``RemoteError``.
"""

from datetime import datetime, tzinfo
from typing import Protocol

from msgraph import GraphServiceClient

from core.graph_client import get_graph_client
from models.events import (
    AvailabilityRequest,
    AvailabilitySlot,
    Calendar,
    CalendarEvent,
    EventRequest,
)
from models.mail import Contact, Draft, DraftRequest, EmailMessage, SendMessageRequest
from services import calendar, email


class RemoteClient(Protocol):
    async def list_calendars(self) -> list[Calendar]: ...

    async def list_events(
        self, calendar_id: str, start: datetime, end: datetime
    ) -> list[CalendarEvent]: ...

    async def create_event(self, calendar_id: str, request: EventRequest) -> CalendarEvent: ...

    async def update_event(
        self, calendar_id: str, event_id: str, request: EventRequest
    ) -> CalendarEvent: ...

    async def delete_event(self, calendar_id: str, event_id: str) -> None: ...

    async def get_availability(self, request: AvailabilityRequest) -> list[AvailabilitySlot]: ...

    async def send_message(self, request: SendMessageRequest) -> EmailMessage | None: ...

    async def create_draft(self, request: DraftRequest) -> Draft: ...

    async def update_draft(self, draft_id: str, request: DraftRequest) -> Draft: ...

    async def delete_draft(self, draft_id: str) -> None: ...

    async def list_contacts(self) -> list[Contact]: ...


class GraphRemoteClient:
    """RemoteClient bound to one mailbox."""

    def __init__(self, user_id: str, tz: tzinfo, graph: GraphServiceClient | None = None):
        self.user_id = user_id
        self.tz = tz
        self.graph = graph or get_graph_client()
        self._read_only_calendars: set[str] = set()

    async def list_calendars(self) -> list[Calendar]:
        calendars = await calendar.fetch_calendars(self.graph, self.user_id)
        self._read_only_calendars = {c.id for c in calendars if c.read_only}
        return calendars

    async def list_events(
        self, calendar_id: str, start: datetime, end: datetime
    ) -> list[CalendarEvent]:
        return await calendar.fetch_calendar_events(
            self.graph,
            self.user_id,
            calendar_id,
            start,
            end,
            read_only=calendar_id in self._read_only_calendars,
        )

    async def create_event(self, calendar_id: str, request: EventRequest) -> CalendarEvent:
        return await calendar.create_calendar_event(self.graph, self.user_id, calendar_id, request)

    async def update_event(
        self, calendar_id: str, event_id: str, request: EventRequest
    ) -> CalendarEvent:
        return await calendar.update_calendar_event(
            self.graph, self.user_id, calendar_id, event_id, request
        )

    async def delete_event(self, calendar_id: str, event_id: str) -> None:
        await calendar.delete_calendar_event(self.graph, self.user_id, calendar_id, event_id)

    async def get_availability(self, request: AvailabilityRequest) -> list[AvailabilitySlot]:
        return await calendar.fetch_availability(self.graph, self.user_id, request, self.tz)

    async def send_message(self, request: SendMessageRequest) -> EmailMessage | None:
        # Graph's sendMail and reply actions return no content
        await email.send_message(self.graph, self.user_id, request)
        return None

    async def create_draft(self, request: DraftRequest) -> Draft:
        return await email.create_draft(self.graph, self.user_id, request)

    async def update_draft(self, draft_id: str, request: DraftRequest) -> Draft:
        return await email.update_draft(self.graph, self.user_id, draft_id, request)

    async def delete_draft(self, draft_id: str) -> None:
        await email.delete_draft(self.graph, self.user_id, draft_id)

    async def list_contacts(self) -> list[Contact]:
        return await email.fetch_contacts(self.graph, self.user_id)
