"""
Calendar, event and availability calls against MS Graph.
"""

import logging
import re
from datetime import datetime, timezone, tzinfo
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from msgraph import GraphServiceClient
from msgraph.generated.models.body_type import BodyType
from msgraph.generated.models.date_time_time_zone import DateTimeTimeZone
from msgraph.generated.models.event import Event
from msgraph.generated.models.free_busy_status import FreeBusyStatus
from msgraph.generated.models.item_body import ItemBody
from msgraph.generated.models.location import Location
from msgraph.generated.users.item.calendar.get_schedule.get_schedule_post_request_body import (
    GetSchedulePostRequestBody,
)
from msgraph.generated.users.item.calendars.item.events.events_request_builder import (
    EventsRequestBuilder,
)

from core.config import EVENTS_PAGE_SIZE
from models.events import (
    AvailabilityRequest,
    AvailabilitySlot,
    Calendar,
    CalendarEvent,
    EventRequest,
)
from services.availability import find_free_slots
from services.graph_errors import remote_call

logger = logging.getLogger(__name__)

GRAPH_DATETIME_FORMAT = "%Y-%m-%dT%H:%M:%S"
# Graph returns seven fractional digits, more than fromisoformat accepts
FRACTION = re.compile(r"\.(\d{1,6})\d*")


def parse_graph_datetime(value: DateTimeTimeZone | None) -> datetime | None:
    """Parse a Graph dateTime/timeZone pair into an aware datetime."""
    if value is None or not value.date_time:
        return None
    text = FRACTION.sub(lambda m: "." + m.group(1).ljust(6, "0"), value.date_time)
    parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
    if parsed.tzinfo is not None:
        return parsed
    try:
        zone = ZoneInfo(value.time_zone) if value.time_zone else timezone.utc
    except (ZoneInfoNotFoundError, ValueError):
        # Windows zone names ("Pacific Standard Time") are not IANA keys
        zone = timezone.utc
    return parsed.replace(tzinfo=zone)


def to_graph_datetime(value: datetime) -> DateTimeTimeZone:
    """Express an aware datetime as a UTC Graph dateTime/timeZone pair."""
    utc = value.astimezone(timezone.utc)
    return DateTimeTimeZone(date_time=utc.strftime(GRAPH_DATETIME_FORMAT), time_zone="UTC")


def parse_calendar(calendar) -> Calendar:
    """Parse MS Graph calendar into our format."""
    owner = ""
    if calendar.owner and calendar.owner.address:
        owner = calendar.owner.address

    return Calendar(
        id=calendar.id,
        name=calendar.name or "",
        description=owner,
        is_primary=bool(calendar.is_default_calendar),
        read_only=calendar.can_edit is False,
    )


def parse_event(event, calendar_id: str, calendar_read_only: bool = False) -> CalendarEvent:
    """Parse MS Graph event into our format."""
    description = ""
    if event.body and event.body.content:
        description = event.body.content.strip()

    location = ""
    if event.location and event.location.display_name:
        location = event.location.display_name

    status = "confirmed"
    if event.is_cancelled:
        status = "cancelled"
    elif event.show_as == FreeBusyStatus.Tentative:
        status = "tentative"

    conferencing_url = ""
    if event.online_meeting and event.online_meeting.join_url:
        conferencing_url = event.online_meeting.join_url

    return CalendarEvent(
        id=event.id,
        calendar_id=calendar_id,
        title=event.subject or "",
        description=description,
        location=location,
        start=parse_graph_datetime(event.start),
        end=parse_graph_datetime(event.end),
        all_day=bool(event.is_all_day),
        busy=event.show_as != FreeBusyStatus.Free,
        status=status,
        # Events organized by someone else are not editable from here
        read_only=calendar_read_only or event.is_organizer is False,
        participant_count=len(event.attendees or []),
        conferencing_url=conferencing_url,
    )


def build_graph_event(request: EventRequest) -> Event:
    """Convert an event request into a Graph Event."""
    if request.all_day:
        start = DateTimeTimeZone(
            date_time=request.start.strftime("%Y-%m-%dT00:00:00"), time_zone=request.timezone
        )
        end = DateTimeTimeZone(
            date_time=request.end.strftime("%Y-%m-%dT00:00:00"), time_zone=request.timezone
        )
    else:
        start = to_graph_datetime(request.start)
        end = to_graph_datetime(request.end)

    return Event(
        subject=request.title,
        body=ItemBody(content_type=BodyType.Text, content=request.description),
        location=Location(display_name=request.location),
        start=start,
        end=end,
        is_all_day=request.all_day,
        show_as=FreeBusyStatus.Busy if request.busy else FreeBusyStatus.Free,
    )


@remote_call
async def fetch_calendars(graph: GraphServiceClient, user_id: str) -> list[Calendar]:
    """List every calendar of the mailbox."""
    calendars_response = await graph.users.by_user_id(user_id).calendars.get()
    calendars = calendars_response.value if calendars_response and calendars_response.value else []
    return [parse_calendar(c) for c in calendars]


@remote_call
async def fetch_calendar_events(
    graph: GraphServiceClient,
    user_id: str,
    calendar_id: str,
    start: datetime,
    end: datetime,
    read_only: bool = False,
) -> list[CalendarEvent]:
    """
    Fetch events starting within [start, end).

    Ordered by start time, capped at EVENTS_PAGE_SIZE.
    """
    start_str = start.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")
    end_str = end.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")

    query_params = EventsRequestBuilder.EventsRequestBuilderGetQueryParameters(
        filter=f"start/dateTime ge '{start_str}' and start/dateTime lt '{end_str}'",
        orderby=["start/dateTime"],
        top=EVENTS_PAGE_SIZE,
    )
    config = EventsRequestBuilder.EventsRequestBuilderGetRequestConfiguration(
        query_parameters=query_params
    )

    events_response = await graph.users.by_user_id(user_id).calendars.by_calendar_id(
        calendar_id
    ).events.get(request_configuration=config)

    raw_events = events_response.value if events_response and events_response.value else []
    return [parse_event(e, calendar_id, read_only) for e in raw_events]


@remote_call
async def create_calendar_event(
    graph: GraphServiceClient, user_id: str, calendar_id: str, request: EventRequest
) -> CalendarEvent:
    created = await graph.users.by_user_id(user_id).calendars.by_calendar_id(
        calendar_id
    ).events.post(build_graph_event(request))
    return parse_event(created, calendar_id)


@remote_call
async def update_calendar_event(
    graph: GraphServiceClient,
    user_id: str,
    calendar_id: str,
    event_id: str,
    request: EventRequest,
) -> CalendarEvent:
    updated = await graph.users.by_user_id(user_id).calendars.by_calendar_id(
        calendar_id
    ).events.by_event_id(event_id).patch(build_graph_event(request))
    return parse_event(updated, calendar_id)


@remote_call
async def delete_calendar_event(
    graph: GraphServiceClient, user_id: str, calendar_id: str, event_id: str
) -> None:
    await graph.users.by_user_id(user_id).calendars.by_calendar_id(
        calendar_id
    ).events.by_event_id(event_id).delete()


@remote_call
async def fetch_availability(
    graph: GraphServiceClient, user_id: str, request: AvailabilityRequest, tz: tzinfo
) -> list[AvailabilitySlot]:
    """
    Ask Graph for the participants' free/busy views and derive common free slots.
    """
    body = GetSchedulePostRequestBody(
        schedules=request.participants,
        start_time=to_graph_datetime(request.start),
        end_time=to_graph_datetime(request.end),
        availability_view_interval=request.interval_minutes,
    )
    response = await graph.users.by_user_id(user_id).calendar.get_schedule.post(body)
    schedules = response.value if response and response.value else []

    views = []
    for schedule in schedules:
        if schedule.error:
            logger.info(
                "no free/busy data for %s: %s",
                schedule.schedule_id,
                getattr(schedule.error, "message", ""),
            )
        views.append(schedule.availability_view or "")

    return find_free_slots(
        views,
        request.start.astimezone(timezone.utc),
        request.interval_minutes,
        request.duration_minutes,
        tz,
    )
