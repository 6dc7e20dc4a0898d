"""
Free slot calculation from Graph free/busy availability views.
"""

from datetime import datetime, timedelta, tzinfo

from core.config import WORKDAY_END_HOUR, WORKDAY_START_HOUR
from models.events import AvailabilitySlot

FREE = "0"


def common_free_intervals(views: list[str]) -> list[bool]:
    """
    Intersect availability views.

    Each view holds one digit per interval (``0`` free, anything else busy or
    unknown). Interval ``i`` is free only if every view has ``0`` at ``i``.
    """
    if not views:
        return []
    length = min(len(v) for v in views)
    return [all(v[i] == FREE for v in views) for i in range(length)]


def within_workday(start: datetime, end: datetime, tz: tzinfo) -> bool:
    local_start = start.astimezone(tz)
    local_end = end.astimezone(tz)
    if local_start.date() != local_end.date():
        return False
    start_minute = local_start.hour * 60 + local_start.minute
    end_minute = local_end.hour * 60 + local_end.minute
    return WORKDAY_START_HOUR * 60 <= start_minute and end_minute <= WORKDAY_END_HOUR * 60


def find_free_slots(
    views: list[str],
    start: datetime,
    interval_minutes: int,
    duration_minutes: int,
    tz: tzinfo,
) -> list[AvailabilitySlot]:
    """
    Slots of ``duration_minutes`` where every participant is free.

    Candidate starts step by ``interval_minutes``; a slot must fit inside the
    working day in ``tz``.
    """
    free = common_free_intervals(views)
    interval = timedelta(minutes=interval_minutes)
    duration = timedelta(minutes=duration_minutes)
    # Intervals touched by one slot, rounded up
    needed = -(-duration_minutes // interval_minutes)

    slots = []
    for i in range(len(free) - needed + 1):
        if not all(free[i : i + needed]):
            continue
        slot_start = start + i * interval
        slot_end = slot_start + duration
        if within_workday(slot_start, slot_end, tz):
            slots.append(AvailabilitySlot(start=slot_start, end=slot_end))
    return slots
