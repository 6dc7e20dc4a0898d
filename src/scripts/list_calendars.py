#!/usr/bin/env python3
"""
List the mailbox's calendars and the events of one day.

Usage:
    uv run python src/scripts/list_calendars.py [--date YYYY-MM-DD]
"""

import argparse
import asyncio
import sys
from datetime import date, datetime, timedelta, tzinfo
from pathlib import Path

# Add src to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from core.config import LOG_FILE, MAILBOX_USER_ID
from core.logging import configure_logging
from models.errors import RemoteError
from models.events import CalendarEvent
from screens.context import default_context


def format_start(event: CalendarEvent, tz: tzinfo) -> str:
    """Local start time, or "all day" for all-day events and events without a start."""
    if event.all_day or event.start is None:
        return "all day"
    return event.start.astimezone(tz).strftime("%H:%M")


async def main(as_of: str | None = None):
    """List calendars and the events of one day."""
    configure_logging(LOG_FILE)
    try:
        context = default_context()
    except RemoteError as e:
        print(f"Error: {e}")
        return
    client = context.commands.client
    tz = context.timezone

    print(f"Fetching calendars for {MAILBOX_USER_ID}...\n")
    calendars = await client.list_calendars()

    print(f"Found {len(calendars)} calendars\n")
    print("=" * 80)

    day = date.fromisoformat(as_of) if as_of else datetime.now(tz).date()
    day_start = datetime.combine(day, datetime.min.time(), tz)
    for cal in calendars:
        flags = []
        if cal.is_primary:
            flags.append("primary")
        if cal.read_only:
            flags.append("read-only")
        print(f"\nCalendar: {cal.name}" + (f" ({', '.join(flags)})" if flags else ""))
        print(f"  ID: {cal.id}")

        try:
            events = await client.list_events(cal.id, day_start, day_start + timedelta(days=1))
        except RemoteError as e:
            print(f"  Error fetching events: {e}")
            continue

        if events:
            print(f"  {day.isoformat()} ({len(events)}):")
            for event in events:
                when = format_start(event, tz)
                print(f"    - {when}  {event.display_title}")
        else:
            print(f"  {day.isoformat()}: None")

        print("-" * 80)

    print("\nDone!")


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="List calendars and the events of one day")
    parser.add_argument(
        "--date",
        help="Day to list (YYYY-MM-DD). Defaults to today.",
    )
    args = parser.parse_args()

    asyncio.run(main(args.date))
