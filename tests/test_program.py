"""
Tests for the asyncio host loop.
"""

import asyncio
from datetime import date

from models.messages import KeyPressed
from screens.calendar import CalendarScreen
from screens.compose import ComposeScreen
from screens.program import Program


def test_calendar_loads_through_the_loop(context, client, calendars, day_events, status):
    """Should run init, feed results back and settle once nothing is pending."""
    client.calendars = calendars
    client.events = day_events
    screen = CalendarScreen(context, today=date(2025, 11, 3))
    program = Program(screen)

    asyncio.run(program.run_until_idle())

    assert screen.selected_calendar.id == "cal1"
    assert len(screen.events) == 4
    assert status.text == "Loaded 4 events"
    assert [name for name, _ in client.calls] == ["list_calendars", "list_events"]


def test_run_stops_on_navigate_back(context):
    program = Program(CalendarScreen(context, today=date(2025, 11, 3)))

    async def main():
        program.send(KeyPressed("esc"))
        return await asyncio.wait_for(program.run(), timeout=5)

    exit_message = asyncio.run(main())
    assert type(exit_message).__name__ == "NavigateBack"
    assert program.done is True


def test_autosave_timer_does_not_keep_program_busy(context, client):
    screen = ComposeScreen(context)
    program = Program(screen)

    async def main():
        await asyncio.wait_for(program.run_until_idle(), timeout=5)
        pending = {t.get_name() for t in program.tasks}
        program.stop()
        return pending

    assert asyncio.run(main()) == {"autosave_tick"}
    assert client.called("list_contacts") == [()]


def test_send_then_back_after_delay(context, client, monkeypatch):
    monkeypatch.setattr("screens.compose.BACK_AFTER_SEND_SECONDS", 0.01)
    screen = ComposeScreen(context)
    screen.form.to = "a@x.com"
    program = Program(screen)

    async def main():
        program.send(KeyPressed("ctrl+a"))
        return await asyncio.wait_for(program.run(), timeout=5)

    exit_message = asyncio.run(main())
    assert type(exit_message).__name__ == "NavigateBack"
    assert len(client.called("send_message")) == 1
