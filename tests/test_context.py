"""
Tests for the shared screen context and status bar.
"""

import logging
from datetime import datetime, timezone
from zoneinfo import ZoneInfo

from screens.context import ScreenContext, Severity, StatusBar, default_context


class TestStatusBar:
    def test_render(self):
        bar = StatusBar()
        assert bar.render() == ""

        bar.set_status("Loaded 3 events")
        assert bar.render() == "Loaded 3 events"

        bar.set_status("Cannot delete read-only event", Severity.WARNING)
        assert bar.render() == "! Cannot delete read-only event"

        bar.set_status("Send failed: down", Severity.ERROR)
        assert bar.render() == "✗ Send failed: down"
        assert bar.severity == Severity.ERROR

    def test_warnings_are_logged(self, caplog):
        with caplog.at_level(logging.INFO, logger="screens.context"):
            StatusBar().set_status("No calendar selected", Severity.WARNING)
        assert caplog.records[-1].levelno == logging.WARNING
        assert "No calendar selected" in caplog.text


def test_now_is_in_display_timezone(scheduler, status):
    context = ScreenContext(
        commands=scheduler,
        status=status,
        user_email="me@example.com",
        timezone=ZoneInfo("Asia/Tokyo"),
        clock=lambda: datetime(2025, 11, 3, 20, 0, tzinfo=timezone.utc),
    )
    assert context.now().date().isoformat() == "2025-11-04"


def test_default_context_with_injected_client(client):
    context = default_context(client)
    assert context.commands.client is client
    assert isinstance(context.status, StatusBar)
    assert context.now().tzinfo is not None
