"""Collaborators shared by every screen, injected at construction."""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone, tzinfo
from enum import IntEnum
from typing import Callable, Protocol
from zoneinfo import ZoneInfo

from core.config import DISPLAY_TIMEZONE, MAILBOX_EMAIL, MAILBOX_USER_ID
from screens.commands import CommandScheduler
from services.client import GraphRemoteClient, RemoteClient

logger = logging.getLogger(__name__)


class Severity(IntEnum):
    INFO = 0
    WARNING = 1
    ERROR = 2


class StatusSink(Protocol):
    def set_status(self, text: str, severity: Severity = Severity.INFO) -> None: ...


class StatusBar:
    """Status line shown under every screen. Fire-and-forget."""

    def __init__(self):
        self.text = ""
        self.severity = Severity.INFO

    def set_status(self, text: str, severity: Severity = Severity.INFO) -> None:
        self.text = text
        self.severity = severity
        if text:
            logger.log(
                logging.WARNING if severity >= Severity.WARNING else logging.INFO,
                "status: %s",
                text,
            )

    def render(self) -> str:
        if not self.text:
            return ""
        marker = {Severity.INFO: "", Severity.WARNING: "! ", Severity.ERROR: "✗ "}[self.severity]
        return marker + self.text


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class ScreenContext:
    """
    Everything a screen needs from the outside world.

    Attributes:
        commands: builds deferred remote commands (owns the client and rate limiter)
        status: status line sink
        user_email: address of the mailbox, excluded from reply-all
        timezone: display timezone
        clock: current time, aware
    """

    commands: CommandScheduler
    status: StatusSink
    user_email: str
    timezone: tzinfo
    clock: Callable[[], datetime] = field(default=utc_now)

    def now(self) -> datetime:
        return self.clock().astimezone(self.timezone)


def default_context(client: RemoteClient | None = None) -> ScreenContext:
    """Context for the configured mailbox, backed by MS Graph unless a client is given."""
    tz = ZoneInfo(DISPLAY_TIMEZONE)
    if client is None:
        client = GraphRemoteClient(MAILBOX_USER_ID, tz)
    return ScreenContext(
        commands=CommandScheduler(client),
        status=StatusBar(),
        user_email=MAILBOX_EMAIL,
        timezone=tz,
    )
