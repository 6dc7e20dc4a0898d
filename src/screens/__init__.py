"""Screen controllers and the host loop that drives them."""

from .calendar import CalendarScreen
from .compose import ComposeData, ComposeMode, ComposeScreen
from .context import ScreenContext, Severity, StatusBar
from .program import Program

__all__ = [
    "CalendarScreen",
    "ComposeData",
    "ComposeMode",
    "ComposeScreen",
    "ScreenContext",
    "Severity",
    "StatusBar",
    "Program",
]
