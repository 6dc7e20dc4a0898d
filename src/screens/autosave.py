"""Draft autosave timer."""

import logging
from typing import Callable

from core.config import AUTOSAVE_ENABLED, AUTOSAVE_INTERVAL_SECONDS
from models.messages import AutosaveTick
from screens.commands import Command, CommandScheduler

logger = logging.getLogger(__name__)


class AutosaveDebouncer:
    """
    Self-rearming fixed-interval timer.

    Each tick saves only when the form is dirty and no save is in flight, then
    arms the next tick whatever happened.
    """

    def __init__(
        self,
        scheduler: CommandScheduler,
        interval: float = AUTOSAVE_INTERVAL_SECONDS,
        enabled: bool = AUTOSAVE_ENABLED,
    ):
        self.scheduler = scheduler
        self.interval = interval
        self.enabled = enabled
        self.ticks = 0

    def arm(self) -> list[Command]:
        if not self.enabled:
            return []
        return [self.scheduler.after(self.interval, AutosaveTick, name="autosave_tick")]

    def on_tick(self, is_dirty: bool, saving: bool, save: Callable[[], Command]) -> list[Command]:
        self.ticks += 1
        commands = []
        if is_dirty and not saving:
            logger.debug("autosave tick %d: saving", self.ticks)
            commands.append(save())
        commands.extend(self.arm())
        return commands
