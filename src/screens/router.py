"""
Per-screen mode router.

Exactly one mode is active. Each incoming message goes to the handler registered
for (active mode, message type); failing that, to a handler shared by all modes;
failing that, it is ignored.
"""

import logging
from collections import defaultdict
from typing import Callable, Generic, Hashable, TypeVar

from screens.commands import Command

logger = logging.getLogger(__name__)

ModeT = TypeVar("ModeT", bound=Hashable)
Handler = Callable[[object], "list[Command] | None"]


class ModeRouter(Generic[ModeT]):
    def __init__(self, initial: ModeT, name: str = "screen"):
        self.name = name
        self._mode = initial
        self._routes: dict[ModeT, dict[type, Handler]] = defaultdict(dict)
        self._shared: dict[type, Handler] = {}

    @property
    def mode(self) -> ModeT:
        return self._mode

    def on(self, mode: ModeT, message_type: type, handler: Handler) -> None:
        """Register a handler for one mode."""
        self._routes[mode][message_type] = handler

    def on_any(self, message_type: type, handler: Handler) -> None:
        """Register a handler used in every mode without a specific one."""
        self._shared[message_type] = handler

    def transition(self, mode: ModeT) -> None:
        if mode != self._mode:
            logger.debug("%s: %s -> %s", self.name, self._mode, mode)
        self._mode = mode

    def dispatch(self, message) -> list[Command]:
        message_type = type(message)
        handler = self._routes[self._mode].get(message_type) or self._shared.get(message_type)
        if handler is None:
            logger.debug("%s: %s ignored in %s", self.name, message_type.__name__, self._mode)
            return []
        return handler(message) or []
