"""
Host loop for one screen.

Messages are applied one at a time through ``screen.update``; the commands it
returns run as independent asyncio tasks and their results are queued as new
messages. Screen state is only ever touched from the loop itself.
"""

import asyncio
import logging
from typing import Iterable, Protocol

from models.messages import Message, NavigateBack, Quit
from screens.commands import Command

logger = logging.getLogger(__name__)

# Commands that re-arm forever and never make the program busy
BACKGROUND_COMMANDS = frozenset({"autosave_tick"})


class Screen(Protocol):
    def init(self) -> list[Command]: ...

    def update(self, message: Message) -> list[Command]: ...

    def view(self) -> str: ...


class Program:
    def __init__(self, screen: Screen):
        self.screen = screen
        self.tasks: set[asyncio.Task] = set()
        self.done = False
        self.exit_message: NavigateBack | Quit | None = None
        self._queue: asyncio.Queue | None = None
        self._started = False

    @property
    def queue(self) -> asyncio.Queue:
        if self._queue is None:
            self._queue = asyncio.Queue()
        return self._queue

    def send(self, message: Message) -> None:
        """Queue a message from outside (input, resize)."""
        self.queue.put_nowait(message)

    async def run(self) -> NavigateBack | Quit | None:
        """Run until the screen asks to leave. Returns the leaving message."""
        self._start()
        try:
            while not self.done:
                self._apply(await self.queue.get())
        finally:
            self.stop()
        return self.exit_message

    async def run_until_idle(self, background: Iterable[str] = BACKGROUND_COMMANDS) -> None:
        """
        Apply messages until nothing is queued and only background commands are
        still pending.
        """
        self._start()
        background = set(background)
        while not self.done:
            while not self.queue.empty() and not self.done:
                self._apply(self.queue.get_nowait())
            if self.done:
                return
            busy = [t for t in self.tasks if not t.done() and t.get_name() not in background]
            if not busy:
                return
            await asyncio.wait(busy, return_when=asyncio.FIRST_COMPLETED)

    def stop(self) -> None:
        for task in list(self.tasks):
            task.cancel()
        self.tasks.clear()

    def _start(self) -> None:
        if self._started:
            return
        self._started = True
        self._spawn(self.screen.init())

    def _apply(self, message: Message) -> None:
        if isinstance(message, (NavigateBack, Quit)):
            self.done = True
            self.exit_message = message
            return
        self._spawn(self.screen.update(message))

    def _spawn(self, commands: list[Command]) -> None:
        for command in commands:
            task = asyncio.create_task(self._execute(command), name=command.name)
            self.tasks.add(task)
            task.add_done_callback(self.tasks.discard)

    async def _execute(self, command: Command) -> None:
        try:
            message = await command.execute()
        except asyncio.CancelledError:
            raise
        except Exception:
            logger.exception("command %s raised instead of returning a message", command.name)
            return
        self.queue.put_nowait(message)
