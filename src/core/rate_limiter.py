"""
Token bucket rate limiter shared by every remote call.
"""

import asyncio
import logging
import threading
import time

from core.config import RATE_LIMIT_BURST, RATE_LIMIT_PER_MINUTE

logger = logging.getLogger(__name__)


class RateLimiter:
    """
    Token bucket that delays callers instead of rejecting them.

    Several deferred commands (autosave, manual save, send) can wait at the same
    time; ``wait()`` serializes them so tokens are handed out one by one. The
    bucket itself is guarded by a thread lock so ``try_acquire()`` is also safe
    from other threads.
    """

    def __init__(
        self,
        requests_per_minute: int = RATE_LIMIT_PER_MINUTE,
        burst: int = RATE_LIMIT_BURST,
        clock=time.monotonic,
    ):
        if requests_per_minute <= 0:
            raise ValueError("requests_per_minute must be positive")
        self.requests_per_minute = requests_per_minute
        self.max_tokens = float(max(1, burst))
        self.tokens = self.max_tokens
        self._clock = clock
        self.last_update = clock()
        self._bucket_lock = threading.Lock()
        self._waiters: asyncio.Lock | None = None

    @property
    def refill_rate(self) -> float:
        """Tokens per second."""
        return self.requests_per_minute / 60.0

    def _refill(self) -> None:
        now = self._clock()
        elapsed = now - self.last_update
        self.last_update = now
        self.tokens = min(self.max_tokens, self.tokens + elapsed * self.refill_rate)

    def try_acquire(self) -> bool:
        """Take a token if one is available right now."""
        with self._bucket_lock:
            self._refill()
            if self.tokens >= 1.0:
                self.tokens -= 1.0
                return True
            return False

    def get_wait_time(self) -> float:
        """Seconds until the next token is available (0 if one is ready)."""
        with self._bucket_lock:
            self._refill()
            if self.tokens >= 1.0:
                return 0.0
            return (1.0 - self.tokens) / self.refill_rate

    async def wait(self) -> None:
        """Block until a token is taken."""
        if self._waiters is None:
            self._waiters = asyncio.Lock()
        async with self._waiters:
            while not self.try_acquire():
                delay = self.get_wait_time()
                logger.debug("rate limited, waiting %.3fs", delay)
                await asyncio.sleep(delay)
