"""
Tests for the token bucket rate limiter.
"""

import asyncio

import pytest

from core.rate_limiter import RateLimiter


class FakeClock:
    def __init__(self):
        self.now = 0.0

    def __call__(self):
        return self.now


def test_burst_then_empty():
    clock = FakeClock()
    limiter = RateLimiter(requests_per_minute=60, burst=3, clock=clock)

    assert [limiter.try_acquire() for _ in range(4)] == [True, True, True, False]
    assert limiter.get_wait_time() == pytest.approx(1.0)


def test_refills_over_time():
    clock = FakeClock()
    limiter = RateLimiter(requests_per_minute=60, burst=2, clock=clock)
    limiter.try_acquire()
    limiter.try_acquire()

    clock.now = 1.0
    assert limiter.try_acquire() is True
    assert limiter.try_acquire() is False

    clock.now = 100.0
    limiter.try_acquire()
    # Capped at burst size
    assert limiter.tokens == pytest.approx(1.0)


def test_rejects_non_positive_rate():
    with pytest.raises(ValueError):
        RateLimiter(requests_per_minute=0)


def test_concurrent_waiters_are_delayed_not_rejected():
    """Should let every concurrent waiter through once tokens refill."""
    limiter = RateLimiter(requests_per_minute=6000, burst=1)  # one token per 10ms

    async def main():
        await asyncio.gather(*(limiter.wait() for _ in range(4)))

    asyncio.run(asyncio.wait_for(main(), timeout=5))
    assert limiter.tokens < 1.0
