"""Tests for the sliding-window rate limiter."""

import time

import pytest

from smart_money.utils import RateLimiter


@pytest.mark.asyncio
async def test_burst_within_limit_does_not_wait():
    limiter = RateLimiter(calls_per_minute=5, window_seconds=10)

    start = time.monotonic()
    for _ in range(5):
        await limiter.acquire()

    assert time.monotonic() - start < 0.5
    assert limiter.throttled == 0


@pytest.mark.asyncio
async def test_waits_for_oldest_call_to_expire():
    limiter = RateLimiter(calls_per_minute=2, window_seconds=0.1)

    start = time.monotonic()
    async with limiter:
        pass
    async with limiter:
        pass
    async with limiter:
        pass

    assert time.monotonic() - start >= 0.09
    assert limiter.throttled == 1


def test_rejects_zero_limit():
    with pytest.raises(ValueError):
        RateLimiter(calls_per_minute=0)
