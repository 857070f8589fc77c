"""Rate limiting utilities."""

import asyncio
import time
from collections import deque


class RateLimiter:
    """
    Async sliding-window rate limiter.

    Allows at most `calls_per_minute` acquisitions in any trailing
    `window_seconds`, so a sweep can burst up to the limit and then waits
    for the oldest call to age out.
    """

    def __init__(self, calls_per_minute: int = 60, window_seconds: float = 60.0):
        if calls_per_minute < 1:
            raise ValueError("calls_per_minute must be at least 1")
        self.calls_per_minute = calls_per_minute
        self.window_seconds = window_seconds
        self._calls: deque[float] = deque()
        self._lock = asyncio.Lock()
        self._throttled = 0

    def _prune(self, now: float) -> None:
        while self._calls and now - self._calls[0] >= self.window_seconds:
            self._calls.popleft()

    async def acquire(self) -> None:
        """Wait until a call fits in the window, then record it."""
        async with self._lock:
            now = time.monotonic()
            self._prune(now)

            if len(self._calls) >= self.calls_per_minute:
                self._throttled += 1
                await asyncio.sleep(self.window_seconds - (now - self._calls[0]))
                now = time.monotonic()
                self._prune(now)

            self._calls.append(now)

    async def __aenter__(self):
        await self.acquire()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        pass

    @property
    def throttled(self) -> int:
        """Number of acquisitions that had to wait."""
        return self._throttled
