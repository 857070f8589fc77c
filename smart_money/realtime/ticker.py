"""Fixed-interval async scheduler with cancellation."""

import asyncio
import logging
from typing import Awaitable, Callable, Optional

logger = logging.getLogger(__name__)


class Ticker:
    """
    Runs an async callback immediately, then every `interval_seconds`.

    Runs never overlap: a run that overshoots the interval delays the next
    one instead of stacking. A failing run is logged and the schedule
    continues.
    """

    def __init__(
        self,
        interval_seconds: float,
        callback: Callable[[], Awaitable[object]],
        name: str = "ticker",
        run_immediately: bool = True,
    ):
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be positive")

        self.interval_seconds = interval_seconds
        self.callback = callback
        self.name = name
        self.run_immediately = run_immediately

        self._task: Optional[asyncio.Task] = None
        self._runs = 0
        self._errors = 0

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        """Start ticking. No-op if already running."""
        if self.is_running:
            return
        self._task = asyncio.create_task(self._run(), name=self.name)
        logger.info(f"{self.name} started (every {self.interval_seconds:g}s)")

    async def stop(self) -> None:
        """Cancel the schedule and wait for the current run to unwind."""
        if not self._task:
            return

        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.info(f"{self.name} stopped")

    async def _run(self) -> None:
        loop = asyncio.get_running_loop()
        next_run = loop.time() if self.run_immediately else loop.time() + self.interval_seconds

        while True:
            delay = next_run - loop.time()
            if delay > 0:
                await asyncio.sleep(delay)

            try:
                await self.callback()
            except asyncio.CancelledError:
                raise
            except Exception as e:
                logger.error(f"{self.name} run failed: {e}")
                self._errors += 1
            self._runs += 1

            next_run = max(next_run + self.interval_seconds, loop.time())

    @property
    def stats(self) -> dict:
        """Get ticker statistics."""
        return {
            "running": self.is_running,
            "runs": self._runs,
            "errors": self._errors,
        }
