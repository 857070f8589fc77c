"""General utility functions."""

import asyncio
from datetime import datetime, timezone
from typing import Any, Awaitable, Iterable, Optional


def utc_now() -> datetime:
    """Current time as a timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


def ensure_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Attach UTC to naive datetimes; aware values and None pass through."""
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def parse_iso_timestamp(value: str) -> datetime:
    """
    Parse an ISO-8601 timestamp into an aware datetime.

    Accepts a trailing "Z". Values without an offset are taken as UTC.
    """
    return ensure_utc(datetime.fromisoformat(value.replace("Z", "+00:00")))


def short_address(address: str, length: int = 8) -> str:
    """Truncate a wallet or token address for logs and labels."""
    return address[:length]


async def run_with_concurrency(
    tasks: Iterable[Awaitable],
    concurrency: int = 10
) -> list[Any]:
    """Run tasks with a concurrency limit."""
    semaphore = asyncio.Semaphore(concurrency)

    async def bounded_task(task):
        async with semaphore:
            return await task

    return await asyncio.gather(*[bounded_task(t) for t in tasks], return_exceptions=True)


def safe_divide(numerator: float, denominator: float, default: float = 0) -> float:
    """Safely divide two numbers, returning default if division by zero."""
    if denominator == 0:
        return default
    return numerator / denominator


def calculate_percentage(part: float, whole: float, default: float = 0) -> float:
    """Calculate percentage safely."""
    return safe_divide(part * 100, whole, default)


def percent_change(current: float, reference: float) -> Optional[float]:
    """Percent move from reference to current, None when reference is zero."""
    if reference == 0:
        return None
    return (current - reference) / reference * 100
