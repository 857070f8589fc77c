"""Utility modules."""

from .logging import setup_logging
from .rate_limiter import RateLimiter
from .helpers import (
    calculate_percentage,
    ensure_utc,
    parse_iso_timestamp,
    percent_change,
    run_with_concurrency,
    safe_divide,
    short_address,
    utc_now,
)

__all__ = [
    "setup_logging",
    "RateLimiter",
    "calculate_percentage",
    "ensure_utc",
    "parse_iso_timestamp",
    "percent_change",
    "run_with_concurrency",
    "safe_divide",
    "short_address",
    "utc_now",
]
