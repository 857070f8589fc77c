"""Watchlist storage module."""

from .memory import InMemoryStorage
from .queries import WatchlistQueries
from .supabase import SupabaseClient, get_supabase_client

__all__ = [
    "InMemoryStorage",
    "WatchlistQueries",
    "SupabaseClient",
    "get_supabase_client",
]
