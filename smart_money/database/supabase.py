"""Supabase client wrapper serving chat watchlists."""

from functools import lru_cache
from typing import Optional

from supabase import create_client, Client

from ..config.settings import SupabaseConfig, get_settings
from ..interfaces import TrackedWallet
from ..utils.helpers import parse_iso_timestamp


class SupabaseClient:
    """
    Watchlist storage backed by a Supabase table.

    Expected table layout (one row per chat/wallet pair):
        chat_id text, address text, label text, added_at timestamptz
    """

    def __init__(self, client: Client, table: str = "tracked_wallets"):
        self._client = client
        self.table = table

    @classmethod
    def from_config(cls, config: SupabaseConfig) -> "SupabaseClient":
        """Connect using URL and key from settings."""
        return cls(create_client(config.url, config.key), table=config.tracked_wallets_table)

    @property
    def client(self) -> Client:
        """Get the underlying Supabase client."""
        return self._client

    # =========================================================================
    # Watchlist Operations
    # =========================================================================

    def get_all_tracked_wallet_chat_ids(self) -> list[str]:
        """Chats that track at least one wallet."""
        result = self._client.table(self.table).select("chat_id").execute()
        seen: dict[str, None] = {}
        for row in result.data or []:
            seen[str(row["chat_id"])] = None
        return list(seen.keys())

    def get_tracked_wallets(self, chat_id: str) -> list[TrackedWallet]:
        """Wallets on a chat's watchlist."""
        result = (
            self._client.table(self.table)
            .select("address, label, added_at")
            .eq("chat_id", chat_id)
            .execute()
        )
        return [self._to_tracked_wallet(row) for row in result.data or []]

    def is_wallet_tracked(self, chat_id: str, address: str) -> bool:
        """Whether the chat tracks the wallet."""
        result = (
            self._client.table(self.table)
            .select("address")
            .eq("chat_id", chat_id)
            .eq("address", address)
            .limit(1)
            .execute()
        )
        return bool(result.data)

    def add_tracked_wallet(self, chat_id: str, address: str, label: Optional[str] = None) -> dict:
        """Add a wallet to a chat's watchlist."""
        result = self._client.table(self.table).upsert({
            "chat_id": chat_id,
            "address": address,
            "label": label,
        }, on_conflict="chat_id,address").execute()
        return result.data[0] if result.data else {}

    @staticmethod
    def _to_tracked_wallet(row: dict) -> TrackedWallet:
        added_at = row.get("added_at")
        return TrackedWallet(
            address=row["address"],
            label=row.get("label"),
            added_at=parse_iso_timestamp(added_at) if added_at else None,
        )


@lru_cache()
def get_supabase_client() -> SupabaseClient:
    """Get cached Supabase client instance."""
    return SupabaseClient.from_config(get_settings().supabase)
