"""In-process watchlist storage for replays and tests."""

from typing import Optional

from ..interfaces import TrackedWallet
from ..utils.helpers import utc_now


class InMemoryStorage:
    """Watchlists kept in a dict of chat_id -> wallets."""

    def __init__(self, watchlists: Optional[dict[str, list[TrackedWallet]]] = None):
        self._watchlists: dict[str, list[TrackedWallet]] = {
            chat_id: list(wallets) for chat_id, wallets in (watchlists or {}).items()
        }

    def add_tracked_wallet(self, chat_id: str, address: str, label: Optional[str] = None) -> None:
        wallets = self._watchlists.setdefault(chat_id, [])
        if any(w.address == address for w in wallets):
            return
        wallets.append(TrackedWallet(address=address, label=label, added_at=utc_now()))

    def get_all_tracked_wallet_chat_ids(self) -> list[str]:
        return [chat_id for chat_id, wallets in self._watchlists.items() if wallets]

    def get_tracked_wallets(self, chat_id: str) -> list[TrackedWallet]:
        return list(self._watchlists.get(chat_id, []))

    def is_wallet_tracked(self, chat_id: str, address: str) -> bool:
        return any(w.address == address for w in self._watchlists.get(chat_id, []))
