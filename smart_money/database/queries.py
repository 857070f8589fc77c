"""Watchlist lookups used by metrics labelling, alerts and suggestions."""

import logging
from typing import Optional

from ..interfaces import Storage
from ..utils.helpers import short_address

logger = logging.getLogger(__name__)


class WatchlistQueries:
    """
    Cross-chat queries over a Storage collaborator.

    Storage errors are logged and never raised to the caller.
    """

    def __init__(self, storage: Optional[Storage] = None):
        self.storage = storage
        self._errors = 0

    def get_label(self, wallet_address: str) -> Optional[str]:
        """First label any chat gave this wallet, or None."""
        if not self.storage:
            return None

        try:
            for chat_id in self.storage.get_all_tracked_wallet_chat_ids():
                for wallet in self.storage.get_tracked_wallets(chat_id):
                    if wallet.address == wallet_address and wallet.label:
                        return wallet.label
        except Exception as e:
            logger.warning(f"Label lookup failed for {short_address(wallet_address)}...: {e}")
            self._errors += 1

        return None

    def is_tracked_by_anyone(self, wallet_address: str) -> bool:
        """
        Whether any chat tracks the wallet.

        Returns True when storage cannot answer, so an unknown state never
        produces a suggestion for a wallet that may already be tracked.
        """
        if not self.storage:
            return False

        try:
            return any(
                self.storage.is_wallet_tracked(chat_id, wallet_address)
                for chat_id in self.storage.get_all_tracked_wallet_chat_ids()
            )
        except Exception as e:
            logger.warning(f"Tracked check failed for {short_address(wallet_address)}...: {e}")
            self._errors += 1
            return True

    @property
    def errors(self) -> int:
        return self._errors
