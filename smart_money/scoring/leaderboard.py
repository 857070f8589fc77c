"""Wallet ranking and smart money qualification."""

import logging
from dataclasses import replace
from typing import Mapping, Optional

from ..config.thresholds import ThresholdConfig
from ..database.queries import WatchlistQueries
from ..metrics.models import WalletMetrics

logger = logging.getLogger(__name__)


class Leaderboard:
    """
    Rank wallets from their latest metrics snapshots.

    Reads the snapshot map owned by the tracker and never triggers a
    recompute. Ranks are stamped on copies, never on stored snapshots.
    """

    def __init__(
        self,
        snapshots: Mapping[str, WalletMetrics],
        watchlists: Optional[WatchlistQueries] = None,
        thresholds: Optional[ThresholdConfig] = None,
    ):
        """
        Initialize the leaderboard.

        Args:
            snapshots: Live wallet -> metrics map
            watchlists: Used to exclude already tracked wallets from suggestions
            thresholds: Qualification thresholds
        """
        self._snapshots = snapshots
        self.watchlists = watchlists or WatchlistQueries()
        self.thresholds = thresholds or ThresholdConfig()

    def is_eligible(self, metrics: WalletMetrics) -> bool:
        """Whether a snapshot has enough closed trades to be ranked."""
        return metrics.closed_trades >= self.thresholds.leaderboard.min_closed_trades

    def rank_all(self) -> list[WalletMetrics]:
        """All eligible wallets by ROI descending, ranked 1..N."""
        qualified = [m for m in list(self._snapshots.values()) if self.is_eligible(m)]
        qualified.sort(key=lambda m: m.total_roi, reverse=True)
        return [replace(m, rank=i + 1) for i, m in enumerate(qualified)]

    def get_leaderboard(self, limit: Optional[int] = None) -> list[WalletMetrics]:
        """
        Top wallets by ROI among those with enough closed trades.

        Args:
            limit: Maximum entries, defaults to the configured size

        Returns:
            Rank-stamped copies of the snapshots
        """
        if limit is None:
            limit = self.thresholds.leaderboard.default_limit
        return self.rank_all()[:max(0, limit)]

    def get_rank(self, wallet_address: str) -> Optional[int]:
        """Rank of a wallet on the full leaderboard, None when not ranked."""
        for entry in self.rank_all():
            if entry.wallet_address == wallet_address:
                return entry.rank
        return None

    def qualifies_as_smart_money(self, metrics: WalletMetrics) -> bool:
        """Apply the smart money criteria to a snapshot."""
        criteria = self.thresholds.smart_money
        return (
            metrics.closed_trades >= criteria.min_closed_trades
            and metrics.win_rate >= criteria.min_win_rate
            and metrics.total_roi >= criteria.min_total_roi
            and metrics.profit_factor >= criteria.min_profit_factor
        )

    def is_smart_money(self, wallet_address: str) -> bool:
        """
        Check if a wallet qualifies as smart money.

        Criteria (defaults):
        - At least 10 closed trades
        - Win rate >= 65%
        - Total ROI >= 100%
        - Profit factor >= 2
        """
        metrics = self._snapshots.get(wallet_address)
        if not metrics:
            return False
        return self.qualifies_as_smart_money(metrics)

    def suggest_wallets_to_track(self) -> list[WalletMetrics]:
        """Best smart money wallets that no chat tracks yet, by ROI."""
        suggestions = [
            m for m in list(self._snapshots.values())
            if self.qualifies_as_smart_money(m)
            and not self.watchlists.is_tracked_by_anyone(m.wallet_address)
        ]
        suggestions.sort(key=lambda m: m.total_roi, reverse=True)

        logger.debug(f"Found {len(suggestions)} untracked smart money wallets")
        return suggestions[:self.thresholds.smart_money.max_suggestions]
