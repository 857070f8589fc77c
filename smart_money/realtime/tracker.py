"""
Smart money tracker service.

Wires the ledger, metrics calculator, leaderboard, alert emitter, profiler,
comparator and position refresher around a single wallet -> metrics map.
"""

import asyncio
import logging
from datetime import datetime
from typing import Callable, Iterable, Optional

from ..config.settings import RefresherConfig
from ..config.thresholds import ThresholdConfig
from ..database.queries import WatchlistQueries
from ..interfaces import PriceOracle, Storage, WalletProfilerProtocol
from ..ledger.models import Trade, TradeAction
from ..ledger.trade_ledger import TradeLedger
from ..metrics.calculator import MetricsCalculator
from ..metrics.models import ProfileWallet, WalletMetrics
from ..scoring.comparator import LeaderboardComparison, WalletComparator, WalletComparison
from ..scoring.leaderboard import Leaderboard
from ..scoring.profiler import WalletProfiler
from ..alerts.emitter import AlertEmitter, Subscriber
from ..utils.helpers import short_address, utc_now
from .refresher import PositionRefresher

logger = logging.getLogger(__name__)


class SmartMoneyTracker:
    """
    Ingests wallet buys and sells and serves performance reads.

    Usage:
        tracker = SmartMoneyTracker(price_oracle=DexScreenerAPI(), storage=storage)
        tracker.subscribe(LoggingAlertSubscriber())
        tracker.start()

        await tracker.record_buy(wallet, mint, "BONK", amount=1_000_000, quote_value=1.0)
        await tracker.record_sell(wallet, mint, amount=1_000_000, quote_value=1.5)

        tracker.get_metrics(wallet).win_rate
        tracker.get_leaderboard(10)
    """

    def __init__(
        self,
        price_oracle: Optional[PriceOracle] = None,
        storage: Optional[Storage] = None,
        profiler: Optional[WalletProfilerProtocol] = None,
        thresholds: Optional[ThresholdConfig] = None,
        refresher_config: Optional[RefresherConfig] = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        """
        Initialize the tracker.

        Args:
            price_oracle: Price source for omitted prices and the refresher
            storage: Watchlist storage used for labels and suggestions
            profiler: Behavioral profiler, defaults to WalletProfiler
            thresholds: Ranking, alert and profiling thresholds
            refresher_config: Position refresher schedule
            clock: Time source for timestamps and trailing windows
        """
        self.thresholds = thresholds or ThresholdConfig()
        self._clock = clock

        self._metrics: dict[str, WalletMetrics] = {}
        self._pending_effects: list[ProfileWallet] = []
        self._effect_tasks: set[asyncio.Task] = set()

        self.watchlists = WatchlistQueries(storage)
        self.calculator = MetricsCalculator(self.thresholds, clock=clock)
        self.ledger = TradeLedger(price_oracle, on_change=self._recompute, clock=clock)
        self.leaderboard = Leaderboard(self._metrics, self.watchlists, self.thresholds)
        self.alerts = AlertEmitter(self.thresholds)

        if profiler is None:
            profiler = WalletProfiler(thresholds=self.thresholds)
        if hasattr(profiler, "bind"):
            profiler.bind(self.get_metrics)
        self.profiler = profiler

        self.comparator = WalletComparator(
            self.get_metrics,
            self.leaderboard,
            profiler=self.profiler,
            trades_source=self.ledger.get_trades,
        )

        self.refresher: Optional[PositionRefresher] = None
        if price_oracle is not None:
            self.refresher = PositionRefresher(
                self.ledger, price_oracle, config=refresher_config, clock=clock
            )

        # Stats
        self._profiles_requested = 0
        self._profile_errors = 0

    # =========================================================================
    # Recompute and effects
    # =========================================================================

    def _recompute(self, wallet_address: str, trades: list[Trade]) -> None:
        """Rebuild the wallet's snapshot. Runs under the ledger's wallet lock."""
        label = self.watchlists.get_label(wallet_address)
        result = self.calculator.calculate(wallet_address, trades, label=label)

        self._metrics[wallet_address] = result.metrics
        self._pending_effects.extend(result.effects)

    def _dispatch_effects(self) -> None:
        """Schedule queued effects without waiting on them."""
        effects, self._pending_effects = self._pending_effects, []
        for effect in effects:
            if isinstance(effect, ProfileWallet):
                task = asyncio.create_task(self._generate_profile(effect.wallet_address))
                self._effect_tasks.add(task)
                task.add_done_callback(self._effect_tasks.discard)

    async def _generate_profile(self, wallet_address: str) -> None:
        self._profiles_requested += 1
        try:
            await self.profiler.generate_profile(wallet_address)
        except Exception as e:
            logger.error(f"Profile generation failed for {short_address(wallet_address)}...: {e}")
            self._profile_errors += 1

    async def wait_for_effects(self) -> None:
        """Wait for in-flight profile generation to finish."""
        while self._effect_tasks:
            await asyncio.gather(*list(self._effect_tasks), return_exceptions=True)

    # =========================================================================
    # Ingestion
    # =========================================================================

    async def record_buy(
        self,
        wallet_address: str,
        token_mint: str,
        token_symbol: Optional[str],
        amount: float,
        quote_value: float,
        price: Optional[float] = None,
        timestamp: Optional[datetime] = None,
    ) -> Trade:
        """
        Record a buy and publish an alert if the wallet qualifies.

        The alert is built from the snapshot of this very mutation, before
        another mutation of the same wallet can run.

        Returns:
            The new open trade
        """
        trade = await self.ledger.record_buy(
            wallet_address, token_mint, token_symbol, amount, quote_value,
            price=price, timestamp=timestamp,
            on_recorded=lambda t: self.alerts.emit(
                TradeAction.BUY, t, self._metrics.get(wallet_address)
            ),
        )
        self._dispatch_effects()
        return trade

    async def record_sell(
        self,
        wallet_address: str,
        token_mint: str,
        amount: float,
        quote_value: float,
        price: Optional[float] = None,
        timestamp: Optional[datetime] = None,
    ) -> Optional[Trade]:
        """
        Record a sell against the wallet's first open trade for the token.

        Returns:
            The closed trade, or None when nothing was open (no alert either)
        """
        trade = await self.ledger.record_sell(
            wallet_address, token_mint, amount, quote_value,
            price=price, timestamp=timestamp,
            on_recorded=lambda t: self.alerts.emit(
                TradeAction.SELL, t, self._metrics.get(wallet_address)
            ),
        )
        if trade is None:
            return None

        self._dispatch_effects()
        return trade

    async def load_trades(self, trades: Iterable[Trade]) -> int:
        """Seed existing trades without publishing alerts."""
        count = self.ledger.load_trades(trades)
        self._dispatch_effects()
        return count

    # =========================================================================
    # Reads
    # =========================================================================

    def get_metrics(self, wallet_address: str) -> Optional[WalletMetrics]:
        """
        Latest snapshot for a wallet.

        None means the wallet was never seen. A wallet with trades but no
        closed ones gets an all-zero snapshot instead.
        """
        return self._metrics.get(wallet_address)

    def get_all_metrics(self) -> list[WalletMetrics]:
        return list(self._metrics.values())

    def get_trades(self, wallet_address: str) -> list[Trade]:
        return self.ledger.get_trades(wallet_address)

    def get_leaderboard(self, limit: Optional[int] = None) -> list[WalletMetrics]:
        return self.leaderboard.get_leaderboard(limit)

    def is_smart_money(self, wallet_address: str) -> bool:
        return self.leaderboard.is_smart_money(wallet_address)

    def suggest_wallets_to_track(self) -> list[WalletMetrics]:
        return self.leaderboard.suggest_wallets_to_track()

    def compare_wallets(self, wallet1: str, wallet2: str) -> Optional[WalletComparison]:
        return self.comparator.compare_wallets(wallet1, wallet2)

    def compare_with_leader(self, wallet_address: str) -> Optional[LeaderboardComparison]:
        return self.comparator.compare_with_leader(wallet_address)

    # =========================================================================
    # Alerts and lifecycle
    # =========================================================================

    def subscribe(self, subscriber: Subscriber) -> None:
        """Receive SmartMoneyAlert events."""
        self.alerts.subscribe(subscriber)

    def unsubscribe(self, subscriber: Subscriber) -> None:
        self.alerts.unsubscribe(subscriber)

    def start(self) -> None:
        """Start the position refresher, if a price oracle was given."""
        if self.refresher is None:
            logger.warning("No price oracle configured, position refresher disabled")
            return
        self.refresher.start()

    async def stop(self) -> None:
        """Stop the refresher and let queued profile work finish."""
        if self.refresher is not None:
            await self.refresher.stop()
        await self.wait_for_effects()

    @property
    def stats(self) -> dict:
        """Get combined tracker statistics."""
        return {
            "wallets": len(self._metrics),
            "ledger": self.ledger.stats,
            "alerts": self.alerts.stats,
            "refresher": self.refresher.stats if self.refresher else None,
            "profiles_requested": self._profiles_requested,
            "profile_errors": self._profile_errors,
            "storage_errors": self.watchlists.errors,
        }
