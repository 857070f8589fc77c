"""
Long-running smart money tracker service.

Runs the position refresher and periodic stats reporting. An upstream
transaction detector feeds trades through `service.tracker`.

Usage:
    python -m smart_money.realtime.service
"""

import asyncio
import logging
import signal
from datetime import datetime, timezone
from typing import Optional

from dotenv import load_dotenv

from ..alerts.subscribers import LoggingAlertSubscriber
from ..config.settings import Settings, get_settings
from ..config.thresholds import ThresholdConfig
from ..database.memory import InMemoryStorage
from ..database.supabase import SupabaseClient
from ..interfaces import Storage
from ..scrapers.dexscreener import DexScreenerAPI
from ..utils.logging import setup_logging
from .tracker import SmartMoneyTracker

logger = logging.getLogger(__name__)


def build_storage(settings: Settings) -> Storage:
    """Supabase watchlists when configured, otherwise an empty in-memory store."""
    if settings.supabase.url and settings.supabase.key:
        return SupabaseClient.from_config(settings.supabase)

    logger.warning("SUPABASE_URL/SUPABASE_KEY not set - using in-memory watchlists")
    return InMemoryStorage()


class SmartMoneyService:
    """
    Service wrapper owning the tracker and its external clients.

    Provides:
    - DexScreener-backed position refresh
    - Alert logging
    - Statistics reporting
    """

    STATS_INTERVAL_SECONDS = 60

    def __init__(
        self,
        settings: Optional[Settings] = None,
        thresholds: Optional[ThresholdConfig] = None,
        storage: Optional[Storage] = None,
    ):
        """
        Initialize the service.

        Args:
            settings: Application settings, defaults to get_settings()
            thresholds: Threshold config, defaults to the config file's
            storage: Watchlist storage, built from settings when omitted
        """
        self.settings = settings or get_settings()
        self.thresholds = thresholds or ThresholdConfig.load(self.settings.config_path)

        self.price_api = DexScreenerAPI(self.settings.dexscreener)
        self.tracker = SmartMoneyTracker(
            price_oracle=self.price_api,
            storage=storage if storage is not None else build_storage(self.settings),
            thresholds=self.thresholds,
            refresher_config=self.settings.refresher,
        )
        self.tracker.subscribe(LoggingAlertSubscriber())

        self._start_time: Optional[datetime] = None
        self._running = False
        self._stats_task: Optional[asyncio.Task] = None

    async def start(self) -> None:
        """Start the refresher and stats reporter."""
        self._start_time = datetime.now(timezone.utc)
        self._running = True

        logger.info("=" * 60)
        logger.info("SMART MONEY TRACKER")
        logger.info("=" * 60)

        self.tracker.start()
        self._stats_task = asyncio.create_task(self._stats_reporter())

        logger.info(f"Refresh interval: {self.settings.refresher.interval_seconds:g}s")
        logger.info(
            f"Leaderboard: >= {self.thresholds.leaderboard.min_closed_trades} closed trades | "
            f"Smart money: WR >= {self.thresholds.smart_money.min_win_rate:g}%, "
            f"ROI >= {self.thresholds.smart_money.min_total_roi:g}%"
        )
        logger.debug(f"Thresholds: {self.thresholds.to_dict()}")
        logger.info("=" * 60)

    async def stop(self) -> None:
        """Stop the service gracefully."""
        logger.info("Stopping smart money tracker...")
        self._running = False

        if self._stats_task:
            self._stats_task.cancel()
            try:
                await self._stats_task
            except asyncio.CancelledError:
                pass

        await self.tracker.stop()
        await self.price_api.close()

        self._log_stats()
        logger.info("Smart money tracker stopped")

    async def _stats_reporter(self) -> None:
        """Periodically log statistics."""
        while self._running:
            try:
                await asyncio.sleep(self.STATS_INTERVAL_SECONDS)
                self._log_stats()

            except asyncio.CancelledError:
                break
            except Exception as e:
                logger.error(f"Stats reporter error: {e}")

    def _log_stats(self) -> None:
        """Log current statistics."""
        stats = self.tracker.stats
        ledger = stats["ledger"]
        refresher = stats["refresher"] or {}

        uptime = 0.0
        if self._start_time:
            uptime = (datetime.now(timezone.utc) - self._start_time).total_seconds()
        uptime_str = f"{int(uptime // 3600)}h {int((uptime % 3600) // 60)}m"

        logger.info(
            f"[STATS] "
            f"Wallets: {stats['wallets']:,} | "
            f"Trades: {ledger['buys_recorded']:,} buys, {ledger['sells_recorded']:,} sells "
            f"({ledger['unmatched_sells']} unmatched) | "
            f"Alerts: {stats['alerts']['alerts_emitted']} | "
            f"Refresh: {refresher.get('sweeps', 0)} sweeps, "
            f"{refresher.get('lookups_failed', 0)} failed lookups | "
            f"Uptime: {uptime_str}"
        )

    @property
    def stats(self) -> dict:
        """Get combined service statistics."""
        return {
            "tracker": self.tracker.stats,
            "price_api": self.price_api.stats,
            "start_time": self._start_time.isoformat() if self._start_time else None,
            "running": self._running,
        }


async def main() -> None:
    """Entry point for the tracker service."""
    load_dotenv()

    settings = get_settings()
    setup_logging(settings.log_level)

    service = SmartMoneyService(settings)

    loop = asyncio.get_running_loop()
    shutdown_event = asyncio.Event()

    def signal_handler() -> None:
        logger.info("Received shutdown signal")
        shutdown_event.set()

    try:
        for sig in (signal.SIGINT, signal.SIGTERM):
            loop.add_signal_handler(sig, signal_handler)
    except NotImplementedError:
        # Windows doesn't support add_signal_handler
        pass

    try:
        await service.start()
        await shutdown_event.wait()
    except KeyboardInterrupt:
        logger.info("Received keyboard interrupt")
    finally:
        await service.stop()


def run() -> None:
    """Console script entry point."""
    asyncio.run(main())


if __name__ == "__main__":
    run()
