"""
Open position refresher.

Periodically prices every open trade and attaches transient unrealized
P&L. Never closes trades.
"""

import asyncio
import logging
from datetime import datetime
from typing import Callable, Optional

from ..config.settings import RefresherConfig
from ..interfaces import PriceOracle
from ..ledger.models import Trade
from ..ledger.trade_ledger import TradeLedger
from ..utils.helpers import run_with_concurrency, short_address, utc_now
from .ticker import Ticker

logger = logging.getLogger(__name__)

UPDATED = "updated"
SKIPPED = "skipped"
FAILED = "failed"


class PositionRefresher:
    """
    Sweeps open trades and annotates them with the latest market price.

    One price lookup per open trade, run concurrently with a per-lookup
    timeout. A failed or slow lookup only affects its own trade; the next
    scheduled sweep is the retry.
    """

    def __init__(
        self,
        ledger: TradeLedger,
        price_oracle: PriceOracle,
        config: Optional[RefresherConfig] = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.ledger = ledger
        self.price_oracle = price_oracle
        self.config = config or RefresherConfig()
        self._clock = clock

        self._ticker = Ticker(
            self.config.interval_seconds,
            self.refresh_once,
            name="PositionRefresher",
        )

        # Stats
        self._sweeps = 0
        self._updated = 0
        self._failed = 0
        self._last_sweep_at: Optional[datetime] = None

    def start(self) -> None:
        """Sweep now, then on every interval."""
        self._ticker.start()

    async def stop(self) -> None:
        """Stop the schedule."""
        await self._ticker.stop()

    @property
    def is_running(self) -> bool:
        return self._ticker.is_running

    async def _refresh_trade(self, trade: Trade) -> str:
        """Price one trade and swap in the annotated record."""
        try:
            token_data = await asyncio.wait_for(
                self.price_oracle.get_token_data(trade.token_mint),
                timeout=self.config.price_timeout_seconds,
            )
        except asyncio.TimeoutError:
            logger.warning(
                f"Price lookup timed out for {short_address(trade.token_mint)}... "
                f"after {self.config.price_timeout_seconds:g}s"
            )
            return FAILED
        except Exception as e:
            logger.error(f"Failed to update position for {short_address(trade.token_mint)}...: {e}")
            return FAILED

        price = token_data.price_usd if token_data else 0
        annotated = trade.with_market_price(price, self._clock())
        if annotated is None:
            return SKIPPED

        # False when the trade was closed while the lookup was in flight
        if self.ledger.replace_trade(trade, annotated):
            return UPDATED
        return SKIPPED

    async def refresh_once(self) -> dict:
        """
        Run a single sweep over all open trades.

        Returns:
            Summary dict with checked/updated/skipped/failed counts
        """
        open_trades = self.ledger.open_trades()
        results = await run_with_concurrency(
            [self._refresh_trade(t) for t in open_trades],
            concurrency=self.config.concurrency,
        )

        summary = {"checked": len(open_trades), UPDATED: 0, SKIPPED: 0, FAILED: 0}
        for result in results:
            if isinstance(result, BaseException):
                logger.error(f"Position refresh error: {result}")
                summary[FAILED] += 1
            else:
                summary[result] += 1

        self._sweeps += 1
        self._updated += summary[UPDATED]
        self._failed += summary[FAILED]
        self._last_sweep_at = self._clock()

        logger.debug(
            f"Updated open positions: {summary[UPDATED]}/{summary['checked']} "
            f"({summary[FAILED]} failed)"
        )
        return summary

    @property
    def stats(self) -> dict:
        """Get refresher statistics."""
        return {
            "running": self.is_running,
            "sweeps": self._sweeps,
            "positions_updated": self._updated,
            "lookups_failed": self._failed,
            "last_sweep_at": self._last_sweep_at.isoformat() if self._last_sweep_at else None,
        }
