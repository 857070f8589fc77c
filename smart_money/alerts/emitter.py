"""
Smart money alert emission.

Decides after each ledger mutation whether the wallet's activity is worth
publishing and hands the alert to subscribers. Formatting and delivery
belong to the subscribers.
"""

import inspect
import logging
from typing import Callable, Optional, Union

from ..config.thresholds import ThresholdConfig
from ..interfaces import AlertSubscriber
from ..ledger.models import Trade, TradeAction
from ..metrics.models import WalletMetrics
from ..utils.helpers import short_address, utc_now
from .models import AlertMetrics, SmartMoneyAlert

logger = logging.getLogger(__name__)

Subscriber = Union[AlertSubscriber, Callable[[SmartMoneyAlert], object]]


class AlertEmitter:
    """
    Publishes SmartMoneyAlert events to a subscriber list.

    A subscriber is either an object with `on_alert(alert)` or a plain
    callable; both may be sync or async.
    """

    def __init__(self, thresholds: Optional[ThresholdConfig] = None):
        self.thresholds = thresholds or ThresholdConfig()
        self._subscribers: list[Subscriber] = []

        # Stats
        self._alerts_emitted = 0
        self._subscriber_errors = 0

    def subscribe(self, subscriber: Subscriber) -> None:
        """Register a subscriber."""
        if subscriber not in self._subscribers:
            self._subscribers.append(subscriber)

    def unsubscribe(self, subscriber: Subscriber) -> None:
        """Remove a subscriber if registered."""
        if subscriber in self._subscribers:
            self._subscribers.remove(subscriber)

    def should_alert(self, metrics: Optional[WalletMetrics]) -> bool:
        """Wallets with enough closed trades and a decent win rate."""
        if not metrics:
            return False
        criteria = self.thresholds.alerts
        return (
            metrics.closed_trades >= criteria.min_closed_trades
            and metrics.win_rate >= criteria.min_win_rate
        )

    def build_alert(
        self,
        action: TradeAction,
        trade: Trade,
        metrics: WalletMetrics,
    ) -> SmartMoneyAlert:
        """Alert payload: entry fields for buys, exit fields for sells."""
        if action == TradeAction.BUY:
            amount, value, price = trade.entry_amount, trade.entry_value, trade.entry_price
        else:
            amount, value, price = trade.exit_amount or 0, trade.exit_value or 0, trade.exit_price

        return SmartMoneyAlert(
            wallet_address=trade.wallet_address,
            wallet_label=metrics.label or f"Wallet {short_address(trade.wallet_address)}...",
            action=action,
            token_mint=trade.token_mint,
            token_symbol=trade.token_symbol or "Unknown",
            amount=amount,
            value=value,
            price=price,
            metrics=AlertMetrics(
                win_rate=metrics.win_rate,
                total_roi=metrics.total_roi,
                last_30_days_pnl=metrics.last_30_days_pnl,
            ),
            timestamp=utc_now(),
        )

    async def emit(
        self,
        action: TradeAction,
        trade: Trade,
        metrics: Optional[WalletMetrics],
    ) -> Optional[SmartMoneyAlert]:
        """
        Publish an alert for the trade if the wallet qualifies.

        Returns:
            The published alert, or None when the wallet does not qualify
        """
        if not self.should_alert(metrics):
            return None

        alert = self.build_alert(action, trade, metrics)
        self._alerts_emitted += 1

        logger.info(
            f"Smart money {action.value}: {alert.wallet_label} - {alert.token_symbol} "
            f"({alert.value:.2f}, WR {alert.metrics.win_rate:.0f}%)"
        )

        await self._publish(alert)
        return alert

    async def _publish(self, alert: SmartMoneyAlert) -> None:
        for subscriber in list(self._subscribers):
            try:
                handler = getattr(subscriber, "on_alert", subscriber)
                result = handler(alert)
                if inspect.isawaitable(result):
                    await result
            except Exception as e:
                logger.error(
                    f"Alert subscriber failed for {short_address(alert.wallet_address)}...: {e}"
                )
                self._subscriber_errors += 1

    @property
    def stats(self) -> dict:
        """Get emitter statistics."""
        return {
            "subscribers": len(self._subscribers),
            "alerts_emitted": self._alerts_emitted,
            "subscriber_errors": self._subscriber_errors,
        }
