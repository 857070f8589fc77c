"""
Wallet metrics calculation.

Pure computation over a wallet's trade list. The calculator never touches
shared state or performs I/O; side effects such as profiling are returned
as effects for the caller to dispatch.
"""

from datetime import datetime, timedelta
from typing import Callable, Optional, Sequence

from ..config.thresholds import ThresholdConfig
from ..ledger.models import Trade
from ..utils.helpers import calculate_percentage, safe_divide, utc_now
from .models import MetricsResult, ProfileWallet, TradeRef, WalletMetrics


class MetricsCalculator:
    """
    Calculate wallet performance metrics from trades.

    Calculates:
    - Win rate, average win % and average loss %
    - Total P&L and ROI on closed-trade investment
    - 7d and 30d P&L by exit time
    - Win/loss streaks in list order
    - Profit factor (average win % / average loss %)
    - Best and worst trades
    """

    def __init__(
        self,
        thresholds: Optional[ThresholdConfig] = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.thresholds = thresholds or ThresholdConfig()
        self._clock = clock

    def calculate(
        self,
        wallet_address: str,
        trades: Sequence[Trade],
        now: Optional[datetime] = None,
        label: Optional[str] = None,
    ) -> MetricsResult:
        """
        Build a fresh snapshot for the wallet.

        Args:
            wallet_address: Wallet the trades belong to
            trades: All of the wallet's trades, in ledger order
            now: Reference time for the trailing windows
            label: Display label resolved by the caller

        Returns:
            MetricsResult with the snapshot and any effects to dispatch
        """
        now = now or self._clock()
        closed = [t for t in trades if t.is_closed]
        open_count = sum(1 for t in trades if t.is_open)

        if not closed:
            metrics = WalletMetrics(
                wallet_address=wallet_address,
                label=label,
                last_updated=now,
                total_trades=len(trades),
                open_trades=open_count,
            )
            return MetricsResult(metrics=metrics)

        wins = [t for t in closed if t.is_win]
        losses = [t for t in closed if not t.is_win]

        avg_profit_percent = safe_divide(
            sum(t.profit_loss_percent or 0 for t in wins), len(wins)
        )
        avg_loss_percent = safe_divide(
            sum(abs(t.profit_loss_percent or 0) for t in losses), len(losses)
        )

        total_pnl = sum(t.profit_loss or 0 for t in closed)
        total_invested = sum(t.entry_value for t in closed)

        current_streak, max_win_streak, max_loss_streak = self.calculate_streaks(closed)
        best_trade, worst_trade = self.find_extremes(closed)

        metrics = WalletMetrics(
            wallet_address=wallet_address,
            label=label,
            last_updated=now,
            total_trades=len(trades),
            open_trades=open_count,
            closed_trades=len(closed),
            wins=len(wins),
            losses=len(losses),
            win_rate=calculate_percentage(len(wins), len(closed)),
            avg_profit_percent=avg_profit_percent,
            avg_loss_percent=avg_loss_percent,
            total_pnl=total_pnl,
            total_invested=total_invested,
            total_roi=calculate_percentage(total_pnl, total_invested),
            best_trade=best_trade,
            worst_trade=worst_trade,
            last_7_days_pnl=self.windowed_pnl(closed, now, days=7),
            last_30_days_pnl=self.windowed_pnl(closed, now, days=30),
            avg_hold_duration=safe_divide(
                sum(t.hold_duration or 0 for t in closed), len(closed)
            ),
            current_streak=current_streak,
            max_win_streak=max_win_streak,
            max_loss_streak=max_loss_streak,
            profit_factor=self.calculate_profit_factor(avg_profit_percent, avg_loss_percent),
        )

        effects = []
        if metrics.closed_trades >= self.thresholds.profile.min_closed_trades:
            effects.append(ProfileWallet(wallet_address))

        return MetricsResult(metrics=metrics, effects=tuple(effects))

    @staticmethod
    def calculate_streaks(closed_trades: Sequence[Trade]) -> tuple[int, int, int]:
        """
        Walk closed trades in order counting same-outcome runs.

        Returns:
            (current_streak, max_win_streak, max_loss_streak). current_streak
            is signed, positive when the last closed trade was a win.
        """
        if not closed_trades:
            return 0, 0, 0

        win_run = 0
        loss_run = 0
        max_win_streak = 0
        max_loss_streak = 0

        for trade in closed_trades:
            if trade.is_win:
                win_run += 1
                loss_run = 0
                max_win_streak = max(max_win_streak, win_run)
            else:
                loss_run += 1
                win_run = 0
                max_loss_streak = max(max_loss_streak, loss_run)

        current_streak = win_run if closed_trades[-1].is_win else -loss_run
        return current_streak, max_win_streak, max_loss_streak

    @staticmethod
    def find_extremes(
        closed_trades: Sequence[Trade],
    ) -> tuple[Optional[TradeRef], Optional[TradeRef]]:
        """Best and worst trade by P&L. Strict comparison keeps the earliest on ties."""
        best: Optional[Trade] = None
        worst: Optional[Trade] = None

        for trade in closed_trades:
            pnl = trade.profit_loss or 0
            if best is None or pnl > (best.profit_loss or 0):
                best = trade
            if worst is None or pnl < (worst.profit_loss or 0):
                worst = trade

        return MetricsCalculator._to_ref(best), MetricsCalculator._to_ref(worst)

    @staticmethod
    def _to_ref(trade: Optional[Trade]) -> Optional[TradeRef]:
        if trade is None:
            return None
        return TradeRef(
            trade_id=trade.id,
            token_mint=trade.token_mint,
            token_symbol=trade.token_symbol or "Unknown",
            profit_loss=trade.profit_loss or 0,
            profit_loss_percent=trade.profit_loss_percent or 0,
        )

    @staticmethod
    def windowed_pnl(closed_trades: Sequence[Trade], now: datetime, days: int) -> float:
        """Sum of P&L for trades that exited within the trailing window."""
        cutoff = now - timedelta(days=days)
        return sum(
            t.profit_loss or 0
            for t in closed_trades
            if t.exit_timestamp and t.exit_timestamp >= cutoff
        )

    @staticmethod
    def calculate_profit_factor(avg_profit_percent: float, avg_loss_percent: float) -> float:
        """
        Ratio of average win % to average loss %.

        This is not gross profit / gross loss. The smart money thresholds
        are calibrated against this definition.
        """
        if avg_loss_percent > 0:
            return avg_profit_percent / avg_loss_percent
        return 0
