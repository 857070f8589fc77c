"""Wallet performance snapshots."""

from dataclasses import dataclass, asdict
from datetime import datetime
from typing import Optional


@dataclass(frozen=True)
class TradeRef:
    """Reference to a notable closed trade."""
    trade_id: str
    token_mint: str
    token_symbol: str
    profit_loss: float
    profit_loss_percent: float


@dataclass(frozen=True)
class WalletMetrics:
    """
    Performance snapshot for one wallet.

    Always recomputed from the full trade list and replaced as a whole.
    `rank` is only set on copies handed out by the leaderboard.
    """

    wallet_address: str
    last_updated: datetime
    label: Optional[str] = None
    total_trades: int = 0
    open_trades: int = 0
    closed_trades: int = 0
    wins: int = 0
    losses: int = 0
    win_rate: float = 0
    avg_profit_percent: float = 0
    avg_loss_percent: float = 0
    total_pnl: float = 0
    total_invested: float = 0
    total_roi: float = 0
    best_trade: Optional[TradeRef] = None
    worst_trade: Optional[TradeRef] = None
    last_7_days_pnl: float = 0
    last_30_days_pnl: float = 0
    avg_hold_duration: float = 0  # hours
    current_streak: int = 0  # positive = wins, negative = losses
    max_win_streak: int = 0
    max_loss_streak: int = 0
    profit_factor: float = 0  # avg win % / avg loss %
    rank: Optional[int] = None

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        data = asdict(self)
        data["last_updated"] = self.last_updated.isoformat()
        return data


@dataclass(frozen=True)
class ProfileWallet:
    """Effect: (re)build the behavioral profile for a wallet."""
    wallet_address: str


@dataclass(frozen=True)
class MetricsResult:
    """A computed snapshot plus the side effects the caller should dispatch."""
    metrics: WalletMetrics
    effects: tuple = ()
