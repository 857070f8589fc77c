"""Alert payloads."""

from dataclasses import dataclass, asdict
from datetime import datetime
from typing import Optional

from ..ledger.models import TradeAction


@dataclass(frozen=True)
class AlertMetrics:
    """Metrics excerpt carried by an alert."""
    win_rate: float
    total_roi: float
    last_30_days_pnl: float


@dataclass(frozen=True)
class SmartMoneyAlert:
    """Notable buy or sell by a wallet with a good track record."""
    wallet_address: str
    wallet_label: str
    action: TradeAction
    token_mint: str
    token_symbol: str
    amount: float
    value: float  # quote currency
    metrics: AlertMetrics
    timestamp: datetime
    price: Optional[float] = None

    def to_dict(self) -> dict:
        """Convert to dictionary for delivery layers."""
        data = asdict(self)
        data["action"] = self.action.value
        data["timestamp"] = self.timestamp.isoformat()
        return data
