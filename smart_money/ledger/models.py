"""Trade records owned by the ledger."""

from dataclasses import dataclass, replace
from datetime import datetime
from enum import Enum
from typing import Optional

from ..utils.helpers import percent_change


class TradeStatus(str, Enum):
    """Trade lifecycle status. CLOSED is terminal."""
    OPEN = "open"
    CLOSED = "closed"


class TradeAction(str, Enum):
    """Wallet action that produced a ledger mutation."""
    BUY = "buy"
    SELL = "sell"


@dataclass(frozen=True)
class Trade:
    """
    A buy, eventually paired with a sell, for one wallet and token.

    Records are never mutated in place. Closing a trade or attaching
    unrealized P&L builds a new record that replaces the old one in the
    ledger, so readers only ever see whole records.
    """

    id: str
    wallet_address: str
    token_mint: str
    entry_price: float
    entry_amount: float
    entry_value: float  # quote currency
    entry_timestamp: datetime
    token_symbol: Optional[str] = None
    status: TradeStatus = TradeStatus.OPEN

    # Set once on close
    exit_price: Optional[float] = None
    exit_amount: Optional[float] = None
    exit_value: Optional[float] = None
    exit_timestamp: Optional[datetime] = None
    profit_loss: Optional[float] = None
    profit_loss_percent: Optional[float] = None
    is_win: Optional[bool] = None
    hold_duration: Optional[float] = None  # hours

    # Transient, written only by the position refresher while open
    unrealized_pnl: Optional[float] = None
    unrealized_pnl_percent: Optional[float] = None
    current_price: Optional[float] = None
    price_updated_at: Optional[datetime] = None

    @property
    def is_open(self) -> bool:
        return self.status == TradeStatus.OPEN

    @property
    def is_closed(self) -> bool:
        return self.status == TradeStatus.CLOSED

    def close(
        self,
        exit_price: float,
        exit_amount: float,
        exit_value: float,
        exit_timestamp: datetime,
    ) -> "Trade":
        """
        Return the closed version of this trade.

        P&L is the difference in quote value. The percent move is taken from
        prices and is 0 when the entry price is unknown (recorded as 0).
        A zero P&L counts as a loss.

        Raises:
            ValueError: If the trade is already closed
        """
        if self.is_closed:
            raise ValueError(f"Trade {self.id} is already closed")

        profit_loss = exit_value - self.entry_value
        profit_loss_percent = percent_change(exit_price, self.entry_price) or 0.0
        hold_duration = (exit_timestamp - self.entry_timestamp).total_seconds() / 3600

        return replace(
            self,
            status=TradeStatus.CLOSED,
            exit_price=exit_price,
            exit_amount=exit_amount,
            exit_value=exit_value,
            exit_timestamp=exit_timestamp,
            profit_loss=profit_loss,
            profit_loss_percent=profit_loss_percent,
            is_win=profit_loss > 0,
            hold_duration=hold_duration,
            unrealized_pnl=None,
            unrealized_pnl_percent=None,
            current_price=None,
            price_updated_at=None,
        )

    def with_market_price(self, price: float, observed_at: datetime) -> Optional["Trade"]:
        """
        Return a copy annotated with unrealized P&L at the given price.

        Returns None when the trade is closed or either price is not positive.
        """
        if not self.is_open or price <= 0 or self.entry_price <= 0:
            return None

        unrealized_pnl_percent = (price - self.entry_price) / self.entry_price * 100
        return replace(
            self,
            unrealized_pnl=self.entry_value * unrealized_pnl_percent / 100,
            unrealized_pnl_percent=unrealized_pnl_percent,
            current_price=price,
            price_updated_at=observed_at,
        )

    def to_dict(self, persist: bool = False) -> dict:
        """
        Convert to dictionary.

        Args:
            persist: Drop the transient unrealized fields
        """
        data = {
            "id": self.id,
            "wallet_address": self.wallet_address,
            "token_mint": self.token_mint,
            "token_symbol": self.token_symbol,
            "status": self.status.value,
            "entry_price": self.entry_price,
            "entry_amount": self.entry_amount,
            "entry_value": self.entry_value,
            "entry_timestamp": self.entry_timestamp.isoformat(),
            "exit_price": self.exit_price,
            "exit_amount": self.exit_amount,
            "exit_value": self.exit_value,
            "exit_timestamp": self.exit_timestamp.isoformat() if self.exit_timestamp else None,
            "profit_loss": self.profit_loss,
            "profit_loss_percent": self.profit_loss_percent,
            "is_win": self.is_win,
            "hold_duration": self.hold_duration,
        }

        if not persist:
            data.update({
                "unrealized_pnl": self.unrealized_pnl,
                "unrealized_pnl_percent": self.unrealized_pnl_percent,
                "current_price": self.current_price,
                "price_updated_at": (
                    self.price_updated_at.isoformat() if self.price_updated_at else None
                ),
            })

        return data
