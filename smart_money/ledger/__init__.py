"""Trade ledger module."""

from .models import Trade, TradeAction, TradeStatus
from .trade_ledger import TradeLedger

__all__ = ["Trade", "TradeAction", "TradeStatus", "TradeLedger"]
