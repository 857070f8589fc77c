"""Live tracking: the tracker service object, position refresher and scheduler."""

from .ticker import Ticker
from .refresher import PositionRefresher
from .tracker import SmartMoneyTracker

__all__ = ["Ticker", "PositionRefresher", "SmartMoneyTracker"]
