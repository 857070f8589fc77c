"""Metrics calculation module."""

from .calculator import MetricsCalculator
from .models import MetricsResult, ProfileWallet, TradeRef, WalletMetrics

__all__ = ["MetricsCalculator", "MetricsResult", "ProfileWallet", "TradeRef", "WalletMetrics"]
