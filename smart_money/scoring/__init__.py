"""Ranking, profiling and comparison of wallets."""

from .leaderboard import Leaderboard
from .profiler import EntryTiming, RiskAppetite, TradingStyle, WalletProfile, WalletProfiler
from .comparator import LeaderboardComparison, WalletComparator, WalletComparison

__all__ = [
    "Leaderboard",
    "EntryTiming",
    "RiskAppetite",
    "TradingStyle",
    "WalletProfile",
    "WalletProfiler",
    "LeaderboardComparison",
    "WalletComparator",
    "WalletComparison",
]
