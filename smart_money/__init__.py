"""Smart money wallet tracking: trade ledger, metrics, leaderboard and alerts."""

__version__ = "0.1.0"
