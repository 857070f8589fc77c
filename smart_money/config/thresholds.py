"""Qualification thresholds for leaderboard, smart money and alerts."""

from pathlib import Path
from typing import Optional

import yaml
from pydantic import BaseModel, Field


class LeaderboardThresholds(BaseModel):
    """Leaderboard eligibility."""
    min_closed_trades: int = Field(default=5, ge=0)
    default_limit: int = Field(default=10, ge=1)


class SmartMoneyThresholds(BaseModel):
    """Smart money qualification. Tuned against the average-percentage profit factor."""
    min_closed_trades: int = Field(default=10, ge=0)
    min_win_rate: float = 65
    min_total_roi: float = 100
    min_profit_factor: float = 2
    max_suggestions: int = Field(default=5, ge=1)


class AlertThresholds(BaseModel):
    """Notable-activity alert eligibility."""
    min_closed_trades: int = Field(default=5, ge=0)
    min_win_rate: float = 50


class ProfileThresholds(BaseModel):
    """Closed trades needed before a behavioral profile is built."""
    min_closed_trades: int = Field(default=3, ge=1)


class ThresholdConfig(BaseModel):
    """All qualification thresholds."""
    leaderboard: LeaderboardThresholds = Field(default_factory=LeaderboardThresholds)
    smart_money: SmartMoneyThresholds = Field(default_factory=SmartMoneyThresholds)
    alerts: AlertThresholds = Field(default_factory=AlertThresholds)
    profile: ProfileThresholds = Field(default_factory=ProfileThresholds)

    @classmethod
    def load(cls, config_path: Optional[Path] = None) -> "ThresholdConfig":
        """Load thresholds from the `thresholds` section of a YAML config."""
        config_path = config_path or Path("config.yaml")

        if not config_path.exists():
            return cls()

        with open(config_path) as f:
            data = yaml.safe_load(f) or {}

        return cls(**data.get("thresholds", {}))

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return self.model_dump()
