"""Behavioral wallet profiling from performance snapshots."""

import logging
from dataclasses import dataclass, asdict
from datetime import datetime
from enum import Enum
from typing import Callable, Optional

from ..config.thresholds import ThresholdConfig
from ..metrics.models import WalletMetrics
from ..utils.helpers import short_address, utc_now

logger = logging.getLogger(__name__)


class TradingStyle(str, Enum):
    """Trading style by typical hold time."""
    SCALPER = "scalper"
    DAY_TRADER = "day_trader"
    SWING_TRADER = "swing_trader"
    LONG_TERM_HOLDER = "long_term_holder"
    INACTIVE = "inactive"


class EntryTiming(str, Enum):
    """Entry timing pattern."""
    EARLY_BIRD = "early_bird"
    DIP_BUYER = "dip_buyer"
    FOMO = "fomo"
    MIXED = "mixed"


class RiskAppetite(str, Enum):
    """Risk appetite bucket."""
    CONSERVATIVE = "conservative"
    MODERATE = "moderate"
    AGGRESSIVE = "aggressive"
    DEGEN = "degen"


@dataclass(frozen=True)
class WalletProfile:
    """Behavioral profile of a wallet."""

    wallet_address: str
    trading_style: TradingStyle
    trading_style_confidence: int
    trading_style_description: str
    entry_timing: EntryTiming
    entry_timing_confidence: int
    risk_appetite: RiskAppetite
    risk_appetite_confidence: int
    avg_hold_duration: float  # hours
    streakiness: float  # 0-100
    consistency: int  # 0-100
    profile_confidence: int  # 0-100
    data_points: int
    last_updated: datetime
    wallet_label: Optional[str] = None

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        data = asdict(self)
        data["trading_style"] = self.trading_style.value
        data["entry_timing"] = self.entry_timing.value
        data["risk_appetite"] = self.risk_appetite.value
        data["last_updated"] = self.last_updated.isoformat()
        return data


class WalletProfiler:
    """
    Classify wallets by trading style, entry timing and risk appetite.

    Profiles are derived from the wallet's metrics snapshot only, so they
    can be rebuilt cheaply after every trade.

    Usage:
        profiler = WalletProfiler(metrics_source=tracker.get_metrics)
        await profiler.generate_profile(address)
        profiler.get_profile(address).trading_style
    """

    # Assumed tracking window for trade frequency
    ACTIVE_DAYS = 30

    def __init__(
        self,
        metrics_source: Optional[Callable[[str], Optional[WalletMetrics]]] = None,
        thresholds: Optional[ThresholdConfig] = None,
    ):
        self.metrics_source = metrics_source
        self.thresholds = thresholds or ThresholdConfig()
        self._profiles: dict[str, WalletProfile] = {}

    def bind(self, metrics_source: Callable[[str], Optional[WalletMetrics]]) -> None:
        """Attach the metrics lookup after construction."""
        self.metrics_source = metrics_source

    async def generate_profile(self, wallet_address: str) -> Optional[WalletProfile]:
        """
        Generate or update the profile for a wallet.

        Returns None when the wallet does not have enough closed trades.
        """
        metrics = self.metrics_source(wallet_address) if self.metrics_source else None
        if not metrics or metrics.closed_trades < self.thresholds.profile.min_closed_trades:
            return None

        profile = self.build_profile(metrics)
        self._profiles[wallet_address] = profile

        logger.debug(
            f"Generated profile for {metrics.label or short_address(wallet_address) + '...'} - "
            f"{profile.trading_style.value}, {profile.risk_appetite.value}"
        )
        return profile

    def build_profile(self, metrics: WalletMetrics) -> WalletProfile:
        """Classify a snapshot into a profile."""
        style, style_confidence, description = self.classify_trading_style(metrics)
        risk, risk_confidence = self.classify_risk_appetite(metrics)
        timing, timing_confidence = self.classify_entry_timing(metrics)

        max_streak = max(metrics.max_win_streak, metrics.max_loss_streak)
        streakiness = min(100.0, max_streak / metrics.closed_trades * 100) if metrics.closed_trades else 0.0

        data_boost = min(20, metrics.closed_trades * 2)
        profile_confidence = round(
            style_confidence * 0.3
            + risk_confidence * 0.3
            + timing_confidence * 0.2
            + data_boost * 0.2
        )

        return WalletProfile(
            wallet_address=metrics.wallet_address,
            wallet_label=metrics.label,
            trading_style=style,
            trading_style_confidence=style_confidence,
            trading_style_description=description,
            entry_timing=timing,
            entry_timing_confidence=timing_confidence,
            risk_appetite=risk,
            risk_appetite_confidence=risk_confidence,
            avg_hold_duration=metrics.avg_hold_duration,
            streakiness=streakiness,
            consistency=self.score_consistency(metrics.closed_trades),
            profile_confidence=profile_confidence,
            data_points=metrics.closed_trades,
            last_updated=utc_now(),
        )

    @classmethod
    def classify_trading_style(cls, metrics: WalletMetrics) -> tuple[TradingStyle, int, str]:
        """Style from average hold time, confidence boosted when frequency agrees."""
        avg_hold = metrics.avg_hold_duration
        trades_per_day = metrics.closed_trades / cls.ACTIVE_DAYS

        if avg_hold < 2:
            style, confidence = TradingStyle.SCALPER, 80
            description = "Quick in-and-out trades, rarely holds positions"
            if trades_per_day > 5:
                confidence += 15
        elif avg_hold < 24:
            style, confidence = TradingStyle.DAY_TRADER, 75
            description = "Closes positions within the same day"
            if trades_per_day > 2:
                confidence += 10
        elif avg_hold < 72:
            style, confidence = TradingStyle.SWING_TRADER, 70
            description = "Holds for several days to capture medium-term moves"
            if trades_per_day <= 2:
                confidence += 10
        else:
            style, confidence = TradingStyle.LONG_TERM_HOLDER, 65
            description = "Patient holder waiting for larger moves"
            if trades_per_day < 1:
                confidence += 10

        return style, min(100, confidence), description

    @staticmethod
    def classify_risk_appetite(metrics: WalletMetrics) -> tuple[RiskAppetite, int]:
        """Risk bucket from win rate, swing size, streak length and ROI."""
        risk_score = 0
        confidence = 60

        # Win rate (lower = more aggressive)
        if metrics.win_rate < 50:
            risk_score += 30
        elif metrics.win_rate < 60:
            risk_score += 20
        elif metrics.win_rate < 70:
            risk_score += 10
        else:
            confidence += 10

        # Average swing size
        avg_swing = (metrics.avg_profit_percent + metrics.avg_loss_percent) / 2
        if avg_swing > 100:
            risk_score += 30
        elif avg_swing > 50:
            risk_score += 20
        elif avg_swing > 25:
            risk_score += 10

        # Streak length
        max_streak = max(metrics.max_win_streak, metrics.max_loss_streak)
        if max_streak > 10:
            risk_score += 20
        elif max_streak > 5:
            risk_score += 10

        # ROI volatility
        if metrics.total_roi > 500:
            risk_score += 20
        elif metrics.total_roi > 200:
            risk_score += 10

        if risk_score >= 70:
            appetite = RiskAppetite.DEGEN
        elif risk_score >= 50:
            appetite = RiskAppetite.AGGRESSIVE
        elif risk_score >= 30:
            appetite = RiskAppetite.MODERATE
        else:
            appetite = RiskAppetite.CONSERVATIVE

        return appetite, min(100, confidence)

    @staticmethod
    def classify_entry_timing(metrics: WalletMetrics) -> tuple[EntryTiming, int]:
        """Heuristic entry timing from win rate and hold time."""
        if metrics.win_rate > 70 and metrics.avg_hold_duration > 48:
            return EntryTiming.EARLY_BIRD, 65
        if metrics.win_rate > 60 and metrics.avg_hold_duration < 48:
            return EntryTiming.DIP_BUYER, 60
        if metrics.win_rate < 50:
            return EntryTiming.FOMO, 70
        return EntryTiming.MIXED, 55

    @staticmethod
    def score_consistency(closed_trades: int) -> int:
        """Regularity estimate from the number of closed trades."""
        if closed_trades > 50:
            return 90
        elif closed_trades > 20:
            return 70
        elif closed_trades > 10:
            return 50
        return 30

    def get_profile(self, wallet_address: str) -> Optional[WalletProfile]:
        """Get the stored profile for a wallet."""
        return self._profiles.get(wallet_address)

    def get_all_profiles(self) -> list[WalletProfile]:
        """Get all stored profiles."""
        return list(self._profiles.values())

    def find_by_trading_style(
        self,
        style: TradingStyle,
        min_confidence: int = 60
    ) -> list[WalletProfile]:
        """Profiles with the given style, most confident first."""
        results = [
            p for p in self._profiles.values()
            if p.trading_style == style and p.trading_style_confidence >= min_confidence
        ]
        return sorted(results, key=lambda p: p.trading_style_confidence, reverse=True)

    def find_by_risk_appetite(
        self,
        appetite: RiskAppetite,
        min_confidence: int = 60
    ) -> list[WalletProfile]:
        """Profiles with the given risk appetite, most confident first."""
        results = [
            p for p in self._profiles.values()
            if p.risk_appetite == appetite and p.risk_appetite_confidence >= min_confidence
        ]
        return sorted(results, key=lambda p: p.risk_appetite_confidence, reverse=True)

    def find_similar_wallets(self, wallet_address: str, limit: int = 5) -> list[WalletProfile]:
        """Wallets sharing more than half of style, risk and timing traits."""
        profile = self.get_profile(wallet_address)
        if not profile:
            return []

        scored = []
        for other in self._profiles.values():
            if other.wallet_address == wallet_address:
                continue

            similarity = 0
            if other.trading_style == profile.trading_style:
                similarity += 40
            if other.risk_appetite == profile.risk_appetite:
                similarity += 40
            if other.entry_timing == profile.entry_timing:
                similarity += 20

            if similarity > 50:
                scored.append((similarity, other))

        scored.sort(key=lambda s: s[0], reverse=True)
        return [p for _, p in scored[:limit]]

    async def refresh_all_profiles(self) -> int:
        """Rebuild every stored profile. Returns the number refreshed."""
        refreshed = 0
        for address in list(self._profiles.keys()):
            try:
                if await self.generate_profile(address):
                    refreshed += 1
            except Exception as e:
                logger.error(f"Failed to refresh profile for {short_address(address)}...: {e}")

        logger.info(f"Refreshed {refreshed} profiles")
        return refreshed
