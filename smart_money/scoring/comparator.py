"""Side-by-side wallet comparison."""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Optional

from ..interfaces import WalletProfilerProtocol
from ..ledger.models import Trade
from ..metrics.models import WalletMetrics
from ..utils.helpers import calculate_percentage, short_address, utc_now
from .leaderboard import Leaderboard

logger = logging.getLogger(__name__)

WALLET1 = "wallet1"
WALLET2 = "wallet2"
SIMILAR = "similar"

# One side must beat the other by more than this factor to win
DEAD_ZONE = 1.1


@dataclass
class ComparedWallet:
    """One side of a comparison."""
    address: str
    label: Optional[str]
    metrics: Optional[WalletMetrics]
    profile: Any = None
    rank: Optional[int] = None


@dataclass
class PerformanceComparison:
    """Field-wise differences, wallet1 minus wallet2."""
    win_rate_diff: float
    roi_diff: float
    pnl_diff: float
    profit_factor_diff: float
    better: str


@dataclass
class TraitComparison:
    """A categorical trait from the profiler."""
    wallet1: str
    wallet2: str
    similar: bool


@dataclass
class CommonTokens:
    """Tokens both wallets traded."""
    count: int = 0
    percentage: float = 0  # of all unique tokens across both wallets
    tokens: list[str] = field(default_factory=list)


@dataclass
class WalletComparison:
    """Result of comparing two wallets."""
    wallet1: ComparedWallet
    wallet2: ComparedWallet
    performance: PerformanceComparison
    trading_style: TraitComparison
    risk_appetite: TraitComparison
    common_tokens: CommonTokens
    strategy_similarity: float  # 0-100
    better_for: dict[str, str]
    timestamp: datetime


@dataclass
class LeaderboardComparison:
    """Gap analysis of a wallet against the leaderboard leader."""
    wallet: ComparedWallet
    leader: ComparedWallet
    gaps: dict[str, float]
    improvements: list[str]
    strengths: list[str]
    timestamp: datetime


class WalletComparator:
    """
    Compare wallets against each other or against the leaderboard #1.

    Usage:
        comparator = WalletComparator(tracker.get_metrics, leaderboard, profiler)
        comparison = comparator.compare_wallets(addr_a, addr_b)
        if comparison:
            print(comparison.performance.better)
    """

    def __init__(
        self,
        metrics_source: Callable[[str], Optional[WalletMetrics]],
        leaderboard: Leaderboard,
        profiler: Optional[WalletProfilerProtocol] = None,
        trades_source: Optional[Callable[[str], list[Trade]]] = None,
    ):
        self.metrics_source = metrics_source
        self.leaderboard = leaderboard
        self.profiler = profiler
        self.trades_source = trades_source

    @staticmethod
    def composite_score(metrics: Optional[WalletMetrics]) -> float:
        """win rate + ROI / 10 + profit factor * 10, zero for a missing wallet."""
        if not metrics:
            return 0
        return metrics.win_rate + metrics.total_roi / 10 + metrics.profit_factor * 10

    @staticmethod
    def compare_stat(stat1: float, stat2: float) -> str:
        """Winner of a stat with a 10% dead zone."""
        if stat1 > stat2 * DEAD_ZONE:
            return WALLET1
        if stat2 > stat1 * DEAD_ZONE:
            return WALLET2
        return SIMILAR

    def _get_profile(self, wallet_address: str) -> Any:
        if not self.profiler:
            return None
        try:
            return self.profiler.get_profile(wallet_address)
        except Exception as e:
            logger.warning(f"Profile lookup failed for {short_address(wallet_address)}...: {e}")
            return None

    @staticmethod
    def _trait(profile: Any, name: str) -> str:
        value = getattr(profile, name, None) if profile else None
        if value is None:
            return "unknown"
        return getattr(value, "value", value)

    @staticmethod
    def strategy_similarity(profile1: Any, profile2: Any, style_match: bool, risk_match: bool) -> float:
        """
        0-100 similarity: 40 for matching style, 40 for matching risk,
        up to 20 for closeness of average hold duration.
        """
        similarity = 0.0
        if style_match:
            similarity += 40
        if risk_match:
            similarity += 40

        if profile1 and profile2:
            hold1 = getattr(profile1, "avg_hold_duration", 0) or 0
            hold2 = getattr(profile2, "avg_hold_duration", 0) or 0
            max_hold = max(hold1, hold2)
            if max_hold > 0:
                similarity += (1 - min(1, abs(hold1 - hold2) / max_hold)) * 20

        return similarity

    def _common_tokens(self, wallet1: str, wallet2: str) -> CommonTokens:
        if not self.trades_source:
            return CommonTokens()

        tokens1 = {t.token_mint for t in self.trades_source(wallet1)}
        tokens2 = {t.token_mint for t in self.trades_source(wallet2)}
        common = sorted(tokens1 & tokens2)

        return CommonTokens(
            count=len(common),
            percentage=calculate_percentage(len(common), len(tokens1 | tokens2)),
            tokens=common,
        )

    def compare_wallets(self, wallet1: str, wallet2: str) -> Optional[WalletComparison]:
        """
        Compare two wallets side by side.

        Returns None only when neither wallet has a metrics snapshot.
        """
        metrics1 = self.metrics_source(wallet1)
        metrics2 = self.metrics_source(wallet2)

        if not metrics1 and not metrics2:
            return None

        profile1 = self._get_profile(wallet1)
        profile2 = self._get_profile(wallet2)

        def field_value(metrics: Optional[WalletMetrics], name: str) -> float:
            return getattr(metrics, name) if metrics else 0

        performance = PerformanceComparison(
            win_rate_diff=field_value(metrics1, "win_rate") - field_value(metrics2, "win_rate"),
            roi_diff=field_value(metrics1, "total_roi") - field_value(metrics2, "total_roi"),
            pnl_diff=field_value(metrics1, "total_pnl") - field_value(metrics2, "total_pnl"),
            profit_factor_diff=(
                field_value(metrics1, "profit_factor") - field_value(metrics2, "profit_factor")
            ),
            better=self.compare_stat(self.composite_score(metrics1), self.composite_score(metrics2)),
        )

        style1 = self._trait(profile1, "trading_style")
        style2 = self._trait(profile2, "trading_style")
        risk1 = self._trait(profile1, "risk_appetite")
        risk2 = self._trait(profile2, "risk_appetite")

        trading_style = TraitComparison(wallet1=style1, wallet2=style2, similar=style1 == style2)
        risk_appetite = TraitComparison(wallet1=risk1, wallet2=risk2, similar=risk1 == risk2)

        better_for = {
            "consistency": self.compare_stat(
                getattr(profile1, "consistency", 0) or 0,
                getattr(profile2, "consistency", 0) or 0,
            ),
            "profitability": self.compare_stat(
                field_value(metrics1, "total_roi"), field_value(metrics2, "total_roi")
            ),
            "risk_management": self.compare_stat(
                field_value(metrics1, "profit_factor"), field_value(metrics2, "profit_factor")
            ),
        }

        return WalletComparison(
            wallet1=ComparedWallet(wallet1, metrics1.label if metrics1 else None, metrics1, profile1),
            wallet2=ComparedWallet(wallet2, metrics2.label if metrics2 else None, metrics2, profile2),
            performance=performance,
            trading_style=trading_style,
            risk_appetite=risk_appetite,
            common_tokens=self._common_tokens(wallet1, wallet2),
            strategy_similarity=self.strategy_similarity(
                profile1, profile2, trading_style.similar, risk_appetite.similar
            ),
            better_for=better_for,
            timestamp=utc_now(),
        )

    def compare_with_leader(self, wallet_address: str) -> Optional[LeaderboardComparison]:
        """
        Compare a wallet against leaderboard rank #1.

        Returns None when the wallet has no snapshot or nobody is ranked.
        """
        metrics = self.metrics_source(wallet_address)
        if not metrics:
            return None

        ranked = self.leaderboard.rank_all()
        if not ranked:
            return None

        leader = ranked[0]
        rank = next((m.rank for m in ranked if m.wallet_address == wallet_address), None)

        gaps = {
            "win_rate": leader.win_rate - metrics.win_rate,
            "roi": leader.total_roi - metrics.total_roi,
            "profit_factor": leader.profit_factor - metrics.profit_factor,
        }

        improvements = []
        if gaps["win_rate"] > 5:
            improvements.append(
                f"Improve win rate by {gaps['win_rate']:.1f}% (current: {metrics.win_rate:.1f}%)"
            )
        if gaps["roi"] > 20:
            improvements.append(
                f"Increase ROI by {gaps['roi']:.1f}% (current: {metrics.total_roi:+.1f}%)"
            )
        if gaps["profit_factor"] > 0.5:
            improvements.append(
                f"Better risk/reward ratio (PF: {metrics.profit_factor:.2f} vs {leader.profit_factor:.2f})"
            )
        if metrics.avg_loss_percent > leader.avg_loss_percent:
            improvements.append(
                f"Reduce average loss ({metrics.avg_loss_percent:.1f}% vs {leader.avg_loss_percent:.1f}%)"
            )

        strengths = []
        if metrics.win_rate >= leader.win_rate * 0.9:
            strengths.append(f"Good win rate ({metrics.win_rate:.1f}%)")
        if metrics.profit_factor >= leader.profit_factor * 0.8:
            strengths.append(f"Solid profit factor ({metrics.profit_factor:.2f}x)")
        if metrics.current_streak >= 3:
            strengths.append(f"On a winning streak ({metrics.current_streak}W)")
        if metrics.last_7_days_pnl > 0:
            strengths.append(f"Profitable last 7 days (+{metrics.last_7_days_pnl:.2f})")

        return LeaderboardComparison(
            wallet=ComparedWallet(wallet_address, metrics.label, metrics, rank=rank),
            leader=ComparedWallet(leader.wallet_address, leader.label, leader, rank=1),
            gaps=gaps,
            improvements=improvements,
            strengths=strengths,
            timestamp=utc_now(),
        )
