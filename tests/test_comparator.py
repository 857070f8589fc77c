"""Tests for wallet-vs-wallet and wallet-vs-leader comparison."""

from unittest.mock import MagicMock

import pytest

from smart_money.metrics import WalletMetrics
from smart_money.scoring import Leaderboard, WalletComparator, WalletProfiler
from smart_money.scoring.comparator import SIMILAR, WALLET1, WALLET2

from tests.helpers import MINT_X, MINT_Y, START, WALLET_A, WALLET_B, make_closed_trade


def metrics(address, closed=10, win_rate=60.0, roi=50.0, pnl=5.0, pf=1.5, **kwargs):
    return WalletMetrics(
        wallet_address=address,
        last_updated=START,
        total_trades=closed,
        closed_trades=closed,
        win_rate=win_rate,
        total_roi=roi,
        total_pnl=pnl,
        profit_factor=pf,
        **kwargs,
    )


def comparator(snapshots, profiler=None, trades=None):
    leaderboard = Leaderboard(snapshots)
    trades_source = (lambda w: trades.get(w, [])) if trades is not None else None
    return WalletComparator(snapshots.get, leaderboard, profiler=profiler, trades_source=trades_source)


class TestCompareStat:
    def test_dead_zone(self):
        assert WalletComparator.compare_stat(105, 100) == SIMILAR
        assert WalletComparator.compare_stat(111, 100) == WALLET1
        assert WalletComparator.compare_stat(100, 111) == WALLET2

    def test_composite_score(self):
        m = metrics("a", win_rate=60, roi=200, pf=2)
        assert WalletComparator.composite_score(m) == pytest.approx(100)
        assert WalletComparator.composite_score(None) == 0


class TestCompareWallets:
    def test_none_when_neither_known(self):
        assert comparator({}).compare_wallets(WALLET_A, WALLET_B) is None

    def test_one_sided_comparison(self):
        snapshots = {WALLET_A: metrics(WALLET_A)}
        result = comparator(snapshots).compare_wallets(WALLET_A, WALLET_B)

        assert result is not None
        assert result.wallet2.metrics is None
        assert result.performance.win_rate_diff == 60.0
        assert result.performance.better == WALLET1

    def test_differences_and_winner(self):
        snapshots = {
            WALLET_A: metrics(WALLET_A, win_rate=50, roi=20, pnl=2, pf=1),
            WALLET_B: metrics(WALLET_B, win_rate=80, roi=300, pnl=30, pf=3),
        }
        result = comparator(snapshots).compare_wallets(WALLET_A, WALLET_B)

        assert result.performance.win_rate_diff == -30
        assert result.performance.roi_diff == -280
        assert result.performance.pnl_diff == -28
        assert result.performance.profit_factor_diff == -2
        assert result.performance.better == WALLET2
        assert result.better_for["profitability"] == WALLET2
        assert result.better_for["risk_management"] == WALLET2

    def test_without_profiles_traits_are_unknown(self):
        snapshots = {WALLET_A: metrics(WALLET_A), WALLET_B: metrics(WALLET_B)}
        result = comparator(snapshots).compare_wallets(WALLET_A, WALLET_B)

        assert result.trading_style.wallet1 == "unknown"
        assert result.trading_style.similar is True
        assert result.strategy_similarity == 80
        assert result.better_for["consistency"] == SIMILAR

    @pytest.mark.asyncio
    async def test_with_profiles(self):
        snapshots = {
            WALLET_A: metrics(WALLET_A, avg_hold_duration=10),
            WALLET_B: metrics(WALLET_B, avg_hold_duration=5),
        }
        profiler = WalletProfiler(snapshots.get)
        await profiler.generate_profile(WALLET_A)
        await profiler.generate_profile(WALLET_B)

        result = comparator(snapshots, profiler=profiler).compare_wallets(WALLET_A, WALLET_B)

        assert result.trading_style.wallet1 == "day_trader"
        assert result.trading_style.similar is True
        # 40 + 40 + (1 - 5/10) * 20
        assert result.strategy_similarity == pytest.approx(90)

    def test_profiler_failure_is_tolerated(self):
        profiler = MagicMock()
        profiler.get_profile.side_effect = RuntimeError("profile store down")
        snapshots = {WALLET_A: metrics(WALLET_A)}

        result = comparator(snapshots, profiler=profiler).compare_wallets(WALLET_A, WALLET_B)

        assert result.wallet1.profile is None
        assert result.risk_appetite.wallet1 == "unknown"

    def test_common_tokens(self):
        snapshots = {WALLET_A: metrics(WALLET_A), WALLET_B: metrics(WALLET_B)}
        trades = {
            WALLET_A: [make_closed_trade(10, token_mint=MINT_X), make_closed_trade(10, token_mint=MINT_Y)],
            WALLET_B: [make_closed_trade(10, wallet=WALLET_B, token_mint=MINT_X)],
        }
        result = comparator(snapshots, trades=trades).compare_wallets(WALLET_A, WALLET_B)

        assert result.common_tokens.count == 1
        assert result.common_tokens.tokens == [MINT_X]
        assert result.common_tokens.percentage == pytest.approx(50.0)


class TestCompareWithLeader:
    def test_none_without_snapshot(self):
        snapshots = {WALLET_A: metrics(WALLET_A)}
        assert comparator(snapshots).compare_with_leader(WALLET_B) is None

    def test_none_with_empty_leaderboard(self):
        snapshots = {WALLET_A: metrics(WALLET_A, closed=2)}
        assert comparator(snapshots).compare_with_leader(WALLET_A) is None

    def test_gaps_improvements_and_strengths(self):
        snapshots = {
            "leader": metrics("leader", win_rate=80, roi=300, pf=3, avg_loss_percent=10),
            WALLET_A: metrics(
                WALLET_A, win_rate=74, roi=100, pf=2.5,
                avg_loss_percent=25, current_streak=4, last_7_days_pnl=1.5,
            ),
        }
        result = comparator(snapshots).compare_with_leader(WALLET_A)

        assert result.leader.address == "leader"
        assert result.leader.rank == 1
        assert result.wallet.rank == 2
        assert result.gaps["win_rate"] == pytest.approx(6)
        assert result.gaps["roi"] == pytest.approx(200)
        assert len(result.improvements) == 3  # win rate, ROI, average loss
        assert len(result.strengths) == 4

    def test_unranked_wallet(self):
        snapshots = {
            "leader": metrics("leader"),
            WALLET_A: metrics(WALLET_A, closed=2),
        }
        result = comparator(snapshots).compare_with_leader(WALLET_A)

        assert result.wallet.rank is None
