"""Tests for behavioral wallet profiling."""

import pytest

from smart_money.metrics import WalletMetrics
from smart_money.scoring import EntryTiming, RiskAppetite, TradingStyle, WalletProfiler

from tests.helpers import START, WALLET_A, WALLET_B


def metrics(address=WALLET_A, closed=12, win_rate=70.0, hold=5.0, **kwargs):
    return WalletMetrics(
        wallet_address=address,
        last_updated=START,
        total_trades=closed,
        closed_trades=closed,
        win_rate=win_rate,
        avg_hold_duration=hold,
        **kwargs,
    )


class TestTradingStyle:
    @pytest.mark.parametrize("hold,expected", [
        (0.5, TradingStyle.SCALPER),
        (10, TradingStyle.DAY_TRADER),
        (48, TradingStyle.SWING_TRADER),
        (200, TradingStyle.LONG_TERM_HOLDER),
    ])
    def test_by_hold_time(self, hold, expected):
        style, confidence, description = WalletProfiler.classify_trading_style(metrics(hold=hold))

        assert style == expected
        assert 0 < confidence <= 100
        assert description

    def test_frequent_scalper_gets_confidence_boost(self):
        _, base, _ = WalletProfiler.classify_trading_style(metrics(hold=0.5, closed=10))
        _, boosted, _ = WalletProfiler.classify_trading_style(metrics(hold=0.5, closed=200))

        assert boosted == base + 15


class TestRiskAppetite:
    def test_conservative(self):
        appetite, confidence = WalletProfiler.classify_risk_appetite(
            metrics(win_rate=80, avg_profit_percent=20, avg_loss_percent=10)
        )
        assert appetite == RiskAppetite.CONSERVATIVE
        assert confidence == 70

    def test_degen(self):
        appetite, _ = WalletProfiler.classify_risk_appetite(metrics(
            win_rate=40,
            avg_profit_percent=250,
            avg_loss_percent=60,
            max_win_streak=12,
            total_roi=800,
        ))
        assert appetite == RiskAppetite.DEGEN


@pytest.mark.parametrize("win_rate,hold,expected", [
    (75, 72, EntryTiming.EARLY_BIRD),
    (65, 12, EntryTiming.DIP_BUYER),
    (40, 12, EntryTiming.FOMO),
    (55, 12, EntryTiming.MIXED),
])
def test_entry_timing(win_rate, hold, expected):
    timing, _ = WalletProfiler.classify_entry_timing(metrics(win_rate=win_rate, hold=hold))
    assert timing == expected


class TestGenerateProfile:
    @pytest.mark.asyncio
    async def test_requires_three_closed_trades(self):
        snapshots = {WALLET_A: metrics(closed=2)}
        profiler = WalletProfiler(snapshots.get)

        assert await profiler.generate_profile(WALLET_A) is None
        assert profiler.get_profile(WALLET_A) is None

    @pytest.mark.asyncio
    async def test_unknown_wallet(self):
        profiler = WalletProfiler({}.get)
        assert await profiler.generate_profile(WALLET_A) is None

    @pytest.mark.asyncio
    async def test_stores_profile(self):
        snapshots = {WALLET_A: metrics(closed=25, label="whale", max_win_streak=5)}
        profiler = WalletProfiler(snapshots.get)

        profile = await profiler.generate_profile(WALLET_A)

        assert profiler.get_profile(WALLET_A) is profile
        assert profile.wallet_label == "whale"
        assert profile.data_points == 25
        assert profile.consistency == 70
        assert profile.streakiness == pytest.approx(20.0)
        assert 0 <= profile.profile_confidence <= 100
        assert profile.to_dict()["trading_style"] == profile.trading_style.value

    @pytest.mark.asyncio
    async def test_find_similar_and_filters(self):
        snapshots = {
            WALLET_A: metrics(WALLET_A, hold=5),
            WALLET_B: metrics(WALLET_B, hold=6),
            "other": metrics("other", hold=500, win_rate=30, total_roi=900),
        }
        profiler = WalletProfiler()
        profiler.bind(snapshots.get)
        for address in snapshots:
            await profiler.generate_profile(address)

        similar = profiler.find_similar_wallets(WALLET_A)
        assert [p.wallet_address for p in similar] == [WALLET_B]

        day_traders = profiler.find_by_trading_style(TradingStyle.DAY_TRADER)
        assert {p.wallet_address for p in day_traders} == {WALLET_A, WALLET_B}

        conservative = profiler.find_by_risk_appetite(RiskAppetite.CONSERVATIVE)
        assert {p.wallet_address for p in conservative} == {WALLET_A, WALLET_B}

        aggressive = profiler.find_by_risk_appetite(RiskAppetite.AGGRESSIVE)
        assert [p.wallet_address for p in aggressive] == ["other"]
        assert profiler.find_by_risk_appetite(RiskAppetite.AGGRESSIVE, min_confidence=61) == []

        assert {p.wallet_address for p in profiler.get_all_profiles()} == set(snapshots)
        assert await profiler.refresh_all_profiles() == 3
