"""Tests for the trade ledger lifecycle and mutation rules."""

import asyncio
import logging
from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock

import pytest

from smart_money.interfaces import TokenData
from smart_money.ledger import TradeLedger, TradeStatus

from tests.helpers import MINT_X, MINT_Y, WALLET_A, make_open_trade


# ---------------------------------------------------------------------------
# Buy / sell lifecycle
# ---------------------------------------------------------------------------

class TestRecordBuy:
    @pytest.mark.asyncio
    async def test_buy_opens_trade(self, clock):
        ledger = TradeLedger(clock=clock)
        trade = await ledger.record_buy(WALLET_A, MINT_X, "BONK", 100, 1.0, price=0.01)

        assert trade.is_open
        assert trade.entry_price == 0.01
        assert trade.entry_amount == 100
        assert trade.entry_value == 1.0
        assert trade.entry_timestamp == clock.now
        assert ledger.get_trades(WALLET_A) == [trade]

    @pytest.mark.asyncio
    async def test_buy_without_price_uses_oracle(self, clock):
        oracle = MagicMock()
        oracle.get_token_data = AsyncMock(return_value=TokenData(MINT_X, price_usd=0.25))
        ledger = TradeLedger(price_oracle=oracle, clock=clock)

        trade = await ledger.record_buy(WALLET_A, MINT_X, None, 100, 1.0)

        assert trade.entry_price == 0.25
        oracle.get_token_data.assert_awaited_once_with(MINT_X)

    @pytest.mark.asyncio
    async def test_oracle_failure_records_zero_price(self, clock, caplog):
        oracle = MagicMock()
        oracle.get_token_data = AsyncMock(side_effect=RuntimeError("boom"))
        ledger = TradeLedger(price_oracle=oracle, clock=clock)

        with caplog.at_level(logging.ERROR):
            trade = await ledger.record_buy(WALLET_A, MINT_X, None, 100, 1.0)

        assert trade.entry_price == 0
        assert "Price lookup failed" in caplog.text
        assert ledger.stats["price_lookup_failures"] == 1

    @pytest.mark.asyncio
    async def test_negative_amount_rejected(self):
        ledger = TradeLedger()
        with pytest.raises(ValueError):
            await ledger.record_buy(WALLET_A, MINT_X, None, -1, 1.0, price=1.0)
        assert not ledger.has_wallet(WALLET_A)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("price", [-0.5, float("nan")])
    async def test_invalid_price_rejected(self, price):
        ledger = TradeLedger()
        with pytest.raises(ValueError, match="price"):
            await ledger.record_buy(WALLET_A, MINT_X, None, 100, 1.0, price=price)
        assert not ledger.has_wallet(WALLET_A)

    @pytest.mark.asyncio
    async def test_naive_timestamp_is_taken_as_utc(self, clock):
        ledger = TradeLedger(clock=clock)
        trade = await ledger.record_buy(
            WALLET_A, MINT_X, None, 100, 1.0, price=1.0, timestamp=datetime(2024, 5, 1, 10, 0)
        )

        assert trade.entry_timestamp == datetime(2024, 5, 1, 10, 0, tzinfo=timezone.utc)
        assert trade.entry_timestamp.tzinfo is timezone.utc


class TestRecordSell:
    @pytest.mark.asyncio
    async def test_profitable_round_trip(self, clock):
        ledger = TradeLedger(clock=clock)
        await ledger.record_buy(WALLET_A, MINT_X, "BONK", 100, 1.0, price=0.01)
        clock.advance(hours=2)

        closed = await ledger.record_sell(WALLET_A, MINT_X, 100, 1.5, price=0.015)

        assert closed.status == TradeStatus.CLOSED
        assert closed.profit_loss == pytest.approx(0.5)
        assert closed.profit_loss_percent == pytest.approx(50.0)
        assert closed.is_win is True
        assert closed.hold_duration == pytest.approx(2.0)

    @pytest.mark.asyncio
    async def test_break_even_is_not_a_win(self, clock):
        ledger = TradeLedger(clock=clock)
        await ledger.record_buy(WALLET_A, MINT_X, None, 100, 1.0, price=1.0)
        closed = await ledger.record_sell(WALLET_A, MINT_X, 100, 1.0, price=1.0)

        assert closed.profit_loss == 0
        assert closed.is_win is False

    @pytest.mark.asyncio
    async def test_zero_entry_price_gives_zero_percent(self, clock):
        ledger = TradeLedger(clock=clock)
        await ledger.record_buy(WALLET_A, MINT_X, None, 100, 1.0)
        closed = await ledger.record_sell(WALLET_A, MINT_X, 100, 2.0, price=0.02)

        assert closed.entry_price == 0
        assert closed.profit_loss == pytest.approx(1.0)
        assert closed.profit_loss_percent == 0

    @pytest.mark.asyncio
    async def test_sell_without_open_trade_is_noop(self):
        listener = MagicMock()
        ledger = TradeLedger(on_change=listener)

        result = await ledger.record_sell(WALLET_A, MINT_X, 100, 1.0, price=1.0)

        assert result is None
        assert ledger.get_trades(WALLET_A) == []
        assert not ledger.has_wallet(WALLET_A)
        listener.assert_not_called()
        assert ledger.stats["unmatched_sells"] == 1

    @pytest.mark.asyncio
    async def test_sell_closes_first_open_trade_in_order(self):
        ledger = TradeLedger()
        first = await ledger.record_buy(WALLET_A, MINT_X, None, 100, 1.0, price=1.0)
        await ledger.record_buy(WALLET_A, MINT_Y, None, 100, 1.0, price=1.0)
        second = await ledger.record_buy(WALLET_A, MINT_X, None, 50, 2.0, price=2.0)

        closed = await ledger.record_sell(WALLET_A, MINT_X, 100, 1.2, price=1.2)

        assert closed.id == first.id
        statuses = {t.id: t.status for t in ledger.get_trades(WALLET_A)}
        assert statuses[second.id] == TradeStatus.OPEN

    @pytest.mark.asyncio
    async def test_sell_ignores_other_tokens(self):
        ledger = TradeLedger()
        await ledger.record_buy(WALLET_A, MINT_Y, None, 100, 1.0, price=1.0)

        assert await ledger.record_sell(WALLET_A, MINT_X, 100, 1.0, price=1.0) is None
        assert ledger.get_trades(WALLET_A)[0].is_open

    @pytest.mark.asyncio
    async def test_negative_price_leaves_open_trade_untouched(self):
        ledger = TradeLedger()
        opened = await ledger.record_buy(WALLET_A, MINT_X, None, 100, 1.0, price=1.0)

        with pytest.raises(ValueError, match="price"):
            await ledger.record_sell(WALLET_A, MINT_X, 100, 1.0, price=-1.0)

        assert ledger.get_trades(WALLET_A) == [opened]
        assert ledger.stats["sells_recorded"] == 0


# ---------------------------------------------------------------------------
# Change notification and serialization
# ---------------------------------------------------------------------------

@pytest.mark.asyncio
async def test_change_listener_receives_trade_list_copy():
    seen = []
    ledger = TradeLedger(on_change=lambda wallet, trades: seen.append((wallet, trades)))

    await ledger.record_buy(WALLET_A, MINT_X, None, 100, 1.0, price=1.0)
    await ledger.record_sell(WALLET_A, MINT_X, 100, 2.0, price=2.0)

    assert [wallet for wallet, _ in seen] == [WALLET_A, WALLET_A]
    assert seen[0][1][0].is_open
    assert seen[1][1][0].is_closed


@pytest.mark.asyncio
async def test_recorded_hook_runs_before_wallet_is_unlocked():
    seen = []
    ledger = TradeLedger()

    async def on_recorded(trade):
        seen.append((trade.status, ledger._locks[WALLET_A].locked()))

    await ledger.record_buy(WALLET_A, MINT_X, None, 100, 1.0, price=1.0, on_recorded=on_recorded)
    await ledger.record_sell(WALLET_A, MINT_X, 100, 2.0, price=2.0, on_recorded=on_recorded)

    assert seen == [(TradeStatus.OPEN, True), (TradeStatus.CLOSED, True)]
    assert not ledger._locks[WALLET_A].locked()


@pytest.mark.asyncio
async def test_recorded_hook_skipped_for_unmatched_sell():
    hook = AsyncMock()
    ledger = TradeLedger()

    assert await ledger.record_sell(WALLET_A, MINT_X, 100, 1.0, price=1.0, on_recorded=hook) is None
    hook.assert_not_awaited()


@pytest.mark.asyncio
async def test_concurrent_sells_close_distinct_trades():
    """Two sells racing on the same wallet must not both close the same trade."""

    async def slow_price(mint):
        await asyncio.sleep(0.01)
        return TokenData(mint, price_usd=2.0)

    oracle = MagicMock()
    oracle.get_token_data = AsyncMock(side_effect=slow_price)
    ledger = TradeLedger(price_oracle=oracle)

    await ledger.record_buy(WALLET_A, MINT_X, None, 100, 1.0, price=1.0)
    await ledger.record_buy(WALLET_A, MINT_X, None, 100, 1.0, price=1.0)

    first, second = await asyncio.gather(
        ledger.record_sell(WALLET_A, MINT_X, 100, 2.0),
        ledger.record_sell(WALLET_A, MINT_X, 100, 2.0),
    )

    assert first.id != second.id
    assert all(t.is_closed for t in ledger.get_trades(WALLET_A))


# ---------------------------------------------------------------------------
# Annotation swaps
# ---------------------------------------------------------------------------

class TestReplaceTrade:
    def test_replaces_current_record(self, clock):
        ledger = TradeLedger()
        trade = make_open_trade()
        ledger.load_trades([trade])

        annotated = trade.with_market_price(2.0, clock())
        assert ledger.replace_trade(trade, annotated) is True
        assert ledger.get_trades(WALLET_A)[0].current_price == 2.0

    @pytest.mark.asyncio
    async def test_does_not_revert_closed_trade(self, clock):
        ledger = TradeLedger(clock=clock)
        trade = await ledger.record_buy(WALLET_A, MINT_X, None, 100, 1.0, price=1.0)
        annotated = trade.with_market_price(3.0, clock())

        await ledger.record_sell(WALLET_A, MINT_X, 100, 2.0, price=2.0)

        assert ledger.replace_trade(trade, annotated) is False
        assert ledger.get_trades(WALLET_A)[0].is_closed

    def test_rejects_closed_replacement(self, clock):
        ledger = TradeLedger()
        trade = make_open_trade()
        ledger.load_trades([trade])
        closed = trade.close(2.0, 100, 2.0, clock())

        with pytest.raises(ValueError):
            ledger.replace_trade(trade, closed)


def test_trade_to_dict_persist_drops_transient_fields(clock):
    trade = make_open_trade().with_market_price(2.0, clock())

    assert trade.to_dict()["unrealized_pnl_percent"] == pytest.approx(100.0)
    assert "unrealized_pnl" not in trade.to_dict(persist=True)


def test_closing_clears_transient_fields(clock):
    trade = make_open_trade().with_market_price(2.0, clock())
    closed = trade.close(1.5, 100, 1.5, clock.advance(hours=1))

    assert closed.unrealized_pnl is None
    assert closed.current_price is None
    with pytest.raises(ValueError):
        closed.close(1.5, 100, 1.5, clock())
