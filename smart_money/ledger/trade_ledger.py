"""
Trade ledger: the only component that mutates trade records.

Keeps every wallet's trades in insertion order and serializes mutations
per wallet so that locate -> mutate -> recompute runs without another
mutation of the same wallet interleaving.
"""

import asyncio
import logging
import math
from datetime import datetime
from typing import Awaitable, Callable, Iterable, Optional
from uuid import uuid4

from ..interfaces import PriceOracle
from ..utils.helpers import ensure_utc, short_address, utc_now
from .models import Trade

logger = logging.getLogger(__name__)

# Called with (wallet_address, trades) while the wallet lock is held
ChangeListener = Callable[[str, list[Trade]], None]

# Awaited with the recorded trade before the wallet lock is released
RecordedHook = Callable[[Trade], Awaitable[object]]


class TradeLedger:
    """
    Owns the per-wallet trade lists.

    Usage:
        ledger = TradeLedger(price_oracle=oracle, on_change=recompute)
        await ledger.record_buy(wallet, mint, "BONK", amount=1_000, quote_value=1.0)
        await ledger.record_sell(wallet, mint, amount=1_000, quote_value=1.4)
    """

    def __init__(
        self,
        price_oracle: Optional[PriceOracle] = None,
        on_change: Optional[ChangeListener] = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        """
        Initialize the ledger.

        Args:
            price_oracle: Resolves prices omitted by the caller
            on_change: Invoked after every mutation, under the wallet lock
            clock: Source of entry/exit timestamps
        """
        self.price_oracle = price_oracle
        self._on_change = on_change
        self._clock = clock

        self._trades: dict[str, list[Trade]] = {}
        self._locks: dict[str, asyncio.Lock] = {}

        # Stats
        self._buys_recorded = 0
        self._sells_recorded = 0
        self._unmatched_sells = 0
        self._price_lookup_failures = 0

    def set_change_listener(self, listener: Optional[ChangeListener]) -> None:
        """Replace the mutation listener."""
        self._on_change = listener

    def _lock_for(self, wallet_address: str) -> asyncio.Lock:
        return self._locks.setdefault(wallet_address, asyncio.Lock())

    def _notify(self, wallet_address: str) -> None:
        if self._on_change:
            self._on_change(wallet_address, list(self._trades[wallet_address]))

    async def _resolve_price(self, token_mint: str, price: Optional[float]) -> float:
        """Use the given price, else ask the oracle, else fall back to 0."""
        if price:
            return float(price)

        if not self.price_oracle:
            return 0.0

        try:
            token_data = await self.price_oracle.get_token_data(token_mint)
        except Exception as e:
            logger.error(f"Price lookup failed for {short_address(token_mint)}...: {e}")
            self._price_lookup_failures += 1
            return 0.0

        if not token_data or not token_data.price_usd:
            logger.debug(f"No price available for {short_address(token_mint)}..., recording 0")
            return 0.0

        return float(token_data.price_usd)

    @staticmethod
    def _validate_size(amount: float, quote_value: float, price: Optional[float] = None) -> None:
        values = {"amount": amount, "quote_value": quote_value}
        if price is not None:
            values["price"] = price

        for name, value in values.items():
            if math.isnan(value) or value < 0:
                raise ValueError(f"{name} must be a non-negative number, got {value}")

    async def record_buy(
        self,
        wallet_address: str,
        token_mint: str,
        token_symbol: Optional[str],
        amount: float,
        quote_value: float,
        price: Optional[float] = None,
        timestamp: Optional[datetime] = None,
        on_recorded: Optional[RecordedHook] = None,
    ) -> Trade:
        """
        Open a new trade for the wallet.

        Args:
            wallet_address: Buyer wallet
            token_mint: Token identifier
            token_symbol: Optional ticker symbol
            amount: Tokens bought
            quote_value: Quote currency spent
            price: Entry price, resolved through the oracle when omitted
            timestamp: Entry time, defaults to now. Naive values are taken as UTC
            on_recorded: Awaited with the trade while the wallet is still locked,
                so it observes exactly this mutation

        Returns:
            The recorded open trade
        """
        self._validate_size(amount, quote_value, price)
        timestamp = ensure_utc(timestamp)

        async with self._lock_for(wallet_address):
            entry_price = await self._resolve_price(token_mint, price)

            trade = Trade(
                id=str(uuid4()),
                wallet_address=wallet_address,
                token_mint=token_mint,
                token_symbol=token_symbol,
                entry_price=entry_price,
                entry_amount=amount,
                entry_value=quote_value,
                entry_timestamp=timestamp or self._clock(),
            )

            self._trades.setdefault(wallet_address, []).append(trade)
            self._buys_recorded += 1
            self._notify(wallet_address)

            if on_recorded:
                await on_recorded(trade)

        logger.debug(
            f"Recorded buy for {short_address(wallet_address)}... - "
            f"{token_symbol or short_address(token_mint)}"
        )
        return trade

    async def record_sell(
        self,
        wallet_address: str,
        token_mint: str,
        amount: float,
        quote_value: float,
        price: Optional[float] = None,
        timestamp: Optional[datetime] = None,
        on_recorded: Optional[RecordedHook] = None,
    ) -> Optional[Trade]:
        """
        Close the first open trade for (wallet, token) in list order.

        A sell without a matching open trade changes nothing and returns None;
        `on_recorded` is not called in that case.

        Returns:
            The closed trade, or None when no open trade matched
        """
        self._validate_size(amount, quote_value, price)
        timestamp = ensure_utc(timestamp)

        async with self._lock_for(wallet_address):
            trades = self._trades.get(wallet_address, [])
            index = next(
                (i for i, t in enumerate(trades) if t.token_mint == token_mint and t.is_open),
                None,
            )

            if index is None:
                self._unmatched_sells += 1
                logger.debug(
                    f"No open trade found for {short_address(wallet_address)}... - "
                    f"{short_address(token_mint)}"
                )
                return None

            exit_price = await self._resolve_price(token_mint, price)

            # Re-read the slot: the refresher may have swapped in an annotated copy
            closed = trades[index].close(
                exit_price=exit_price,
                exit_amount=amount,
                exit_value=quote_value,
                exit_timestamp=timestamp or self._clock(),
            )
            trades[index] = closed
            self._sells_recorded += 1
            self._notify(wallet_address)

            if on_recorded:
                await on_recorded(closed)

        logger.debug(
            f"Recorded sell for {short_address(wallet_address)}... - "
            f"{closed.token_symbol or short_address(token_mint)} "
            f"({closed.profit_loss_percent:+.1f}%)"
        )
        return closed

    def load_trades(self, trades: Iterable[Trade]) -> int:
        """
        Seed the ledger with existing trades, e.g. from a replay or backup.

        Returns:
            Number of trades loaded
        """
        touched: set[str] = set()
        count = 0
        for trade in trades:
            self._trades.setdefault(trade.wallet_address, []).append(trade)
            touched.add(trade.wallet_address)
            count += 1

        for wallet_address in touched:
            self._notify(wallet_address)

        logger.info(f"Loaded {count} trades for {len(touched)} wallets")
        return count

    def replace_trade(self, old: Trade, new: Trade) -> bool:
        """
        Swap an open trade record for an annotated copy.

        Only succeeds while the ledger slot still holds `old`, so a trade
        closed in the meantime is never reverted to open.
        """
        if not new.is_open:
            raise ValueError("replace_trade only accepts open trades")

        trades = self._trades.get(old.wallet_address, [])
        for i, current in enumerate(trades):
            if current is old:
                trades[i] = new
                return True
        return False

    def has_wallet(self, wallet_address: str) -> bool:
        """Whether the wallet has ever had a trade recorded."""
        return wallet_address in self._trades

    def wallets(self) -> list[str]:
        """All wallets with recorded trades."""
        return list(self._trades.keys())

    def get_trades(self, wallet_address: str) -> list[Trade]:
        """Trades for a wallet, in insertion order."""
        return list(self._trades.get(wallet_address, []))

    def open_trades(self) -> list[Trade]:
        """Snapshot of all open trades across wallets."""
        return [
            trade
            for trades in self._trades.values()
            for trade in trades
            if trade.is_open
        ]

    @property
    def stats(self) -> dict:
        """Get ledger statistics."""
        return {
            "wallets": len(self._trades),
            "trades": sum(len(t) for t in self._trades.values()),
            "buys_recorded": self._buys_recorded,
            "sells_recorded": self._sells_recorded,
            "unmatched_sells": self._unmatched_sells,
            "price_lookup_failures": self._price_lookup_failures,
        }
