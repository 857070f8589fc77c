"""Test doubles and trade builders."""

from datetime import datetime, timedelta, timezone
from typing import Optional
from uuid import uuid4

from smart_money.interfaces import TokenData
from smart_money.ledger import Trade


WALLET_A = "WaLLetAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAA"
WALLET_B = "WaLLetBBBBBBBBBBBBBBBBBBBBBBBBBBBBBBBBBBBBBB"
MINT_X = "MintXXXXXXXXXXXXXXXXXXXXXXXXXXXXXXXXXXXXXXXX"
MINT_Y = "MintYYYYYYYYYYYYYYYYYYYYYYYYYYYYYYYYYYYYYYYY"

START = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


class FakeClock:
    """Manually advanced clock."""

    def __init__(self, now: datetime = START):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now += timedelta(**kwargs)
        return self.now


class StaticOracle:
    """PriceOracle over a fixed price map. Missing mints return None."""

    def __init__(self, prices: Optional[dict[str, float]] = None):
        self.prices = dict(prices or {})
        self.calls: list[str] = []

    async def get_token_data(self, token_mint: str) -> Optional[TokenData]:
        self.calls.append(token_mint)
        price = self.prices.get(token_mint)
        if price is None:
            return None
        return TokenData(token_mint=token_mint, price_usd=price)


def make_closed_trade(
    pnl_percent: float,
    entry_value: float = 1.0,
    wallet: str = WALLET_A,
    token_mint: str = MINT_X,
    token_symbol: Optional[str] = "TKN",
    entry_timestamp: datetime = START,
    hold_hours: float = 1.0,
) -> Trade:
    """Closed trade whose value and price moved by `pnl_percent`."""
    factor = 1 + pnl_percent / 100
    trade = Trade(
        id=str(uuid4()),
        wallet_address=wallet,
        token_mint=token_mint,
        token_symbol=token_symbol,
        entry_price=1.0,
        entry_amount=100,
        entry_value=entry_value,
        entry_timestamp=entry_timestamp,
    )
    return trade.close(
        exit_price=factor,
        exit_amount=100,
        exit_value=entry_value * factor,
        exit_timestamp=entry_timestamp + timedelta(hours=hold_hours),
    )


def make_open_trade(
    wallet: str = WALLET_A,
    token_mint: str = MINT_X,
    entry_price: float = 1.0,
    entry_value: float = 1.0,
) -> Trade:
    return Trade(
        id=str(uuid4()),
        wallet_address=wallet,
        token_mint=token_mint,
        entry_price=entry_price,
        entry_amount=100,
        entry_value=entry_value,
        entry_timestamp=START,
    )
