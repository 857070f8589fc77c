"""
Collaborator interfaces consumed by the tracker.

Price data, watchlist storage and behavioral profiling live outside the
core. Anything satisfying these protocols can be injected into
SmartMoneyTracker.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Awaitable, Optional, Protocol, Union, runtime_checkable


@dataclass(frozen=True)
class TokenData:
    """Price snapshot for a token."""
    token_mint: str
    price_usd: float
    symbol: Optional[str] = None
    liquidity_usd: Optional[float] = None
    pair_address: Optional[str] = None


@dataclass(frozen=True)
class TrackedWallet:
    """A wallet on a chat's watchlist."""
    address: str
    label: Optional[str] = None
    added_at: Optional[datetime] = None


@runtime_checkable
class PriceOracle(Protocol):
    """Resolves current token prices."""

    async def get_token_data(self, token_mint: str) -> Optional[TokenData]:
        ...


@runtime_checkable
class Storage(Protocol):
    """Read access to user watchlists."""

    def get_all_tracked_wallet_chat_ids(self) -> list[str]:
        ...

    def get_tracked_wallets(self, chat_id: str) -> list[TrackedWallet]:
        ...

    def is_wallet_tracked(self, chat_id: str, address: str) -> bool:
        ...


@runtime_checkable
class WalletProfilerProtocol(Protocol):
    """Builds and serves behavioral wallet profiles."""

    async def generate_profile(self, wallet_address: str) -> Any:
        ...

    def get_profile(self, wallet_address: str) -> Any:
        ...


@runtime_checkable
class AlertSubscriber(Protocol):
    """Receives smart money alerts. `on_alert` may be sync or async."""

    def on_alert(self, alert: Any) -> Union[None, Awaitable[None]]:
        ...
