"""DexScreener price client."""

import logging
from typing import Optional

import aiohttp

from ..config.settings import DexScreenerConfig, get_settings
from ..interfaces import TokenData
from ..utils.helpers import short_address
from ..utils.rate_limiter import RateLimiter

logger = logging.getLogger(__name__)


class DexScreenerAPI:
    """
    Token prices from the DexScreener public API.

    Picks the highest-liquidity pair on the configured chain. Failed
    requests raise; callers decide whether a missing price matters.

    Usage:
        async with DexScreenerAPI() as api:
            data = await api.get_token_data(mint)
    """

    def __init__(self, config: Optional[DexScreenerConfig] = None):
        self.config = config or get_settings().dexscreener
        self.base_url = self.config.base_url.rstrip("/")
        self._session: Optional[aiohttp.ClientSession] = None
        self._rate_limiter = RateLimiter(calls_per_minute=self.config.rate_limit)

        # Stats
        self._requests = 0
        self._errors = 0

    async def __aenter__(self):
        await self._ensure_session()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def _ensure_session(self):
        """Ensure we have an active session."""
        if not self._session or self._session.closed:
            timeout = aiohttp.ClientTimeout(total=self.config.timeout_seconds)
            self._session = aiohttp.ClientSession(timeout=timeout)

    async def close(self) -> None:
        """Close the HTTP session."""
        if self._session and not self._session.closed:
            await self._session.close()
        self._session = None

    async def get_token_pairs(self, token_mint: str) -> list[dict]:
        """All pairs for a token on the configured chain."""
        await self._ensure_session()
        await self._rate_limiter.acquire()

        url = f"{self.base_url}/tokens/{token_mint}"
        self._requests += 1

        async with self._session.get(url) as response:
            if response.status != 200:
                self._errors += 1
                text = await response.text()
                logger.error(f"DexScreener API error: {response.status} - {text[:200]}")
                raise Exception(f"DexScreener API error: {response.status}")

            data = await response.json()

        pairs = data.get("pairs") or []
        return [p for p in pairs if p.get("chainId") == self.config.chain_id]

    async def get_token_data(self, token_mint: str) -> Optional[TokenData]:
        """
        Price of the token's most liquid pair.

        Returns None when the token has no pairs or no usable price.
        """
        pairs = await self.get_token_pairs(token_mint)
        if not pairs:
            logger.debug(f"No pairs found for {short_address(token_mint)}...")
            return None

        best = max(pairs, key=lambda p: float((p.get("liquidity") or {}).get("usd") or 0))

        try:
            price = float(best.get("priceUsd") or 0)
        except (TypeError, ValueError):
            price = 0

        if price <= 0:
            return None

        base_token = best.get("baseToken") or {}
        return TokenData(
            token_mint=token_mint,
            price_usd=price,
            symbol=base_token.get("symbol"),
            liquidity_usd=float((best.get("liquidity") or {}).get("usd") or 0),
            pair_address=best.get("pairAddress"),
        )

    @property
    def stats(self) -> dict:
        """Get client statistics."""
        return {
            "requests": self._requests,
            "errors": self._errors,
            "throttled": self._rate_limiter.throttled,
        }
