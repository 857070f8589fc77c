"""Price data clients."""

from .dexscreener import DexScreenerAPI

__all__ = ["DexScreenerAPI"]
