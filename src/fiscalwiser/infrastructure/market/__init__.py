"""
Market data infrastructure.

Price sources consumed by the portfolio engine.
"""

from .coingecko import CoinGeckoPriceSource
from .price_sources import CachedPriceSource, StaticPriceSource

__all__ = ["CachedPriceSource", "CoinGeckoPriceSource", "StaticPriceSource"]
