"""
Price source implementations.

StaticPriceSource serves fixed prices (tests, offline CLI sessions).
CachedPriceSource puts a TTL cache in front of any other source.
"""

from collections.abc import Mapping
from threading import RLock

from cachetools import TTLCache
from loguru import logger

from fiscalwiser.core.constants import DEFAULT_QUOTE_CACHE_SIZE, DEFAULT_QUOTE_TTL_SECONDS
from fiscalwiser.core.interfaces.market import PriceSource
from fiscalwiser.core.models.asset import AssetMetadata, Quote


class StaticPriceSource(PriceSource):
    """In-memory quotes set by the caller."""

    def __init__(self, prices: Mapping[str, float | Quote] | None = None) -> None:
        self._quotes: dict[str, Quote] = {}
        self.requests: list[str] = []
        for asset_id, value in (prices or {}).items():
            self.set_quote(asset_id, value if isinstance(value, Quote) else Quote(price=value))

    def set_price(
        self,
        asset_id: str,
        price: float,
        change_24h: float | None = None,
        metadata: AssetMetadata | None = None,
    ) -> None:
        """Set the quote returned for asset_id."""
        self.set_quote(asset_id, Quote(price=price, change_24h=change_24h, metadata=metadata))

    def set_quote(self, asset_id: str, quote: Quote) -> None:
        self._quotes[asset_id] = quote

    def remove(self, asset_id: str) -> None:
        """Make asset_id unavailable."""
        self._quotes.pop(asset_id, None)

    async def get_quote(self, asset_id: str) -> Quote | None:
        self.requests.append(asset_id)
        return self._quotes.get(asset_id)


class CachedPriceSource(PriceSource):
    """Caches quotes from another source for a fixed time.

    Misses (None) are not cached, so an unavailable asset is asked for again
    on the next call.
    """

    def __init__(
        self,
        source: PriceSource,
        ttl_seconds: float = DEFAULT_QUOTE_TTL_SECONDS,
        maxsize: int = DEFAULT_QUOTE_CACHE_SIZE,
    ) -> None:
        if ttl_seconds <= 0:
            raise ValueError("Cache TTL must be positive")
        if maxsize <= 0:
            raise ValueError("Cache size must be positive")
        self.source = source
        self._cache: TTLCache[str, Quote] = TTLCache(maxsize=maxsize, ttl=ttl_seconds)
        self._cache_lock = RLock()
        self.hits = 0
        self.misses = 0

    async def get_quote(self, asset_id: str) -> Quote | None:
        with self._cache_lock:
            cached = self._cache.get(asset_id)
        if cached is not None:
            self.hits += 1
            return cached

        self.misses += 1
        quote = await self.source.get_quote(asset_id)
        if quote is not None:
            with self._cache_lock:
                self._cache[asset_id] = quote
        else:
            logger.debug(f"Quote miss for {asset_id}, not cached")
        return quote

    def invalidate(self, asset_id: str | None = None) -> None:
        """Drop one cached quote, or all of them."""
        with self._cache_lock:
            if asset_id is None:
                self._cache.clear()
            else:
                self._cache.pop(asset_id, None)

    async def close(self) -> None:
        await self.source.close()
