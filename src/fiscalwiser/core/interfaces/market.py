"""
Market data interfaces.
"""

from abc import ABC, abstractmethod

from fiscalwiser.core.models.asset import Quote


class PriceSource(ABC):
    """Abstract interface for current price lookups.

    Quotes may be stale or missing; implementations return None instead of
    raising when an asset has no usable price.
    """

    @abstractmethod
    async def get_quote(self, asset_id: str) -> Quote | None:
        """Return the current quote for asset_id, or None if unavailable."""
        pass

    async def close(self) -> None:
        """Release any held resources."""
        return None
