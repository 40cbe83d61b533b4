"""
Latest-quote bookkeeping with request sequencing.

Every quote request for an asset takes a ticket; a result is only accepted
if its ticket is still the newest one issued for that asset. Older results
that arrive late are discarded.
"""

from collections.abc import Iterable, Mapping

from fiscalwiser.core.models.asset import Quote


class QuoteBook:
    """Most recent accepted quote per asset."""

    def __init__(self) -> None:
        self._quotes: dict[str, Quote] = {}
        self._issued: dict[str, int] = {}

    def issue_ticket(self, asset_id: str) -> int:
        """Register a new request for asset_id and return its ticket."""
        ticket = self._issued.get(asset_id, 0) + 1
        self._issued[asset_id] = ticket
        return ticket

    def is_current(self, asset_id: str, ticket: int) -> bool:
        """True if no newer request for asset_id has been issued."""
        return self._issued.get(asset_id) == ticket

    def accept(self, asset_id: str, ticket: int, quote: Quote | None) -> bool:
        """Store quote if ticket is still current.

        Returns:
            True if the result was current (even when quote is None)
        """
        if not self.is_current(asset_id, ticket):
            return False
        if quote is not None:
            self._quotes[asset_id] = quote
        return True

    def record(self, asset_id: str, quote: Quote) -> None:
        """Store a quote obtained outside the ticket flow (e.g. during execution).

        Counts as the newest request, so pending older requests go stale.
        """
        self.issue_ticket(asset_id)
        self._quotes[asset_id] = quote

    def get(self, asset_id: str) -> Quote | None:
        """Latest accepted quote for asset_id."""
        return self._quotes.get(asset_id)

    def snapshot(self, asset_ids: Iterable[str] | None = None) -> Mapping[str, Quote]:
        """Copy of the accepted quotes, optionally limited to asset_ids."""
        if asset_ids is None:
            return dict(self._quotes)
        return {
            asset_id: self._quotes[asset_id] for asset_id in asset_ids if asset_id in self._quotes
        }

    def clear(self) -> None:
        """Forget all quotes. Outstanding tickets become stale."""
        self._quotes.clear()
        self._issued = {asset_id: ticket + 1 for asset_id, ticket in self._issued.items()}
