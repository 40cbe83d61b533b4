"""
CoinGecko market data source for the crypto simulator.

Uses the public ``/coins/markets`` endpoint, the same one the dashboard
reads, and maps each entry to a Quote carrying the 24h change and the
display metadata (name, symbol, image).
"""

import asyncio
from typing import Any

import requests
from loguru import logger

from fiscalwiser.core.constants import COINGECKO_BASE_URL, REQUEST_TIMEOUT_SECONDS
from fiscalwiser.core.exceptions.portfolio import ValidationError
from fiscalwiser.core.interfaces.market import PriceSource
from fiscalwiser.core.models.asset import AssetMetadata, Quote


def quote_from_market_entry(entry: Any) -> Quote | None:
    """Map one ``/coins/markets`` entry to a Quote.

    Returns:
        Quote, or None if the entry has no usable price
    """
    if not isinstance(entry, dict) or not entry.get("id"):
        return None
    price = entry.get("current_price")
    if price is None:
        return None
    change = entry.get("price_change_percentage_24h")
    try:
        return Quote(
            price=float(price),
            change_24h=float(change) if change is not None else None,
            metadata=AssetMetadata(
                id=str(entry["id"]),
                name=str(entry.get("name") or ""),
                symbol=str(entry.get("symbol") or "").upper(),
                image=entry.get("image") or None,
            ),
        )
    except (TypeError, ValueError, ValidationError) as e:
        logger.warning(f"Discarding malformed market entry for {entry.get('id')}: {e}")
        return None


class CoinGeckoPriceSource(PriceSource):
    """Fetches USD quotes by CoinGecko coin id (e.g. ``bitcoin``)."""

    def __init__(
        self,
        base_url: str = COINGECKO_BASE_URL,
        timeout: float = REQUEST_TIMEOUT_SECONDS,
        session: requests.Session | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update({"Accept": "application/json"})

    def build_markets_url(self) -> str:
        """Build the markets endpoint URL."""
        return f"{self.base_url}/coins/markets"

    def fetch_markets(self, asset_ids: list[str]) -> dict[str, Quote]:
        """Blocking fetch of quotes for asset_ids. Failures yield an empty result."""
        params = {
            "vs_currency": "usd",
            "ids": ",".join(asset_ids),
            "price_change_percentage": "24h",
        }
        try:
            response = self.session.get(
                self.build_markets_url(), params=params, timeout=self.timeout
            )
            response.raise_for_status()
            payload = response.json()
        except requests.exceptions.RequestException as e:
            logger.warning(f"CoinGecko request failed for {asset_ids}: {e}")
            return {}
        except ValueError as e:
            logger.warning(f"CoinGecko returned invalid JSON: {e}")
            return {}

        if not isinstance(payload, list):
            logger.warning(f"Unexpected CoinGecko payload type: {type(payload).__name__}")
            return {}

        quotes = {}
        for entry in payload:
            quote = quote_from_market_entry(entry)
            if quote is not None and quote.metadata is not None:
                quotes[quote.metadata.id] = quote
        return quotes

    async def get_quote(self, asset_id: str) -> Quote | None:
        loop = asyncio.get_running_loop()
        quotes = await loop.run_in_executor(None, self.fetch_markets, [asset_id])
        return quotes.get(asset_id)

    async def close(self) -> None:
        self.session.close()
