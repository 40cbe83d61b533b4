"""
Portfolio persistence.

Loads and saves the Portfolio record (and the value-history record) through
a StorageBackend. Loading never fails: a missing or unreadable record is
replaced by a fresh default portfolio and the problem is logged.
"""

import json
from typing import Any

from loguru import logger

from fiscalwiser.core.constants import (
    DEFAULT_HISTORY_KEY,
    DEFAULT_PORTFOLIO_KEY,
    DEFAULT_STARTING_BALANCE,
)
from fiscalwiser.core.exceptions.portfolio import PersistenceCorruptError, ValidationError
from fiscalwiser.core.interfaces.storage import StorageBackend
from fiscalwiser.core.models.asset import AssetMetadata
from fiscalwiser.core.models.portfolio import Portfolio
from fiscalwiser.core.models.position import Position
from fiscalwiser.core.types.financial import is_finite_number


def portfolio_to_record(portfolio: Portfolio) -> dict[str, Any]:
    """Minimal, schema-stable representation of a portfolio."""
    return {
        "cashBalance": portfolio.cash_balance,
        "startingBalance": portfolio.starting_balance,
        "positions": {
            asset_id: {
                "quantity": position.quantity,
                "averageCost": position.average_cost,
                "lastKnownPrice": position.last_known_price,
                "lastKnownMetadata": (
                    position.last_known_metadata.to_dict()
                    if position.last_known_metadata is not None
                    else None
                ),
            }
            for asset_id, position in portfolio.positions.items()
        },
    }


def _require_number(data: dict[str, Any], field: str) -> float:
    """Finite number as stored; ints stay ints."""
    value = data.get(field)
    if not is_finite_number(value):
        raise ValidationError(f"'{field}' must be a finite number, got {value!r}")
    return value


def _position_from_record(asset_id: str, data: Any) -> Position:
    if not isinstance(data, dict):
        raise ValidationError(f"Position '{asset_id}' must be an object")
    metadata = data.get("lastKnownMetadata")
    return Position(
        quantity=_require_number(data, "quantity"),
        average_cost=_require_number(data, "averageCost"),
        last_known_price=_require_number(data, "lastKnownPrice"),
        last_known_metadata=AssetMetadata.from_dict(metadata) if metadata is not None else None,
    )


def portfolio_from_record(record: Any) -> Portfolio:
    """Build a Portfolio from a decoded record.

    Raises:
        ValidationError: If any field is missing or out of range
    """
    if not isinstance(record, dict):
        raise ValidationError(f"Record must be an object, got {type(record).__name__}")
    positions_data = record.get("positions", {})
    if not isinstance(positions_data, dict):
        raise ValidationError("'positions' must be an object")

    positions = {}
    for asset_id, data in positions_data.items():
        if not asset_id:
            raise ValidationError("Position asset id must be non-empty")
        positions[asset_id] = _position_from_record(asset_id, data)

    return Portfolio(
        cash_balance=_require_number(record, "cashBalance"),
        starting_balance=_require_number(record, "startingBalance"),
        positions=positions,
    )


class PortfolioStore:
    """Load/save a Portfolio with defensive defaults.

    Args:
        backend: Where records live
        key: Storage key of the portfolio record
        history_key: Storage key of the value-history record
        default_starting_balance: Cash for a fresh portfolio
    """

    def __init__(
        self,
        backend: StorageBackend,
        key: str = DEFAULT_PORTFOLIO_KEY,
        history_key: str = DEFAULT_HISTORY_KEY,
        default_starting_balance: float = DEFAULT_STARTING_BALANCE,
    ) -> None:
        self.backend = backend
        self.key = key
        self.history_key = history_key
        self.default_starting_balance = default_starting_balance

    def _decode(self, key: str, raw: str) -> Any:
        try:
            return json.loads(raw)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise PersistenceCorruptError(key, f"invalid JSON: {e}") from e

    def _read_portfolio(self, raw: str) -> Portfolio:
        record = self._decode(self.key, raw)
        try:
            return portfolio_from_record(record)
        except ValidationError as e:
            raise PersistenceCorruptError(self.key, str(e)) from e

    def load(self) -> Portfolio:
        """Return the stored portfolio, or a fresh default one. Never raises."""
        raw = self.backend.get(self.key)
        if raw is None:
            logger.info(f"No stored portfolio under '{self.key}', starting fresh")
            return Portfolio.create(self.default_starting_balance)
        try:
            portfolio = self._read_portfolio(raw)
        except PersistenceCorruptError as e:
            logger.warning(f"{e}; substituting a default portfolio")
            return Portfolio.create(self.default_starting_balance)
        logger.debug(
            f"Loaded portfolio '{self.key}': cash={portfolio.cash_balance:.2f}, "
            f"positions={len(portfolio.positions)}"
        )
        return portfolio

    def save(self, portfolio: Portfolio) -> None:
        """Overwrite the stored record with portfolio (last writer wins)."""
        self.backend.set(self.key, json.dumps(portfolio_to_record(portfolio)))

    def load_history(self) -> list[float]:
        """Return stored total values, oldest first. Never raises."""
        raw = self.backend.get(self.history_key)
        if raw is None:
            return []
        try:
            values = self._decode(self.history_key, raw)
            if not isinstance(values, list) or not all(is_finite_number(v) for v in values):
                raise PersistenceCorruptError(self.history_key, "expected a list of numbers")
        except PersistenceCorruptError as e:
            logger.warning(f"{e}; starting an empty history")
            return []
        return values

    def save_history(self, values: list[float]) -> None:
        """Overwrite the stored value history."""
        self.backend.set(self.history_key, json.dumps(list(values)))

    def clear(self) -> None:
        """Remove both records."""
        self.backend.remove(self.key)
        self.backend.remove(self.history_key)
