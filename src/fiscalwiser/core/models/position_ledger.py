"""
Position ledger.

Pure state transitions over a position map: buys blend the average cost,
sells reduce quantity and report realized PnL. Validation of orders, cash,
and prices happens in the engine before the ledger is called.
"""

from dataclasses import dataclass

from fiscalwiser.core.constants import QUANTITY_EPSILON
from fiscalwiser.core.exceptions.portfolio import InsufficientHoldingsError
from fiscalwiser.core.models.asset import AssetMetadata
from fiscalwiser.core.models.position import Position
from fiscalwiser.core.types.financial import (
    ZERO,
    calculate_pnl,
    is_effectively_zero,
    weighted_average_cost,
)


@dataclass(frozen=True)
class SellResult:
    """Outcome of applying a sell to a position."""

    quantity: float
    proceeds: float
    realized_pnl: float
    remaining_quantity: float

    @property
    def closed(self) -> bool:
        """True when the sell removed the position."""
        return self.remaining_quantity == ZERO


class PositionLedger:
    """Applies buys and sells to a dict[str, Position].

    Args:
        epsilon: Quantities at or below this are treated as zero
    """

    def __init__(self, epsilon: float = QUANTITY_EPSILON) -> None:
        if epsilon < 0:
            raise ValueError(f"Epsilon must be non-negative, got {epsilon}")
        self.epsilon = epsilon

    @staticmethod
    def held_quantity(positions: dict[str, Position], asset_id: str) -> float:
        """Quantity held in asset_id, 0 if absent."""
        position = positions.get(asset_id)
        return position.quantity if position else ZERO

    def can_sell(self, positions: dict[str, Position], asset_id: str, quantity: float) -> bool:
        """Check whether quantity can be sold without exceeding holdings.

        An overshoot within epsilon is accepted; it comes from converting a
        cash amount back into units.
        """
        return quantity <= self.held_quantity(positions, asset_id) + self.epsilon

    def apply_buy(
        self,
        positions: dict[str, Position],
        asset_id: str,
        quantity: float,
        unit_price: float,
        metadata: AssetMetadata | None = None,
    ) -> Position:
        """Add quantity bought at unit_price to the position map.

        Args:
            positions: Position map to mutate
            asset_id: Asset being bought
            quantity: Units bought (caller guarantees > 0)
            unit_price: Price paid per unit (caller guarantees >= 0)
            metadata: Display snapshot from the quote, kept if given

        Returns:
            The created or updated position
        """
        existing = positions.get(asset_id)
        if existing is None:
            position = Position(
                quantity=quantity,
                average_cost=unit_price,
                last_known_price=unit_price,
                last_known_metadata=metadata,
            )
            positions[asset_id] = position
            return position

        existing.average_cost = weighted_average_cost(
            existing.quantity, existing.average_cost, quantity, unit_price
        )
        existing.quantity = existing.quantity + quantity
        existing.last_known_price = unit_price
        if metadata is not None:
            existing.last_known_metadata = metadata
        return existing

    def apply_sell(
        self,
        positions: dict[str, Position],
        asset_id: str,
        quantity: float,
        unit_price: float,
    ) -> SellResult:
        """Remove quantity sold at unit_price from the position map.

        Args:
            positions: Position map to mutate
            asset_id: Asset being sold
            quantity: Units sold (caller guarantees > 0)
            unit_price: Price received per unit

        Returns:
            SellResult with proceeds and realized PnL

        Raises:
            InsufficientHoldingsError: If quantity exceeds the held quantity
        """
        held = self.held_quantity(positions, asset_id)
        if not self.can_sell(positions, asset_id, quantity):
            raise InsufficientHoldingsError(asset_id=asset_id, requested=quantity, held=held)

        position = positions[asset_id]
        remaining = held - quantity
        if is_effectively_zero(remaining, self.epsilon):
            # Selling within epsilon of the full holding sells exactly the holding
            quantity = held
            remaining = ZERO

        result = SellResult(
            quantity=quantity,
            proceeds=quantity * unit_price,
            realized_pnl=calculate_pnl(position.average_cost, unit_price, quantity),
            remaining_quantity=remaining,
        )

        if remaining == ZERO:
            del positions[asset_id]
        else:
            position.quantity = remaining
            position.last_known_price = unit_price
        return result
