"""
Position domain model.
Float operations throughout; see fiscalwiser.core.types.financial.
"""

from dataclasses import dataclass

from fiscalwiser.core.exceptions.portfolio import ValidationError
from fiscalwiser.core.models.asset import AssetMetadata
from fiscalwiser.core.types.financial import ZERO, calculate_pnl, is_finite_number


@dataclass
class Position:
    """A held quantity of one asset plus its weighted-average cost basis.

    Positions are only created and changed by PositionLedger; average_cost
    moves on buys only.
    """

    quantity: float
    average_cost: float
    last_known_price: float
    last_known_metadata: AssetMetadata | None = None

    def __post_init__(self) -> None:
        """Validate position data after initialization."""
        if not is_finite_number(self.quantity) or self.quantity <= ZERO:
            raise ValidationError(f"Quantity must be positive, got {self.quantity}")
        if not is_finite_number(self.average_cost) or self.average_cost < ZERO:
            raise ValidationError(f"Average cost must be non-negative, got {self.average_cost}")
        if not is_finite_number(self.last_known_price) or self.last_known_price < ZERO:
            raise ValidationError(
                f"Last known price must be non-negative, got {self.last_known_price}"
            )

    def cost_basis(self) -> float:
        """Total amount paid for the quantity currently held."""
        return self.quantity * self.average_cost

    def market_value(self, current_price: float) -> float:
        """Calculate position value at the given price.

        Args:
            current_price: Current market price

        Returns:
            quantity * current_price
        """
        return self.quantity * current_price

    def unrealized_pnl(self, current_price: float) -> float:
        """Calculate unrealized PnL against average cost.

        Args:
            current_price: Current market price

        Returns:
            quantity * (current_price - average_cost)
        """
        return calculate_pnl(self.average_cost, current_price, self.quantity)
