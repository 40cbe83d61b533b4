"""
Portfolio root aggregate.

Holds cash and positions for one simulator. The engine owns the single
Portfolio instance and is the only writer; nothing here talks to storage
or market data.
"""

from dataclasses import dataclass, field

from fiscalwiser.core.constants import DEFAULT_STARTING_BALANCE
from fiscalwiser.core.exceptions.portfolio import ValidationError
from fiscalwiser.core.models.position import Position
from fiscalwiser.core.types.financial import ZERO, is_finite_number


@dataclass
class Portfolio:
    """Cash balance, starting balance, and the position map.

    Total value is never stored; PortfolioMetrics derives it from
    positions and current prices.
    """

    cash_balance: float
    starting_balance: float
    positions: dict[str, Position] = field(default_factory=dict)

    def __post_init__(self) -> None:
        """Validate portfolio data after initialization."""
        if not is_finite_number(self.cash_balance) or self.cash_balance < ZERO:
            raise ValidationError(f"Cash balance must be non-negative, got {self.cash_balance}")
        if not is_finite_number(self.starting_balance) or self.starting_balance < ZERO:
            raise ValidationError(
                f"Starting balance must be non-negative, got {self.starting_balance}"
            )

    @classmethod
    def create(cls, starting_balance: float = DEFAULT_STARTING_BALANCE) -> "Portfolio":
        """Factory method for a fresh portfolio holding only cash."""
        return cls(cash_balance=starting_balance, starting_balance=starting_balance)

    def position(self, asset_id: str) -> Position | None:
        """Position for asset_id, or None if not held."""
        return self.positions.get(asset_id)

    def held_quantity(self, asset_id: str) -> float:
        """Quantity held in asset_id. 0 if not present."""
        position = self.positions.get(asset_id)
        return position.quantity if position else ZERO

    def restart(self, starting_balance: float) -> None:
        """Drop all positions and restore cash to a new starting balance."""
        self.positions.clear()
        self.cash_balance = starting_balance
        self.starting_balance = starting_balance
