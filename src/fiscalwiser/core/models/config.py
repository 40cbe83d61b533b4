"""
Engine configuration model.
"""

import math
from dataclasses import dataclass

from fiscalwiser.core.constants import (
    DEFAULT_HISTORY_LENGTH,
    DEFAULT_STARTING_BALANCE,
    MAX_STARTING_BALANCE,
    MIN_STARTING_BALANCE,
    QUANTITY_EPSILON,
)
from fiscalwiser.core.exceptions.portfolio import ValidationError


@dataclass(frozen=True)
class EngineConfig:
    """Tunables for one PortfolioEngine.

    Stocks and crypto can use different epsilons: share counts are coarse,
    crypto units are tiny.
    """

    quantity_epsilon: float = QUANTITY_EPSILON
    default_starting_balance: float = DEFAULT_STARTING_BALANCE
    min_starting_balance: float = MIN_STARTING_BALANCE
    max_starting_balance: float = MAX_STARTING_BALANCE
    history_length: int = DEFAULT_HISTORY_LENGTH

    def is_valid_epsilon(self) -> bool:
        """Validate epsilon is a small non-negative tolerance."""
        return math.isfinite(self.quantity_epsilon) and 0.0 <= self.quantity_epsilon < 1.0

    def is_valid_balance_range(self) -> bool:
        """Validate the reset bounds and that the default lies within them."""
        return (
            0.0 <= self.min_starting_balance <= self.max_starting_balance
            and self.min_starting_balance
            <= self.default_starting_balance
            <= self.max_starting_balance
        )

    def is_valid_history_length(self) -> bool:
        """Validate history keeps at least one point."""
        return self.history_length > 0

    def validate(self) -> "EngineConfig":
        """Raise ValidationError describing the first invalid setting."""
        if not self.is_valid_epsilon():
            raise ValidationError(
                f"quantity_epsilon must be in [0, 1), got {self.quantity_epsilon}"
            )
        if not self.is_valid_balance_range():
            raise ValidationError(
                "Starting balance bounds are inconsistent: "
                f"min={self.min_starting_balance}, default={self.default_starting_balance}, "
                f"max={self.max_starting_balance}"
            )
        if not self.is_valid_history_length():
            raise ValidationError(f"history_length must be positive, got {self.history_length}")
        return self

    def to_dict(self) -> dict:
        """Convert config to dictionary."""
        return {
            "quantity_epsilon": self.quantity_epsilon,
            "default_starting_balance": self.default_starting_balance,
            "min_starting_balance": self.min_starting_balance,
            "max_starting_balance": self.max_starting_balance,
            "history_length": self.history_length,
        }
