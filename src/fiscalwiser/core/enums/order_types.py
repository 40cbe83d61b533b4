"""
Order side and amount type enumerations.

This module defines the allowed order sides and how an order amount is denominated.
"""

from enum import StrEnum


class OrderSide(StrEnum):
    """
    Allowed order sides.

    Only spot trading exists: a buy adds to a position, a sell reduces it.
    """

    BUY = "buy"
    SELL = "sell"

    @property
    def is_buy(self) -> bool:
        """Check if side is a buy."""
        return self == self.BUY

    @property
    def is_sell(self) -> bool:
        """Check if side is a sell."""
        return self == self.SELL

    def opposite(self) -> "OrderSide":
        """Get the opposite order side."""
        return self.SELL if self.is_buy else self.BUY  # type: ignore[return-value]


class AmountType(StrEnum):
    """
    How an order amount is expressed.

    The crypto simulator trades cash amounts, the stock simulator trades share counts.
    """

    CASH = "cash"
    UNITS = "units"

    @property
    def is_cash(self) -> bool:
        """Check if amount is a cash value."""
        return self == self.CASH
