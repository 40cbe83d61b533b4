"""
Order and execution receipt models.
"""

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

from fiscalwiser.core.enums import AmountType, OrderSide


@dataclass(frozen=True)
class Order:
    """A request to buy or sell one asset. Transient, never persisted.

    amount is a cash value or a unit count depending on amount_type.
    price, when set, is a quote the caller already holds and is used as
    the unit price instead of asking the price source.
    """

    asset_id: str
    side: OrderSide
    amount: float
    amount_type: AmountType = AmountType.CASH
    price: float | None = None

    @classmethod
    def buy(
        cls,
        asset_id: str,
        amount: float,
        amount_type: AmountType = AmountType.CASH,
        price: float | None = None,
    ) -> "Order":
        """Factory method for a buy order (cash-denominated by default)."""
        return cls(asset_id, OrderSide.BUY, amount, amount_type, price)

    @classmethod
    def sell(
        cls,
        asset_id: str,
        amount: float,
        amount_type: AmountType = AmountType.UNITS,
        price: float | None = None,
    ) -> "Order":
        """Factory method for a sell order (unit-denominated by default)."""
        return cls(asset_id, OrderSide.SELL, amount, amount_type, price)

    def to_log_context(self) -> dict[str, Any]:
        """Flatten the order for structured logging."""
        return {
            "asset_id": self.asset_id,
            "side": str(self.side),
            "amount": self.amount,
            "amount_type": str(self.amount_type),
            "price": self.price,
        }


@dataclass(frozen=True)
class ExecutionReceipt:
    """Result of a fully applied order."""

    asset_id: str
    side: OrderSide
    quantity: float
    unit_price: float
    amount: float
    cash_balance: float
    realized_pnl: float | None = None
    executed_at: datetime = field(default_factory=lambda: datetime.now(UTC))

    def to_dict(self) -> dict[str, Any]:
        """Convert receipt to dictionary."""
        return {
            "asset_id": self.asset_id,
            "side": self.side.value,
            "quantity": self.quantity,
            "unit_price": self.unit_price,
            "amount": self.amount,
            "cash_balance": self.cash_balance,
            "realized_pnl": self.realized_pnl,
            "executed_at": self.executed_at.isoformat(),
        }
