"""
Pydantic schemas for API request/response models.
"""

from datetime import datetime

from pydantic import BaseModel, Field

from fiscalwiser.core.enums import AmountType, OrderSide
from fiscalwiser.core.models.order import Order


class OrderRequest(BaseModel):
    """Request model for order submission."""

    asset_id: str = Field(..., min_length=1, description="Asset identifier (ticker or coin id)")
    side: OrderSide = Field(..., description="buy or sell")
    amount: float = Field(..., gt=0, description="Cash amount or unit count")
    amount_type: AmountType = Field(default=AmountType.CASH, description="cash or units")
    price: float | None = Field(default=None, gt=0, description="Quote already held by the caller")

    def to_order(self) -> Order:
        return Order(
            asset_id=self.asset_id,
            side=self.side,
            amount=self.amount,
            amount_type=self.amount_type,
            price=self.price,
        )


class ReceiptResponse(BaseModel):
    """Response model for an executed order."""

    asset_id: str
    side: OrderSide
    quantity: float
    unit_price: float
    amount: float
    cash_balance: float
    realized_pnl: float | None = None
    executed_at: datetime


class ResetRequest(BaseModel):
    """Request model for a portfolio reset."""

    starting_balance: float = Field(..., description="New cash and starting balance")


class PositionMetricsResponse(BaseModel):
    """Per-position figures."""

    asset_id: str
    quantity: float
    average_cost: float
    current_price: float
    market_value: float
    cost_basis: float
    unrealized_pnl: float
    unrealized_pnl_percent: float
    allocation_percent: float
    change_24h: float | None = None
    price_is_stale: bool
    metadata: dict | None = None


class MetricsResponse(BaseModel):
    """Response model for portfolio metrics."""

    cash_balance: float
    starting_balance: float
    equity_value: float
    total_value: float
    dollar_return: float
    percent_return: float
    unrealized_pnl: float
    trend: str
    positions: list[PositionMetricsResponse]


class ProjectionRequest(BaseModel):
    """Request model for a balance projection."""

    initial_balance: float = Field(default=0.0)
    periodic_contribution: float = Field(default=0.0)
    annual_rate: float = Field(..., description="Annual rate as a fraction (0.07 = 7%)")
    periods: int = Field(..., description="Number of periods to project")
    periods_per_year: int = Field(default=12, gt=0)


class ProjectionResponse(BaseModel):
    """Response model for a balance projection."""

    balances: list[float]
    final_balance: float
    total_contributions: float


class ErrorResponse(BaseModel):
    """Response model for errors."""

    error: str
    message: str
    details: dict | None = None


class HistoryResponse(BaseModel):
    """Recorded total values, oldest first."""

    values: list[float]
    trend: str
