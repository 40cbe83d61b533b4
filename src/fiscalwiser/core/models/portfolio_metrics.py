"""
Portfolio metrics and calculations.

This module derives equity, total value, returns, and per-position PnL
from a Portfolio and a set of current quotes. Nothing here mutates state.
"""

from collections.abc import Mapping
from dataclasses import asdict, dataclass, field
from typing import Any

from fiscalwiser.core.models.asset import AssetMetadata, Quote
from fiscalwiser.core.models.portfolio import Portfolio
from fiscalwiser.core.models.position import Position
from fiscalwiser.core.types.financial import (
    ZERO,
    percent_of,
    percent_return,
    round_amount,
    round_percentage,
    round_price,
)


@dataclass(frozen=True)
class PositionMetrics:
    """Derived figures for one held asset."""

    asset_id: str
    quantity: float
    average_cost: float
    current_price: float
    market_value: float
    cost_basis: float
    unrealized_pnl: float
    unrealized_pnl_percent: float
    allocation_percent: float
    change_24h: float | None
    price_is_stale: bool
    metadata: AssetMetadata | None = None

    def to_display_dict(self) -> dict[str, Any]:
        return {
            "asset_id": self.asset_id,
            "symbol": self.metadata.symbol if self.metadata is not None else None,
            "quantity": round_amount(self.quantity),
            "average_cost": round_price(self.average_cost),
            "current_price": round_price(self.current_price),
            "market_value": round_price(self.market_value),
            "unrealized_pnl": round_price(self.unrealized_pnl),
            "unrealized_pnl_percent": round_percentage(self.unrealized_pnl_percent),
            "allocation_percent": round_percentage(self.allocation_percent),
            "change_24h": self.change_24h,
            "price_is_stale": self.price_is_stale,
        }


@dataclass(frozen=True)
class PortfolioSnapshot:
    """Read-only view of a portfolio at current prices."""

    cash_balance: float
    starting_balance: float
    equity_value: float
    total_value: float
    dollar_return: float
    percent_return: float
    unrealized_pnl: float
    positions: list[PositionMetrics] = field(default_factory=list)

    def position(self, asset_id: str) -> PositionMetrics | None:
        """Metrics for asset_id, or None if not held."""
        return next((p for p in self.positions if p.asset_id == asset_id), None)

    def to_dict(self) -> dict[str, Any]:
        """Convert snapshot to dictionary."""
        return asdict(self)

    def to_display_dict(self) -> dict[str, Any]:
        """Snapshot rounded for display: money to cents, quantities to 8 places."""
        return {
            "cash_balance": round_price(self.cash_balance),
            "starting_balance": round_price(self.starting_balance),
            "equity_value": round_price(self.equity_value),
            "total_value": round_price(self.total_value),
            "dollar_return": round_price(self.dollar_return),
            "percent_return": round_percentage(self.percent_return),
            "unrealized_pnl": round_price(self.unrealized_pnl),
            "positions": [position.to_display_dict() for position in self.positions],
        }


class PortfolioMetrics:
    """Portfolio metrics and calculations.

    Current price for each position comes from the supplied quotes; a
    position without a quote is valued at its last known price and flagged
    as stale.
    """

    def __init__(self, portfolio: Portfolio) -> None:
        """Initialize with the portfolio to measure.

        Args:
            portfolio: The portfolio to calculate metrics for
        """
        self.portfolio = portfolio

    @staticmethod
    def current_price(position: Position, quote: Quote | None) -> float:
        """Quote price when available, otherwise the last known price."""
        return quote.price if quote is not None else position.last_known_price

    def snapshot(self, quotes: Mapping[str, Quote] | None = None) -> PortfolioSnapshot:
        """Compute all portfolio figures in one pass.

        Args:
            quotes: Current quotes keyed by asset id

        Returns:
            PortfolioSnapshot with per-position breakdown
        """
        quotes = quotes or {}
        rows: list[tuple[str, Position, Quote | None, float]] = []
        equity = ZERO
        for asset_id, position in self.portfolio.positions.items():
            quote = quotes.get(asset_id)
            price = self.current_price(position, quote)
            rows.append((asset_id, position, quote, price))
            equity += position.market_value(price)

        position_metrics = []
        unrealized_total = ZERO
        for asset_id, position, quote, price in rows:
            market_value = position.market_value(price)
            cost_basis = position.cost_basis()
            unrealized = position.unrealized_pnl(price)
            unrealized_total += unrealized
            position_metrics.append(
                PositionMetrics(
                    asset_id=asset_id,
                    quantity=position.quantity,
                    average_cost=position.average_cost,
                    current_price=price,
                    market_value=market_value,
                    cost_basis=cost_basis,
                    unrealized_pnl=unrealized,
                    unrealized_pnl_percent=percent_of(unrealized, cost_basis),
                    allocation_percent=percent_of(market_value, equity),
                    change_24h=quote.change_24h if quote is not None else None,
                    price_is_stale=quote is None,
                    metadata=(quote.metadata if quote is not None else None)
                    or position.last_known_metadata,
                )
            )

        total = equity + self.portfolio.cash_balance
        starting = self.portfolio.starting_balance
        return PortfolioSnapshot(
            cash_balance=self.portfolio.cash_balance,
            starting_balance=starting,
            equity_value=equity,
            total_value=total,
            dollar_return=total - starting,
            percent_return=percent_return(total, starting),
            unrealized_pnl=unrealized_total,
            positions=position_metrics,
        )
