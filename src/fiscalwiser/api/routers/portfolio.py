"""
Portfolio API endpoints.
"""

from typing import Any

from fastapi import APIRouter, Depends

from fiscalwiser.api.dependencies import get_engine
from fiscalwiser.api.schemas.api_models import (
    HistoryResponse,
    MetricsResponse,
    OrderRequest,
    ReceiptResponse,
    ResetRequest,
)
from fiscalwiser.core.models.portfolio_engine import PortfolioEngine
from fiscalwiser.infrastructure.storage.portfolio_store import portfolio_to_record

router = APIRouter()


@router.get("")
async def get_portfolio(engine: PortfolioEngine = Depends(get_engine)) -> dict[str, Any]:
    """Get the portfolio in its stored record shape."""
    return portfolio_to_record(engine.portfolio)


@router.get("/metrics", response_model=MetricsResponse)
async def get_metrics(engine: PortfolioEngine = Depends(get_engine)) -> dict[str, Any]:
    """Get derived figures at the latest known prices."""
    snapshot = engine.metrics().to_dict()
    snapshot["trend"] = engine.value_trend()
    return snapshot


@router.post("/orders", response_model=ReceiptResponse)
async def submit_order(
    request: OrderRequest, engine: PortfolioEngine = Depends(get_engine)
) -> dict[str, Any]:
    """Execute a buy or sell order."""
    receipt = await engine.execute(request.to_order())
    return receipt.to_dict()


@router.post("/reset")
async def reset_portfolio(
    request: ResetRequest, engine: PortfolioEngine = Depends(get_engine)
) -> dict[str, Any]:
    """Clear positions and restart with a new starting balance."""
    portfolio = engine.reset(request.starting_balance)
    return portfolio_to_record(portfolio)


@router.post("/refresh")
async def refresh_prices(engine: PortfolioEngine = Depends(get_engine)) -> dict[str, Any]:
    """Refresh quotes for every held position."""
    quotes = await engine.refresh_prices()
    return {
        "refreshed": sorted(quotes),
        "prices": {asset_id: quote.price for asset_id, quote in quotes.items()},
    }


@router.get("/history", response_model=HistoryResponse)
async def get_history(engine: PortfolioEngine = Depends(get_engine)) -> dict[str, Any]:
    """Get recorded total values, oldest first."""
    return {"values": engine.history.values(), "trend": engine.value_trend()}


@router.post("/history", response_model=HistoryResponse)
async def record_history(engine: PortfolioEngine = Depends(get_engine)) -> dict[str, Any]:
    """Record the current total value."""
    engine.record_snapshot()
    return {"values": engine.history.values(), "trend": engine.value_trend()}
