"""
FastAPI main application for the FiscalWiser paper-trading engine.
"""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from loguru import logger

from fiscalwiser import __version__
from fiscalwiser.api.dependencies import shutdown_engine
from fiscalwiser.api.schemas.api_models import ErrorResponse
from fiscalwiser.core.enums import ErrorCode
from fiscalwiser.core.exceptions.portfolio import (
    FiscalWiserError,
    InsufficientFundsError,
    InsufficientHoldingsError,
    PriceUnavailableError,
)

from .routers import portfolio, projection

STATUS_BY_CODE = {
    ErrorCode.INVALID_ORDER: 422,
    ErrorCode.INVALID_PARAMETERS: 422,
    ErrorCode.INSUFFICIENT_FUNDS: 409,
    ErrorCode.INSUFFICIENT_HOLDINGS: 409,
    ErrorCode.PRICE_UNAVAILABLE: 503,
    ErrorCode.PERSISTENCE_CORRUPT: 500,
}


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    yield
    await shutdown_engine()


app = FastAPI(
    title="FiscalWiser API",
    version=__version__,
    description="API for paper trading and balance projections",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[
        "http://localhost:3000",  # Development frontend
        "http://localhost:8080",
    ],
    allow_credentials=False,
    allow_methods=["GET", "POST"],
    allow_headers=["Content-Type", "Accept", "Origin"],
)

app.include_router(portfolio.router, prefix="/api/portfolio", tags=["portfolio"])
app.include_router(projection.router, prefix="/api/projection", tags=["projection"])


def _error_details(exc: FiscalWiserError) -> dict | None:
    if isinstance(exc, InsufficientFundsError):
        return {"required": exc.required, "available": exc.available}
    if isinstance(exc, InsufficientHoldingsError):
        return {"asset_id": exc.asset_id, "requested": exc.requested, "held": exc.held}
    if isinstance(exc, PriceUnavailableError):
        return {"asset_id": exc.asset_id}
    return None


@app.exception_handler(FiscalWiserError)
async def handle_domain_error(request: Request, exc: FiscalWiserError) -> JSONResponse:
    """Map domain errors to HTTP status codes with an ErrorResponse body."""
    status_code = STATUS_BY_CODE.get(exc.code, 400)
    logger.info(f"{request.method} {request.url.path} -> {status_code} {exc.code}: {exc}")
    body = ErrorResponse(error=str(exc.code), message=str(exc), details=_error_details(exc))
    return JSONResponse(status_code=status_code, content=body.model_dump())


@app.get("/")
async def root() -> dict[str, str]:
    """Root endpoint returning API information."""
    return {"message": "FiscalWiser API", "version": __version__, "status": "running"}


@app.get("/health")
async def health() -> dict[str, str]:
    """Health check endpoint."""
    return {"status": "healthy"}
