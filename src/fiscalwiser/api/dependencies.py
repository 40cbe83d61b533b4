"""
FastAPI dependencies for the portfolio engine.
"""

from functools import lru_cache

from fiscalwiser.core.models.portfolio_engine import PortfolioEngine
from fiscalwiser.settings import Settings, build_engine

_engine: PortfolioEngine | None = None


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Settings read once from the environment."""
    return Settings.from_env()


def get_engine() -> PortfolioEngine:
    """Engine shared by all requests, created on first use."""
    global _engine
    if _engine is None:
        _engine = build_engine(get_settings())
    return _engine


async def shutdown_engine() -> None:
    global _engine
    if _engine is not None:
        await _engine.close()
        _engine = None
