"""
Runtime settings and engine assembly.

Settings are read from ``FISCALWISER_*`` environment variables; anything
unset falls back to the defaults in fiscalwiser.core.constants.
"""

import os
from collections.abc import Mapping
from typing import Literal

from pydantic import BaseModel, Field, field_validator

from fiscalwiser.core.constants import (
    DEFAULT_HISTORY_KEY,
    DEFAULT_HISTORY_LENGTH,
    DEFAULT_PORTFOLIO_KEY,
    DEFAULT_QUOTE_TTL_SECONDS,
    DEFAULT_STARTING_BALANCE,
    MIN_STARTING_BALANCE,
    QUANTITY_EPSILON,
)
from fiscalwiser.core.interfaces.market import PriceSource
from fiscalwiser.core.interfaces.storage import StorageBackend
from fiscalwiser.core.models.config import EngineConfig
from fiscalwiser.core.models.portfolio_engine import PortfolioEngine
from fiscalwiser.infrastructure.market import (
    CachedPriceSource,
    CoinGeckoPriceSource,
    StaticPriceSource,
)
from fiscalwiser.infrastructure.storage import FileStorage, InMemoryStorage, PortfolioStore

ENV_PREFIX = "FISCALWISER_"


class Settings(BaseModel):
    """Settings for assembling a PortfolioEngine."""

    data_dir: str | None = Field(
        default=None, description="Directory for stored records; in-memory when unset"
    )
    portfolio_key: str = Field(default=DEFAULT_PORTFOLIO_KEY, min_length=1)
    history_key: str = Field(default=DEFAULT_HISTORY_KEY, min_length=1)
    price_source: Literal["static", "coingecko"] = Field(
        default="static", description="Where live quotes come from"
    )
    quote_ttl_seconds: float = Field(default=DEFAULT_QUOTE_TTL_SECONDS, gt=0)
    quantity_epsilon: float = Field(default=QUANTITY_EPSILON, ge=0.0, lt=1.0)
    default_starting_balance: float = Field(default=DEFAULT_STARTING_BALANCE, gt=0)
    min_starting_balance: float = Field(default=MIN_STARTING_BALANCE, ge=0)
    history_length: int = Field(default=DEFAULT_HISTORY_LENGTH, gt=0)

    @field_validator("data_dir")
    @classmethod
    def blank_data_dir_is_unset(cls, v: str | None) -> str | None:
        """Treat an empty directory setting as in-memory storage."""
        return v or None

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "Settings":
        """Build settings from FISCALWISER_* variables."""
        environ = os.environ if environ is None else environ
        values = {}
        for name in cls.model_fields:
            env_name = f"{ENV_PREFIX}{name.upper()}"
            if env_name in environ:
                values[name] = environ[env_name]
        return cls.model_validate(values)

    def engine_config(self) -> EngineConfig:
        return EngineConfig(
            quantity_epsilon=self.quantity_epsilon,
            default_starting_balance=self.default_starting_balance,
            min_starting_balance=self.min_starting_balance,
            history_length=self.history_length,
        )


def build_storage(settings: Settings) -> StorageBackend:
    if settings.data_dir is None:
        return InMemoryStorage()
    return FileStorage(settings.data_dir)


def build_price_source(settings: Settings) -> PriceSource:
    if settings.price_source == "coingecko":
        return CachedPriceSource(CoinGeckoPriceSource(), ttl_seconds=settings.quote_ttl_seconds)
    return StaticPriceSource()


def build_engine(
    settings: Settings,
    storage: StorageBackend | None = None,
    price_source: PriceSource | None = None,
) -> PortfolioEngine:
    """Assemble an engine from settings, with optional collaborator overrides."""
    store = PortfolioStore(
        storage or build_storage(settings),
        key=settings.portfolio_key,
        history_key=settings.history_key,
        default_starting_balance=settings.default_starting_balance,
    )
    return PortfolioEngine(
        store,
        price_source or build_price_source(settings),
        config=settings.engine_config(),
    )
