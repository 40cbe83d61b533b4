"""
Persistence infrastructure.

Key-value backends and the portfolio record store built on them.
"""

from .backends import FileStorage, InMemoryStorage
from .portfolio_store import PortfolioStore

__all__ = ["FileStorage", "InMemoryStorage", "PortfolioStore"]
