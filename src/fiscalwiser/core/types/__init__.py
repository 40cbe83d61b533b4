"""
Core type definitions and utilities.
"""

# Re-export financial utilities for easy access
from .financial import (
    FINANCIAL_DECIMALS,
    HUNDRED,
    PERCENTAGE_DECIMALS,
    PRICE_DECIMALS,
    ZERO,
    calculate_pnl,
    is_effectively_zero,
    is_finite_number,
    percent_of,
    percent_return,
    round_amount,
    round_percentage,
    round_price,
    weighted_average_cost,
)

__all__ = [
    # Utility functions
    "round_price",
    "round_amount",
    "round_percentage",
    "is_effectively_zero",
    "is_finite_number",
    "weighted_average_cost",
    "calculate_pnl",
    "percent_of",
    "percent_return",
    # Constants
    "FINANCIAL_DECIMALS",
    "PERCENTAGE_DECIMALS",
    "PRICE_DECIMALS",
    "ZERO",
    "HUNDRED",
]
