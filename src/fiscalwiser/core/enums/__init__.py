"""
Core enumerations for the paper-trading engine.

This module provides centralized enumerations for order sides,
amount denominations, and error reason codes.
"""

from .error_codes import ErrorCode
from .order_types import AmountType, OrderSide

__all__ = ["OrderSide", "AmountType", "ErrorCode"]
