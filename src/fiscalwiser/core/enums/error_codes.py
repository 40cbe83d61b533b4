"""
Error reason codes.

Stable identifiers attached to every rejected operation so callers
can branch on the reason without parsing messages.
"""

from enum import StrEnum


class ErrorCode(StrEnum):
    """Reason codes for rejected operations."""

    INVALID_ORDER = "invalid_order"
    INVALID_PARAMETERS = "invalid_parameters"
    INSUFFICIENT_FUNDS = "insufficient_funds"
    INSUFFICIENT_HOLDINGS = "insufficient_holdings"
    PRICE_UNAVAILABLE = "price_unavailable"
    PERSISTENCE_CORRUPT = "persistence_corrupt"
