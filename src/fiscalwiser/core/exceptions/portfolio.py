"""
Custom exception hierarchy for the paper-trading engine.

This module defines domain-specific exceptions for better error handling.
Every exception carries an ErrorCode so callers can report a stable reason.
"""

from fiscalwiser.core.enums import ErrorCode


class FiscalWiserError(Exception):
    """Base exception for all paper-trading errors."""

    code: ErrorCode = ErrorCode.INVALID_ORDER


class ValidationError(FiscalWiserError):
    """Raised when input validation fails."""

    pass


class InvalidOrderError(ValidationError):
    """Raised when an order, or a reset request, is malformed."""

    code = ErrorCode.INVALID_ORDER


class InvalidParametersError(ValidationError):
    """Raised when projection parameters are out of range."""

    code = ErrorCode.INVALID_PARAMETERS


class PortfolioError(FiscalWiserError):
    """Raised when portfolio operations fail."""

    pass


class InsufficientFundsError(PortfolioError):
    """Raised when there is not enough cash for a buy."""

    code = ErrorCode.INSUFFICIENT_FUNDS

    def __init__(self, required: float, available: float, operation: str = "operation"):
        self.required = required
        self.available = available
        self.operation = operation
        super().__init__(
            f"Insufficient funds for {operation}: required={required:.2f}, available={available:.2f}"
        )


class InsufficientHoldingsError(PortfolioError):
    """Raised when a sell asks for more units than are held."""

    code = ErrorCode.INSUFFICIENT_HOLDINGS

    def __init__(self, asset_id: str, requested: float, held: float):
        self.asset_id = asset_id
        self.requested = requested
        self.held = held
        super().__init__(
            f"Insufficient holdings of {asset_id}: requested={requested:.8f}, held={held:.8f}"
        )


class PriceUnavailableError(FiscalWiserError):
    """Raised when neither a live quote nor a last known price exists."""

    code = ErrorCode.PRICE_UNAVAILABLE

    def __init__(self, asset_id: str):
        self.asset_id = asset_id
        super().__init__(f"No price available for asset: {asset_id}")


class PersistenceCorruptError(FiscalWiserError):
    """Raised when a stored record cannot be read back."""

    code = ErrorCode.PERSISTENCE_CORRUPT

    def __init__(self, key: str, reason: str):
        self.key = key
        self.reason = reason
        super().__init__(f"Stored record '{key}' is unreadable: {reason}")
