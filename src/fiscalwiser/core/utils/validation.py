"""
Validation utilities for core domain models.

Provides consistent validation across the application. Every helper
takes the exception type to raise so orders and projections can share
the checks while reporting their own reason code.
"""

from typing import Any

from fiscalwiser.core.exceptions.portfolio import InvalidOrderError, ValidationError
from fiscalwiser.core.types.financial import is_finite_number


def validate_asset_id(asset_id: Any, param_name: str = "asset_id") -> str:
    """Validate that an asset identifier is a non-empty string.

    Args:
        asset_id: Value to validate
        param_name: Parameter name for error messages

    Returns:
        The identifier with surrounding whitespace removed

    Raises:
        InvalidOrderError: If the identifier is not a non-empty string
    """
    if not isinstance(asset_id, str) or not asset_id.strip():
        raise InvalidOrderError(f"{param_name} must be a non-empty string, got {asset_id!r}")
    return asset_id.strip()


def validate_finite(
    value: Any, param_name: str, error: type[ValidationError] = InvalidOrderError
) -> float:
    """Validate that a value is a finite number.

    Raises:
        ValidationError: If value is not a finite int or float
    """
    if not is_finite_number(value):
        raise error(f"{param_name} must be a finite number, got {value!r}")
    return float(value)


def validate_positive(
    value: Any, param_name: str, error: type[ValidationError] = InvalidOrderError
) -> float:
    """Validate that a numeric value is finite and positive.

    Args:
        value: Value to validate
        param_name: Parameter name for error messages
        error: Exception type to raise

    Returns:
        The validated value as float

    Raises:
        ValidationError: If value is not positive
    """
    number = validate_finite(value, param_name, error)
    if number <= 0:
        raise error(f"{param_name} must be positive, got {value}")
    return number


def validate_range(
    value: Any,
    param_name: str,
    lower: float,
    upper: float,
    error: type[ValidationError] = InvalidOrderError,
) -> float:
    """Validate that a numeric value lies within [lower, upper].

    Raises:
        ValidationError: If value is outside the inclusive range
    """
    number = validate_finite(value, param_name, error)
    if number < lower or number > upper:
        raise error(f"{param_name} must be between {lower} and {upper}, got {value}")
    return number
