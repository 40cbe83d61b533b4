"""
Financial helpers for paper-trading calculations.

All amounts are plain floats. Prices come from public quote APIs as floats
and the simulators never move real money, so float precision is adequate
as long as comparisons go through the tolerance helpers below.

PRECISION CONSIDERATIONS:
- Float64 provides ~15-16 significant decimal digits
- Cash-denominated crypto orders produce long fractional quantities
- Selling a whole position computed from a cash amount can leave dust;
  use is_effectively_zero() instead of == 0 on quantities
"""

import math

from fiscalwiser.core.constants import QUANTITY_EPSILON

# Display precision (number of decimal places)
FINANCIAL_DECIMALS = 8  # 8 decimal places (crypto standard)
PERCENTAGE_DECIMALS = 4  # 4 decimal places for percentages
PRICE_DECIMALS = 2  # 2 decimal places for USD prices

# Common financial values as float constants
ZERO = 0.0
HUNDRED = 100.0


def round_price(price: float) -> float:
    """Round price to display precision."""
    return round(price, PRICE_DECIMALS)


def round_amount(amount: float) -> float:
    """Round amount to display precision."""
    return round(amount, FINANCIAL_DECIMALS)


def round_percentage(percentage: float) -> float:
    """Round percentage to display precision."""
    return round(percentage, PERCENTAGE_DECIMALS)


def is_effectively_zero(quantity: float, epsilon: float = QUANTITY_EPSILON) -> bool:
    """Check whether a quantity is within epsilon of zero.

    Args:
        quantity: Quantity to test
        epsilon: Tolerance below which the quantity counts as zero

    Returns:
        True if abs(quantity) <= epsilon
    """
    return abs(quantity) <= epsilon


def weighted_average_cost(
    held_quantity: float, average_cost: float, added_quantity: float, unit_price: float
) -> float:
    """Blend an existing average cost with a new purchase.

    Args:
        held_quantity: Quantity already held (may be 0)
        average_cost: Current average cost per unit
        added_quantity: Quantity being bought (must be > 0)
        unit_price: Price paid per unit for the new quantity

    Returns:
        Quantity-weighted average cost of the combined holding
    """
    total_quantity = held_quantity + added_quantity
    if total_quantity <= ZERO:
        raise ValueError(f"Combined quantity must be positive, got {total_quantity}")
    if held_quantity <= ZERO:
        return unit_price
    return (held_quantity * average_cost + added_quantity * unit_price) / total_quantity


def calculate_pnl(average_cost: float, price: float, quantity: float) -> float:
    """Calculate long-only profit and loss.

    Args:
        average_cost: Average cost per unit
        price: Exit (or current) price per unit
        quantity: Quantity (absolute value is used)

    Returns:
        PnL as float
    """
    return (price - average_cost) * abs(quantity)


def percent_of(part: float, whole: float) -> float:
    """Express part as a percentage of whole, 0 when whole is 0."""
    if whole == ZERO:
        return ZERO
    return part / whole * HUNDRED


def percent_return(current_value: float, reference_value: float) -> float:
    """Percentage change from reference to current, 0 when reference is 0."""
    return percent_of(current_value - reference_value, reference_value)


def is_finite_number(value: object) -> bool:
    """Check that a value is a real, finite int or float (bools excluded)."""
    if isinstance(value, bool) or not isinstance(value, int | float):
        return False
    return math.isfinite(value)
