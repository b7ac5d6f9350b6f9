"""
Mathematical helpers for rate and profit calculations.

All profit figures in the engine are percentages (1.5 = 1.5%), while
fees and offsets are fractions (0.0025 = 0.25%).
"""

import math
from collections.abc import Iterable
from typing import Final


# Epsilon for floating point comparisons
EPSILON: Final[float] = 1e-12


def safe_divide(numerator: float, denominator: float, default: float = 0.0) -> float:
    """
    Safely divide two numbers, returning default on division by zero.

    Args:
        numerator: The dividend.
        denominator: The divisor.
        default: Value to return if denominator is zero.

    Returns:
        Result of division or default value.
    """
    if abs(denominator) < EPSILON:
        return default
    return numerator / denominator


def clamp(value: float, lower: float, upper: float) -> float:
    """Clamp value into [lower, upper]."""
    return max(lower, min(upper, value))


def is_usable_price(value: float | None) -> bool:
    """Whether a price can take part in a rate calculation."""
    return value is not None and math.isfinite(value) and value > 0


def compound_fee_factor(fee_rate: float, hops: int) -> float:
    """
    Fraction retained after paying a fee on every hop.

    Example:
        >>> round(compound_fee_factor(0.001, 3), 6)
        0.997003
    """
    return (1.0 - fee_rate) ** hops


def route_factor(rates: Iterable[float], fee_rate: float = 0.0) -> float:
    """
    Net conversion factor of a closed route.

    Args:
        rates: Conversion rate of each hop.
        fee_rate: Fee charged per hop.

    Returns:
        Amount of the starting token received per unit put in.
    """
    product = 1.0
    hops = 0
    for rate in rates:
        product *= rate
        hops += 1
    return product * compound_fee_factor(fee_rate, hops)


def profit_pct_from_factor(factor: float) -> float:
    """Convert a net return factor into a profit percentage."""
    return (factor - 1.0) * 100.0


def format_profit(profit_pct: float) -> str:
    """
    Format profit percentage for display.

    Example:
        >>> format_profit(1.5)
        '+1.5000%'
    """
    sign = "+" if profit_pct >= 0 else ""
    return f"{sign}{profit_pct:.4f}%"
