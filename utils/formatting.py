"""Output formatting utilities for Bucks2Bar.

Provides reusable functions for:
- Formatting monetary figures for chart tooltips and labels
- Formatting percentages
"""

from decimal import ROUND_HALF_UP, Decimal
from typing import Optional


def format_number(value: Optional[float], max_fraction_digits: int = 2) -> str:
    """Format a number with thousands separators and trimmed fraction digits.

    Mirrors the browser's ``Intl.NumberFormat`` with
    ``maximumFractionDigits`` set, so tooltip text reads the same in the
    rendered images as on the page.

    Args:
        value: Number to format (None is treated as 0)
        max_fraction_digits: Maximum digits after the decimal point

    Returns:
        Formatted string like "12,345.5"

    Examples:
        format_number(12345.5) -> "12,345.5"
        format_number(1000) -> "1,000"
        format_number(0.125) -> "0.13"
    """
    amount = Decimal(repr(float(value or 0))).quantize(
        Decimal(1).scaleb(-max_fraction_digits), rounding=ROUND_HALF_UP,
    )
    text = f"{amount:,f}"
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    if text == "-0":
        text = "0"
    return text


def format_percent(value: Optional[float], precision: int = 1) -> str:
    """Format a percentage for display.

    Examples:
        format_percent(42.5) -> "42.5%"
        format_percent(None) -> "-"
    """
    if value is None:
        return "-"
    return f"{value:.{precision}f}%"


def percent_of_total(value: float, total: float) -> float:
    """Return *value* as a percentage of *total*, treating a zero total as 1."""
    return (value / (total or 1)) * 100
