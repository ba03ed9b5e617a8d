"""Numeric token helpers shared by the extractors."""

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Optional


TWO_PLACES = Decimal('0.01')


def parse_number(token: Optional[str]) -> Optional[Decimal]:
    """
    Parse a numeric token, ignoring thousands separators.

    Returns None for missing, empty or non-finite values.
    """
    if token is None:
        return None
    cleaned = token.replace(',', '').strip()
    if not cleaned:
        return None
    try:
        value = Decimal(cleaned)
    except InvalidOperation:
        return None
    return value if value.is_finite() else None


def round_two_places(value: Decimal) -> Decimal:
    return value.quantize(TWO_PLACES, rounding=ROUND_HALF_UP)


def format_amount(value: Decimal) -> str:
    """Format a value with exactly two decimal places, e.g. "1250.50"."""
    return f"{round_two_places(value):.2f}"
