"""
Money helpers and response formatting shared across the application.
"""
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Dict, Union

# Smallest user-facing currency unit. Amounts are stored rounded to two
# decimal places, so any magnitude below one cent counts as zero ("settled").
EPSILON = Decimal("0.01")
CENTS = Decimal("0.01")
ZERO = Decimal("0")


def to_decimal(value: Union[Decimal, int, float, str]) -> Decimal:
    """Convert a numeric value to Decimal without binary float artifacts."""
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def round2(value: Union[Decimal, int, float, str]) -> Decimal:
    """Round to cents, half up."""
    return to_decimal(value).quantize(CENTS, rounding=ROUND_HALF_UP)


def is_settled(amount: Decimal) -> bool:
    """True when the amount is within one cent of zero."""
    return abs(amount) < EPSILON


def format_error(message: str, details: Any = None) -> Dict[str, Any]:
    """Format error response."""
    response = {"error": message}
    if details:
        response["details"] = details
    return response
