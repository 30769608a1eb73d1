"""
Money helpers

Every currency computation in the package goes through round2 so stored
amounts never carry floating-point drift.
"""

import math
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any

CENT = Decimal("0.01")


def to_amount(value: Any) -> float:
    """
    Coerce a loosely typed monetary input to a float.

    None, NaN, infinities, booleans and anything that is not a number
    (or a numeric string) become 0.0.
    """
    if value is None or isinstance(value, bool):
        return 0.0

    try:
        number = float(value)
    except (TypeError, ValueError, OverflowError):
        return 0.0

    if not math.isfinite(number):
        return 0.0
    return number


def round2(value: Any) -> float:
    """
    Round a monetary value to 2 decimal places, half-up on magnitude.

    The sign is preserved, so -2.345 rounds to -2.35. The value is routed
    through its shortest string form so 1.005 rounds to 1.01 rather than
    following the binary representation down to 1.00.
    """
    number = to_amount(value)
    try:
        rounded = Decimal(repr(number)).quantize(CENT, rounding=ROUND_HALF_UP)
    except InvalidOperation:
        # beyond decimal precision; cents are meaningless at this magnitude
        return number
    return float(rounded) + 0.0  # normalises -0.0


def amounts_match(first: Any, second: Any, tolerance: float = 0.005) -> bool:
    """Compare two amounts at cent precision."""
    return abs(round2(first) - round2(second)) < tolerance
