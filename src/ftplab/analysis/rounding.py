"""
Rounding helpers shared by the parsers and the analysis engine.

Python's built-in round() uses banker's rounding (round(236.5) == 236). Every
metric here rounds half up instead, so 237.5 W becomes 238 W. Decimal
formatting rounds the exact binary value half away from zero.
"""
from decimal import ROUND_HALF_DOWN, ROUND_HALF_UP, Decimal


def round_half_up(value: float) -> int:
    """
    Nearest integer, ties toward positive infinity.

    Works on the exact binary value, so 0.49999999999999994 rounds to 0.
    """
    rounding = ROUND_HALF_UP if value >= 0 else ROUND_HALF_DOWN
    return int(Decimal(value).to_integral_value(rounding=rounding))


def to_fixed(value: float, digits: int) -> str:
    """
    Format value with exactly `digits` decimals.

    >>> to_fixed(1.0, 3)
    '1.000'
    >>> to_fixed(12.345678, 1)
    '12.3'
    """
    quantum = Decimal(1).scaleb(-digits)
    return str(Decimal(value).quantize(quantum, rounding=ROUND_HALF_UP))


def round_to(value: float, digits: int) -> float:
    """to_fixed() parsed back to a float."""
    return float(to_fixed(value, digits))
