"""
Half-up rounding for reported figures.

Python's round() rounds halves to even; KPIs and money are reported with
halves rounded away from zero.
"""

from decimal import Decimal, ROUND_HALF_UP


def round_half_up(value: float, digits: int = 0):
    """Round to `digits` places, halves away from zero. Returns int when digits == 0."""
    quantum = Decimal(1).scaleb(-digits)
    rounded = Decimal(str(value)).quantize(quantum, rounding=ROUND_HALF_UP)
    if digits == 0:
        return int(rounded)
    return float(rounded)
