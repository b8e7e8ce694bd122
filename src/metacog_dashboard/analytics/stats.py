"""Rounding and averaging helpers shared by the reducers."""

import math
from collections.abc import Iterable


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves going up (2.5 -> 3, -2.5 -> -2).

    Python's round() uses banker's rounding, which would report 2 for 2.5.
    The fraction is compared directly because ``value + 0.5`` can round up in
    floating point (0.49999999999999994 + 0.5 == 1.0).
    """
    whole = math.floor(value)
    return whole + 1 if value - whole >= 0.5 else whole


def round_tenths(value: float) -> float:
    """Round half-up to one decimal place."""
    return round_half_up(value * 10) / 10


def mean(values: Iterable[float]) -> float:
    """Arithmetic mean; 0.0 for an empty input."""
    items = list(values)
    if not items:
        return 0.0
    return sum(items) / len(items)


def percentage(part: float, whole: float) -> int | None:
    """Half-up rounded percentage, or None when the denominator is zero."""
    if whole <= 0:
        return None
    return round_half_up(part / whole * 100)
