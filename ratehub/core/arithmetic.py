"""Null-propagating arithmetic shared by the pricing engine and its breakdowns.

``None`` means "not applicable" (for example a cost per hour over zero
capacity). Any ``None`` operand makes the result ``None``; it is never
coerced to zero.
"""
from typing import Iterable, Optional

Number = Optional[float]


def add(values: Iterable[Number]) -> Number:
    total = 0.0
    for value in values:
        if value is None:
            return None
        total = total + value
    return total


def multiply(values: Iterable[Number]) -> Number:
    result = 1.0
    for value in values:
        if value is None:
            return None
        result = result * value
    return result


def divide(numerator: Number, denominator: Number) -> Number:
    if numerator is None or denominator is None or denominator == 0:
        return None
    return numerator / denominator


def pct(component: Number, total: Number) -> Number:
    """Share of ``total`` taken by ``component``; None when total is None or zero."""
    return divide(component, total)
