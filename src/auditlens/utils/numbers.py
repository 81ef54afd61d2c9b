"""Numeric helpers shared by the scoring and aggregation modules."""

from __future__ import annotations

import math
from typing import Iterable, Optional


def round_half_up(value: float, digits: int = 0) -> float:
    """Round half away from zero for positives (2.5 -> 3), unlike round()."""
    factor = 10 ** digits
    return math.floor(value * factor + 0.5) / factor


def round_int(value: float) -> int:
    return int(round_half_up(value))


def mean(values: Iterable[float]) -> Optional[float]:
    """Arithmetic mean, or None for an empty iterable."""
    items = list(values)
    if not items:
        return None
    return sum(items) / len(items)


def coerce_float(value: object) -> Optional[float]:
    """Convert a loosely typed value to a finite float, or None."""
    if value is None or isinstance(value, bool):
        return None
    if not isinstance(value, (int, float, str)):
        return None
    try:
        number = float(value.strip() if isinstance(value, str) else value)
    except (ValueError, OverflowError):
        # ints past the float range overflow rather than becoming inf
        return None
    if math.isnan(number) or math.isinf(number):
        return None
    return number


def coerce_count(value: object) -> int:
    """Convert a loosely typed value to a non-negative int (0 when invalid)."""
    number = coerce_float(value)
    if number is None or number < 0:
        return 0
    return int(number)
