"""
Small numeric helpers shared by the tree, the forecasters and the metrics.
"""

from __future__ import annotations

import math
from typing import Sequence


def mean(values: Sequence[float]) -> float:
    """Arithmetic mean; 0.0 for an empty sequence."""
    if not values:
        return 0.0
    return sum(values) / len(values)


def population_variance(values: Sequence[float]) -> float:
    """Mean squared deviation about the mean (divides by n, not n-1)."""
    if not values:
        return 0.0
    mu = mean(values)
    return sum((v - mu) ** 2 for v in values) / len(values)


def round_half_up(value: float) -> int:
    """Round to the nearest integer, with halves rounding up.

    ``round()`` uses banker's rounding (``round(2.5) == 2``); dashboard
    figures expect ``2.5 -> 3``.
    """
    return int(math.floor(value + 0.5))
