"""
Input validation boundary for the forecasting engine.

Short or sparse series are NOT errors: every component resolves them with a
documented fallback.  What is rejected here is malformed input that would
otherwise produce NaN-laden forecasts:

  - non-numeric entries (strings, ``None``, booleans),
  - non-finite values (NaN, ±inf),
  - negative values (daily totals are counts and currency amounts),
  - a negative or non-integer horizon,
  - a lag size below 1.
"""

from __future__ import annotations

import math
from numbers import Real
from typing import Any, Iterable


class InvalidSeriesError(ValueError):
    """Raised when a series or horizon violates the engine's input contract."""


def validate_series(series: Iterable[Any], name: str = "series") -> list[float]:
    """Check a daily-totals series and return it as a list of floats.

    Args:
        series: Iterable of non-negative finite numbers.
        name:   Label used in error messages (e.g. ``"revenue"``).

    Returns:
        A new ``list[float]``; the caller's sequence is never mutated.

    Raises:
        InvalidSeriesError: On the first offending element.
    """
    if series is None or isinstance(series, (str, bytes, dict)):
        raise InvalidSeriesError(f"{name} must be a sequence of numbers, got {type(series).__name__}.")

    values: list[float] = []
    for i, v in enumerate(series):
        if isinstance(v, bool) or not isinstance(v, Real):
            raise InvalidSeriesError(
                f"{name}[{i}] must be a number, got {type(v).__name__} ({v!r})."
            )
        fv = float(v)
        if not math.isfinite(fv):
            raise InvalidSeriesError(f"{name}[{i}] must be finite, got {fv}.")
        if fv < 0:
            raise InvalidSeriesError(f"{name}[{i}] must be non-negative, got {fv}.")
        values.append(fv)
    return values


def validate_horizon(horizon: Any) -> int:
    """Check that ``horizon`` is an integer >= 0 and return it."""
    if isinstance(horizon, bool) or not isinstance(horizon, int):
        raise InvalidSeriesError(f"horizon must be an integer, got {type(horizon).__name__}.")
    if horizon < 0:
        raise InvalidSeriesError(f"horizon must be >= 0, got {horizon}.")
    return horizon


def validate_lag_size(lag_size: Any) -> int:
    """Check that ``lag_size`` is an integer >= 1 and return it."""
    if isinstance(lag_size, bool) or not isinstance(lag_size, int):
        raise InvalidSeriesError(f"lag_size must be an integer, got {type(lag_size).__name__}.")
    if lag_size < 1:
        raise InvalidSeriesError(f"lag_size must be >= 1, got {lag_size}.")
    return lag_size
