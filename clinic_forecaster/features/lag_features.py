"""
Lag-window features for the random-forest forecaster.

Feature vector layout
---------------------
For a target at position ``i`` and a lag size ``L`` the vector has
``L + 3`` entries:

  [0 .. L-1]  lagged values, most recent first:
              ``series[i-1], series[i-2], …, series[i-L]``
  [L]         moving average of the ``min(3, L)`` most recent lags
  [L+1]       trend: ``lag_1 - moving_average``
  [L+2]       weekly cycle: ``sin(2π · (i mod 7) / 7)``

The weekly term uses the *target's* position, so the same construction works
at training time (``i`` walks the history) and at inference time (``i`` is
the length of the working series, i.e. the position of the value being
predicted).

Leakage notes
-------------
Features for target ``i`` only read ``series[i-L .. i-1]``.  The target value
itself never appears in its own feature vector.
"""

from __future__ import annotations

import math
from typing import Sequence

from clinic_forecaster.validation import validate_lag_size, validate_series

FeatureVector = list[float]

WEEKLY_PERIOD = 7
MOVING_AVERAGE_WINDOW = 3
DERIVED_FEATURE_COUNT = 3  # moving average, trend, weekly cycle


def feature_length(lag_size: int) -> int:
    """Number of entries in a feature vector for ``lag_size`` lags."""
    return lag_size + DERIVED_FEATURE_COUNT


def build_feature_vector(window: Sequence[float], target_index: int) -> FeatureVector:
    """Build one feature vector from the values preceding a target.

    Args:
        window:       The ``L`` values immediately before the target, in time
                      order (oldest first).  ``L = len(window)`` must be >= 1.
        target_index: Position of the target in its series; drives the
                      weekly cycle term.

    Returns:
        A list of ``len(window) + 3`` floats.
    """
    lag_size = len(window)
    lags = [float(window[lag_size - 1 - k]) for k in range(lag_size)]

    ma_size = min(MOVING_AVERAGE_WINDOW, lag_size)
    moving_average = sum(lags[:ma_size]) / ma_size
    trend = lags[0] - moving_average
    cyclical = math.sin(2 * math.pi * (target_index % WEEKLY_PERIOD) / WEEKLY_PERIOD)

    return lags + [moving_average, trend, cyclical]


def extract_features(
    series: Sequence[float],
    lag_size: int,
) -> tuple[list[FeatureVector], list[float]]:
    """Slide a ``lag_size`` window over ``series`` to build a training set.

    Args:
        series:   Time-ordered daily totals.
        lag_size: Number of lagged values per feature vector (>= 1).

    Returns:
        ``(X, y)`` with ``len(X) == len(y) == len(series) - lag_size``.
        Both are empty when ``len(series) <= lag_size``; callers treat that
        as "insufficient data" and fall back to a simpler method.

    Raises:
        InvalidSeriesError: If ``lag_size < 1`` or the series is malformed.
    """
    lag_size = validate_lag_size(lag_size)
    values = validate_series(series)

    X: list[FeatureVector] = []
    y: list[float] = []
    if len(values) <= lag_size:
        return X, y

    for i in range(lag_size, len(values)):
        X.append(build_feature_vector(values[i - lag_size:i], i))
        y.append(values[i])
    return X, y
