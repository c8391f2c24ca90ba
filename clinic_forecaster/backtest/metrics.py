"""
Forecast error metrics for train/test backtests.

MAE (Mean Absolute Error)
  "On average the forecast is off by X patients / X currency units."
  Interpretation: lower is better; 0 is perfect.

RMSE (Root Mean Squared Error)
  Penalises large misses more than MAE.  RMSE well above MAE means a few
  days were badly mispredicted (e.g. a holiday closure).

MAPE (Mean Absolute Percentage Error), in percent
  Scale-free, so revenue and patient counts can be compared and blended.
  Days whose actual value is 0 (clinic closed) contribute nothing to the
  numerator because a percentage error is undefined there, but they still
  count in the denominator: MAPE is averaged over the full test window.
  Interpretation: 5.0 = 5 % average error.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Sequence


@dataclass(frozen=True)
class ForecastErrorMetrics:
    """Error metrics for one forecast against its held-out actuals.

    Attributes:
        n_evaluated: Number of (actual, predicted) pairs.
        n_nonzero:   Pairs with a non-zero actual (the MAPE numerator terms).
        mae:         Mean absolute error, ``None`` when ``n_evaluated == 0``.
        rmse:        Root mean squared error, ``None`` when ``n_evaluated == 0``.
        mape:        Mean absolute percentage error in percent, ``None`` when
                     ``n_evaluated == 0``.
    """

    n_evaluated: int
    n_nonzero: int
    mae: float | None
    rmse: float | None
    mape: float | None


def mean_absolute_percentage_error(
    actual: Sequence[float],
    predicted: Sequence[float],
) -> float:
    """MAPE in percent over the whole window, skipping zero actuals.

    Raises:
        ValueError: If the sequences differ in length or are empty.
    """
    _check_pairs(actual, predicted)
    total = sum(
        abs((a - p) / a)
        for a, p in zip(actual, predicted)
        if a != 0
    )
    return total / len(actual) * 100


def compute_metrics(
    actual: Sequence[float],
    predicted: Sequence[float],
) -> ForecastErrorMetrics:
    """Compute MAE, RMSE and MAPE for a forecast.

    Empty inputs give a metrics object with every error set to ``None``.
    """
    if len(actual) != len(predicted):
        raise ValueError(
            f"actual and predicted must have the same length, got {len(actual)} and {len(predicted)}."
        )
    n = len(actual)
    if n == 0:
        return ForecastErrorMetrics(n_evaluated=0, n_nonzero=0, mae=None, rmse=None, mape=None)

    errors = [a - p for a, p in zip(actual, predicted)]
    mae = sum(abs(e) for e in errors) / n
    rmse = math.sqrt(sum(e * e for e in errors) / n)

    return ForecastErrorMetrics(
        n_evaluated=n,
        n_nonzero=sum(1 for a in actual if a != 0),
        mae=mae,
        rmse=rmse,
        mape=mean_absolute_percentage_error(actual, predicted),
    )


def _check_pairs(actual: Sequence[float], predicted: Sequence[float]) -> None:
    if len(actual) != len(predicted):
        raise ValueError(
            f"actual and predicted must have the same length, got {len(actual)} and {len(predicted)}."
        )
    if not actual:
        raise ValueError("Cannot compute MAPE over an empty window.")
