"""
Forecast many independent series in parallel (e.g. one per doctor).

Forecasts share no state: each call builds its own forest, working series and
noise stream.  A ``ThreadPoolExecutor`` runs one task per series and results
come back keyed like the input, in input order.  The first failing series
re-raises its exception after all tasks have finished.
"""

from __future__ import annotations

import logging
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Hashable, Mapping, Optional, Sequence, TypeVar

from clinic_forecaster.forecasting.autoregressive import AutoregressiveForecaster
from clinic_forecaster.models.forecast import ForecastResult

logger = logging.getLogger(__name__)

K = TypeVar("K", bound=Hashable)

DEFAULT_MAX_WORKERS = 4


def forecast_many(
    series_by_key: Mapping[K, Sequence[float]],
    horizon: int,
    forecaster: Optional[AutoregressiveForecaster] = None,
    max_workers: int = DEFAULT_MAX_WORKERS,
) -> dict[K, ForecastResult]:
    """Forecast every series in ``series_by_key`` with the same settings.

    Args:
        series_by_key: Mapping of caller key (doctor id, metric name…) to series.
        horizon:       Steps to forecast for every series.
        forecaster:    Settings to use; defaults to ``AutoregressiveForecaster()``.
        max_workers:   Thread pool size.

    Returns:
        ``{key: ForecastResult}`` in the input's key order.
    """
    if max_workers < 1:
        raise ValueError(f"max_workers must be >= 1, got {max_workers}.")
    forecaster = forecaster or AutoregressiveForecaster()
    if not series_by_key:
        return {}

    with ThreadPoolExecutor(max_workers=max_workers) as executor:
        futures: dict[K, Future[ForecastResult]] = {
            key: executor.submit(forecaster.forecast, series, horizon)
            for key, series in series_by_key.items()
        }

    results: dict[K, ForecastResult] = {}
    for key, future in futures.items():
        exc = future.exception()
        if exc is not None:
            logger.error("Forecast failed for series %r: %s", key, exc)
            raise exc
        results[key] = future.result()

    logger.info("Forecast %d series, horizon=%d.", len(results), horizon)
    return results
