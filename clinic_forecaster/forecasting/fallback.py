"""
Growth-rate extrapolation for series too short for the forest.

The projection compounds the mean period-over-period growth of the history:

    next = previous × (1 + growth/100 + noise)

with ``noise ~ U(-pct, +pct)`` and each step rounded to a whole number before
it becomes ``previous``.  Periods whose previous value is 0 are skipped when
averaging growth; with no usable period the growth defaults to +0.5 %/day.
"""

from __future__ import annotations

from typing import Sequence

from clinic_forecaster.forecasting.noise import DEFAULT_NOISE_PCT, NoiseSource
from clinic_forecaster.ml.forest import DEFAULT_SEED
from clinic_forecaster.utils.numeric import mean, round_half_up
from clinic_forecaster.validation import validate_horizon, validate_series

DEFAULT_GROWTH_PCT = 0.5


def period_growth_rates(values: Sequence[float]) -> list[float]:
    """Percentage change for each consecutive pair with a positive previous value."""
    return [
        (current - previous) / previous * 100
        for previous, current in zip(values, values[1:])
        if previous > 0
    ]


def average_growth_rate(series: Sequence[float]) -> float:
    """Mean daily growth in percent.

    Returns 0.0 for fewer than 2 points and ``DEFAULT_GROWTH_PCT`` when every
    period starts from zero.
    """
    values = validate_series(series)
    if len(values) < 2:
        return 0.0
    rates = period_growth_rates(values)
    return mean(rates) if rates else DEFAULT_GROWTH_PCT


def project_growth(values: Sequence[float], horizon: int, noise: NoiseSource) -> list[int]:
    """Compound the history's growth rate forward ``horizon`` steps.

    ``values`` must already be validated.  Shares ``noise`` with the caller so
    a forest forecast that switches to this projection mid-way keeps one
    reproducible noise stream.
    """
    if not values:
        return [0] * horizon

    rates = period_growth_rates(values)
    growth = mean(rates) if rates else DEFAULT_GROWTH_PCT

    forecast: list[int] = []
    previous = values[-1]
    for _ in range(horizon):
        factor = 1 + growth / 100 + noise.draw()
        nxt = max(0, round_half_up(previous * factor))
        forecast.append(nxt)
        previous = nxt
    return forecast


def simple_exponential_forecast(
    series: Sequence[float],
    horizon: int,
    *,
    add_noise: bool = True,
    noise_pct: float = DEFAULT_NOISE_PCT,
    noise_seed: int = DEFAULT_SEED,
) -> list[int]:
    """Forecast ``horizon`` whole-number values by growth extrapolation.

    Args:
        series:     Daily totals, oldest first.  May be empty.
        horizon:    Steps to forecast (>= 0).
        add_noise:  ``False`` gives a noise-free, exactly reproducible path.
        noise_pct:  Half-width of the per-step noise band on the growth factor.
        noise_seed: Seed for the noise stream.

    Returns:
        ``horizon`` non-negative integers; all zeros for an empty series.
    """
    values = validate_series(series)
    steps = validate_horizon(horizon)
    noise = NoiseSource(noise_pct if add_noise else 0.0, noise_seed)
    return project_growth(values, steps, noise)
