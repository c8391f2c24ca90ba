"""
Forecast and confidence output models.

``ForecastResult`` wraps the integer forecast together with how it was
produced (forest vs. growth fallback, lag size, tree count, seed) so callers
can show provenance next to a chart.

``ConfidenceReport`` carries the 0–100 confidence score and the backtest
accuracy figures it was derived from.

``MonthProjection`` is the "revenue this month" card: recorded revenue to
date plus a forecast for the days left in the month.

All models are frozen; they are produced per request and never mutated.
"""

from __future__ import annotations

from datetime import date
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, computed_field, field_validator, model_validator

ForecastMethod = Literal["random_forest", "exponential_fallback"]
ConfidenceMethod = Literal["baseline", "short_test", "backtest"]


class ForecastResult(BaseModel):
    """An N-step-ahead forecast for one daily series.

    Attributes:
        values:         Forecast values, whole numbers, ``len == horizon``.
        horizon:        Number of days forecast.
        method:         ``"random_forest"`` or ``"exponential_fallback"``.
        history_length: Number of points the forecast was built from.
        lag_size:       Lag window used by the forest (``None`` on fallback).
        num_trees:      Forest size (``None`` on fallback).
        seed:           Forest seed (also the default noise seed).
        noise_pct:      Half-width of the multiplicative noise band (0 = off).
    """

    model_config = ConfigDict(frozen=True)

    values: list[int]
    horizon: int
    method: ForecastMethod
    history_length: int
    lag_size: Optional[int] = None
    num_trees: Optional[int] = None
    seed: int = 42
    noise_pct: float = 0.01

    @model_validator(mode="after")
    def validate_shape(self) -> "ForecastResult":
        if self.horizon < 0:
            raise ValueError(f"horizon must be >= 0, got {self.horizon}.")
        if len(self.values) != self.horizon:
            raise ValueError(
                f"values has {len(self.values)} entries, expected horizon={self.horizon}."
            )
        if any(v < 0 for v in self.values):
            raise ValueError("forecast values must be non-negative.")
        return self

    @property
    def total(self) -> int:
        """Sum of the forecast, e.g. projected revenue to month end."""
        return sum(self.values)


class SeriesAccuracy(BaseModel):
    """Backtest accuracy for one series.

    Attributes:
        name:        Series label (``"series"``, ``"revenue"``, ``"patients"``).
        train_size:  Points used to fit.
        test_size:   Points held out and forecast.
        mape:        Mean absolute percentage error, in percent.
        mae:         Mean absolute error in series units.
        rmse:        Root mean squared error in series units.
        confidence:  ``max(floor, 100 - mape)`` before blending and bonus.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    train_size: int
    test_size: int
    mape: float
    mae: float
    rmse: float
    confidence: float


class ConfidenceReport(BaseModel):
    """Confidence score plus the evidence behind it.

    ``method`` records which rule produced the score: the fixed baseline for
    short histories, the fixed short-test value, or a real backtest.
    """

    model_config = ConfigDict(frozen=True)

    confidence: int
    method: ConfidenceMethod
    n_points: int
    volume_bonus: int = 0
    series: list[SeriesAccuracy] = []

    @field_validator("confidence")
    @classmethod
    def validate_range(cls, v: int) -> int:
        if not 0 <= v <= 100:
            raise ValueError(f"confidence must be in [0, 100], got {v}.")
        return v


ProjectionMethod = Literal["random_forest", "exponential_fallback", "daily_average", "no_data"]


class MonthProjection(BaseModel):
    """Month-to-date revenue plus a projection for the rest of the month.

    Attributes:
        month_start:    First day of the projected month.
        actual:         Revenue recorded so far this month.
        projected:      Forecast revenue for the remaining days.
        remaining_days: Days after ``today`` until month end.
        days_recorded:  Days of this month present in the input.
        method:         How ``projected`` was produced; ``"no_data"`` when the
                        month has no recorded days.
    """

    model_config = ConfigDict(frozen=True)

    month_start: date
    actual: float = 0.0
    projected: float = 0.0
    remaining_days: int = 0
    days_recorded: int = 0
    method: ProjectionMethod = "no_data"

    @field_validator("actual", "projected")
    @classmethod
    def validate_non_negative(cls, v: float) -> float:
        if v < 0:
            raise ValueError(f"revenue must be non-negative, got {v}.")
        return v

    @computed_field  # type: ignore[misc]
    @property
    def total(self) -> float:
        """Recorded plus projected revenue for the whole month."""
        return self.actual + self.projected
