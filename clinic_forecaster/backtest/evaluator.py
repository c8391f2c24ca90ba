"""
Backtested confidence score for dashboard forecasts.

Procedure
---------
1.  Fewer than ``min_points`` (10) points → fixed baseline of 60.
2.  Split at ``floor(n × 0.7)``: the first part is history, the rest is held
    out.  A held-out part shorter than 3 points → fixed 65.
3.  Forecast the held-out horizon from the history with the same
    ``AutoregressiveForecaster`` used for live forecasts, and compute MAPE
    against the held-out actuals.
4.  Per-series confidence = ``max(50, 100 - MAPE)``.
5.  Clinic-wide evaluation blends revenue and patient-count confidence
    ``0.6 / 0.4``.
6.  Add a data-volume bonus ``min(10, n // 10)``, round, cap at 95.

The floor in step 4 means any series with at least 3 points scores >= 50.

Leakage prevention
------------------
The forecaster only ever sees ``series[:train_size]``.  The held-out values
are used solely for scoring.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Optional, Sequence

from clinic_forecaster.backtest.metrics import compute_metrics
from clinic_forecaster.config import AppConfig
from clinic_forecaster.forecasting.autoregressive import AutoregressiveForecaster
from clinic_forecaster.models.forecast import ConfidenceReport, SeriesAccuracy
from clinic_forecaster.utils.numeric import round_half_up
from clinic_forecaster.validation import InvalidSeriesError, validate_series

logger = logging.getLogger(__name__)

MAX_VOLUME_BONUS = 10
POINTS_PER_BONUS = 10


@dataclass(frozen=True)
class TrainTestSplit:
    """History and held-out parts of one series."""

    train: list[float]
    test: list[float]


def split_train_test(values: Sequence[float], train_fraction: float = 0.7) -> TrainTestSplit:
    """Split at ``floor(len(values) * train_fraction)``."""
    if not 0.0 < train_fraction < 1.0:
        raise ValueError(f"train_fraction must be in (0.0, 1.0), got {train_fraction}.")
    train_size = math.floor(len(values) * train_fraction)
    return TrainTestSplit(train=list(values[:train_size]), test=list(values[train_size:]))


def volume_bonus(n_points: int) -> int:
    """``min(10, n // 10)``: one point per ten days of history."""
    return min(MAX_VOLUME_BONUS, n_points // POINTS_PER_BONUS)


class BacktestEvaluator:
    """Turns backtest MAPE into a 0–100 confidence score.

    Stateless apart from settings; every ``evaluate*`` call runs its own
    backtest.
    """

    def __init__(
        self,
        forecaster: Optional[AutoregressiveForecaster] = None,
        min_points: int = 10,
        train_fraction: float = 0.7,
        min_test_points: int = 3,
        baseline_confidence: int = 60,
        short_test_confidence: int = 65,
        confidence_floor: int = 50,
        confidence_cap: int = 95,
        revenue_weight: float = 0.6,
        patient_weight: float = 0.4,
    ) -> None:
        self.forecaster = forecaster or AutoregressiveForecaster()
        self.min_points = min_points
        self.train_fraction = train_fraction
        self.min_test_points = min_test_points
        self.baseline_confidence = baseline_confidence
        self.short_test_confidence = short_test_confidence
        self.confidence_floor = confidence_floor
        self.confidence_cap = confidence_cap
        self.revenue_weight = revenue_weight
        self.patient_weight = patient_weight

    @classmethod
    def from_config(cls, config: AppConfig) -> "BacktestEvaluator":
        bt = config.backtest
        return cls(
            forecaster=AutoregressiveForecaster.from_config(config),
            min_points=bt.min_points,
            train_fraction=bt.train_fraction,
            min_test_points=bt.min_test_points,
            baseline_confidence=bt.baseline_confidence,
            short_test_confidence=bt.short_test_confidence,
            confidence_floor=bt.confidence_floor,
            confidence_cap=bt.confidence_cap,
            revenue_weight=bt.revenue_weight,
            patient_weight=bt.patient_weight,
        )

    # ── Public API ────────────────────────────────────────────────────────────

    def evaluate(self, series: Sequence[float]) -> ConfidenceReport:
        """Confidence report for a single series."""
        values = validate_series(series)
        early = self._early_exit(values)
        if early is not None:
            return early

        accuracy = self._backtest(values, "series")
        return self._finalize(accuracy.confidence, len(values), [accuracy])

    def evaluate_clinic(
        self,
        revenue: Sequence[float],
        patients: Sequence[float],
    ) -> ConfidenceReport:
        """Blended confidence for aligned daily revenue and patient-count series.

        Raises:
            InvalidSeriesError: If the two series differ in length.
        """
        revenue_values = validate_series(revenue, "revenue")
        patient_values = validate_series(patients, "patients")
        if len(revenue_values) != len(patient_values):
            raise InvalidSeriesError(
                f"revenue and patients must be aligned, got {len(revenue_values)} "
                f"and {len(patient_values)} points."
            )

        early = self._early_exit(revenue_values)
        if early is not None:
            return early

        revenue_acc = self._backtest(revenue_values, "revenue")
        patient_acc = self._backtest(patient_values, "patients")
        blended = (
            revenue_acc.confidence * self.revenue_weight
            + patient_acc.confidence * self.patient_weight
        )
        return self._finalize(blended, len(revenue_values), [revenue_acc, patient_acc])

    # ── Internal helpers ───────────────────────────────────────────────────────

    def _early_exit(self, values: list[float]) -> Optional[ConfidenceReport]:
        n = len(values)
        if n < self.min_points:
            logger.debug("Only %d points; returning baseline confidence.", n)
            return ConfidenceReport(
                confidence=self.baseline_confidence, method="baseline", n_points=n
            )
        split = split_train_test(values, self.train_fraction)
        if len(split.test) < self.min_test_points:
            logger.debug("Held-out window of %d points is too short.", len(split.test))
            return ConfidenceReport(
                confidence=self.short_test_confidence, method="short_test", n_points=n
            )
        return None

    def _backtest(self, values: list[float], name: str) -> SeriesAccuracy:
        split = split_train_test(values, self.train_fraction)
        result = self.forecaster.forecast(split.train, len(split.test))
        metrics = compute_metrics(split.test, [float(v) for v in result.values])
        mape = metrics.mape or 0.0
        confidence = max(float(self.confidence_floor), 100.0 - mape)

        logger.debug(
            "Backtest %s: train=%d test=%d method=%s mape=%.2f%% confidence=%.1f",
            name, len(split.train), len(split.test), result.method, mape, confidence,
        )
        return SeriesAccuracy(
            name=name,
            train_size=len(split.train),
            test_size=len(split.test),
            mape=mape,
            mae=metrics.mae or 0.0,
            rmse=metrics.rmse or 0.0,
            confidence=confidence,
        )

    def _finalize(
        self,
        score: float,
        n_points: int,
        series: list[SeriesAccuracy],
    ) -> ConfidenceReport:
        bonus = volume_bonus(n_points)
        final = min(self.confidence_cap, round_half_up(score + bonus))
        return ConfidenceReport(
            confidence=final,
            method="backtest",
            n_points=n_points,
            volume_bonus=bonus,
            series=series,
        )


def confidence(series: Sequence[float]) -> int:
    """Confidence (0–100) for forecasts of ``series`` with default settings."""
    return BacktestEvaluator().evaluate(series).confidence


def clinic_confidence(revenue: Sequence[float], patients: Sequence[float]) -> int:
    """Blended revenue/patient confidence (0–100) with default settings."""
    return BacktestEvaluator().evaluate_clinic(revenue, patients).confidence
