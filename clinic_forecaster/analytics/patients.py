"""
Patient retention, visit-frequency and growth analytics.

These cards sit next to the revenue forecast on the analytics dashboard and
reuse the same engine:

  retention   A light forest (5 trees, seed 42) fitted on the daily share of
              returning patients predicts the next share; that becomes the
              return probability.  Average visit gap comes from the spacing
              of local peaks in returning-patient counts.
  frequency   Weekday profile of total visits: peak/slow days, a 90th
              percentile "ideal capacity" and the weekday distribution.
  growth      Average growth over the last week of returning and new
              patient counts, projected to a month and a year.

Short histories return neutral cards instead of raising: fewer than 10 days
for retention, fewer than 7 for frequency.
"""

from __future__ import annotations

import logging
import math
from datetime import date
from typing import Optional

from clinic_forecaster.config import ForestConfig
from clinic_forecaster.features.lag_features import extract_features
from clinic_forecaster.forecasting.autoregressive import MIN_HISTORY, choose_lag_size
from clinic_forecaster.forecasting.fallback import average_growth_rate
from clinic_forecaster.ml.forest import (
    DEFAULT_SEED,
    LIGHT_NUM_TREES,
    TREE_MAX_DEPTH,
    TREE_MIN_SAMPLES_SPLIT,
    build_forest,
    predict_forest,
)
from clinic_forecaster.models.analytics import (
    DailyTrends,
    FrequencyData,
    GrowthForecastData,
    PatientAnalytics,
    RetentionData,
)
from clinic_forecaster.utils.numeric import population_variance, round_half_up

logger = logging.getLogger(__name__)

WEEKDAY_NAMES = ["Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday"]

DEFAULT_VISIT_GAP_DAYS = 14
BASE_RETENTION_CONFIDENCE = 75.0
MAX_CONFIDENCE = 95
MIN_FREQUENCY_DAYS = 7
CAPACITY_PERCENTILE = 0.9
RECENT_WINDOW_DAYS = 7


def weekday_index(d: date) -> int:
    """Sunday-first weekday index (Sunday=0 … Saturday=6)."""
    return (d.weekday() + 1) % 7


# ── Retention ──────────────────────────────────────────────────────────────────


def analyze_patient_retention(
    trends: DailyTrends,
    num_trees: int = LIGHT_NUM_TREES,
    seed: int = DEFAULT_SEED,
    max_depth: int = TREE_MAX_DEPTH,
    min_samples_split: int = TREE_MIN_SAMPLES_SPLIT,
    threshold_strategy: str = "midpoint",
) -> RetentionData:
    """Retention, return probability, churn and visit gap for a clinic history.

    The forest settings default to the light configuration (5 trees, seed 42)
    and are passed straight to ``build_forest``.

    Returns an all-zero card when fewer than 10 days are available.
    """
    days = len(trends.dates)
    if days < MIN_HISTORY:
        return RetentionData()

    total_old = sum(trends.old_patients)
    total_new = sum(trends.new_patients)
    total = total_old + total_new
    retention_rate = total_old / total * 100 if total > 0 else 0.0

    ratios = [
        old / (old + new) if old + new > 0 else 0.0
        for old, new in zip(trends.old_patients, trends.new_patients)
    ]
    X, y = extract_features(ratios, choose_lag_size(days))

    return_probability = retention_rate
    predicted_churn = 0.0
    confidence = BASE_RETENTION_CONFIDENCE
    if X:
        forest = build_forest(
            X,
            y,
            num_trees=num_trees,
            seed=seed,
            max_depth=max_depth,
            min_samples_split=min_samples_split,
            threshold_strategy=threshold_strategy,
        )
        return_probability = predict_forest(forest, X[-1]) * 100
        predicted_churn = 100 - return_probability

        data_quality = min(100, days * 5)
        confidence = min(
            float(MAX_CONFIDENCE),
            BASE_RETENTION_CONFIDENCE + data_quality / 100 * 20 - population_variance(y) * 50,
        )

    visit_gap = average_visit_gap(trends) if total_old > 0 and days > 1 else DEFAULT_VISIT_GAP_DAYS

    return RetentionData(
        retention_rate=round_half_up(retention_rate),
        return_probability=round_half_up(return_probability),
        average_visit_gap=round_half_up(visit_gap),
        predicted_churn=round_half_up(predicted_churn),
        confidence_score=round_half_up(confidence),
    )


def average_visit_gap(trends: DailyTrends) -> float:
    """Mean days between consecutive local peaks of returning-patient counts.

    A day is a peak when it exceeds the previous day and the next day (a
    missing next day counts as 0).  Falls back to 14 days when fewer than two
    peaks exist.
    """
    old = trends.old_patients
    gaps: list[int] = []
    last_peak: int | None = None
    for i in range(1, len(old)):
        following = old[i + 1] if i + 1 < len(old) else 0
        if old[i] > old[i - 1] and old[i] > following:
            if last_peak is not None:
                gaps.append(abs((trends.dates[i] - trends.dates[last_peak]).days))
            last_peak = i
    if not gaps:
        return float(DEFAULT_VISIT_GAP_DAYS)
    return sum(gaps) / len(gaps)


# ── Visit frequency ────────────────────────────────────────────────────────────


def analyze_visit_frequency(trends: DailyTrends) -> FrequencyData:
    """Weekday visit profile; an empty card for fewer than 7 days."""
    days = len(trends.dates)
    if days < MIN_FREQUENCY_DAYS:
        return FrequencyData()

    weekday_totals = [0.0] * 7
    weekday_counts = [0] * 7
    daily_totals = trends.total_patients
    for d, total in zip(trends.dates, daily_totals):
        idx = weekday_index(d)
        weekday_totals[idx] += total
        weekday_counts[idx] += 1

    averages = [
        (WEEKDAY_NAMES[i], weekday_totals[i] / weekday_counts[i] if weekday_counts[i] else 0.0)
        for i in range(7)
    ]
    peak_days = [name for name, _ in sorted(averages, key=lambda a: -a[1])[:2]]
    slowest_days = [name for name, _ in sorted(averages, key=lambda a: a[1])[:2]]

    sorted_totals = sorted(daily_totals)
    ideal_capacity = sorted_totals[math.floor(len(sorted_totals) * CAPACITY_PERCENTILE)]

    grand_total = sum(weekday_totals)
    distribution = [
        round_half_up(t / grand_total * 100) if grand_total > 0 else 0
        for t in weekday_totals
    ]

    weeks_of_data = days // 7
    confidence = min(MAX_CONFIDENCE, 50 + weeks_of_data * 10)
    confidence -= 10 * sum(1 for c in weekday_counts if c == 0)

    return FrequencyData(
        peak_days=peak_days,
        slowest_days=slowest_days,
        ideal_capacity=round_half_up(ideal_capacity),
        visit_frequency_distribution=distribution,
        confidence_score=max(0, confidence),
    )


# ── Growth ─────────────────────────────────────────────────────────────────────


def patient_growth_forecast(trends: DailyTrends) -> GrowthForecastData:
    """Project patient growth from the last week of daily counts.

    The growth rate is averaged over the last 7 returning-patient counts
    followed by the last 7 new-patient counts, matching the dashboard card.
    """
    recent = (
        trends.old_patients[-RECENT_WINDOW_DAYS:]
        + trends.new_patients[-RECENT_WINDOW_DAYS:]
    )
    growth_rate = average_growth_rate(recent)
    total = sum(trends.old_patients) + sum(trends.new_patients)

    return GrowthForecastData(
        growth_rate=growth_rate,
        estimated_monthly_growth=round_half_up(total * (growth_rate / 100) * 30),
        estimated_annual_patients=round_half_up(total * (1 + growth_rate / 100) ** 12),
    )


def analyze_patients(
    trends: DailyTrends,
    forest: Optional[ForestConfig] = None,
) -> PatientAnalytics:
    """All patient analytics cards for ``trends``.

    ``forest`` supplies the retention model settings; its ``light_num_trees``
    is the tree count.  Defaults to ``ForestConfig()``.
    """
    forest = forest or ForestConfig()
    logger.debug("Patient analytics over %d days.", len(trends.dates))
    return PatientAnalytics(
        retention=analyze_patient_retention(
            trends,
            num_trees=forest.light_num_trees,
            seed=forest.seed,
            max_depth=forest.max_depth,
            min_samples_split=forest.min_samples_split,
            threshold_strategy=forest.threshold_strategy,
        ),
        frequency=analyze_visit_frequency(trends),
        growth=patient_growth_forecast(trends),
    )
