"""
Tests for the patient analytics cards.

What we test
------------
1. Retention: rate, forest-predicted return probability, churn, confidence.
2. Visit gap from returning-patient peaks.
3. Visit frequency: weekday profile, capacity, distribution, confidence.
4. Growth projection from the last week.
5. Short histories return neutral cards.
6. ``DailyTrends`` input validation.
"""

from __future__ import annotations

from datetime import date, timedelta

import pytest
from pydantic import ValidationError

from clinic_forecaster.analytics import patients
from clinic_forecaster.analytics.patients import (
    analyze_patient_retention,
    analyze_patients,
    analyze_visit_frequency,
    average_visit_gap,
    patient_growth_forecast,
    weekday_index,
)
from clinic_forecaster.config import ForestConfig
from clinic_forecaster.ml.forest import build_forest
from clinic_forecaster.models.analytics import DailyTrends, FrequencyData, RetentionData

TRENDS_START = date(2025, 1, 5)   # a Sunday


def _trends(old: list[float], new: list[float] | None = None, start: date = TRENDS_START) -> DailyTrends:
    new = new if new is not None else [0.0] * len(old)
    return DailyTrends(
        dates=[start + timedelta(days=i) for i in range(len(old))],
        old_patients=old,
        new_patients=new,
    )


# ── Weekday index ──────────────────────────────────────────────────────────────

def test_weekday_index_is_sunday_first() -> None:
    assert weekday_index(date(2025, 1, 5)) == 0      # Sunday
    assert weekday_index(date(2025, 1, 6)) == 1      # Monday
    assert weekday_index(date(2025, 1, 11)) == 6     # Saturday


# ── Retention ──────────────────────────────────────────────────────────────────

def test_retention_steady_clinic(sample_trends: DailyTrends) -> None:
    card = analyze_patient_retention(sample_trends)
    assert card.retention_rate == 75
    assert card.return_probability == 75
    assert card.predicted_churn == 25
    assert card.confidence_score == 95
    assert card.average_visit_gap == 14       # flat counts have no peaks


def test_retention_short_history_is_empty() -> None:
    assert analyze_patient_retention(_trends([3.0] * 9, [1.0] * 9)) == RetentionData()


def test_retention_no_patients() -> None:
    card = analyze_patient_retention(_trends([0.0] * 14))
    assert card.retention_rate == 0
    assert card.return_probability == 0
    assert card.predicted_churn == 100


def test_retention_confidence_never_exceeds_cap(sample_trends: DailyTrends) -> None:
    assert analyze_patient_retention(sample_trends).confidence_score <= 95


def test_visit_gap_from_peaks() -> None:
    trends = _trends([1.0, 5.0, 1.0] * 4, [1.0] * 12)
    assert average_visit_gap(trends) == pytest.approx(3.0)
    assert analyze_patient_retention(trends).average_visit_gap == 3


def test_visit_gap_last_day_peak_counts() -> None:
    """A missing next day counts as 0, so a rising last day is a peak."""
    trends = _trends([1.0, 4.0, 1.0, 1.0, 1.0, 4.0])
    assert average_visit_gap(trends) == pytest.approx(4.0)


# ── Visit frequency ────────────────────────────────────────────────────────────

def test_frequency_weekday_profile() -> None:
    # Two weeks from a Sunday; weekday i sees (i + 1) * 10 visits.
    trends = _trends([float((i % 7 + 1) * 10) for i in range(14)])
    card = analyze_visit_frequency(trends)
    assert card.peak_days == ["Saturday", "Friday"]
    assert card.slowest_days == ["Sunday", "Monday"]
    assert card.ideal_capacity == 70
    assert card.visit_frequency_distribution == [4, 7, 11, 14, 18, 21, 25]
    assert card.confidence_score == 70


def test_frequency_missing_weekdays_lower_confidence() -> None:
    mondays = [TRENDS_START + timedelta(days=1 + 7 * i) for i in range(7)]
    trends = DailyTrends(dates=mondays, old_patients=[5.0] * 7, new_patients=[1.0] * 7)
    assert analyze_visit_frequency(trends).confidence_score == 0


def test_frequency_short_history_is_empty() -> None:
    card = analyze_visit_frequency(_trends([5.0] * 6))
    assert card == FrequencyData()
    assert card.visit_frequency_distribution == [0] * 7


def test_frequency_no_visits_distribution_zero() -> None:
    card = analyze_visit_frequency(_trends([0.0] * 7))
    assert card.visit_frequency_distribution == [0] * 7


def test_frequency_confidence_capped(sample_trends: DailyTrends) -> None:
    long = _trends([4.0] * 70)
    assert analyze_visit_frequency(long).confidence_score == 95
    assert analyze_visit_frequency(sample_trends).confidence_score == 90


# ── Growth ─────────────────────────────────────────────────────────────────────

def test_growth_flat_counts() -> None:
    card = patient_growth_forecast(_trends([10.0] * 10, [10.0] * 10))
    assert card.growth_rate == 0.0
    assert card.estimated_monthly_growth == 0
    assert card.estimated_annual_patients == 200


def test_growth_concatenates_returning_then_new() -> None:
    # Recent window [100, 110, 0, 0]: +10 %, -100 %, then a zero start is skipped.
    card = patient_growth_forecast(_trends([100.0, 110.0], [0.0, 0.0]))
    assert card.growth_rate == pytest.approx(-45.0)
    assert card.estimated_monthly_growth == -2835
    assert card.estimated_annual_patients == 0


# ── Combined and validation ────────────────────────────────────────────────────

def test_analyze_patients_empty_history() -> None:
    result = analyze_patients(DailyTrends(dates=[], old_patients=[], new_patients=[]))
    assert result.retention == RetentionData()
    assert result.frequency == FrequencyData()
    assert result.growth.growth_rate == 0.0


def test_trends_misaligned_rejected() -> None:
    with pytest.raises(ValidationError):
        DailyTrends(dates=[TRENDS_START], old_patients=[1.0, 2.0], new_patients=[1.0])


def test_trends_dates_must_ascend() -> None:
    with pytest.raises(ValidationError):
        DailyTrends(
            dates=[TRENDS_START, TRENDS_START],
            old_patients=[1.0, 1.0],
            new_patients=[1.0, 1.0],
        )


def test_trends_negative_rejected() -> None:
    with pytest.raises(ValidationError):
        _trends([1.0, -1.0])


def test_total_revenue(sample_trends: DailyTrends) -> None:
    assert sample_trends.total_revenue[0] == 450.0
    assert _trends([1.0]).total_revenue == []


# ── Forest settings ────────────────────────────────────────────────────────────

def _spy_on_build_forest(monkeypatch: pytest.MonkeyPatch) -> list[dict]:
    calls: list[dict] = []

    def spy(X, y, **kwargs):
        calls.append(kwargs)
        return build_forest(X, y, **kwargs)

    monkeypatch.setattr(patients, "build_forest", spy)
    return calls


def test_retention_defaults_to_light_forest(
    sample_trends: DailyTrends, monkeypatch: pytest.MonkeyPatch
) -> None:
    calls = _spy_on_build_forest(monkeypatch)
    analyze_patients(sample_trends)
    assert calls == [
        {
            "num_trees": 5,
            "seed": 42,
            "max_depth": 3,
            "min_samples_split": 2,
            "threshold_strategy": "midpoint",
        }
    ]


def test_forest_config_reaches_retention_model(
    sample_trends: DailyTrends, monkeypatch: pytest.MonkeyPatch
) -> None:
    calls = _spy_on_build_forest(monkeypatch)
    forest = ForestConfig(
        light_num_trees=3, seed=7, max_depth=2, min_samples_split=4, threshold_strategy="linspace"
    )
    result = analyze_patients(sample_trends, forest)
    assert calls == [
        {
            "num_trees": 3,
            "seed": 7,
            "max_depth": 2,
            "min_samples_split": 4,
            "threshold_strategy": "linspace",
        }
    ]
    assert result.retention.return_probability == 75
