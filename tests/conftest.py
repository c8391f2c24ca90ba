"""
Shared pytest fixtures for the clinic forecaster test suite.

Provides:
  - Daily series fixtures with hand-checkable shapes (constant, linear trend,
    weekly revenue pattern).
  - ``sample_trends``: four weeks of ``DailyTrends`` starting on a Sunday.
"""

from __future__ import annotations

from datetime import date, timedelta

import pytest

from clinic_forecaster.models.analytics import DailyTrends

# 2025-01-05 is a Sunday; weekday-based tests rely on that.
TRENDS_START = date(2025, 1, 5)


@pytest.fixture
def constant_series() -> list[float]:
    """Ten identical daily totals."""
    return [100.0] * 10


@pytest.fixture
def trend_series() -> list[float]:
    """Twenty days growing by exactly +10/day: 100, 110, …, 290."""
    return [100.0 + 10 * i for i in range(20)]


@pytest.fixture
def weekly_revenue() -> list[float]:
    """Eight weeks of revenue with a weekend dip and slow growth."""
    pattern = [1200, 1500, 1450, 1600, 1700, 900, 400]
    return [float(pattern[i % 7] + 5 * i) for i in range(56)]


@pytest.fixture
def sample_trends() -> DailyTrends:
    """28 days: 3 returning and 1 new patient every day, flat revenue."""
    days = 28
    return DailyTrends(
        dates=[TRENDS_START + timedelta(days=i) for i in range(days)],
        old_patients=[3.0] * days,
        new_patients=[1.0] * days,
        old_revenue=[300.0] * days,
        new_revenue=[150.0] * days,
    )
