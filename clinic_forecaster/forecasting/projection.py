"""
Month-to-date revenue projection.

The dashboard's "revenue this month" figure is recorded revenue so far plus a
forecast for the days left after ``today``:

  actual     sum of daily revenue (returning + new) dated in ``today``'s month
  projected  with >= ``min_history`` (10) days of revenue history, the sum of
             an ``AutoregressiveForecaster`` forecast over the remaining days;
             otherwise this month's daily average × remaining days
  total      actual + projected

History defaults to the same trends; callers viewing a filtered date range
pass the complete record set as ``history`` so the forest trains on all of
it.  A month with no recorded days projects nothing.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import Optional

from clinic_forecaster.forecasting.autoregressive import AutoregressiveForecaster
from clinic_forecaster.models.analytics import DailyTrends
from clinic_forecaster.models.forecast import MonthProjection
from clinic_forecaster.utils.time_utils import end_of_month

logger = logging.getLogger(__name__)


def daily_revenue(trends: DailyTrends) -> list[float]:
    """Total revenue per day; zeros when the trends carry no revenue."""
    return trends.total_revenue or [0.0] * len(trends.dates)


def project_month_revenue(
    trends: DailyTrends,
    today: date,
    history: Optional[DailyTrends] = None,
    forecaster: Optional[AutoregressiveForecaster] = None,
) -> MonthProjection:
    """Project total revenue for ``today``'s month.

    Args:
        trends:     Daily trends containing (at least) this month's days.
        today:      Reference date; the days after it are projected.
        history:    Full revenue history to train on; ``trends`` when omitted
                    or empty.
        forecaster: Forecast settings; defaults to ``AutoregressiveForecaster()``.

    Returns:
        A ``MonthProjection``; ``method="no_data"`` and zeros when ``trends``
        has no day in the month.
    """
    forecaster = forecaster or AutoregressiveForecaster()
    month_start = today.replace(day=1)
    remaining_days = (end_of_month(today) - today).days

    month_revenue = [
        revenue
        for d, revenue in zip(trends.dates, daily_revenue(trends))
        if (d.year, d.month) == (today.year, today.month)
    ]
    if not month_revenue:
        return MonthProjection(month_start=month_start, remaining_days=remaining_days)

    actual = sum(month_revenue)
    source = history if history is not None and history.dates else trends
    series = source.total_revenue

    if len(series) >= forecaster.min_history:
        result = forecaster.forecast(series, remaining_days)
        projected = float(result.total)
        method = result.method
    else:
        projected = actual / len(month_revenue) * remaining_days
        method = "daily_average"

    logger.debug(
        "Month projection %s: recorded=%d history=%d remaining=%d method=%s",
        month_start.isoformat(), len(month_revenue), len(series), remaining_days, method,
    )
    return MonthProjection(
        month_start=month_start,
        actual=actual,
        projected=projected,
        remaining_days=remaining_days,
        days_recorded=len(month_revenue),
        method=method,
    )
