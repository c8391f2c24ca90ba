"""
Date helpers for forecast horizons.

The dashboard forecasts "from the day after the last recorded day to the end
of the current month"; ``forecast_dates`` produces exactly those dates, and
its length is the horizon passed to the forecaster.
"""

from __future__ import annotations

import calendar
from datetime import date, datetime, timedelta


def date_range(start: date, end: date, step_days: int = 1) -> list[date]:
    """Generate a list of dates from ``start`` to ``end`` (inclusive).

    Raises:
        ValueError: If ``end < start`` or ``step_days < 1``.
    """
    if end < start:
        raise ValueError(f"end ({end}) must be >= start ({start}).")
    if step_days < 1:
        raise ValueError(f"step_days must be >= 1, got {step_days}.")

    result: list[date] = []
    current = start
    while current <= end:
        result.append(current)
        current += timedelta(days=step_days)
    return result


def end_of_month(check_date: date) -> date:
    """Return the last calendar day of ``check_date``'s month."""
    last_day = calendar.monthrange(check_date.year, check_date.month)[1]
    return check_date.replace(day=last_day)


def forecast_dates(
    last_date: date,
    today: date,
    is_current_month: bool = True,
) -> list[date]:
    """Dates to forecast: the day after ``last_date`` through month end.

    Args:
        last_date:        Last date with recorded data.
        today:            Reference date; its month bounds the forecast.
        is_current_month: ``False`` when the caller is viewing a past month,
                          in which case there is nothing to forecast.

    Returns:
        Consecutive dates, possibly empty.  Empty when not viewing the
        current month or when ``last_date`` is on or after month end.
    """
    month_end = end_of_month(today)
    if not is_current_month or last_date >= month_end:
        return []
    return date_range(last_date + timedelta(days=1), month_end)


def parse_iso_date(value: str | date) -> date:
    """Accept a ``date`` or an ISO ``YYYY-MM-DD`` string (time part ignored)."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value)[:10])
