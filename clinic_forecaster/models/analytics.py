"""
Patient analytics input and output models.

``DailyTrends`` is the aligned, date-ordered clinic history the data-access
layer hands over: one entry per day for returning ("old") and first-visit
("new") patients and their revenue.

The output models mirror the dashboard's analytics cards.  All are frozen.
"""

from __future__ import annotations

from datetime import date

from pydantic import BaseModel, ConfigDict, field_validator, model_validator


class DailyTrends(BaseModel):
    """Aligned daily clinic totals.

    Attributes:
        dates:        Calendar days, ascending.
        old_patients: Returning patients per day.
        new_patients: First-visit patients per day.
        old_revenue:  Revenue from returning patients per day.
        new_revenue:  Revenue from first-visit patients per day.

    Revenue lists may be left empty when only patient counts are known;
    otherwise every list must match ``dates`` in length.
    """

    model_config = ConfigDict(frozen=True)

    dates: list[date]
    old_patients: list[float]
    new_patients: list[float]
    old_revenue: list[float] = []
    new_revenue: list[float] = []

    @field_validator("old_patients", "new_patients", "old_revenue", "new_revenue")
    @classmethod
    def validate_non_negative(cls, v: list[float]) -> list[float]:
        if any(x < 0 for x in v):
            raise ValueError("daily totals must be non-negative.")
        return v

    @model_validator(mode="after")
    def validate_alignment(self) -> "DailyTrends":
        n = len(self.dates)
        for name in ("old_patients", "new_patients"):
            if len(getattr(self, name)) != n:
                raise ValueError(f"{name} has {len(getattr(self, name))} entries, expected {n}.")
        for name in ("old_revenue", "new_revenue"):
            values = getattr(self, name)
            if values and len(values) != n:
                raise ValueError(f"{name} has {len(values)} entries, expected {n}.")
        if any(b <= a for a, b in zip(self.dates, self.dates[1:])):
            raise ValueError("dates must be strictly ascending.")
        return self

    @property
    def total_patients(self) -> list[float]:
        return [o + n for o, n in zip(self.old_patients, self.new_patients)]

    @property
    def total_revenue(self) -> list[float]:
        if not self.old_revenue and not self.new_revenue:
            return []
        old = self.old_revenue or [0.0] * len(self.dates)
        new = self.new_revenue or [0.0] * len(self.dates)
        return [o + n for o, n in zip(old, new)]


class RetentionData(BaseModel):
    """Returning-patient retention card. All figures are whole numbers."""

    model_config = ConfigDict(frozen=True)

    retention_rate: int = 0
    return_probability: int = 0
    average_visit_gap: int = 0
    predicted_churn: int = 0
    confidence_score: int = 0


class FrequencyData(BaseModel):
    """Visit-frequency card.

    ``visit_frequency_distribution`` holds seven percentages, Sunday first.
    """

    model_config = ConfigDict(frozen=True)

    peak_days: list[str] = []
    slowest_days: list[str] = []
    ideal_capacity: int = 0
    visit_frequency_distribution: list[int] = [0, 0, 0, 0, 0, 0, 0]
    confidence_score: int = 0


class GrowthForecastData(BaseModel):
    """Patient growth projection card."""

    model_config = ConfigDict(frozen=True)

    growth_rate: float
    estimated_monthly_growth: int
    estimated_annual_patients: int


class PatientAnalytics(BaseModel):
    """All three patient analytics cards for one clinic history."""

    model_config = ConfigDict(frozen=True)

    retention: RetentionData
    frequency: FrequencyData
    growth: GrowthForecastData
