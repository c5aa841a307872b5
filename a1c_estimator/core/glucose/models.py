"""Glucose domain records.

Pure data models with no database dependencies. Persistence rows convert
into these with ``Model.model_validate(row)`` (``from_attributes``), so the
domain rules never see SQLAlchemy objects.
"""

import uuid
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Self

from pydantic import BaseModel, ConfigDict, Field, model_validator

from a1c_estimator.core.glucose.enums import (
    A1CTrend,
    GlucoseCategory,
    MealContext,
    UserRole,
)

_RECORD_CONFIG = ConfigDict(frozen=True, from_attributes=True)


class UserIdentity(BaseModel):
    """The resolved acting user."""

    model_config = _RECORD_CONFIG

    id: uuid.UUID
    external_auth_id: str
    role: UserRole = UserRole.standard

    @property
    def is_caregiver(self) -> bool:
        return self.role == UserRole.caregiver


class Reading(BaseModel):
    """A single glucose measurement."""

    model_config = _RECORD_CONFIG

    id: uuid.UUID
    user_id: uuid.UUID
    value: float
    timestamp: datetime
    meal_context: MealContext
    notes: str | None = None
    run_id: uuid.UUID | None = None


class _DateSpan(BaseModel):
    model_config = _RECORD_CONFIG

    start_date: date
    end_date: date

    @model_validator(mode="after")
    def check_date_order(self) -> Self:
        if self.end_date < self.start_date:
            msg = "End date cannot be before start date"
            raise ValueError(msg)
        return self

    @property
    def duration_days(self) -> int:
        """Inclusive calendar days covered (a single-day span is 1)."""
        return (self.end_date - self.start_date).days + 1

    def contains(self, day: date) -> bool:
        return self.start_date <= day <= self.end_date


class Run(_DateSpan):
    """A named, bounded interval grouping readings.

    ``average_glucose`` and ``calculated_a1c`` are caches recomputed from
    the member readings; they are never authoritative.
    """

    id: uuid.UUID
    user_id: uuid.UUID
    name: str
    month_id: uuid.UUID | None = None
    average_glucose: float | None = None
    calculated_a1c: float | None = None


class Month(_DateSpan):
    """A named, bounded interval grouping runs."""

    id: uuid.UUID
    user_id: uuid.UUID
    name: str
    average_glucose: float | None = None
    calculated_a1c: float | None = None


@dataclass(frozen=True)
class ReadingCandidate:
    """Unvalidated reading input, exactly as received."""

    value: Any
    timestamp: Any
    meal_context: Any
    notes: Any = None


class ValidatedReading(BaseModel):
    """A candidate reading that passed validation, normalized."""

    model_config = ConfigDict(frozen=True)

    value: float
    timestamp: datetime
    meal_context: MealContext
    notes: str | None = None
    timestamp_clamped: bool = False


class BucketShare(BaseModel):
    model_config = ConfigDict(frozen=True)

    count: int = Field(ge=0)
    percent: float = Field(ge=0, le=100)


class Distribution(BaseModel):
    """Reading counts per glucose category with shares of the total."""

    model_config = ConfigDict(frozen=True)

    total: int = Field(ge=0)
    low: BucketShare
    normal: BucketShare
    high: BucketShare
    very_high: BucketShare

    def share(self, category: GlucoseCategory) -> BucketShare:
        return getattr(self, category.value)


class ReadingStats(BaseModel):
    """Aggregate statistics over a collection of readings.

    ``average_glucose`` is None when there is no data; ``a1c_estimate`` is
    None when there are fewer readings than the estimate requires.
    """

    model_config = ConfigDict(frozen=True)

    reading_count: int = Field(ge=0)
    average_glucose: float | None
    a1c_estimate: float | None
    time_in_range_percent: float = Field(ge=0, le=100)
    distribution: Distribution

    @property
    def has_data(self) -> bool:
        return self.reading_count > 0

    @property
    def sufficient_data(self) -> bool:
        return self.a1c_estimate is not None


class MonthStats(BaseModel):
    """Month-level average and estimate derived from its runs."""

    model_config = ConfigDict(frozen=True)

    average_glucose: float | None
    a1c_estimate: float | None
    contributing_runs: int = Field(ge=0)
    weighted: bool


class MonthSummary(BaseModel):
    """Month overview used by the summary view."""

    model_config = ConfigDict(frozen=True)

    total_readings: int = Field(ge=0)
    readings_per_day: float = Field(ge=0)
    lowest_reading: float | None
    highest_reading: float | None
    hourly_distribution: dict[int, int]
    most_common_hour: int | None
    time_in_range_percent: float = Field(ge=0, le=100)
    distribution: Distribution
    a1c_trend: A1CTrend
    total_runs: int = Field(ge=0)
    insights: list[str]


class GlucoseSample(BaseModel):
    """A bare value with an optional meal context, for ad-hoc estimates."""

    model_config = ConfigDict(frozen=True)

    value: float
    meal_context: MealContext | None = None
