"""Aggregate statistics schemas."""

import uuid
from datetime import date, datetime

from pydantic import BaseModel, Field

from a1c_estimator.core.glucose.enums import MealContext


class BucketShareResponse(BaseModel):
    model_config = {"from_attributes": True}

    count: int
    percent: float


class DistributionResponse(BaseModel):
    """Readings per glucose category.

    Low < 70 <= Normal <= 140 < High <= 180 < Very High (mg/dL).
    """

    model_config = {"from_attributes": True}

    total: int
    low: BucketShareResponse
    normal: BucketShareResponse
    high: BucketShareResponse
    very_high: BucketShareResponse


class StatsResponse(BaseModel):
    """Statistics over a window of readings."""

    model_config = {"from_attributes": True}

    user_id: uuid.UUID
    start: datetime | None
    end: datetime | None
    reading_count: int
    average_glucose: float | None = Field(
        description="Mean value in mg/dL, null when there are no readings"
    )
    a1c_estimate: float | None = Field(
        description="Estimated A1C (%), null below the minimum reading count"
    )
    time_in_range_percent: float
    distribution: DistributionResponse
    has_data: bool
    sufficient_data: bool


class EstimateResponse(BaseModel):
    """A1C estimate over stored or submitted readings."""

    user_id: uuid.UUID | None = None
    reading_count: int
    average_glucose: float | None
    a1c_estimate: float | None
    sufficient_data: bool
    start: datetime | None = None
    end: datetime | None = None
    message: str | None = None


class EstimateReadingInput(BaseModel):
    value: float
    meal_context: MealContext | None = None


class EstimateRequest(BaseModel):
    """Ad-hoc estimate request; nothing is stored."""

    readings: list[EstimateReadingInput] = Field(min_length=1)
    weights: dict[MealContext, float] | None = Field(
        default=None,
        description="Optional per-meal-context weights; missing contexts weigh 1",
    )


class LatestMonthSummary(BaseModel):
    model_config = {"from_attributes": True}

    id: uuid.UUID
    name: str
    start_date: date
    end_date: date
    calculated_a1c: float | None
    average_glucose: float | None


class DashboardSummaryResponse(BaseModel):
    """Headline numbers for the dashboard."""

    user_id: uuid.UUID
    latest_month: LatestMonthSummary | None
    recent_readings_count: int = Field(description="Readings in the last 30 days")
    total_runs_count: int
