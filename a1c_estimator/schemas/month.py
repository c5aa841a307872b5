"""Month schemas."""

import uuid
from datetime import date, datetime

from pydantic import BaseModel, Field, model_validator

from a1c_estimator.core.glucose.enums import A1CTrend
from a1c_estimator.schemas.run import RunResponse
from a1c_estimator.schemas.stats import DistributionResponse


class MonthCreate(BaseModel):
    """Request schema for creating a month."""

    name: str = Field(min_length=1, max_length=200)
    start_date: date
    end_date: date

    @model_validator(mode="after")
    def validate_date_order(self) -> "MonthCreate":
        if self.end_date < self.start_date:
            msg = "end_date must not be before start_date"
            raise ValueError(msg)
        return self


class MonthUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=200)
    start_date: date | None = None
    end_date: date | None = None


class MonthResponse(BaseModel):
    model_config = {"from_attributes": True}

    id: uuid.UUID
    user_id: uuid.UUID
    name: str
    start_date: date
    end_date: date
    average_glucose: float | None
    calculated_a1c: float | None
    created_at: datetime


class MonthDetailResponse(MonthResponse):
    runs: list[RunResponse]


class MonthListResponse(BaseModel):
    months: list[MonthResponse]
    total: int


class MonthRunAttachRequest(BaseModel):
    run_id: uuid.UUID


class MonthCalculateRequest(BaseModel):
    weighted: bool = Field(
        default=False,
        description="Weight each run's average by its duration in days",
    )


class MonthCalculateResponse(BaseModel):
    month: MonthResponse
    contributing_runs: int
    weighted: bool


class MonthSummaryResponse(BaseModel):
    """Month overview with insights."""

    model_config = {"from_attributes": True}

    month_id: uuid.UUID
    total_readings: int
    readings_per_day: float
    lowest_reading: float | None
    highest_reading: float | None
    hourly_distribution: dict[int, int] = Field(
        description="Readings per hour of day (UTC)"
    )
    most_common_hour: int | None
    time_in_range_percent: float
    distribution: DistributionResponse
    a1c_trend: A1CTrend
    total_runs: int
    insights: list[str]
