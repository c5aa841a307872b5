"""Run schemas."""

import uuid
from datetime import date, datetime

from pydantic import BaseModel, Field, model_validator

from a1c_estimator.schemas.reading import ReadingResponse
from a1c_estimator.schemas.stats import DistributionResponse


class RunCreate(BaseModel):
    """Request schema for creating a run."""

    name: str = Field(min_length=1, max_length=200)
    start_date: date
    end_date: date
    month_id: uuid.UUID | None = None

    @model_validator(mode="after")
    def validate_date_order(self) -> "RunCreate":
        if self.end_date < self.start_date:
            msg = "end_date must not be before start_date"
            raise ValueError(msg)
        return self


class RunUpdate(BaseModel):
    """Request schema for updating a run.

    All fields are optional; date order is checked against the merged
    values.
    """

    name: str | None = Field(default=None, min_length=1, max_length=200)
    start_date: date | None = None
    end_date: date | None = None
    version: int | None = Field(
        default=None,
        description="Version the client last saw; a mismatch returns 409",
    )


class RunResponse(BaseModel):
    """Response schema for a run with its cached statistics."""

    model_config = {"from_attributes": True}

    id: uuid.UUID
    user_id: uuid.UUID
    name: str
    start_date: date
    end_date: date
    month_id: uuid.UUID | None
    average_glucose: float | None
    calculated_a1c: float | None
    version: int
    created_at: datetime


class RunDetailResponse(RunResponse):
    """A run together with its readings and live statistics."""

    readings: list[ReadingResponse]
    reading_count: int
    time_in_range_percent: float
    distribution: DistributionResponse


class RunListResponse(BaseModel):
    runs: list[RunResponse]
    total: int


class ReadingAssociationRequest(BaseModel):
    """Attach a reading to a run."""

    reading_id: uuid.UUID
    run_id: uuid.UUID


class ReadingAssociationResponse(BaseModel):
    reading: ReadingResponse
    run: RunResponse
