"""Glucose reading schemas.

Value and meal-context rules (positivity, the 1000 mg/dL ceiling, the
closed meal-context set) are enforced by the domain validator so every
entry path reports them the same way.
"""

import uuid
from datetime import datetime

from pydantic import BaseModel, Field

from a1c_estimator.core.glucose.enums import MealContext


class ReadingCreate(BaseModel):
    """Request schema for recording a reading."""

    value: float = Field(description="Glucose value in mg/dL")
    timestamp: datetime | None = Field(
        default=None,
        description="When the reading was taken. Defaults to now; "
        "future times are clamped to now.",
    )
    meal_context: str = Field(description="One of the MealContext values")
    notes: str | None = None
    run_id: uuid.UUID | None = Field(
        default=None,
        description="Optional run to attach the reading to",
    )


class ReadingUpdate(BaseModel):
    """Request schema for correcting a reading.

    All fields are optional -- only provided fields are updated.
    """

    value: float | None = None
    timestamp: datetime | None = None
    meal_context: str | None = None
    notes: str | None = None
    version: int | None = Field(
        default=None,
        description="Version the client last saw; a mismatch returns 409",
    )


class ReadingResponse(BaseModel):
    """Response schema for a single reading."""

    model_config = {"from_attributes": True}

    id: uuid.UUID
    user_id: uuid.UUID
    value: float
    timestamp: datetime
    meal_context: MealContext
    notes: str | None
    run_id: uuid.UUID | None
    version: int
    created_at: datetime


class ReadingListResponse(BaseModel):
    """Response schema for a page of readings."""

    readings: list[ReadingResponse]
    total: int = Field(description="Readings matching the filters")
    limit: int
    offset: int
