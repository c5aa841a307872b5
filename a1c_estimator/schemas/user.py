"""User profile schemas."""

import uuid
from datetime import datetime

from pydantic import BaseModel

from a1c_estimator.core.glucose.enums import UserRole


class UserResponse(BaseModel):
    """The authenticated user's own record."""

    model_config = {"from_attributes": True}

    id: uuid.UUID
    external_auth_id: str
    role: UserRole
    display_name: str | None
    email: str | None
    created_at: datetime


class MedicalProfileResponse(BaseModel):
    """Rolling A1C estimate maintained by the background job."""

    model_config = {"from_attributes": True}

    target_a1c: float | None
    estimated_average_glucose: float | None
    estimated_a1c: float | None
    estimate_reading_count: int
    estimated_at: datetime | None


class UserProfileResponse(BaseModel):
    user: UserResponse
    medical_profile: MedicalProfileResponse | None = None
