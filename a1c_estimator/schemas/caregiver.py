"""Caregiver link schemas."""

import uuid
from datetime import datetime

from pydantic import BaseModel, Field


class CaregiverLinkCreate(BaseModel):
    """Grant a caregiver read access to the current user's data."""

    caregiver_id: uuid.UUID = Field(description="Internal id of the caregiver user")


class CaregiverLinkResponse(BaseModel):
    model_config = {"from_attributes": True}

    id: uuid.UUID
    caregiver_id: uuid.UUID
    user_id: uuid.UUID
    created_at: datetime


class CaregiverLinkListResponse(BaseModel):
    links: list[CaregiverLinkResponse]


class LinkedUserResponse(BaseModel):
    """A user whose data the caregiver may read."""

    model_config = {"from_attributes": True}

    id: uuid.UUID
    display_name: str | None
    email: str | None


class LinkedUserListResponse(BaseModel):
    users: list[LinkedUserResponse]
