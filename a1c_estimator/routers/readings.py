"""Glucose reading endpoints."""

import uuid
from datetime import datetime

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from a1c_estimator.core.auth import CurrentUser
from a1c_estimator.database import get_db
from a1c_estimator.schemas.common import ERROR_RESPONSES
from a1c_estimator.schemas.reading import (
    ReadingCreate,
    ReadingListResponse,
    ReadingResponse,
    ReadingUpdate,
)
from a1c_estimator.services import readings as reading_service
from a1c_estimator.services.caregiver import resolve_read_target

router = APIRouter(
    prefix="/api/readings",
    tags=["readings"],
    responses=ERROR_RESPONSES,
)


@router.get("", response_model=ReadingListResponse)
async def list_readings(
    user: CurrentUser,
    db: AsyncSession = Depends(get_db),
    user_id: uuid.UUID | None = Query(
        default=None, description="Linked user to read (caregivers only)"
    ),
    start: datetime | None = None,
    end: datetime | None = None,
    run_id: uuid.UUID | None = None,
    unassigned: bool = Query(default=False, description="Only readings in no run"),
    limit: int = Query(default=100, ge=1, le=1000),
    offset: int = Query(default=0, ge=0),
) -> ReadingListResponse:
    """List readings, newest first."""
    target_id = await resolve_read_target(db, user, user_id)
    readings, total = await reading_service.list_readings(
        db,
        target_id,
        start=start,
        end=end,
        run_id=run_id,
        unassigned=unassigned,
        limit=limit,
        offset=offset,
    )
    return ReadingListResponse(
        readings=[ReadingResponse.model_validate(r) for r in readings],
        total=total,
        limit=limit,
        offset=offset,
    )


@router.post(
    "",
    response_model=ReadingResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_reading(
    body: ReadingCreate,
    user: CurrentUser,
    db: AsyncSession = Depends(get_db),
) -> ReadingResponse:
    """Record a reading. Future timestamps are stored as the current time."""
    reading = await reading_service.create_reading(db, user, body)
    return ReadingResponse.model_validate(reading)


@router.get("/{reading_id}", response_model=ReadingResponse)
async def get_reading(
    reading_id: uuid.UUID,
    user: CurrentUser,
    db: AsyncSession = Depends(get_db),
) -> ReadingResponse:
    reading = await reading_service.get_reading(db, user, reading_id)
    return ReadingResponse.model_validate(reading)


@router.patch("/{reading_id}", response_model=ReadingResponse)
async def update_reading(
    reading_id: uuid.UUID,
    body: ReadingUpdate,
    user: CurrentUser,
    db: AsyncSession = Depends(get_db),
) -> ReadingResponse:
    """Correct a reading. Only provided fields are updated."""
    reading = await reading_service.update_reading(db, user, reading_id, body)
    return ReadingResponse.model_validate(reading)


@router.delete("/{reading_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_reading(
    reading_id: uuid.UUID,
    user: CurrentUser,
    db: AsyncSession = Depends(get_db),
) -> Response:
    await reading_service.delete_reading(db, user, reading_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
