"""Run endpoints, including reading association."""

import uuid

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from a1c_estimator.core.auth import CurrentUser
from a1c_estimator.database import get_db
from a1c_estimator.schemas.common import ERROR_RESPONSES
from a1c_estimator.schemas.reading import ReadingResponse
from a1c_estimator.schemas.run import (
    ReadingAssociationRequest,
    ReadingAssociationResponse,
    RunCreate,
    RunDetailResponse,
    RunListResponse,
    RunResponse,
    RunUpdate,
)
from a1c_estimator.schemas.stats import DistributionResponse
from a1c_estimator.services import runs as run_service
from a1c_estimator.services.caregiver import resolve_read_target

router = APIRouter(
    prefix="/api/runs",
    tags=["runs"],
    responses=ERROR_RESPONSES,
)


@router.get("", response_model=RunListResponse)
async def list_runs(
    user: CurrentUser,
    db: AsyncSession = Depends(get_db),
    user_id: uuid.UUID | None = Query(
        default=None, description="Linked user to read (caregivers only)"
    ),
    month_id: uuid.UUID | None = None,
    limit: int = Query(default=100, ge=1, le=500),
    offset: int = Query(default=0, ge=0),
) -> RunListResponse:
    """List runs, most recent start date first."""
    target_id = await resolve_read_target(db, user, user_id)
    runs, total = await run_service.list_runs(
        db, target_id, month_id=month_id, limit=limit, offset=offset
    )
    return RunListResponse(
        runs=[RunResponse.model_validate(run) for run in runs],
        total=total,
    )


@router.post("", response_model=RunResponse, status_code=status.HTTP_201_CREATED)
async def create_run(
    body: RunCreate,
    user: CurrentUser,
    db: AsyncSession = Depends(get_db),
) -> RunResponse:
    run = await run_service.create_run(db, user, body)
    return RunResponse.model_validate(run)


# Registered before /{run_id} so "readings" is not parsed as a run id
@router.post("/readings", response_model=ReadingAssociationResponse)
async def associate_reading(
    body: ReadingAssociationRequest,
    user: CurrentUser,
    db: AsyncSession = Depends(get_db),
) -> ReadingAssociationResponse:
    """Attach a reading to a run and refresh the run's statistics.

    A reading already in another run is moved.
    """
    reading, run = await run_service.attach_reading(
        db, user, body.reading_id, body.run_id
    )
    return ReadingAssociationResponse(
        reading=ReadingResponse.model_validate(reading),
        run=RunResponse.model_validate(run),
    )


@router.delete("/readings/{reading_id}", response_model=ReadingResponse)
async def detach_reading(
    reading_id: uuid.UUID,
    user: CurrentUser,
    db: AsyncSession = Depends(get_db),
) -> ReadingResponse:
    """Remove a reading from its run."""
    reading = await run_service.detach_reading_from_run(db, user, reading_id)
    return ReadingResponse.model_validate(reading)


@router.get("/{run_id}", response_model=RunDetailResponse)
async def get_run(
    run_id: uuid.UUID,
    user: CurrentUser,
    db: AsyncSession = Depends(get_db),
) -> RunDetailResponse:
    """A run with its readings and live statistics."""
    run, readings, stats = await run_service.get_run_detail(db, user, run_id)
    return RunDetailResponse(
        **RunResponse.model_validate(run).model_dump(),
        readings=[ReadingResponse.model_validate(r) for r in readings],
        reading_count=stats.reading_count,
        time_in_range_percent=stats.time_in_range_percent,
        distribution=DistributionResponse.model_validate(stats.distribution),
    )


@router.put("/{run_id}", response_model=RunResponse)
async def update_run(
    run_id: uuid.UUID,
    body: RunUpdate,
    user: CurrentUser,
    db: AsyncSession = Depends(get_db),
) -> RunResponse:
    run = await run_service.update_run(db, user, run_id, body)
    return RunResponse.model_validate(run)


@router.delete("/{run_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_run(
    run_id: uuid.UUID,
    user: CurrentUser,
    db: AsyncSession = Depends(get_db),
) -> Response:
    """Delete a run. Its readings are kept and detached."""
    await run_service.delete_run(db, user, run_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{run_id}/recalculate", response_model=RunResponse)
async def recalculate_run(
    run_id: uuid.UUID,
    user: CurrentUser,
    db: AsyncSession = Depends(get_db),
) -> RunResponse:
    """Recompute the run's cached average and A1C from its readings."""
    run = await run_service.recalculate_run(db, user, run_id)
    return RunResponse.model_validate(run)
