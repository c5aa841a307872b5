"""Month endpoints."""

import uuid

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from a1c_estimator.core.auth import CurrentUser
from a1c_estimator.database import get_db
from a1c_estimator.schemas.common import ERROR_RESPONSES
from a1c_estimator.schemas.month import (
    MonthCalculateRequest,
    MonthCalculateResponse,
    MonthCreate,
    MonthDetailResponse,
    MonthListResponse,
    MonthResponse,
    MonthRunAttachRequest,
    MonthSummaryResponse,
    MonthUpdate,
)
from a1c_estimator.schemas.run import RunResponse
from a1c_estimator.services import months as month_service
from a1c_estimator.services.caregiver import resolve_read_target

router = APIRouter(
    prefix="/api/months",
    tags=["months"],
    responses=ERROR_RESPONSES,
)


@router.get("", response_model=MonthListResponse)
async def list_months(
    user: CurrentUser,
    db: AsyncSession = Depends(get_db),
    user_id: uuid.UUID | None = Query(
        default=None, description="Linked user to read (caregivers only)"
    ),
    limit: int = Query(default=100, ge=1, le=500),
    offset: int = Query(default=0, ge=0),
) -> MonthListResponse:
    target_id = await resolve_read_target(db, user, user_id)
    months, total = await month_service.list_months(
        db, target_id, limit=limit, offset=offset
    )
    return MonthListResponse(
        months=[MonthResponse.model_validate(m) for m in months],
        total=total,
    )


@router.post("", response_model=MonthResponse, status_code=status.HTTP_201_CREATED)
async def create_month(
    body: MonthCreate,
    user: CurrentUser,
    db: AsyncSession = Depends(get_db),
) -> MonthResponse:
    month = await month_service.create_month(db, user, body)
    return MonthResponse.model_validate(month)


@router.get("/{month_id}", response_model=MonthDetailResponse)
async def get_month(
    month_id: uuid.UUID,
    user: CurrentUser,
    db: AsyncSession = Depends(get_db),
) -> MonthDetailResponse:
    month, runs = await month_service.get_month_detail(db, user, month_id)
    return MonthDetailResponse(
        **MonthResponse.model_validate(month).model_dump(),
        runs=[RunResponse.model_validate(run) for run in runs],
    )


@router.put("/{month_id}", response_model=MonthResponse)
async def update_month(
    month_id: uuid.UUID,
    body: MonthUpdate,
    user: CurrentUser,
    db: AsyncSession = Depends(get_db),
) -> MonthResponse:
    month = await month_service.update_month(db, user, month_id, body)
    return MonthResponse.model_validate(month)


@router.delete("/{month_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_month(
    month_id: uuid.UUID,
    user: CurrentUser,
    db: AsyncSession = Depends(get_db),
) -> Response:
    """Delete a month. Its runs are kept and detached."""
    await month_service.delete_month(db, user, month_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{month_id}/runs", response_model=RunResponse)
async def attach_run(
    month_id: uuid.UUID,
    body: MonthRunAttachRequest,
    user: CurrentUser,
    db: AsyncSession = Depends(get_db),
) -> RunResponse:
    """Attach a run to the month. The run must lie within the month's dates."""
    run = await month_service.attach_run(db, user, month_id, body.run_id)
    return RunResponse.model_validate(run)


@router.delete("/{month_id}/runs/{run_id}", response_model=RunResponse)
async def detach_run(
    month_id: uuid.UUID,
    run_id: uuid.UUID,
    user: CurrentUser,
    db: AsyncSession = Depends(get_db),
) -> RunResponse:
    run = await month_service.detach_run_from_month(db, user, month_id, run_id)
    return RunResponse.model_validate(run)


@router.post("/{month_id}/calculate", response_model=MonthCalculateResponse)
async def calculate_month(
    month_id: uuid.UUID,
    user: CurrentUser,
    db: AsyncSession = Depends(get_db),
    body: MonthCalculateRequest | None = None,
) -> MonthCalculateResponse:
    """Recompute the month's average and A1C from its runs' cached values."""
    weighted = body.weighted if body is not None else False
    month, stats = await month_service.calculate_month(
        db, user, month_id, weighted=weighted
    )
    return MonthCalculateResponse(
        month=MonthResponse.model_validate(month),
        contributing_runs=stats.contributing_runs,
        weighted=stats.weighted,
    )


@router.get("/{month_id}/summary", response_model=MonthSummaryResponse)
async def get_month_summary(
    month_id: uuid.UUID,
    user: CurrentUser,
    db: AsyncSession = Depends(get_db),
) -> MonthSummaryResponse:
    summary = await month_service.get_month_summary(db, user, month_id)
    return MonthSummaryResponse(month_id=month_id, **summary.model_dump())
