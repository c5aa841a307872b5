"""A1C estimate, statistics and dashboard summary endpoints."""

import uuid
from datetime import datetime

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from a1c_estimator.config import settings
from a1c_estimator.core.auth import CurrentUser
from a1c_estimator.core.glucose.constants import MIN_READINGS_FOR_A1C
from a1c_estimator.database import get_db
from a1c_estimator.middleware.rate_limit import limiter
from a1c_estimator.schemas.common import ERROR_RESPONSES, ErrorResponse
from a1c_estimator.schemas.stats import (
    DashboardSummaryResponse,
    DistributionResponse,
    EstimateRequest,
    EstimateResponse,
    LatestMonthSummary,
    StatsResponse,
)
from a1c_estimator.services import estimates as estimate_service
from a1c_estimator.services.caregiver import resolve_read_target

router = APIRouter(
    prefix="/api",
    tags=["estimates"],
    responses={**ERROR_RESPONSES, 422: {"model": ErrorResponse}},
)


@router.get("/estimate", response_model=EstimateResponse)
@limiter.limit(settings.stats_rate_limit)
async def get_estimate(
    request: Request,
    user: CurrentUser,
    db: AsyncSession = Depends(get_db),
    user_id: uuid.UUID | None = Query(default=None),
    start: datetime | None = None,
    end: datetime | None = None,
) -> EstimateResponse:
    """Estimate A1C over stored readings, optionally within a date range."""
    target_id = await resolve_read_target(db, user, user_id)
    stats = await estimate_service.stats_for_window(db, target_id, start=start, end=end)

    message = None
    if not stats.has_data:
        message = "No readings found for the specified period"
    elif not stats.sufficient_data:
        message = (
            f"At least {MIN_READINGS_FOR_A1C} readings are needed for an "
            f"A1C estimate ({stats.reading_count} found)"
        )

    return EstimateResponse(
        user_id=target_id,
        reading_count=stats.reading_count,
        average_glucose=stats.average_glucose,
        a1c_estimate=stats.a1c_estimate,
        sufficient_data=stats.sufficient_data,
        start=start,
        end=end,
        message=message,
    )


@router.post("/estimate", response_model=EstimateResponse)
async def post_estimate(
    body: EstimateRequest,
    user: CurrentUser,
) -> EstimateResponse:
    """Estimate A1C from submitted values. Nothing is stored.

    Fewer values than the estimate requires is rejected with 422.
    """
    average, a1c = estimate_service.estimate_from_samples(
        [(r.value, r.meal_context) for r in body.readings],
        body.weights,
    )
    return EstimateResponse(
        reading_count=len(body.readings),
        average_glucose=average,
        a1c_estimate=a1c,
        sufficient_data=True,
    )


@router.get("/stats", response_model=StatsResponse)
@limiter.limit(settings.stats_rate_limit)
async def get_stats(
    request: Request,
    user: CurrentUser,
    db: AsyncSession = Depends(get_db),
    user_id: uuid.UUID | None = Query(default=None),
    start: datetime | None = None,
    end: datetime | None = None,
) -> StatsResponse:
    """Average, A1C estimate, time in range and distribution."""
    target_id = await resolve_read_target(db, user, user_id)
    stats = await estimate_service.stats_for_window(db, target_id, start=start, end=end)
    return StatsResponse(
        user_id=target_id,
        start=start,
        end=end,
        reading_count=stats.reading_count,
        average_glucose=stats.average_glucose,
        a1c_estimate=stats.a1c_estimate,
        time_in_range_percent=stats.time_in_range_percent,
        distribution=DistributionResponse.model_validate(stats.distribution),
        has_data=stats.has_data,
        sufficient_data=stats.sufficient_data,
    )


@router.get("/summary", response_model=DashboardSummaryResponse)
@limiter.limit(settings.stats_rate_limit)
async def get_summary(
    request: Request,
    user: CurrentUser,
    db: AsyncSession = Depends(get_db),
    user_id: uuid.UUID | None = Query(default=None),
) -> DashboardSummaryResponse:
    """Latest month, readings in the last 30 days and total runs."""
    target_id = await resolve_read_target(db, user, user_id)
    latest_month, recent_count, total_runs = (
        await estimate_service.get_dashboard_summary(db, target_id)
    )
    return DashboardSummaryResponse(
        user_id=target_id,
        latest_month=(
            LatestMonthSummary.model_validate(latest_month) if latest_month else None
        ),
        recent_readings_count=recent_count,
        total_runs_count=total_runs,
    )
