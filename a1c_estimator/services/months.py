"""Month service.

Months group runs. The cached month average is computed over the runs'
cached averages (optionally weighted by run duration) on request.
"""

import uuid

from sqlalchemy.ext.asyncio import AsyncSession

from a1c_estimator.core.glucose.aggregation import compute_month_stats, summarize_month
from a1c_estimator.core.glucose.association import (
    assert_owner,
    associate_run,
    detach_run,
)
from a1c_estimator.core.glucose.errors import NotFoundError, ValidationError
from a1c_estimator.core.glucose.models import Month as MonthRecord
from a1c_estimator.core.glucose.models import MonthStats, MonthSummary, Reading
from a1c_estimator.core.glucose.models import Run as RunRecord
from a1c_estimator.logging_config import get_logger
from a1c_estimator.models.month import Month
from a1c_estimator.models.run import Run
from a1c_estimator.models.user import User
from a1c_estimator.schemas.month import MonthCreate, MonthUpdate
from a1c_estimator.services import store
from a1c_estimator.services.caregiver import assert_readable

logger = get_logger(__name__)


async def create_month(db: AsyncSession, user: User, payload: MonthCreate) -> Month:
    month = Month(
        user_id=user.id,
        name=payload.name.strip(),
        start_date=payload.start_date,
        end_date=payload.end_date,
    )
    db.add(month)
    await db.commit()
    await db.refresh(month)

    logger.info("Month created", month_id=str(month.id), user_id=str(user.id))
    return month


async def get_month(db: AsyncSession, viewer: User, month_id: uuid.UUID) -> Month:
    month = await store.get_month(db, month_id)
    await assert_readable(db, viewer, month.user_id)
    return month


async def get_month_detail(
    db: AsyncSession,
    viewer: User,
    month_id: uuid.UUID,
) -> tuple[Month, list[Run]]:
    month = await get_month(db, viewer, month_id)
    runs = await store.list_runs(db, month.user_id, month_id=month.id)
    return month, runs


async def list_months(
    db: AsyncSession,
    user_id: uuid.UUID,
    *,
    limit: int = 100,
    offset: int = 0,
) -> tuple[list[Month], int]:
    """Return a page of months and the user's total month count."""
    months = await store.list_months(db, user_id, limit=limit, offset=offset)
    total = await store.count_months(db, user_id)
    return months, total


async def update_month(
    db: AsyncSession,
    user: User,
    month_id: uuid.UUID,
    updates: MonthUpdate,
) -> Month:
    """Rename a month or move its dates.

    Attached runs must still fit inside the new dates.
    """
    month = await store.get_month(db, month_id)
    assert_owner(user.id, month.user_id, entity="month")

    start_date = updates.start_date or month.start_date
    end_date = updates.end_date or month.end_date
    if end_date < start_date:
        raise ValidationError("end_date", "End date cannot be before start date")

    candidate = MonthRecord.model_validate(month).model_copy(
        update={"start_date": start_date, "end_date": end_date}
    )
    for run in await store.list_runs(db, month.user_id, month_id=month.id):
        associate_run(RunRecord.model_validate(run), candidate)

    if updates.name is not None:
        month.name = updates.name.strip()
    month.start_date = start_date
    month.end_date = end_date

    await db.commit()
    await db.refresh(month)

    logger.info("Month updated", month_id=str(month.id), user_id=str(user.id))
    return month


async def delete_month(db: AsyncSession, user: User, month_id: uuid.UUID) -> None:
    """Delete a month, detaching its runs first."""
    month = await store.get_month(db, month_id)
    assert_owner(user.id, month.user_id, entity="month")

    await store.clear_month_from_runs(db, month.id)
    await db.delete(month)
    await db.commit()

    logger.info("Month deleted", month_id=str(month_id), user_id=str(user.id))


async def attach_run(
    db: AsyncSession,
    user: User,
    month_id: uuid.UUID,
    run_id: uuid.UUID,
) -> Run:
    """Attach a run to a month. A run in another month is moved."""
    month = await store.get_month(db, month_id)
    run = await store.get_run(db, run_id)

    attached = associate_run(
        RunRecord.model_validate(run),
        MonthRecord.model_validate(month),
    )
    assert_owner(user.id, month.user_id, entity="month")

    if run.month_id != attached.month_id:
        previous_month_id = run.month_id
        run.month_id = attached.month_id
        await store.commit(db, entity="Run")
        await db.refresh(run)
        logger.info(
            "Run attached to month",
            run_id=str(run.id),
            month_id=str(month.id),
            previous_month_id=str(previous_month_id) if previous_month_id else None,
        )
    return run


async def detach_run_from_month(
    db: AsyncSession,
    user: User,
    month_id: uuid.UUID,
    run_id: uuid.UUID,
) -> Run:
    run = await store.get_run(db, run_id)
    assert_owner(user.id, run.user_id, entity="run")
    if run.month_id != month_id:
        raise NotFoundError("Run in month", run_id)

    run.month_id = detach_run(RunRecord.model_validate(run)).month_id
    await store.commit(db, entity="Run")
    await db.refresh(run)

    logger.info("Run detached from month", run_id=str(run.id), month_id=str(month_id))
    return run


async def calculate_month(
    db: AsyncSession,
    user: User,
    month_id: uuid.UUID,
    *,
    weighted: bool = False,
) -> tuple[Month, MonthStats]:
    """Recompute and store a month's average and A1C from its runs."""
    month = await store.get_month(db, month_id)
    assert_owner(user.id, month.user_id, entity="month")

    runs = await store.list_runs(db, month.user_id, month_id=month.id)
    stats = compute_month_stats(
        [RunRecord.model_validate(run) for run in runs],
        weighted=weighted,
    )

    month.average_glucose = stats.average_glucose
    month.calculated_a1c = stats.a1c_estimate
    await db.commit()
    await db.refresh(month)

    logger.info(
        "Month statistics recalculated",
        month_id=str(month.id),
        run_count=len(runs),
        contributing_runs=stats.contributing_runs,
        weighted=weighted,
        calculated_a1c=stats.a1c_estimate,
    )
    return month, stats


async def get_month_summary(
    db: AsyncSession,
    viewer: User,
    month_id: uuid.UUID,
) -> MonthSummary:
    month = await get_month(db, viewer, month_id)
    runs = await store.list_runs(db, month.user_id, month_id=month.id)
    readings = await store.list_readings_for_runs(db, [run.id for run in runs])

    return summarize_month(
        MonthRecord.model_validate(month),
        [RunRecord.model_validate(run) for run in runs],
        [Reading.model_validate(r) for r in readings],
    )
