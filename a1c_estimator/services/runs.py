"""Run service.

Runs group readings over a date interval. Their ``average_glucose`` and
``calculated_a1c`` columns are caches: every membership change is
followed by a separate, idempotent recalculation, and clients can force
one through the recalculate endpoint.
"""

import uuid

from sqlalchemy.ext.asyncio import AsyncSession

from a1c_estimator.config import settings
from a1c_estimator.core.glucose.aggregation import compute_stats
from a1c_estimator.core.glucose.association import (
    assert_owner,
    associate_reading,
    associate_run,
    detach_reading,
)
from a1c_estimator.core.glucose.errors import ValidationError
from a1c_estimator.core.glucose.models import Month as MonthRecord
from a1c_estimator.core.glucose.models import Reading, ReadingStats
from a1c_estimator.core.glucose.models import Run as RunRecord
from a1c_estimator.logging_config import get_logger
from a1c_estimator.models.glucose import GlucoseReading
from a1c_estimator.models.run import Run
from a1c_estimator.models.user import User
from a1c_estimator.schemas.run import RunCreate, RunUpdate
from a1c_estimator.services import store
from a1c_estimator.services.caregiver import assert_readable

logger = get_logger(__name__)


async def recalculate_run_stats(db: AsyncSession, run: Run) -> Run:
    """Recompute a run's cached statistics from its member readings.

    Safe to repeat; the result depends only on the stored membership.
    Membership committed by other requests is included, and the write
    skips the version check, so a concurrent attach cannot fail it.
    """
    readings = await store.list_readings(
        db, run.user_id, run_id=run.id, populate_existing=True
    )
    stats = compute_stats([Reading.model_validate(r) for r in readings])

    await store.write_run_cache(
        db,
        run.id,
        average_glucose=stats.average_glucose,
        calculated_a1c=stats.a1c_estimate,
    )
    await db.commit()
    await db.refresh(run)

    logger.info(
        "Run statistics recalculated",
        run_id=str(run.id),
        reading_count=stats.reading_count,
        average_glucose=stats.average_glucose,
        calculated_a1c=stats.a1c_estimate,
    )
    return run


async def create_run(db: AsyncSession, user: User, payload: RunCreate) -> Run:
    """Create a run, optionally attached to one of the user's months."""
    run = Run(
        id=uuid.uuid4(),
        user_id=user.id,
        name=payload.name.strip(),
        start_date=payload.start_date,
        end_date=payload.end_date,
    )

    if payload.month_id is not None:
        month = await store.get_month(db, payload.month_id)
        assert_owner(user.id, month.user_id, entity="month")
        attached = associate_run(
            RunRecord.model_validate(run),
            MonthRecord.model_validate(month),
        )
        run.month_id = attached.month_id

    db.add(run)
    await db.commit()
    await db.refresh(run)

    logger.info(
        "Run created",
        run_id=str(run.id),
        user_id=str(user.id),
        month_id=str(run.month_id) if run.month_id else None,
    )
    return run


async def get_run(db: AsyncSession, viewer: User, run_id: uuid.UUID) -> Run:
    run = await store.get_run(db, run_id)
    await assert_readable(db, viewer, run.user_id)
    return run


async def get_run_detail(
    db: AsyncSession,
    viewer: User,
    run_id: uuid.UUID,
) -> tuple[Run, list[GlucoseReading], ReadingStats]:
    """A run with its readings (oldest first) and live statistics."""
    run = await get_run(db, viewer, run_id)
    readings = await store.list_readings(
        db, run.user_id, run_id=run.id, newest_first=False
    )
    stats = compute_stats([Reading.model_validate(r) for r in readings])
    return run, readings, stats


async def list_runs(
    db: AsyncSession,
    user_id: uuid.UUID,
    *,
    month_id: uuid.UUID | None = None,
    limit: int = 100,
    offset: int = 0,
) -> tuple[list[Run], int]:
    runs = await store.list_runs(
        db, user_id, month_id=month_id, limit=limit, offset=offset
    )
    total = await store.count_runs(db, user_id, month_id=month_id)
    return runs, total


async def update_run(
    db: AsyncSession,
    user: User,
    run_id: uuid.UUID,
    updates: RunUpdate,
) -> Run:
    """Rename a run or move its dates.

    The merged dates must stay ordered and, when the run belongs to a
    month, inside that month.
    """
    run = await store.get_run(db, run_id)
    assert_owner(user.id, run.user_id, entity="run")
    store.check_version(run, updates.version, entity="Run")

    start_date = updates.start_date or run.start_date
    end_date = updates.end_date or run.end_date
    if end_date < start_date:
        raise ValidationError("end_date", "End date cannot be before start date")

    if run.month_id is not None:
        month = await store.get_month(db, run.month_id)
        candidate = RunRecord.model_validate(run).model_copy(
            update={"start_date": start_date, "end_date": end_date}
        )
        associate_run(candidate, MonthRecord.model_validate(month))

    if updates.name is not None:
        run.name = updates.name.strip()
    run.start_date = start_date
    run.end_date = end_date

    await store.commit(db, entity="Run")
    await db.refresh(run)

    logger.info("Run updated", run_id=str(run.id), user_id=str(user.id))
    return run


async def delete_run(db: AsyncSession, user: User, run_id: uuid.UUID) -> None:
    """Delete a run, detaching its readings first."""
    run = await store.get_run(db, run_id)
    assert_owner(user.id, run.user_id, entity="run")

    await store.clear_run_from_readings(db, run.id)
    await db.delete(run)
    await store.commit(db, entity="Run")

    logger.info("Run deleted", run_id=str(run_id), user_id=str(user.id))


async def recalculate_run(db: AsyncSession, user: User, run_id: uuid.UUID) -> Run:
    run = await store.get_run(db, run_id)
    assert_owner(user.id, run.user_id, entity="run")
    return await recalculate_run_stats(db, run)


async def attach_reading(
    db: AsyncSession,
    user: User,
    reading_id: uuid.UUID,
    run_id: uuid.UUID,
) -> tuple[GlucoseReading, Run]:
    """Attach a reading to a run, then refresh the affected run caches.

    A reading already in another run is moved; both runs are recalculated.

    Raises:
        AuthorizationError: The reading and run have different owners, or
            the acting user owns neither.
    """
    reading = await store.get_reading(db, reading_id)
    run = await store.get_run(db, run_id)

    attached = associate_reading(
        Reading.model_validate(reading),
        RunRecord.model_validate(run),
        enforce_date_range=settings.enforce_run_date_range,
    )
    assert_owner(user.id, reading.user_id, entity="reading")

    previous_run_id = reading.run_id
    if attached.run_id != previous_run_id:
        reading.run_id = attached.run_id
        await store.commit(db, entity="Reading")
        await db.refresh(reading)
        logger.info(
            "Reading attached to run",
            reading_id=str(reading.id),
            run_id=str(run.id),
            previous_run_id=str(previous_run_id) if previous_run_id else None,
        )

    if previous_run_id is not None and previous_run_id != run.id:
        previous_run = await store.get_run(db, previous_run_id)
        await recalculate_run_stats(db, previous_run)

    run = await recalculate_run_stats(db, run)
    return reading, run


async def detach_reading_from_run(
    db: AsyncSession,
    user: User,
    reading_id: uuid.UUID,
) -> GlucoseReading:
    reading = await store.get_reading(db, reading_id)
    assert_owner(user.id, reading.user_id, entity="reading")

    previous_run_id = reading.run_id
    if previous_run_id is None:
        return reading

    reading.run_id = detach_reading(Reading.model_validate(reading)).run_id
    await store.commit(db, entity="Reading")
    await db.refresh(reading)

    logger.info(
        "Reading detached from run",
        reading_id=str(reading.id),
        run_id=str(previous_run_id),
    )

    previous_run = await store.get_run(db, previous_run_id)
    await recalculate_run_stats(db, previous_run)
    return reading
