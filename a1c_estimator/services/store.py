"""Persistence façade.

Async query helpers over the ORM models. Lookups by id raise
``NotFoundError``; list and count helpers are always scoped to one owner.
Ownership of entities fetched by id is checked by the calling service, so
a foreign entity is reported as a permission failure rather than hidden.
"""

import uuid
from collections.abc import Sequence
from datetime import datetime

from sqlalchemy import Select, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.exc import StaleDataError

from a1c_estimator.core.glucose.errors import ConflictError, NotFoundError
from a1c_estimator.logging_config import get_logger
from a1c_estimator.models.caregiver_link import CaregiverLink
from a1c_estimator.models.glucose import GlucoseReading
from a1c_estimator.models.month import Month
from a1c_estimator.models.run import Run
from a1c_estimator.models.user import User

logger = get_logger(__name__)


async def commit(db: AsyncSession, *, entity: str) -> None:
    """Commit the session, mapping a version mismatch to ConflictError."""
    try:
        await db.commit()
    except StaleDataError:
        await db.rollback()
        logger.warning("Concurrent modification detected", entity=entity)
        raise ConflictError(
            f"{entity} was modified by another request; reload and retry"
        ) from None


def check_version(row: GlucoseReading | Run, expected: int | None, *, entity: str) -> None:
    """Raise ConflictError when the client's version is not the stored one."""
    if expected is not None and expected != row.version:
        raise ConflictError(
            f"{entity} was modified by another request; reload and retry"
        )


# ----------------------------------------------------------------------------
# Users
# ----------------------------------------------------------------------------


async def get_user(db: AsyncSession, user_id: uuid.UUID) -> User:
    user = await db.get(User, user_id)
    if user is None:
        raise NotFoundError("User", user_id)
    return user


async def list_user_ids(db: AsyncSession) -> list[uuid.UUID]:
    result = await db.execute(select(User.id).order_by(User.created_at))
    return list(result.scalars().all())


# ----------------------------------------------------------------------------
# Readings
# ----------------------------------------------------------------------------


async def get_reading(db: AsyncSession, reading_id: uuid.UUID) -> GlucoseReading:
    reading = await db.get(GlucoseReading, reading_id)
    if reading is None:
        raise NotFoundError("Reading", reading_id)
    return reading


def _reading_filters(
    query: Select,
    user_id: uuid.UUID,
    *,
    start: datetime | None,
    end: datetime | None,
    run_id: uuid.UUID | None,
    unassigned: bool,
) -> Select:
    query = query.where(GlucoseReading.user_id == user_id)
    if start is not None:
        query = query.where(GlucoseReading.timestamp >= start)
    if end is not None:
        query = query.where(GlucoseReading.timestamp <= end)
    if run_id is not None:
        query = query.where(GlucoseReading.run_id == run_id)
    elif unassigned:
        query = query.where(GlucoseReading.run_id.is_(None))
    return query


async def list_readings(
    db: AsyncSession,
    user_id: uuid.UUID,
    *,
    start: datetime | None = None,
    end: datetime | None = None,
    run_id: uuid.UUID | None = None,
    unassigned: bool = False,
    limit: int | None = None,
    offset: int = 0,
    newest_first: bool = True,
    populate_existing: bool = False,
) -> list[GlucoseReading]:
    """List a user's readings with optional range and run filters.

    ``populate_existing`` overwrites readings already loaded in the session
    with the stored values.
    """
    query = _reading_filters(
        select(GlucoseReading),
        user_id,
        start=start,
        end=end,
        run_id=run_id,
        unassigned=unassigned,
    )
    order = GlucoseReading.timestamp.desc() if newest_first else GlucoseReading.timestamp
    query = query.order_by(order).offset(offset)
    if limit is not None:
        query = query.limit(limit)
    if populate_existing:
        query = query.execution_options(populate_existing=True)

    result = await db.execute(query)
    return list(result.scalars().all())


async def count_readings(
    db: AsyncSession,
    user_id: uuid.UUID,
    *,
    start: datetime | None = None,
    end: datetime | None = None,
    run_id: uuid.UUID | None = None,
    unassigned: bool = False,
) -> int:
    query = _reading_filters(
        select(func.count()).select_from(GlucoseReading),
        user_id,
        start=start,
        end=end,
        run_id=run_id,
        unassigned=unassigned,
    )
    result = await db.execute(query)
    return result.scalar_one()


async def list_readings_for_runs(
    db: AsyncSession,
    run_ids: Sequence[uuid.UUID],
) -> list[GlucoseReading]:
    if not run_ids:
        return []
    result = await db.execute(
        select(GlucoseReading)
        .where(GlucoseReading.run_id.in_(run_ids))
        .order_by(GlucoseReading.timestamp)
    )
    return list(result.scalars().all())


async def clear_run_from_readings(db: AsyncSession, run_id: uuid.UUID) -> None:
    """Detach every reading from a run (bumping each reading's version)."""
    await db.execute(
        update(GlucoseReading)
        .where(GlucoseReading.run_id == run_id)
        .values(run_id=None, version=GlucoseReading.version + 1)
        .execution_options(synchronize_session=False)
    )


# ----------------------------------------------------------------------------
# Runs
# ----------------------------------------------------------------------------


async def get_run(db: AsyncSession, run_id: uuid.UUID) -> Run:
    run = await db.get(Run, run_id)
    if run is None:
        raise NotFoundError("Run", run_id)
    return run


async def list_runs(
    db: AsyncSession,
    user_id: uuid.UUID,
    *,
    month_id: uuid.UUID | None = None,
    limit: int | None = None,
    offset: int = 0,
) -> list[Run]:
    """List a user's runs, most recent start date first."""
    query = select(Run).where(Run.user_id == user_id)
    if month_id is not None:
        query = query.where(Run.month_id == month_id)
    query = query.order_by(Run.start_date.desc(), Run.created_at.desc()).offset(offset)
    if limit is not None:
        query = query.limit(limit)

    result = await db.execute(query)
    return list(result.scalars().all())


async def count_runs(
    db: AsyncSession,
    user_id: uuid.UUID,
    *,
    month_id: uuid.UUID | None = None,
) -> int:
    query = select(func.count()).select_from(Run).where(Run.user_id == user_id)
    if month_id is not None:
        query = query.where(Run.month_id == month_id)
    result = await db.execute(query)
    return result.scalar_one()


async def write_run_cache(
    db: AsyncSession,
    run_id: uuid.UUID,
    *,
    average_glucose: float | None,
    calculated_a1c: float | None,
) -> None:
    """Store a run's derived statistics without bumping its version.

    The cache follows membership, not the run's own fields, so writing it
    never conflicts with a concurrent edit of the run.
    """
    await db.execute(
        update(Run)
        .where(Run.id == run_id)
        .values(average_glucose=average_glucose, calculated_a1c=calculated_a1c)
        .execution_options(synchronize_session=False)
    )


async def clear_month_from_runs(db: AsyncSession, month_id: uuid.UUID) -> None:
    await db.execute(
        update(Run)
        .where(Run.month_id == month_id)
        .values(month_id=None, version=Run.version + 1)
        .execution_options(synchronize_session=False)
    )


# ----------------------------------------------------------------------------
# Months
# ----------------------------------------------------------------------------


async def get_month(db: AsyncSession, month_id: uuid.UUID) -> Month:
    month = await db.get(Month, month_id)
    if month is None:
        raise NotFoundError("Month", month_id)
    return month


async def list_months(
    db: AsyncSession,
    user_id: uuid.UUID,
    *,
    limit: int | None = None,
    offset: int = 0,
) -> list[Month]:
    """List a user's months, most recent first."""
    query = (
        select(Month)
        .where(Month.user_id == user_id)
        .order_by(Month.start_date.desc(), Month.created_at.desc())
        .offset(offset)
    )
    if limit is not None:
        query = query.limit(limit)
    result = await db.execute(query)
    return list(result.scalars().all())


async def count_months(db: AsyncSession, user_id: uuid.UUID) -> int:
    result = await db.execute(
        select(func.count()).select_from(Month).where(Month.user_id == user_id)
    )
    return result.scalar_one()


async def get_latest_month(db: AsyncSession, user_id: uuid.UUID) -> Month | None:
    months = await list_months(db, user_id, limit=1)
    return months[0] if months else None


# ----------------------------------------------------------------------------
# Caregiver links
# ----------------------------------------------------------------------------


async def get_caregiver_link(db: AsyncSession, link_id: uuid.UUID) -> CaregiverLink:
    link = await db.get(CaregiverLink, link_id)
    if link is None:
        raise NotFoundError("Caregiver link", link_id)
    return link


async def list_caregiver_links(
    db: AsyncSession,
    user_id: uuid.UUID,
) -> list[CaregiverLink]:
    """Links where the user is either the caregiver or the linked user."""
    result = await db.execute(
        select(CaregiverLink)
        .where(
            (CaregiverLink.caregiver_id == user_id)
            | (CaregiverLink.user_id == user_id)
        )
        .order_by(CaregiverLink.created_at)
    )
    return list(result.scalars().all())


async def list_linked_user_ids(
    db: AsyncSession,
    caregiver_id: uuid.UUID,
) -> set[uuid.UUID]:
    result = await db.execute(
        select(CaregiverLink.user_id).where(CaregiverLink.caregiver_id == caregiver_id)
    )
    return set(result.scalars().all())
