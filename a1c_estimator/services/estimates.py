"""A1C estimate service.

Estimates over stored readings (any window), ad-hoc estimates over
submitted values, the dashboard summary, and the rolling estimate kept
on each user's medical profile.
"""

import uuid
from collections.abc import Mapping, Sequence
from datetime import UTC, datetime, timedelta

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from a1c_estimator.core.glucose.aggregation import (
    average_glucose,
    compute_stats,
    estimate_a1c,
)
from a1c_estimator.core.glucose.enums import MealContext
from a1c_estimator.core.glucose.errors import ValidationError
from a1c_estimator.core.glucose.models import GlucoseSample, Reading, ReadingStats
from a1c_estimator.core.glucose.validation import parse_glucose_value
from a1c_estimator.logging_config import get_logger
from a1c_estimator.models.medical_profile import MedicalProfile
from a1c_estimator.models.month import Month
from a1c_estimator.services import store

logger = get_logger(__name__)

RECENT_READINGS_DAYS = 30


async def stats_for_window(
    db: AsyncSession,
    user_id: uuid.UUID,
    *,
    start: datetime | None = None,
    end: datetime | None = None,
) -> ReadingStats:
    """Statistics over a user's stored readings in an optional window."""
    readings = await store.list_readings(db, user_id, start=start, end=end)
    return compute_stats([Reading.model_validate(r) for r in readings])


def estimate_from_samples(
    samples: Sequence[tuple[float, MealContext | None]],
    weights: Mapping[MealContext, float] | None = None,
) -> tuple[float, float]:
    """Estimate A1C from submitted values without storing anything.

    Each value passes the same checks as a stored reading.

    Returns:
        (average_glucose, a1c_estimate)

    Raises:
        ValidationError: A value is out of range or a weight is negative.
        InsufficientDataError: Fewer values than the estimate requires.
    """
    if weights and any(weight < 0 for weight in weights.values()):
        raise ValidationError("weights", "Meal context weights must not be negative")

    parsed = [
        GlucoseSample(value=parse_glucose_value(value), meal_context=context)
        for value, context in samples
    ]
    a1c = estimate_a1c(parsed, weights)
    return average_glucose(parsed, weights), a1c


async def get_dashboard_summary(
    db: AsyncSession,
    user_id: uuid.UUID,
    *,
    now: datetime | None = None,
) -> tuple[Month | None, int, int]:
    """Latest month, readings in the last 30 days, and total runs."""
    now = now or datetime.now(UTC)
    latest_month = await store.get_latest_month(db, user_id)
    recent_count = await store.count_readings(
        db, user_id, start=now - timedelta(days=RECENT_READINGS_DAYS)
    )
    total_runs = await store.count_runs(db, user_id)
    return latest_month, recent_count, total_runs


async def get_medical_profile(
    db: AsyncSession,
    user_id: uuid.UUID,
) -> MedicalProfile | None:
    result = await db.execute(
        select(MedicalProfile).where(MedicalProfile.user_id == user_id)
    )
    return result.scalar_one_or_none()


async def get_or_create_medical_profile(
    db: AsyncSession,
    user_id: uuid.UUID,
) -> MedicalProfile:
    profile = await get_medical_profile(db, user_id)
    if profile is not None:
        return profile

    profile = MedicalProfile(user_id=user_id)
    db.add(profile)
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        result = await db.execute(
            select(MedicalProfile).where(MedicalProfile.user_id == user_id)
        )
        return result.scalar_one()
    await db.refresh(profile)
    return profile


async def recalculate_user_estimate(
    db: AsyncSession,
    user_id: uuid.UUID,
    *,
    window_days: int,
    now: datetime | None = None,
) -> MedicalProfile:
    """Refresh the rolling estimate on the user's medical profile.

    The average covers readings in the last ``window_days``; the A1C is
    stored only when there are enough readings for an estimate.
    """
    now = now or datetime.now(UTC)
    stats = await stats_for_window(
        db, user_id, start=now - timedelta(days=window_days), end=now
    )

    profile = await get_or_create_medical_profile(db, user_id)
    profile.estimated_average_glucose = stats.average_glucose
    profile.estimated_a1c = stats.a1c_estimate
    profile.estimate_reading_count = stats.reading_count
    profile.estimated_at = now
    await db.commit()
    await db.refresh(profile)

    logger.debug(
        "Rolling A1C estimate updated",
        user_id=str(user_id),
        reading_count=stats.reading_count,
        estimated_a1c=stats.a1c_estimate,
    )
    return profile
