"""Glucose reading service.

Creates, corrects and deletes readings. Every value goes through the
domain validator. When a change affects a run's membership or values,
the run's cached statistics are recalculated as a separate commit.
"""

import uuid
from datetime import UTC, datetime

from sqlalchemy.ext.asyncio import AsyncSession

from a1c_estimator.config import settings
from a1c_estimator.core.glucose.association import assert_owner, associate_reading
from a1c_estimator.core.glucose.models import Reading, ReadingCandidate
from a1c_estimator.core.glucose.models import Run as RunRecord
from a1c_estimator.core.glucose.validation import validate_reading
from a1c_estimator.logging_config import get_logger
from a1c_estimator.models.glucose import GlucoseReading
from a1c_estimator.models.user import User
from a1c_estimator.schemas.reading import ReadingCreate, ReadingUpdate
from a1c_estimator.services import store
from a1c_estimator.services.caregiver import assert_readable
from a1c_estimator.services.runs import recalculate_run_stats

logger = get_logger(__name__)


async def create_reading(
    db: AsyncSession,
    user: User,
    payload: ReadingCreate,
    *,
    now: datetime | None = None,
) -> GlucoseReading:
    """Validate and store a reading, optionally attaching it to a run.

    Raises:
        ValidationError: A field failed validation.
        NotFoundError: ``run_id`` does not exist.
        AuthorizationError: The run belongs to another user.
    """
    validated = validate_reading(
        ReadingCandidate(
            value=payload.value,
            timestamp=payload.timestamp or now or datetime.now(UTC),
            meal_context=payload.meal_context,
            notes=payload.notes,
        ),
        now=now,
    )
    if validated.timestamp_clamped:
        logger.info(
            "Future reading timestamp clamped to now",
            user_id=str(user.id),
        )

    reading = GlucoseReading(
        id=uuid.uuid4(),
        user_id=user.id,
        value=validated.value,
        timestamp=validated.timestamp,
        meal_context=validated.meal_context,
        notes=validated.notes,
    )

    run = None
    if payload.run_id is not None:
        run = await store.get_run(db, payload.run_id)
        assert_owner(user.id, run.user_id, entity="run")
        attached = associate_reading(
            Reading.model_validate(reading),
            RunRecord.model_validate(run),
            enforce_date_range=settings.enforce_run_date_range,
        )
        reading.run_id = attached.run_id

    db.add(reading)
    await db.commit()
    await db.refresh(reading)

    logger.info(
        "Reading created",
        reading_id=str(reading.id),
        user_id=str(user.id),
        run_id=str(reading.run_id) if reading.run_id else None,
    )

    if run is not None:
        await recalculate_run_stats(db, run)

    return reading


async def get_reading(
    db: AsyncSession,
    viewer: User,
    reading_id: uuid.UUID,
) -> GlucoseReading:
    """Fetch a reading the viewer owns or may read as a caregiver."""
    reading = await store.get_reading(db, reading_id)
    await assert_readable(db, viewer, reading.user_id)
    return reading


async def list_readings(
    db: AsyncSession,
    user_id: uuid.UUID,
    *,
    start: datetime | None = None,
    end: datetime | None = None,
    run_id: uuid.UUID | None = None,
    unassigned: bool = False,
    limit: int = 100,
    offset: int = 0,
) -> tuple[list[GlucoseReading], int]:
    """Return a page of readings and the total matching count."""
    readings = await store.list_readings(
        db,
        user_id,
        start=start,
        end=end,
        run_id=run_id,
        unassigned=unassigned,
        limit=limit,
        offset=offset,
    )
    total = await store.count_readings(
        db,
        user_id,
        start=start,
        end=end,
        run_id=run_id,
        unassigned=unassigned,
    )
    return readings, total


async def update_reading(
    db: AsyncSession,
    user: User,
    reading_id: uuid.UUID,
    updates: ReadingUpdate,
    *,
    now: datetime | None = None,
) -> GlucoseReading:
    """Correct a reading's fields.

    Provided fields are merged with the stored ones and the result is
    validated as a whole.

    Raises:
        ConflictError: ``updates.version`` is stale or a concurrent update won.
    """
    reading = await store.get_reading(db, reading_id)
    assert_owner(user.id, reading.user_id, entity="reading")
    store.check_version(reading, updates.version, entity="Reading")

    provided = updates.model_dump(exclude_unset=True, exclude={"version"})
    validated = validate_reading(
        ReadingCandidate(
            value=provided.get("value", reading.value),
            timestamp=provided.get("timestamp", reading.timestamp),
            meal_context=provided.get("meal_context", reading.meal_context),
            notes=provided.get("notes", reading.notes),
        ),
        now=now,
    )

    run = None
    if reading.run_id is not None and settings.enforce_run_date_range:
        # A member's timestamp must stay inside its run, as on create and attach
        run = await store.get_run(db, reading.run_id)
        associate_reading(
            Reading.model_validate(reading).model_copy(
                update={"timestamp": validated.timestamp}
            ),
            RunRecord.model_validate(run),
            enforce_date_range=True,
        )

    value_changed = validated.value != reading.value
    reading.value = validated.value
    reading.timestamp = validated.timestamp
    reading.meal_context = validated.meal_context
    reading.notes = validated.notes

    await store.commit(db, entity="Reading")
    await db.refresh(reading)

    logger.info(
        "Reading updated",
        reading_id=str(reading.id),
        user_id=str(user.id),
        fields=sorted(provided),
    )

    if value_changed and reading.run_id is not None:
        run = run or await store.get_run(db, reading.run_id)
        await recalculate_run_stats(db, run)

    return reading


async def delete_reading(
    db: AsyncSession,
    user: User,
    reading_id: uuid.UUID,
) -> None:
    reading = await store.get_reading(db, reading_id)
    assert_owner(user.id, reading.user_id, entity="reading")
    run_id = reading.run_id

    await db.delete(reading)
    await store.commit(db, entity="Reading")

    logger.info(
        "Reading deleted",
        reading_id=str(reading_id),
        user_id=str(user.id),
    )

    if run_id is not None:
        run = await store.get_run(db, run_id)
        await recalculate_run_stats(db, run)
