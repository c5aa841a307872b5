"""Tests for the reading service: validation, clamping and run recalculation."""

from datetime import UTC, datetime, timedelta
from unittest.mock import AsyncMock, patch

import pytest

from a1c_estimator.config import settings
from a1c_estimator.core.glucose.enums import MealContext
from a1c_estimator.core.glucose.errors import (
    AuthorizationError,
    ConflictError,
    NotFoundError,
    ValidationError,
)
from a1c_estimator.models.glucose import GlucoseReading
from a1c_estimator.schemas.reading import ReadingCreate, ReadingUpdate
from a1c_estimator.services import readings as reading_service
from a1c_estimator.services import store
from factories import NOW, make_reading_row, make_run_row, mock_session, make_user

RUN_DAY = datetime(2026, 3, 5, 8, 0, tzinfo=UTC)


@pytest.fixture
def recalc():
    with patch(
        "a1c_estimator.services.readings.recalculate_run_stats",
        new_callable=AsyncMock,
    ) as mock_recalc:
        yield mock_recalc


class TestCreateReading:
    @pytest.mark.asyncio
    async def test_stores_validated_reading(self, recalc):
        user, db = make_user(), mock_session()
        payload = ReadingCreate(
            value=142, timestamp=NOW - timedelta(hours=2), meal_context="AFTER_LUNCH"
        )

        reading = await reading_service.create_reading(db, user, payload, now=NOW)

        assert isinstance(reading, GlucoseReading)
        assert reading.user_id == user.id
        assert reading.value == 142.0
        assert reading.meal_context is MealContext.AFTER_LUNCH
        db.add.assert_called_once_with(reading)
        db.commit.assert_awaited_once()
        recalc.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_future_timestamp_clamped(self, recalc):
        user, db = make_user(), mock_session()
        payload = ReadingCreate(
            value=99, timestamp=NOW + timedelta(days=1), meal_context="FASTING"
        )

        reading = await reading_service.create_reading(db, user, payload, now=NOW)

        assert reading.timestamp == NOW

    @pytest.mark.asyncio
    async def test_missing_timestamp_defaults_to_now(self, recalc):
        user, db = make_user(), mock_session()
        payload = ReadingCreate(value=99, meal_context="FASTING")

        reading = await reading_service.create_reading(db, user, payload, now=NOW)

        assert reading.timestamp == NOW

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        ("overrides", "field"),
        [
            ({"value": 0}, "value"),
            ({"value": 1500}, "value"),
            ({"meal_context": "BRUNCH"}, "meal_context"),
        ],
    )
    async def test_invalid_fields_rejected(self, recalc, overrides, field):
        db = mock_session()
        payload = ReadingCreate(**{"value": 120, "meal_context": "OTHER", **overrides})

        with pytest.raises(ValidationError) as exc_info:
            await reading_service.create_reading(db, make_user(), payload, now=NOW)

        assert exc_info.value.field == field
        db.add.assert_not_called()

    @pytest.mark.asyncio
    async def test_attaches_to_own_run_and_recalculates(self, recalc):
        user, db = make_user(), mock_session()
        run = make_run_row(user.id)
        payload = ReadingCreate(value=120, meal_context="OTHER", run_id=run.id)

        with patch.object(store, "get_run", new_callable=AsyncMock, return_value=run):
            reading = await reading_service.create_reading(db, user, payload, now=NOW)

        assert reading.run_id == run.id
        recalc.assert_awaited_once_with(db, run)

    @pytest.mark.asyncio
    async def test_foreign_run_rejected(self, recalc):
        user, db = make_user(), mock_session()
        run = make_run_row(make_user().id)
        payload = ReadingCreate(value=120, meal_context="OTHER", run_id=run.id)

        with patch.object(store, "get_run", new_callable=AsyncMock, return_value=run):
            with pytest.raises(AuthorizationError):
                await reading_service.create_reading(db, user, payload, now=NOW)

        db.add.assert_not_called()

    @pytest.mark.asyncio
    async def test_unknown_run_is_not_found(self, recalc):
        payload = ReadingCreate(value=120, meal_context="OTHER", run_id=make_user().id)

        with patch.object(
            store, "get_run", new_callable=AsyncMock, side_effect=NotFoundError("Run")
        ):
            with pytest.raises(NotFoundError):
                await reading_service.create_reading(
                    mock_session(), make_user(), payload, now=NOW
                )


class TestUpdateReading:
    @pytest.mark.asyncio
    async def test_value_change_recalculates_run(self, recalc):
        user, db = make_user(), mock_session()
        run = make_run_row(user.id)
        row = make_reading_row(user.id, 100, run_id=run.id)

        with (
            patch.object(store, "get_reading", new_callable=AsyncMock, return_value=row),
            patch.object(store, "get_run", new_callable=AsyncMock, return_value=run),
            patch.object(store, "commit", new_callable=AsyncMock),
        ):
            updated = await reading_service.update_reading(
                db, user, row.id, ReadingUpdate(value=180, version=1), now=NOW
            )

        assert updated.value == 180.0
        recalc.assert_awaited_once_with(db, run)

    @pytest.mark.asyncio
    async def test_notes_change_skips_recalculation(self, recalc):
        user, db = make_user(), mock_session()
        row = make_reading_row(user.id, 100, run_id=make_run_row(user.id).id)

        with (
            patch.object(store, "get_reading", new_callable=AsyncMock, return_value=row),
            patch.object(store, "commit", new_callable=AsyncMock),
        ):
            updated = await reading_service.update_reading(
                db, user, row.id, ReadingUpdate(notes="after run"), now=NOW
            )

        assert updated.notes == "after run"
        recalc.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_enforced_range_rejects_moving_member_outside_run(self, recalc):
        user, db = make_user(), mock_session()
        run = make_run_row(user.id)
        row = make_reading_row(user.id, 100, timestamp=RUN_DAY, run_id=run.id)

        with (
            patch.object(settings, "enforce_run_date_range", True),
            patch.object(store, "get_reading", new_callable=AsyncMock, return_value=row),
            patch.object(store, "get_run", new_callable=AsyncMock, return_value=run),
            patch.object(store, "commit", new_callable=AsyncMock) as commit,
        ):
            with pytest.raises(ValidationError) as exc_info:
                await reading_service.update_reading(
                    db, user, row.id, ReadingUpdate(timestamp=NOW), now=NOW
                )

        assert exc_info.value.field == "timestamp"
        assert row.timestamp == RUN_DAY
        commit.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_enforced_range_allows_move_within_run(self, recalc):
        user, db = make_user(), mock_session()
        run = make_run_row(user.id)
        row = make_reading_row(user.id, 100, timestamp=RUN_DAY, run_id=run.id)

        with (
            patch.object(settings, "enforce_run_date_range", True),
            patch.object(store, "get_reading", new_callable=AsyncMock, return_value=row),
            patch.object(store, "get_run", new_callable=AsyncMock, return_value=run) as get_run,
            patch.object(store, "commit", new_callable=AsyncMock),
        ):
            updated = await reading_service.update_reading(
                db,
                user,
                row.id,
                ReadingUpdate(value=150, timestamp=RUN_DAY + timedelta(days=3)),
                now=NOW,
            )

        assert updated.timestamp == RUN_DAY + timedelta(days=3)
        get_run.assert_awaited_once()
        recalc.assert_awaited_once_with(db, run)

    @pytest.mark.asyncio
    async def test_stale_version_conflicts(self, recalc):
        user = make_user()
        row = make_reading_row(user.id, version=3)

        with patch.object(store, "get_reading", new_callable=AsyncMock, return_value=row):
            with pytest.raises(ConflictError):
                await reading_service.update_reading(
                    mock_session(), user, row.id, ReadingUpdate(value=130, version=2)
                )

    @pytest.mark.asyncio
    async def test_foreign_reading_forbidden(self, recalc):
        row = make_reading_row(make_user().id)

        with patch.object(store, "get_reading", new_callable=AsyncMock, return_value=row):
            with pytest.raises(AuthorizationError):
                await reading_service.update_reading(
                    mock_session(), make_user(), row.id, ReadingUpdate(value=130)
                )

    @pytest.mark.asyncio
    async def test_merged_result_is_validated(self, recalc):
        user = make_user()
        row = make_reading_row(user.id)

        with patch.object(store, "get_reading", new_callable=AsyncMock, return_value=row):
            with pytest.raises(ValidationError) as exc_info:
                await reading_service.update_reading(
                    mock_session(), user, row.id, ReadingUpdate(meal_context="LATE")
                )

        assert exc_info.value.field == "meal_context"


class TestDeleteReading:
    @pytest.mark.asyncio
    async def test_recalculates_former_run(self, recalc):
        user, db = make_user(), mock_session()
        run = make_run_row(user.id)
        row = make_reading_row(user.id, run_id=run.id)

        with (
            patch.object(store, "get_reading", new_callable=AsyncMock, return_value=row),
            patch.object(store, "get_run", new_callable=AsyncMock, return_value=run),
            patch.object(store, "commit", new_callable=AsyncMock),
        ):
            await reading_service.delete_reading(db, user, row.id)

        db.delete.assert_awaited_once_with(row)
        recalc.assert_awaited_once_with(db, run)
