"""Tests for reading/run/month association and read access rules."""

import uuid
from datetime import UTC, date, datetime

import pytest

from a1c_estimator.core.glucose import (
    AuthorizationError,
    MealContext,
    Month,
    Reading,
    Run,
    UserIdentity,
    UserRole,
    ValidationError,
    assert_can_read,
    assert_owner,
    associate_reading,
    associate_run,
    can_read,
    detach_reading,
    detach_run,
)


def _reading(user_id, *, run_id=None, day=date(2026, 3, 3)) -> Reading:
    return Reading(
        id=uuid.uuid4(),
        user_id=user_id,
        value=110,
        timestamp=datetime(day.year, day.month, day.day, 9, tzinfo=UTC),
        meal_context=MealContext.FASTING,
        run_id=run_id,
    )


def _run(user_id, *, month_id=None, start=date(2026, 3, 1), end=date(2026, 3, 7)) -> Run:
    return Run(
        id=uuid.uuid4(),
        user_id=user_id,
        name="week one",
        start_date=start,
        end_date=end,
        month_id=month_id,
    )


def _month(user_id) -> Month:
    return Month(
        id=uuid.uuid4(),
        user_id=user_id,
        name="March",
        start_date=date(2026, 3, 1),
        end_date=date(2026, 3, 31),
    )


class TestAssociateReading:
    def test_sets_run_id(self):
        owner = uuid.uuid4()
        run = _run(owner)

        attached = associate_reading(_reading(owner), run)

        assert attached.run_id == run.id

    def test_different_owners_rejected(self):
        run = _run(uuid.uuid4())

        with pytest.raises(AuthorizationError):
            associate_reading(_reading(uuid.uuid4()), run)

    def test_idempotent(self):
        owner = uuid.uuid4()
        run = _run(owner)

        once = associate_reading(_reading(owner), run)
        twice = associate_reading(once, run)

        assert once.run_id == run.id
        assert twice.run_id == run.id
        assert twice is once

    def test_moves_reading_between_runs(self):
        owner = uuid.uuid4()
        first, second = _run(owner), _run(owner)

        moved = associate_reading(associate_reading(_reading(owner), first), second)

        assert moved.run_id == second.id

    def test_date_range_ignored_by_default(self):
        owner = uuid.uuid4()
        run = _run(owner)

        attached = associate_reading(_reading(owner, day=date(2026, 4, 20)), run)

        assert attached.run_id == run.id

    def test_date_range_enforced_when_enabled(self):
        owner = uuid.uuid4()
        run = _run(owner)

        with pytest.raises(ValidationError) as exc_info:
            associate_reading(
                _reading(owner, day=date(2026, 4, 20)), run, enforce_date_range=True
            )

        assert exc_info.value.field == "timestamp"

    def test_detach(self):
        owner = uuid.uuid4()
        reading = _reading(owner, run_id=uuid.uuid4())

        assert detach_reading(reading).run_id is None
        assert detach_reading(detach_reading(reading)).run_id is None


class TestAssociateRun:
    def test_sets_month_id(self):
        owner = uuid.uuid4()
        month = _month(owner)

        assert associate_run(_run(owner), month).month_id == month.id

    def test_different_owners_rejected(self):
        with pytest.raises(AuthorizationError):
            associate_run(_run(uuid.uuid4()), _month(uuid.uuid4()))

    def test_run_outside_month_rejected(self):
        owner = uuid.uuid4()

        with pytest.raises(ValidationError) as exc_info:
            associate_run(
                _run(owner, start=date(2026, 3, 28), end=date(2026, 4, 3)),
                _month(owner),
            )

        assert exc_info.value.field == "run_id"

    def test_detach(self):
        run = _run(uuid.uuid4(), month_id=uuid.uuid4())
        assert detach_run(run).month_id is None


class TestAccess:
    def test_assert_owner(self):
        owner = uuid.uuid4()
        assert_owner(owner, owner, entity="run")

        with pytest.raises(AuthorizationError, match="run"):
            assert_owner(uuid.uuid4(), owner, entity="run")

    def test_owner_can_read(self):
        viewer = UserIdentity(id=uuid.uuid4(), external_auth_id="a")
        assert can_read(viewer, viewer.id, set()) is True

    def test_linked_caregiver_can_read(self):
        owner = uuid.uuid4()
        viewer = UserIdentity(
            id=uuid.uuid4(), external_auth_id="c", role=UserRole.caregiver
        )
        assert can_read(viewer, owner, {owner}) is True

    def test_unlinked_caregiver_cannot_read(self):
        viewer = UserIdentity(
            id=uuid.uuid4(), external_auth_id="c", role=UserRole.caregiver
        )
        with pytest.raises(AuthorizationError):
            assert_can_read(viewer, uuid.uuid4(), set())

    def test_standard_user_with_link_cannot_read(self):
        owner = uuid.uuid4()
        viewer = UserIdentity(id=uuid.uuid4(), external_auth_id="s")
        assert can_read(viewer, owner, {owner}) is False
