"""Tests for the rolling A1C estimate job and scheduler lifecycle."""

import uuid
from contextlib import asynccontextmanager
from unittest.mock import AsyncMock, patch

import pytest

from a1c_estimator.config import settings
from a1c_estimator.services import scheduler as scheduler_module
from factories import mock_session


@asynccontextmanager
async def _fake_session():
    yield mock_session()


class TestRecalculateAllUserEstimates:
    @pytest.mark.asyncio
    async def test_one_failure_does_not_stop_batch(self):
        user_ids = [uuid.uuid4(), uuid.uuid4(), uuid.uuid4()]
        recalc = AsyncMock(side_effect=[None, RuntimeError("db went away"), None])

        with (
            patch.object(scheduler_module, "get_db_session", _fake_session),
            patch.object(
                scheduler_module.store,
                "list_user_ids",
                new_callable=AsyncMock,
                return_value=user_ids,
            ),
            patch.object(scheduler_module, "recalculate_user_estimate", recalc),
        ):
            await scheduler_module.recalculate_all_user_estimates()

        assert recalc.await_count == 3
        assert [c.args[1] for c in recalc.await_args_list] == user_ids
        assert recalc.await_args_list[0].kwargs == {
            "window_days": settings.a1c_window_days
        }

    @pytest.mark.asyncio
    async def test_no_users(self):
        recalc = AsyncMock()

        with (
            patch.object(scheduler_module, "get_db_session", _fake_session),
            patch.object(
                scheduler_module.store, "list_user_ids", new_callable=AsyncMock, return_value=[]
            ),
            patch.object(scheduler_module, "recalculate_user_estimate", recalc),
        ):
            await scheduler_module.recalculate_all_user_estimates()

        recalc.assert_not_awaited()


class TestSchedulerLifecycle:
    @pytest.mark.asyncio
    async def test_start_registers_job_and_stop_clears(self):
        try:
            sched = scheduler_module.start_scheduler()

            assert scheduler_module.get_scheduler() is sched
            assert scheduler_module.start_scheduler() is sched
            job = sched.get_job("a1c_recalculation")
            assert job is not None
            assert job.max_instances == 1
        finally:
            scheduler_module.stop_scheduler()

        assert scheduler_module.get_scheduler() is None
