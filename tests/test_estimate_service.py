"""Tests for ad-hoc estimates, the dashboard summary and rolling estimates."""

from datetime import timedelta
from types import SimpleNamespace
from unittest.mock import AsyncMock, patch

import pytest

from a1c_estimator.core.glucose.aggregation import calculate_a1c
from a1c_estimator.core.glucose.enums import MealContext
from a1c_estimator.core.glucose.errors import InsufficientDataError, ValidationError
from a1c_estimator.services import estimates as estimate_service
from a1c_estimator.services import store
from factories import NOW, make_month_row, make_reading_row, make_user, mock_session


class TestEstimateFromSamples:
    def test_unweighted(self):
        samples = [(v, None) for v in [100, 120, 140, 110, 130, 115, 125]]

        average, a1c = estimate_service.estimate_from_samples(samples)

        assert average == pytest.approx(120.0)
        assert a1c == pytest.approx(calculate_a1c(120.0))

    def test_weighted_by_meal_context(self):
        samples = [(100, MealContext.FASTING)] * 6 + [(200, MealContext.AFTER_DINNER)]

        average, _ = estimate_service.estimate_from_samples(
            samples, {MealContext.AFTER_DINNER: 2.0}
        )

        assert average == pytest.approx((600 + 400) / 8)

    def test_too_few_values(self):
        with pytest.raises(InsufficientDataError):
            estimate_service.estimate_from_samples([(120, None)] * 6)

    def test_out_of_range_value_rejected(self):
        with pytest.raises(ValidationError) as exc_info:
            estimate_service.estimate_from_samples([(120, None)] * 6 + [(1200, None)])
        assert exc_info.value.field == "value"

    def test_negative_weight_rejected(self):
        with pytest.raises(ValidationError) as exc_info:
            estimate_service.estimate_from_samples(
                [(120, MealContext.OTHER)] * 7, {MealContext.OTHER: -1.0}
            )
        assert exc_info.value.field == "weights"


class TestStatsForWindow:
    @pytest.mark.asyncio
    async def test_passes_window_to_store(self):
        user, db = make_user(), mock_session()
        rows = [make_reading_row(user.id, v) for v in (60, 90, 150, 200)]
        start = NOW - timedelta(days=7)

        with patch.object(
            store, "list_readings", new_callable=AsyncMock, return_value=rows
        ) as list_readings:
            stats = await estimate_service.stats_for_window(db, user.id, start=start)

        list_readings.assert_awaited_once_with(db, user.id, start=start, end=None)
        assert stats.time_in_range_percent == pytest.approx(25.0)
        assert stats.a1c_estimate is None


class TestDashboardSummary:
    @pytest.mark.asyncio
    async def test_counts_last_30_days(self):
        user, db = make_user(), mock_session()
        month = make_month_row(user.id)

        with (
            patch.object(store, "get_latest_month", new_callable=AsyncMock, return_value=month),
            patch.object(
                store, "count_readings", new_callable=AsyncMock, return_value=42
            ) as count_readings,
            patch.object(store, "count_runs", new_callable=AsyncMock, return_value=3),
        ):
            latest, recent, runs = await estimate_service.get_dashboard_summary(
                db, user.id, now=NOW
            )

        assert (latest, recent, runs) == (month, 42, 3)
        count_readings.assert_awaited_once_with(
            db, user.id, start=NOW - timedelta(days=30)
        )


class TestRecalculateUserEstimate:
    @pytest.mark.asyncio
    async def test_updates_profile(self):
        user, db = make_user(), mock_session()
        profile = SimpleNamespace(user_id=user.id)
        rows = [make_reading_row(user.id, 154) for _ in range(10)]

        with (
            patch.object(store, "list_readings", new_callable=AsyncMock, return_value=rows),
            patch.object(
                estimate_service,
                "get_or_create_medical_profile",
                new_callable=AsyncMock,
                return_value=profile,
            ),
        ):
            result = await estimate_service.recalculate_user_estimate(
                db, user.id, window_days=90, now=NOW
            )

        assert result is profile
        assert profile.estimated_average_glucose == pytest.approx(154.0)
        assert profile.estimated_a1c == pytest.approx(calculate_a1c(154.0))
        assert profile.estimate_reading_count == 10
        assert profile.estimated_at == NOW
        db.commit.assert_awaited_once()
