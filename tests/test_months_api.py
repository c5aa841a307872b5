"""Tests for /api/months endpoints."""

from datetime import date
from unittest.mock import AsyncMock, patch

import pytest

from a1c_estimator.core.glucose.aggregation import summarize_month
from a1c_estimator.core.glucose.errors import ValidationError
from a1c_estimator.core.glucose.models import Month, MonthStats
from factories import make_month_row, make_run_row

SERVICE = "a1c_estimator.services.months"


class TestMonthsApi:
    @pytest.mark.asyncio
    async def test_create_month(self, client, as_user, user):
        as_user(user)
        month = make_month_row(user.id)

        with patch(f"{SERVICE}.create_month", new_callable=AsyncMock, return_value=month):
            response = await client.post(
                "/api/months",
                json={"name": "March", "start_date": "2026-03-01", "end_date": "2026-03-31"},
            )

        assert response.status_code == 201
        assert response.json()["name"] == "March"

    @pytest.mark.asyncio
    async def test_list_total_counts_all_months(self, client, as_user, user):
        as_user(user)
        page = [make_month_row(user.id)]

        with patch(
            f"{SERVICE}.list_months",
            new_callable=AsyncMock,
            return_value=(page, 14),
        ) as list_months:
            response = await client.get("/api/months?limit=1&offset=3")

        assert response.status_code == 200
        body = response.json()
        assert len(body["months"]) == 1
        assert body["total"] == 14
        list_months.assert_awaited_once()
        assert list_months.await_args.kwargs == {"limit": 1, "offset": 3}

    @pytest.mark.asyncio
    async def test_detail_lists_runs(self, client, as_user, user):
        as_user(user)
        month = make_month_row(user.id)
        runs = [make_run_row(user.id, month_id=month.id)]

        with patch(
            f"{SERVICE}.get_month_detail",
            new_callable=AsyncMock,
            return_value=(month, runs),
        ):
            response = await client.get(f"/api/months/{month.id}")

        assert response.status_code == 200
        assert response.json()["runs"][0]["month_id"] == str(month.id)

    @pytest.mark.asyncio
    async def test_calculate_weighted(self, client, as_user, user):
        as_user(user)
        month = make_month_row(user.id, average_glucose=106.67, calculated_a1c=5.34)
        stats = MonthStats(
            average_glucose=106.67, a1c_estimate=5.34, contributing_runs=2, weighted=True
        )

        with patch(
            f"{SERVICE}.calculate_month",
            new_callable=AsyncMock,
            return_value=(month, stats),
        ) as calculate:
            response = await client.post(
                f"/api/months/{month.id}/calculate", json={"weighted": True}
            )

        assert response.status_code == 200
        body = response.json()
        assert body["weighted"] is True
        assert body["contributing_runs"] == 2
        assert calculate.await_args.kwargs == {"weighted": True}

    @pytest.mark.asyncio
    async def test_calculate_defaults_to_unweighted(self, client, as_user, user):
        as_user(user)
        month = make_month_row(user.id)
        stats = MonthStats(
            average_glucose=None, a1c_estimate=None, contributing_runs=0, weighted=False
        )

        with patch(
            f"{SERVICE}.calculate_month",
            new_callable=AsyncMock,
            return_value=(month, stats),
        ) as calculate:
            response = await client.post(f"/api/months/{month.id}/calculate")

        assert response.status_code == 200
        assert calculate.await_args.kwargs == {"weighted": False}

    @pytest.mark.asyncio
    async def test_attach_run_outside_month_is_400(self, client, as_user, user):
        as_user(user)
        month = make_month_row(user.id)
        run = make_run_row(user.id)

        with patch(
            f"{SERVICE}.attach_run",
            new_callable=AsyncMock,
            side_effect=ValidationError("run_id", "Run dates must be within month"),
        ):
            response = await client.post(
                f"/api/months/{month.id}/runs", json={"run_id": str(run.id)}
            )

        assert response.status_code == 400
        assert response.json()["field"] == "run_id"

    @pytest.mark.asyncio
    async def test_summary(self, client, as_user, user):
        as_user(user)
        month_row = make_month_row(user.id, start_date=date(2026, 3, 1))
        summary = summarize_month(Month.model_validate(month_row), [], [])

        with patch(
            f"{SERVICE}.get_month_summary", new_callable=AsyncMock, return_value=summary
        ):
            response = await client.get(f"/api/months/{month_row.id}/summary")

        assert response.status_code == 200
        body = response.json()
        assert body["month_id"] == str(month_row.id)
        assert body["total_readings"] == 0
        assert body["a1c_trend"] == "unknown"
