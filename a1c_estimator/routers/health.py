"""Health check endpoints for container orchestration."""

from typing import Any

from fastapi import APIRouter, status
from fastapi.responses import JSONResponse

from a1c_estimator.config import settings
from a1c_estimator.core.migrations import check_migrations_current
from a1c_estimator.database import check_database_connection

router = APIRouter(tags=["Health"])


def _probe_response(ok: bool, ok_status: str, failed_status: str, **checks: str) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_200_OK if ok else status.HTTP_503_SERVICE_UNAVAILABLE,
        content={
            "status": ok_status if ok else failed_status,
            "service": settings.service_name,
            **checks,
        },
    )


@router.get("/health", response_model=None)
async def health_check() -> JSONResponse:
    """Healthy while the glucose database answers, degraded (503) otherwise."""
    connected = await check_database_connection()
    return _probe_response(
        connected,
        "healthy",
        "degraded",
        database="connected" if connected else "disconnected",
    )


@router.get("/health/live")
async def liveness_probe() -> dict[str, Any]:
    """The process is up. No dependencies are checked."""
    return {"status": "alive"}


@router.get("/health/ready", response_model=None)
async def readiness_probe() -> JSONResponse:
    """
    Readiness probe.

    Ready once the database is reachable and its schema is at the latest
    Alembic revision. Migrations are reported ``unknown`` when the database
    cannot be reached and ``pending`` when it is behind.
    """
    if not await check_database_connection():
        return _probe_response(
            False, "ready", "not_ready", database="disconnected", migrations="unknown"
        )

    migrated = await check_migrations_current()
    return _probe_response(
        migrated,
        "ready",
        "not_ready",
        database="connected",
        migrations="applied" if migrated else "pending",
    )
