"""A1C Estimator FastAPI Application."""

from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded

from a1c_estimator.config import settings, validate_auth_key
from a1c_estimator.core.glucose.errors import GlucoseDomainError
from a1c_estimator.database import close_database
from a1c_estimator.logging_config import get_logger, setup_logging
from a1c_estimator.middleware import (
    CorrelationIdMiddleware,
    limiter,
    rate_limit_exceeded_handler,
)
from a1c_estimator.routers import (
    caregivers,
    estimate,
    health,
    months,
    readings,
    runs,
    users,
)
from a1c_estimator.services.scheduler import start_scheduler, stop_scheduler

setup_logging(
    log_format=settings.log_format,
    log_level=settings.log_level,
    service_name=settings.service_name,
)
logger = get_logger(__name__)

validate_auth_key()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    # Migrations are applied before uvicorn starts (alembic upgrade head)
    logger.info("A1C Estimator API started")

    start_scheduler()

    yield

    logger.info("Shutting down A1C Estimator API")
    stop_scheduler()
    await close_database()
    logger.info("A1C Estimator API shutdown complete")


app = FastAPI(
    title="A1C Estimator API",
    description="Glucose tracking with A1C estimates",
    version="0.1.0",
    lifespan=lifespan,
)

app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)


@app.exception_handler(GlucoseDomainError)
async def glucose_domain_error_handler(
    request: Request, exc: GlucoseDomainError
) -> JSONResponse:
    """Map domain rule violations to their HTTP status."""
    if exc.status_code >= 403:
        logger.info(
            "Request rejected",
            error_type=type(exc).__name__,
            status_code=exc.status_code,
            path=request.url.path,
        )
    content: dict[str, Any] = {"detail": exc.message}
    field = getattr(exc, "field", None)
    if field is not None:
        content["field"] = field
    return JSONResponse(status_code=exc.status_code, content=content)


# Middleware (order matters: first added = last executed)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(CorrelationIdMiddleware)

app.include_router(health.router)
app.include_router(users.router)
app.include_router(readings.router)
app.include_router(runs.router)
app.include_router(months.router)
app.include_router(estimate.router)
app.include_router(caregivers.router)


@app.get("/")
async def root() -> dict[str, Any]:
    """Root endpoint."""
    return {
        "name": "A1C Estimator API",
        "version": "0.1.0",
        "docs": "/docs",
    }
