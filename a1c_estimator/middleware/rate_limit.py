"""Rate limiting for the aggregate endpoints.

Statistics, estimates and the dashboard summary scan a user's whole
reading history, so they are limited per acting user. Unauthenticated
calls fall back to the client address.
"""

from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from starlette.requests import Request
from starlette.responses import JSONResponse

from a1c_estimator.config import settings
from a1c_estimator.logging_config import acting_user_ctx, get_logger

logger = get_logger(__name__)


def _client_address(request: Request) -> str:
    forwarded_for = request.headers.get("x-forwarded-for")
    if forwarded_for:
        # Leftmost entry is the client address
        return forwarded_for.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


def rate_limit_key(request: Request) -> str:
    """Limit bucket: ``user:<id>`` once identity is resolved, else ``ip:<addr>``."""
    acting_user = acting_user_ctx.get()
    if acting_user:
        return f"user:{acting_user}"
    return f"ip:{_client_address(request)}"


limiter = Limiter(
    key_func=rate_limit_key,
    # Counters live in Redis when configured so replicas share them
    storage_uri=settings.redis_url or "memory://",
    enabled=not settings.testing,
)


async def rate_limit_exceeded_handler(
    request: Request, exc: RateLimitExceeded
) -> JSONResponse:
    logger.warning(
        "Rate limit exceeded",
        path=request.url.path,
        limit=str(exc.detail),
    )
    return JSONResponse(
        status_code=429,
        content={"detail": f"Rate limit exceeded: {exc.detail}"},
    )
