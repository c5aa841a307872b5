"""Per-request correlation id and access logging.

Pure ASGI rather than ``BaseHTTPMiddleware``, which runs the endpoint in a
separate task and breaks asyncpg connections and the request ContextVars.
"""

import time
import uuid

from starlette.datastructures import Headers, MutableHeaders
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from a1c_estimator.config import settings
from a1c_estimator.logging_config import acting_user_ctx, correlation_id_ctx, get_logger

logger = get_logger(__name__)

CORRELATION_ID_HEADER = "X-Correlation-ID"
_MAX_CORRELATION_ID_LENGTH = 128


def _incoming_correlation_id(scope: Scope) -> str:
    supplied = Headers(scope=scope).get(CORRELATION_ID_HEADER, "").strip()
    if supplied and len(supplied) <= _MAX_CORRELATION_ID_LENGTH and supplied.isprintable():
        return supplied
    return str(uuid.uuid4())


class CorrelationIdMiddleware:
    """Tags each HTTP request with a correlation id.

    A printable ``X-Correlation-ID`` of reasonable length from the client is
    reused; anything else is replaced with a fresh UUID. The id is echoed
    on the response and carried by every log line of the request, and the
    completion line also names the acting user resolved during the request.
    """

    def __init__(self, app: ASGIApp) -> None:
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        correlation_id = _incoming_correlation_id(scope)
        correlation_token = correlation_id_ctx.set(correlation_id)
        user_token = acting_user_ctx.set(None)

        request_fields = {
            "method": scope.get("method", ""),
            "path": scope.get("path", ""),
        }
        status_code: int | None = None
        started = time.perf_counter()

        async def send_with_header(message: Message) -> None:
            nonlocal status_code
            if message["type"] == "http.response.start":
                status_code = message["status"]
                message.setdefault("headers", [])
                MutableHeaders(scope=message).append(
                    CORRELATION_ID_HEADER, correlation_id
                )
            await send(message)

        try:
            await self.app(scope, receive, send_with_header)
        except Exception:
            logger.exception(
                "Request failed",
                **request_fields,
                duration_ms=_elapsed_ms(started),
            )
            raise
        else:
            duration_ms = _elapsed_ms(started)
            fields = {
                **request_fields,
                "status_code": status_code,
                "duration_ms": duration_ms,
            }
            if duration_ms > settings.slow_request_ms:
                logger.warning("Slow request", **fields)
            else:
                logger.info("Request completed", **fields)
        finally:
            acting_user_ctx.reset(user_token)
            correlation_id_ctx.reset(correlation_token)


def _elapsed_ms(started: float) -> float:
    return round((time.perf_counter() - started) * 1000, 2)
