"""Shared response schemas."""

from typing import Any

from pydantic import BaseModel


class ErrorResponse(BaseModel):
    """Error body returned for domain rule violations."""

    detail: str
    field: str | None = None


# OpenAPI documentation for the domain errors raised by the services
ERROR_RESPONSES: dict[int | str, dict[str, Any]] = {
    400: {"model": ErrorResponse, "description": "Invalid field value"},
    403: {"model": ErrorResponse, "description": "Not the owner or a linked caregiver"},
    404: {"model": ErrorResponse, "description": "Entity not found"},
    409: {"model": ErrorResponse, "description": "Concurrent modification"},
}
