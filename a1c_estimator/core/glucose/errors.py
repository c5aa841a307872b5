"""Glucose domain errors.

Raised at the point of detection and propagated to the caller unchanged.
Each kind carries the HTTP status the API layer responds with.
"""

import uuid


class GlucoseDomainError(Exception):
    """Base class for all domain rule violations."""

    status_code: int = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(GlucoseDomainError):
    """A field has a bad value or shape."""

    status_code = 400

    def __init__(self, field: str, message: str):
        super().__init__(message)
        self.field = field


class AuthorizationError(GlucoseDomainError):
    """The acting user does not own the entity or lacks a caregiver link."""

    status_code = 403


class NotFoundError(GlucoseDomainError):
    """A referenced entity does not exist (or is not visible to the caller)."""

    status_code = 404

    def __init__(self, entity: str, entity_id: uuid.UUID | str | None = None):
        message = f"{entity} not found"
        super().__init__(message)
        self.entity = entity
        self.entity_id = entity_id


class InsufficientDataError(GlucoseDomainError):
    """An estimate was requested with fewer readings than required."""

    status_code = 422

    def __init__(self, count: int, required: int):
        super().__init__(
            f"At least {required} readings are required for an A1C estimate "
            f"(got {count})"
        )
        self.count = count
        self.required = required


class ConflictError(GlucoseDomainError):
    """The entity was modified concurrently; reload and retry."""

    status_code = 409
