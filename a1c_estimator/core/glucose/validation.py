"""Candidate reading validation.

Checks run in a fixed order (value, timestamp, meal context) and the first
failure is raised, naming the field. Timestamps later than ``now`` are
clamped to ``now`` on every entry path rather than rejected.
"""

import math
from datetime import UTC, datetime
from decimal import Decimal, InvalidOperation

from a1c_estimator.core.glucose.constants import MAX_GLUCOSE_MGDL
from a1c_estimator.core.glucose.enums import MealContext
from a1c_estimator.core.glucose.errors import ValidationError
from a1c_estimator.core.glucose.models import ReadingCandidate, ValidatedReading


def validate_reading(
    candidate: ReadingCandidate,
    *,
    now: datetime | None = None,
) -> ValidatedReading:
    """Validate and normalize a candidate reading.

    Args:
        candidate: Raw input values.
        now: Reference time for the future-timestamp clamp (defaults to
            the current UTC time).

    Returns:
        The normalized reading.

    Raises:
        ValidationError: For the first field that fails.
    """
    now = _as_aware(now) if now is not None else datetime.now(UTC)

    value = parse_glucose_value(candidate.value)
    timestamp = parse_timestamp(candidate.timestamp)
    meal_context = parse_meal_context(candidate.meal_context)
    notes = normalize_notes(candidate.notes)

    clamped = timestamp > now
    if clamped:
        timestamp = now

    return ValidatedReading(
        value=value,
        timestamp=timestamp,
        meal_context=meal_context,
        notes=notes,
        timestamp_clamped=clamped,
    )


def parse_glucose_value(raw: object) -> float:
    """Return the reading value as a float in (0, MAX_GLUCOSE_MGDL]."""
    if raw is None or (isinstance(raw, str) and not raw.strip()):
        raise ValidationError("value", "Glucose value is required")

    # bool is an int subclass; True is not a glucose reading
    if isinstance(raw, bool):
        raise ValidationError("value", "Glucose value must be a number")

    if isinstance(raw, (int, float)):
        value = float(raw)
    elif isinstance(raw, (str, Decimal)):
        # float() raises ValueError rather than InvalidOperation for signaling NaN
        try:
            value = float(Decimal(str(raw).strip()))
        except (InvalidOperation, ValueError):
            raise ValidationError("value", "Glucose value must be a number") from None
    else:
        raise ValidationError("value", "Glucose value must be a number")

    if not math.isfinite(value):
        raise ValidationError("value", "Glucose value must be a finite number")
    if value <= 0:
        raise ValidationError("value", "Glucose value must be positive")
    if value > MAX_GLUCOSE_MGDL:
        raise ValidationError(
            "value", f"Glucose value cannot exceed {MAX_GLUCOSE_MGDL:g} mg/dL"
        )
    return value


def parse_timestamp(raw: object) -> datetime:
    """Return a timezone-aware datetime; naive input is taken as UTC."""
    if raw is None or (isinstance(raw, str) and not raw.strip()):
        raise ValidationError("timestamp", "Timestamp is required")

    if isinstance(raw, datetime):
        return _as_aware(raw)

    if isinstance(raw, str):
        try:
            return _as_aware(datetime.fromisoformat(raw.strip()))
        except ValueError:
            raise ValidationError(
                "timestamp", f"Timestamp is not a valid date: {raw!r}"
            ) from None

    raise ValidationError("timestamp", "Timestamp is not a valid date")


def parse_meal_context(raw: object) -> MealContext:
    """Return the MealContext member for ``raw`` (member or exact value)."""
    if raw is None or raw == "":
        raise ValidationError("meal_context", "Meal context is required")
    if isinstance(raw, MealContext):
        return raw
    try:
        return MealContext(raw)
    except ValueError:
        allowed = ", ".join(member.value for member in MealContext)
        raise ValidationError(
            "meal_context",
            f"Invalid meal context {raw!r}; expected one of: {allowed}",
        ) from None


def normalize_notes(raw: object) -> str | None:
    if raw is None:
        return None
    if not isinstance(raw, str):
        raise ValidationError("notes", "Notes must be text")
    return raw.strip() or None


def _as_aware(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value
