"""Glucose domain enums."""

from enum import StrEnum, auto


class UserRole(StrEnum):
    """Account roles.

    ``standard`` users own readings, runs and months. ``caregiver`` users
    additionally get read-only access to users who linked them.
    """

    standard = auto()
    caregiver = auto()


class MealContext(StrEnum):
    """Closed set of meal/time tags attached to a reading."""

    BEFORE_BREAKFAST = "BEFORE_BREAKFAST"
    AFTER_BREAKFAST = "AFTER_BREAKFAST"
    BEFORE_LUNCH = "BEFORE_LUNCH"
    AFTER_LUNCH = "AFTER_LUNCH"
    BEFORE_DINNER = "BEFORE_DINNER"
    AFTER_DINNER = "AFTER_DINNER"
    BEDTIME = "BEDTIME"
    WAKEUP = "WAKEUP"
    FASTING = "FASTING"
    OTHER = "OTHER"


class GlucoseCategory(StrEnum):
    """Distribution bucket for a single reading."""

    low = auto()
    normal = auto()
    high = auto()
    very_high = auto()


class A1CTrend(StrEnum):
    """Direction of run A1C estimates across a month."""

    improving = auto()
    worsening = auto()
    stable = auto()
    unknown = auto()
