"""Glucose domain rules.

Pure functions and records for everything the API derives from glucose
readings:

1. Validation of candidate readings (value, timestamp, meal context)
2. Aggregation: average glucose, estimated A1C, time in range,
   distribution buckets, month weighting and summaries
3. Association of readings to runs and runs to months, with ownership
   and caregiver read-access checks

Nothing in this package performs I/O. Services fetch rows, convert them
with ``Reading.model_validate(row)`` and friends, and persist the results.
"""

from a1c_estimator.core.glucose.aggregation import (
    a1c_trend,
    average_glucose,
    calculate_a1c,
    classify,
    compute_distribution,
    compute_month_stats,
    compute_stats,
    compute_value_stats,
    estimate_a1c,
    month_average,
    summarize_month,
)
from a1c_estimator.core.glucose.association import (
    assert_can_read,
    assert_owner,
    associate_reading,
    associate_run,
    can_read,
    detach_reading,
    detach_run,
)
from a1c_estimator.core.glucose.enums import (
    A1CTrend,
    GlucoseCategory,
    MealContext,
    UserRole,
)
from a1c_estimator.core.glucose.errors import (
    AuthorizationError,
    ConflictError,
    GlucoseDomainError,
    InsufficientDataError,
    NotFoundError,
    ValidationError,
)
from a1c_estimator.core.glucose.models import (
    GlucoseSample,
    Month,
    MonthStats,
    MonthSummary,
    Reading,
    ReadingCandidate,
    ReadingStats,
    Run,
    UserIdentity,
    ValidatedReading,
)
from a1c_estimator.core.glucose.validation import validate_reading

__all__ = [
    "A1CTrend",
    "AuthorizationError",
    "ConflictError",
    "GlucoseCategory",
    "GlucoseDomainError",
    "GlucoseSample",
    "InsufficientDataError",
    "MealContext",
    "Month",
    "MonthStats",
    "MonthSummary",
    "NotFoundError",
    "Reading",
    "ReadingCandidate",
    "ReadingStats",
    "Run",
    "UserIdentity",
    "UserRole",
    "ValidatedReading",
    "ValidationError",
    "a1c_trend",
    "assert_can_read",
    "assert_owner",
    "associate_reading",
    "associate_run",
    "average_glucose",
    "calculate_a1c",
    "can_read",
    "classify",
    "compute_distribution",
    "compute_month_stats",
    "compute_stats",
    "compute_value_stats",
    "detach_reading",
    "detach_run",
    "estimate_a1c",
    "month_average",
    "summarize_month",
    "validate_reading",
]
