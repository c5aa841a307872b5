"""Glucose aggregation.

Pure functions over collections of readings and runs: averages, the ADAG
A1C estimate, time in range, distribution buckets, month-level weighting
and the month summary. Nothing here touches the database.
"""

import math
from collections import Counter
from collections.abc import Iterable, Mapping, Sequence

from a1c_estimator.core.glucose.constants import (
    A1C_INTERCEPT_MGDL,
    A1C_SLOPE_MGDL,
    A1C_TREND_TOLERANCE,
    ABOVE_RANGE_INSIGHT_RATIO,
    GOOD_TIME_IN_RANGE_PERCENT,
    LOW_INSIGHT_RATIO,
    LOW_THRESHOLD_MGDL,
    MIN_READINGS_FOR_A1C,
    MIN_READINGS_PER_DAY,
    POOR_TIME_IN_RANGE_PERCENT,
    TARGET_HIGH_MGDL,
    VERY_HIGH_THRESHOLD_MGDL,
)
from a1c_estimator.core.glucose.enums import A1CTrend, GlucoseCategory, MealContext
from a1c_estimator.core.glucose.errors import InsufficientDataError, ValidationError
from a1c_estimator.core.glucose.models import (
    BucketShare,
    Distribution,
    GlucoseSample,
    Month,
    MonthStats,
    MonthSummary,
    Reading,
    ReadingStats,
    Run,
)

INSIGHT_ABOVE_RANGE = "High percentage of readings above target range."
INSIGHT_FREQUENT_LOWS = "Consider adjusting treatment to reduce low glucose events."
INSIGHT_GOOD_TIME_IN_RANGE = "Good time in range percentage. Keep up the good work!"
INSIGHT_POOR_TIME_IN_RANGE = "Time in range is below recommended levels."
INSIGHT_MORE_READINGS = (
    "Consider taking more readings throughout the day for better monitoring."
)


def classify(value: float) -> GlucoseCategory:
    """Bucket a single value. Both bounds of the normal range are inclusive."""
    if value < LOW_THRESHOLD_MGDL:
        return GlucoseCategory.low
    if value <= TARGET_HIGH_MGDL:
        return GlucoseCategory.normal
    if value <= VERY_HIGH_THRESHOLD_MGDL:
        return GlucoseCategory.high
    return GlucoseCategory.very_high


def calculate_a1c(average_glucose: float) -> float:
    """Convert an average glucose (mg/dL) to an estimated A1C percentage.

    Raises:
        ValidationError: If the average is negative or not finite.
    """
    if not math.isfinite(average_glucose) or average_glucose < 0:
        raise ValidationError(
            "average_glucose", "Average glucose must be a non-negative number"
        )
    return (average_glucose + A1C_INTERCEPT_MGDL) / A1C_SLOPE_MGDL


def estimate_a1c(
    samples: Sequence[Reading | GlucoseSample],
    weights: Mapping[MealContext, float] | None = None,
) -> float:
    """Estimate A1C from samples, requiring the minimum sample size.

    Raises:
        InsufficientDataError: If fewer than MIN_READINGS_FOR_A1C samples.
        ValidationError: If every weight is zero.
    """
    if len(samples) < MIN_READINGS_FOR_A1C:
        raise InsufficientDataError(len(samples), MIN_READINGS_FOR_A1C)
    average = average_glucose(samples, weights)
    if average is None:
        raise ValidationError("weights", "Meal context weights must not all be zero")
    return calculate_a1c(average)


def average_glucose(
    readings: Sequence[Reading | GlucoseSample],
    weights: Mapping[MealContext, float] | None = None,
) -> float | None:
    """Mean reading value, optionally weighted by meal context.

    Contexts missing from ``weights`` weigh 1. Returns None for an empty
    collection (or when every weight is zero).
    """
    if not readings:
        return None
    if not weights:
        return math.fsum(r.value for r in readings) / len(readings)

    weighted_sum = 0.0
    total_weight = 0.0
    for reading in readings:
        weight = weights.get(reading.meal_context, 1.0)
        weighted_sum += reading.value * weight
        total_weight += weight
    if total_weight <= 0:
        return None
    return weighted_sum / total_weight


def compute_distribution(values: Iterable[float]) -> Distribution:
    counts = Counter(classify(v) for v in values)
    total = sum(counts.values())

    def share(category: GlucoseCategory) -> BucketShare:
        count = counts.get(category, 0)
        percent = (count / total) * 100 if total else 0.0
        return BucketShare(count=count, percent=percent)

    return Distribution(
        total=total,
        low=share(GlucoseCategory.low),
        normal=share(GlucoseCategory.normal),
        high=share(GlucoseCategory.high),
        very_high=share(GlucoseCategory.very_high),
    )


def compute_value_stats(values: Sequence[float]) -> ReadingStats:
    """Statistics over bare values."""
    count = len(values)
    distribution = compute_distribution(values)

    average = math.fsum(values) / count if count else None
    a1c = None
    if average is not None and count >= MIN_READINGS_FOR_A1C:
        a1c = calculate_a1c(average)

    return ReadingStats(
        reading_count=count,
        average_glucose=average,
        a1c_estimate=a1c,
        time_in_range_percent=distribution.normal.percent,
        distribution=distribution,
    )


def compute_stats(readings: Sequence[Reading]) -> ReadingStats:
    """Average, A1C estimate, time in range and distribution for readings.

    An empty collection yields ``average_glucose=None`` and zero percents;
    below MIN_READINGS_FOR_A1C the estimate is None.
    """
    return compute_value_stats([r.value for r in readings])


def month_average(runs: Iterable[Run], *, weighted: bool = False) -> float | None:
    """Average of per-run averages, skipping runs without one.

    In weighted mode each run counts by its inclusive duration in days.
    """
    contributing = [run for run in runs if run.average_glucose is not None]
    if not contributing:
        return None

    if not weighted:
        return math.fsum(run.average_glucose for run in contributing) / len(
            contributing
        )

    total_days = sum(run.duration_days for run in contributing)
    weighted_sum = math.fsum(
        run.average_glucose * run.duration_days for run in contributing
    )
    return weighted_sum / total_days


def compute_month_stats(runs: Sequence[Run], *, weighted: bool = False) -> MonthStats:
    average = month_average(runs, weighted=weighted)
    return MonthStats(
        average_glucose=average,
        a1c_estimate=calculate_a1c(average) if average is not None else None,
        contributing_runs=sum(1 for run in runs if run.average_glucose is not None),
        weighted=weighted,
    )


def a1c_trend(runs: Iterable[Run]) -> A1CTrend:
    """Compare the first and last run estimate, ordered by start date.

    Runs without an estimate are ignored; fewer than two remaining runs
    give ``unknown``.
    """
    estimated = sorted(
        (run for run in runs if run.calculated_a1c is not None),
        key=lambda run: run.start_date,
    )
    if len(estimated) < 2:
        return A1CTrend.unknown

    first = estimated[0].calculated_a1c
    last = estimated[-1].calculated_a1c
    if last < first - A1C_TREND_TOLERANCE:
        return A1CTrend.improving
    if last > first + A1C_TREND_TOLERANCE:
        return A1CTrend.worsening
    return A1CTrend.stable


def summarize_month(
    month: Month,
    runs: Sequence[Run],
    readings: Sequence[Reading],
) -> MonthSummary:
    """Build the month overview from its runs and their readings.

    Only runs attached to ``month`` and readings attached to those runs
    are considered, so callers may pass wider collections.
    """
    month_runs = [run for run in runs if run.month_id == month.id]
    run_ids = {run.id for run in month_runs}
    month_readings = [r for r in readings if r.run_id in run_ids]

    values = [r.value for r in month_readings]
    total = len(values)
    distribution = compute_distribution(values)
    readings_per_day = total / month.duration_days

    hourly = Counter(r.timestamp.hour for r in month_readings)
    most_common_hour = None
    if hourly:
        # ties resolve to the earliest hour
        most_common_hour = min(hourly, key=lambda hour: (-hourly[hour], hour))

    insights: list[str] = []
    above_range = distribution.high.count + distribution.very_high.count
    if above_range > total * ABOVE_RANGE_INSIGHT_RATIO:
        insights.append(INSIGHT_ABOVE_RANGE)
    if distribution.low.count > total * LOW_INSIGHT_RATIO:
        insights.append(INSIGHT_FREQUENT_LOWS)
    if total:
        time_in_range = distribution.normal.percent
        if time_in_range > GOOD_TIME_IN_RANGE_PERCENT:
            insights.append(INSIGHT_GOOD_TIME_IN_RANGE)
        elif time_in_range < POOR_TIME_IN_RANGE_PERCENT:
            insights.append(INSIGHT_POOR_TIME_IN_RANGE)
    if readings_per_day < MIN_READINGS_PER_DAY:
        insights.append(INSIGHT_MORE_READINGS)

    return MonthSummary(
        total_readings=total,
        readings_per_day=readings_per_day,
        lowest_reading=min(values) if values else None,
        highest_reading=max(values) if values else None,
        hourly_distribution=dict(sorted(hourly.items())),
        most_common_hour=most_common_hour,
        time_in_range_percent=distribution.normal.percent,
        distribution=distribution,
        a1c_trend=a1c_trend(month_runs),
        total_runs=len(month_runs),
        insights=insights,
    )
