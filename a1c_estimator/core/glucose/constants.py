"""Glucose domain constants.

All clinically significant values used by validation and aggregation.
Glucose values are in mg/dL throughout.
"""

from typing import Final

# ADAG linear approximation: A1C (%) = (average glucose + 46.7) / 28.7
A1C_INTERCEPT_MGDL: Final[float] = 46.7
A1C_SLOPE_MGDL: Final[float] = 28.7

# Below this many readings an A1C estimate is reported as insufficient data
# rather than a misleading number.
MIN_READINGS_FOR_A1C: Final[int] = 7

# Distribution buckets. Low < 70 <= Normal <= 140 < High <= 180 < Very High.
# Time in range counts the Normal bucket.
LOW_THRESHOLD_MGDL: Final[float] = 70.0
TARGET_HIGH_MGDL: Final[float] = 140.0
VERY_HIGH_THRESHOLD_MGDL: Final[float] = 180.0

# Sanity ceiling for a single reading. Meters top out well below this.
MAX_GLUCOSE_MGDL: Final[float] = 1000.0

# Change in run A1C (percentage points) between the first and last run of a
# month that counts as a trend rather than noise.
A1C_TREND_TOLERANCE: Final[float] = 0.2

# Month summary insight thresholds
ABOVE_RANGE_INSIGHT_RATIO: Final[float] = 0.3
LOW_INSIGHT_RATIO: Final[float] = 0.1
GOOD_TIME_IN_RANGE_PERCENT: Final[float] = 70.0
POOR_TIME_IN_RANGE_PERCENT: Final[float] = 50.0
MIN_READINGS_PER_DAY: Final[float] = 3.0
