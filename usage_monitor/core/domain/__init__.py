"""Domain value types."""

from .models import (
    SECONDS_PER_HOUR,
    Granularity,
    HourlySummary,
    IntervalDelta,
    PeakSpeeds,
    RawSample,
    SpeedReading,
    UsageDataPoint,
    UsageReport,
    UsageTotals,
)

__all__ = [
    "SECONDS_PER_HOUR",
    "Granularity",
    "HourlySummary",
    "IntervalDelta",
    "PeakSpeeds",
    "RawSample",
    "SpeedReading",
    "UsageDataPoint",
    "UsageReport",
    "UsageTotals",
]
