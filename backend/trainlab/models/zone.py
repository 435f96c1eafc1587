"""
Training zone structures.
"""
import math
from dataclasses import dataclass
from typing import Optional, Tuple


@dataclass(frozen=True)
class ZoneBoundary:
    """Closed value range of one zone. A missing max is open-ended."""
    zone_index: int  # 1..5
    min: float
    max: Optional[float] = None

    @property
    def upper(self) -> float:
        return math.inf if self.max is None else self.max

    def contains(self, value: float) -> bool:
        return self.min <= value <= self.upper

    def to_dict(self) -> dict:
        return {"zoneIndex": self.zone_index, "min": self.min, "max": self.max}


@dataclass(frozen=True)
class ZoneAggregate:
    """Time spent and average value inside one zone."""
    zone_index: int
    time_seconds: float = 0.0
    avg_value: Optional[float] = None
    sample_count: int = 0

    def to_dict(self) -> dict:
        return {
            "zoneIndex": self.zone_index,
            "timeSeconds": self.time_seconds,
            "avgValue": self.avg_value,
            "sampleCount": self.sample_count,
        }


@dataclass(frozen=True)
class ZoneSummary:
    """
    Zone aggregates of one metric for an activity.

    Times are measured on the record timeline: each sample is held until
    the next one and the last sample reuses the preceding gap. The total
    can therefore differ from a duration the source reports (timer or
    moving time); it is bounded by
    `NormalizedActivity.total_duration_from_records` instead.
    """
    metric: str
    boundaries: Tuple[ZoneBoundary, ...]
    aggregates: Tuple[ZoneAggregate, ...]
    classified_seconds: float = 0.0
    unclassified_seconds: float = 0.0

    @property
    def recorded_seconds(self) -> float:
        """Time with a reading of this metric, in or out of the zones."""
        return self.classified_seconds + self.unclassified_seconds

    def percentages(self) -> Tuple[float, ...]:
        """Share of classified time per zone, in percent."""
        if self.classified_seconds <= 0:
            return tuple(0.0 for _ in self.aggregates)
        return tuple(
            round(agg.time_seconds / self.classified_seconds * 100, 1)
            for agg in self.aggregates
        )

    def to_dict(self) -> dict:
        return {
            "metric": self.metric,
            "boundaries": [b.to_dict() for b in self.boundaries],
            "aggregates": [a.to_dict() for a in self.aggregates],
            "classifiedSeconds": self.classified_seconds,
            "unclassifiedSeconds": self.unclassified_seconds,
            "recordedSeconds": self.recorded_seconds,
        }
