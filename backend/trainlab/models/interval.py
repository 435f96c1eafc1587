"""
Interval / lap structures produced by the segmenter.
"""
from dataclasses import dataclass
from typing import Optional, Tuple


@dataclass(frozen=True)
class Interval:
    """Contiguous segment of an activity with its own aggregates."""
    index: int
    start_time: float  # elapsed seconds
    end_time: float
    distance_meters: float = 0.0
    avg_power: Optional[float] = None
    avg_heart_rate: Optional[float] = None
    avg_speed_mps: Optional[float] = None
    avg_cadence: Optional[float] = None
    is_pause: bool = False
    source: str = "lap"  # lap, split, step, activity

    @property
    def duration(self) -> float:
        return max(0.0, self.end_time - self.start_time)

    def metric_value(self, metric: str) -> Optional[float]:
        """Aggregate used for grouping and trend checks."""
        if metric == "power":
            return self.avg_power
        if metric == "heart_rate":
            return self.avg_heart_rate
        if metric == "speed":
            return self.avg_speed_mps
        if metric == "cadence":
            return self.avg_cadence
        if metric == "pace":
            if not self.avg_speed_mps or self.avg_speed_mps <= 0:
                return None
            return 1000.0 / self.avg_speed_mps
        return None

    def to_dict(self) -> dict:
        return {
            "index": self.index,
            "startTime": self.start_time,
            "endTime": self.end_time,
            "distanceMeters": self.distance_meters,
            "avgPower": self.avg_power,
            "avgHeartRate": self.avg_heart_rate,
            "avgSpeedMps": self.avg_speed_mps,
            "avgCadence": self.avg_cadence,
            "isPause": self.is_pause,
            "source": self.source,
        }


@dataclass(frozen=True)
class IntervalGroup:
    """Intervals with similar values, for shared display colouring."""
    group_id: int  # -1 for ungrouped intervals
    interval_indices: Tuple[int, ...]
    reference_value: Optional[float] = None
    avg_value: Optional[float] = None


@dataclass(frozen=True)
class MainSetSummary:
    """Duration-weighted aggregates over non-pause intervals."""
    interval_count: int = 0
    pause_count: int = 0
    total_time_seconds: float = 0.0
    distance_meters: float = 0.0
    avg_power: Optional[float] = None
    avg_heart_rate: Optional[float] = None
    avg_speed_mps: Optional[float] = None
