"""
Canonical activity sample stream.

A NormalizedActivity is what every analytics stage consumes, whatever
the payload source was.
"""
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Tuple


class Metric(str, Enum):
    """Metric channels known to the analytics core."""
    POWER = "power"
    HEART_RATE = "heart_rate"
    SPEED = "speed"
    CADENCE = "cadence"
    ALTITUDE = "altitude"
    PACE = "pace"  # derived from speed, seconds per km


# Record attribute holding each stored channel
RECORD_FIELDS = {
    Metric.POWER: "power_watts",
    Metric.HEART_RATE: "heart_rate_bpm",
    Metric.SPEED: "speed_mps",
    Metric.CADENCE: "cadence_rpm",
    Metric.ALTITUDE: "altitude_meters",
}


@dataclass(frozen=True)
class Record:
    """Single canonical sample."""
    timestamp: float  # POSIX seconds
    elapsed_seconds: float
    distance_meters: float
    speed_mps: float
    heart_rate_bpm: Optional[float] = None
    power_watts: Optional[float] = None
    cadence_rpm: Optional[float] = None
    altitude_meters: Optional[float] = None

    def value(self, metric: Metric) -> Optional[float]:
        """Value of a channel on this sample (pace is derived from speed)."""
        metric = Metric(metric)
        if metric is Metric.PACE:
            return pace_from_speed(self.speed_mps)
        return getattr(self, RECORD_FIELDS[metric])


@dataclass(frozen=True)
class LapData:
    """Source-provided lap after normalization. Times are elapsed seconds."""
    index: int
    start_time: Optional[float] = None
    duration_seconds: Optional[float] = None
    distance_meters: Optional[float] = None
    avg_speed_mps: Optional[float] = None
    avg_power: Optional[float] = None
    avg_heart_rate: Optional[float] = None
    avg_cadence: Optional[float] = None


@dataclass(frozen=True)
class ManualStep:
    """One manually logged workout step (no time series behind it)."""
    index: int
    duration_seconds: Optional[float] = None
    distance_meters: Optional[float] = None
    avg_power: Optional[float] = None
    avg_heart_rate: Optional[float] = None
    lactate: Optional[float] = None
    rpe: Optional[float] = None


@dataclass(frozen=True)
class NormalizedActivity:
    """
    Unified activity data structure.

    Records are timestamp-ascending with non-decreasing distance.
    Manual logs carry steps instead of records and have no time series.
    """
    sport: str  # running, walking, hiking, cycling, swimming, other
    source: str  # device, cloud, manual
    records: Tuple[Record, ...] = ()
    laps: Tuple[LapData, ...] = ()
    steps: Tuple[ManualStep, ...] = ()
    total_distance_meters: float = 0.0
    total_time_seconds: float = 0.0
    start_time: Optional[float] = None
    has_time_series: bool = True
    source_id: Optional[str] = None

    @property
    def no_chart_data(self) -> bool:
        return not self.has_time_series or not self.records

    def channel(self, metric: Metric) -> Tuple[Optional[float], ...]:
        """One metric across all records."""
        return tuple(record.value(metric) for record in self.records)

    def available_channels(self) -> List[Metric]:
        """Metrics with at least one recorded sample."""
        available = []
        for metric in RECORD_FIELDS:
            if any(value is not None for value in self.channel(metric)):
                available.append(metric)
        return available

    def total_duration_from_records(self) -> float:
        """Span covered by the records including the last sample's hold."""
        return sum(sample_durations(self.records))

    def max_distance(self) -> float:
        if not self.records:
            return 0.0
        return self.records[-1].distance_meters


def pace_from_speed(speed_mps: Optional[float]) -> Optional[float]:
    """Seconds per km, or None when not moving."""
    if speed_mps is None or speed_mps <= 0:
        return None
    return 1000.0 / speed_mps


def sample_durations(records: Tuple[Record, ...]) -> List[float]:
    """
    Time each sample is held for.

    A sample lasts until the next one; the last sample reuses the
    preceding gap. A lone sample has no measurable duration.
    """
    count = len(records)
    if count < 2:
        return [0.0] * count

    durations = [
        max(0.0, records[i + 1].timestamp - records[i].timestamp)
        for i in range(count - 1)
    ]
    durations.append(durations[-1])
    return durations
