"""
Zone Classifier & Aggregator.

Buckets samples into five ordered threshold zones and reports time spent
and average value per zone. Classification is first-match in list order
over closed [min, max] ranges, so overlapping or gapped configurations
are resolved rather than rejected.
"""
from collections.abc import Mapping
from typing import Any, Dict, List, Optional, Sequence, Tuple

from trainlab.core.config import settings
from trainlab.core.logging import get_logger
from trainlab.models.record import Metric, Record, pace_from_speed, sample_durations
from trainlab.models.zone import ZoneAggregate, ZoneBoundary, ZoneSummary

logger = get_logger(__name__)

ZONE_COUNT = 5

# (lower, upper) multipliers per zone: ("lt1" | "lt2", factor)
THRESHOLD_FACTORS = (
    (("lt1", 0.70), ("lt1", 0.90)),
    (("lt1", 0.90), ("lt1", 1.00)),
    (("lt1", 1.00), ("lt2", 0.95)),
    (("lt2", 0.96), ("lt2", 1.04)),
    (("lt2", 1.05), None),
)

ZONE_METRICS = (Metric.POWER, Metric.HEART_RATE, Metric.PACE)

_PACE_SPORTS = ("running", "walking", "hiking")


# ========================================
# Classification
# ========================================

def classify(value: Optional[float], boundaries: Sequence[ZoneBoundary]) -> Optional[int]:
    """Zone index of the first boundary containing value, else None."""
    if value is None:
        return None
    for boundary in boundaries:
        if boundary.contains(value):
            return boundary.zone_index
    return None


def pace_channel(records: Sequence[Record]) -> Tuple[Optional[float], ...]:
    """Seconds per km for each record; None while standing still."""
    return tuple(pace_from_speed(record.speed_mps) for record in records)


def aggregate_zones(
    metric: str,
    values: Sequence[Optional[float]],
    durations: Sequence[float],
    boundaries: Sequence[ZoneBoundary],
) -> ZoneSummary:
    """
    Per-zone time and average for one channel.

    Args:
        metric: Metric name the values belong to
        values: Channel samples (None = no reading)
        durations: Hold time of each sample in seconds
        boundaries: Zone ranges in classification order

    Returns:
        ZoneSummary with one aggregate per zone, ordered by zone index
    """
    times: Dict[int, float] = {b.zone_index: 0.0 for b in boundaries}
    sums: Dict[int, float] = {b.zone_index: 0.0 for b in boundaries}
    counts: Dict[int, int] = {b.zone_index: 0 for b in boundaries}
    for index in range(1, ZONE_COUNT + 1):
        times.setdefault(index, 0.0)
        sums.setdefault(index, 0.0)
        counts.setdefault(index, 0)

    classified = 0.0
    unclassified = 0.0

    for value, duration in zip(values, durations):
        zone = classify(value, boundaries)
        if zone is None:
            if value is not None:
                unclassified += duration
            continue
        times[zone] += duration
        sums[zone] += value
        counts[zone] += 1
        classified += duration

    aggregates = tuple(
        ZoneAggregate(
            zone_index=zone,
            time_seconds=times[zone],
            avg_value=sums[zone] / counts[zone] if counts[zone] else None,
            sample_count=counts[zone],
        )
        for zone in sorted(times)
    )

    return ZoneSummary(
        metric=str(getattr(metric, "value", metric)),
        boundaries=tuple(boundaries),
        aggregates=aggregates,
        classified_seconds=classified,
        unclassified_seconds=unclassified,
    )


def summarize_zones(
    records: Sequence[Record],
    metric: Metric,
    boundaries: Sequence[ZoneBoundary],
) -> ZoneSummary:
    """Zone summary of one metric over a record stream."""
    metric = Metric(metric)
    if metric is Metric.PACE:
        values = pace_channel(records)
    else:
        values = tuple(record.value(metric) for record in records)
    return aggregate_zones(metric, values, sample_durations(records), boundaries)


# ========================================
# Boundary construction
# ========================================

def zones_from_thresholds(metric: Metric, lt1: float, lt2: float) -> Tuple[ZoneBoundary, ...]:
    """
    Five-zone set from two lactate thresholds.

    Power and heart rate bounds are threshold * factor, rounded to whole
    units. Pace thresholds are seconds per km, so factors divide them and
    the zones come out listed fastest (zone 5) first.
    """
    thresholds = {"lt1": float(lt1), "lt2": float(lt2)}

    if Metric(metric) is Metric.PACE:
        zones = []
        for index, (lower, upper) in enumerate(THRESHOLD_FACTORS, start=1):
            slow = thresholds[lower[0]] / lower[1]
            fast = thresholds[upper[0]] / upper[1] if upper else 0.0
            zones.append(ZoneBoundary(zone_index=index, min=fast, max=slow))
        return tuple(reversed(zones))

    zones = []
    for index, (lower, upper) in enumerate(THRESHOLD_FACTORS, start=1):
        low = _round_half_up(thresholds[lower[0]] * lower[1])
        high = _round_half_up(thresholds[upper[0]] * upper[1]) if upper else None
        zones.append(ZoneBoundary(zone_index=index, min=low, max=high))
    return tuple(zones)


def _round_half_up(value: float) -> float:
    return float(int(value + 0.5)) if value >= 0 else -float(int(-value + 0.5))


def parse_zone_boundaries(raw: Any) -> Optional[Tuple[ZoneBoundary, ...]]:
    """
    Parse profile zone data.

    Accepts {"zone1": {"min": .., "max": ..}, ...} mappings (sorted
    ascending by value) or a list of boundary mappings (kept in list
    order). Pace entries may carry minSeconds/maxSeconds and may store the
    slower bound as min; such pairs are swapped. Returns None when the data
    cannot be used, so the caller falls back to defaults.
    """
    if isinstance(raw, Mapping):
        entries = []
        for index in range(1, ZONE_COUNT + 1):
            entry = raw.get(f"zone{index}")
            if not isinstance(entry, Mapping):
                logger.debug("Zone data incomplete", missing=f"zone{index}")
                return None
            entries.append((index, entry))
        boundaries = [_parse_boundary(index, entry) for index, entry in entries]
        if any(b is None for b in boundaries):
            return None
        return tuple(sorted(boundaries, key=lambda b: b.min))

    if isinstance(raw, (list, tuple)):
        if len(raw) != ZONE_COUNT:
            logger.debug("Zone data has wrong zone count", count=len(raw))
            return None
        boundaries = []
        for position, entry in enumerate(raw, start=1):
            if not isinstance(entry, Mapping):
                return None
            index = entry.get("zone_index", entry.get("zoneIndex", position))
            boundary = _parse_boundary(index, entry)
            if boundary is None:
                return None
            boundaries.append(boundary)
        return tuple(boundaries)

    return None


def _parse_boundary(index: Any, entry: Mapping) -> Optional[ZoneBoundary]:
    low = _number(entry.get("minSeconds", entry.get("min")))
    high = _number(entry.get("maxSeconds", entry.get("max")))
    if low is None or not isinstance(index, int) or isinstance(index, bool):
        return None
    if high is not None and low > high:
        low, high = high, low
    return ZoneBoundary(zone_index=index, min=low, max=high)


def _number(value: Any) -> Optional[float]:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return float(value)


def find_boundary_issues(boundaries: Sequence[ZoneBoundary]) -> List[str]:
    """Describe gaps, overlaps and inverted ranges in a boundary set."""
    issues = []

    for boundary in boundaries:
        if boundary.max is not None and boundary.max < boundary.min:
            issues.append(f"zone{boundary.zone_index} is inverted")

    ordered = sorted(boundaries, key=lambda b: b.min)
    for current, following in zip(ordered, ordered[1:]):
        if following.min > current.upper:
            issues.append(f"gap between zone{current.zone_index} and zone{following.zone_index}")
        elif following.min < current.upper:
            issues.append(f"zone{current.zone_index} overlaps zone{following.zone_index}")

    return issues


# ========================================
# Zone profile
# ========================================

def sport_family(sport: str) -> str:
    """Collapse sports that share zone sets."""
    if sport in _PACE_SPORTS:
        return "run"
    if sport == "cycling":
        return "bike"
    return sport or "other"


class ZoneProfile:
    """
    Boundary sets per (metric, sport family).

    Missing combinations fall back to threshold-derived defaults. Boundary
    issues are logged once when a set is registered, never enforced.
    """

    def __init__(self, boundaries: Optional[Dict[Tuple[str, str], Sequence[ZoneBoundary]]] = None):
        self._boundaries: Dict[Tuple[str, str], Tuple[ZoneBoundary, ...]] = {}
        for (metric, family), zone_set in (boundaries or {}).items():
            self.set_boundaries(metric, family, zone_set)

    @classmethod
    def from_raw(cls, raw: Any) -> "ZoneProfile":
        """
        Build a profile from nested profile data.

        Expected shape: {"run": {"heartRate": {...}, "pace": {...}},
        "bike": {"power": {...}}}. Unusable entries are skipped.
        """
        profile = cls()
        if not isinstance(raw, Mapping):
            return profile

        aliases = {
            "power": Metric.POWER,
            "heartRate": Metric.HEART_RATE,
            "heart_rate": Metric.HEART_RATE,
            "pace": Metric.PACE,
        }
        for family, metrics in raw.items():
            if not isinstance(metrics, Mapping):
                continue
            for key, zone_data in metrics.items():
                metric = aliases.get(key)
                parsed = parse_zone_boundaries(zone_data)
                if metric is None or parsed is None:
                    logger.debug("Skipping zone profile entry", family=family, metric=key)
                    continue
                profile.set_boundaries(metric, str(family), parsed)
        return profile

    def set_boundaries(self, metric: Metric, family: str, boundaries: Sequence[ZoneBoundary]) -> None:
        metric = Metric(metric)
        issues = find_boundary_issues(boundaries)
        if issues:
            logger.warning(
                "Zone boundaries have issues, using first-match order",
                metric=metric.value,
                family=family,
                issues=issues,
            )
        self._boundaries[(metric.value, family)] = tuple(boundaries)

    def boundaries_for(self, metric: Metric, sport: str) -> Optional[Tuple[ZoneBoundary, ...]]:
        """Zone set for a metric on a sport, or None if the metric has no zones."""
        metric = Metric(metric)
        if metric not in ZONE_METRICS:
            return None
        configured = self._boundaries.get((metric.value, sport_family(sport)))
        if configured is not None:
            return configured
        return default_boundaries(metric)


def default_boundaries(metric: Metric) -> Tuple[ZoneBoundary, ...]:
    """Built-in zone set from the configured default thresholds."""
    metric = Metric(metric)
    if metric is Metric.POWER:
        return zones_from_thresholds(metric, settings.DEFAULT_LT1_POWER, settings.DEFAULT_LT2_POWER)
    if metric is Metric.HEART_RATE:
        return zones_from_thresholds(metric, settings.DEFAULT_LT1_HR, settings.DEFAULT_LT2_HR)
    if metric is Metric.PACE:
        return zones_from_thresholds(
            metric,
            settings.DEFAULT_LT1_PACE_S_PER_KM,
            settings.DEFAULT_LT2_PACE_S_PER_KM,
        )
    raise ValueError(f"No zones defined for metric: {metric.value}")
