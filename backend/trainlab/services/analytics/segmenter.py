"""
Interval Segmenter - Derive the interval list of an activity.

Segmentation cases:
- source laps: lap boundaries, missing aggregates filled from records
- pace-based sport without laps: fixed-distance splits
- other sport without laps: the whole activity
- manual log: one interval per logged step
"""
import math
from bisect import bisect_left
from typing import Dict, List, Optional, Sequence

from trainlab.core.logging import get_logger
from trainlab.models.interval import Interval, IntervalGroup, MainSetSummary
from trainlab.models.record import LapData, Metric, NormalizedActivity, Record
from trainlab.services.analytics.strategies.base import ActivityStrategy

logger = get_logger(__name__)

# Grouping tolerance as a share of the value range
GROUP_TOLERANCE_RATIO = 0.05
GROUP_TOLERANCE_FLAT = 1.0
UNGROUPED = -1


def _mean(values: Sequence[Optional[float]]) -> Optional[float]:
    present = [v for v in values if v is not None]
    if not present:
        return None
    return sum(present) / len(present)


def _distance_at(records: Sequence[Record], elapsed: float) -> float:
    """Cumulative distance at an elapsed time, interpolated between samples."""
    if not records:
        return 0.0
    times = [r.elapsed_seconds for r in records]
    pos = bisect_left(times, elapsed)
    if pos == 0:
        return records[0].distance_meters
    if pos == len(records):
        return records[-1].distance_meters

    before, after = records[pos - 1], records[pos]
    span = after.elapsed_seconds - before.elapsed_seconds
    if span <= 0:
        return after.distance_meters
    ratio = (elapsed - before.elapsed_seconds) / span
    return before.distance_meters + ratio * (after.distance_meters - before.distance_meters)


class IntervalSegmenter:
    """
    Segments a normalized activity according to a sport strategy.

    Usage:
        segmenter = IntervalSegmenter(RunningStrategy())
        intervals = segmenter.segment(activity)
        summary = segmenter.main_set_summary(intervals)
    """

    def __init__(self, strategy: ActivityStrategy):
        self.strategy = strategy

    def segment(self, activity: NormalizedActivity) -> List[Interval]:
        """
        Build the interval list.

        Args:
            activity: Normalized activity data

        Returns:
            Contiguous, non-overlapping intervals in timeline order
        """
        if not activity.has_time_series:
            intervals = self._from_steps(activity)
            case = "steps"
        elif not activity.records or activity.records[-1].elapsed_seconds <= 0:
            intervals = []
            case = "empty"
        elif activity.laps:
            intervals = self._from_laps(activity)
            case = "laps"
        elif self.strategy.pace_based:
            intervals = self._from_splits(activity)
            case = "splits"
        else:
            intervals = self._whole_activity(activity)
            case = "activity"

        logger.debug(
            "Segmented activity",
            case=case,
            sport=activity.sport,
            intervals=len(intervals),
            pauses=sum(1 for i in intervals if i.is_pause),
        )
        return intervals

    # ========================================
    # Segmentation cases
    # ========================================

    def _from_laps(self, activity: NormalizedActivity) -> List[Interval]:
        records = activity.records
        activity_end = records[-1].elapsed_seconds
        laps = activity.laps
        intervals = []
        previous_end = 0.0

        for position, lap in enumerate(laps):
            start = lap.start_time if lap.start_time is not None else previous_end
            start = max(0.0, start)

            if lap.duration_seconds is not None and lap.duration_seconds > 0:
                end = start + lap.duration_seconds
            else:
                next_start = laps[position + 1].start_time if position + 1 < len(laps) else None
                end = next_start if next_start is not None else activity_end
            end = max(start, end)

            is_last = position == len(laps) - 1
            intervals.append(self._lap_interval(len(intervals), lap, start, end, records, is_last))
            previous_end = end

        return intervals

    def _lap_interval(
        self,
        index: int,
        lap: LapData,
        start: float,
        end: float,
        records: Sequence[Record],
        closed: bool,
    ) -> Interval:
        inside = [
            r for r in records
            if start <= r.elapsed_seconds < end or (closed and r.elapsed_seconds == end)
        ]
        duration = end - start

        distance = lap.distance_meters
        if distance is None:
            distance = _distance_at(records, end) - _distance_at(records, start)

        speed = lap.avg_speed_mps
        if speed is None and duration > 0:
            speed = distance / duration

        return Interval(
            index=index,
            start_time=start,
            end_time=end,
            distance_meters=distance,
            avg_power=lap.avg_power if lap.avg_power is not None else _mean([r.power_watts for r in inside]),
            avg_heart_rate=(
                lap.avg_heart_rate if lap.avg_heart_rate is not None
                else _mean([r.heart_rate_bpm for r in inside])
            ),
            avg_speed_mps=speed,
            avg_cadence=lap.avg_cadence if lap.avg_cadence is not None else _mean([r.cadence_rpm for r in inside]),
            is_pause=self.strategy.is_pause(speed),
            source="lap",
        )

    def _from_splits(self, activity: NormalizedActivity) -> List[Interval]:
        records = activity.records
        if records[-1].distance_meters <= 0:
            return []

        split = self.strategy.split_distance_m
        intervals = []
        start_idx = 0
        next_mark = split

        for i, record in enumerate(records):
            if i == start_idx or record.distance_meters < next_mark:
                continue
            intervals.append(self._record_interval(len(intervals), records, start_idx, i, "split"))
            start_idx = i
            # A single sample may jump past several marks
            next_mark = (math.floor(record.distance_meters / split) + 1) * split

        last = len(records) - 1
        remaining = records[last].distance_meters - records[start_idx].distance_meters

        if not intervals:
            # Shorter than one split: the whole activity is the only interval
            intervals.append(self._record_interval(0, records, 0, last, "split", closed=True))
        elif last > start_idx and remaining >= self.strategy.min_trailing_split_m:
            intervals.append(self._record_interval(len(intervals), records, start_idx, last, "split", closed=True))
        elif remaining > 0:
            logger.debug("Dropped short trailing split", distance_m=round(remaining, 1))

        return intervals

    def _whole_activity(self, activity: NormalizedActivity) -> List[Interval]:
        records = activity.records
        return [self._record_interval(0, records, 0, len(records) - 1, "activity", closed=True)]

    def _record_interval(
        self,
        index: int,
        records: Sequence[Record],
        first: int,
        last: int,
        source: str,
        closed: bool = False,
    ) -> Interval:
        """Interval between two record indices; the end record is included only when closed."""
        inside = records[first:last + 1] if closed else records[first:last]
        start = records[first].elapsed_seconds
        end = records[last].elapsed_seconds
        distance = records[last].distance_meters - records[first].distance_meters
        duration = end - start

        if distance > 0 and duration > 0:
            speed = distance / duration
        else:
            speed = _mean([r.speed_mps for r in inside]) if distance > 0 else None

        return Interval(
            index=index,
            start_time=start,
            end_time=end,
            distance_meters=distance,
            avg_power=_mean([r.power_watts for r in inside]),
            avg_heart_rate=_mean([r.heart_rate_bpm for r in inside]),
            avg_speed_mps=speed,
            avg_cadence=_mean([r.cadence_rpm for r in inside]),
            is_pause=self.strategy.is_pause(speed),
            source=source,
        )

    def _from_steps(self, activity: NormalizedActivity) -> List[Interval]:
        intervals = []
        cursor = 0.0

        for step in activity.steps:
            duration = step.duration_seconds or 0.0
            distance = step.distance_meters or 0.0
            speed = distance / duration if distance > 0 and duration > 0 else None

            intervals.append(Interval(
                index=len(intervals),
                start_time=cursor,
                end_time=cursor + duration,
                distance_meters=distance,
                avg_power=step.avg_power,
                avg_heart_rate=step.avg_heart_rate,
                avg_speed_mps=speed,
                is_pause=self.strategy.is_pause(speed),
                source="step",
            ))
            cursor += duration

        return intervals

    # ========================================
    # Display helpers
    # ========================================

    def group_intervals(self, intervals: Sequence[Interval], metric: Metric) -> List[IntervalGroup]:
        """
        Group intervals with similar values for shared colouring.

        Greedy and order dependent: each interval joins the first group
        whose founding member is within tolerance. Pauses and intervals
        without a positive value end up in the ungrouped (-1) group.
        """
        metric = Metric(metric)
        values: Dict[int, float] = {}
        for interval in intervals:
            value = interval.metric_value(metric.value)
            if not interval.is_pause and value is not None and value > 0:
                values[interval.index] = value

        if values:
            spread = max(values.values()) - min(values.values())
            tolerance = spread * GROUP_TOLERANCE_RATIO if spread > 0 else GROUP_TOLERANCE_FLAT
        else:
            tolerance = GROUP_TOLERANCE_FLAT

        members: List[List[int]] = []
        ungrouped: List[int] = []

        for interval in intervals:
            value = values.get(interval.index)
            if value is None:
                ungrouped.append(interval.index)
                continue
            for group in members:
                if abs(values[group[0]] - value) <= tolerance:
                    group.append(interval.index)
                    break
            else:
                members.append([interval.index])

        groups = [
            IntervalGroup(
                group_id=group_id,
                interval_indices=tuple(group),
                reference_value=values[group[0]],
                avg_value=sum(values[i] for i in group) / len(group),
            )
            for group_id, group in enumerate(members)
        ]
        if ungrouped:
            groups.append(IntervalGroup(group_id=UNGROUPED, interval_indices=tuple(ungrouped)))

        return groups

    def main_set_summary(self, intervals: Sequence[Interval]) -> MainSetSummary:
        """Duration-weighted aggregates over the non-pause intervals."""
        work = [i for i in intervals if not i.is_pause]

        def weighted(attr: str) -> Optional[float]:
            pairs = [(getattr(i, attr), i.duration) for i in work if getattr(i, attr) is not None]
            if not pairs:
                return None
            weight = sum(duration for _, duration in pairs)
            if weight <= 0:
                return sum(value for value, _ in pairs) / len(pairs)
            return sum(value * duration for value, duration in pairs) / weight

        return MainSetSummary(
            interval_count=len(work),
            pause_count=len(intervals) - len(work),
            total_time_seconds=sum(i.duration for i in work),
            distance_meters=sum(i.distance_meters for i in work),
            avg_power=weighted("avg_power"),
            avg_heart_rate=weighted("avg_heart_rate"),
            avg_speed_mps=weighted("avg_speed_mps"),
        )

    def fade_pct(self, intervals: Sequence[Interval], metric: Metric) -> Optional[float]:
        """Last-interval fade for a metric, positive meaning worse."""
        return self.strategy.fade_pct(intervals, metric)
