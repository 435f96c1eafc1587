"""
Base Strategy - Per-sport analytics policy.
"""
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Sequence, Tuple

from trainlab.core.config import settings
from trainlab.models.interval import Interval, MainSetSummary
from trainlab.models.record import Metric, NormalizedActivity


class ActivityStrategy(ABC):
    """
    Abstract base class for sport-specific analytics decisions.

    Subclasses declare:
    - whether the sport is pace-based (distance splits, pace pause rule)
    - default chart, zone and grouping metrics
    - the activity summary shown next to the chart
    """

    activity_type: str = "unknown"
    pace_based: bool = False

    default_chart_metrics: Tuple[Metric, ...] = (Metric.HEART_RATE, Metric.SPEED)
    default_zone_metrics: Tuple[Metric, ...] = (Metric.HEART_RATE,)
    group_metric: Metric = Metric.HEART_RATE

    # Lower is better for pace; a rise is a fade
    _LOWER_IS_BETTER = (Metric.PACE,)

    @property
    def split_distance_m(self) -> float:
        return settings.SPLIT_DISTANCE_M

    @property
    def min_trailing_split_m(self) -> float:
        return settings.MIN_TRAILING_SPLIT_M

    @abstractmethod
    def compute_summary(
        self,
        activity: NormalizedActivity,
        intervals: Sequence[Interval],
        main_set: MainSetSummary,
    ) -> Dict[str, Any]:
        """
        Compute the activity summary.

        Args:
            activity: Normalized activity data
            intervals: Segmented intervals
            main_set: Aggregates over the non-pause intervals

        Returns:
            Dict with summary statistics
        """
        pass

    def is_pause(self, avg_speed_mps: Optional[float]) -> bool:
        """
        Whether an interval with this average speed is a pause.

        Unknown speed is never a pause. Pace-based sports also treat
        anything slower than the pause pace as standing still.
        """
        if avg_speed_mps is None:
            return False
        if avg_speed_mps <= settings.PAUSE_SPEED_MPS:
            return True
        if self.pace_based:
            return avg_speed_mps <= 1000.0 / settings.PAUSE_PACE_S_PER_KM
        return False

    def trend_sign(self, metric: Metric) -> int:
        """+1 if higher values are better for the metric, else -1."""
        return -1 if Metric(metric) in self._LOWER_IS_BETTER else 1

    def fade_pct(self, intervals: Sequence[Interval], metric: Metric) -> Optional[float]:
        """
        Fade of the last non-pause interval against the earlier ones.

        Positive always means the last interval was worse, whichever way
        the metric runs.

        Returns:
            Percentage rounded to 0.1, or None with fewer than two values
        """
        metric = Metric(metric)
        values = [
            i.metric_value(metric.value) for i in intervals
            if not i.is_pause and i.metric_value(metric.value) is not None
        ]
        if len(values) < 2:
            return None

        baseline = sum(values[:-1]) / (len(values) - 1)
        if baseline == 0:
            return None

        change = (baseline - values[-1]) / baseline * 100
        return round(change * self.trend_sign(metric), 1)

    # ========================================
    # Shared Helper Methods
    # ========================================

    def _base_summary(
        self,
        activity: NormalizedActivity,
        main_set: MainSetSummary,
    ) -> Dict[str, Any]:
        stats: Dict[str, Any] = {
            "duration_min": round(activity.total_time_seconds / 60, 1),
            "recorded_duration_s": round(activity.total_duration_from_records()),
            "distance_km": round(activity.total_distance_meters / 1000, 2),
            "interval_count": main_set.interval_count,
            "pause_count": main_set.pause_count,
        }

        heart_rates = [v for v in activity.channel(Metric.HEART_RATE) if v is not None]
        if heart_rates:
            stats["avg_hr"] = round(sum(heart_rates) / len(heart_rates))
            stats["max_hr"] = round(max(heart_rates))
        elif main_set.avg_heart_rate is not None:
            stats["avg_hr"] = round(main_set.avg_heart_rate)

        return stats

    def _compute_hr_drift(
        self,
        intervals: Sequence[Interval],
        duration_seconds: float,
    ) -> Optional[float]:
        """
        Compute heart rate drift percentage.

        HR drift = (second_half_avg_hr - first_half_avg_hr) / first_half_avg_hr * 100

        Args:
            intervals: Intervals with HR data
            duration_seconds: Total duration

        Returns:
            HR drift percentage or None if insufficient data
        """
        hr_intervals = [
            i for i in intervals
            if i.avg_heart_rate is not None and not i.is_pause
        ]
        if len(hr_intervals) < 2:
            return None

        mid_point = duration_seconds / 2
        first_half: List[float] = []
        second_half: List[float] = []

        for interval in hr_intervals:
            if interval.start_time < mid_point:
                first_half.append(interval.avg_heart_rate)
            else:
                second_half.append(interval.avg_heart_rate)

        if not first_half or not second_half:
            return None

        first_avg = sum(first_half) / len(first_half)
        second_avg = sum(second_half) / len(second_half)

        if first_avg == 0:
            return None

        return round((second_avg - first_avg) / first_avg * 100, 2)
