"""
Running Strategy - Analytics policy for pace-based sports.

Running, walking and hiking share it:
- distance splits when the source recorded no laps
- pace zones alongside heart rate zones
- pace fade and cardiac drift in the summary
"""
from typing import Any, Dict, Optional, Sequence

from trainlab.models.interval import Interval, MainSetSummary
from trainlab.models.record import Metric, NormalizedActivity
from trainlab.services.analytics.strategies.base import ActivityStrategy


class RunningStrategy(ActivityStrategy):
    """
    Strategy for running activities.

    Pace and heart rate are primary metrics for running analysis.
    """

    activity_type = "running"
    pace_based = True

    default_chart_metrics = (Metric.HEART_RATE, Metric.SPEED, Metric.ALTITUDE)
    default_zone_metrics = (Metric.HEART_RATE, Metric.PACE)
    group_metric = Metric.SPEED

    def compute_summary(
        self,
        activity: NormalizedActivity,
        intervals: Sequence[Interval],
        main_set: MainSetSummary,
    ) -> Dict[str, Any]:
        """
        Compute running summary statistics.

        Includes:
        - duration_min, recorded_duration_s, distance_km
        - avg_hr, max_hr
        - avg_pace (seconds per km)
        - elevation_gain_m
        - hr_drift_pct
        - pace_drop_last_interval_pct
        """
        stats = self._base_summary(activity, main_set)

        # Pace from the main set, else from totals
        if main_set.avg_speed_mps:
            stats["avg_pace"] = round(1000 / main_set.avg_speed_mps)
        elif activity.total_distance_meters > 0 and activity.total_time_seconds > 0:
            stats["avg_pace"] = round(
                activity.total_time_seconds / (activity.total_distance_meters / 1000)
            )

        gain = self._elevation_gain(activity)
        if gain is not None:
            stats["elevation_gain_m"] = gain

        hr_drift = self._compute_hr_drift(intervals, activity.total_time_seconds)
        if hr_drift is not None:
            stats["hr_drift_pct"] = hr_drift

        pace_drop = self.fade_pct(intervals, Metric.PACE)
        if pace_drop is not None:
            stats["pace_drop_last_interval_pct"] = pace_drop

        return stats

    def _elevation_gain(self, activity: NormalizedActivity) -> Optional[int]:
        altitudes = [v for v in activity.channel(Metric.ALTITUDE) if v is not None]
        if len(altitudes) < 2:
            return None
        gain = sum(
            max(0.0, later - earlier)
            for earlier, later in zip(altitudes, altitudes[1:])
        )
        return round(gain)
