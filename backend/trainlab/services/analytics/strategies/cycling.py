"""
Cycling Strategy - Analytics policy for cycling activities.

Cycling-specific choices:
- power is the primary chart, zone and grouping metric
- no synthetic splits; a lap-less ride is one interval
- power/HR ratio and power fade in the summary
"""
from typing import Any, Dict, Sequence

from trainlab.models.interval import Interval, MainSetSummary
from trainlab.models.record import Metric, NormalizedActivity
from trainlab.services.analytics.strategies.base import ActivityStrategy


class CyclingStrategy(ActivityStrategy):
    """
    Strategy for cycling activities.

    Power is the primary metric for cycling analysis.
    """

    activity_type = "cycling"

    default_chart_metrics = (Metric.POWER, Metric.HEART_RATE, Metric.SPEED, Metric.CADENCE)
    default_zone_metrics = (Metric.POWER, Metric.HEART_RATE)
    group_metric = Metric.POWER

    def compute_summary(
        self,
        activity: NormalizedActivity,
        intervals: Sequence[Interval],
        main_set: MainSetSummary,
    ) -> Dict[str, Any]:
        """
        Compute cycling summary statistics.

        Includes:
        - duration_min, recorded_duration_s, distance_km
        - avg_hr, max_hr
        - avg_power, max_power
        - avg_speed_kmh
        - power_hr_ratio
        - hr_drift_pct
        - power_drop_last_interval_pct
        """
        stats = self._base_summary(activity, main_set)

        powers = [v for v in activity.channel(Metric.POWER) if v is not None]
        if powers:
            stats["avg_power"] = round(sum(powers) / len(powers))
            stats["max_power"] = round(max(powers))
        elif main_set.avg_power is not None:
            stats["avg_power"] = round(main_set.avg_power)

        if activity.total_time_seconds > 0:
            stats["avg_speed_kmh"] = round(
                activity.total_distance_meters / activity.total_time_seconds * 3.6, 1
            )

        # Efficiency
        if stats.get("avg_power") and stats.get("avg_hr"):
            stats["power_hr_ratio"] = round(stats["avg_power"] / stats["avg_hr"], 2)

        hr_drift = self._compute_hr_drift(intervals, activity.total_time_seconds)
        if hr_drift is not None:
            stats["hr_drift_pct"] = hr_drift

        power_drop = self.fade_pct(intervals, Metric.POWER)
        if power_drop is not None:
            stats["power_drop_last_interval_pct"] = power_drop

        return stats
