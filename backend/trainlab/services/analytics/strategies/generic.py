"""
Generic Strategy - Fallback policy for sports without a dedicated one.
"""
from typing import Any, Dict, Sequence

from trainlab.models.interval import Interval, MainSetSummary
from trainlab.models.record import Metric, NormalizedActivity
from trainlab.services.analytics.strategies.base import ActivityStrategy


class GenericStrategy(ActivityStrategy):
    """Heart-rate driven analysis for swimming, manual logs and unknown sports."""

    activity_type = "other"

    default_chart_metrics = (Metric.HEART_RATE, Metric.SPEED)
    default_zone_metrics = (Metric.HEART_RATE,)
    group_metric = Metric.HEART_RATE

    def compute_summary(
        self,
        activity: NormalizedActivity,
        intervals: Sequence[Interval],
        main_set: MainSetSummary,
    ) -> Dict[str, Any]:
        stats = self._base_summary(activity, main_set)

        if main_set.avg_power is not None:
            stats["avg_power"] = round(main_set.avg_power)

        # Manual logs keep their subjective markers
        rpes = [s.rpe for s in activity.steps if s.rpe is not None]
        if rpes:
            stats["rpe_reported"] = round(sum(rpes) / len(rpes), 1)
        lactates = [s.lactate for s in activity.steps if s.lactate is not None]
        if lactates:
            stats["max_lactate"] = max(lactates)

        hr_drift = self._compute_hr_drift(intervals, activity.total_time_seconds)
        if hr_drift is not None:
            stats["hr_drift_pct"] = hr_drift

        return stats
