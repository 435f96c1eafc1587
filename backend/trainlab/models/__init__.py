from trainlab.models.record import (
    Metric,
    Record,
    LapData,
    ManualStep,
    NormalizedActivity,
)
from trainlab.models.zone import ZoneBoundary, ZoneAggregate, ZoneSummary
from trainlab.models.interval import Interval, IntervalGroup, MainSetSummary
from trainlab.models.chart import (
    ZoomRange,
    ChartLayout,
    ChartPoint,
    ChartSeries,
    AxisTick,
    TooltipData,
)

__all__ = [
    "Metric",
    "Record",
    "LapData",
    "ManualStep",
    "NormalizedActivity",
    "ZoneBoundary",
    "ZoneAggregate",
    "ZoneSummary",
    "Interval",
    "IntervalGroup",
    "MainSetSummary",
    "ZoomRange",
    "ChartLayout",
    "ChartPoint",
    "ChartSeries",
    "AxisTick",
    "TooltipData",
]
