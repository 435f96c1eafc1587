"""
Analytics Calculator - Main engine for activity chart analytics.

Orchestrates:
- Payload normalization (memoized per records version)
- Strategy selection based on sport
- Segmentation, smoothing, zone aggregation and chart scaling
- Result memoization and delivery to an optional callback
"""
from dataclasses import dataclass, field, replace
from typing import Any, Callable, Dict, Hashable, List, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from trainlab.core.logging import get_logger, track_computation
from trainlab.models.chart import AxisTick, ChartLayout, ChartSeries, TooltipData, ZoomRange
from trainlab.models.interval import Interval, IntervalGroup, MainSetSummary
from trainlab.models.record import RECORD_FIELDS, Metric, NormalizedActivity
from trainlab.models.zone import ZoneSummary
from trainlab.services.analytics.adapter import normalize_payload
from trainlab.services.analytics.cache import AnalyticsCache
from trainlab.services.analytics.formatting import format_distance, format_duration, format_metric
from trainlab.services.analytics.scaler import ChartScaler
from trainlab.services.analytics.segmenter import IntervalSegmenter
from trainlab.services.analytics.smoothing import smooth_channels, smoothing_window
from trainlab.services.analytics.strategies import ActivityStrategy, get_strategy
from trainlab.services.analytics.zones import ZoneProfile, classify, summarize_zones

logger = get_logger(__name__)

ACTIVITY_CACHE_ENTRIES = 4


# ========================================
# Request / Result
# ========================================

class AnalyticsRequest(BaseModel):
    """UI state an analytics result is computed for."""

    model_config = ConfigDict(frozen=True)

    records_version: Union[int, str] = Field(..., description="Identity of the raw payload")
    smoothing_knob: float = Field(default=0.0, ge=0.0, le=1.0, description="Smoothing strength")
    zoom_range: Tuple[float, float] = Field(
        default=(0.0, 1.0), description="Visible fraction of total distance"
    )
    selected_metrics: Tuple[Metric, ...] = Field(
        default=(), description="Chart metrics; empty means the sport's defaults"
    )
    zone_metrics: Optional[Tuple[Metric, ...]] = Field(
        default=None, description="Zone summaries to compute; None means the sport's defaults"
    )
    group_metric: Optional[Metric] = Field(default=None, description="Metric used to group intervals")
    hover_pixel_x: Optional[float] = Field(default=None, description="Hovered pixel column")

    @field_validator("zoom_range")
    @classmethod
    def check_zoom(cls, value: Tuple[float, float]) -> Tuple[float, float]:
        low, high = value
        if not 0.0 <= low < high <= 1.0:
            raise ValueError("zoom_range must satisfy 0 <= min < max <= 1")
        return value

    @field_validator("selected_metrics", "zone_metrics")
    @classmethod
    def dedupe_metrics(cls, value: Optional[Tuple[Metric, ...]]) -> Optional[Tuple[Metric, ...]]:
        if value is None:
            return None
        return tuple(dict.fromkeys(value))

    @property
    def smoothing_window(self) -> int:
        return smoothing_window(self.smoothing_knob)

    def cache_key(self) -> Tuple[Hashable, ...]:
        """Memoization key; knobs giving the same window share it and hover is left out."""
        return (
            self.records_version,
            self.smoothing_window,
            self.zoom_range,
            tuple(m.value for m in self.selected_metrics),
            None if self.zone_metrics is None else tuple(m.value for m in self.zone_metrics),
            None if self.group_metric is None else self.group_metric.value,
        )


@dataclass(frozen=True)
class AnalyticsResult:
    """Everything a renderer needs for one activity view."""
    records_version: Union[int, str]
    sport: str
    source: str
    no_chart_data: bool
    smoothing_window: int = 1
    zoom: ZoomRange = field(default_factory=ZoomRange)
    series: Tuple[ChartSeries, ...] = ()
    zones: Tuple[ZoneSummary, ...] = ()
    intervals: Tuple[Interval, ...] = ()
    groups: Tuple[IntervalGroup, ...] = ()
    main_set: MainSetSummary = field(default_factory=MainSetSummary)
    summary: Dict[str, Any] = field(default_factory=dict)
    x_ticks: Tuple[AxisTick, ...] = ()
    y_ticks: Tuple[AxisTick, ...] = ()
    tooltip: Optional[TooltipData] = None
    # Smoothed channel values, kept for hover lookups
    channels: Dict[Metric, Tuple[Optional[float], ...]] = field(default_factory=dict, repr=False)

    def series_for(self, metric: Metric) -> Optional[ChartSeries]:
        for series in self.series:
            if series.metric == Metric(metric).value:
                return series
        return None

    def zone_summary(self, metric: Metric) -> Optional[ZoneSummary]:
        for summary in self.zones:
            if summary.metric == Metric(metric).value:
                return summary
        return None

    def group_id_of(self, interval_index: int) -> int:
        for group in self.groups:
            if interval_index in group.interval_indices:
                return group.group_id
        return -1

    def to_dict(self) -> Dict[str, Any]:
        return {
            "recordsVersion": self.records_version,
            "sport": self.sport,
            "source": self.source,
            "noChartData": self.no_chart_data,
            "smoothingWindow": self.smoothing_window,
            "zoom": list(self.zoom.as_tuple()),
            "series": [s.to_dict() for s in self.series],
            "zones": [z.to_dict() for z in self.zones],
            "intervals": [
                {**i.to_dict(), "groupId": self.group_id_of(i.index)} for i in self.intervals
            ],
            "summary": dict(self.summary),
        }


# ========================================
# Calculator
# ========================================

class AnalyticsCalculator:
    """
    Main analytics engine.

    Usage:
        calculator = AnalyticsCalculator(on_result=render)
        result = calculator.compute(
            AnalyticsRequest(records_version=3, smoothing_knob=0.5),
            {"kind": "device", "records": [...], "laps": [...]},
        )
    """

    def __init__(
        self,
        zone_profile: Optional[ZoneProfile] = None,
        layout: Optional[ChartLayout] = None,
        on_result: Optional[Callable[[AnalyticsResult], None]] = None,
        cache: Optional[AnalyticsCache] = None,
    ):
        self.zone_profile = zone_profile or ZoneProfile()
        self.layout = layout or ChartLayout()
        self.on_result = on_result
        self.cache: AnalyticsCache[AnalyticsResult] = cache if cache is not None else AnalyticsCache()
        self._activities: AnalyticsCache[NormalizedActivity] = AnalyticsCache(
            max_entries=ACTIVITY_CACHE_ENTRIES
        )

    def compute(self, request: AnalyticsRequest, payload: Any) -> AnalyticsResult:
        """
        Compute (or reuse) the analytics for a request.

        Args:
            request: Validated UI state
            payload: Raw payload the records version refers to

        Returns:
            AnalyticsResult, with a tooltip when the request carries a hover position
        """
        key = request.cache_key()
        result = self.cache.get(key)

        if result is None:
            activity = self.normalize(request.records_version, payload)
            result = self.cache.publish(key, self._compute(request, activity))
        else:
            logger.debug("Using cached analytics result", records_version=request.records_version)

        if request.hover_pixel_x is not None:
            activity = self.normalize(request.records_version, payload)
            result = replace(result, tooltip=self._tooltip(activity, result, request.hover_pixel_x))

        if self.on_result is not None:
            self.on_result(result)

        return result

    def hover(self, request: AnalyticsRequest, payload: Any, pixel_x: float) -> Optional[TooltipData]:
        """Tooltip for a hovered pixel without disturbing the cached result."""
        return self.compute(request.model_copy(update={"hover_pixel_x": pixel_x}), payload).tooltip

    def apply_drag(
        self,
        request: AnalyticsRequest,
        payload: Any,
        start_px: float,
        end_px: float,
    ) -> AnalyticsRequest:
        """
        Request for the view after a drag selection is released.

        Args:
            request: Request of the view the drag happened on
            payload: Raw payload the records version refers to
            start_px: Pixel x where the drag started
            end_px: Pixel x where it was released

        Returns:
            The request with the narrowed zoom window, or the same request
            when the drag was too short to zoom
        """
        activity = self.normalize(request.records_version, payload)
        scaler = ChartScaler(activity.max_distance(), self.layout, ZoomRange(*request.zoom_range))
        if not scaler.apply_drag_selection(start_px, end_px):
            return request
        return request.model_copy(update={"zoom_range": scaler.zoom.as_tuple()})

    def normalize(self, records_version: Union[int, str], payload: Any) -> NormalizedActivity:
        """Normalized activity for a payload, memoized by records version."""
        activity = self._activities.get(records_version)
        if activity is None:
            with track_computation(logger, "normalize", records_version=records_version) as stage:
                activity = normalize_payload(payload)
                stage.note(records=len(activity.records), sport=activity.sport)
            self._activities.publish(records_version, activity)
        return activity

    # ========================================
    # Pipeline
    # ========================================

    def _compute(self, request: AnalyticsRequest, activity: NormalizedActivity) -> AnalyticsResult:
        strategy = get_strategy(activity.sport)
        segmenter = IntervalSegmenter(strategy)

        logger.info(
            "Computing activity analytics",
            records_version=request.records_version,
            sport=activity.sport,
            source=activity.source,
            window=request.smoothing_window,
        )

        with track_computation(logger, "segmentation", sport=activity.sport) as stage:
            intervals = segmenter.segment(activity)
            groups = segmenter.group_intervals(intervals, request.group_metric or strategy.group_metric)
            main_set = segmenter.main_set_summary(intervals)
            stage.note(intervals=len(intervals), groups=len(groups))

        base = AnalyticsResult(
            records_version=request.records_version,
            sport=activity.sport,
            source=activity.source,
            no_chart_data=activity.no_chart_data,
            smoothing_window=request.smoothing_window,
            zoom=ZoomRange(*request.zoom_range),
            intervals=tuple(intervals),
            groups=tuple(groups),
            main_set=main_set,
            summary=strategy.compute_summary(activity, intervals, main_set),
        )

        if activity.no_chart_data:
            logger.info("No time series, returning intervals only", source=activity.source)
            return base

        metrics = self._chart_metrics(request, strategy, activity)
        records = activity.records

        with track_computation(logger, "smoothing", window=request.smoothing_window) as stage:
            channels = smooth_channels(records, metrics, request.smoothing_window)
            stage.note(channels=len(channels))

        with track_computation(logger, "scaling", zoom=request.zoom_range) as stage:
            scaler = ChartScaler(activity.max_distance(), self.layout, base.zoom)
            series = tuple(scaler.build_series(m, records, channels[m]) for m in metrics)
            stage.note(points=sum(len(s.points) for s in series))

        with track_computation(logger, "zones") as stage:
            zones = self._zone_summaries(request, strategy, activity)
            stage.note(zone_metrics=[z.metric for z in zones])

        return replace(
            base,
            series=series,
            zones=zones,
            x_ticks=tuple(scaler.x_ticks()),
            y_ticks=tuple(scaler.y_ticks(metrics)),
            channels=channels,
        )

    def _chart_metrics(
        self,
        request: AnalyticsRequest,
        strategy: ActivityStrategy,
        activity: NormalizedActivity,
    ) -> List[Metric]:
        requested = request.selected_metrics or strategy.default_chart_metrics
        available = activity.available_channels()

        metrics = []
        for metric in requested:
            # Pace is drawn from the speed channel
            source_metric = Metric.SPEED if metric is Metric.PACE else metric
            if source_metric in RECORD_FIELDS and source_metric in available:
                metrics.append(metric)
            else:
                logger.debug(
                    "Skipping metric with no recorded samples",
                    metric=metric.value,
                    channel=source_metric.value,
                )
        return metrics

    def _zone_summaries(
        self,
        request: AnalyticsRequest,
        strategy: ActivityStrategy,
        activity: NormalizedActivity,
    ) -> Tuple[ZoneSummary, ...]:
        requested = request.zone_metrics if request.zone_metrics is not None else strategy.default_zone_metrics
        available = activity.available_channels()

        summaries = []
        for metric in requested:
            source_metric = Metric.SPEED if metric is Metric.PACE else metric
            if source_metric not in available:
                continue
            boundaries = self.zone_profile.boundaries_for(metric, activity.sport)
            if boundaries is None:
                logger.debug("No zones for metric", metric=metric.value)
                continue
            summaries.append(summarize_zones(activity.records, metric, boundaries))
        return tuple(summaries)

    def _tooltip(
        self,
        activity: NormalizedActivity,
        result: AnalyticsResult,
        pixel_x: float,
    ) -> Optional[TooltipData]:
        if result.no_chart_data:
            return None

        scaler = ChartScaler(activity.max_distance(), self.layout, result.zoom)
        index = scaler.nearest_sample(activity.records, pixel_x)
        if index is None:
            return None

        record = activity.records[index]
        values = {m.value: channel[index] for m, channel in result.channels.items()}
        labels = {
            m.value: format_metric(m, channel[index], activity.sport)
            for m, channel in result.channels.items()
        }
        labels["distance"] = format_distance(record.distance_meters)
        labels["time"] = format_duration(record.elapsed_seconds)

        zones = {
            summary.metric: classify(record.value(Metric(summary.metric)), summary.boundaries)
            for summary in result.zones
        }

        x = scaler.x_scale(record.distance_meters)
        return TooltipData(
            sample_index=index,
            x=x if x is not None else pixel_x,
            distance_meters=record.distance_meters,
            elapsed_seconds=record.elapsed_seconds,
            values=values,
            zones=zones,
            labels=labels,
        )
