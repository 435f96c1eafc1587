"""
Metric Scaler / Coordinate Mapper.

Maps distance onto the chart's x axis within a zoom window and each
metric onto the y axis against its own range, so overlaid series share
the chart height as a share of their own maximum.
"""
from bisect import bisect_left, bisect_right
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from trainlab.core.config import settings
from trainlab.core.logging import get_logger
from trainlab.models.chart import AxisTick, ChartLayout, ChartPoint, ChartSeries, ZoomRange
from trainlab.models.record import Metric, Record
from trainlab.services.analytics.formatting import format_axis_distance

logger = get_logger(__name__)

# A drag narrower than this share of the plot width is a click
DRAG_MIN_RATIO = 0.05
HEART_RATE_FLOOR_RATIO = 0.8
X_TICK_COUNT = 11
Y_TICK_COUNT = 6

METRIC_UNITS = {
    Metric.POWER: "W",
    Metric.HEART_RATE: "bpm",
    Metric.SPEED: "m/s",
    Metric.CADENCE: "rpm",
    Metric.ALTITUDE: "m",
    Metric.PACE: "s/km",
}


def metric_bounds(metric: Metric, values: Iterable[Optional[float]]) -> Tuple[float, float]:
    """
    (lo, max) range a metric is drawn against.

    Power, speed and cadence start at zero, heart rate at 80 % of its
    maximum, altitude spans its own min..max.
    """
    present = [v for v in values if v is not None]
    if not present:
        return (0.0, 0.0)

    top = max(present)
    metric = Metric(metric)
    if metric is Metric.HEART_RATE:
        return (top * HEART_RATE_FLOOR_RATIO, top)
    if metric is Metric.ALTITUDE:
        return (min(present), top)
    return (0.0, top)


class ChartScaler:
    """
    Converts activity values into chart pixel coordinates.

    Holds the zoom window over the total distance and the per-metric
    ranges fitted from the series it has built.
    """

    def __init__(
        self,
        total_distance: float,
        layout: Optional[ChartLayout] = None,
        zoom: Optional[ZoomRange] = None,
    ):
        self.total_distance = max(0.0, total_distance or 0.0)
        self.layout = layout or ChartLayout()
        self.zoom = zoom or ZoomRange()
        self._bounds: Dict[Metric, Tuple[float, float]] = {}

    # ========================================
    # X axis
    # ========================================

    def visible_distance(self) -> Tuple[float, float]:
        return (self.zoom.min * self.total_distance, self.zoom.max * self.total_distance)

    def x_scale(self, distance: float) -> Optional[float]:
        """
        Pixel x of a distance, or None if it is outside the zoom window.
        """
        if self.total_distance <= 0 or self.zoom.span <= 0:
            return None

        lo, hi = self.visible_distance()
        if distance < lo or distance > hi:
            return None

        ratio = (distance - lo) / (self.zoom.span * self.total_distance)
        return self.layout.plot_left + ratio * self.layout.plot_width

    def distance_at(self, pixel_x: float) -> float:
        """Distance under a pixel column, clamped to the plot area."""
        ratio = self._pixel_ratio(pixel_x)
        return (self.zoom.min + ratio * self.zoom.span) * self.total_distance

    def _pixel_ratio(self, pixel_x: float) -> float:
        layout = self.layout
        if layout.plot_width <= 0:
            return 0.0
        clamped = min(max(pixel_x, layout.plot_left), layout.plot_right)
        return (clamped - layout.plot_left) / layout.plot_width

    # ========================================
    # Y axis
    # ========================================

    def fit(self, metric: Metric, values: Iterable[Optional[float]]) -> Tuple[float, float]:
        """Fit and remember the y range of a metric."""
        metric = Metric(metric)
        bounds = metric_bounds(metric, values)
        self._bounds[metric] = bounds
        return bounds

    def y_scale(self, metric: Metric, value: float) -> float:
        """Pixel y of a value on a fitted metric's axis."""
        lo, hi = self._bounds.get(Metric(metric), (0.0, 0.0))
        return self.scale_value(value, lo, hi)

    def scale_value(self, value: float, lo: float, hi: float) -> float:
        """
        Map [lo, hi] onto [plot bottom, data top].

        Values outside the range are clamped; an empty range puts every
        value on the bottom line.
        """
        bottom = self.layout.plot_bottom
        span = hi - lo
        if span <= 0:
            return bottom

        clamped = min(max(value, lo), hi)
        return bottom - (clamped - lo) / span * (bottom - self.layout.data_top)

    # ========================================
    # Zoom
    # ========================================

    def apply_drag_selection(self, x0: float, x1: float) -> bool:
        """
        Zoom into a dragged pixel range.

        Args:
            x0: Pixel where the drag started
            x1: Pixel where the drag was released

        Returns:
            True if the zoom window changed
        """
        layout = self.layout
        if abs(x1 - x0) <= layout.plot_width * DRAG_MIN_RATIO:
            logger.debug("Ignoring short drag", width_px=abs(x1 - x0))
            return False

        left = self._pixel_ratio(min(x0, x1))
        right = self._pixel_ratio(max(x0, x1))
        if right <= left:
            return False

        span = self.zoom.span
        new_min = min(1.0, max(0.0, self.zoom.min + left * span))
        new_max = min(1.0, max(0.0, self.zoom.min + right * span))
        if new_max <= new_min:
            return False

        self.zoom = ZoomRange(new_min, new_max)
        return True

    def reset_zoom(self) -> None:
        self.zoom = ZoomRange()

    # ========================================
    # Series and axes
    # ========================================

    def build_series(
        self,
        metric: Metric,
        records: Sequence[Record],
        values: Sequence[Optional[float]],
    ) -> ChartSeries:
        """
        Chart points of one metric.

        The y range is fitted on the whole activity so zooming does not
        rescale the series. Samples without a value or outside the zoom
        window produce no point.
        """
        metric = Metric(metric)
        lo, hi = self.fit(metric, values)

        points = []
        for record, value in zip(records, values):
            if value is None:
                continue
            x = self.x_scale(record.distance_meters)
            if x is None:
                continue
            points.append(ChartPoint(x=x, y=self.scale_value(value, lo, hi)))

        return ChartSeries(
            metric=metric.value,
            unit=METRIC_UNITS[metric],
            points=tuple(points),
            lo_bound=lo,
            max_value=hi,
        )

    def x_ticks(self) -> List[AxisTick]:
        """Evenly spaced distance grid lines over the zoom window."""
        layout = self.layout
        lo, hi = self.visible_distance()
        ticks = []
        for i in range(X_TICK_COUNT):
            ratio = i / (X_TICK_COUNT - 1)
            distance = lo + ratio * (hi - lo)
            ticks.append(AxisTick(
                position=layout.plot_left + ratio * layout.plot_width,
                label=format_axis_distance(distance),
                values={"distance": distance},
            ))
        return ticks

    def y_ticks(self, metrics: Iterable[Metric]) -> List[AxisTick]:
        """Horizontal levels with the value of each fitted metric at that level."""
        layout = self.layout
        fitted = [Metric(m) for m in metrics if Metric(m) in self._bounds]
        ticks = []
        for j in range(Y_TICK_COUNT):
            ratio = j / (Y_TICK_COUNT - 1)
            values = {}
            for metric in fitted:
                lo, hi = self._bounds[metric]
                values[metric.value] = lo + ratio * (hi - lo)
            ticks.append(AxisTick(
                position=layout.plot_bottom - ratio * (layout.plot_bottom - layout.data_top),
                label=f"{round(ratio * 100)}%",
                values=values,
            ))
        return ticks

    # ========================================
    # Hover
    # ========================================

    def nearest_sample(
        self,
        records: Sequence[Record],
        pixel_x: float,
        tolerance_px: Optional[float] = None,
    ) -> Optional[int]:
        """
        Index of the record nearest to a hovered pixel column.

        Hovering further than the tolerance outside the plot finds
        nothing. Visible samples win; if the zoom window holds none, the
        nearest sample by distance is used.
        """
        if not records or self.total_distance <= 0:
            return None

        tolerance = settings.HOVER_TOLERANCE_PX if tolerance_px is None else tolerance_px
        layout = self.layout
        if pixel_x < layout.plot_left - tolerance or pixel_x > layout.plot_right + tolerance:
            return None

        distances = [r.distance_meters for r in records]
        target = self.distance_at(pixel_x)

        lo_d, hi_d = self.visible_distance()
        first = bisect_left(distances, lo_d)
        last = bisect_right(distances, hi_d)
        if first >= last:
            first, last = 0, len(distances)

        position = bisect_left(distances, target, first, last)
        candidates = [i for i in (position - 1, position) if first <= i < last]
        return min(candidates, key=lambda i: abs(distances[i] - target))
