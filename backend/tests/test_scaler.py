"""
Tests for the chart coordinate mapper.

Default layout: 1200x400 canvas, plot x from 80 to 1160 (width 1080),
plot y from 40 to 350 with the data top at 71.
"""
import pytest

from trainlab.models.chart import ChartLayout, ZoomRange
from trainlab.models.record import Metric, Record
from trainlab.services.analytics.scaler import ChartScaler, metric_bounds

LAYOUT = ChartLayout()


def records_every(step_m: float, count: int):
    return [
        Record(timestamp=i, elapsed_seconds=i, distance_meters=i * step_m, speed_mps=step_m)
        for i in range(count)
    ]


class TestLayout:
    """Derived plot geometry"""

    def test_default_geometry(self):
        assert LAYOUT.plot_left == 80
        assert LAYOUT.plot_right == 1160
        assert LAYOUT.plot_width == 1080
        assert LAYOUT.plot_bottom == 350
        assert LAYOUT.data_top == pytest.approx(71)


class TestXScale:
    """Distance to pixel x"""

    def test_endpoints_at_full_zoom(self):
        scaler = ChartScaler(10000)

        assert scaler.x_scale(0) == LAYOUT.plot_left
        assert scaler.x_scale(10000) == LAYOUT.plot_left + LAYOUT.plot_width
        assert scaler.x_scale(5000) == pytest.approx(620)

    def test_outside_zoom_is_none(self):
        scaler = ChartScaler(10000, zoom=ZoomRange(0.25, 0.5))

        assert scaler.x_scale(2499) is None
        assert scaler.x_scale(5001) is None
        assert scaler.x_scale(2500) == LAYOUT.plot_left
        assert scaler.x_scale(5000) == pytest.approx(LAYOUT.plot_right)

    def test_zero_distance_is_none(self):
        assert ChartScaler(0).x_scale(0) is None


class TestYScale:
    """Metric value to pixel y"""

    def test_bounds_per_metric(self):
        assert metric_bounds(Metric.POWER, [100, 300, None]) == (0.0, 300)
        assert metric_bounds(Metric.HEART_RATE, [120, 180]) == (pytest.approx(144), 180)
        assert metric_bounds(Metric.ALTITUDE, [50, 80, 65]) == (50, 80)
        assert metric_bounds(Metric.SPEED, [None]) == (0.0, 0.0)

    def test_max_at_data_top_and_lo_at_bottom(self):
        scaler = ChartScaler(1000)
        scaler.fit(Metric.POWER, [0, 150, 300])

        assert scaler.y_scale(Metric.POWER, 300) == pytest.approx(LAYOUT.data_top)
        assert scaler.y_scale(Metric.POWER, 0) == LAYOUT.plot_bottom
        assert scaler.y_scale(Metric.POWER, 150) == pytest.approx((LAYOUT.plot_bottom + LAYOUT.data_top) / 2)

    def test_values_clamped(self):
        scaler = ChartScaler(1000)
        scaler.fit(Metric.HEART_RATE, [150, 200])

        # Below the 80 % floor sits on the bottom line
        assert scaler.y_scale(Metric.HEART_RATE, 100) == LAYOUT.plot_bottom
        assert scaler.y_scale(Metric.HEART_RATE, 250) == pytest.approx(LAYOUT.data_top)

    def test_zero_span_maps_to_bottom(self):
        scaler = ChartScaler(1000)
        scaler.fit(Metric.ALTITUDE, [120, 120])
        assert scaler.y_scale(Metric.ALTITUDE, 120) == LAYOUT.plot_bottom

    def test_each_metric_uses_its_own_max(self):
        scaler = ChartScaler(1000)
        scaler.fit(Metric.POWER, [0, 400])
        scaler.fit(Metric.CADENCE, [0, 100])

        assert scaler.y_scale(Metric.POWER, 400) == scaler.y_scale(Metric.CADENCE, 100)


class TestDragZoom:
    """Pixel drag to zoom window"""

    def test_small_drag_ignored(self):
        scaler = ChartScaler(10000)
        # 5 % of 1080 px is 54 px
        assert not scaler.apply_drag_selection(300, 350)
        assert not scaler.apply_drag_selection(300, 354)
        assert not scaler.zoom.is_zoomed
        assert scaler.zoom == ZoomRange()

    def test_drag_sets_zoom(self):
        scaler = ChartScaler(10000)
        assert scaler.apply_drag_selection(80 + 540, 80 + 270)
        assert scaler.zoom.is_zoomed

        assert scaler.zoom.min == pytest.approx(0.25)
        assert scaler.zoom.max == pytest.approx(0.5)

    def test_nested_zoom_is_relative(self):
        scaler = ChartScaler(10000, zoom=ZoomRange(0.5, 1.0))
        assert scaler.apply_drag_selection(80, 80 + 540)

        assert scaler.zoom.min == pytest.approx(0.5)
        assert scaler.zoom.max == pytest.approx(0.75)

    def test_drag_clamped_to_plot(self):
        scaler = ChartScaler(10000)
        assert scaler.apply_drag_selection(0, 620)

        assert scaler.zoom.min == 0.0
        assert scaler.zoom.max == pytest.approx(0.5)

    def test_reset(self):
        scaler = ChartScaler(10000, zoom=ZoomRange(0.1, 0.2))
        scaler.reset_zoom()
        assert scaler.zoom == ZoomRange(0.0, 1.0)
        assert not scaler.zoom.is_zoomed


class TestSeriesAndTicks:
    """Series building and axis ticks"""

    def test_series_skips_missing_and_hidden_points(self):
        records = records_every(100, 11)
        values = [200.0] * 11
        values[3] = None
        scaler = ChartScaler(1000, zoom=ZoomRange(0.0, 0.5))

        series = scaler.build_series(Metric.POWER, records, values)

        # Distances 0..500 are visible, index 3 has no value
        assert len(series.points) == 5
        assert series.unit == "W"
        assert series.max_value == 200

    def test_x_ticks(self):
        ticks = ChartScaler(10000).x_ticks()

        assert len(ticks) == 11
        assert ticks[0].position == LAYOUT.plot_left
        assert ticks[-1].position == pytest.approx(LAYOUT.plot_right)
        assert ticks[5].label == "5.0 km"

    def test_y_ticks_carry_metric_values(self):
        scaler = ChartScaler(1000)
        scaler.fit(Metric.POWER, [0, 500])
        ticks = scaler.y_ticks([Metric.POWER])

        assert len(ticks) == 6
        assert ticks[0].values["power"] == 0
        assert ticks[-1].values["power"] == 500
        assert ticks[-1].position == pytest.approx(LAYOUT.data_top)


class TestNearestSample:
    """Hover lookup"""

    def test_nearest_by_pixel(self):
        records = records_every(100, 11)
        scaler = ChartScaler(1000)

        # 620 px is the middle of the plot: 500 m
        assert scaler.nearest_sample(records, 620) == 5
        assert scaler.nearest_sample(records, 80) == 0

    def test_tolerance_outside_plot(self):
        records = records_every(100, 11)
        scaler = ChartScaler(1000)

        assert scaler.nearest_sample(records, 65) == 0
        assert scaler.nearest_sample(records, 50) is None
        assert scaler.nearest_sample(records, 1200) is None

    def test_prefers_visible_samples(self):
        records = records_every(100, 11)
        scaler = ChartScaler(1000, zoom=ZoomRange(0.25, 0.45))

        # Visible: 300 m and 400 m only
        assert scaler.nearest_sample(records, 80) == 3

    def test_no_records(self):
        assert ChartScaler(1000).nearest_sample([], 500) is None
