"""
Tests for interval segmentation.

Distance splits, lap handling, pause detection, grouping and the
main-set summary.
"""
from dataclasses import replace

import pytest

from fixtures.payloads import START_EPOCH, device_payload, manual_payload, steady_samples
from trainlab.models.interval import Interval
from trainlab.models.record import Metric
from trainlab.services.analytics.adapter import normalize_payload
from trainlab.services.analytics.segmenter import UNGROUPED, IntervalSegmenter
from trainlab.services.analytics.strategies import CyclingStrategy, GenericStrategy, RunningStrategy


def run_segmenter() -> IntervalSegmenter:
    return IntervalSegmenter(RunningStrategy())


class TestDistanceSplits:
    """Pace-based sports without laps"""

    def test_5000m_run_gives_five_splits(self):
        activity = normalize_payload(device_payload(steady_samples(5000)))
        intervals = run_segmenter().segment(activity)

        assert len(intervals) == 5
        assert all(i.source == "split" for i in intervals)
        assert [i.distance_meters for i in intervals] == [1000.0] * 5

    def test_splits_are_contiguous(self):
        activity = normalize_payload(device_payload(steady_samples(3400)))
        intervals = run_segmenter().segment(activity)

        for current, following in zip(intervals, intervals[1:]):
            assert current.end_time == following.start_time
        assert intervals[0].start_time == 0

    def test_run_shorter_than_a_split_is_one_interval(self):
        records = [
            {"timestamp": START_EPOCH, "distance": 0},
            {"timestamp": START_EPOCH + 150, "distance": 500},
            {"timestamp": START_EPOCH + 300, "distance": 999},
        ]
        intervals = run_segmenter().segment(normalize_payload(device_payload(records)))

        assert len(intervals) == 1
        assert intervals[0].start_time == 0
        assert intervals[0].end_time == 300
        assert intervals[0].distance_meters == 999

    def test_long_trailing_split_kept(self):
        activity = normalize_payload(device_payload(steady_samples(2600)))
        intervals = run_segmenter().segment(activity)

        assert len(intervals) == 3
        assert intervals[-1].distance_meters == pytest.approx(600)

    def test_short_trailing_split_dropped(self):
        activity = normalize_payload(device_payload(steady_samples(2400)))
        intervals = run_segmenter().segment(activity)

        assert len(intervals) == 2

    def test_split_averages_from_records(self):
        activity = normalize_payload(device_payload(steady_samples(2000, heart_rate=155)))
        first = run_segmenter().segment(activity)[0]

        assert first.avg_heart_rate == 155
        assert first.avg_speed_mps == pytest.approx(5.0)
        assert first.avg_power is None

    def test_zero_distance_run_has_no_intervals(self):
        records = [{"timestamp": START_EPOCH + i, "distance": 0, "speed": 0} for i in range(10)]
        assert run_segmenter().segment(normalize_payload(device_payload(records))) == []

    def test_zero_length_activity_has_no_intervals(self):
        records = [{"timestamp": START_EPOCH, "distance": 0}]
        assert run_segmenter().segment(normalize_payload(device_payload(records))) == []


class TestLaps:
    """Source laps"""

    def test_lap_boundaries_and_record_fallbacks(self):
        samples = steady_samples(1000, heart_rate=150, power=200)
        laps = [
            {"startTime": START_EPOCH, "totalElapsedTime": 100, "avgHeartRate": 160},
            {"startTime": START_EPOCH + 100, "totalElapsedTime": 100},
        ]
        activity = normalize_payload(device_payload(samples, laps=laps, sport="cycling"))
        intervals = IntervalSegmenter(CyclingStrategy()).segment(activity)

        assert len(intervals) == 2
        assert (intervals[0].start_time, intervals[0].end_time) == (0, 100)
        assert (intervals[1].start_time, intervals[1].end_time) == (100, 200)
        # Source aggregate wins, missing ones come from records
        assert intervals[0].avg_heart_rate == 160
        assert intervals[1].avg_heart_rate == 150
        assert intervals[0].avg_power == 200
        # Distance and speed fall back to the recorded distance at the lap edges
        assert intervals[0].distance_meters == pytest.approx(500)
        assert intervals[0].avg_speed_mps == pytest.approx(5.0)

    def test_sparse_samples_without_lap_aggregates(self):
        # One sample every 10 s at 3 m/s
        samples = steady_samples(180, step_distance=30, step_seconds=10)
        laps = [
            {"startTime": START_EPOCH, "totalElapsedTime": 10},
            {"startTime": START_EPOCH + 10, "totalElapsedTime": 20},
        ]
        activity = normalize_payload(device_payload(samples, laps=laps))
        intervals = run_segmenter().segment(activity)

        assert [i.distance_meters for i in intervals] == [pytest.approx(30), pytest.approx(60)]
        assert [i.avg_speed_mps for i in intervals] == [pytest.approx(3.0), pytest.approx(3.0)]
        assert not any(i.is_pause for i in intervals)

    def test_lap_edges_between_samples_are_interpolated(self):
        samples = steady_samples(180, step_distance=30, step_seconds=10)
        laps = [{"startTime": START_EPOCH + 5, "totalElapsedTime": 20}]
        activity = normalize_payload(device_payload(samples, laps=laps))

        assert run_segmenter().segment(activity)[0].distance_meters == pytest.approx(60)

    def test_lap_without_duration_ends_at_next_lap(self):
        laps = [
            {"startTime": START_EPOCH, "totalDistance": 500, "avgSpeed": 5.0},
            {"startTime": START_EPOCH + 100, "totalDistance": 500, "avgSpeed": 5.0},
        ]
        activity = normalize_payload(device_payload(steady_samples(1000), laps=laps))
        intervals = run_segmenter().segment(activity)

        assert intervals[0].end_time == 100
        assert intervals[1].end_time == 200
        assert all(i.source == "lap" for i in intervals)

    def test_laps_win_over_splits(self):
        laps = [{"startTime": START_EPOCH, "totalElapsedTime": 1000}]
        activity = normalize_payload(device_payload(steady_samples(5000), laps=laps))
        assert len(run_segmenter().segment(activity)) == 1


class TestOtherCases:
    """Whole-activity and manual segmentation"""

    def test_ride_without_laps_is_one_interval(self):
        activity = normalize_payload(device_payload(steady_samples(5000, power=220), sport="cycling"))
        intervals = IntervalSegmenter(CyclingStrategy()).segment(activity)

        assert len(intervals) == 1
        assert intervals[0].source == "activity"
        assert intervals[0].avg_power == 220

    def test_manual_steps_laid_end_to_end(self):
        activity = normalize_payload(manual_payload([
            {"power": 200, "heartRate": 140, "duration": "05:00"},
            {"power": 0, "heartRate": 110, "duration": "02:00"},
            {"power": 260, "heartRate": 165, "duration": "05:00"},
        ]))
        intervals = IntervalSegmenter(GenericStrategy()).segment(activity)

        assert [(i.start_time, i.end_time) for i in intervals] == [(0, 300), (300, 420), (420, 720)]
        assert all(i.source == "step" for i in intervals)
        assert not any(i.is_pause for i in intervals)


class TestPauses:
    """Pause detection"""

    def test_slow_interval_is_pause(self):
        assert RunningStrategy().is_pause(0.05)
        assert CyclingStrategy().is_pause(0.05)

    def test_pace_rule_only_for_pace_sports(self):
        # 0.8 m/s is slower than 20:00 /km
        assert RunningStrategy().is_pause(0.8)
        assert not CyclingStrategy().is_pause(0.8)

    def test_unknown_speed_is_not_pause(self):
        assert not RunningStrategy().is_pause(None)

    def test_pause_lap_flagged(self):
        laps = [
            {"startTime": START_EPOCH, "totalElapsedTime": 100, "avgSpeed": 5.0},
            {"startTime": START_EPOCH + 100, "totalElapsedTime": 100, "avgSpeed": 0.05},
        ]
        activity = normalize_payload(device_payload(steady_samples(1000), laps=laps))
        intervals = run_segmenter().segment(activity)

        assert [i.is_pause for i in intervals] == [False, True]


def make_interval(index, power=None, speed=3.0, duration=60.0, is_pause=False):
    return Interval(
        index=index,
        start_time=index * duration,
        end_time=(index + 1) * duration,
        distance_meters=(speed or 0) * duration,
        avg_power=power,
        avg_heart_rate=150.0,
        avg_speed_mps=speed,
        is_pause=is_pause,
    )


class TestGrouping:
    """Display grouping"""

    def test_similar_values_share_a_group(self):
        intervals = [
            make_interval(0, power=300),
            make_interval(1, power=150, is_pause=True),
            make_interval(2, power=302),
            make_interval(3, power=200),
            make_interval(4, power=299),
        ]
        groups = IntervalSegmenter(CyclingStrategy()).group_intervals(intervals, Metric.POWER)

        by_id = {g.group_id: g.interval_indices for g in groups}
        assert by_id[0] == (0, 2, 4)
        assert by_id[1] == (3,)
        assert by_id[UNGROUPED] == (1,)

    def test_greedy_first_match(self):
        # Range 100..200, tolerance 5: 104 joins 100, 108 is 8 from 100 and starts a group
        intervals = [make_interval(i, power=p) for i, p in enumerate([100, 104, 108, 200])]
        groups = IntervalSegmenter(CyclingStrategy()).group_intervals(intervals, Metric.POWER)

        assert [g.interval_indices for g in groups] == [(0, 1), (2,), (3,)]

    def test_flat_values_group_together(self):
        intervals = [make_interval(i, power=250) for i in range(3)]
        groups = IntervalSegmenter(CyclingStrategy()).group_intervals(intervals, Metric.POWER)

        assert len(groups) == 1
        assert groups[0].avg_value == 250

    def test_missing_values_ungrouped(self):
        intervals = [make_interval(0, power=None), make_interval(1, power=0)]
        groups = IntervalSegmenter(CyclingStrategy()).group_intervals(intervals, Metric.POWER)

        assert [(g.group_id, g.interval_indices) for g in groups] == [(UNGROUPED, (0, 1))]


class TestMainSet:
    """Main-set summary and fade"""

    def test_pauses_excluded_and_duration_weighted(self):
        intervals = [
            make_interval(0, power=200, duration=60),
            Interval(index=1, start_time=60, end_time=180, avg_power=300, avg_speed_mps=4.0, distance_meters=480),
            make_interval(2, power=50, speed=0.0, is_pause=True),
        ]
        summary = IntervalSegmenter(CyclingStrategy()).main_set_summary(intervals)

        assert summary.interval_count == 2
        assert summary.pause_count == 1
        assert summary.total_time_seconds == 180
        assert summary.avg_power == pytest.approx((200 * 60 + 300 * 120) / 180)

    def test_power_fade_positive_when_dropping(self):
        intervals = [make_interval(i, power=p) for i, p in enumerate([300, 300, 270])]
        assert IntervalSegmenter(CyclingStrategy()).fade_pct(intervals, Metric.POWER) == 10.0

    def test_pace_fade_positive_when_slowing(self):
        # 4.0 m/s = 250 s/km, 3.2 m/s = 312.5 s/km
        intervals = [make_interval(i, speed=s) for i, s in enumerate([4.0, 4.0, 3.2])]
        assert run_segmenter().fade_pct(intervals, Metric.PACE) == 25.0

    def test_fade_needs_two_values(self):
        assert run_segmenter().fade_pct([make_interval(0, power=200)], Metric.POWER) is None

    @pytest.mark.parametrize("strategy", [RunningStrategy(), CyclingStrategy(), GenericStrategy()])
    @pytest.mark.parametrize("metric,sign", [
        (Metric.POWER, 1),
        (Metric.HEART_RATE, 1),
        (Metric.SPEED, 1),
        (Metric.PACE, -1),
    ])
    def test_trend_direction(self, strategy, metric, sign):
        assert strategy.trend_sign(metric) == sign

    def test_heart_rate_fade_positive_when_dropping(self):
        intervals = [
            replace(make_interval(i, power=250), avg_heart_rate=hr)
            for i, hr in enumerate([150.0, 150.0, 135.0])
        ]
        assert IntervalSegmenter(CyclingStrategy()).fade_pct(intervals, Metric.HEART_RATE) == 10.0
