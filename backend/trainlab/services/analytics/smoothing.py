"""
Smoothing Filter - moving average over metric channels.

Gaps (None) are skipped when averaging and stay gaps in the output.
"""
import math
from typing import Dict, Iterable, Optional, Sequence, Tuple

from trainlab.models.record import Metric, Record

# Window grows by this many samples across the full knob range
SMOOTHING_SPAN = 19
MAX_WINDOW = 1 + SMOOTHING_SPAN


def smoothing_window(knob: float) -> int:
    """
    Window size for a smoothing knob in [0, 1].

    W = round(1 + k * 19), rounding halves up, so k=0 is the identity
    window and k=1 averages 20 samples. Out-of-range knobs are clamped.
    """
    if knob is None or math.isnan(knob):
        knob = 0.0
    knob = min(1.0, max(0.0, float(knob)))
    return int(math.floor(1 + knob * SMOOTHING_SPAN + 0.5))


def moving_average(
    values: Sequence[Optional[float]],
    window: int,
) -> Tuple[Optional[float], ...]:
    """
    Centered moving average ignoring gaps.

    Point i averages the non-null values in [i - W//2, i + ceil(W/2)),
    clipped at the array ends.

    Args:
        values: Channel samples, None where there is no reading
        window: Window size W (values below 1 act as 1)

    Returns:
        Tuple of the same length; None inputs stay None
    """
    count = len(values)
    if window <= 1 or count == 0:
        return tuple(values)

    behind = window // 2
    ahead = window - behind  # ceil(W/2)

    # Prefix sums over present values and their counts
    sums = [0.0] * (count + 1)
    present = [0] * (count + 1)
    for i, value in enumerate(values):
        sums[i + 1] = sums[i] + (value if value is not None else 0.0)
        present[i + 1] = present[i] + (1 if value is not None else 0)

    smoothed = []
    for i, value in enumerate(values):
        if value is None:
            smoothed.append(None)
            continue
        lo = max(0, i - behind)
        hi = min(count, i + ahead)
        n = present[hi] - present[lo]
        smoothed.append((sums[hi] - sums[lo]) / n)

    return tuple(smoothed)


def smooth_channels(
    records: Sequence[Record],
    metrics: Iterable[Metric],
    window: int,
) -> Dict[Metric, Tuple[Optional[float], ...]]:
    """Smooth several channels of a record stream at once."""
    channels = {}
    for metric in metrics:
        metric = Metric(metric)
        raw = [record.value(metric) for record in records]
        channels[metric] = moving_average(raw, window)
    return channels
