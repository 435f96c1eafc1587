"""
Display labels for tooltips, interval rows and chart axes.

Missing or zero values render as "-".
"""
import math
from typing import Optional

from trainlab.models.record import Metric

MISSING = "-"


def _usable(value: Optional[float]) -> bool:
    return value is not None and not math.isnan(value) and value != 0


def format_duration(seconds: Optional[float]) -> str:
    """H:MM:SS, or M:SS under an hour."""
    total = max(0, int(math.floor(seconds or 0)))
    hours, rest = divmod(total, 3600)
    minutes, secs = divmod(rest, 60)
    if hours > 0:
        return f"{hours}:{minutes:02d}:{secs:02d}"
    return f"{minutes}:{secs:02d}"


def format_distance(meters: Optional[float]) -> str:
    if not _usable(meters):
        return MISSING
    if meters < 1000:
        return f"{round(meters)} m"
    return f"{meters / 1000:.2f} km"


def format_axis_distance(meters: float) -> str:
    """Axis labels always in km so ticks line up."""
    return f"{max(0.0, meters) / 1000:.1f} km"


def pace_seconds(speed_mps: Optional[float], sport: str = "running") -> Optional[float]:
    """Seconds per km, or per 100 m for swimming."""
    if speed_mps is None or speed_mps <= 0:
        return None
    return (100.0 if sport == "swimming" else 1000.0) / speed_mps


def format_pace(pace: Optional[float], suffix: str = "/km") -> str:
    if not _usable(pace) or pace < 0:
        return MISSING
    total = int(round(pace))
    minutes, secs = divmod(total, 60)
    return f"{minutes}:{secs:02d}{suffix}"


def format_speed_kmh(speed_mps: Optional[float]) -> str:
    if not _usable(speed_mps):
        return MISSING
    return f"{speed_mps * 3.6:.1f} km/h"


def format_watts(watts: Optional[float]) -> str:
    if not _usable(watts):
        return MISSING
    return f"{round(watts)} W"


def format_bpm(bpm: Optional[float]) -> str:
    if not _usable(bpm):
        return MISSING
    return f"{round(bpm)} bpm"


def format_metric(metric: Metric, value: Optional[float], sport: str = "running") -> str:
    """Label of a chart metric value as shown in the hover tooltip."""
    metric = Metric(metric)
    if metric is Metric.POWER:
        return format_watts(value)
    if metric is Metric.HEART_RATE:
        return format_bpm(value)
    if metric is Metric.SPEED:
        if sport in ("running", "walking", "hiking"):
            return format_pace(pace_seconds(value, sport))
        if sport == "swimming":
            return format_pace(pace_seconds(value, sport), suffix="/100m")
        return format_speed_kmh(value)
    if metric is Metric.PACE:
        return format_pace(value)
    if metric is Metric.CADENCE:
        return MISSING if value is None else f"{round(value)} rpm"
    if value is None:
        return MISSING
    return f"{round(value)} m"
