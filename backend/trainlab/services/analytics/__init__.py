"""
Analytics module - Activity data processing for charting.

This module provides:
- Data adapters for normalizing raw payloads from device, cloud and manual sources
- Interval segmentation, smoothing and zone aggregation
- Chart coordinate mapping with zoom and hover support
- Analytics calculator engine with result memoization
"""
from trainlab.services.analytics.adapter import (
    RawDataAdapter,
    DeviceAdapter,
    CloudAdapter,
    ManualAdapter,
    get_adapter,
    normalize_payload,
)
from trainlab.services.analytics.cache import AnalyticsCache
from trainlab.services.analytics.calculator import (
    AnalyticsCalculator,
    AnalyticsRequest,
    AnalyticsResult,
)
from trainlab.services.analytics.scaler import ChartScaler
from trainlab.services.analytics.segmenter import IntervalSegmenter
from trainlab.services.analytics.smoothing import moving_average, smooth_channels, smoothing_window
from trainlab.services.analytics.zones import (
    ZoneProfile,
    aggregate_zones,
    classify,
    summarize_zones,
    zones_from_thresholds,
)

__all__ = [
    # Adapters
    "RawDataAdapter",
    "DeviceAdapter",
    "CloudAdapter",
    "ManualAdapter",
    "get_adapter",
    "normalize_payload",
    # Stages
    "IntervalSegmenter",
    "moving_average",
    "smooth_channels",
    "smoothing_window",
    "ZoneProfile",
    "aggregate_zones",
    "classify",
    "summarize_zones",
    "zones_from_thresholds",
    "ChartScaler",
    # Calculator
    "AnalyticsCache",
    "AnalyticsCalculator",
    "AnalyticsRequest",
    "AnalyticsResult",
]
