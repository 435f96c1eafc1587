"""
Services module - Analytics business logic layer.

Modules:
- analytics: normalization, segmentation, smoothing, zones and chart scaling
"""
# Main exports for convenience
from trainlab.services.analytics import AnalyticsCalculator, AnalyticsRequest, AnalyticsResult

__all__ = [
    "AnalyticsCalculator",
    "AnalyticsRequest",
    "AnalyticsResult",
]
