"""
trainlab - Training activity analytics.

Turns raw activity payloads into chart series, zone summaries and
interval lists.
"""
__version__ = "1.0.0"
