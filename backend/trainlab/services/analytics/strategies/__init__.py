"""
Sport-specific analytics strategies.

Each strategy decides splitting, pause detection, default metrics and
the summary for one family of sports.
"""
from trainlab.services.analytics.strategies.base import ActivityStrategy
from trainlab.services.analytics.strategies.cycling import CyclingStrategy
from trainlab.services.analytics.strategies.generic import GenericStrategy
from trainlab.services.analytics.strategies.running import RunningStrategy

__all__ = [
    "ActivityStrategy",
    "CyclingStrategy",
    "GenericStrategy",
    "RunningStrategy",
    "get_strategy",
]

_STRATEGIES = {
    "cycling": CyclingStrategy,
    "running": RunningStrategy,
    "walking": RunningStrategy,
    "hiking": RunningStrategy,
}


def get_strategy(sport: str) -> ActivityStrategy:
    """Strategy for a normalized sport; unknown sports get the generic one."""
    strategy_class = _STRATEGIES.get(sport, GenericStrategy)
    strategy = strategy_class()
    if strategy_class is RunningStrategy:
        strategy.activity_type = sport
    return strategy
