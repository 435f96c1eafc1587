"""
Renderer-facing chart structures.
"""
from dataclasses import dataclass, field
from typing import Dict, Optional, Tuple


@dataclass(frozen=True)
class ZoomRange:
    """Visible fraction [min, max] of the total distance."""
    min: float = 0.0
    max: float = 1.0

    @property
    def span(self) -> float:
        return self.max - self.min

    @property
    def is_zoomed(self) -> bool:
        return self.min > 0.0 or self.max < 1.0

    def as_tuple(self) -> Tuple[float, float]:
        return (self.min, self.max)


@dataclass(frozen=True)
class ChartLayout:
    """Pixel geometry of the chart canvas."""
    width: float = 1200.0
    height: float = 400.0
    padding_top: float = 40.0
    padding_right: float = 40.0
    padding_bottom: float = 50.0
    padding_left: float = 80.0
    headroom_ratio: float = 0.1  # keeps metric maxima off the top edge

    @property
    def plot_left(self) -> float:
        return self.padding_left

    @property
    def plot_width(self) -> float:
        return self.width - self.padding_left - self.padding_right

    @property
    def plot_right(self) -> float:
        return self.plot_left + self.plot_width

    @property
    def plot_top(self) -> float:
        return self.padding_top

    @property
    def plot_height(self) -> float:
        return self.height - self.padding_top - self.padding_bottom

    @property
    def plot_bottom(self) -> float:
        return self.plot_top + self.plot_height

    @property
    def data_top(self) -> float:
        """Pixel row a metric's maximum is drawn at."""
        return self.plot_top + self.plot_height * self.headroom_ratio


@dataclass(frozen=True)
class ChartPoint:
    x: float
    y: float


@dataclass(frozen=True)
class ChartSeries:
    """One metric line in chart coordinates."""
    metric: str
    unit: str
    points: Tuple[ChartPoint, ...] = ()
    lo_bound: float = 0.0
    max_value: float = 0.0

    def to_dict(self) -> dict:
        return {
            "metric": self.metric,
            "unit": self.unit,
            "points": [{"x": p.x, "y": p.y} for p in self.points],
            "loBound": self.lo_bound,
            "maxValue": self.max_value,
        }


@dataclass(frozen=True)
class AxisTick:
    """Grid line position with its label(s)."""
    position: float
    label: str
    values: Dict[str, float] = field(default_factory=dict)


@dataclass(frozen=True)
class TooltipData:
    """Values of the sample nearest to the hovered pixel."""
    sample_index: int
    x: float
    distance_meters: float
    elapsed_seconds: float
    values: Dict[str, Optional[float]] = field(default_factory=dict)
    zones: Dict[str, Optional[int]] = field(default_factory=dict)
    labels: Dict[str, str] = field(default_factory=dict)
