from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Mapping

from weather_plot.errors import InvalidLayoutError


HISTOGRAM_ASPECT_RATIO = 0.6
TIMELINE_WIDTH_FRACTION = 0.9
TIMELINE_HEIGHT = 400.0
SCATTER_SIDE_FRACTION = 0.8


@dataclass(frozen=True)
class Margins:
    top: float = 0.0
    right: float = 0.0
    bottom: float = 0.0
    left: float = 0.0

    def __post_init__(self) -> None:
        for name in ("top", "right", "bottom", "left"):
            value = float(getattr(self, name))
            if not math.isfinite(value) or value < 0:
                raise InvalidLayoutError(f"margin `{name}` must be finite and >= 0")
            object.__setattr__(self, name, value)

    @classmethod
    def from_mapping(cls, raw: Mapping[str, Any]) -> "Margins":
        unknown = set(raw) - {"top", "right", "bottom", "left"}
        if unknown:
            raise InvalidLayoutError(f"unknown margin keys: {sorted(unknown)}")
        return cls(**{k: float(v) for k, v in raw.items()})


@dataclass(frozen=True)
class Dimensions:
    """Whole-chart size plus the bounded drawing area inside the margins."""

    width: float
    height: float
    margins: Margins
    bounded_width: float
    bounded_height: float

    def __post_init__(self) -> None:
        for name in ("width", "height", "bounded_width", "bounded_height"):
            value = float(getattr(self, name))
            if not math.isfinite(value):
                raise InvalidLayoutError(f"`{name}` must be finite")
            object.__setattr__(self, name, value)
        m = self.margins
        if not math.isclose(self.bounded_width, self.width - m.left - m.right, abs_tol=1e-9):
            raise InvalidLayoutError("bounded_width must equal width minus the left and right margins")
        if not math.isclose(self.bounded_height, self.height - m.top - m.bottom, abs_tol=1e-9):
            raise InvalidLayoutError("bounded_height must equal height minus the top and bottom margins")
        if self.bounded_width <= 0 or self.bounded_height <= 0:
            raise InvalidLayoutError(
                f"margins leave no drawing area: bounded {self.bounded_width:g}x{self.bounded_height:g} "
                f"for chart {self.width:g}x{self.height:g}"
            )

    @property
    def bounds(self) -> tuple[float, float, float, float]:
        """Bounded rectangle as (x0, y0, x1, y1) in bounded-area pixels."""

        return (0.0, 0.0, self.bounded_width, self.bounded_height)

    def contains(self, point: tuple[float, float]) -> bool:
        x, y = point
        return 0.0 <= x <= self.bounded_width and 0.0 <= y <= self.bounded_height

    def clamp(self, point: tuple[float, float]) -> tuple[float, float]:
        x, y = point
        return (min(max(float(x), 0.0), self.bounded_width), min(max(float(y), 0.0), self.bounded_height))

    def to_wrapper(self, point: tuple[float, float]) -> tuple[float, float]:
        x, y = point
        return (float(x) + self.margins.left, float(y) + self.margins.top)

    def to_bounds(self, point: tuple[float, float]) -> tuple[float, float]:
        x, y = point
        return (float(x) - self.margins.left, float(y) - self.margins.top)


def compute_dimensions(raw_width: float, raw_height: float, margins: Margins | Mapping[str, Any]) -> Dimensions:
    if not isinstance(margins, Margins):
        margins = Margins.from_mapping(margins)
    width = float(raw_width)
    height = float(raw_height)
    if not (math.isfinite(width) and math.isfinite(height)):
        raise InvalidLayoutError("chart width/height must be finite")
    return Dimensions(
        width=width,
        height=height,
        margins=margins,
        bounded_width=width - margins.left - margins.right,
        bounded_height=height - margins.top - margins.bottom,
    )


def fixed_aspect_size(width: float, ratio: float = HISTOGRAM_ASPECT_RATIO) -> tuple[float, float]:
    if width <= 0:
        raise InvalidLayoutError("width must be > 0")
    if ratio <= 0:
        raise InvalidLayoutError("ratio must be > 0")
    return (float(width), float(width) * ratio)


def viewport_fraction_size(
    viewport_width: float,
    fraction: float = TIMELINE_WIDTH_FRACTION,
    height: float = TIMELINE_HEIGHT,
) -> tuple[float, float]:
    if viewport_width <= 0 or height <= 0:
        raise InvalidLayoutError("viewport width and height must be > 0")
    if fraction <= 0:
        raise InvalidLayoutError("fraction must be > 0")
    return (float(viewport_width) * fraction, float(height))


def square_size(
    viewport_width: float,
    viewport_height: float,
    fraction: float = SCATTER_SIDE_FRACTION,
) -> tuple[float, float]:
    # Scatter plots need equal sides so distances read the same on both axes.
    if viewport_width <= 0 or viewport_height <= 0:
        raise InvalidLayoutError("viewport width and height must be > 0")
    if fraction <= 0:
        raise InvalidLayoutError("fraction must be > 0")
    side = min(float(viewport_width), float(viewport_height)) * fraction
    return (side, side)
