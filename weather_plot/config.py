from __future__ import annotations

import logging
import tomllib
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Literal, Mapping, Sequence

from weather_plot.accessors import (
    CLOUD_COVER,
    DATE,
    DEW_POINT,
    HUMIDITY,
    TEMPERATURE_MAX,
    Accessor,
    accessor_for_field,
)
from weather_plot.binning import DEFAULT_THRESHOLD_COUNT
from weather_plot.errors import PlotDataError
from weather_plot.layout import (
    HISTOGRAM_ASPECT_RATIO,
    SCATTER_SIDE_FRACTION,
    TIMELINE_HEIGHT,
    TIMELINE_WIDTH_FRACTION,
    Margins,
    fixed_aspect_size,
    square_size,
    viewport_fraction_size,
)


LOGGER = logging.getLogger(__name__)

ChartKind = Literal["histogram", "timeline", "scatter"]
SizingPolicy = Literal["fixed", "aspect", "viewport_fraction", "square"]

_KINDS = {"histogram", "timeline", "scatter"}
_SIZING = {"fixed", "aspect", "viewport_fraction", "square"}


@dataclass(frozen=True)
class AxisConfig:
    """How one axis (or encoding) reads its values and spans its domain.

    `domain="auto"` takes the data extent. `range=None` lets the chart fill
    the bounded area in its natural direction.
    """

    accessor: Accessor
    domain: Any = "auto"
    range: tuple[float, float] | None = None
    nice: bool = False

    def __post_init__(self) -> None:
        if not callable(self.accessor):
            raise PlotDataError("axis accessor must be callable")
        if isinstance(self.domain, str):
            if self.domain != "auto":
                raise PlotDataError(f"domain must be `auto` or a [min, max] pair, got {self.domain!r}")
        elif len(self.domain) != 2:
            raise PlotDataError("domain must be a two-element pair")
        else:
            object.__setattr__(self, "domain", tuple(self.domain))
        if self.range is not None:
            if len(self.range) != 2:
                raise PlotDataError("range must be a two-element pair")
            object.__setattr__(self, "range", (float(self.range[0]), float(self.range[1])))


@dataclass(frozen=True)
class SizeConfig:
    sizing: SizingPolicy = "fixed"
    width: float = 600.0
    height: float = 600.0 * HISTOGRAM_ASPECT_RATIO
    ratio: float = HISTOGRAM_ASPECT_RATIO
    fraction: float = 1.0

    def __post_init__(self) -> None:
        if self.sizing not in _SIZING:
            raise PlotDataError(f"unknown sizing policy: {self.sizing}")
        if self.width <= 0 or self.height <= 0:
            raise PlotDataError("width and height must be > 0")
        if self.ratio <= 0 or self.fraction <= 0:
            raise PlotDataError("ratio and fraction must be > 0")

    def raw_size(self, viewport_width: float | None = None, viewport_height: float | None = None) -> tuple[float, float]:
        """Whole-chart size for the current viewport under this policy."""

        if self.sizing == "fixed":
            return (self.width, self.height)
        vw = self.width if viewport_width is None else viewport_width
        vh = self.height if viewport_height is None else viewport_height
        if self.sizing == "aspect":
            return fixed_aspect_size(vw * self.fraction, self.ratio)
        if self.sizing == "viewport_fraction":
            return viewport_fraction_size(vw, self.fraction, self.height)
        return square_size(vw, vh, self.fraction)


@dataclass(frozen=True)
class ChartConfig:
    kind: ChartKind
    x: AxisConfig
    y: AxisConfig | None = None
    color: AxisConfig | None = None
    colors: tuple[Any, Any] | None = None
    threshold_count: int = DEFAULT_THRESHOLD_COUNT
    nice_thresholds: bool = False
    margins: Margins = field(default_factory=Margins)
    size: SizeConfig = field(default_factory=SizeConfig)

    def __post_init__(self) -> None:
        if self.kind not in _KINDS:
            raise PlotDataError(f"unknown chart kind: {self.kind}")
        if isinstance(self.threshold_count, bool) or int(self.threshold_count) != self.threshold_count:
            raise PlotDataError("threshold_count must be an integer")
        if self.threshold_count <= 0:
            raise PlotDataError("threshold_count must be > 0")
        if self.kind != "histogram" and self.y is None:
            raise PlotDataError(f"{self.kind} charts need a y axis")
        if (self.color is None) != (self.colors is None):
            raise PlotDataError("color encoding needs both a color axis and two endpoint colors")
        if self.colors is not None:
            if len(self.colors) != 2:
                raise PlotDataError("colors must name exactly two endpoint colors")
            object.__setattr__(self, "colors", tuple(self.colors))

    def with_size(self, **changes: Any) -> "ChartConfig":
        return replace(self, size=replace(self.size, **changes))


def default_histogram_config() -> ChartConfig:
    return ChartConfig(
        kind="histogram",
        x=AxisConfig(accessor=HUMIDITY, nice=True),
        threshold_count=DEFAULT_THRESHOLD_COUNT,
        nice_thresholds=True,
        margins=Margins(top=30, right=10, bottom=60, left=60),
        size=SizeConfig(sizing="fixed", width=600.0, height=600.0 * HISTOGRAM_ASPECT_RATIO),
    )


def default_timeline_config() -> ChartConfig:
    return ChartConfig(
        kind="timeline",
        x=AxisConfig(accessor=DATE),
        y=AxisConfig(accessor=TEMPERATURE_MAX),
        margins=Margins(top=15, right=15, bottom=40, left=60),
        size=SizeConfig(
            sizing="viewport_fraction",
            width=1000.0,
            height=TIMELINE_HEIGHT,
            fraction=TIMELINE_WIDTH_FRACTION,
        ),
    )


def default_scatter_config() -> ChartConfig:
    return ChartConfig(
        kind="scatter",
        x=AxisConfig(accessor=DEW_POINT, nice=True),
        y=AxisConfig(accessor=HUMIDITY, nice=True),
        color=AxisConfig(accessor=CLOUD_COVER),
        colors=("#e6ccff", "#400080"),
        margins=Margins(top=10, right=10, bottom=80, left=80),
        size=SizeConfig(sizing="square", width=800.0, height=800.0, fraction=SCATTER_SIDE_FRACTION),
    )


DEFAULT_CONFIGS = {
    "histogram": default_histogram_config,
    "timeline": default_timeline_config,
    "scatter": default_scatter_config,
}


def load_chart_config(path: str | Path) -> ChartConfig:
    """Read a chart definition from TOML, filling gaps from the kind's defaults."""

    with Path(path).open("rb") as f:
        raw = tomllib.load(f)
    return chart_config_from_mapping(raw)


def chart_config_from_mapping(raw: Mapping[str, Any]) -> ChartConfig:
    kind = raw.get("kind")
    if kind not in DEFAULT_CONFIGS:
        raise PlotDataError(f"config `kind` must be one of {sorted(DEFAULT_CONFIGS)}, got {kind!r}")
    base = DEFAULT_CONFIGS[kind]()

    changes: dict[str, Any] = {}
    for axis in ("x", "y", "color"):
        if axis in raw:
            changes[axis] = _axis_from_mapping(raw[axis], getattr(base, axis), label=axis)
    if "colors" in raw:
        changes["colors"] = tuple(raw["colors"])
    if "threshold_count" in raw:
        changes["threshold_count"] = raw["threshold_count"]
    if "nice_thresholds" in raw:
        changes["nice_thresholds"] = bool(raw["nice_thresholds"])
    if "margins" in raw:
        changes["margins"] = Margins.from_mapping(raw["margins"])
    if "size" in raw:
        size_raw = dict(raw["size"])
        unknown = set(size_raw) - {"sizing", "width", "height", "ratio", "fraction"}
        if unknown:
            raise PlotDataError(f"unknown size keys: {sorted(unknown)}")
        changes["size"] = replace(base.size, **size_raw)

    unknown = set(raw) - {"kind", "x", "y", "color", "colors", "threshold_count", "nice_thresholds", "margins", "size"}
    if unknown:
        LOGGER.warning("ignoring unknown chart config keys: %s", ", ".join(sorted(unknown)))
    return replace(base, **changes)


def _axis_from_mapping(raw: Mapping[str, Any], base: AxisConfig | None, *, label: str) -> AxisConfig:
    if not isinstance(raw, Mapping):
        raise PlotDataError(f"`{label}` must be a table")
    if "field" in raw:
        accessor = accessor_for_field(str(raw["field"]))
    elif base is not None:
        accessor = base.accessor
    else:
        raise PlotDataError(f"`{label}.field` is required")
    domain: Any = raw.get("domain", base.domain if base is not None else "auto")
    range_: Sequence[float] | None = raw.get("range", base.range if base is not None else None)
    nice = bool(raw.get("nice", base.nice if base is not None else False))
    return AxisConfig(accessor=accessor, domain=domain, range=range_, nice=nice)
