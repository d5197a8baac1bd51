from __future__ import annotations

import datetime as dt
import logging
import math
from dataclasses import dataclass
from typing import Any, Sequence, Union

import numpy as np

from weather_plot.accessors import Accessor, BinCountAccessor, accessor_values, is_temporal, to_ordinal
from weather_plot.adapters.records import coerce_records
from weather_plot.binning import Bin, bin_records, max_bin_count, mean_value
from weather_plot.config import AxisConfig, ChartConfig
from weather_plot.errors import DegenerateDomainError, PlotDataError
from weather_plot.layout import Dimensions, compute_dimensions
from weather_plot.nearest import AxisIndex, PlanarIndex, build_planar_index
from weather_plot.scales import (
    ColorScale,
    LinearScale,
    TimeScale,
    expand_degenerate,
    extent,
    make_color_scale,
    make_linear_scale,
    make_time_scale,
)


LOGGER = logging.getLogger(__name__)

BAR_PADDING = 1.0
BAR_LABEL_OFFSET = 10.0
FREEZING_POINT_F = 32.0

BIN_COUNT = BinCountAccessor()


@dataclass(frozen=True)
class BarGeometry:
    """Bar rectangle in bounded-area pixels plus where its count label sits."""

    bin_index: int
    x: float
    y: float
    width: float
    height: float
    label_x: float
    label_y: float
    count: int


@dataclass(frozen=True)
class Band:
    x: float
    y: float
    width: float
    height: float


@dataclass(frozen=True, eq=False)
class HistogramChart:
    config: ChartConfig
    records: tuple[Any, ...]
    dimensions: Dimensions
    x_scale: LinearScale
    y_scale: LinearScale
    bins: tuple[Bin, ...]
    mean: float


@dataclass(frozen=True, eq=False)
class TimelineChart:
    config: ChartConfig
    records: tuple[Any, ...]
    dimensions: Dimensions
    x_scale: TimeScale | LinearScale
    y_scale: LinearScale
    index: AxisIndex


@dataclass(frozen=True, eq=False)
class ScatterChart:
    """Scatter state. `point_records[i]` is the record behind projected point i."""

    config: ChartConfig
    records: tuple[Any, ...]
    dimensions: Dimensions
    x_scale: LinearScale
    y_scale: LinearScale
    color_scale: ColorScale | None
    positions: np.ndarray
    point_records: np.ndarray
    index: PlanarIndex

    def record_at(self, point: Sequence[float]) -> int:
        return int(self.point_records[self.index.region_at(point)])


Chart = Union[HistogramChart, TimelineChart, ScatterChart]


def build_chart(
    records: Any,
    config: ChartConfig,
    viewport_width: float | None = None,
    viewport_height: float | None = None,
) -> Chart:
    """Full ordered recompute: dimensions, then scales, then bins or index."""

    rows = coerce_records(records)
    width, height = config.size.raw_size(viewport_width, viewport_height)
    dimensions = compute_dimensions(width, height, config.margins)
    if config.kind == "histogram":
        return build_histogram(rows, config, dimensions)
    if config.kind == "timeline":
        return build_timeline(rows, config, dimensions)
    return build_scatter(rows, config, dimensions)


def rebuild(chart: Chart, viewport_width: float, viewport_height: float) -> Chart:
    return build_chart(chart.records, chart.config, viewport_width, viewport_height)


def build_histogram(records: tuple[Any, ...], config: ChartConfig, dimensions: Dimensions) -> HistogramChart:
    x_axis = config.x
    x_scale = _linear_scale(records, x_axis, (0.0, dimensions.bounded_width))
    bins = bin_records(records, x_axis.accessor, x_scale.domain, config.threshold_count, nice=config.nice_thresholds)
    top = max_bin_count(bins)
    y_axis = config.y
    y_domain = y_axis.domain if y_axis is not None and y_axis.domain != "auto" else (0.0, float(max(top, 1)))
    y_range = y_axis.range if y_axis is not None and y_axis.range is not None else (dimensions.bounded_height, 0.0)
    y_scale = make_linear_scale(y_domain, y_range, nice=y_axis.nice if y_axis is not None else True)
    LOGGER.debug("histogram: %d bins over %s, tallest=%d", len(bins), x_scale.domain, top)
    return HistogramChart(
        config=config,
        records=records,
        dimensions=dimensions,
        x_scale=x_scale,
        y_scale=y_scale,
        bins=bins,
        mean=mean_value(records, x_axis.accessor),
    )


def build_timeline(records: tuple[Any, ...], config: ChartConfig, dimensions: Dimensions) -> TimelineChart:
    assert config.y is not None
    x_axis, y_axis = config.x, config.y
    x_range = x_axis.range or (0.0, dimensions.bounded_width)
    if is_temporal(x_axis.accessor):
        x_scale: TimeScale | LinearScale = make_time_scale(_resolve_domain(records, x_axis), x_range)
    else:
        x_scale = _linear_scale(records, x_axis, x_range)
    y_scale = _linear_scale(records, y_axis, (dimensions.bounded_height, 0.0))

    # Records without a y value cannot be marked, so they never win a hover.
    x_values = accessor_values(records, x_axis.accessor)
    x_values[~np.isfinite(accessor_values(records, y_axis.accessor))] = np.nan
    return TimelineChart(
        config=config,
        records=records,
        dimensions=dimensions,
        x_scale=x_scale,
        y_scale=y_scale,
        index=AxisIndex(values=x_values),
    )


def build_scatter(records: tuple[Any, ...], config: ChartConfig, dimensions: Dimensions) -> ScatterChart:
    assert config.y is not None
    x_axis, y_axis = config.x, config.y
    x_scale = _linear_scale(records, x_axis, (0.0, dimensions.bounded_width))
    y_scale = _linear_scale(records, y_axis, (dimensions.bounded_height, 0.0))

    color_scale = None
    if config.color is not None and config.colors is not None:
        color_domain = _numeric_domain(_resolve_domain(records, config.color))
        color_scale = make_color_scale(color_domain, config.colors)

    xs = accessor_values(records, x_axis.accessor)
    ys = accessor_values(records, y_axis.accessor)
    keep = np.flatnonzero(np.isfinite(xs) & np.isfinite(ys))
    positions = np.column_stack((x_scale.apply(xs[keep]), y_scale.apply(ys[keep])))
    index = build_planar_index(positions, dimensions)
    return ScatterChart(
        config=config,
        records=records,
        dimensions=dimensions,
        x_scale=x_scale,
        y_scale=y_scale,
        color_scale=color_scale,
        positions=positions,
        point_records=keep,
        index=index,
    )


def bar_geometry(chart: HistogramChart, padding: float = BAR_PADDING) -> tuple[BarGeometry, ...]:
    x, y = chart.x_scale, chart.y_scale
    floor = chart.dimensions.bounded_height
    out: list[BarGeometry] = []
    for i, b in enumerate(chart.bins):
        left = x.apply(b.x0)
        right = x.apply(b.x1)
        top = y.apply(BIN_COUNT(b))
        out.append(
            BarGeometry(
                bin_index=i,
                x=left + padding / 2.0,
                y=top,
                width=max(0.0, right - left - padding),
                height=floor - top,
                label_x=left + (right - left) / 2.0,
                label_y=top - BAR_LABEL_OFFSET,
                count=b.count,
            )
        )
    return tuple(out)


def mean_line_x(chart: HistogramChart) -> float:
    return float(chart.x_scale.apply(chart.mean))


def line_points(chart: TimelineChart) -> np.ndarray:
    """Polyline vertices in record order, skipping records without both values."""

    assert chart.config.y is not None
    xs = accessor_values(chart.records, chart.config.x.accessor)
    ys = accessor_values(chart.records, chart.config.y.accessor)
    keep = np.isfinite(xs) & np.isfinite(ys)
    return np.column_stack((chart.x_scale.apply(xs[keep]), chart.y_scale.apply(ys[keep])))


def threshold_band(chart: TimelineChart, value: float = FREEZING_POINT_F) -> Band:
    """Band from `value` down to the bottom of the plot (e.g. freezing and below)."""

    dims = chart.dimensions
    top = min(max(float(chart.y_scale.apply(value)), 0.0), dims.bounded_height)
    return Band(x=0.0, y=top, width=dims.bounded_width, height=dims.bounded_height - top)


def point_colors(chart: ScatterChart) -> tuple[tuple[int, int, int, int], ...]:
    if chart.color_scale is None or chart.config.color is None:
        return ()
    values = accessor_values(chart.records, chart.config.color.accessor)
    lo = chart.color_scale.domain[0]
    out = []
    for record_idx in chart.point_records.tolist():
        v = values[record_idx]
        out.append(chart.color_scale.apply(v if math.isfinite(v) else lo))
    return tuple(out)


def _linear_scale(records: Sequence[Any], axis: AxisConfig, default_range: tuple[float, float]) -> LinearScale:
    domain = _numeric_domain(_resolve_domain(records, axis))
    return make_linear_scale(domain, axis.range or default_range, nice=axis.nice)


def _resolve_domain(records: Sequence[Any], axis: AxisConfig) -> tuple[Any, Any]:
    if axis.domain != "auto":
        lo, hi = (_domain_value(v, axis.accessor) for v in axis.domain)
        if to_ordinal(lo) == to_ordinal(hi):
            raise DegenerateDomainError(f"configured domain for `{axis.accessor.name}` is a single value")
        return (lo, hi)
    domain = extent(records, axis.accessor)
    if to_ordinal(domain[0]) == to_ordinal(domain[1]):
        LOGGER.warning("`%s` has a single value; widening its domain", axis.accessor.name)
        domain = expand_degenerate(domain)
    return domain


def _domain_value(value: Any, accessor: Accessor) -> Any:
    if not is_temporal(accessor):
        return float(value)
    if isinstance(value, dt.datetime):
        return value
    if isinstance(value, dt.date):
        return dt.datetime(value.year, value.month, value.day)
    parsed = accessor({accessor.field: value})  # type: ignore[attr-defined]
    if parsed is None:
        raise PlotDataError(f"cannot parse domain value {value!r} for `{accessor.name}`")
    return parsed


def _numeric_domain(domain: tuple[Any, Any]) -> tuple[float, float]:
    return (to_ordinal(domain[0]), to_ordinal(domain[1]))
