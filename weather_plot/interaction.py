from __future__ import annotations

import datetime as dt
import logging
from dataclasses import dataclass
from typing import Any

from weather_plot.accessors import DATE, TEMPERATURE_MAX, Accessor, to_ordinal
from weather_plot.binning import bin_index_for
from weather_plot.charts import (
    BIN_COUNT,
    Chart,
    HistogramChart,
    ScatterChart,
    TimelineChart,
    build_chart,
    rebuild,
)
from weather_plot.config import ChartConfig
from weather_plot.events import ChartEvent, PointerLeave, PointerMove, ViewportResize
from weather_plot.formatting import format_bin_range, format_date, format_number, format_temperature
from weather_plot.scales import TimeScale


LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class Tooltip:
    """What a renderer needs to show a tooltip.

    `anchor` is in whole-chart pixels (margins included); `marker` is the
    highlighted datum in bounded-area pixels, or None for histogram bins.
    """

    kind: str
    index: int
    anchor: tuple[float, float]
    marker: tuple[float, float] | None
    fields: tuple[tuple[str, str], ...]

    def field(self, name: str) -> str | None:
        for key, value in self.fields:
            if key == name:
                return value
        return None


def handle_pointer(chart: Chart, event: PointerMove | PointerLeave) -> Tooltip | None:
    """Tooltip for a pointer event against one chart state, or None to hide it."""

    if isinstance(event, PointerLeave):
        return None
    if isinstance(chart, HistogramChart):
        return _histogram_tooltip(chart, event)
    if isinstance(chart, TimelineChart):
        return _timeline_tooltip(chart, event)
    return _scatter_tooltip(chart, event)


def handle_resize(chart: Chart, event: ViewportResize) -> Chart:
    return rebuild(chart, event.width, event.height)


class ChartSession:
    """Holds the current chart and swaps it wholesale on every resize.

    Pointer queries always run against the chart that was current when they
    arrived; a resize never patches dimensions, scales or indexes in place.
    """

    def __init__(self, records: Any, config: ChartConfig, viewport_width: float | None = None, viewport_height: float | None = None) -> None:
        self._chart = build_chart(records, config, viewport_width, viewport_height)
        self._tooltip: Tooltip | None = None

    @property
    def chart(self) -> Chart:
        return self._chart

    @property
    def tooltip(self) -> Tooltip | None:
        return self._tooltip

    def dispatch(self, event: ChartEvent) -> Tooltip | None:
        if isinstance(event, ViewportResize):
            self._chart = handle_resize(self._chart, event)
            self._tooltip = None
            LOGGER.debug(
                "resized to %gx%g (bounded %gx%g)",
                self._chart.dimensions.width,
                self._chart.dimensions.height,
                self._chart.dimensions.bounded_width,
                self._chart.dimensions.bounded_height,
            )
            return None
        self._tooltip = handle_pointer(self._chart, event)
        return self._tooltip


def _histogram_tooltip(chart: HistogramChart, event: PointerMove) -> Tooltip | None:
    if not chart.dimensions.contains((event.x, event.y)):
        return None
    value = chart.x_scale.invert(event.x)
    idx = bin_index_for(chart.bins, value)
    if idx is None:
        return None
    b = chart.bins[idx]
    left = chart.x_scale.apply(b.x0)
    right = chart.x_scale.apply(b.x1)
    top = chart.y_scale.apply(BIN_COUNT(b))
    return Tooltip(
        kind="histogram",
        index=idx,
        anchor=chart.dimensions.to_wrapper((left + (right - left) / 2.0, top)),
        marker=None,
        fields=(("range", format_bin_range(b.x0, b.x1)), ("count", str(b.count))),
    )


def _timeline_tooltip(chart: TimelineChart, event: PointerMove) -> Tooltip:
    assert chart.config.y is not None
    x = min(max(event.x, 0.0), chart.dimensions.bounded_width)
    if isinstance(chart.x_scale, TimeScale):
        hovered: Any = chart.x_scale.invert_seconds(x)
    else:
        hovered = chart.x_scale.invert(x)
    idx = chart.index.nearest(hovered)
    record = chart.records[idx]
    x_value = chart.config.x.accessor(record)
    y_value = chart.config.y.accessor(record)
    marker = (float(chart.x_scale.apply(x_value)), float(chart.y_scale.apply(y_value)))
    if isinstance(chart.x_scale, TimeScale):
        x_label = ("date", format_date(x_value))
    else:
        x_label = (chart.config.x.accessor.name, format_number(to_ordinal(x_value)))
    return Tooltip(
        kind="timeline",
        index=idx,
        anchor=chart.dimensions.to_wrapper(marker),
        marker=marker,
        fields=(x_label, _value_field(chart.config.y.accessor, record)),
    )


def _scatter_tooltip(chart: ScatterChart, event: PointerMove) -> Tooltip:
    assert chart.config.y is not None
    pos = chart.index.region_at((event.x, event.y))
    idx = int(chart.point_records[pos])
    record = chart.records[idx]
    marker = (float(chart.positions[pos, 0]), float(chart.positions[pos, 1]))
    fields: list[tuple[str, str]] = []
    day = DATE(record)
    if day is not None:
        fields.append(("date", format_date(day)))
    fields.append(_value_field(chart.config.y.accessor, record))
    fields.append(_value_field(chart.config.x.accessor, record))
    return Tooltip(
        kind="scatter",
        index=idx,
        anchor=chart.dimensions.to_wrapper(marker),
        marker=marker,
        fields=tuple(fields),
    )


def _value_field(accessor: Accessor, record: Any) -> tuple[str, str]:
    value = accessor(record)
    if value is None:
        return (accessor.name, "")
    if accessor == TEMPERATURE_MAX:
        return ("temperature", format_temperature(value))
    if isinstance(value, dt.datetime):
        return (accessor.name, format_date(value))
    return (accessor.name, format_number(to_ordinal(value)))
