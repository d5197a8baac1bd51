from __future__ import annotations

import argparse
import json
import logging
import tomllib
from dataclasses import replace
from pathlib import Path
from typing import Any

from weather_plot.adapters.records import load_records
from weather_plot.charts import HistogramChart, ScatterChart, TimelineChart, bar_geometry, build_chart, mean_line_x
from weather_plot.config import DEFAULT_CONFIGS, ChartConfig, load_chart_config
from weather_plot.errors import PlotDataError
from weather_plot.events import PointerMove
from weather_plot.interaction import handle_pointer


LOGGER = logging.getLogger(__name__)


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(prog="weather-plot")
    parser.add_argument("--log-level", default="WARNING", choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    sub = parser.add_subparsers(dest="command", required=True)

    hist = sub.add_parser("histogram", help="Print histogram bins and bar geometry as JSON.")
    _add_common(hist)
    hist.add_argument("--thresholds", type=int, default=None, help="Threshold count (default: config value).")

    near = sub.add_parser("nearest-date", help="Resolve a pointer x position on the time-series chart.")
    _add_common(near)
    near.add_argument("--x", type=float, required=True, help="Pointer x in bounded-area pixels.")

    hit = sub.add_parser("scatter-hit", help="Resolve a pointer position on the scatter plot.")
    _add_common(hit)
    hit.add_argument("--x", type=float, required=True)
    hit.add_argument("--y", type=float, required=True)
    args = parser.parse_args(argv)

    logging.basicConfig(level=getattr(logging, args.log_level), format="%(levelname)s %(name)s: %(message)s")

    kind = {"histogram": "histogram", "nearest-date": "timeline", "scatter-hit": "scatter"}[args.command]
    try:
        config = _resolve_config(kind, args)
        records = load_records(args.data)
        chart = build_chart(records, config, args.viewport_width, args.viewport_height)
        if args.command == "histogram":
            assert isinstance(chart, HistogramChart)
            payload = _histogram_payload(chart)
        else:
            assert isinstance(chart, (TimelineChart, ScatterChart))
            y = getattr(args, "y", 0.0)
            tooltip = handle_pointer(chart, PointerMove(x=args.x, y=y))
            payload = {
                "index": tooltip.index if tooltip else None,
                "anchor": list(tooltip.anchor) if tooltip else None,
                "marker": list(tooltip.marker) if tooltip and tooltip.marker else None,
                "fields": dict(tooltip.fields) if tooltip else {},
            }
    except (OSError, json.JSONDecodeError, tomllib.TOMLDecodeError, PlotDataError) as exc:
        LOGGER.error("%s", exc)
        return 1
    print(json.dumps(payload, indent=2, sort_keys=True))
    return 0


def _add_common(cmd: argparse.ArgumentParser) -> None:
    cmd.add_argument("data", type=Path, help="JSON array of weather records.")
    cmd.add_argument("--config", type=Path, default=None, help="TOML chart config.")
    cmd.add_argument("--viewport-width", type=float, default=None)
    cmd.add_argument("--viewport-height", type=float, default=None)


def _resolve_config(kind: str, args: argparse.Namespace) -> ChartConfig:
    config = load_chart_config(args.config) if args.config is not None else DEFAULT_CONFIGS[kind]()
    if config.kind != kind:
        raise PlotDataError(f"config describes a {config.kind} chart, expected {kind}")
    thresholds = getattr(args, "thresholds", None)
    if thresholds is not None:
        config = replace(config, threshold_count=thresholds)
    return config


def _histogram_payload(chart: HistogramChart) -> dict[str, Any]:
    dims = chart.dimensions
    return {
        "dimensions": {
            "width": dims.width,
            "height": dims.height,
            "bounded_width": dims.bounded_width,
            "bounded_height": dims.bounded_height,
        },
        "x_domain": list(chart.x_scale.domain),
        "y_domain": list(chart.y_scale.domain),
        "mean": chart.mean,
        "mean_x": mean_line_x(chart),
        "bins": [
            {"x0": b.x0, "x1": b.x1, "count": b.count, "indices": list(b.indices)}
            for b in chart.bins
        ],
        "bars": [
            {"x": bar.x, "y": bar.y, "width": bar.width, "height": bar.height}
            for bar in bar_geometry(chart)
        ],
    }
