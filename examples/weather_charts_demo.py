from __future__ import annotations

import datetime as dt
import json
import math

from weather_plot import ChartSession, PointerMove, ViewportResize
from weather_plot.charts import bar_geometry
from weather_plot.config import default_histogram_config, default_scatter_config, default_timeline_config


def synthetic_year() -> list[dict[str, object]]:
    start = dt.date(2016, 1, 1)
    rows = []
    for day in range(366):
        season = math.sin((day - 100) / 366.0 * 2.0 * math.pi)
        rows.append(
            {
                "date": (start + dt.timedelta(days=day)).isoformat(),
                "temperatureMax": round(55.0 + 30.0 * season + 6.0 * math.sin(day * 1.7), 1),
                "dewPoint": round(38.0 + 22.0 * season + 5.0 * math.cos(day * 0.9), 1),
                "humidity": round(0.65 + 0.2 * math.sin(day * 0.37), 2),
                "cloudCover": round(0.5 + 0.5 * math.sin(day * 0.23), 2),
            }
        )
    return rows


def main() -> None:
    records = synthetic_year()

    histogram = ChartSession(records, default_histogram_config())
    tallest = max(bar_geometry(histogram.chart), key=lambda bar: bar.count)
    print("histogram:", histogram.dispatch(PointerMove(x=tallest.label_x, y=tallest.y + 1.0)))

    timeline = ChartSession(records, default_timeline_config(), 1280, 800)
    print("timeline:", timeline.dispatch(PointerMove(x=300.0, y=50.0)))
    timeline.dispatch(ViewportResize(width=900, height=800))
    print("timeline after resize:", timeline.dispatch(PointerMove(x=300.0, y=50.0)))

    scatter = ChartSession(records, default_scatter_config(), 900, 900)
    tooltip = scatter.dispatch(PointerMove(x=200.0, y=200.0))
    print("scatter:", json.dumps(dict(tooltip.fields) if tooltip else {}, ensure_ascii=False))


if __name__ == "__main__":
    main()
