from __future__ import annotations

import datetime as dt

from weather_plot.scales import format_tick


def format_date(value: dt.datetime | dt.date) -> str:
    """Long date such as `January Friday 1, 2016`."""

    return f"{value:%B %A} {value.day}, {value.year}"


def format_temperature(value: float) -> str:
    return f"{float(value):.1f} °F"


def format_bin_range(x0: float, x1: float) -> str:
    return f"{format_tick(x0)} - {format_tick(x1)}"


def format_number(value: float) -> str:
    return format_tick(float(value))
