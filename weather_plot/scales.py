from __future__ import annotations

import datetime as dt
import math
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from typing import Any, Sequence

import numpy as np

from weather_plot.accessors import Accessor, from_ordinal, to_ordinal
from weather_plot.errors import DegenerateDomainError, EmptyDomainError, PlotDataError


RGBA = tuple[int, int, int, int]

DEFAULT_NICE_COUNT = 10
DEFAULT_DEGENERATE_DAYS = 1.0


@dataclass(frozen=True)
class LinearScale:
    """Continuous numeric domain mapped onto a pixel range.

    The range may run in either direction; y scales usually map the domain
    minimum to the bottom edge, i.e. `range=(bounded_height, 0)`.
    """

    domain: tuple[float, float]
    range: tuple[float, float]

    def __post_init__(self) -> None:
        d0, d1 = _pair(self.domain, label="domain")
        r0, r1 = _pair(self.range, label="range")
        if d0 == d1:
            raise DegenerateDomainError(f"scale domain collapses to a single value: {d0!r}")
        object.__setattr__(self, "domain", (d0, d1))
        object.__setattr__(self, "range", (r0, r1))

    @property
    def invertible(self) -> bool:
        return self.range[0] != self.range[1]

    def apply(self, value: Any) -> Any:
        d0, d1 = self.domain
        r0, r1 = self.range
        if isinstance(value, np.ndarray):
            return r0 + (value.astype(np.float64, copy=False) - d0) / (d1 - d0) * (r1 - r0)
        return r0 + (float(value) - d0) / (d1 - d0) * (r1 - r0)

    __call__ = apply

    def invert(self, pixel: Any) -> Any:
        d0, d1 = self.domain
        r0, r1 = self.range
        if d0 == d1:
            raise DegenerateDomainError("cannot invert a scale with a degenerate domain")
        if r0 == r1:
            raise PlotDataError("cannot invert a scale with a zero-width range")
        if isinstance(pixel, np.ndarray):
            return d0 + (pixel.astype(np.float64, copy=False) - r0) / (r1 - r0) * (d1 - d0)
        return d0 + (float(pixel) - r0) / (r1 - r0) * (d1 - d0)

    def nice(self, count: int = DEFAULT_NICE_COUNT) -> "LinearScale":
        return LinearScale(domain=nice_domain(self.domain, count=count), range=self.range)

    def ticks(self, count: int = DEFAULT_NICE_COUNT) -> np.ndarray:
        lo, hi = sorted(self.domain)
        ticks = generate_nice_ticks(lo, hi, count)
        step = float(abs(ticks[1] - ticks[0])) if ticks.size > 1 else 1.0
        tol = step * 1e-9
        return ticks[(ticks >= lo - tol) & (ticks <= hi + tol)]

    def with_range(self, range_: Sequence[float]) -> "LinearScale":
        return LinearScale(domain=self.domain, range=tuple(range_))


@dataclass(frozen=True)
class TimeScale:
    """Temporal domain mapped onto a pixel range by elapsed-time ratio."""

    domain: tuple[dt.datetime, dt.datetime]
    range: tuple[float, float]
    _seconds: tuple[float, float] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        if len(self.domain) != 2:
            raise PlotDataError("domain must be a two-element pair")
        t0, t1 = (to_ordinal(v) for v in self.domain)
        if not (math.isfinite(t0) and math.isfinite(t1)):
            raise PlotDataError(f"domain must contain two datetimes: {self.domain!r}")
        if t0 == t1:
            raise DegenerateDomainError(f"time scale domain collapses to a single instant: {self.domain[0]!r}")
        r0, r1 = _pair(self.range, label="range")
        object.__setattr__(self, "domain", (from_ordinal(t0), from_ordinal(t1)))
        object.__setattr__(self, "range", (r0, r1))
        object.__setattr__(self, "_seconds", (t0, t1))

    @property
    def invertible(self) -> bool:
        return self.range[0] != self.range[1]

    def apply(self, value: Any) -> Any:
        """Pixel for a datetime, or for an array of POSIX seconds."""

        t0, t1 = self._seconds
        r0, r1 = self.range
        if isinstance(value, np.ndarray):
            return r0 + (value.astype(np.float64, copy=False) - t0) / (t1 - t0) * (r1 - r0)
        return r0 + (to_ordinal(value) - t0) / (t1 - t0) * (r1 - r0)

    __call__ = apply

    def invert(self, pixel: Any) -> Any:
        """Datetime for a pixel; arrays of pixels invert to POSIX seconds."""

        t0, t1 = self._seconds
        r0, r1 = self.range
        if t0 == t1:
            raise DegenerateDomainError("cannot invert a scale with a degenerate domain")
        if r0 == r1:
            raise PlotDataError("cannot invert a scale with a zero-width range")
        if isinstance(pixel, np.ndarray):
            return t0 + (pixel.astype(np.float64, copy=False) - r0) / (r1 - r0) * (t1 - t0)
        return from_ordinal(t0 + (float(pixel) - r0) / (r1 - r0) * (t1 - t0))

    def invert_seconds(self, pixel: float) -> float:
        t0, t1 = self._seconds
        r0, r1 = self.range
        if r0 == r1:
            raise PlotDataError("cannot invert a scale with a zero-width range")
        return t0 + (float(pixel) - r0) / (r1 - r0) * (t1 - t0)

    def with_range(self, range_: Sequence[float]) -> "TimeScale":
        return TimeScale(domain=self.domain, range=tuple(range_))


@dataclass(frozen=True)
class ColorScale:
    """Value mapped to an RGBA colour by per-channel interpolation."""

    domain: tuple[float, float]
    colors: tuple[RGBA, RGBA]

    def __post_init__(self) -> None:
        d0, d1 = _pair(self.domain, label="domain")
        if d0 == d1:
            raise DegenerateDomainError(f"color scale domain collapses to a single value: {d0!r}")
        if len(self.colors) != 2:
            raise PlotDataError("color scale needs exactly two endpoint colors")
        object.__setattr__(self, "domain", (d0, d1))
        object.__setattr__(self, "colors", (parse_color(self.colors[0]), parse_color(self.colors[1])))

    def apply(self, value: float) -> RGBA:
        d0, d1 = self.domain
        t = (float(value) - d0) / (d1 - d0)
        t = max(0.0, min(1.0, t))
        start, end = self.colors
        return tuple(int(round(a + (b - a) * t)) for a, b in zip(start, end))  # type: ignore[return-value]

    __call__ = apply


def make_linear_scale(
    domain: Sequence[float],
    range_: Sequence[float],
    nice: bool = False,
    *,
    nice_count: int = DEFAULT_NICE_COUNT,
) -> LinearScale:
    scale = LinearScale(domain=tuple(domain), range=tuple(range_))
    if nice:
        scale = scale.nice(nice_count)
    return scale


def make_time_scale(domain: Sequence[dt.datetime], range_: Sequence[float]) -> TimeScale:
    return TimeScale(domain=tuple(domain), range=tuple(range_))


def make_color_scale(domain: Sequence[float], colors: Sequence[Any]) -> ColorScale:
    return ColorScale(domain=tuple(domain), colors=tuple(colors))


def extent(records: Sequence[Any], accessor: Accessor) -> tuple[Any, Any]:
    """Minimum and maximum defined accessor value, in the accessor's own type."""

    lo = hi = None
    lo_key = hi_key = math.nan
    for record in records:
        value = accessor(record)
        key = to_ordinal(value)
        if math.isnan(key):
            continue
        if lo is None or key < lo_key:
            lo, lo_key = value, key
        if hi is None or key > hi_key:
            hi, hi_key = value, key
    if lo is None:
        raise EmptyDomainError(f"no defined values for accessor `{getattr(accessor, 'name', accessor)}`")
    return (lo, hi)


def expand_degenerate(domain: Sequence[Any], epsilon: float | None = None) -> tuple[Any, Any]:
    """Widen a single-valued domain so a scale can be built over it.

    Numeric domains grow by `epsilon` (default: 5% of the value, at least 1)
    on each side; temporal domains by `epsilon` seconds (default: one day).
    """

    d0, d1 = _pair_any(domain)
    if to_ordinal(d0) != to_ordinal(d1):
        return (d0, d1)
    if isinstance(d0, dt.datetime):
        delta = dt.timedelta(seconds=epsilon if epsilon is not None else DEFAULT_DEGENERATE_DAYS * 86400.0)
        return (d0 - delta, d1 + delta)
    value = float(d0)
    delta = epsilon if epsilon is not None else max(1.0, abs(value) * 0.05)
    return (value - delta, value + delta)


def nice_domain(domain: Sequence[float], count: int = DEFAULT_NICE_COUNT) -> tuple[float, float]:
    """Extend a domain outward to multiples of a nice step, keeping its direction."""

    if count <= 0:
        raise ValueError("count must be > 0")
    d0, d1 = _pair(domain, label="domain")
    reverse = d1 < d0
    start, stop = (d1, d0) if reverse else (d0, d1)
    if start == stop:
        return (d0, d1)

    prestep: float | None = None
    for _ in range(10):
        step = _nice_number((stop - start) / count, round_result=True)
        if step == prestep:
            break
        start = _floor_to_step(start, step)
        stop = _ceil_to_step(stop, step)
        prestep = step
    return (stop, start) if reverse else (start, stop)


def nice_step(span: float, count: int) -> float:
    if count <= 0:
        raise ValueError("count must be > 0")
    if span <= 0 or not math.isfinite(span):
        raise PlotDataError("span must be finite and > 0")
    return _nice_number(span / count, round_result=True)


def parse_color(color: Any) -> RGBA:
    if isinstance(color, str):
        raw = color.strip().lstrip("#")
        if len(raw) == 3:
            raw = "".join(ch * 2 for ch in raw)
        if len(raw) not in {6, 8}:
            raise PlotDataError(f"unsupported color notation: {color!r}")
        try:
            channels = [int(raw[i : i + 2], 16) for i in range(0, len(raw), 2)]
        except ValueError as exc:
            raise PlotDataError(f"unsupported color notation: {color!r}") from exc
        if len(channels) == 3:
            channels.append(255)
        return tuple(channels)  # type: ignore[return-value]
    values = tuple(int(c) for c in color)
    if len(values) == 3:
        return (*values, 255)  # type: ignore[return-value]
    if len(values) == 4:
        return values  # type: ignore[return-value]
    raise PlotDataError(f"unsupported color notation: {color!r}")


def generate_nice_ticks(vmin: float, vmax: float, target: int) -> np.ndarray:
    if target <= 0:
        raise ValueError("target must be > 0")
    if vmin == vmax:
        return np.asarray([vmin], dtype=np.float64)

    span = _nice_number(vmax - vmin, round_result=False)
    step = _nice_number(span / max(target - 1, 1), round_result=True)
    tick_min = np.floor(vmin / step) * step
    tick_max = np.ceil(vmax / step) * step

    ticks = np.arange(tick_min, tick_max + 0.5 * step, step, dtype=np.float64)
    # Normalize floating-point drift so values like -4.44e-16 become 0.
    ticks = np.rint(ticks / step) * step
    ticks[np.isclose(ticks, 0.0, rtol=0.0, atol=step * 1e-9)] = 0.0
    return ticks


def format_tick(value: float, *, step: float | None = None) -> str:
    if not np.isfinite(value):
        return str(value)
    if step is not None and np.isfinite(step) and step > 0 and abs(value) <= step * 1e-9:
        value = 0.0
    abs_v = abs(value)
    decimals = _decimals_from_step(step) if step is not None else 6
    if abs_v != 0 and (abs_v >= 1e6 or (step is not None and abs(step) < 1e-4) or abs_v < 1e-6):
        return f"{value:.4e}"

    d = Decimal(str(value))
    quant = Decimal("1").scaleb(-decimals)
    try:
        q = d.quantize(quant)
    except InvalidOperation:
        q = d
    out = format(q, "f")
    if "." in out:
        out = out.rstrip("0").rstrip(".")
    if out == "-0":
        out = "0"
    return out


def format_ticks_for_axis(ticks: np.ndarray) -> list[str]:
    if ticks.size == 0:
        return []
    if ticks.size == 1:
        return [format_tick(float(ticks[0]))]
    step = float(abs(ticks[1] - ticks[0]))
    return [format_tick(float(v), step=step) for v in ticks]


def _pair(values: Sequence[Any], *, label: str) -> tuple[float, float]:
    if len(values) != 2:
        raise PlotDataError(f"{label} must be a two-element pair")
    a, b = float(values[0]), float(values[1])
    if not (math.isfinite(a) and math.isfinite(b)):
        raise PlotDataError(f"{label} values must be finite: {tuple(values)!r}")
    return (a, b)


def _pair_any(values: Sequence[Any]) -> tuple[Any, Any]:
    if len(values) != 2:
        raise PlotDataError("domain must be a two-element pair")
    return (values[0], values[1])


def _floor_to_step(value: float, step: float) -> float:
    # Divide by the inverse for sub-unit steps so 0.1 multiples stay exact.
    if step < 1.0:
        inv = round(1.0 / step)
        return math.floor(value * inv) / inv
    return math.floor(value / step) * step


def _ceil_to_step(value: float, step: float) -> float:
    if step < 1.0:
        inv = round(1.0 / step)
        return math.ceil(value * inv) / inv
    return math.ceil(value / step) * step


def _nice_number(value: float, *, round_result: bool) -> float:
    exp = np.floor(np.log10(value))
    frac = value / (10**exp)

    if round_result:
        if frac < 1.5:
            nice_frac = 1.0
        elif frac < 3.0:
            nice_frac = 2.0
        elif frac < 7.0:
            nice_frac = 5.0
        else:
            nice_frac = 10.0
    else:
        if frac <= 1.0:
            nice_frac = 1.0
        elif frac <= 2.0:
            nice_frac = 2.0
        elif frac <= 5.0:
            nice_frac = 5.0
        else:
            nice_frac = 10.0

    return float(nice_frac * (10**exp))


def _decimals_from_step(step: float) -> int:
    if step <= 0 or not np.isfinite(step):
        return 6
    d = Decimal(str(step)).normalize()
    exp = d.as_tuple().exponent
    decimals = max(0, -int(exp))
    return min(12, decimals)
