from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Sequence

import numpy as np

from weather_plot.accessors import Accessor, accessor_values
from weather_plot.errors import DegenerateDomainError, EmptyDomainError, PlotDataError
from weather_plot.scales import nice_step


DEFAULT_THRESHOLD_COUNT = 12


@dataclass(frozen=True)
class Bin:
    """One histogram bucket covering `[x0, x1)` (the last bucket is closed)."""

    x0: float
    x1: float
    members: tuple[Any, ...] = ()
    indices: tuple[int, ...] = ()

    def __len__(self) -> int:
        return len(self.members)

    @property
    def count(self) -> int:
        return len(self.members)

    @property
    def midpoint(self) -> float:
        return (self.x0 + self.x1) / 2.0

    def contains(self, value: float, *, last: bool = False) -> bool:
        if last:
            return self.x0 <= value <= self.x1
        return self.x0 <= value < self.x1


def uniform_thresholds(domain: Sequence[float], threshold_count: int) -> np.ndarray:
    """Interior boundaries from `threshold_count` evenly spaced points.

    The points span the domain inclusive of both ends; those that land on or
    beyond the domain edges do not split anything and are dropped.
    """

    lo, hi = _checked_domain(domain)
    _check_count(threshold_count)
    points = np.linspace(lo, hi, threshold_count, dtype=np.float64)
    return points[(points > lo) & (points < hi)]


def nice_thresholds(domain: Sequence[float], threshold_count: int) -> np.ndarray:
    """Interior boundaries at multiples of a nice step near `span / threshold_count`."""

    lo, hi = _checked_domain(domain)
    _check_count(threshold_count)
    step = nice_step(hi - lo, threshold_count)
    if step < 1.0:
        # Divide by the inverse so sub-unit multiples stay exact.
        inv = round(1.0 / step)
        points = np.arange(math.ceil(lo * inv), math.floor(hi * inv) + 1, dtype=np.float64) / inv
    else:
        points = np.arange(math.ceil(lo / step), math.floor(hi / step) + 1, dtype=np.float64) * step
    return points[(points > lo) & (points < hi)]


def bin_records(
    records: Sequence[Any],
    accessor: Accessor,
    domain: Sequence[float],
    threshold_count: int = DEFAULT_THRESHOLD_COUNT,
    nice: bool = False,
) -> tuple[Bin, ...]:
    """Partition records into contiguous buckets over `domain`.

    Each defined in-domain value lands in exactly one bucket: intervals are
    left-closed and right-open, except the final one which also holds the
    domain maximum. Undefined and out-of-domain values are left out.
    """

    lo, hi = _checked_domain(domain)
    thresholds = nice_thresholds((lo, hi), threshold_count) if nice else uniform_thresholds((lo, hi), threshold_count)
    values = accessor_values(records, accessor)
    return _assign(records, values, lo, hi, thresholds)


def bin_values(values: Any, domain: Sequence[float], threshold_count: int = DEFAULT_THRESHOLD_COUNT, nice: bool = False) -> tuple[Bin, ...]:
    """Bucket a bare numeric column; members are the values themselves."""

    lo, hi = _checked_domain(domain)
    thresholds = nice_thresholds((lo, hi), threshold_count) if nice else uniform_thresholds((lo, hi), threshold_count)
    arr = np.asarray(values, dtype=np.float64)
    return _assign(arr.tolist(), arr, lo, hi, thresholds)


def bin_counts(bins: Sequence[Bin]) -> np.ndarray:
    return np.asarray([b.count for b in bins], dtype=np.int64)


def max_bin_count(bins: Sequence[Bin]) -> int:
    if not bins:
        raise EmptyDomainError("no bins")
    return int(max(b.count for b in bins))


def bin_index_for(bins: Sequence[Bin], value: float) -> int | None:
    """Index of the bin holding `value`, or None outside the binned domain."""

    if not bins or value is None or not math.isfinite(value):
        return None
    edges = np.asarray([b.x0 for b in bins[1:]], dtype=np.float64)
    if value < bins[0].x0 or value > bins[-1].x1:
        return None
    return int(np.searchsorted(edges, value, side="right"))


def mean_value(records: Sequence[Any], accessor: Accessor) -> float:
    values = accessor_values(records, accessor)
    finite = values[np.isfinite(values)]
    if finite.size == 0:
        raise EmptyDomainError(f"no defined values for accessor `{getattr(accessor, 'name', accessor)}`")
    return float(np.mean(finite))


def _assign(records: Sequence[Any], values: np.ndarray, lo: float, hi: float, thresholds: np.ndarray) -> tuple[Bin, ...]:
    edges = np.concatenate(([lo], thresholds, [hi]))
    in_domain = np.isfinite(values) & (values >= lo) & (values <= hi)
    slots = np.full(values.shape, -1, dtype=np.int64)
    # side="right": a value equal to a threshold goes to the bin it starts.
    slots[in_domain] = np.searchsorted(thresholds, values[in_domain], side="right")

    bins: list[Bin] = []
    for i in range(edges.size - 1):
        idx = np.flatnonzero(slots == i)
        bins.append(
            Bin(
                x0=float(edges[i]),
                x1=float(edges[i + 1]),
                members=tuple(records[int(j)] for j in idx),
                indices=tuple(int(j) for j in idx),
            )
        )
    return tuple(bins)


def _checked_domain(domain: Sequence[float]) -> tuple[float, float]:
    if len(domain) != 2:
        raise PlotDataError("domain must be a two-element pair")
    lo, hi = float(domain[0]), float(domain[1])
    if not (math.isfinite(lo) and math.isfinite(hi)):
        raise PlotDataError("domain values must be finite")
    if lo > hi:
        lo, hi = hi, lo
    if lo == hi:
        raise DegenerateDomainError(f"cannot bin over a single-valued domain: {lo!r}")
    return (lo, hi)


def _check_count(threshold_count: int) -> None:
    if isinstance(threshold_count, bool) or int(threshold_count) != threshold_count or threshold_count <= 0:
        raise ValueError("threshold_count must be an integer > 0")
