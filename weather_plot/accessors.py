from __future__ import annotations

import datetime as dt
import math
from dataclasses import dataclass
from typing import Any, Callable, Mapping, Protocol, Sequence

import numpy as np

from weather_plot.errors import PlotDataError


Record = Mapping[str, Any]

DATE_FORMAT = "%Y-%m-%d"


class Accessor(Protocol):
    """Extracts the value one axis or encoding represents from a record."""

    name: str

    def __call__(self, record: Any) -> Any:
        ...


@dataclass(frozen=True)
class FieldAccessor:
    """Numeric field lookup. Missing, null and non-finite values read as None."""

    field: str
    label: str | None = None

    @property
    def name(self) -> str:
        return self.label or self.field

    def __call__(self, record: Record) -> float | None:
        raw = record.get(self.field)
        if raw is None or isinstance(raw, bool):
            return None
        try:
            value = float(raw)
        except (TypeError, ValueError):
            return None
        if not math.isfinite(value):
            return None
        return value


@dataclass(frozen=True)
class DateFieldAccessor:
    """`YYYY-MM-DD` string field parsed to a datetime."""

    field: str
    label: str | None = None
    date_format: str = DATE_FORMAT

    @property
    def name(self) -> str:
        return self.label or self.field

    def __call__(self, record: Record) -> dt.datetime | None:
        raw = record.get(self.field)
        if raw is None:
            return None
        if isinstance(raw, dt.datetime):
            return raw
        if isinstance(raw, dt.date):
            return dt.datetime(raw.year, raw.month, raw.day)
        try:
            return dt.datetime.strptime(str(raw), self.date_format)
        except ValueError:
            return None


@dataclass(frozen=True)
class BinCountAccessor:
    """Histogram y accessor: number of members in a bin."""

    name: str = "count"

    def __call__(self, record: Any) -> int:
        return len(record)


@dataclass(frozen=True)
class CallableAccessor:
    """Wraps an arbitrary pure function under an explicit name."""

    name: str
    func: Callable[[Any], Any]

    def __call__(self, record: Any) -> Any:
        return self.func(record)


HUMIDITY = FieldAccessor("humidity")
TEMPERATURE_MAX = FieldAccessor("temperatureMax")
DEW_POINT = FieldAccessor("dewPoint")
CLOUD_COVER = FieldAccessor("cloudCover")
DATE = DateFieldAccessor("date")

WEATHER_ACCESSORS: dict[str, Accessor] = {
    "humidity": HUMIDITY,
    "temperatureMax": TEMPERATURE_MAX,
    "dewPoint": DEW_POINT,
    "cloudCover": CLOUD_COVER,
    "date": DATE,
}


def accessor_for_field(field: str) -> Accessor:
    """Named weather accessor, or a numeric `FieldAccessor` for other fields."""

    if field in WEATHER_ACCESSORS:
        return WEATHER_ACCESSORS[field]
    if not field:
        raise PlotDataError("accessor field must be a non-empty string")
    return FieldAccessor(field)


def to_ordinal(value: Any) -> float:
    """Numeric position of a value on a continuous axis.

    Datetimes map to POSIX seconds (naive values are taken as UTC) so temporal
    and numeric values share one arithmetic. Undefined values map to NaN.
    """

    if value is None:
        return math.nan
    if isinstance(value, dt.datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=dt.timezone.utc)
        return value.timestamp()
    if isinstance(value, np.datetime64):
        if np.isnat(value):
            return math.nan
        return float(value.astype("datetime64[us]").astype(np.int64)) / 1e6
    try:
        out = float(value)
    except (TypeError, ValueError):
        return math.nan
    return out if math.isfinite(out) else math.nan


def from_ordinal(seconds: float) -> dt.datetime:
    return dt.datetime.fromtimestamp(seconds, tz=dt.timezone.utc).replace(tzinfo=None)


def accessor_values(records: Sequence[Any], accessor: Accessor) -> np.ndarray:
    """Float64 column of accessor values (NaN where undefined)."""

    out = np.empty(len(records), dtype=np.float64)
    for i, record in enumerate(records):
        out[i] = to_ordinal(accessor(record))
    return out


def is_temporal(accessor: Accessor) -> bool:
    return isinstance(accessor, DateFieldAccessor)
