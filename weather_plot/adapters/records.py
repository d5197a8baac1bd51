from __future__ import annotations

import json
import math
from collections.abc import Mapping, Sequence
from decimal import Decimal
from pathlib import Path
from typing import Any

import numpy as np

from weather_plot.errors import PlotDataError


try:
    import pandas as pd
except Exception:  # pragma: no cover - optional dependency
    pd = None  # type: ignore[assignment]

try:
    import torch
except Exception:  # pragma: no cover - optional dependency
    torch = None  # type: ignore[assignment]


def load_records(path: str | Path) -> tuple[dict[str, Any], ...]:
    """Read a JSON array of weather records."""

    with Path(path).open("r", encoding="utf-8") as f:
        raw = json.load(f)
    return coerce_records(raw)


def coerce_records(data: Any) -> tuple[dict[str, Any], ...]:
    """Normalize a dataset to a tuple of plain dicts, keeping row order."""

    if pd is not None and isinstance(data, pd.DataFrame):
        rows = data.to_dict(orient="records")
        return tuple({str(k): _scrub(v) for k, v in row.items()} for row in rows)

    if isinstance(data, Mapping) or not isinstance(data, Sequence) or isinstance(data, (str, bytes, bytearray)):
        raise PlotDataError(f"dataset must be a sequence of records, got {type(data)!r}")

    out: list[dict[str, Any]] = []
    for i, row in enumerate(data):
        if not isinstance(row, Mapping):
            raise PlotDataError(f"record {i} is not a mapping: {type(row)!r}")
        out.append({str(k): _scrub(v) for k, v in row.items()})
    return tuple(out)


def coerce_values(value: Any, *, label: str = "values") -> np.ndarray:
    """1-D float64 column from a sequence, ndarray, pandas Series or tensor."""

    if torch is not None and isinstance(value, torch.Tensor):
        tensor = value.detach()
        if tensor.ndim != 1:
            raise PlotDataError(f"{label} must be 1-D")
        if tensor.is_cuda:
            tensor = tensor.cpu()
        return tensor.to(torch.float64).numpy()

    if pd is not None and isinstance(value, pd.Series):
        return _coerce_ndarray(value.to_numpy(), label=label)

    if isinstance(value, np.ndarray):
        if value.ndim != 1:
            raise PlotDataError(f"{label} must be 1-D")
        return _coerce_ndarray(value, label=label)

    if isinstance(value, Sequence) and not isinstance(value, (str, bytes, bytearray)):
        return _coerce_ndarray(np.asarray(value, dtype=object), label=label)

    raise PlotDataError(f"unsupported {label} input type: {type(value)!r}")


def coerce_points(points: Any) -> np.ndarray:
    """(n, 2) float64 array of pixel positions."""

    if torch is not None and isinstance(points, torch.Tensor):
        tensor = points.detach()
        if tensor.is_cuda:
            tensor = tensor.cpu()
        arr = tensor.to(torch.float64).numpy()
    elif pd is not None and isinstance(points, pd.DataFrame):
        arr = points.to_numpy(dtype=np.float64)
    else:
        try:
            arr = np.asarray(points, dtype=np.float64)
        except (TypeError, ValueError) as exc:
            raise PlotDataError("points must be numeric (x, y) pairs") from exc
    if arr.size == 0:
        raise PlotDataError("points must not be empty")
    if arr.ndim != 2 or arr.shape[1] != 2:
        raise PlotDataError(f"points must have shape (n, 2), got {arr.shape}")
    if not np.all(np.isfinite(arr)):
        raise PlotDataError("points must be finite")
    return arr


def _scrub(value: Any) -> Any:
    if isinstance(value, float) and math.isnan(value):
        return None
    if isinstance(value, np.generic):
        value = value.item()
        if isinstance(value, float) and math.isnan(value):
            return None
    if pd is not None and value is pd.NaT:
        return None
    return value


def _coerce_ndarray(arr: np.ndarray, *, label: str) -> np.ndarray:
    if arr.dtype.kind in {"i", "u", "f", "b"}:
        return arr.astype(np.float64, copy=False)

    out = np.empty(arr.shape[0], dtype=np.float64)
    for i, raw in enumerate(arr.tolist()):
        if raw is None:
            out[i] = np.nan
            continue
        if isinstance(raw, Decimal):
            out[i] = float(raw)
            continue
        try:
            out[i] = float(raw)
        except (TypeError, ValueError) as exc:
            raise PlotDataError(f"{label} contains non-numeric value at index {i}: {raw!r}") from exc
    return out
