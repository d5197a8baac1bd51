from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Literal, Mapping, Union


EventType = Literal["pointer_move", "pointer_leave", "viewport_resize"]


@dataclass(frozen=True)
class PointerMove:
    """Pointer position in bounded-area pixels (origin at the plot's top-left)."""

    x: float
    y: float


@dataclass(frozen=True)
class PointerLeave:
    pass


@dataclass(frozen=True)
class ViewportResize:
    width: float
    height: float

    def __post_init__(self) -> None:
        if not (math.isfinite(self.width) and math.isfinite(self.height)):
            raise ValueError("viewport width/height must be finite")
        if self.width <= 0 or self.height <= 0:
            raise ValueError("viewport width/height must be > 0")


ChartEvent = Union[PointerMove, PointerLeave, ViewportResize]


def parse_event(event_type: str, payload: object = None) -> ChartEvent | None:
    """Typed chart event from a renderer's `(type, payload)` pair.

    Unknown types and malformed payloads yield None so a renderer can forward
    every UI event without pre-filtering.
    """

    if event_type == "pointer_leave":
        return PointerLeave()
    if not isinstance(payload, Mapping):
        return None
    try:
        if event_type == "pointer_move":
            x, y = float(payload["x"]), float(payload["y"])
            if not (math.isfinite(x) and math.isfinite(y)):
                return None
            return PointerMove(x=x, y=y)
        if event_type == "viewport_resize":
            return ViewportResize(width=float(payload["width"]), height=float(payload["height"]))
    except (KeyError, TypeError, ValueError):
        return None
    return None
