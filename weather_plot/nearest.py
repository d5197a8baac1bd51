from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Any, Sequence

import numpy as np
from scipy.spatial import Delaunay, QhullError, cKDTree

from weather_plot.accessors import Accessor, accessor_values, to_ordinal
from weather_plot.adapters.records import coerce_points, coerce_values
from weather_plot.errors import EmptyDomainError, InvalidLayoutError, OutOfRangeQuery, PlotDataError
from weather_plot.layout import Dimensions


LOGGER = logging.getLogger(__name__)

Bounds = tuple[float, float, float, float]

# Relative slack used to collect sites that tie with the nearest one.
_TIE_RTOL = 1e-9


def nearest_by_axis(records: Sequence[Any], accessor: Accessor, query_value: Any) -> int:
    """Index of the record whose accessor value is closest to `query_value`.

    Linear scan; equal distances resolve to the lowest index and records with
    undefined values never win. Temporal values compare in elapsed seconds.
    """

    return nearest_value_index(accessor_values(records, accessor), query_value)


def nearest_value_index(values: Any, query_value: Any) -> int:
    arr = coerce_values(values)
    if isinstance(query_value, (int, float, np.floating)) and math.isinf(query_value):
        query = float(query_value)
    else:
        query = to_ordinal(query_value)
    if math.isnan(query):
        raise PlotDataError(f"query value must be defined: {query_value!r}")
    defined = np.isfinite(arr)
    if not np.any(defined):
        raise EmptyDomainError("no defined values to search")
    if math.isinf(query):
        # Past either end of the axis: the extreme value is the nearest one.
        query = float(np.max(arr[defined]) if query > 0 else np.min(arr[defined]))
    distances = np.full(arr.shape, np.inf, dtype=np.float64)
    distances[defined] = np.abs(arr[defined] - query)
    # argmin returns the first occurrence of the minimum.
    return int(np.argmin(distances))


@dataclass(frozen=True, eq=False)
class AxisIndex:
    """1-D nearest lookup over one accessor column (time-series hover)."""

    values: np.ndarray

    def __post_init__(self) -> None:
        arr = coerce_values(self.values).copy()
        if not np.any(np.isfinite(arr)):
            raise EmptyDomainError("no defined values to index")
        arr.setflags(write=False)
        object.__setattr__(self, "values", arr)

    def __len__(self) -> int:
        return int(self.values.size)

    def nearest(self, query_value: Any) -> int:
        return nearest_value_index(self.values, query_value)


def build_axis_index(records: Sequence[Any], accessor: Accessor) -> AxisIndex:
    return AxisIndex(values=accessor_values(records, accessor))


@dataclass(frozen=True, eq=False)
class PlanarIndex:
    """Voronoi subdivision of projected points, clipped to a rectangle.

    `region_at` answers which cell holds a pixel position through a k-d tree
    over the distinct sites, which is the same question as "which site is
    nearest". Cell polygons are kept for renderers that draw hover regions.
    """

    points: np.ndarray
    bounds: Bounds
    owners: np.ndarray
    tree: cKDTree
    polygons: tuple[np.ndarray, ...]

    def __len__(self) -> int:
        return int(self.points.shape[0])

    def region_at(self, point: Sequence[float], *, strict: bool = False) -> int:
        qx, qy = _query_point(point)
        x0, y0, x1, y1 = self.bounds
        if not (x0 <= qx <= x1 and y0 <= qy <= y1):
            if strict:
                raise OutOfRangeQuery(f"query ({qx:g}, {qy:g}) lies outside bounds {self.bounds}")
            LOGGER.debug("clamping out-of-bounds query (%g, %g) onto %s", qx, qy, self.bounds)
            qx = min(max(qx, x0), x1)
            qy = min(max(qy, y0), y1)

        dist, site = self.tree.query((qx, qy))
        if not math.isfinite(dist):
            raise EmptyDomainError("planar index holds no sites")
        candidates = self.tree.query_ball_point((qx, qy), r=float(dist) * (1.0 + _TIE_RTOL) + 1e-12)
        if not candidates:
            candidates = [int(site)]
        return int(min(int(self.owners[c]) for c in candidates))

    nearest = region_at

    def cell(self, index: int) -> np.ndarray:
        """Clipped cell polygon for a record as an (m, 2) vertex array.

        Later duplicates of an earlier point own no area and return an empty
        array.
        """

        if index < 0 or index >= len(self):
            raise IndexError(f"record index out of range: {index}")
        return self.polygons[index]

    def cells(self) -> tuple[np.ndarray, ...]:
        return self.polygons


def build_planar_index(points: Any, bounds: Dimensions | Sequence[float]) -> PlanarIndex:
    pts = coerce_points(points).copy()
    rect = _resolve_bounds(bounds)

    _, first = np.unique(pts, axis=0, return_index=True)
    owners = np.sort(first)
    sites = pts[owners]
    tree = cKDTree(sites)
    neighbors = _site_neighbors(sites)

    empty = np.empty((0, 2), dtype=np.float64)
    polygons: list[np.ndarray] = [empty] * pts.shape[0]
    for site_idx, record_idx in enumerate(owners.tolist()):
        polygons[record_idx] = _clip_cell(sites, site_idx, neighbors[site_idx], rect)

    pts.setflags(write=False)
    owners.setflags(write=False)
    LOGGER.debug("built planar index: %d points, %d distinct sites", pts.shape[0], sites.shape[0])
    return PlanarIndex(points=pts, bounds=rect, owners=owners, tree=tree, polygons=tuple(polygons))


def brute_force_nearest(points: Any, point: Sequence[float]) -> int:
    """Reference O(n) nearest-point search in 2-D pixel space."""

    pts = coerce_points(points)
    qx, qy = _query_point(point)
    d2 = (pts[:, 0] - qx) ** 2 + (pts[:, 1] - qy) ** 2
    return int(np.argmin(d2))


def _site_neighbors(sites: np.ndarray) -> list[np.ndarray]:
    count = sites.shape[0]
    everyone = np.arange(count)
    fallback = [everyone[everyone != i] for i in range(count)]
    if count < 4:
        return fallback
    try:
        tri = Delaunay(sites)
    except QhullError:
        # Collinear sites have no triangulation; compare against all of them.
        LOGGER.debug("delaunay failed for %d sites; using all-pairs neighbours", count)
        return fallback
    indptr, indices = tri.vertex_neighbor_vertices
    out: list[np.ndarray] = []
    for i in range(count):
        adj = indices[indptr[i] : indptr[i + 1]]
        out.append(adj if adj.size else fallback[i])
    return out


def _clip_cell(sites: np.ndarray, i: int, neighbors: np.ndarray, rect: Bounds) -> np.ndarray:
    x0, y0, x1, y1 = rect
    poly = [(x0, y0), (x1, y0), (x1, y1), (x0, y1)]
    px, py = sites[i]
    for j in neighbors.tolist():
        qx, qy = sites[j]
        # Keep the side of the bisector closer to site i: n . p <= c.
        nx, ny = qx - px, qy - py
        c = (nx * (px + qx) + ny * (py + qy)) / 2.0
        poly = _clip_half_plane(poly, nx, ny, c)
        if not poly:
            break
    return np.asarray(poly, dtype=np.float64).reshape(-1, 2)


def _clip_half_plane(
    poly: list[tuple[float, float]], nx: float, ny: float, c: float
) -> list[tuple[float, float]]:
    out: list[tuple[float, float]] = []
    n = len(poly)
    for k in range(n):
        ax, ay = poly[k]
        bx, by = poly[(k + 1) % n]
        da = nx * ax + ny * ay - c
        db = nx * bx + ny * by - c
        if da <= 0:
            out.append((ax, ay))
        if (da < 0 < db) or (db < 0 < da):
            t = da / (da - db)
            out.append((ax + t * (bx - ax), ay + t * (by - ay)))
    return out


def _resolve_bounds(bounds: Dimensions | Sequence[float]) -> Bounds:
    if isinstance(bounds, Dimensions):
        return bounds.bounds
    if len(bounds) == 2:
        x0, y0, x1, y1 = 0.0, 0.0, float(bounds[0]), float(bounds[1])
    elif len(bounds) == 4:
        x0, y0, x1, y1 = (float(v) for v in bounds)
    else:
        raise InvalidLayoutError("bounds must be (width, height) or (x0, y0, x1, y1)")
    if not all(math.isfinite(v) for v in (x0, y0, x1, y1)) or x1 <= x0 or y1 <= y0:
        raise InvalidLayoutError(f"bounds must describe a non-empty rectangle: {(x0, y0, x1, y1)}")
    return (x0, y0, x1, y1)


def _query_point(point: Sequence[float]) -> tuple[float, float]:
    if len(point) != 2:
        raise PlotDataError("query point must be an (x, y) pair")
    qx, qy = float(point[0]), float(point[1])
    # Infinite coordinates clamp onto the bounds like any other far-away query.
    if math.isnan(qx) or math.isnan(qy):
        raise PlotDataError(f"query point must be defined: {tuple(point)!r}")
    return (qx, qy)
