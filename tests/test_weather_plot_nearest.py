from __future__ import annotations

import datetime as dt
import unittest

import numpy as np

from weather_plot.accessors import DATE, HUMIDITY
from weather_plot.errors import EmptyDomainError, InvalidLayoutError, OutOfRangeQuery, PlotDataError
from weather_plot.layout import Margins, compute_dimensions
from weather_plot.nearest import (
    AxisIndex,
    brute_force_nearest,
    build_axis_index,
    build_planar_index,
    nearest_by_axis,
)


def _polygon_area(poly: np.ndarray) -> float:
    if poly.shape[0] < 3:
        return 0.0
    x = poly[:, 0]
    y = poly[:, 1]
    return 0.5 * abs(float(np.dot(x, np.roll(y, -1)) - np.dot(y, np.roll(x, -1))))


class NearestByAxisTests(unittest.TestCase):
    def test_matches_brute_force_search(self) -> None:
        rng = np.random.default_rng(5)
        values = rng.uniform(0.0, 100.0, size=150)
        records = [{"humidity": float(v)} for v in values]
        for query in rng.uniform(-10.0, 110.0, size=200):
            distances = [abs(float(v) - query) for v in values]
            expected = min(range(len(distances)), key=lambda i: (distances[i], i))
            self.assertEqual(nearest_by_axis(records, HUMIDITY, float(query)), expected)

    def test_ties_resolve_to_lowest_index(self) -> None:
        records = [{"humidity": v} for v in (1.0, 3.0, 3.0, 5.0)]
        self.assertEqual(nearest_by_axis(records, HUMIDITY, 3.0), 1)
        self.assertEqual(nearest_by_axis(records, HUMIDITY, 2.0), 0)
        self.assertEqual(nearest_by_axis(records, HUMIDITY, 4.0), 1)

    def test_undefined_values_never_win(self) -> None:
        records = [{"humidity": None}, {"humidity": 5.0}, {}, {"humidity": 1.0}]
        self.assertEqual(nearest_by_axis(records, HUMIDITY, 0.0), 3)
        with self.assertRaises(EmptyDomainError):
            nearest_by_axis([{"humidity": None}], HUMIDITY, 0.0)

    def test_dates_compare_by_elapsed_time(self) -> None:
        records = [{"date": "2016-01-01"}, {"date": "2016-01-05"}, {"date": "2016-01-09"}]
        self.assertEqual(nearest_by_axis(records, DATE, dt.datetime(2016, 1, 6, 3)), 1)
        self.assertEqual(nearest_by_axis(records, DATE, dt.datetime(2016, 1, 8)), 2)

    def test_undefined_query_rejected(self) -> None:
        with self.assertRaises(PlotDataError):
            nearest_by_axis([{"humidity": 1.0}], HUMIDITY, None)

    def test_infinite_query_picks_axis_extreme(self) -> None:
        records = [{"humidity": v} for v in (30.0, None, 90.0, 10.0, 90.0)]
        self.assertEqual(nearest_by_axis(records, HUMIDITY, float("inf")), 2)
        self.assertEqual(nearest_by_axis(records, HUMIDITY, float("-inf")), 3)

    def test_axis_index_is_reusable(self) -> None:
        index = build_axis_index([{"humidity": v} for v in (10.0, 20.0, 30.0)], HUMIDITY)
        self.assertEqual(len(index), 3)
        self.assertEqual(index.nearest(24.0), 1)
        self.assertEqual(index.nearest(26.0), 2)
        with self.assertRaises(ValueError):
            index.values[0] = 1.0
        with self.assertRaises(EmptyDomainError):
            AxisIndex(values=np.asarray([np.nan, np.nan]))


class PlanarIndexTests(unittest.TestCase):
    def test_three_point_scenario(self) -> None:
        points = [(0.0, 0.0), (10.0, 0.0), (5.0, 10.0)]
        index = build_planar_index(points, (10.0, 10.0))
        self.assertEqual(index.region_at((4.0, 1.0)), 0)
        self.assertEqual(index.region_at((4.0, 1.0)), brute_force_nearest(points, (4.0, 1.0)))
        self.assertEqual(index.region_at((9.0, 1.0)), 1)
        self.assertEqual(index.region_at((5.0, 9.0)), 2)

    def test_matches_brute_force_inside_bounds(self) -> None:
        rng = np.random.default_rng(21)
        dims = compute_dimensions(640, 640, Margins(top=10, right=10, bottom=80, left=80))
        points = np.column_stack(
            (rng.uniform(0, dims.bounded_width, 300), rng.uniform(0, dims.bounded_height, 300))
        )
        index = build_planar_index(points, dims)
        queries = np.column_stack(
            (rng.uniform(0, dims.bounded_width, 500), rng.uniform(0, dims.bounded_height, 500))
        )
        for q in queries:
            self.assertEqual(index.nearest(q), brute_force_nearest(points, q))

    def test_cells_partition_the_bounded_rectangle(self) -> None:
        rng = np.random.default_rng(8)
        points = rng.uniform(0, 200, size=(60, 2))
        index = build_planar_index(points, (200.0, 200.0))
        total = sum(_polygon_area(cell) for cell in index.cells())
        self.assertAlmostEqual(total, 200.0 * 200.0, delta=1e-6 * 200.0 * 200.0)
        for i, cell in enumerate(index.cells()):
            self.assertGreaterEqual(cell.shape[0], 3)
            centroid = cell.mean(axis=0)
            self.assertEqual(index.region_at(centroid), i)

    def test_duplicate_points_resolve_to_first_occurrence(self) -> None:
        points = [(1.0, 1.0), (1.0, 1.0), (5.0, 5.0)]
        index = build_planar_index(points, (10.0, 10.0))
        self.assertEqual(index.region_at((1.0, 1.0)), 0)
        self.assertEqual(index.region_at((0.0, 2.0)), 0)
        self.assertEqual(index.cell(1).shape, (0, 2))
        self.assertGreater(_polygon_area(index.cell(0)), 0.0)

    def test_equidistant_sites_resolve_to_lowest_index(self) -> None:
        index = build_planar_index([(8.0, 5.0), (2.0, 5.0)], (10.0, 10.0))
        self.assertEqual(index.region_at((5.0, 5.0)), 0)

    def test_collinear_points_still_index(self) -> None:
        points = [(0.0, 5.0), (5.0, 5.0), (10.0, 5.0), (15.0, 5.0)]
        index = build_planar_index(points, (20.0, 10.0))
        self.assertEqual(index.region_at((6.0, 0.0)), 1)
        self.assertEqual(index.region_at((19.0, 9.0)), 3)
        total = sum(_polygon_area(cell) for cell in index.cells())
        self.assertAlmostEqual(total, 200.0, places=6)

    def test_single_point(self) -> None:
        index = build_planar_index([(3.0, 4.0)], (10.0, 10.0))
        self.assertEqual(index.region_at((9.0, 9.0)), 0)
        self.assertAlmostEqual(_polygon_area(index.cell(0)), 100.0)

    def test_out_of_bounds_queries_clamp_to_boundary(self) -> None:
        index = build_planar_index([(1.0, 1.0), (9.0, 9.0)], (10.0, 10.0))
        self.assertEqual(index.region_at((100.0, 100.0)), 1)
        self.assertEqual(index.region_at((-50.0, -3.0)), 0)
        with self.assertRaises(OutOfRangeQuery):
            index.region_at((100.0, 100.0), strict=True)

    def test_infinite_queries_clamp_to_boundary(self) -> None:
        index = build_planar_index([(1.0, 1.0), (9.0, 9.0), (9.0, 1.0)], (10.0, 10.0))
        inf = float("inf")
        self.assertEqual(index.region_at((inf, 5.0)), index.region_at((10.0, 5.0)))
        self.assertEqual(index.region_at((-inf, -inf)), 0)
        self.assertEqual(index.region_at((inf, inf)), 1)
        with self.assertRaises(OutOfRangeQuery):
            index.region_at((inf, 5.0), strict=True)

    def test_invalid_input(self) -> None:
        with self.assertRaises(PlotDataError):
            build_planar_index([], (10.0, 10.0))
        with self.assertRaises(PlotDataError):
            build_planar_index([(1.0, 2.0, 3.0)], (10.0, 10.0))
        with self.assertRaises(InvalidLayoutError):
            build_planar_index([(1.0, 2.0)], (0.0, 10.0))
        index = build_planar_index([(1.0, 2.0)], (10.0, 10.0))
        with self.assertRaises(PlotDataError):
            index.region_at((float("nan"), 1.0))
        with self.assertRaises(IndexError):
            index.cell(3)


if __name__ == "__main__":
    unittest.main()
