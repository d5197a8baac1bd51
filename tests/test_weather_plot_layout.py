from __future__ import annotations

import unittest

import numpy as np

from weather_plot.errors import InvalidLayoutError
from weather_plot.layout import (
    Dimensions,
    Margins,
    compute_dimensions,
    fixed_aspect_size,
    square_size,
    viewport_fraction_size,
)


class LayoutTests(unittest.TestCase):
    def test_bounded_area_subtracts_margins(self) -> None:
        dims = compute_dimensions(600, 360, Margins(top=30, right=10, bottom=60, left=60))
        self.assertEqual((dims.bounded_width, dims.bounded_height), (530.0, 270.0))
        self.assertEqual(dims.bounds, (0.0, 0.0, 530.0, 270.0))

    def test_margins_mapping_is_accepted(self) -> None:
        dims = compute_dimensions(400, 400, {"top": 10, "right": 10, "bottom": 80, "left": 80})
        self.assertEqual((dims.bounded_width, dims.bounded_height), (310.0, 310.0))

    def test_margins_exceeding_size_raise(self) -> None:
        with self.assertRaises(InvalidLayoutError):
            compute_dimensions(100, 300, Margins(left=60, right=40))
        with self.assertRaises(InvalidLayoutError):
            compute_dimensions(300, 50, Margins(top=30, bottom=30))

    def test_bad_margins_rejected(self) -> None:
        with self.assertRaises(InvalidLayoutError):
            Margins(top=-1)
        with self.assertRaises(InvalidLayoutError):
            Margins.from_mapping({"top": 1, "middle": 2})

    def test_resize_keeps_positive_area_or_raises(self) -> None:
        rng = np.random.default_rng(11)
        margins = Margins(top=15, right=15, bottom=40, left=60)
        for width, height in rng.uniform(0, 400, size=(300, 2)):
            if width > 75 and height > 55:
                dims = compute_dimensions(width, height, margins)
                self.assertGreater(dims.bounded_width, 0)
                self.assertGreater(dims.bounded_height, 0)
                self.assertAlmostEqual(dims.bounded_width, width - 75)
            else:
                with self.assertRaises(InvalidLayoutError):
                    compute_dimensions(width, height, margins)

    def test_dimensions_enforce_bounded_area(self) -> None:
        margins = Margins(top=10, right=10, bottom=20, left=20)
        dims = Dimensions(width=200, height=100, margins=margins, bounded_width=170, bounded_height=70)
        self.assertEqual(dims, compute_dimensions(200, 100, margins))
        with self.assertRaises(InvalidLayoutError):
            Dimensions(width=200, height=100, margins=margins, bounded_width=150, bounded_height=70)
        with self.assertRaises(InvalidLayoutError):
            Dimensions(width=200, height=100, margins=margins, bounded_width=170, bounded_height=90)
        with self.assertRaises(InvalidLayoutError):
            Dimensions(width=30, height=100, margins=margins, bounded_width=0, bounded_height=70)
        with self.assertRaises(InvalidLayoutError):
            Dimensions(width=float("inf"), height=100, margins=margins, bounded_width=float("inf"), bounded_height=70)

    def test_coordinate_helpers(self) -> None:
        dims = compute_dimensions(200, 100, Margins(top=5, right=5, bottom=15, left=20))
        self.assertEqual(dims.to_wrapper((10, 10)), (30.0, 15.0))
        self.assertEqual(dims.to_bounds((30, 15)), (10.0, 10.0))
        self.assertTrue(dims.contains((0, 0)))
        self.assertFalse(dims.contains((176, 10)))
        self.assertEqual(dims.clamp((-5, 500)), (0.0, 80.0))

    def test_sizing_policies(self) -> None:
        self.assertEqual(fixed_aspect_size(600), (600.0, 360.0))
        self.assertEqual(viewport_fraction_size(1000), (900.0, 400.0))
        self.assertEqual(square_size(1000, 800), (640.0, 640.0))
        with self.assertRaises(InvalidLayoutError):
            square_size(0, 800)


if __name__ == "__main__":
    unittest.main()
