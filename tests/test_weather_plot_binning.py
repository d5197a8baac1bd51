from __future__ import annotations

import unittest

import numpy as np

from weather_plot.accessors import HUMIDITY, BinCountAccessor
from weather_plot.binning import (
    bin_index_for,
    bin_records,
    bin_values,
    max_bin_count,
    mean_value,
    nice_thresholds,
    uniform_thresholds,
)
from weather_plot.errors import DegenerateDomainError, EmptyDomainError


def _humidity(values: list[float | None]) -> list[dict[str, float | None]]:
    return [{"humidity": v} for v in values]


class BinningTests(unittest.TestCase):
    def test_twelve_uniform_thresholds_place_value_in_expected_bin(self) -> None:
        bins = bin_records(_humidity([49.9]), HUMIDITY, (0, 100), 12)
        self.assertEqual(len(bins), 11)
        owners = [b for b in bins if b.count]
        self.assertEqual(len(owners), 1)
        self.assertAlmostEqual(owners[0].x0, 500.0 / 11.0)
        self.assertAlmostEqual(owners[0].x1, 600.0 / 11.0)

    def test_bins_are_contiguous_and_cover_domain(self) -> None:
        bins = bin_records(_humidity([1.0]), HUMIDITY, (0, 100), 12)
        self.assertEqual(bins[0].x0, 0.0)
        self.assertEqual(bins[-1].x1, 100.0)
        for left, right in zip(bins, bins[1:]):
            self.assertEqual(left.x1, right.x0)

    def test_boundary_values_go_to_the_bin_they_start(self) -> None:
        bins = bin_values([0.0, 3.0, 9.0, 10.0], (0, 10), 11)
        self.assertEqual(len(bins), 10)
        self.assertEqual(bins[0].members, (0.0,))
        self.assertEqual(bins[3].members, (3.0,))
        self.assertEqual(bins[2].count, 0)
        # The final bin is closed and also holds the domain maximum.
        self.assertEqual(bins[9].members, (9.0, 10.0))

    def test_undefined_and_out_of_domain_records_are_excluded(self) -> None:
        records = _humidity([None, 5.0, -1.0, 101.0]) + [{}, {"humidity": float("nan")}]
        bins = bin_records(records, HUMIDITY, (0, 100), 5)
        self.assertEqual(sum(b.count for b in bins), 1)
        self.assertEqual([i for b in bins for i in b.indices], [1])

    def test_binning_partitions_in_domain_records(self) -> None:
        rng = np.random.default_rng(3)
        for threshold_count in (1, 2, 5, 12, 40):
            raw = rng.uniform(-20.0, 120.0, size=250)
            raw[rng.integers(0, 250, size=20)] = np.nan
            records = _humidity([None if np.isnan(v) else float(v) for v in raw])
            bins = bin_records(records, HUMIDITY, (0, 100), threshold_count)

            expected = [i for i, v in enumerate(raw) if np.isfinite(v) and 0 <= v <= 100]
            seen = sorted(i for b in bins for i in b.indices)
            self.assertEqual(seen, expected)
            self.assertEqual(sum(len(b) for b in bins), len(expected))
            for k, b in enumerate(bins):
                for member in b.members:
                    self.assertTrue(b.contains(member["humidity"], last=k == len(bins) - 1))

    def test_single_threshold_yields_one_bin(self) -> None:
        bins = bin_values([1.0, 2.0, 3.0], (1, 3), 1)
        self.assertEqual(len(bins), 1)
        self.assertEqual(bins[0].count, 3)

    def test_nice_thresholds_use_round_steps(self) -> None:
        self.assertEqual(nice_thresholds((0, 100), 12).tolist(), [10.0, 20.0, 30.0, 40.0, 50.0, 60.0, 70.0, 80.0, 90.0])
        self.assertEqual(nice_thresholds((0, 1), 10).tolist(), [0.1, 0.2, 0.3, 0.4, 0.5, 0.6, 0.7, 0.8, 0.9])
        bins = bin_values([10.0, 95.0], (0, 100), 12, nice=True)
        self.assertEqual(len(bins), 10)
        self.assertEqual(bins[1].members, (10.0,))

    def test_uniform_thresholds_drop_domain_edges(self) -> None:
        self.assertTrue(np.allclose(uniform_thresholds((0, 100), 5), [25.0, 50.0, 75.0]))

    def test_invalid_arguments(self) -> None:
        with self.assertRaises(ValueError):
            bin_values([1.0], (0, 10), 0)
        with self.assertRaises(DegenerateDomainError):
            bin_values([1.0], (5, 5), 3)

    def test_summaries(self) -> None:
        bins = bin_values([1.0, 1.5, 7.0], (0, 10), 3)
        self.assertEqual(max_bin_count(bins), 2)
        self.assertEqual(BinCountAccessor()(bins[0]), 2)
        self.assertEqual(bin_index_for(bins, 5.0), 1)
        self.assertEqual(bin_index_for(bins, 10.0), 1)
        self.assertIsNone(bin_index_for(bins, 10.5))
        self.assertAlmostEqual(mean_value(_humidity([1.0, None, 3.0]), HUMIDITY), 2.0)
        with self.assertRaises(EmptyDomainError):
            mean_value(_humidity([None]), HUMIDITY)


if __name__ == "__main__":
    unittest.main()
