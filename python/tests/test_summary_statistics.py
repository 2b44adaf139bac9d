import unittest

from flowmeter import StatisticSummary


class StatisticSummaryTest(unittest.TestCase):
    def test_empty_sample(self) -> None:
        summary = StatisticSummary.of([])
        self.assertEqual(summary.count, 0)
        self.assertEqual(summary.sum, 0.0)
        self.assertTrue(summary.is_empty)
        for value in (summary.min, summary.max, summary.mean, summary.variance, summary.standard_deviation):
            self.assertIsNone(value)

    def test_three_values(self) -> None:
        summary = StatisticSummary.of([150.0, 50.0, 350.0])
        self.assertEqual(summary.count, 3)
        self.assertEqual(summary.min, 50.0)
        self.assertEqual(summary.max, 350.0)
        self.assertEqual(summary.sum, 550.0)
        self.assertAlmostEqual(summary.mean, 183.333333, places=6)
        self.assertAlmostEqual(summary.variance, 15555.555556, places=5)
        self.assertAlmostEqual(summary.standard_deviation, 124.721913, places=6)

    def test_first_three_integers(self) -> None:
        summary = StatisticSummary.of([1.0, 2.0, 3.0])
        self.assertEqual(summary.min, 1.0)
        self.assertEqual(summary.max, 3.0)
        self.assertEqual(summary.mean, 2.0)
        self.assertEqual(summary.sum, 6.0)
        self.assertAlmostEqual(summary.variance, 0.666667, places=6)
        self.assertAlmostEqual(summary.standard_deviation, 0.816497, places=6)

    def test_single_value_has_zero_spread(self) -> None:
        summary = StatisticSummary.of([42])
        self.assertEqual(summary.min, 42.0)
        self.assertEqual(summary.max, 42.0)
        self.assertEqual(summary.variance, 0.0)
        self.assertEqual(summary.standard_deviation, 0.0)

    def test_extrema_compare_magnitudes(self) -> None:
        summary = StatisticSummary.of([-10.0, 2.0, 5.0])
        self.assertEqual(summary.min, 2.0)
        self.assertEqual(summary.max, -10.0)

    def test_accepts_generators(self) -> None:
        summary = StatisticSummary.of(value for value in (4, 8))
        self.assertEqual(summary.count, 2)
        self.assertEqual(summary.mean, 6.0)


if __name__ == "__main__":  # pragma: no cover - convenience
    unittest.main()
