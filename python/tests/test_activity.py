import unittest

from flowmeter import ActivityTracker, Timestamp


class ActivityTrackerTest(unittest.TestCase):
    def test_packets_within_timeout_share_one_burst(self) -> None:
        tracker = ActivityTracker(activity_timeout=5)
        for t in (0, 1, 2):
            tracker.observe(t)

        self.assertTrue(tracker.is_open)
        self.assertEqual(tracker.first_seen, 0)
        self.assertEqual(tracker.last_seen, 2)
        self.assertEqual(tracker.burst_durations.count, 0)

    def test_long_gap_closes_the_burst(self) -> None:
        tracker = ActivityTracker(activity_timeout=5)
        for t in (0, 1, 2, 20):
            tracker.observe(t)

        self.assertEqual(tracker.durations, [2.0])
        self.assertEqual(tracker.idle_gaps, [18.0])
        self.assertEqual(tracker.first_seen, 20)
        self.assertEqual(tracker.last_seen, 20)

    def test_settled_durations_include_the_open_burst(self) -> None:
        tracker = ActivityTracker(activity_timeout=5)
        for t in (0, 1, 2, 20, 23):
            tracker.observe(t)

        self.assertEqual(tracker.settled_durations, [2.0, 3.0])
        self.assertEqual(tracker.durations, [2.0])
        tracker.close()
        self.assertEqual(tracker.settled_durations, tracker.durations)

    def test_gap_equal_to_timeout_extends_the_burst(self) -> None:
        tracker = ActivityTracker(activity_timeout=5)
        tracker.observe(0)
        tracker.observe(5)
        self.assertEqual(tracker.last_seen, 5)
        self.assertEqual(tracker.durations, [])

    def test_close_records_the_open_burst_once(self) -> None:
        tracker = ActivityTracker(activity_timeout=5)
        for t in (0, 3, 20, 21):
            tracker.observe(t)
        tracker.close()
        tracker.close()

        self.assertFalse(tracker.is_open)
        summary = tracker.burst_durations
        self.assertEqual(summary.count, 2)
        self.assertEqual(summary.sum, 4.0)
        self.assertEqual(summary.max, 3.0)
        self.assertEqual(tracker.idle_times.count, 1)

    def test_out_of_order_timestamp_stays_in_the_open_burst(self) -> None:
        tracker = ActivityTracker(activity_timeout=5)
        tracker.observe(10)
        tracker.observe(12)
        with self.assertLogs("flowmeter.activity", level="DEBUG"):
            tracker.observe(1)
        self.assertEqual(tracker.first_seen, 10)
        self.assertEqual(tracker.last_seen, 12)
        self.assertEqual(tracker.durations, [])

    def test_works_with_capture_timestamps(self) -> None:
        tracker = ActivityTracker(activity_timeout=0.5)
        tracker.observe(Timestamp(100, 0))
        tracker.observe(Timestamp(100, 250_000_000))
        tracker.observe(Timestamp(102, 0))
        tracker.close()
        self.assertEqual(len(tracker.durations), 2)
        self.assertAlmostEqual(tracker.durations[0], 0.25)
        self.assertAlmostEqual(tracker.idle_gaps[0], 1.75)

    def test_timeout_must_be_positive(self) -> None:
        with self.assertRaises(ValueError):
            ActivityTracker(activity_timeout=0)


if __name__ == "__main__":  # pragma: no cover - convenience
    unittest.main()
