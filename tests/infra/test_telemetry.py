from __future__ import annotations

import unittest

from legacy_diary.observability.telemetry import (
    counter,
    get_counter,
    get_latency_stats,
    reset,
    snapshot_counters,
    time_block,
)


class TelemetryTests(unittest.TestCase):
    def setUp(self):
        reset()

    def test_time_block_appends_ms_suffix(self):
        with time_block("insights.life_story"):
            pass

        stats = get_latency_stats("insights.life_story")
        self.assertEqual(stats["count"], 1)
        self.assertGreaterEqual(stats["p95"], 0.0)
        self.assertEqual(get_latency_stats("insights.life_story_ms")["count"], 1)

    def test_time_block_records_on_error(self):
        with self.assertRaises(RuntimeError):
            with time_block("switch.sweep_ms"):
                raise RuntimeError("boom")

        self.assertEqual(get_latency_stats("switch.sweep_ms")["count"], 1)

    def test_empty_latency_stats(self):
        self.assertEqual(get_latency_stats("never.timed")["count"], 0)

    def test_counter_increments(self):
        before = counter("test.counter", 0)
        counter("test.counter")
        after = counter("test.counter", 0)
        self.assertEqual(after, before + 1)

    def test_snapshot_sorted_copy(self):
        counter("b.second")
        counter("a.first", 3)

        snapshot = snapshot_counters()
        self.assertEqual(list(snapshot), ["a.first", "b.second"])

        snapshot["a.first"] = 100
        self.assertEqual(get_counter("a.first"), 3)


if __name__ == "__main__":
    unittest.main()
