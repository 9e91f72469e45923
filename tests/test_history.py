import unittest

from labdash.services.history import HistoryBuffer, HistoryStats


class HistoryBufferTests(unittest.TestCase):
    def test_starts_full_of_zeros(self):
        buf = HistoryBuffer(5)
        self.assertEqual(buf.to_list(), [0, 0, 0, 0, 0])

    def test_length_is_constant_after_overflow(self):
        buf = HistoryBuffer(4)
        for value in range(1, 11):
            buf.push(value)
            self.assertEqual(len(buf), 4)
        self.assertEqual(buf.to_list(), [7, 8, 9, 10])

    def test_rejects_non_positive_capacity(self):
        with self.assertRaises(ValueError):
            HistoryBuffer(0)
        with self.assertRaises(ValueError):
            HistoryBuffer(-3)


class HistoryStatsTests(unittest.TestCase):
    def test_record_uses_independent_capacities(self):
        stats = HistoryStats(3, 5, 7)
        stats.record(10, 20, 30)
        payload = stats.to_dict()
        self.assertEqual(len(payload["cpuLoad"]), 3)
        self.assertEqual(len(payload["gpuLoad"]), 5)
        self.assertEqual(len(payload["ramLoad"]), 7)
        self.assertEqual(payload["cpuLoad"][-1], 10)
        self.assertEqual(payload["gpuLoad"][-1], 20)
        self.assertEqual(payload["ramLoad"][-1], 30)


if __name__ == "__main__":
    unittest.main()
