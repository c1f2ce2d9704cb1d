import unittest

from tomatobar.scheduler import DelayedCalls
from test.fakes import ManualScheduler


class DelayedCallsTests(unittest.TestCase):
    def test_callback_runs_when_current(self):
        scheduler = ManualScheduler()
        delayed = DelayedCalls(scheduler)
        calls = []
        delayed.call_later(3000, lambda: calls.append("ran"))
        self.assertEqual(scheduler.pending[0][0], 3000)
        scheduler.run_all()
        self.assertEqual(calls, ["ran"])

    def test_cancel_all_makes_pending_calls_stale(self):
        scheduler = ManualScheduler()
        delayed = DelayedCalls(scheduler)
        calls = []
        delayed.call_later(3000, lambda: calls.append("old"))
        delayed.cancel_all()
        delayed.call_later(2000, lambda: calls.append("new"))
        scheduler.run_all()
        self.assertEqual(calls, ["new"])
        self.assertEqual(delayed.generation, 1)


if __name__ == "__main__":
    unittest.main()
