import json
import os
import tempfile
import unittest

from tomatobar.storage import StateStore


class StateStoreTests(unittest.TestCase):
    def test_set_and_remove_persist(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = os.path.join(tmp, "nested", "state.json")
            store = StateStore(path)
            store.set("CurrentTaskId", "abc")
            self.assertEqual(StateStore(path).get("CurrentTaskId"), "abc")
            store.remove("CurrentTaskId")
            self.assertFalse(StateStore(path).has("CurrentTaskId"))

    def test_unreadable_file_is_empty(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = os.path.join(tmp, "state.json")
            with open(path, "w", encoding="utf-8") as f:
                f.write("[1, 2")
            self.assertIsNone(StateStore(path).get("PomodoroTasks"))

    def test_non_object_json_is_empty(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = os.path.join(tmp, "state.json")
            with open(path, "w", encoding="utf-8") as f:
                json.dump([1, 2], f)
            store = StateStore(path)
            self.assertIsNone(store.get("PomodoroTasks"))
            store.set("DailyPomodoroCount", 1)
            self.assertEqual(StateStore(path).get("DailyPomodoroCount"), 1)


if __name__ == "__main__":
    unittest.main()
