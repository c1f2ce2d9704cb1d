import os
import tempfile
import unittest

from tomatobar.pomodoro import BREAK, WORK
from tomatobar.storage import CURRENT_TASK_KEY, TASKS_KEY, StateStore
from tomatobar.tasks import (
    DEFAULT_TASK_NAMES,
    Task,
    TaskStore,
    decode_tasks,
    sorted_tasks,
)


def _record(task_id, name, **extra):
    record = {
        "id": task_id,
        "name": name,
        "completedPomodoros": 0,
        "isCompleted": False,
        "savedTimeRemaining": 1500,
        "isTimerActive": False,
    }
    record.update(extra)
    return record


class DecodeTasksTests(unittest.TestCase):
    def test_absent_data_seeds_defaults(self):
        result = decode_tasks(None)
        self.assertFalse(result.restored)
        self.assertEqual([t.name for t in result.tasks], list(DEFAULT_TASK_NAMES))
        self.assertEqual(len({t.id for t in result.tasks}), 3)

    def test_corrupt_data_seeds_defaults(self):
        for raw in ("garbage", {"id": "x"}, [{"id": "a"}], [_record("a", "A", completedPomodoros="lots")]):
            result = decode_tasks(raw)
            self.assertFalse(result.restored, raw)
            self.assertEqual(len(result.tasks), 3)

    def test_duplicate_ids_rejected(self):
        result = decode_tasks([_record("a", "A"), _record("a", "B")])
        self.assertFalse(result.restored)
        self.assertIn("duplicate", result.reason)

    def test_saved_time_clamped(self):
        result = decode_tasks([_record("a", "A", savedTimeRemaining=99999)])
        self.assertTrue(result.restored)
        self.assertEqual(result.tasks[0].saved_time_remaining, 1500)


class SortedTasksTests(unittest.TestCase):
    def setUp(self):
        self.tasks = [
            Task(id="b", name="B", is_completed=True),
            Task(id="c", name="C"),
            Task(id="a", name="A"),
        ]

    def test_current_first_then_active_then_completed(self):
        ordered = sorted_tasks(self.tasks, "c", WORK)
        self.assertEqual([t.name for t in ordered], ["C", "A", "B"])

    def test_current_not_lifted_during_break(self):
        ordered = sorted_tasks(self.tasks, "c", BREAK)
        self.assertEqual([t.name for t in ordered], ["A", "C", "B"])

    def test_no_current(self):
        ordered = sorted_tasks(self.tasks, None, WORK)
        self.assertEqual([t.name for t in ordered], ["A", "C", "B"])


class TaskStoreTests(unittest.TestCase):
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.path = os.path.join(self._tmp.name, "state.json")

    def tearDown(self):
        self._tmp.cleanup()

    def test_seeded_defaults_are_persisted(self):
        TaskStore(StateStore(self.path))
        state = StateStore(self.path)
        self.assertEqual(len(state.get(TASKS_KEY)), 3)

    def test_mutations_survive_reload(self):
        store = TaskStore(StateStore(self.path))
        task = store.add("  Write report  ")
        self.assertEqual(task.name, "Write report")
        store.save_progress(task.id, 700, True)
        store.set_current(task.id)

        reloaded = TaskStore(StateStore(self.path))
        again = reloaded.get(task.id)
        self.assertEqual(again.saved_time_remaining, 700)
        self.assertTrue(again.is_timer_active)
        self.assertEqual(reloaded.current_id, task.id)

    def test_blank_names_rejected(self):
        store = TaskStore(StateStore(self.path))
        self.assertIsNone(store.add("   "))
        task_id = store.tasks()[0].id
        self.assertFalse(store.rename(task_id, "\t"))
        self.assertEqual(len(store.tasks()), 3)
        self.assertEqual(store.get(task_id).name, DEFAULT_TASK_NAMES[0])

    def test_returned_tasks_are_copies(self):
        store = TaskStore(StateStore(self.path))
        task = store.tasks()[0]
        task.name = "changed outside"
        self.assertEqual(store.get(task.id).name, DEFAULT_TASK_NAMES[0])

    def test_completed_task_cannot_be_current(self):
        store = TaskStore(StateStore(self.path))
        task_id = store.tasks()[0].id
        store.toggle_completed(task_id)
        self.assertFalse(store.set_current(task_id))
        self.assertIsNone(store.current_id)

    def test_stale_current_id_dropped_on_load(self):
        state = StateStore(self.path)
        state.set(TASKS_KEY, [_record("a", "A")])
        state.set(CURRENT_TASK_KEY, "missing")
        store = TaskStore(state)
        self.assertIsNone(store.current_id)
        self.assertFalse(state.has(CURRENT_TASK_KEY))

    def test_delete_current_clears_selection(self):
        store = TaskStore(StateStore(self.path))
        task_id = store.tasks()[0].id
        store.set_current(task_id)
        self.assertTrue(store.delete(task_id))
        self.assertIsNone(store.current_id)
        self.assertIsNone(store.get(task_id))

    def test_record_pomodoro_resets_progress(self):
        store = TaskStore(StateStore(self.path))
        task_id = store.tasks()[0].id
        store.save_progress(task_id, 12, True)
        task = store.record_pomodoro(task_id)
        self.assertEqual(task.completed_pomodoros, 1)
        self.assertEqual(task.saved_time_remaining, 1500)
        self.assertFalse(task.is_timer_active)

    def test_paused_progress_indicator(self):
        self.assertFalse(Task(id="a", name="A").has_paused_progress())
        self.assertTrue(Task(id="a", name="A", saved_time_remaining=60).has_paused_progress())
        self.assertFalse(Task(id="a", name="A", saved_time_remaining=60, is_completed=True).has_paused_progress())


if __name__ == "__main__":
    unittest.main()
