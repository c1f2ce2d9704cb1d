import os
import tempfile
import unittest
from unittest import mock

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

from PySide6.QtCore import Qt
from PySide6.QtWidgets import QApplication, QMessageBox

from tomatobar.pomodoro import BREAK
from tomatobar.popover import PopoverWindow, tomato_icon
from tomatobar.scheduler import DelayedCalls
from tomatobar.session import SessionController
from tomatobar.storage import StateStore
from test.fakes import FakeTicker, ManualScheduler, RecordingSounds


app = QApplication.instance() or QApplication([])


class PopoverTaskListTests(unittest.TestCase):
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.ticker = FakeTicker()
        self.controller = SessionController(
            StateStore(os.path.join(self._tmp.name, "state.json")),
            self.ticker,
            sounds=RecordingSounds(),
            delayed=DelayedCalls(ManualScheduler()),
        )
        self.window = PopoverWindow(self.controller)
        self.current_id, self.other_id = [t.id for t in self.controller.tasks.tasks()][:2]
        self.controller.select_task(self.current_id)
        self.controller.start()
        for _ in range(100):
            self.controller.engine.tick()

    def tearDown(self):
        self.window.close()
        self.window.deleteLater()
        self._tmp.cleanup()

    def pick_row(self, task_id):
        for row in range(self.window.task_list.count()):
            item = self.window.task_list.item(row)
            if item.data(Qt.UserRole) == task_id:
                self.window.task_list.setCurrentItem(item)
                return item
        self.fail(f"no row for {task_id}")

    def test_picking_a_row_does_not_switch_task(self):
        self.pick_row(self.other_id)
        state = self.controller.state()
        self.assertTrue(state.running)
        self.assertEqual(state.remaining_sec, 1400)
        self.assertEqual(self.controller.tasks.current_id, self.current_id)

    def test_delete_other_task_keeps_timer_running(self):
        self.pick_row(self.other_id)
        with mock.patch("tomatobar.popover.QMessageBox.question", return_value=QMessageBox.Yes):
            self.window.delete_selected()

        state = self.controller.state()
        self.assertTrue(state.running)
        self.assertEqual(state.remaining_sec, 1400)
        self.assertEqual(self.controller.tasks.current_id, self.current_id)
        self.assertIsNone(self.controller.tasks.get(self.other_id))

    def test_focus_switches_to_picked_task(self):
        self.pick_row(self.other_id)
        self.window.focus_selected()
        self.assertEqual(self.controller.tasks.current_id, self.other_id)
        self.assertFalse(self.controller.state().running)
        self.assertEqual(self.controller.tasks.get(self.current_id).saved_time_remaining, 1400)


class TomatoIconTests(unittest.TestCase):
    def render(self, **kwargs):
        return tomato_icon(**kwargs).pixmap(22, 22).toImage()

    def test_label_is_drawn_on_icon(self):
        self.assertNotEqual(self.render(label="25"), self.render())

    def test_break_icon_differs_from_work(self):
        self.assertNotEqual(self.render(label="5", mode=BREAK), self.render(label="5"))


if __name__ == "__main__":
    unittest.main()
