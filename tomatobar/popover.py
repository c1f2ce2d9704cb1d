from __future__ import annotations

import logging

from PySide6.QtCore import QRect, QRectF, Qt, QTimer
from PySide6.QtGui import QBrush, QColor, QFont, QIcon, QPainter, QPixmap
from PySide6.QtWidgets import (
    QApplication,
    QCheckBox,
    QDialog,
    QDialogButtonBox,
    QFormLayout,
    QHBoxLayout,
    QInputDialog,
    QLabel,
    QListWidget,
    QListWidgetItem,
    QMessageBox,
    QPushButton,
    QSpinBox,
    QVBoxLayout,
    QWidget,
)

try:
    from .pomodoro import WORK, format_clock
    from .session import SessionController
    from .settings import AppSettings
except ImportError:
    from pomodoro import WORK, format_clock
    from session import SessionController
    from settings import AppSettings


WORK_COLOR = "#e5533d"
BREAK_COLOR = "#3fa66b"


def tomato_icon(size: int = 22, label: str = "", mode: str = WORK) -> QIcon:
    pm = QPixmap(size, size)
    pm.fill(Qt.transparent)
    painter = QPainter(pm)
    painter.setRenderHint(QPainter.Antialiasing)
    painter.setPen(Qt.NoPen)
    painter.setBrush(QBrush(QColor(WORK_COLOR if mode == WORK else BREAK_COLOR)))
    margin = size * 0.12
    body = QRectF(margin, margin * 1.8, size - 2 * margin, size - 2.6 * margin)
    painter.drawEllipse(body)
    painter.setBrush(QBrush(QColor(BREAK_COLOR if mode == WORK else WORK_COLOR)))
    painter.drawEllipse(QRectF(size * 0.38, margin * 0.6, size * 0.24, size * 0.2))
    if label:
        font = QFont()
        font.setBold(True)
        font.setPixelSize(max(6, int(size * (0.5 if len(label) < 3 else 0.38))))
        painter.setFont(font)
        painter.setPen(QColor("#ffffff"))
        painter.drawText(body, Qt.AlignCenter, label)
    painter.end()
    return QIcon(pm)


class PhaseProgressBar(QWidget):
    def __init__(self, parent=None) -> None:
        super().__init__(parent)
        self._fraction = 0.0
        self._color = QColor(WORK_COLOR)
        self.setMinimumHeight(8)
        self.setMaximumHeight(8)

    def set_progress(self, remaining: int, total: int, mode: str) -> None:
        total = max(1, int(total))
        self._fraction = max(0.0, min(1.0, (total - remaining) / total))
        self._color = QColor(WORK_COLOR if mode == WORK else BREAK_COLOR)
        self.update()

    def paintEvent(self, event) -> None:
        painter = QPainter(self)
        painter.setRenderHint(QPainter.Antialiasing)
        painter.setPen(Qt.NoPen)
        rect = QRectF(self.rect())
        radius = rect.height() / 2
        painter.setBrush(QBrush(QColor(0, 0, 0, 40)))
        painter.drawRoundedRect(rect, radius, radius)
        if self._fraction > 0:
            filled = QRectF(rect.x(), rect.y(), rect.width() * self._fraction, rect.height())
            painter.setBrush(QBrush(self._color))
            painter.drawRoundedRect(filled, radius, radius)
        painter.end()


class PopoverWindow(QWidget):
    def __init__(self, controller: SessionController) -> None:
        super().__init__(None, Qt.Tool | Qt.FramelessWindowHint | Qt.WindowStaysOnTopHint)
        self._controller = controller
        self.setFixedWidth(300)
        self.setStyleSheet(
            "QWidget { background: #f7f7f5; color: #1f1f1f; font-size: 12px; }"
            "QPushButton {"
            "  background: #ffffff;"
            "  border: 1px solid #c9c9c9;"
            "  border-radius: 6px;"
            "  padding: 4px 10px;"
            "}"
            "QPushButton:hover { background: #ededed; }"
            "QListWidget { background: #ffffff; border: 1px solid #c9c9c9; border-radius: 6px; }"
        )

        self.time_label = QLabel()
        self.time_label.setAlignment(Qt.AlignCenter)
        font = QFont()
        font.setPointSize(30)
        font.setBold(True)
        self.time_label.setFont(font)

        self.mode_label = QLabel()
        self.mode_label.setAlignment(Qt.AlignCenter)
        self.progress = PhaseProgressBar()

        self.play_btn = QPushButton()
        self.reset_btn = QPushButton("Reset")
        self.play_btn.clicked.connect(self._on_play_clicked)
        self.reset_btn.clicked.connect(controller.reset)

        controls = QHBoxLayout()
        controls.addWidget(self.play_btn)
        controls.addWidget(self.reset_btn)

        self.task_list = QListWidget()
        self.task_list.itemDoubleClicked.connect(lambda _item: self.focus_selected())

        add_btn = QPushButton("Add")
        focus_btn = QPushButton("Focus")
        rename_btn = QPushButton("Rename")
        done_btn = QPushButton("Done")
        delete_btn = QPushButton("Delete")
        add_btn.clicked.connect(self.add_task)
        focus_btn.clicked.connect(self.focus_selected)
        rename_btn.clicked.connect(self.rename_selected)
        done_btn.clicked.connect(self.toggle_selected)
        delete_btn.clicked.connect(self.delete_selected)

        task_buttons = QHBoxLayout()
        for btn in (add_btn, focus_btn, rename_btn, done_btn, delete_btn):
            task_buttons.addWidget(btn)

        self.daily_label = QLabel()
        self.daily_label.setAlignment(Qt.AlignCenter)

        layout = QVBoxLayout(self)
        layout.setContentsMargins(14, 14, 14, 14)
        layout.addWidget(self.time_label)
        layout.addWidget(self.mode_label)
        layout.addWidget(self.progress)
        layout.addLayout(controls)
        layout.addWidget(self.task_list)
        layout.addLayout(task_buttons)
        layout.addWidget(self.daily_label)

        controller.timeChanged.connect(lambda _r, _t: self.refresh_timer())
        controller.tasksChanged.connect(self._on_tasks_changed)
        controller.dailyCountChanged.connect(self._set_daily)
        controller.taskSelectionRequired.connect(self._alert_select_task)

        self.refresh_timer()
        self.reload_tasks()
        self._set_daily(controller.daily_count)

    def refresh_timer(self) -> None:
        state = self._controller.state()
        self.time_label.setText(format_clock(state.remaining_sec))
        self.mode_label.setText("Focus" if state.mode == WORK else "Break")
        self.progress.set_progress(state.remaining_sec, state.total_sec, state.mode)
        self.play_btn.setText("Pause" if state.running else "Start")

    def reload_tasks(self) -> None:
        selected = self._selected_id()
        current_id = self._controller.tasks.current_id
        work_sec = self._controller.engine.work_sec
        self.task_list.clear()
        for task in self._controller.sorted_tasks():
            marker = "▶ " if task.id == current_id else "   "
            text = f"{marker}{task.name}"
            if task.completed_pomodoros:
                text += f"  🍅×{task.completed_pomodoros}"
            if task.id != current_id and task.has_paused_progress(work_sec):
                text += f"  ⏸ {format_clock(task.saved_time_remaining)}"
            item = QListWidgetItem(text)
            item.setData(Qt.UserRole, task.id)
            if task.is_completed:
                font = item.font()
                font.setStrikeOut(True)
                item.setFont(font)
                item.setForeground(QColor("#9a9a9a"))
            self.task_list.addItem(item)
            if task.id == selected:
                self.task_list.setCurrentItem(item)

    def _on_tasks_changed(self, delayed: bool) -> None:
        if delayed:
            delay = int(self._controller.config.get("resort_delay_ms", 800))
            QTimer.singleShot(delay, self.reload_tasks)
        else:
            self.reload_tasks()

    def _set_daily(self, count: int) -> None:
        self.daily_label.setText(f"Today: {count} 🍅")

    def _selected_id(self) -> str | None:
        item = self.task_list.currentItem()
        if item is None:
            return None
        return item.data(Qt.UserRole)

    def _on_play_clicked(self) -> None:
        if self._controller.state().running:
            self._controller.pause()
        else:
            self._controller.start()

    def focus_selected(self) -> None:
        task = self._controller.tasks.get(self._selected_id())
        if task is None or task.is_completed:
            return
        if not self._controller.select_task(task.id):
            logging.info("task selection ignored: %s", task.id)

    def _alert_select_task(self) -> None:
        QMessageBox.information(self, "No task selected", "Select a task before starting the timer.")

    def add_task(self) -> None:
        name, ok = QInputDialog.getText(self, "New task", "Task name:")
        if ok:
            self._controller.add_task(name)

    def rename_selected(self) -> None:
        task = self._controller.tasks.get(self._selected_id())
        if task is None:
            return
        name, ok = QInputDialog.getText(self, "Rename task", "Task name:", text=task.name)
        if ok:
            self._controller.rename_task(task.id, name)

    def toggle_selected(self) -> None:
        task_id = self._selected_id()
        if task_id:
            self._controller.toggle_completed(task_id)

    def delete_selected(self) -> None:
        task = self._controller.tasks.get(self._selected_id())
        if task is None:
            return
        answer = QMessageBox.question(
            self,
            "Delete task",
            f"Delete \"{task.name}\"? Its pomodoro count will be lost.",
            QMessageBox.Yes | QMessageBox.Cancel,
            QMessageBox.Cancel,
        )
        if answer == QMessageBox.Yes:
            self._controller.delete_task(task.id)

    def show_near(self, anchor: QRect | None = None) -> None:
        self.adjustSize()
        screen = QApplication.primaryScreen()
        geo = screen.availableGeometry() if screen else QRect(0, 0, 1280, 800)
        if anchor is not None and anchor.isValid():
            x = anchor.center().x() - self.width() // 2
            y = anchor.bottom() + 6 if anchor.top() < geo.center().y() else anchor.top() - self.height() - 6
        else:
            x = geo.right() - self.width() - 20
            y = geo.top() + 20
        x = max(geo.left(), min(x, geo.right() - self.width()))
        y = max(geo.top(), min(y, geo.bottom() - self.height()))
        self.move(x, y)
        self.show()
        self.raise_()
        self.activateWindow()

    def toggle_near(self, anchor: QRect | None = None) -> None:
        if self.isVisible():
            self.hide()
        else:
            self.show_near(anchor)


class PreferencesDialog(QDialog):
    def __init__(self, settings: AppSettings, parent=None) -> None:
        super().__init__(parent)
        self._settings = settings
        self.setWindowTitle("Preferences")
        self.setStyleSheet(
            "QDialog { background: #f7f7f5; }"
            "QLabel { color: #1f1f1f; font-size: 12px; }"
            "QSpinBox {"
            "  background: #ffffff;"
            "  border: 1px solid #c9c9c9;"
            "  border-radius: 6px;"
            "  padding: 4px 6px;"
            "}"
        )

        form = QFormLayout(self)

        self.work_spin = QSpinBox()
        self.work_spin.setRange(1, 180)
        self.work_spin.setSuffix(" min")

        self.break_spin = QSpinBox()
        self.break_spin.setRange(1, 180)
        self.break_spin.setSuffix(" min")

        self.sound_check = QCheckBox("Play sounds")

        form.addRow("Focus length", self.work_spin)
        form.addRow("Break length", self.break_spin)
        form.addRow(self.sound_check)

        self.buttons = QDialogButtonBox(QDialogButtonBox.Save | QDialogButtonBox.Cancel)
        self.buttons.accepted.connect(self.accept)
        self.buttons.rejected.connect(self.reject)
        form.addRow(self.buttons)

        self.load_settings()

    def load_settings(self) -> None:
        data = self._settings.get_settings()
        self.work_spin.setValue(int(data["work_minutes"]))
        self.break_spin.setValue(int(data["break_minutes"]))
        self.sound_check.setChecked(bool(data["sound_enabled"]))

    def get_values(self) -> dict:
        return {
            "work_minutes": int(self.work_spin.value()),
            "break_minutes": int(self.break_spin.value()),
            "sound_enabled": bool(self.sound_check.isChecked()),
        }
