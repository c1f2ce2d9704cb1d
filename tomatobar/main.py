from __future__ import annotations

import logging
import os
import sys

from PySide6.QtCore import QTimer
from PySide6.QtWidgets import QApplication, QDialog, QMenu, QSystemTrayIcon

try:
    from .popover import PopoverWindow, PreferencesDialog, tomato_icon
    from .power import SleepWatcher, sleep_guard
    from .pomodoro import minutes_label
    from .scheduler import DelayedCalls, qt_schedule
    from .session import SessionController
    from .settings import AppSettings, data_dir
    from .sounds import SoundService
    from .storage import StateStore
except ImportError:
    from popover import PopoverWindow, PreferencesDialog, tomato_icon
    from power import SleepWatcher, sleep_guard
    from pomodoro import minutes_label
    from scheduler import DelayedCalls, qt_schedule
    from session import SessionController
    from settings import AppSettings, data_dir
    from sounds import SoundService
    from storage import StateStore


HEARTBEAT_MS = 1000


def setup_logging(log_dir: str) -> None:
    os.makedirs(log_dir, exist_ok=True)
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        handlers=[
            logging.FileHandler(os.path.join(log_dir, "app.log"), encoding="utf-8"),
            logging.StreamHandler(sys.stdout),
        ],
    )


def main() -> None:
    base = data_dir()
    setup_logging(base)
    logging.info("app start: data=%s", base)

    app = QApplication(sys.argv)
    app.setQuitOnLastWindowClosed(False)

    settings = AppSettings(os.path.join(base, "settings.json"))
    config = settings.get_settings()
    state = StateStore(os.path.join(base, "state.json"))
    sounds = SoundService(os.path.join(base, "sounds"), enabled=config["sound_enabled"])

    watcher = SleepWatcher(config["sleep_gap_sec"])
    watcher.poll()

    def on_sleep(gap) -> None:
        controller.system_will_sleep(gap.slept_at)
        controller.system_did_wake(gap.woke_at)

    slept = sleep_guard(watcher, on_sleep)

    def guarded_schedule(delay_ms: int, callback) -> None:
        # A callback that fires right after wake is dropped; sleep handling has run first.
        qt_schedule(delay_ms, lambda: None if slept() else callback())

    def guarded_tick() -> None:
        if not slept():
            controller.engine.tick()

    ticker = QTimer()
    controller = SessionController(
        state,
        ticker,
        sounds=sounds,
        settings=settings,
        delayed=DelayedCalls(guarded_schedule),
    )
    ticker.timeout.connect(guarded_tick)

    popover = PopoverWindow(controller)

    tray = QSystemTrayIcon(tomato_icon())
    menu = QMenu()

    toggle_action = menu.addAction("Start")
    toggle_action.triggered.connect(controller.toggle)
    reset_action = menu.addAction("Reset")
    reset_action.triggered.connect(controller.reset)
    menu.addSeparator()
    show_action = menu.addAction("Show Timer")
    show_action.triggered.connect(lambda: popover.show_near(tray.geometry()))

    def open_preferences() -> None:
        dialog = PreferencesDialog(settings, parent=popover)
        if dialog.exec() == QDialog.Accepted:
            settings.set_settings(dialog.get_values())
            controller.apply_settings(settings.get_settings())

    prefs_action = menu.addAction("Preferences…")
    prefs_action.triggered.connect(open_preferences)
    menu.addSeparator()
    quit_action = menu.addAction("Quit")
    quit_action.triggered.connect(lambda: (logging.info("exit requested"), tray.hide(), app.quit()))

    tray.setContextMenu(menu)

    def on_tray_activated(reason) -> None:
        if reason == QSystemTrayIcon.Trigger:
            popover.toggle_near(tray.geometry())

    tray.activated.connect(on_tray_activated)

    icon_key = None

    def update_status(text: str) -> None:
        nonlocal icon_key
        state_now = controller.state()
        key = (minutes_label(state_now.remaining_sec), state_now.mode)
        if key != icon_key:
            icon_key = key
            tray.setIcon(tomato_icon(label=key[0], mode=key[1]))
        tray.setToolTip(f"{text}\nToday: {controller.daily_count} 🍅")
        toggle_action.setText("Pause" if state_now.running else "Start")

    def announce_pomodoro(task_name: str, count: int) -> None:
        title = f"Pomodoro completed: {task_name}" if task_name else "Pomodoro completed"
        tray.showMessage(title, f"{count} today. Time for a break!", QSystemTrayIcon.Information, 4000)

    controller.statusChanged.connect(update_status)
    controller.dailyCountChanged.connect(lambda _count: update_status(controller.status_text()))
    controller.pomodoroCompleted.connect(announce_pomodoro)
    controller.showMainView.connect(lambda: popover.show_near(tray.geometry()))
    controller.taskSelectionRequired.connect(lambda: popover.show_near(tray.geometry()))
    update_status(controller.status_text())
    tray.show()

    heartbeat_timer = QTimer()
    heartbeat_timer.timeout.connect(slept)
    heartbeat_timer.start(HEARTBEAT_MS)

    def save_on_quit() -> None:
        if controller.state().running:
            controller.pause()
        logging.info("app quit")

    app.aboutToQuit.connect(save_on_quit)
    logging.info("tray shown")

    sys.exit(app.exec())


if __name__ == "__main__":
    main()
