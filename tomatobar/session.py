from __future__ import annotations

import logging
import time
from typing import Any, Callable, Dict, List, Optional

from PySide6.QtCore import QObject, Signal

try:
    from .daily import DailyCounter
    from .pomodoro import BREAK, WORK, PomodoroState, TimerEngine, status_text
    from .scheduler import DelayedCalls
    from .settings import DEFAULTS, AppSettings
    from .storage import StateStore
    from .tasks import Task, TaskStore
except ImportError:
    from daily import DailyCounter
    from pomodoro import BREAK, WORK, PomodoroState, TimerEngine, status_text
    from scheduler import DelayedCalls
    from settings import DEFAULTS, AppSettings
    from storage import StateStore
    from tasks import Task, TaskStore


class SessionController(QObject):
    """Owns the timer, the task store and the daily counter.

    The presentation layer listens to the signals below and calls the
    public methods; it never touches the engine or the store directly.
    ``tasksChanged`` carries ``True`` when the list should re-sort after a
    short delay (a task was just marked complete).
    """

    statusChanged = Signal(str)
    timeChanged = Signal(int, int)
    tasksChanged = Signal(bool)
    dailyCountChanged = Signal(int)
    taskSelectionRequired = Signal()
    showMainView = Signal()
    pomodoroCompleted = Signal(str, int)

    def __init__(
        self,
        state: StateStore,
        ticker,
        sounds=None,
        settings: AppSettings | None = None,
        delayed: DelayedCalls | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        super().__init__()
        self._settings = settings
        self._config: Dict[str, Any] = settings.get_settings() if settings else DEFAULTS.copy()
        self._sounds = sounds
        self._delayed = delayed or DelayedCalls()
        self._clock = clock
        work_sec = int(self._config["work_minutes"]) * 60
        break_sec = int(self._config["break_minutes"]) * 60
        self._engine = TimerEngine(ticker, work_sec, break_sec)
        self._tasks = TaskStore(state, work_sec)
        self._daily = DailyCounter(state, clock())
        self._slept_at: float | None = None

        current = self._tasks.current()
        if current:
            self._engine.load(current.saved_time_remaining)
        self._engine.set_handlers(self._on_timer_change, self._on_phase_complete)

    # -- read side -------------------------------------------------------

    @property
    def engine(self) -> TimerEngine:
        return self._engine

    @property
    def tasks(self) -> TaskStore:
        return self._tasks

    @property
    def daily_count(self) -> int:
        return self._daily.count

    @property
    def config(self) -> Dict[str, Any]:
        return dict(self._config)

    def state(self) -> PomodoroState:
        return self._engine.snapshot()

    def status_text(self) -> str:
        return status_text(self._engine.snapshot())

    def current_task(self) -> Optional[Task]:
        return self._tasks.current()

    def sorted_tasks(self) -> List[Task]:
        return self._tasks.sorted(self._engine.mode)

    # -- timer intents ---------------------------------------------------

    def start(self) -> bool:
        if self._engine.is_running:
            return True
        if self._engine.mode == WORK and self._tasks.current() is None:
            logging.info("start rejected: no current task")
            self.taskSelectionRequired.emit()
            return False
        self._delayed.cancel_all()
        if self._sounds:
            self._sounds.play_beep()
        self._engine.start()
        return True

    def pause(self) -> None:
        self._delayed.cancel_all()
        self._save_current_progress()
        self._engine.pause()
        self.tasksChanged.emit(False)

    def toggle(self) -> bool:
        if self._engine.is_running:
            self.pause()
            return False
        return self.start()

    def reset(self) -> None:
        self._delayed.cancel_all()
        self._engine.reset()
        current_id = self._tasks.current_id
        if current_id:
            self._tasks.save_progress(current_id, self._engine.work_sec, False)
        self.tasksChanged.emit(False)

    # -- task intents ----------------------------------------------------

    def select_task(self, task_id: str) -> bool:
        if self._engine.mode == BREAK:
            logging.info("task switch rejected during break: %s", task_id)
            return False
        if task_id == self._tasks.current_id:
            return True
        incoming = self._tasks.get(task_id)
        if incoming is None or incoming.is_completed:
            return False
        self._delayed.cancel_all()
        self._save_current_progress()
        self._engine.pause()
        self._tasks.set_current(task_id)
        incoming = self._tasks.get(task_id)
        self._engine.load(incoming.saved_time_remaining)
        logging.info("current task: %s", task_id)
        self.tasksChanged.emit(False)
        return True

    def add_task(self, name: str) -> Optional[Task]:
        task = self._tasks.add(name)
        if task:
            self.tasksChanged.emit(False)
        return task

    def rename_task(self, task_id: str, new_name: str) -> bool:
        renamed = self._tasks.rename(task_id, new_name)
        if renamed:
            self.tasksChanged.emit(False)
        return renamed

    def delete_task(self, task_id: str) -> bool:
        if self._tasks.get(task_id) is None:
            return False
        was_current = task_id == self._tasks.current_id
        if was_current:
            self._delayed.cancel_all()
            self._engine.reset()
        self._tasks.delete(task_id)
        if was_current:
            self._select_next_active()
        self.tasksChanged.emit(False)
        return True

    def toggle_completed(self, task_id: str) -> Optional[bool]:
        was_current = task_id == self._tasks.current_id
        completed = self._tasks.toggle_completed(task_id)
        if completed is None:
            return None
        if completed and was_current:
            in_work = self._engine.mode == WORK
            if in_work:
                self._delayed.cancel_all()
                self._engine.pause()
            self._tasks.save_progress(task_id, self._engine.work_sec, False)
            self._tasks.set_current(None)
            self._select_next_active(load_progress=in_work)
        self.tasksChanged.emit(bool(completed))
        return completed

    def _select_next_active(self, load_progress: bool = True) -> None:
        nxt = self._tasks.first_active()
        if nxt is None:
            self._tasks.set_current(None)
            if load_progress:
                self._engine.load(self._engine.work_sec)
            logging.info("no active task left")
            return
        self._tasks.set_current(nxt.id)
        if load_progress:
            self._engine.load(nxt.saved_time_remaining)
        logging.info("current task auto-selected: %s", nxt.id)

    def _save_current_progress(self) -> None:
        if self._engine.mode != WORK:
            return
        current_id = self._tasks.current_id
        if current_id:
            self._tasks.save_progress(current_id, self._engine.time_remaining, self._engine.is_running)

    # -- system events ---------------------------------------------------

    def system_will_sleep(self, at: float | None = None) -> None:
        self._slept_at = self._clock() if at is None else at
        self._delayed.cancel_all()
        if self._engine.is_running:
            self._save_current_progress()
            self._engine.pause()
            self.tasksChanged.emit(False)
        logging.info("system sleep at %.0f", self._slept_at)

    def system_did_wake(self, at: float | None = None) -> float | None:
        if at is None:
            at = self._clock()
        if self._slept_at is None:
            logging.info("system wake without recorded sleep")
            return None
        elapsed = max(0.0, at - self._slept_at)
        self._slept_at = None
        # Time asleep is neither credited nor debited; the user resumes.
        logging.info("system wake after %.0fs, timer left paused", elapsed)
        return elapsed

    def apply_settings(self, data: Dict[str, Any]) -> None:
        self._config = dict(data)
        work_sec = int(data.get("work_minutes", DEFAULTS["work_minutes"])) * 60
        break_sec = int(data.get("break_minutes", DEFAULTS["break_minutes"])) * 60
        fresh = (
            self._engine.mode == WORK
            and not self._engine.is_running
            and self._engine.time_remaining == self._engine.work_sec
        )
        self._engine.set_durations(work_sec, break_sec)
        self._tasks.set_work_seconds(work_sec)
        if fresh:
            self._engine.load(work_sec)
        if self._sounds and hasattr(self._sounds, "set_enabled"):
            self._sounds.set_enabled(bool(data.get("sound_enabled", True)))
        self.tasksChanged.emit(False)
        logging.info("settings applied: work=%ss break=%ss", work_sec, break_sec)

    # -- timer callbacks -------------------------------------------------

    def _on_timer_change(self, state: PomodoroState) -> None:
        self.timeChanged.emit(state.remaining_sec, state.total_sec)
        self.statusChanged.emit(status_text(state))

    def _on_phase_complete(self, finished: str) -> None:
        if finished == WORK:
            current_id = self._tasks.current_id
            credited = self._tasks.record_pomodoro(current_id) if current_id else None
            count = self._daily.increment(self._clock())
            self.dailyCountChanged.emit(count)
            self.pomodoroCompleted.emit(credited.name if credited else "", count)
            if self._sounds:
                self._sounds.play_work_complete()
            self.tasksChanged.emit(False)
            self._delayed.call_later(
                int(self._config["break_autostart_delay_ms"]), self._start_break, "break autostart"
            )
        else:
            if self._sounds:
                self._sounds.play_break_complete()
            self._delayed.call_later(
                int(self._config["return_to_work_delay_ms"]), self._return_to_work, "return to work"
            )

    def _start_break(self) -> None:
        if self._engine.mode == BREAK and not self._engine.is_running:
            self._engine.start()

    def _return_to_work(self) -> None:
        current = self._tasks.current()
        if current:
            self._engine.load(current.saved_time_remaining)
        else:
            self._engine.load(self._engine.work_sec)
        self.tasksChanged.emit(False)
        self.showMainView.emit()
