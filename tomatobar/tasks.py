from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, replace
from typing import Any, Dict, Iterable, List, Optional

try:
    from .pomodoro import WORK, WORK_SECONDS
    from .storage import CURRENT_TASK_KEY, TASKS_KEY, StateStore
except ImportError:
    from pomodoro import WORK, WORK_SECONDS
    from storage import CURRENT_TASK_KEY, TASKS_KEY, StateStore


DEFAULT_TASK_NAMES = ("Plan the day", "Deep work", "Review notes")


@dataclass
class Task:
    id: str
    name: str
    completed_pomodoros: int = 0
    is_completed: bool = False
    saved_time_remaining: int = WORK_SECONDS
    is_timer_active: bool = False

    def to_record(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "completedPomodoros": self.completed_pomodoros,
            "isCompleted": self.is_completed,
            "savedTimeRemaining": self.saved_time_remaining,
            "isTimerActive": self.is_timer_active,
        }

    @classmethod
    def from_record(cls, record: Dict[str, Any], work_sec: int = WORK_SECONDS) -> "Task":
        if not isinstance(record, dict):
            raise ValueError(f"task record is not an object: {record!r}")
        task_id = record.get("id")
        name = record.get("name")
        if not isinstance(task_id, str) or not task_id:
            raise ValueError(f"task record has no id: {record!r}")
        if not isinstance(name, str) or not name.strip():
            raise ValueError(f"task record has no name: {record!r}")
        try:
            pomodoros = max(0, int(record.get("completedPomodoros", 0)))
            remaining = int(record.get("savedTimeRemaining", work_sec))
        except (TypeError, ValueError) as exc:
            raise ValueError(f"task record has bad numbers: {record!r}") from exc
        return cls(
            id=task_id,
            name=name.strip(),
            completed_pomodoros=pomodoros,
            is_completed=bool(record.get("isCompleted", False)),
            saved_time_remaining=max(0, min(work_sec, remaining)),
            is_timer_active=bool(record.get("isTimerActive", False)),
        )

    def has_paused_progress(self, work_sec: int = WORK_SECONDS) -> bool:
        if self.is_completed:
            return False
        return self.is_timer_active or self.saved_time_remaining < work_sec


@dataclass
class TaskLoadResult:
    tasks: List[Task]
    restored: bool
    reason: str = ""


def new_task_id() -> str:
    return str(uuid.uuid4())


def default_tasks(work_sec: int = WORK_SECONDS) -> List[Task]:
    return [Task(id=new_task_id(), name=name, saved_time_remaining=work_sec) for name in DEFAULT_TASK_NAMES]


def decode_tasks(raw: Any, work_sec: int = WORK_SECONDS) -> TaskLoadResult:
    if raw is None:
        return TaskLoadResult(default_tasks(work_sec), restored=False, reason="no saved tasks")
    if not isinstance(raw, list):
        return TaskLoadResult(default_tasks(work_sec), restored=False, reason="saved tasks are not a list")
    tasks: List[Task] = []
    seen = set()
    for record in raw:
        try:
            task = Task.from_record(record, work_sec)
        except ValueError as exc:
            return TaskLoadResult(default_tasks(work_sec), restored=False, reason=str(exc))
        if task.id in seen:
            return TaskLoadResult(default_tasks(work_sec), restored=False, reason=f"duplicate task id {task.id}")
        seen.add(task.id)
        tasks.append(task)
    if not tasks:
        return TaskLoadResult(default_tasks(work_sec), restored=False, reason="saved task list is empty")
    return TaskLoadResult(tasks, restored=True)


def load_tasks(state: StateStore, work_sec: int = WORK_SECONDS) -> TaskLoadResult:
    result = decode_tasks(state.get(TASKS_KEY), work_sec)
    if result.restored:
        logging.info("tasks restored: %d", len(result.tasks))
    else:
        logging.info("tasks seeded with defaults: %s", result.reason)
    return result


def sorted_tasks(tasks: Iterable[Task], current_id: str | None, mode: str) -> List[Task]:
    """Current task first (work mode only), then active by name, then completed by name."""
    items = list(tasks)
    head: List[Task] = []
    if mode == WORK and current_id:
        head = [t for t in items if t.id == current_id and not t.is_completed]
    lead = {t.id for t in head}
    active = sorted((t for t in items if not t.is_completed and t.id not in lead), key=lambda t: t.name)
    done = sorted((t for t in items if t.is_completed), key=lambda t: t.name)
    return head + active + done


class TaskStore:
    def __init__(self, state: StateStore, work_sec: int = WORK_SECONDS) -> None:
        self._state = state
        self.work_sec = work_sec
        result = load_tasks(state, work_sec)
        self._tasks: List[Task] = result.tasks
        if not result.restored:
            self._persist()
        self._current_id = self._load_current_id()

    def _load_current_id(self) -> str | None:
        task_id = self._state.get(CURRENT_TASK_KEY)
        task = self._find(task_id) if isinstance(task_id, str) else None
        if task is None or task.is_completed:
            if task_id is not None:
                logging.info("saved current task dropped: %s", task_id)
                self._state.remove(CURRENT_TASK_KEY)
            return None
        return task.id

    def _persist(self) -> None:
        self._state.set(TASKS_KEY, [t.to_record() for t in self._tasks])

    def _find(self, task_id: str | None) -> Optional[Task]:
        for task in self._tasks:
            if task.id == task_id:
                return task
        return None

    def tasks(self) -> List[Task]:
        return [replace(t) for t in self._tasks]

    def get(self, task_id: str | None) -> Optional[Task]:
        task = self._find(task_id)
        return replace(task) if task else None

    @property
    def current_id(self) -> str | None:
        return self._current_id

    def current(self) -> Optional[Task]:
        return self.get(self._current_id)

    def active_tasks(self) -> List[Task]:
        return [replace(t) for t in self._tasks if not t.is_completed]

    def first_active(self, exclude: str | None = None) -> Optional[Task]:
        for task in self._tasks:
            if not task.is_completed and task.id != exclude:
                return replace(task)
        return None

    def sorted(self, mode: str) -> List[Task]:
        return sorted_tasks(self.tasks(), self._current_id, mode)

    def add(self, name: str) -> Optional[Task]:
        name = (name or "").strip()
        if not name:
            return None
        task = Task(id=new_task_id(), name=name, saved_time_remaining=self.work_sec)
        self._tasks.append(task)
        self._persist()
        logging.info("task added: %s", task.id)
        return replace(task)

    def rename(self, task_id: str, new_name: str) -> bool:
        new_name = (new_name or "").strip()
        task = self._find(task_id)
        if task is None or not new_name:
            return False
        task.name = new_name
        self._persist()
        logging.info("task renamed: %s", task_id)
        return True

    def delete(self, task_id: str) -> bool:
        task = self._find(task_id)
        if task is None:
            return False
        self._tasks = [t for t in self._tasks if t.id != task_id]
        self._persist()
        if self._current_id == task_id:
            self.set_current(None)
        logging.info("task deleted: %s", task_id)
        return True

    def toggle_completed(self, task_id: str) -> Optional[bool]:
        task = self._find(task_id)
        if task is None:
            return None
        task.is_completed = not task.is_completed
        if task.is_completed:
            task.is_timer_active = False
        self._persist()
        logging.info("task completed=%s: %s", task.is_completed, task_id)
        return task.is_completed

    def set_current(self, task_id: str | None) -> bool:
        if task_id is None:
            self._current_id = None
            self._state.remove(CURRENT_TASK_KEY)
            return True
        task = self._find(task_id)
        if task is None or task.is_completed:
            return False
        self._current_id = task.id
        self._state.set(CURRENT_TASK_KEY, task.id)
        return True

    def save_progress(self, task_id: str, seconds_remaining: int, was_running: bool) -> bool:
        task = self._find(task_id)
        if task is None:
            return False
        task.saved_time_remaining = max(0, min(self.work_sec, int(seconds_remaining)))
        task.is_timer_active = bool(was_running)
        self._persist()
        return True

    def record_pomodoro(self, task_id: str) -> Optional[Task]:
        task = self._find(task_id)
        if task is None:
            return None
        task.completed_pomodoros += 1
        task.saved_time_remaining = self.work_sec
        task.is_timer_active = False
        self._persist()
        logging.info("pomodoro recorded: %s total=%d", task_id, task.completed_pomodoros)
        return replace(task)

    def set_work_seconds(self, work_sec: int) -> None:
        old_work = self.work_sec
        self.work_sec = max(1, int(work_sec))
        changed = False
        for task in self._tasks:
            # Untouched tasks follow the new full duration; progress is kept but clamped.
            if task.saved_time_remaining == old_work:
                target = self.work_sec
            else:
                target = min(task.saved_time_remaining, self.work_sec)
            if target != task.saved_time_remaining:
                task.saved_time_remaining = target
                changed = True
        if changed:
            self._persist()
