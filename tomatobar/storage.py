from __future__ import annotations

import json
import logging
import os
from typing import Any, Dict


TASKS_KEY = "PomodoroTasks"
CURRENT_TASK_KEY = "CurrentTaskId"
DAILY_COUNT_KEY = "DailyPomodoroCount"
LAST_DATE_KEY = "LastPomodoroDate"


class StateStore:
    """Process-wide key-value storage backed by a single JSON file.

    Every ``set``/``remove`` writes the whole file. A file that cannot be
    read is treated as empty; a failed write is logged and the in-memory
    values stay authoritative for the rest of the session.
    """

    def __init__(self, path: str) -> None:
        self._path = path
        self._data: Dict[str, Any] = {}
        self._load()

    @property
    def path(self) -> str:
        return self._path

    def _load(self) -> None:
        try:
            if os.path.exists(self._path):
                with open(self._path, "r", encoding="utf-8") as f:
                    self._data = json.load(f)
            if not isinstance(self._data, dict):
                logging.warning("state store ignored non-object data: %s", self._path)
                self._data = {}
        except Exception as exc:
            logging.exception("state store load failed: %s", exc)
            self._data = {}

    def _save(self) -> None:
        try:
            os.makedirs(os.path.dirname(self._path), exist_ok=True)
            with open(self._path, "w", encoding="utf-8") as f:
                json.dump(self._data, f, ensure_ascii=False, indent=2)
        except Exception as exc:
            logging.exception("state store save failed: %s", exc)

    def get(self, key: str, default: Any = None) -> Any:
        return self._data.get(key, default)

    def has(self, key: str) -> bool:
        return key in self._data

    def set(self, key: str, value: Any) -> None:
        self._data[key] = value
        self._save()

    def set_many(self, values: Dict[str, Any]) -> None:
        self._data.update(values)
        self._save()

    def remove(self, key: str) -> None:
        if key not in self._data:
            return
        self._data.pop(key, None)
        self._save()
