from __future__ import annotations

import json
import logging
import os
from typing import Dict, Any


BASE_DIR = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))


def data_dir() -> str:
    override = os.getenv("TOMATOBAR_DATA_DIR", "").strip()
    if override:
        return os.path.abspath(os.path.expanduser(override))
    return os.path.join(BASE_DIR, "data")


DEFAULTS: Dict[str, Any] = {
    "work_minutes": 25,
    "break_minutes": 5,
    "break_autostart_delay_ms": 3000,
    "return_to_work_delay_ms": 2000,
    "resort_delay_ms": 800,
    "sound_enabled": True,
    "sleep_gap_sec": 30,
}


class AppSettings:
    def __init__(self, path: str | None = None) -> None:
        self._path = path or os.path.join(data_dir(), "settings.json")
        self._data: Dict[str, Any] = {}
        self._load()

    def _load(self) -> None:
        try:
            if os.path.exists(self._path):
                with open(self._path, "r", encoding="utf-8") as f:
                    self._data = json.load(f)
            if not isinstance(self._data, dict):
                self._data = {}
            logging.info("settings loaded: %s", self._path)
        except Exception as exc:
            logging.exception("settings read failed: %s", exc)
            self._data = {}

    def _save(self) -> None:
        try:
            os.makedirs(os.path.dirname(self._path), exist_ok=True)
            with open(self._path, "w", encoding="utf-8") as f:
                json.dump(self._data, f, ensure_ascii=False, indent=2)
        except Exception as exc:
            logging.exception("settings write failed: %s", exc)

    def get_settings(self) -> Dict[str, Any]:
        stored = self._data.get("settings", {})
        merged = DEFAULTS.copy()
        if isinstance(stored, dict):
            for key, value in stored.items():
                if key in merged:
                    merged[key] = value
        return _normalize(merged)

    def set_settings(self, values: Dict[str, Any]) -> None:
        if not isinstance(values, dict):
            return
        current = self.get_settings()
        for key in current.keys():
            if key in values:
                current[key] = values[key]
        self._data["settings"] = _normalize(current)
        self._save()

    def work_seconds(self) -> int:
        return int(self.get_settings()["work_minutes"]) * 60

    def break_seconds(self) -> int:
        return int(self.get_settings()["break_minutes"]) * 60


def _normalize(data: Dict[str, Any]) -> Dict[str, Any]:
    for key in ("work_minutes", "break_minutes"):
        try:
            data[key] = max(1, min(180, int(data[key])))
        except (TypeError, ValueError):
            data[key] = DEFAULTS[key]
    for key in ("break_autostart_delay_ms", "return_to_work_delay_ms", "resort_delay_ms", "sleep_gap_sec"):
        try:
            data[key] = max(0, int(data[key]))
        except (TypeError, ValueError):
            data[key] = DEFAULTS[key]
    data["sound_enabled"] = bool(data.get("sound_enabled", True))
    return data
