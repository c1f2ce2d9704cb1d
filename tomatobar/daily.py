from __future__ import annotations

import logging
import time

try:
    from .storage import DAILY_COUNT_KEY, LAST_DATE_KEY, StateStore
except ImportError:
    from storage import DAILY_COUNT_KEY, LAST_DATE_KEY, StateStore


def local_date(now_ts: float | None = None) -> str:
    if now_ts is None:
        now_ts = time.time()
    return time.strftime("%Y-%m-%d", time.localtime(now_ts))


class DailyCounter:
    """Completed pomodoros for the current local calendar day."""

    def __init__(self, state: StateStore, now_ts: float | None = None) -> None:
        self._state = state
        self._date = ""
        self._count = 0
        self.load(now_ts)

    @property
    def count(self) -> int:
        return self._count

    @property
    def date(self) -> str:
        return self._date

    def load(self, now_ts: float | None = None) -> int:
        today = local_date(now_ts)
        last_date = str(self._state.get(LAST_DATE_KEY, "") or "")
        if last_date == today:
            try:
                self._count = max(0, int(self._state.get(DAILY_COUNT_KEY, 0)))
            except (TypeError, ValueError):
                self._count = 0
            self._date = today
            logging.info("daily count restored: %s=%d", today, self._count)
        else:
            self._roll_over(today, last_date)
        return self._count

    def increment(self, now_ts: float | None = None) -> int:
        today = local_date(now_ts)
        if today != self._date:
            self._roll_over(today, self._date)
        self._count += 1
        self._persist()
        logging.info("daily count: %s=%d", self._date, self._count)
        return self._count

    def _roll_over(self, today: str, previous: str) -> None:
        logging.info("daily count reset: %s -> %s", previous or "-", today)
        self._date = today
        self._count = 0
        self._persist()

    def _persist(self) -> None:
        self._state.set_many({DAILY_COUNT_KEY: self._count, LAST_DATE_KEY: self._date})
