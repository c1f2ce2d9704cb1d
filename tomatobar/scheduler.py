from __future__ import annotations

import logging
from typing import Callable


ScheduleFn = Callable[[int, Callable[[], None]], None]


def qt_schedule(delay_ms: int, callback: Callable[[], None]) -> None:
    from PySide6.QtCore import QTimer

    QTimer.singleShot(max(0, int(delay_ms)), callback)


class DelayedCalls:
    """One-shot callbacks that go stale when the generation moves on.

    ``cancel_all`` bumps the generation; anything scheduled before that
    becomes a no-op when its timer fires.
    """

    def __init__(self, schedule: ScheduleFn = qt_schedule) -> None:
        self._schedule = schedule
        self._generation = 0

    @property
    def generation(self) -> int:
        return self._generation

    def call_later(self, delay_ms: int, callback: Callable[[], None], name: str = "") -> int:
        generation = self._generation

        def _fire() -> None:
            if generation != self._generation:
                logging.debug("delayed call dropped: %s gen=%d now=%d", name, generation, self._generation)
                return
            callback()

        self._schedule(delay_ms, _fire)
        return generation

    def cancel_all(self) -> None:
        self._generation += 1
