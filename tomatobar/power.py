from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Callable


@dataclass
class SleepGap:
    slept_at: float
    woke_at: float

    @property
    def seconds(self) -> float:
        return max(0.0, self.woke_at - self.slept_at)


class SleepWatcher:
    """Detects system sleep from heartbeats.

    The monotonic clock stops while the machine sleeps and the wall clock
    does not, so a wall-clock advance that outruns the monotonic one by more
    than ``gap_sec`` means the machine was asleep in between.
    """

    def __init__(self, gap_sec: float = 30.0) -> None:
        self.gap_sec = max(1.0, float(gap_sec))
        self._last_wall: float | None = None
        self._last_mono: float | None = None

    def poll(self, wall: float | None = None, mono: float | None = None) -> SleepGap | None:
        if wall is None:
            wall = time.time()
        if mono is None:
            mono = time.monotonic()
        last_wall, last_mono = self._last_wall, self._last_mono
        self._last_wall, self._last_mono = wall, mono
        if last_wall is None or last_mono is None:
            return None
        drift = (wall - last_wall) - (mono - last_mono)
        if drift < self.gap_sec:
            return None
        logging.info("sleep detected: drift=%.1fs", drift)
        return SleepGap(slept_at=last_wall, woke_at=wall)


def sleep_guard(watcher: SleepWatcher, on_sleep: Callable[[SleepGap], None]) -> Callable[[], bool]:
    """Wrap ``watcher`` so callers can ask "did we just wake up?" before acting.

    ``on_sleep`` runs once per detected gap, before the caller goes on.
    """

    def slept() -> bool:
        gap = watcher.poll()
        if gap is None:
            return False
        on_sleep(gap)
        return True

    return slept
