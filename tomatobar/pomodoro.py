from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Optional


WORK = "work"
BREAK = "break"

WORK_SECONDS = 25 * 60
BREAK_SECONDS = 5 * 60
TICK_MS = 1000


@dataclass(frozen=True)
class PomodoroState:
    mode: str  # work | break
    remaining_sec: int
    total_sec: int
    running: bool


class TimerEngine:
    """One-second countdown alternating between work and break phases.

    The repeating clock is injected: anything with ``start(msec)`` and
    ``stop()`` whose timeout calls :meth:`tick` (a ``QTimer`` in the app).
    """

    def __init__(
        self,
        ticker,
        work_sec: int = WORK_SECONDS,
        break_sec: int = BREAK_SECONDS,
    ) -> None:
        self._ticker = ticker
        self.work_sec = max(1, int(work_sec))
        self.break_sec = max(1, int(break_sec))
        self._mode = WORK
        self._remaining_sec = self.work_sec
        self._running = False
        self._on_change: Optional[Callable[[PomodoroState], None]] = None
        self._on_phase_complete: Optional[Callable[[str], None]] = None

    def set_handlers(
        self,
        on_change: Callable[[PomodoroState], None] | None = None,
        on_phase_complete: Callable[[str], None] | None = None,
    ) -> None:
        self._on_change = on_change
        self._on_phase_complete = on_phase_complete

    @property
    def mode(self) -> str:
        return self._mode

    @property
    def time_remaining(self) -> int:
        return self._remaining_sec

    @property
    def is_running(self) -> bool:
        return self._running

    def duration_for(self, mode: str) -> int:
        return self.work_sec if mode == WORK else self.break_sec

    def snapshot(self) -> PomodoroState:
        return PomodoroState(
            mode=self._mode,
            remaining_sec=int(self._remaining_sec),
            total_sec=self.duration_for(self._mode),
            running=self._running,
        )

    def start(self) -> None:
        if self._running:
            return
        self._running = True
        self._ticker.start(TICK_MS)
        logging.info("timer started: mode=%s remaining=%s", self._mode, self._remaining_sec)
        self._notify()

    def pause(self) -> None:
        if not self._running:
            return
        self._running = False
        self._ticker.stop()
        logging.info("timer paused: mode=%s remaining=%s", self._mode, self._remaining_sec)
        self._notify()

    def reset(self) -> None:
        self.pause()
        self._mode = WORK
        self._remaining_sec = self.work_sec
        self._notify()

    def load(self, seconds: int) -> None:
        """Switch to a paused work phase with ``seconds`` left."""
        self.pause()
        self._mode = WORK
        self._remaining_sec = max(0, min(self.work_sec, int(seconds)))
        self._notify()

    def enter(self, mode: str) -> None:
        """Switch to a paused ``mode`` phase at its full duration."""
        self.pause()
        self._mode = mode
        self._remaining_sec = self.duration_for(mode)
        self._notify()

    def set_durations(self, work_sec: int, break_sec: int) -> None:
        self.work_sec = max(1, int(work_sec))
        self.break_sec = max(1, int(break_sec))
        # Keep remaining seconds within new duration.
        self._remaining_sec = min(self._remaining_sec, self.duration_for(self._mode))
        self._notify()

    def tick(self) -> None:
        if not self._running:
            return
        self._remaining_sec = max(0, self._remaining_sec - 1)
        if self._remaining_sec > 0:
            self._notify()
            return
        finished = self._mode
        self._running = False
        self._ticker.stop()
        self._mode = BREAK if finished == WORK else WORK
        self._remaining_sec = self.duration_for(self._mode)
        logging.info("phase complete: %s -> %s", finished, self._mode)
        self._notify()
        if self._on_phase_complete:
            self._on_phase_complete(finished)

    def _notify(self) -> None:
        if self._on_change:
            self._on_change(self.snapshot())


def format_clock(seconds: int) -> str:
    minutes, sec = divmod(max(0, int(seconds)), 60)
    return f"{minutes:02d}:{sec:02d}"


def minutes_label(seconds: int) -> str:
    """Whole minutes left, rounded up, for the tray icon."""
    return str((max(0, int(seconds)) + 59) // 60)


def status_text(state: PomodoroState) -> str:
    icon = "🍅" if state.mode == WORK else "☕"
    return f"{format_clock(state.remaining_sec)} {icon}"
