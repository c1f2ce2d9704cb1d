from __future__ import annotations

import logging
import math
import os
import struct
import wave
from typing import Dict, Iterable, Tuple

try:
    from .scheduler import ScheduleFn, qt_schedule
except ImportError:
    from scheduler import ScheduleFn, qt_schedule


SAMPLE_RATE = 44100

# name -> (frequency Hz, duration s)
TONES: Dict[str, Tuple[float, float]] = {
    "beep": (880.0, 0.12),
    "fanfare_c": (523.25, 0.18),
    "fanfare_e": (659.25, 0.18),
    "fanfare_g": (783.99, 0.35),
    "chime": (1046.5, 0.6),
}

FANFARE = (("fanfare_c", 0), ("fanfare_e", 180), ("fanfare_g", 360))
CHIME = (("chime", 0), ("chime", 700))


def write_tone(path: str, freq: float, duration_s: float, volume: float = 0.6) -> str:
    n_frames = int(SAMPLE_RATE * duration_s)
    frames = bytearray()
    for i in range(n_frames):
        t = i / SAMPLE_RATE
        # Short attack/release to avoid clicks.
        env = min(1.0, t * 40) * min(1.0, (duration_s - t) * 20)
        sample = int(32767 * volume * env * math.sin(2 * math.pi * freq * t))
        frames += struct.pack("<h", sample)
    os.makedirs(os.path.dirname(path), exist_ok=True)
    with wave.open(path, "w") as wf:
        wf.setnchannels(1)
        wf.setsampwidth(2)
        wf.setframerate(SAMPLE_RATE)
        wf.writeframes(bytes(frames))
    return path


def ensure_tones(sound_dir: str, names: Iterable[str] | None = None) -> Dict[str, str]:
    paths: Dict[str, str] = {}
    for name in names or TONES.keys():
        freq, duration = TONES[name]
        path = os.path.join(sound_dir, f"{name}.wav")
        if not os.path.exists(path):
            write_tone(path, freq, duration)
        paths[name] = path
    return paths


class SoundService:
    """Fire-and-forget tones for the timer events."""

    def __init__(self, sound_dir: str, enabled: bool = True, schedule: ScheduleFn = qt_schedule) -> None:
        from PySide6.QtCore import QUrl
        from PySide6.QtMultimedia import QSoundEffect

        self.enabled = enabled
        self._schedule = schedule
        self._effects: Dict[str, QSoundEffect] = {}
        try:
            paths = ensure_tones(sound_dir)
        except Exception as exc:
            logging.exception("sound files unavailable: %s", exc)
            paths = {}
        for name, path in paths.items():
            effect = QSoundEffect()
            effect.setSource(QUrl.fromLocalFile(path))
            effect.setLoopCount(1)
            effect.setVolume(0.6)
            self._effects[name] = effect

    def set_enabled(self, enabled: bool) -> None:
        self.enabled = enabled

    def _play(self, name: str) -> None:
        if not self.enabled:
            return
        effect = self._effects.get(name)
        if effect is None:
            from PySide6.QtWidgets import QApplication

            QApplication.beep()
            return
        effect.stop()
        effect.play()

    def _play_sequence(self, notes) -> None:
        for name, delay_ms in notes:
            if delay_ms <= 0:
                self._play(name)
            else:
                self._schedule(delay_ms, lambda name=name: self._play(name))

    def play_beep(self) -> None:
        self._play("beep")

    def play_work_complete(self) -> None:
        logging.info("sound: work complete")
        self._play_sequence(FANFARE)

    def play_break_complete(self) -> None:
        logging.info("sound: break complete")
        self._play_sequence(CHIME)
