import os
import tempfile
import unittest
import wave

from tomatobar.sounds import SAMPLE_RATE, TONES, ensure_tones, write_tone


class ToneFileTests(unittest.TestCase):
    def test_write_tone_creates_mono_wav(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = write_tone(os.path.join(tmp, "beep.wav"), 880.0, 0.1)
            with wave.open(path, "r") as wf:
                self.assertEqual(wf.getnchannels(), 1)
                self.assertEqual(wf.getsampwidth(), 2)
                self.assertEqual(wf.getframerate(), SAMPLE_RATE)
                self.assertEqual(wf.getnframes(), int(SAMPLE_RATE * 0.1))

    def test_ensure_tones_keeps_existing_files(self):
        with tempfile.TemporaryDirectory() as tmp:
            existing = os.path.join(tmp, "beep.wav")
            with open(existing, "wb") as f:
                f.write(b"custom")
            paths = ensure_tones(tmp)
            self.assertEqual(set(paths), set(TONES))
            with open(existing, "rb") as f:
                self.assertEqual(f.read(), b"custom")
            self.assertTrue(os.path.exists(paths["chime"]))


if __name__ == "__main__":
    unittest.main()
