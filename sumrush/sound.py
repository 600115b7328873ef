"""8-bit sound cues for the round: tick, correct, wrong.

Cues are synthesized once into a temp directory and played non-blocking
through the platform's command-line player. Playback never raises: a
missing player or a failed spawn just means silence.
"""

from __future__ import annotations

import logging
import os
import shutil
import struct
import subprocess
import tempfile
import threading
import wave

logger = logging.getLogger(__name__)

SAMPLE_RATE = 22050
PLAYERS = ("afplay", "paplay", "aplay")
MAX_CONCURRENT = 4


def _triangle(freq: float, dur: float, vol: float = 1.0) -> list[float]:
    samples = []
    n = int(SAMPLE_RATE * dur)
    for i in range(n):
        t = i / SAMPLE_RATE
        phase = (t * freq) % 1.0
        val = (4 * abs(phase - 0.5) - 1) * vol
        env = min(1.0, i / (SAMPLE_RATE * 0.003))
        tail = max(0.0, 1.0 - (i / n) * 0.5)
        samples.append(val * env * tail)
    return samples


def _square(freq: float, dur: float, vol: float = 1.0, duty: float = 0.5) -> list[float]:
    samples = []
    n = int(SAMPLE_RATE * dur)
    for i in range(n):
        t = i / SAMPLE_RATE
        phase = (t * freq) % 1.0
        val = vol if phase < duty else -vol
        env = min(1.0, i / (SAMPLE_RATE * 0.003))
        tail = max(0.0, 1.0 - (i / n) * 0.8)
        samples.append(val * env * tail)
    return samples


def write_wav(path: str, samples: list[float]):
    """Write mono 16-bit PCM, clipping to +-0.95."""
    with wave.open(path, "w") as w:
        w.setnchannels(1)
        w.setsampwidth(2)
        w.setframerate(SAMPLE_RATE)
        frames = b"".join(
            struct.pack("<h", int(max(-0.95, min(0.95, s)) * 32767)) for s in samples
        )
        w.writeframes(frames)


def cue_samples(volume: float) -> dict[str, list[float]]:
    """Sample data for every cue at the given volume."""
    v = volume
    return {
        # rising two-note E5 -> G5
        "correct": _triangle(659, 0.08, v * 0.5) + _triangle(784, 0.12, v * 0.6),
        # descending A4 -> E4
        "wrong": _square(440, 0.1, v * 0.35) + _square(330, 0.15, v * 0.3),
        # staccato A5 warning beep
        "tick": _square(880, 0.04, v * 0.3, 0.25),
    }


class SoundService:
    """Fire-and-forget cue playback with process tracking."""

    def __init__(self, enabled: bool = True, volume: float = 0.3,
                 player: str | None = None):
        self.enabled = enabled
        self.volume = volume
        self.player = player or next((p for p in PLAYERS if shutil.which(p)), None)
        self.muted = False
        self._files: dict[str, str] = {}
        self._dir = ""
        self._processes: list[subprocess.Popen] = []
        self._lock = threading.Lock()

    def prepare(self) -> bool:
        """Generate cue files. Returns False when sound stays off."""
        if not self.enabled:
            return False
        if self.player is None:
            logger.info("no audio player found, sound off")
            return False
        self._dir = tempfile.mkdtemp(prefix="sumrush-sfx-")
        for name, samples in cue_samples(self.volume).items():
            path = os.path.join(self._dir, f"{name}.wav")
            write_wav(path, samples)
            self._files[name] = path
        return True

    def _reap(self):
        """Drop finished processes."""
        with self._lock:
            self._processes[:] = [p for p in self._processes if p.poll() is None]

    def _play(self, name: str) -> None:
        if self.muted or not self.enabled:
            return
        path = self._files.get(name)
        if not path or not os.path.exists(path):
            return
        self._reap()
        with self._lock:
            # kill oldest if too many concurrent
            while len(self._processes) >= MAX_CONCURRENT:
                old = self._processes.pop(0)
                try:
                    old.kill()
                    old.wait()
                except OSError:
                    pass
            try:
                p = subprocess.Popen(
                    [self.player, path],
                    stdout=subprocess.DEVNULL,
                    stderr=subprocess.DEVNULL,
                )
                self._processes.append(p)
            except OSError as e:
                logger.debug("could not play %s: %s", name, e)

    def play_tick(self) -> None:
        self._play("tick")

    def play_correct(self) -> None:
        self._play("correct")

    def play_wrong(self) -> None:
        self._play("wrong")

    def stop_all(self) -> None:
        """Kill all running audio."""
        with self._lock:
            for p in self._processes:
                try:
                    p.kill()
                    p.wait()
                except OSError:
                    pass
            self._processes.clear()

    def cleanup(self) -> None:
        self.stop_all()
        if self._dir and os.path.isdir(self._dir):
            shutil.rmtree(self._dir, ignore_errors=True)
        self._files.clear()
        self._dir = ""
