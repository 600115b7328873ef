"""Cancellable timers: one-shot and repeating callbacks.

ThreadingScheduler backs real play with threading.Timer and a stop-event
loop. ManualScheduler runs the same callbacks on a virtual clock that only
moves when advance() is called.
"""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable

logger = logging.getLogger(__name__)


def _run_callback(callback: Callable, *args) -> None:
    """Run a timer callback; errors are logged so the timer thread survives."""
    try:
        callback(*args)
    except Exception:
        logger.exception("timer callback %r failed", callback)


class TimerHandle:
    """Handle for a scheduled callback. cancel() is safe to call twice."""

    def __init__(self):
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True


# ── thread-backed ────────────────────────────────────────────────────

class _OneShot(TimerHandle):
    def __init__(self, delay: float, callback: Callable, args: tuple):
        super().__init__()
        self._timer = threading.Timer(delay, self._fire, args=args)
        self._timer.daemon = True
        self._callback = callback

    def _fire(self, *args):
        if not self.cancelled:
            _run_callback(self._callback, *args)

    def start(self):
        self._timer.start()

    def cancel(self) -> None:
        super().cancel()
        self._timer.cancel()


class _Repeating(threading.Thread, TimerHandle):
    """Calls callback every interval seconds until cancelled."""

    def __init__(self, interval: float, callback: Callable):
        threading.Thread.__init__(self, daemon=True)
        TimerHandle.__init__(self)
        self.interval = interval
        self.callback = callback
        self._stop_event = threading.Event()

    def cancel(self) -> None:
        TimerHandle.cancel(self)
        self._stop_event.set()

    def run(self):
        # period is measured from fixed deadlines, not from callback return
        next_due = time.monotonic() + self.interval
        while not self._stop_event.wait(max(0.0, next_due - time.monotonic())):
            _run_callback(self.callback)
            next_due += self.interval


class ThreadingScheduler:
    """Wall-clock scheduler. Callbacks run on daemon threads."""

    def now(self) -> float:
        return time.monotonic()

    def call_later(self, delay: float, callback: Callable, *args) -> TimerHandle:
        handle = _OneShot(delay, callback, args)
        handle.start()
        return handle

    def call_every(self, interval: float, callback: Callable) -> TimerHandle:
        handle = _Repeating(interval, callback)
        handle.start()
        return handle


# ── virtual clock ────────────────────────────────────────────────────

class _Scheduled(TimerHandle):
    def __init__(self, due: float, seq: int, callback: Callable,
                 args: tuple, interval: float | None):
        super().__init__()
        self.due = due
        self.seq = seq
        self.callback = callback
        self.args = args
        self.interval = interval


class ManualScheduler:
    """Deterministic scheduler for tests and headless simulation.

    Nothing fires until advance() moves the clock. Callbacks due at the same
    instant fire in the order they were scheduled; a callback may cancel or
    schedule others while advance() is running.
    """

    def __init__(self, start: float = 0.0):
        self._now = start
        self._seq = 0
        self._pending: list[_Scheduled] = []

    def now(self) -> float:
        return self._now

    def pending(self) -> int:
        """Number of live (not cancelled) timers."""
        return sum(1 for h in self._pending if not h.cancelled)

    def _schedule(self, delay, callback, args, interval) -> TimerHandle:
        self._seq += 1
        handle = _Scheduled(self._now + delay, self._seq, callback, args, interval)
        self._pending.append(handle)
        return handle

    def call_later(self, delay: float, callback: Callable, *args) -> TimerHandle:
        return self._schedule(delay, callback, args, None)

    def call_every(self, interval: float, callback: Callable) -> TimerHandle:
        if interval <= 0:
            raise ValueError("interval must be positive")
        return self._schedule(interval, callback, (), interval)

    def advance(self, seconds: float) -> None:
        """Move the clock forward, firing everything that comes due."""
        target = self._now + seconds
        while True:
            due = [h for h in self._pending if not h.cancelled and h.due <= target]
            if not due:
                break
            handle = min(due, key=lambda h: (h.due, h.seq))
            self._now = handle.due
            if handle.interval is None:
                self._pending.remove(handle)
            else:
                handle.due += handle.interval
            handle.callback(*handle.args)
        self._now = target
        self._pending = [h for h in self._pending if not h.cancelled]
