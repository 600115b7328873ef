"""Tests for the manual and thread-backed schedulers."""

import threading
import time

from sumrush.timers import ManualScheduler, ThreadingScheduler


def test_call_later_fires_once_when_due():
    sched = ManualScheduler()
    fired = []
    sched.call_later(2.0, fired.append, "x")
    sched.advance(1.5)
    assert fired == []
    sched.advance(0.5)
    assert fired == ["x"]
    sched.advance(10)
    assert fired == ["x"]
    assert sched.pending() == 0


def test_call_every_repeats():
    sched = ManualScheduler()
    times = []
    sched.call_every(1.0, lambda: times.append(sched.now()))
    sched.advance(3.5)
    assert times == [1.0, 2.0, 3.0]
    assert sched.now() == 3.5


def test_cancelled_handle_never_fires():
    sched = ManualScheduler()
    fired = []
    handle = sched.call_later(1.0, fired.append, 1)
    handle.cancel()
    handle.cancel()
    sched.advance(5)
    assert fired == []


def test_callback_can_cancel_and_rearm():
    sched = ManualScheduler()
    fired = []
    state = {}

    def first():
        fired.append("first")
        state["second"].cancel()
        sched.call_later(1.0, fired.append, "third")

    sched.call_later(1.0, first)
    state["second"] = sched.call_later(1.5, fired.append, "second")
    sched.advance(5)
    assert fired == ["first", "third"]


def test_same_instant_fires_in_schedule_order():
    sched = ManualScheduler()
    fired = []
    sched.call_later(1.0, fired.append, "a")
    sched.call_later(1.0, fired.append, "b")
    sched.advance(1.0)
    assert fired == ["a", "b"]


def test_threading_call_later_runs_callback():
    sched = ThreadingScheduler()
    done = threading.Event()
    sched.call_later(0.01, done.set)
    assert done.wait(2.0)


def test_threading_cancel_prevents_callback():
    sched = ThreadingScheduler()
    done = threading.Event()
    handle = sched.call_later(0.2, done.set)
    handle.cancel()
    assert not done.wait(0.4)


def test_threading_call_every_stops_on_cancel():
    sched = ThreadingScheduler()
    count = []
    enough = threading.Event()

    def tick():
        count.append(1)
        if len(count) >= 2:
            enough.set()

    handle = sched.call_every(0.01, tick)
    assert enough.wait(2.0)
    handle.cancel()
    handle.join(1.0)
    assert not handle.is_alive()


def test_threading_call_every_survives_callback_error():
    sched = ThreadingScheduler()
    calls = []
    enough = threading.Event()

    def tick():
        calls.append(1)
        if len(calls) == 1:
            raise OSError("first tick fails")
        enough.set()

    handle = sched.call_every(0.01, tick)
    assert enough.wait(2.0)
    handle.cancel()
    assert len(calls) >= 2


def test_threading_call_every_keeps_fixed_period():
    """Slow callbacks do not push later ticks back."""
    sched = ThreadingScheduler()
    stamps = []
    enough = threading.Event()

    def tick():
        stamps.append(time.monotonic())
        time.sleep(0.03)
        if len(stamps) == 5:
            enough.set()

    start = time.monotonic()
    handle = sched.call_every(0.05, tick)
    assert enough.wait(5.0)
    handle.cancel()
    # fifth tick is due at 0.25; waiting a full period after each callback lands at 0.37
    assert stamps[4] - start < 0.31
