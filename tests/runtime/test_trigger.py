#!filepath: tests/runtime/test_trigger.py
import threading
import time

import pytest

from humiture.runtime.trigger import PeriodicTrigger


def test_trigger_runs_until_predicate():
    calls = {"n": 0}

    def tick():
        calls["n"] += 1

    trig = PeriodicTrigger(tick, 0.01, until=lambda: calls["n"] >= 3)
    trig.start()
    trig.join(timeout=5)

    assert not trig.running
    assert calls["n"] == 3
    assert trig.ticks == 3


def test_ticks_never_overlap_and_overrun_is_reported():
    lock = threading.Lock()
    state = {"active": 0, "max_active": 0, "n": 0}

    def slow_tick():
        with lock:
            state["active"] += 1
            state["max_active"] = max(state["max_active"], state["active"])
        time.sleep(0.03)
        with lock:
            state["active"] -= 1
            state["n"] += 1

    trig = PeriodicTrigger(slow_tick, 0.005, until=lambda: state["n"] >= 4)
    trig.start()
    trig.join(timeout=5)

    assert state["max_active"] == 1
    assert trig.overruns >= 1


def test_exception_in_tick_does_not_stop_trigger(log_messages):
    calls = {"n": 0}

    def tick():
        calls["n"] += 1
        if calls["n"] == 1:
            raise RuntimeError("boom")

    trig = PeriodicTrigger(tick, 0.01, until=lambda: calls["n"] >= 2)
    trig.start()
    trig.join(timeout=5)

    assert calls["n"] == 2
    assert any("raised" in m for m in log_messages)


def test_stop_between_ticks():
    calls = {"n": 0}

    def tick():
        calls["n"] += 1

    trig = PeriodicTrigger(tick, 10.0)
    trig.start()
    assert trig.running

    started = time.monotonic()
    trig.stop(timeout=2)

    assert time.monotonic() - started < 2
    assert not trig.running
    assert calls["n"] == 0


def test_interval_must_be_positive():
    with pytest.raises(ValueError):
        PeriodicTrigger(lambda: None, 0)
