#!filepath: tests/observability/test_timer.py

import time
from humiture.observability.timer import Timer


def test_timer_basic():
    t = Timer(enabled=True)
    t.start("task")
    time.sleep(0.01)
    elapsed = t.end("task")

    assert elapsed > 0
    assert isinstance(elapsed, float)


def test_timer_measure():
    t = Timer()
    with t.measure("tick"):
        time.sleep(0.005)

    assert t.elapsed("tick") > 0
    assert t.elapsed("other") is None


def test_timer_disabled():
    t = Timer(enabled=False)
    t.start("task")
    elapsed = t.end("task")

    assert elapsed == 0.0
