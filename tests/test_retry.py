#!filepath: tests/test_retry.py
import pytest
from humiture import retry


def test_retry_success_without_retry():
    """重试未触发情况：第一次运行成功"""
    call_count = {"n": 0}

    def func():
        call_count["n"] += 1
        return "ok"

    assert retry.run(func, max_attempts=3, sleep=lambda _: None) == "ok"
    assert call_count["n"] == 1


def test_retry_success_after_failures():
    """失败 2 次后成功，验证 retry 行为"""
    call_count = {"n": 0}

    def func():
        call_count["n"] += 1
        if call_count["n"] < 3:
            raise ValueError("fail")
        return "success"

    assert retry.run(func, max_attempts=5, delay=0.01, backoff=1, sleep=lambda _: None) == "success"
    assert call_count["n"] == 3  # 尝试了三次


def test_retry_raises_after_max_attempts():
    """达到最大重试次数仍失败，应抛异常"""
    call_count = {"n": 0}

    def func():
        call_count["n"] += 1
        raise ValueError("fail")

    with pytest.raises(ValueError):
        retry.run(func, max_attempts=3, delay=0.01, sleep=lambda _: None)

    assert call_count["n"] == 3


def test_retry_catches_specific_exception():
    """只捕获特定异常，其他异常直接抛出"""
    call_count = {"n": 0}

    def func():
        call_count["n"] += 1
        raise ValueError("this is not KeyError")

    # 非捕获异常，应该立即抛出，不尝试第二次
    with pytest.raises(ValueError):
        retry.run(func, exceptions=(KeyError,), max_attempts=3, sleep=lambda _: None)

    assert call_count["n"] == 1


def test_retry_run_uses_backoff_without_sleeping():
    """run() 直接调用：注入 sleep 记录等待时长"""
    waits = []
    call_count = {"n": 0}

    def connect(host, port):
        call_count["n"] += 1
        if call_count["n"] < 3:
            raise ConnectionRefusedError(host)
        return (host, port)

    result = retry.run(
        connect, "broker", 1883,
        exceptions=(OSError,), max_attempts=3, delay=1.0, backoff=2.0, jitter=False,
        sleep=waits.append,
    )

    assert result == ("broker", 1883)
    assert waits == [1.0, 2.0]
