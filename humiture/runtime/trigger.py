# humiture/runtime/trigger.py
from __future__ import annotations

import threading
import time
from typing import Callable, Optional

from humiture import logs


class PeriodicTrigger:
    """
    PeriodicTrigger（单 worker 线程的固定频率触发器）

    - 每 interval 秒调用一次 func（等价于 cron "0/1 * * * * *"）
    - 只有一个线程执行 func：tick 之间绝不重叠
    - tick 超时：跳过错过的时间槽，不做补偿性连发
    - func 抛出的异常只记录，trigger 继续运行
    - stop() 只在两个 tick 之间生效（最小可中断单位 = 一个完整 tick）
    """

    def __init__(
        self,
        func: Callable[[], object],
        interval: float = 1.0,
        *,
        until: Optional[Callable[[], bool]] = None,
        clock: Callable[[], float] = time.monotonic,
        name: str = "replay-trigger",
    ) -> None:
        if interval <= 0:
            raise ValueError(f"[PeriodicTrigger] interval must be positive, got {interval}")
        self._func = func
        self._interval = interval
        self._until = until
        self._clock = clock
        self._name = name

        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

        self.ticks = 0
        self.overruns = 0

    # --------------------------------------------------
    @property
    def interval(self) -> float:
        return self._interval

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        if self.running:
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._run, name=self._name, daemon=True)
        self._thread.start()

    def stop(self, timeout: Optional[float] = None) -> None:
        self._stop.set()
        if self._thread is not None and self._thread is not threading.current_thread():
            self._thread.join(timeout)

    def join(self, timeout: Optional[float] = None) -> None:
        if self._thread is not None:
            self._thread.join(timeout)

    # --------------------------------------------------
    def _run(self) -> None:
        next_at = self._clock() + self._interval

        while not self._stop.wait(max(0.0, next_at - self._clock())):
            try:
                self._func()
            except Exception:
                logs.exception(f"[PeriodicTrigger] tick #{self.ticks + 1} raised")
            self.ticks += 1

            if self._until is not None and self._until():
                logs.info(f"[PeriodicTrigger] stop condition reached after {self.ticks} ticks")
                return

            next_at += self._interval
            now = self._clock()
            if now > next_at:
                missed = int((now - next_at) // self._interval) + 1
                next_at += missed * self._interval
                self.overruns += 1
                logs.warning(
                    f"[PeriodicTrigger] tick overran interval={self._interval}s, skipped {missed} slot(s)"
                )
