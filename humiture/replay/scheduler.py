# humiture/replay/scheduler.py
from __future__ import annotations

import threading
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Sequence

from humiture import logs, datetime_utils
from humiture.observability.metrics import MetricRecorder
from humiture.observability.timer import Timer
from humiture.publish.base import Publisher
from humiture.replay.clock import VirtualClock
from humiture.replay.source import RecordSource
from humiture.utils.errors import DecodeError


class SchedulerState(str, Enum):
    RUNNING = "RUNNING"
    COMPLETE = "COMPLETE"


@dataclass
class Stream:
    """一个物理量：游标 + 出口 + 固定 topic"""

    name: str
    source: RecordSource
    publisher: Publisher
    topic: str


@dataclass(frozen=True)
class TickResult:
    clock: int
    emitted: Dict[str, int] = field(default_factory=dict)
    complete: bool = False
    skipped: bool = False

    @property
    def total(self) -> int:
        return sum(self.emitted.values())


class ReplayScheduler:
    """
    ReplayScheduler（双 stream 虚拟时钟回放）

    每个 tick：
      1. clock.advance()
      2. threshold = clock * ts_factor
      3. 每个 stream 独立 drain：peek().ts <= threshold 的读数依次 publish
      4. 本 tick 跨过 horizon → emission 完成后进入 COMPLETE

    约束：
      - 单线程驱动，tick 不可重叠（非阻塞 guard 拒绝重入）
      - stream 之间不做全局合并排序
      - DecodeError 只终止所在 stream
      - tick() 永不抛异常
    """

    STREAM_COUNT = 2

    def __init__(
        self,
        clock: VirtualClock,
        streams: Sequence[Stream],
        *,
        ts_factor: int = 1000,
        metrics: MetricRecorder | None = None,
        timezone: str | None = None,
    ) -> None:
        if len(streams) != self.STREAM_COUNT:
            raise ValueError(
                f"[ReplayScheduler] expect {self.STREAM_COUNT} streams, got {len(streams)}"
            )
        names = [s.name for s in streams]
        if len(set(names)) != len(names):
            raise ValueError(f"[ReplayScheduler] duplicate stream names: {names}")
        if ts_factor <= 0:
            raise ValueError(f"[ReplayScheduler] ts_factor must be positive, got {ts_factor}")

        self._clock = clock
        self._streams: List[Stream] = list(streams)
        self._ts_factor = ts_factor
        self._timezone = timezone

        self.metrics = metrics or MetricRecorder()
        self.timer = Timer()

        self._state = SchedulerState.RUNNING
        self._guard = threading.Lock()

        # 启动前已损坏 / 为空的 stream
        for s in self._streams:
            if s.source.error is not None:
                self._on_decode_error(s, s.source.error)

    # --------------------------------------------------
    @property
    def state(self) -> SchedulerState:
        return self._state

    @property
    def complete(self) -> bool:
        return self._state is SchedulerState.COMPLETE

    @property
    def clock(self) -> VirtualClock:
        return self._clock

    @property
    def streams(self) -> List[Stream]:
        return list(self._streams)

    def threshold(self) -> int:
        return self._clock.now() * self._ts_factor

    # --------------------------------------------------
    def tick(self) -> TickResult:
        if not self._guard.acquire(blocking=False):
            logs.warning("[ReplayScheduler] tick already in progress -> skip")
            return TickResult(clock=self._clock.now(), skipped=True)

        try:
            with self.timer.measure("tick"):
                return self._tick()
        finally:
            self._guard.release()

    def _tick(self) -> TickResult:
        if self._state is SchedulerState.COMPLETE:
            return TickResult(clock=self._clock.now(), complete=True)

        now = self._clock.advance()
        if now is None:
            # 构造时 start >= horizon
            self._finish()
            return TickResult(clock=self._clock.now(), complete=True)

        threshold = now * self._ts_factor
        emitted = {s.name: self._drain(s, threshold) for s in self._streams}

        # 跨过 horizon 的 tick 仍完成本轮 emission
        if self._clock.complete:
            self._finish()

        return TickResult(clock=now, emitted=emitted, complete=self.complete)

    def _drain(self, stream: Stream, threshold: int) -> int:
        source = stream.source
        n = 0
        try:
            reading = source.peek()
            while reading is not None and reading.ts <= threshold:
                stream.publisher.publish(reading, stream.topic)
                n += 1
                source.advance()
                reading = source.peek()

        except DecodeError as e:
            self._on_decode_error(stream, e)

        except Exception:
            logs.exception(f"[ReplayScheduler] stream {stream.name} failed -> closed")
            self.metrics.incr(f"failed.{stream.name}")
            source.close()

        if n:
            self.metrics.incr(f"emitted.{stream.name}", n)
        return n

    def _on_decode_error(self, stream: Stream, err: DecodeError) -> None:
        self.metrics.incr(f"decode_error.{stream.name}")
        logs.error(f"[ReplayScheduler] stream {stream.name} stopped: {err}")

    def _finish(self) -> None:
        if self._state is SchedulerState.COMPLETE:
            return
        self._state = SchedulerState.COMPLETE
        now = self._clock.now()
        self.metrics.record("replay.completed_at", now)
        logs.info(
            f"[ReplayScheduler] replay complete, curTime={now} "
            f"({datetime_utils.fmt(now, self._timezone)}) emitted={self.emitted()}"
        )

    # --------------------------------------------------
    def emitted(self) -> Dict[str, int]:
        return {s.name: self.metrics.count(f"emitted.{s.name}") for s in self._streams}

    def stats(self) -> Dict[str, object]:
        return {
            "state": self._state.value,
            "clock": self._clock.now(),
            "last_tick_s": self.timer.elapsed("tick"),
            "metrics": self.metrics.snapshot(),
            "streams": {
                s.name: {
                    "emitted": self.metrics.count(f"emitted.{s.name}"),
                    "decode_errors": self.metrics.count(f"decode_error.{s.name}"),
                    "exhausted": s.source.exhausted,
                    "pending_ts": s.source.peek().ts if s.source.peek() else None,
                }
                for s in self._streams
            },
        }

    def close(self) -> None:
        for s in self._streams:
            s.source.close()
