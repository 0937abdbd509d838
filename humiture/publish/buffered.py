# humiture/publish/buffered.py
from __future__ import annotations

import queue
import threading

from humiture import logs
from humiture.observability.metrics import MetricRecorder
from humiture.publish.base import Publisher
from humiture.utils.errors import PublishFailure

_STOP = object()


class BufferedPublisher(Publisher):
    """
    BufferedPublisher（有界队列 + 单 worker 线程）

    - publish() 永不阻塞：队列满则丢弃并计数
    - worker 顺序调用 inner.publish，保持 stream 内顺序
    - inner 抛出的异常只记录，不影响 scheduler
    """

    def __init__(self, inner: Publisher, maxsize: int = 10_000, *, name: str | None = None,
                 metrics: MetricRecorder | None = None) -> None:
        self.inner = inner
        self.name = name or getattr(inner, "name", inner.__class__.__name__)
        self.metrics = metrics or MetricRecorder()

        self._queue: queue.Queue = queue.Queue(maxsize=maxsize)
        self._closed = False
        self._worker = threading.Thread(
            target=self._run, name=f"publisher-{self.name}", daemon=True
        )
        self._worker.start()

    # --------------------------------------------------
    def publish(self, reading, topic: str) -> None:
        if self._closed:
            self.metrics.incr("dropped")
            logs.warning(f"[BufferedPublisher:{self.name}] closed, drop ts={reading.ts}")
            return
        try:
            self._queue.put_nowait((reading, topic))
        except queue.Full:
            self.metrics.incr("dropped")
            logs.warning(f"[BufferedPublisher:{self.name}] queue full, drop ts={reading.ts}")

    def flush(self) -> None:
        """阻塞直到队列中已有消息全部交给 inner"""
        self._queue.join()

    @property
    def pending(self) -> int:
        return self._queue.qsize()

    def close(self, timeout: float = 5.0) -> None:
        if self._closed:
            return
        self._closed = True
        try:
            self._queue.put(_STOP, timeout=timeout)
        except queue.Full:
            logs.warning(f"[BufferedPublisher:{self.name}] queue still full on close, {self.pending} pending")
        self._worker.join(timeout)
        if self._worker.is_alive():
            logs.warning(f"[BufferedPublisher:{self.name}] worker did not stop within {timeout}s")
        self.inner.close()

    # --------------------------------------------------
    def _run(self) -> None:
        while True:
            item = self._queue.get()
            try:
                if item is _STOP:
                    return
                reading, topic = item
                try:
                    self.inner.publish(reading, topic)
                    self.metrics.incr("published")
                except Exception as e:
                    self.metrics.incr("failed")
                    logs.warning(f"[BufferedPublisher:{self.name}] {PublishFailure(str(e))!r} ts={reading.ts}")
            finally:
                self._queue.task_done()
