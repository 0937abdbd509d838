# humiture/publish/memory.py
from __future__ import annotations

from typing import List, Tuple

from humiture import logs
from humiture.publish.base import Publisher
from humiture.publish.serializer import encode


class MemoryPublisher(Publisher):
    """内存 sink：记录 (topic, reading)，用于测试 / simulate"""

    def __init__(self, name: str = "memory") -> None:
        self.name = name
        self.records: List[Tuple[str, object]] = []
        self.closed = False

    def publish(self, reading, topic: str) -> None:
        self.records.append((topic, reading))

    @property
    def readings(self) -> list:
        return [r for _, r in self.records]

    def close(self) -> None:
        self.closed = True


class LogPublisher(Publisher):
    """dry-run：只写日志，不连接 broker"""

    def __init__(self, name: str) -> None:
        self.name = name
        self.count = 0

    def publish(self, reading, topic: str) -> None:
        self.count += 1
        logs.info(f"[LogPublisher:{self.name}] {topic} <- {encode(reading)}")

    def close(self) -> None:
        logs.info(f"[LogPublisher:{self.name}] closed, published={self.count}")
