# humiture/publish/base.py
from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from humiture.replay.events import Reading


class Publisher(ABC):
    """
    Publisher（出口端口，FROZEN）

    职责：
      - 接收一条 Reading + 目标 topic
      - fire-and-forget：不返回、不确认，失败由实现自行记录

    core 不重试、不观察投递结果。
    """

    @abstractmethod
    def publish(self, reading: "Reading", topic: str) -> None:
        ...

    def close(self) -> None:
        pass

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
