# humiture/replay/events.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict


@dataclass(frozen=True)
class Reading:
    """
    一条已映射到目标时间域的读数（不可变，只被 publish 一次）

    ts    : 目标时间单位（默认毫秒）
    value : 湿度 / 温度
    """

    ts: int
    value: float

    def to_payload(self) -> Dict[str, float]:
        return {"ts": self.ts, "value": self.value}
