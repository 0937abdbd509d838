# humiture/replay/time_mapper.py
from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class TimeMapper:
    """
    archival ts -> target ts

        target = (archival + offset) * unit_scale

    offset     : 数据集时间平移（秒）
    unit_scale : 秒 -> 目标单位（毫秒 = 1000）
    """

    offset: int = 0
    unit_scale: int = 1

    def __post_init__(self):
        if self.unit_scale <= 0:
            raise ValueError(f"[TimeMapper] unit_scale must be positive, got {self.unit_scale}")

    @classmethod
    def identity(cls) -> "TimeMapper":
        return cls()

    def __call__(self, ts: int) -> int:
        return (ts + self.offset) * self.unit_scale
