# humiture/replay/clock.py
from __future__ import annotations

from typing import Optional


class VirtualClock:
    """
    加速虚拟时钟（秒）

    - 每次 advance() 前进固定 step
    - current >= horizon 后 advance() 为 no-op（返回 None）
    - current 只增不减
    """

    def __init__(self, start: int, step: int, horizon: int) -> None:
        if step <= 0:
            raise ValueError(f"[VirtualClock] step must be positive, got {step}")
        self._current = start
        self._step = step
        self._horizon = horizon

    @property
    def step(self) -> int:
        return self._step

    @property
    def horizon(self) -> int:
        return self._horizon

    @property
    def complete(self) -> bool:
        return self._current >= self._horizon

    def now(self) -> int:
        return self._current

    def advance(self) -> Optional[int]:
        if self.complete:
            return None
        self._current += self._step
        return self._current

    def __repr__(self) -> str:
        return f"VirtualClock(current={self._current}, step={self._step}, horizon={self._horizon})"
