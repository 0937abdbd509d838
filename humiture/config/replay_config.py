# humiture/config/replay_config.py
from __future__ import annotations

from pydantic import BaseModel, Field, model_validator


class ReplayConfig(BaseModel):
    """
    ReplayConfig（启动时固定，运行期不可修改）

    默认值对应 Room1 数据集：
      - 数据集起始 2017-03-09 09:11:35 (1489021895)
      - 偏移 ts_offset 后落在 2021-03-09 09:11:35 (1615252295)
      - 模拟区间 2021-03-09 09:00:00 -> 2021-04-09 09:00:00
    """

    # 虚拟时钟（秒）
    start_time: int = 1615251600
    end_time: int = 1617930000
    # 每个 tick 虚拟时钟前进的秒数（时间流动系数）
    step: int = Field(500, gt=0)

    # 归档 ts -> 目标 ts: (ts + ts_offset) * ts_factor
    ts_offset: int = 126230400
    # 目标系统时间戳为毫秒
    ts_factor: int = Field(1000, gt=0)

    # 真实时间 tick 间隔（秒）
    tick_interval: float = Field(1.0, gt=0)

    # 日志中渲染虚拟时间使用的时区
    timezone: str = "Asia/Shanghai"

    @model_validator(mode="after")
    def _check_window(self) -> "ReplayConfig":
        if self.end_time <= self.start_time:
            raise ValueError(
                f"end_time ({self.end_time}) must be after start_time ({self.start_time})"
            )
        return self
