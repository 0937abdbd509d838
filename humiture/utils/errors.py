# humiture/utils/errors.py
from __future__ import annotations


class HumitureError(RuntimeError):
    """Base error of the replay service."""


class UserInputError(HumitureError):
    """
    Raised for invalid user-provided config (paths, times, etc).
    Should NOT print traceback.
    """


class ResourceUnavailable(HumitureError):
    """
    Archive / broker cannot be opened.

    启动期致命错误：两个数据源缺一不可，不做部分 replay。
    """


class DecodeError(HumitureError):
    """
    单条归档记录损坏（非数字 ts / value，字段数错误）。

    只影响所在 stream：该 stream 永久 exhausted，另一 stream 继续。
    """

    def __init__(self, message: str, *, source: str = "", line: int | None = None, raw=None):
        super().__init__(message)
        self.source = source
        self.line = line
        self.raw = raw

    def __str__(self) -> str:
        base = super().__str__()
        where = []
        if self.source:
            where.append(f"source={self.source}")
        if self.line is not None:
            where.append(f"line={self.line}")
        if self.raw is not None:
            where.append(f"raw={self.raw!r}")
        return f"{base} ({', '.join(where)})" if where else base


class OrderingError(DecodeError):
    """ts 回退：归档数据本身乱序，视为损坏输入。"""


class PublishFailure(HumitureError):
    """
    Publisher 侧投递失败。

    core 不观察、不重试；仅由 publisher 记录日志。
    """
