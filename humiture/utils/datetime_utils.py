#!filepath: humiture/utils/datetime_utils.py
from __future__ import annotations
from datetime import datetime
from typing import Union
from zoneinfo import ZoneInfo


class DateTimeUtils:
    """
    虚拟时钟 / 归档时间戳 <-> 人类可读时间

    归档数据集与模拟起止时间均为北京时间（Asia/Shanghai）。
    """

    SH_TZ = ZoneInfo("Asia/Shanghai")

    @classmethod
    def tz(cls, name: str | None = None) -> ZoneInfo:
        return ZoneInfo(name) if name else cls.SH_TZ

    # ================================================================
    # parse() 用于解析完整时间字符串或 epoch 时间戳
    # ================================================================
    @classmethod
    def parse(cls, ts: Union[int, str, datetime], tz: str | None = None) -> datetime:
        zone = cls.tz(tz)

        if isinstance(ts, datetime):
            return ts.astimezone(zone) if ts.tzinfo else ts.replace(tzinfo=zone)

        # int timestamp（按位数判断单位）
        if isinstance(ts, int):
            s = str(abs(ts))
            if len(s) <= 10:   # 秒
                return datetime.fromtimestamp(ts, zone)
            if len(s) == 13:
                return datetime.fromtimestamp(ts / 1000, zone)
            if len(s) == 16:
                return datetime.fromtimestamp(ts / 1_000_000, zone)
            raise ValueError(f"无法识别的整数时间戳: {ts}")

        # 字符串 → datetime
        if isinstance(ts, str):
            s = ts.strip()
            if s.lstrip("-").isdigit():
                return cls.parse(int(s), tz)

            fmts = [
                "%Y-%m-%d %H:%M:%S",
                "%Y-%m-%dT%H:%M:%S",
                "%Y/%m/%d %H:%M:%S",
                "%Y-%m-%d",
            ]
            for fmt in fmts:
                try:
                    return datetime.strptime(s, fmt).replace(tzinfo=zone)
                except ValueError:
                    pass

            raise ValueError(f"无法解析时间字符串: {ts}")

        raise TypeError(f"不支持的时间类型: {type(ts)}")

    @classmethod
    def to_epoch(cls, ts: Union[int, str, datetime], tz: str | None = None) -> int:
        """任意输入 → epoch 秒"""
        return int(cls.parse(ts, tz).timestamp())

    @classmethod
    def fmt(cls, epoch_sec: int, tz: str | None = None) -> str:
        """epoch 秒 → 'YYYY-MM-DD HH:MM:SS'（用于日志）"""
        return datetime.fromtimestamp(epoch_sec, cls.tz(tz)).strftime("%Y-%m-%d %H:%M:%S")
