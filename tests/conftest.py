# tests/conftest.py
from __future__ import annotations

from pathlib import Path
from typing import Iterable, List, Tuple

import pytest
import yaml
from loguru import logger

from humiture.publish.memory import MemoryPublisher
from humiture.replay.clock import VirtualClock
from humiture.replay.scheduler import ReplayScheduler, Stream
from humiture.replay.source import RecordSource
from humiture.replay.time_mapper import TimeMapper


@pytest.fixture(autouse=True)
def disable_file_logger():
    logger.remove()
    logger.add(lambda msg: None)  # or sys.stderr
    yield


@pytest.fixture
def log_messages() -> List[str]:
    """收集 loguru 消息（只保留 message 文本）"""
    messages: List[str] = []
    sink_id = logger.add(lambda m: messages.append(m.record["message"]), level="DEBUG")
    yield messages
    logger.remove(sink_id)


@pytest.fixture
def write_archive(tmp_path: Path):
    """
    写一个无表头 tab 分隔归档：
        <ts>\t<value>
    rows 可以是 (ts, value) 或任意原始字符串行
    """

    def _write(name: str, rows: Iterable) -> Path:
        p = tmp_path / name
        lines = []
        for r in rows:
            lines.append(r if isinstance(r, str) else "\t".join(str(x) for x in r))
        p.write_text("".join(line + "\n" for line in lines), encoding="utf-8")
        return p

    return _write


@pytest.fixture
def make_scheduler():
    """
    Factory fixture：两个内存 stream（humidity / temperature）

    Usage:
        sched, pubs = make_scheduler([("100", "1.0")], [("200", "2.0")], step=100)
        pubs["humidity"].readings
    """

    def _make(
        humidity_rows: Iterable[Tuple[str, str]],
        temperature_rows: Iterable[Tuple[str, str]],
        *,
        start: int = 0,
        step: int = 1,
        horizon: int = 1_000_000,
        ts_factor: int = 1,
        mapper: TimeMapper | None = None,
        publishers: dict | None = None,
    ):
        publishers = publishers or {
            "humidity": MemoryPublisher("humidity"),
            "temperature": MemoryPublisher("temperature"),
        }
        streams = [
            Stream(
                name=name,
                source=RecordSource(name, list(rows), mapper),
                publisher=publishers[name],
                topic="v1/devices/me/telemetry",
            )
            for name, rows in (("humidity", humidity_rows), ("temperature", temperature_rows))
        ]
        clock = VirtualClock(start=start, step=step, horizon=horizon)
        return ReplayScheduler(clock, streams, ts_factor=ts_factor), publishers

    return _make


@pytest.fixture
def make_config_file(tmp_path: Path, write_archive):
    """
    写一个完整 YAML 配置（归档使用绝对路径，日志写到 tmp_path）
    """

    def _make(humidity_rows=None, temperature_rows=None, **replay_overrides) -> Path:
        h = write_archive("Room1_Humidity.csv", humidity_rows if humidity_rows is not None else [(100, 45.0)])
        t = write_archive("Room1_Temperature.csv", temperature_rows if temperature_rows is not None else [(200, 21.5)])

        replay = {
            "start_time": 0,
            "end_time": 1000,
            "step": 100,
            "ts_offset": 0,
            "ts_factor": 1000,
            "tick_interval": 0.01,
        }
        replay.update(replay_overrides)

        data = {
            "log": {"dir": str(tmp_path / "logs"), "level": "DEBUG", "console": False},
            "replay": replay,
            "mqtt": {"host": "broker.test", "port": 1883, "qos": 1, "connect_retries": 2, "connect_delay": 0.0},
            "streams": {
                "humidity": {"path": str(h), "client_id": "room1-humidity"},
                "temperature": {"path": str(t), "client_id": "room1-temperature"},
            },
        }
        cfg_file = tmp_path / "config.yml"
        cfg_file.write_text(yaml.safe_dump(data), encoding="utf-8")
        return cfg_file

    return _make
