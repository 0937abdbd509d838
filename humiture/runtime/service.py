# humiture/runtime/service.py
from __future__ import annotations

from typing import Callable, List, Optional

from humiture import logs, datetime_utils
from humiture.config.app_config import AppConfig
from humiture.publish.base import Publisher
from humiture.publish.buffered import BufferedPublisher
from humiture.publish.memory import LogPublisher
from humiture.replay.clock import VirtualClock
from humiture.replay.scheduler import ReplayScheduler, Stream
from humiture.replay.source import RecordSource, open_source
from humiture.replay.time_mapper import TimeMapper
from humiture.runtime.trigger import PeriodicTrigger

STREAM_NAMES = ("humidity", "temperature")


def build_sources(cfg: AppConfig) -> List[RecordSource]:
    """打开两个归档；任一失败 -> 关闭已打开的并上抛 ResourceUnavailable"""
    mapper = TimeMapper(offset=cfg.replay.ts_offset, unit_scale=cfg.replay.ts_factor)
    sources: List[RecordSource] = []
    try:
        for name in STREAM_NAMES:
            device = getattr(cfg.streams, name)
            sources.append(open_source(name, cfg.resolve_path(device.path), mapper))
    except Exception:
        for s in sources:
            s.close()
        raise
    return sources


def build_scheduler(cfg: AppConfig, sources: List[RecordSource], publishers: List[Publisher]) -> ReplayScheduler:
    clock = VirtualClock(
        start=cfg.replay.start_time,
        step=cfg.replay.step,
        horizon=cfg.replay.end_time,
    )
    streams = [
        Stream(name=src.name, source=src, publisher=pub, topic=getattr(cfg.streams, src.name).topic)
        for src, pub in zip(sources, publishers)
    ]
    return ReplayScheduler(
        clock,
        streams,
        ts_factor=cfg.replay.ts_factor,
        timezone=cfg.replay.timezone,
    )


class UploadService:
    """
    UploadService（进程生命周期）

    启动：
      - 打开两个归档（失败即终止启动）
      - 连接两个设备的 MQTT client（或 dry-run 日志 sink）
      - PeriodicTrigger 每 tick_interval 秒驱动一次 scheduler.tick()
    停止：
      - 等待当前 tick 完成后关闭 trigger / 归档 / publisher
    """

    def __init__(
        self,
        scheduler: ReplayScheduler,
        publishers: List[Publisher],
        *,
        interval: float = 1.0,
        timezone: Optional[str] = None,
    ) -> None:
        self.scheduler = scheduler
        self.publishers = publishers
        self._timezone = timezone
        self.trigger = PeriodicTrigger(
            scheduler.tick,
            interval,
            until=lambda: scheduler.complete,
        )
        self._closed = False

    @classmethod
    @logs.catch("replay service startup failed")
    def from_config(
        cls,
        cfg: AppConfig,
        *,
        dry_run: bool = False,
        interval: Optional[float] = None,
        client_factory: Optional[Callable] = None,
    ) -> "UploadService":
        sources = build_sources(cfg)
        publishers: List[Publisher] = []
        try:
            for name in STREAM_NAMES:
                publishers.append(cls._build_publisher(cfg, name, dry_run, client_factory))
        except Exception:
            for p in publishers:
                p.close()
            for s in sources:
                s.close()
            raise

        scheduler = build_scheduler(cfg, sources, publishers)
        return cls(
            scheduler,
            publishers,
            interval=interval or cfg.replay.tick_interval,
            timezone=cfg.replay.timezone,
        )

    @staticmethod
    def _build_publisher(cfg: AppConfig, name: str, dry_run: bool, client_factory) -> Publisher:
        if dry_run:
            return LogPublisher(name)

        from humiture.publish.mqtt import MqttPublisher

        device = getattr(cfg.streams, name)
        inner = MqttPublisher(name, device, cfg.mqtt, client_factory=client_factory)
        return BufferedPublisher(inner, maxsize=cfg.mqtt.buffer_size, name=name)

    # --------------------------------------------------
    def start(self) -> None:
        clock = self.scheduler.clock
        logs.info(
            f"[UploadService] 温湿度数据上传开始, curTime={clock.now()} "
            f"({datetime_utils.fmt(clock.now(), self._timezone)}), "
            f"horizon={clock.horizon} ({datetime_utils.fmt(clock.horizon, self._timezone)}), "
            f"step={clock.step}s/tick every {self.trigger.interval}s"
        )
        self.trigger.start()

    def run_forever(self, poll: float = 0.5) -> None:
        """阻塞直到 replay COMPLETE 或 Ctrl-C"""
        self.start()
        try:
            while self.trigger.running:
                self.trigger.join(poll)
        except KeyboardInterrupt:
            logs.warning("[UploadService] interrupted, stopping after current tick")
        finally:
            self.close()

    def stop(self) -> None:
        """停止 trigger（等待当前 tick 完成），归档与 publisher 保持打开"""
        self.trigger.stop()

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self.stop()
        self.scheduler.close()
        for p in self.publishers:
            p.close()
        logs.info(f"[UploadService] stopped, stats={self.scheduler.stats()}")

    def __enter__(self) -> "UploadService":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
