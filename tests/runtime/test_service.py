#!filepath: tests/runtime/test_service.py
from __future__ import annotations

import json
import time

import pytest

from humiture.config.app_config import AppConfig
from humiture.publish.buffered import BufferedPublisher
from humiture.publish.memory import LogPublisher
from humiture.runtime.service import UploadService, build_sources
from humiture.utils.errors import ResourceUnavailable


def test_build_sources_applies_offset_and_factor(make_config_file):
    cfg = AppConfig.load(str(make_config_file([(100, 45.0)], [(200, 21.5)], ts_offset=10)))

    hum, tmp = build_sources(cfg)

    assert hum.name == "humidity"
    assert hum.peek().ts == 110_000
    assert tmp.peek().ts == 210_000
    hum.close()
    tmp.close()


def test_missing_archive_aborts_startup(make_config_file, tmp_path):
    cfg = AppConfig.load(str(make_config_file()))
    cfg.streams.temperature.path = str(tmp_path / "missing.csv")

    with pytest.raises(ResourceUnavailable):
        UploadService.from_config(cfg, dry_run=True)


def test_dry_run_replays_until_complete(make_config_file):
    cfg = AppConfig.load(str(make_config_file(
        [(50, 45.0), (150, 46.0), (250, 47.0)],
        [(120, 21.5), (5000, 22.0)],
        start_time=0,
        end_time=300,
        step=100,
    )))

    service = UploadService.from_config(cfg, dry_run=True, interval=0.01)
    assert all(isinstance(p, LogPublisher) for p in service.publishers)

    service.run_forever(poll=0.05)

    assert service.scheduler.complete
    assert service.scheduler.clock.now() == 300
    assert service.scheduler.emitted() == {"humidity": 3, "temperature": 1}
    assert not service.trigger.running


def test_stop_halts_ticks_but_keeps_resources_open(make_config_file):
    cfg = AppConfig.load(str(make_config_file(
        [(50, 45.0), (99_999, 46.0)],
        [(120, 21.5)],
        start_time=0,
        end_time=1_000_000,
        step=100,
    )))

    service = UploadService.from_config(cfg, dry_run=True, interval=0.01)
    service.start()
    deadline = time.monotonic() + 5
    while service.scheduler.clock.now() < 200 and time.monotonic() < deadline:
        time.sleep(0.01)

    service.stop()
    assert not service.trigger.running
    frozen = service.scheduler.clock.now()
    time.sleep(0.05)
    assert service.scheduler.clock.now() == frozen

    # 归档仍可读，close() 才释放
    hum = service.scheduler.streams[0].source
    assert not hum.exhausted
    service.close()
    assert hum.exhausted


class FakeInfo:
    rc = 0


class FakeClient:
    def __init__(self, client_id):
        self.client_id = client_id
        self.username = None
        self.published = []
        self.disconnected = 0

    def username_pw_set(self, username, password=None):
        self.username = username

    def connect(self, host, port, keepalive):
        pass

    def loop_start(self):
        pass

    def loop_stop(self):
        pass

    def disconnect(self):
        self.disconnected += 1

    def publish(self, topic, payload, qos=0):
        self.published.append((topic, payload, qos))
        return FakeInfo()


def test_mqtt_publishers_are_buffered(make_config_file, monkeypatch):
    clients = []

    def factory(client_id):
        c = FakeClient(client_id)
        clients.append(c)
        return c

    monkeypatch.setenv("HUMIDITY_TOKEN", "TOKEN_H")
    monkeypatch.delenv("TEMPERATURE_TOKEN", raising=False)
    cfg = AppConfig.load(str(make_config_file([(50, 45.0)], [(60, 21.5)], step=100, end_time=100)))

    with UploadService.from_config(cfg, client_factory=factory) as service:
        assert all(isinstance(p, BufferedPublisher) for p in service.publishers)
        service.scheduler.tick()
        for p in service.publishers:
            p.flush()

    assert [c.client_id for c in clients] == ["room1-humidity", "room1-temperature"]
    assert clients[0].username == "TOKEN_H"
    assert clients[1].username is None

    topic, payload, _ = clients[0].published[0]
    assert topic == "v1/devices/me/telemetry"
    assert json.loads(payload) == {"ts": 50_000, "value": 45.0}
    assert all(c.disconnected == 1 for c in clients)
