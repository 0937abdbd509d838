# humiture/publish/mqtt.py
from __future__ import annotations

import time
from typing import Callable, Optional

import paho.mqtt.client as mqtt

from humiture import logs, retry
from humiture.config.mqtt_config import BrokerConfig, DeviceConfig
from humiture.observability.metrics import MetricRecorder
from humiture.publish.base import Publisher
from humiture.publish.serializer import encode
from humiture.utils.errors import PublishFailure, ResourceUnavailable


def default_client_factory(client_id: str) -> mqtt.Client:
    return mqtt.Client(mqtt.CallbackAPIVersion.VERSION2, client_id=client_id)


class MqttPublisher(Publisher):
    """
    MqttPublisher（一个设备一个 client）

    - access_token 作为 username（ThingsBoard device token）
    - 连接失败重试，最终失败 -> ResourceUnavailable（启动期致命）
    - paho network loop 在后台线程运行（loop_start）
    - publish rc != 0 只记录 PublishFailure，不抛出
    """

    def __init__(
        self,
        name: str,
        device: DeviceConfig,
        broker: BrokerConfig,
        *,
        client_factory: Optional[Callable[[str], mqtt.Client]] = None,
        metrics: MetricRecorder | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.name = name
        self._qos = broker.qos
        self.metrics = metrics or MetricRecorder()

        factory = client_factory or default_client_factory
        self._client = factory(device.client_id)
        if device.access_token:
            self._client.username_pw_set(device.access_token)
        self._client.on_connect = self._on_connect
        self._client.on_disconnect = self._on_disconnect

        try:
            retry.run(
                self._client.connect,
                broker.host,
                broker.port,
                broker.keepalive,
                exceptions=(OSError,),
                max_attempts=broker.connect_retries,
                delay=broker.connect_delay,
                sleep=sleep,
            )
        except OSError as e:
            raise ResourceUnavailable(
                f"[MqttPublisher:{name}] broker {broker.host}:{broker.port} unreachable: {e}"
            ) from e

        self._client.loop_start()
        self._closed = False
        logs.info(f"[MqttPublisher:{name}] connected to {broker.host}:{broker.port} as {device.client_id}")

    # --------------------------------------------------
    def publish(self, reading, topic: str) -> None:
        info = self._client.publish(topic, encode(reading), qos=self._qos)
        if info.rc != mqtt.MQTT_ERR_SUCCESS:
            self.metrics.incr("failed")
            err = PublishFailure(mqtt.error_string(info.rc))
            logs.warning(f"[MqttPublisher:{self.name}] {err!r} ts={reading.ts}")
            return
        self.metrics.incr("published")

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._client.disconnect()
        self._client.loop_stop()
        logs.info(f"[MqttPublisher:{self.name}] disconnected, published={self.metrics.count('published')}")

    # --------------------------------------------------
    def _on_connect(self, client, userdata, flags, reason_code, properties=None):
        if reason_code != 0:
            logs.error(f"[MqttPublisher:{self.name}] connect refused: {reason_code}")

    def _on_disconnect(self, client, userdata, flags, reason_code, properties=None):
        if not getattr(self, "_closed", False):
            logs.warning(f"[MqttPublisher:{self.name}] unexpected disconnect: {reason_code}")
