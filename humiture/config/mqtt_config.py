# humiture/config/mqtt_config.py
from pydantic import BaseModel, Field


TELEMETRY_TOPIC = "v1/devices/me/telemetry"


class BrokerConfig(BaseModel):
    host: str = "localhost"
    port: int = 1883
    keepalive: int = 60
    qos: int = Field(1, ge=0, le=2)

    # broker 连接重试
    connect_retries: int = Field(3, ge=1)
    connect_delay: float = 1.0

    # BufferedPublisher 队列长度
    buffer_size: int = Field(10_000, gt=0)


class DeviceConfig(BaseModel):
    """
    一个物理量 = 一个设备 = 一个 MQTT client

    access_token 作为 MQTT username（ThingsBoard device token）
    """

    path: str
    client_id: str
    topic: str = TELEMETRY_TOPIC
    access_token: str = ""


class StreamsConfig(BaseModel):
    humidity: DeviceConfig
    temperature: DeviceConfig
