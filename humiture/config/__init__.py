from .app_config import AppConfig, project_root
from .log_config import LogConfig
from .replay_config import ReplayConfig
from .mqtt_config import BrokerConfig, DeviceConfig, StreamsConfig, TELEMETRY_TOPIC

__all__ = [
    "AppConfig",
    "project_root",
    "LogConfig",
    "ReplayConfig",
    "BrokerConfig",
    "DeviceConfig",
    "StreamsConfig",
    "TELEMETRY_TOPIC",
]
