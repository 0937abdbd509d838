#!filepath: humiture/config/app_config.py
import yaml
from pathlib import Path
from pydantic import BaseModel, Field
from dotenv import load_dotenv
import os

from .log_config import LogConfig
from .replay_config import ReplayConfig
from .mqtt_config import BrokerConfig, StreamsConfig


def project_root() -> str:
    """
    返回项目根目录（基于当前文件位置推导）:
    humiture/config/app_config.py → humiture/config → humiture → project_root
    """
    return os.path.abspath(os.path.join(os.path.dirname(__file__), "../../"))


# env var -> (section, key...) ；secret 不写进 YAML
_ENV_OVERRIDES = {
    "HUMIDITY_TOKEN": ("streams", "humidity", "access_token"),
    "TEMPERATURE_TOKEN": ("streams", "temperature", "access_token"),
    "MQTT_HOST": ("mqtt", "host"),
    "MQTT_PORT": ("mqtt", "port"),
}


class AppConfig(BaseModel):
    log: LogConfig = Field(default_factory=LogConfig)
    replay: ReplayConfig = Field(default_factory=ReplayConfig)
    mqtt: BrokerConfig = Field(default_factory=BrokerConfig)
    streams: StreamsConfig

    @classmethod
    def load(cls, path: str | None = None) -> "AppConfig":
        """
        加载 YAML 配置 + .env
        - 默认使用 <project_root>/humiture/config/base.yml
        - 不依赖当前工作目录
        """
        root = project_root()

        # 1) 先加载 .env（在项目根目录下）
        load_dotenv(os.path.join(root, ".env"))

        # 2) 决定配置文件路径
        if path is None:
            path = os.path.join(root, "humiture/config/base.yml")

        if not os.path.exists(path):
            raise FileNotFoundError(f"Config file not found: {path}")

        # 3) 读取 YAML
        with open(path, "r", encoding="utf-8") as f:
            raw = yaml.safe_load(f) or {}

        # 4) 从 env 注入 secret / 部署相关覆盖
        for env_key, keys in _ENV_OVERRIDES.items():
            value = os.getenv(env_key)
            if not value:
                continue
            node = raw
            for k in keys[:-1]:
                node = node.setdefault(k, {})
            node[keys[-1]] = value

        return cls(**raw)

    def resolve_path(self, p: str) -> Path:
        """相对路径按项目根目录解析"""
        path = Path(p).expanduser()
        if not path.is_absolute():
            path = Path(project_root()) / path
        return path
