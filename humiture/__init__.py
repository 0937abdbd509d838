#!filepath: humiture/__init__.py

from .utils.logger import Logging, logs
from .utils.retry import Retry
from .utils.datetime_utils import DateTimeUtils
from .config.app_config import AppConfig

__version__ = "0.1.0"

datetime_utils = DateTimeUtils

# alias 简化调用
retry = Retry

__all__ = [
    "logs", "Logging",
    "retry",
    "AppConfig",
    "datetime_utils",
    "__version__",
]
