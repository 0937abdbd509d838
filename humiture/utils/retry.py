#!filepath: humiture/utils/retry.py
import time
import random
from typing import Callable, Tuple, Type

from humiture import logs


class Retry:
    """
    同步重试工具，支持指数退避、日志记录和 jitter。
    （MQTT broker 连接使用）
    """

    @staticmethod
    def run(
        func: Callable,
        *args,
        exceptions: Tuple[Type[Exception], ...] = (Exception,),
        max_attempts: int = 3,
        delay: float = 1.0,
        backoff: float = 2.0,
        jitter: bool = True,
        sleep: Callable[[float], None] = time.sleep,
        **kwargs,
    ):
        """
        手动调用版本的重试机制
        """
        attempt = 1
        while attempt <= max_attempts:

            try:
                return func(*args, **kwargs)

            except exceptions as e:
                if attempt == max_attempts:
                    logs.error(f"[Retry] {getattr(func, '__name__', func)} 重试失败，已达最大次数 ({max_attempts})")
                    raise

                wait = delay * (backoff ** (attempt - 1))
                if jitter:
                    wait = wait * random.uniform(0.8, 1.2)

                logs.warning(
                    f"[Retry] 第 {attempt}/{max_attempts - 1} 次失败: {e}. "
                    f"{wait:.2f}s 后重试..."
                )
                sleep(wait)

                attempt += 1
