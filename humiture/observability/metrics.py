#!filepath: humiture/observability/metrics.py
from collections import Counter
from dataclasses import dataclass, field
from typing import Dict, Any
from humiture import logs


@dataclass
class MetricRecorder:
    """
    - record(): gauge 类指标，冷路径，写日志
    - incr():   计数器，热路径（每条 reading），不写日志
    """

    enabled: bool = True
    metrics: Dict[str, Any] = field(default_factory=dict)
    counters: Counter = field(default_factory=Counter)

    def record(self, name: str, value: Any):
        if not self.enabled:
            return
        self.metrics[name] = value
        logs.info(f"[Metric] {name} = {value}")

    def incr(self, name: str, n: int = 1):
        if not self.enabled:
            return
        self.counters[name] += n

    def count(self, name: str) -> int:
        return self.counters.get(name, 0)

    def snapshot(self) -> Dict[str, Any]:
        return {**self.metrics, **self.counters}
