#!filepath: genmigrate/observability/metrics.py
from dataclasses import dataclass, field
from typing import Dict, Any
from genmigrate import logs


@dataclass
class MetricRecorder:
    """Per-run counters (modules in/out, pruned states, replaced keys ...)."""

    enabled: bool = True
    metrics: Dict[str, Any] = field(default_factory=dict)

    def record(self, name: str, value: Any):
        if not self.enabled:
            return
        self.metrics[name] = value
        logs.info(f"[Metric] {name} = {value}")

    def incr(self, name: str, by: int = 1):
        if not self.enabled:
            return
        self.metrics[name] = self.metrics.get(name, 0) + by

    def summary(self, label: str):
        if not self.enabled or not self.metrics:
            return
        body = ", ".join(f"{k}={v}" for k, v in sorted(self.metrics.items()))
        logs.info(f"[Metric] {label}: {body}")
