#!filepath: genmigrate/observability/instrumentation.py
from __future__ import annotations

from dataclasses import dataclass
from contextlib import contextmanager, nullcontext
from collections import OrderedDict
from typing import Dict

from genmigrate.observability.timer import Timer
from genmigrate.observability.metrics import MetricRecorder
from genmigrate.observability.timeline_reporter import TimelineReporter


@dataclass
class Instrumentation:
    """
    Instrumentation (leaf-only accounting + parent scope)

    Rules:
    1. the timeline only records leaf timers (record=True)
    2. step-level timers are scope boundaries only (record=False)
    3. record=False timers have no side effects
    """

    enabled: bool = True

    def __post_init__(self):
        self._timer = Timer(enabled=self.enabled)
        self.metrics = MetricRecorder(enabled=self.enabled)

        # timeline: OrderedDict[leaf_name, elapsed_seconds]
        self.timeline: Dict[str, float] = OrderedDict()

    def timer(self, name: str, *, record: bool = True):
        inst = self

        @contextmanager
        def _ctx():
            if not inst.enabled:
                yield
                return

            inst._timer.start(name)
            try:
                yield
            finally:
                inst._timer.end(name)
                if record:
                    inst.timeline[name] = inst._timer.totals.get(name, 0.0)

        return _ctx()

    def generate_timeline_report(self, label: str):
        TimelineReporter(self.timeline, label).print()


class NoOpInstrumentation:
    """Used when observability is disabled."""

    def __init__(self):
        self.metrics = MetricRecorder(enabled=False)
        self.timeline: Dict[str, float] = {}

    def timer(self, name: str, *, record: bool = True):
        return nullcontext()

    def generate_timeline_report(self, label: str):
        return None
