#!filepath: genmigrate/observability/timer.py
import time
from typing import Dict


class Timer:
    """
    perf_counter stopwatch keyed by name
    - start(name) / end(name) -> seconds of this run
    - totals[name] accumulates every finished run of the same name
    """

    def __init__(self, enabled: bool = True):
        self.enabled = enabled
        self._running: Dict[str, float] = {}
        self.totals: Dict[str, float] = {}

    def start(self, name: str):
        if self.enabled:
            self._running[name] = time.perf_counter()

    def end(self, name: str) -> float:
        started = self._running.pop(name, None)
        if not self.enabled or started is None:
            return 0.0

        elapsed = time.perf_counter() - started
        self.totals[name] = self.totals.get(name, 0.0) + elapsed
        return elapsed
