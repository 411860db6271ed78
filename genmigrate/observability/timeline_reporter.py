#!filepath: genmigrate/observability/timeline_reporter.py
from typing import Dict, List
from genmigrate import logs


class TimelineReporter:
    """
    One line per leaf timer with its share of the total run.
    """

    def __init__(self, timeline: Dict[str, float], label: str):
        self.timeline = timeline
        self.label = label

    def render(self) -> List[str]:
        total = sum(self.timeline.values())
        lines = [f"===== Migration timeline for {self.label} ====="]

        for name, sec in self.timeline.items():
            share = (sec / total * 100) if total else 0.0
            lines.append(f"{str(name):<40} {sec:>8.3f}s {share:>5.1f}%")

        lines.append(f"{'Total':<40} {total:>8.3f}s")
        return lines

    def print(self):
        for line in self.render():
            logs.info(f"[Timeline] {line}")
