#!filepath: genmigrate/pipeline/step.py
from __future__ import annotations

from genmigrate.pipeline.context import MigrationContext
from genmigrate.observability.instrumentation import (
    Instrumentation,
    NoOpInstrumentation,
)


class PipelineStep:
    """
    Pipeline Step base class (FROZEN)

    Responsibilities:
      1. orchestration around exactly one engine
      2. step-level timing scope (parent scope, not recorded)

    Rules:
      - a step does no parsing / transforming itself, engines do
      - observability is optional, behaviour never depends on inst
    """

    stage: str = ''

    def __init__(self, inst: Instrumentation | None = None):
        self.inst: Instrumentation | NoOpInstrumentation = (
            inst if inst is not None else NoOpInstrumentation()
        )

    @property
    def step_name(self) -> str:
        return self.__class__.__name__

    def timed(self):
        """Step-level scope, record=False keeps it out of the timeline."""
        return self.inst.timer(self.step_name, record=False)

    def run(self, ctx: MigrationContext) -> MigrationContext:
        raise NotImplementedError
