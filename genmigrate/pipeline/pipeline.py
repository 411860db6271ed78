#!filepath: genmigrate/pipeline/pipeline.py
from __future__ import annotations

from typing import Optional

from genmigrate import logs
from genmigrate.core.types import MetadataOverrides
from genmigrate.observability.instrumentation import Instrumentation, NoOpInstrumentation
from genmigrate.pipeline.context import MigrationContext
from genmigrate.pipeline.step import PipelineStep


class MigrationPipeline:
    """
    MigrationPipeline = scheduler

    Rules:
    - strict sequential order, every step consumes the complete output
      of the previous one
    - any exception aborts the run, there is no partial output
    - the pipeline does no step-level timing, steps own that
    """

    def __init__(
            self,
            steps: list[PipelineStep],
            inst: Instrumentation | NoOpInstrumentation | None = None,
    ):
        self.steps = steps
        self.inst = inst if inst is not None else NoOpInstrumentation()

    def run(
            self,
            raw: bytes,
            *,
            source: str = "<bytes>",
            overrides: Optional[MetadataOverrides] = None,
            keyfile_raw: Optional[bytes] = None,
    ) -> MigrationContext:
        logs.info(f"[Pipeline] ====== START {source} ======")

        ctx = MigrationContext(
            source=source,
            raw=raw,
            overrides=overrides or MetadataOverrides(),
            keyfile_raw=keyfile_raw,
        )

        for step in self.steps:
            ctx = step.run(ctx)

        label = ctx.document.chain_id if ctx.document is not None else source
        self.inst.generate_timeline_report(label)
        self.inst.metrics.summary(label)
        logs.info(f"[Pipeline] ====== DONE {label} ======")

        return ctx
