#!filepath: genmigrate/steps/metadata_override_step.py
from __future__ import annotations

from genmigrate import logs
from genmigrate.engines.metadata_override_engine import MetadataOverrideEngine
from genmigrate.pipeline.context import MigrationContext
from genmigrate.pipeline.step import PipelineStep


class MetadataOverrideStep(PipelineStep):
    """Genesis time / chain id / initial height. Must run before IbcMigrationStep."""

    stage = "metadata"

    def __init__(self, engine: MetadataOverrideEngine | None = None, inst=None) -> None:
        super().__init__(inst)
        self.engine = engine or MetadataOverrideEngine()

    def run(self, ctx: MigrationContext) -> MigrationContext:
        doc = ctx.require_document()

        if ctx.overrides.is_empty():
            logs.info(f"[{self.step_name}] no overrides")
            return ctx

        with self.timed():
            ctx.document = self.engine.execute(doc, ctx.overrides)
        return ctx
