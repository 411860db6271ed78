#!filepath: genmigrate/steps/serialize_step.py
from __future__ import annotations

from genmigrate import logs
from genmigrate.engines.canonical_json_engine import CanonicalJsonEngine
from genmigrate.pipeline.context import MigrationContext
from genmigrate.pipeline.step import PipelineStep


class SerializeStep(PipelineStep):
    """GenesisDocument -> canonical bytes. ctx.output stays None on failure."""

    stage = "serialize"

    def __init__(self, engine: CanonicalJsonEngine | None = None, inst=None) -> None:
        super().__init__(inst)
        self.engine = engine or CanonicalJsonEngine()

    def run(self, ctx: MigrationContext) -> MigrationContext:
        doc = ctx.require_document()

        with self.timed():
            with self.inst.timer(f"[{self.stage}] canonical json"):
                out = self.engine.execute(doc)

        ctx.output = out
        logs.info(f"[{self.step_name}] {len(out)} bytes")
        return ctx
