#!filepath: genmigrate/steps/key_replacement_step.py
from __future__ import annotations

from genmigrate import logs
from genmigrate.engines.key_replacement_engine import KeyReplacementEngine, parse_keyfile
from genmigrate.pipeline.context import MigrationContext
from genmigrate.pipeline.step import PipelineStep


class KeyReplacementStep(PipelineStep):
    """No keyfile -> strict no-op, the document object is passed on untouched."""

    stage = "keys"

    def __init__(self, engine: KeyReplacementEngine, inst=None) -> None:
        super().__init__(inst)
        self.engine = engine

    def run(self, ctx: MigrationContext) -> MigrationContext:
        doc = ctx.require_document()

        if ctx.keyfile_raw is None:
            logs.info(f"[{self.step_name}] no replacement keys -> skip")
            return ctx

        with self.timed():
            records = parse_keyfile(ctx.keyfile_raw)
            with self.inst.timer(f"[{self.stage}] replace | records={len(records)}"):
                result = self.engine.execute(doc, records)

        ctx.document = result.document
        self.inst.metrics.record("validators_replaced", len(result.replaced))
        self.inst.metrics.record("keyfile_unmatched", len(result.unmatched))
        return ctx
