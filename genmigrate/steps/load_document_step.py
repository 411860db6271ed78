#!filepath: genmigrate/steps/load_document_step.py
from __future__ import annotations

from genmigrate import logs
from genmigrate.engines.document_loader_engine import DocumentLoaderEngine
from genmigrate.pipeline.context import MigrationContext
from genmigrate.pipeline.step import PipelineStep


class LoadDocumentStep(PipelineStep):
    """
    raw bytes -> GenesisDocument (app_state decoded into an AppStateMap)
    """

    stage = "load"

    def __init__(self, engine: DocumentLoaderEngine | None = None, inst=None) -> None:
        super().__init__(inst)
        self.engine = engine or DocumentLoaderEngine()

    def run(self, ctx: MigrationContext) -> MigrationContext:
        with self.timed():
            with self.inst.timer(f"[{self.stage}] {ctx.source}"):
                doc = self.engine.execute(ctx.raw)

        ctx.document = doc
        self.inst.metrics.record("modules_in", len(doc.app_state))
        logs.info(
            f"[{self.step_name}] chain_id={doc.chain_id} "
            f"initial_height={doc.initial_height} modules={len(doc.app_state)} "
            f"validators={len(doc.validators)}"
        )
        return ctx
