#!filepath: genmigrate/steps/app_state_migration_step.py
from __future__ import annotations

import dataclasses

from genmigrate import logs
from genmigrate.core.types import TransformContext
from genmigrate.engines.app_state_migration_engine import AppStateMigrationEngine
from genmigrate.pipeline.context import MigrationContext
from genmigrate.pipeline.step import PipelineStep


class AppStateMigrationStep(PipelineStep):
    """
    Labeled module migrations over app_state.

    Sees the document metadata as parsed, overrides are applied later.
    """

    stage = "app_state"

    def __init__(self, engine: AppStateMigrationEngine, inst=None) -> None:
        super().__init__(inst)
        self.engine = engine

    def run(self, ctx: MigrationContext) -> MigrationContext:
        doc = ctx.require_document()

        with self.timed():
            with self.inst.timer(f"[{self.stage}] {'+'.join(self.engine.versions)}"):
                app_state = self.engine.execute(doc.app_state, TransformContext.of(doc))

        ctx.document = dataclasses.replace(doc, app_state=app_state)
        self.inst.metrics.record("modules_out", len(app_state))
        logs.info(f"[{self.step_name}] applied {self.engine.versions}")
        return ctx
