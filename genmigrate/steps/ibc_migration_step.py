#!filepath: genmigrate/steps/ibc_migration_step.py
from __future__ import annotations

import dataclasses

from genmigrate.core.types import TransformContext
from genmigrate.engines.ibc_migration_engine import IbcMigrationEngine
from genmigrate.pipeline.context import MigrationContext
from genmigrate.pipeline.step import PipelineStep


class IbcMigrationStep(PipelineStep):
    """
    Inter-chain state migration, always run.

    Reads the FINAL genesis time / initial height, so it is placed after
    MetadataOverrideStep.
    """

    stage = "ibc"

    def __init__(self, engine: IbcMigrationEngine, inst=None) -> None:
        super().__init__(inst)
        self.engine = engine

    def run(self, ctx: MigrationContext) -> MigrationContext:
        doc = ctx.require_document()

        with self.timed():
            with self.inst.timer(f"[{self.stage}] migrate"):
                result = self.engine.execute(doc.app_state, TransformContext.of(doc))

        ctx.document = dataclasses.replace(doc, app_state=result.app_state)
        self.inst.metrics.incr("ibc_pruned_consensus_states", result.pruned_consensus_states)
        self.inst.metrics.incr("ibc_migrated_solomachines", result.migrated_solomachines)
        return ctx
