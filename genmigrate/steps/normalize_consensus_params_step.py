#!filepath: genmigrate/steps/normalize_consensus_params_step.py
from __future__ import annotations

import dataclasses

from genmigrate import logs
from genmigrate.engines.consensus_params_engine import ConsensusParamsEngine
from genmigrate.pipeline.context import MigrationContext
from genmigrate.pipeline.step import PipelineStep


class NormalizeConsensusParamsStep(PipelineStep):
    """Legacy evidence params -> current schema. Runs exactly once."""

    stage = "consensus_params"

    def __init__(self, engine: ConsensusParamsEngine, inst=None) -> None:
        super().__init__(inst)
        self.engine = engine

    def run(self, ctx: MigrationContext) -> MigrationContext:
        doc = ctx.require_document()

        with self.timed():
            with self.inst.timer(f"[{self.stage}] normalize"):
                params = self.engine.execute(doc.consensus_params)

        ctx.document = dataclasses.replace(doc, consensus_params=params)
        logs.info(f"[{self.step_name}] evidence={params['evidence']}")
        return ctx
