#!filepath: genmigrate/workflows/migrate_genesis.py
from __future__ import annotations

from pathlib import Path
from typing import Optional

from genmigrate import logs
from genmigrate.config.app_config import AppConfig
from genmigrate.core.types import MetadataOverrides
from genmigrate.migrations.registry import MigrationRegistry
from genmigrate.observability.instrumentation import Instrumentation
from genmigrate.pipeline.pipeline import MigrationPipeline
from genmigrate.utils.errors import KeyfileError, MalformedDocument

from genmigrate.engines.consensus_params_engine import ConsensusParamsEngine
from genmigrate.steps.normalize_consensus_params_step import NormalizeConsensusParamsStep

from genmigrate.engines.app_state_migration_engine import AppStateMigrationEngine
from genmigrate.steps.app_state_migration_step import AppStateMigrationStep

from genmigrate.engines.ibc_migration_engine import IbcMigrationEngine
from genmigrate.steps.ibc_migration_step import IbcMigrationStep

from genmigrate.engines.key_replacement_engine import KeyReplacementEngine
from genmigrate.steps.key_replacement_step import KeyReplacementStep

from genmigrate.steps.load_document_step import LoadDocumentStep
from genmigrate.steps.metadata_override_step import MetadataOverrideStep
from genmigrate.steps.serialize_step import SerializeStep


def build_migrate_pipeline(
        cfg: AppConfig,
        registry: MigrationRegistry,
        inst: Optional[Instrumentation] = None,
) -> MigrationPipeline:
    """
    Genesis migration pipeline (FINAL / FROZEN)

    Semantic order (LAW):
        Load
        -> NormalizeConsensusParams   (legacy evidence params)
        -> AppStateMigration          (labeled transforms, registry lookup)
        -> MetadataOverride           (genesis time / chain id / height)
        -> IbcMigration               (needs the FINAL time and height)
        -> KeyReplacement             (optional keyfile)
        -> Serialize                  (canonical json)
    """
    inst = inst or Instrumentation()

    steps = [LoadDocumentStep(inst=inst)]

    if cfg.migration.normalize_consensus_params:
        steps.append(
            NormalizeConsensusParamsStep(
                engine=ConsensusParamsEngine(
                    max_age_duration=cfg.consensus.evidence_max_age_duration,
                    max_bytes=cfg.consensus.evidence_max_bytes,
                ),
                inst=inst,
            )
        )
    else:
        logs.warning("[Workflow] consensus params normalization disabled by config")

    steps += [
        AppStateMigrationStep(
            engine=AppStateMigrationEngine(registry, cfg.migration.versions),
            inst=inst,
        ),
        MetadataOverrideStep(inst=inst),
        IbcMigrationStep(
            engine=IbcMigrationEngine(
                max_expected_time_per_block=cfg.consensus.max_expected_time_per_block,
            ),
            inst=inst,
        ),
        KeyReplacementStep(
            engine=KeyReplacementEngine(strict=cfg.migration.strict_key_replacement),
            inst=inst,
        ),
        SerializeStep(inst=inst),
    ]

    return MigrationPipeline(steps=steps, inst=inst)


def read_genesis_file(path: str | Path) -> bytes:
    try:
        with open(path, "rb") as f:
            return f.read()
    except OSError as e:
        raise MalformedDocument(f"failed to read provided genesis file {path}: {e}") from e


def read_keyfile(path: str | Path) -> bytes:
    try:
        with open(path, "rb") as f:
            return f.read()
    except OSError as e:
        raise KeyfileError(f"failed to read replacement keyfile {path}: {e}") from e


def migrate_genesis_file(
        genesis_path: str | Path,
        *,
        cfg: AppConfig,
        registry: MigrationRegistry,
        overrides: Optional[MetadataOverrides] = None,
        replacement_keys: str = "",
) -> bytes:
    """
    Both files are read completely before any migration logic runs.
    Returns the canonical bytes; raises on any failure.
    """
    raw = read_genesis_file(genesis_path)
    keyfile_raw = read_keyfile(replacement_keys) if replacement_keys else None

    pipeline = build_migrate_pipeline(cfg, registry)
    ctx = pipeline.run(
        raw,
        source=str(genesis_path),
        overrides=overrides,
        keyfile_raw=keyfile_raw,
    )
    return ctx.output
