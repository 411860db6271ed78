from .document_loader_engine import DocumentLoaderEngine
from .consensus_params_engine import ConsensusParamsEngine
from .app_state_migration_engine import AppStateMigrationEngine
from .metadata_override_engine import MetadataOverrideEngine
from .ibc_migration_engine import IbcMigrationEngine, IbcMigrationResult
from .key_replacement_engine import KeyReplacementEngine, parse_keyfile
from .canonical_json_engine import CanonicalJsonEngine, canonical_dumps

__all__ = [
    "DocumentLoaderEngine",
    "ConsensusParamsEngine",
    "AppStateMigrationEngine",
    "MetadataOverrideEngine",
    "IbcMigrationEngine",
    "IbcMigrationResult",
    "KeyReplacementEngine",
    "parse_keyfile",
    "CanonicalJsonEngine",
    "canonical_dumps",
]
