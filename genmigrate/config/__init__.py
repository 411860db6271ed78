from .app_config import AppConfig
from .log_config import LogConfig
from .migration_config import MigrationConfig
from .consensus_config import ConsensusConfig

__all__ = ["AppConfig", "LogConfig", "MigrationConfig", "ConsensusConfig"]
