#!filepath: genmigrate/config/app_config.py
import yaml
from pydantic import BaseModel, Field
from dotenv import load_dotenv
import os

from .log_config import LogConfig
from .migration_config import MigrationConfig
from .consensus_config import ConsensusConfig


def project_root() -> str:
    """
    Project root derived from this file:
    genmigrate/config/app_config.py -> genmigrate/config -> genmigrate -> project_root
    """
    return os.path.abspath(os.path.join(os.path.dirname(__file__), "../../"))


def default_config_path() -> str:
    return os.path.join(os.path.dirname(os.path.abspath(__file__)), "base.yml")


class AppConfig(BaseModel):
    log: LogConfig = Field(default_factory=LogConfig)
    migration: MigrationConfig = Field(default_factory=MigrationConfig)
    consensus: ConsensusConfig = Field(default_factory=ConsensusConfig)

    @classmethod
    def load(cls, path: str | None = None) -> "AppConfig":
        """
        Load YAML config + .env
        - defaults to genmigrate/config/base.yml
        - independent of the current working directory
        - GENMIGRATE_LOG_DIR / GENMIGRATE_LOG_LEVEL override the log section
        """
        root = project_root()

        # 1) .env at the project root
        load_dotenv(os.path.join(root, ".env"))

        # 2) resolve config path
        if path is None:
            path = default_config_path()

        if not os.path.exists(path):
            raise FileNotFoundError(f"Config file not found: {path}")

        # 3) read YAML
        with open(path, "r", encoding="utf-8") as f:
            raw = yaml.safe_load(f) or {}

        # 4) env injection
        log_raw = dict(raw.get("log") or {})
        if os.getenv("GENMIGRATE_LOG_DIR"):
            log_raw["dir"] = os.getenv("GENMIGRATE_LOG_DIR")
        if os.getenv("GENMIGRATE_LOG_LEVEL"):
            log_raw["level"] = os.getenv("GENMIGRATE_LOG_LEVEL")
        raw["log"] = log_raw

        return cls(**raw)
