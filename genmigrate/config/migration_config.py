# genmigrate/config/migration_config.py
from typing import List

from pydantic import BaseModel, Field


class MigrationConfig(BaseModel):
    # ordered version labels looked up in the MigrationRegistry
    versions: List[str] = Field(default_factory=lambda: ["v0.43"])
    # importable modules exposing register_transforms(registry)
    plugins: List[str] = Field(default_factory=list)
    normalize_consensus_params: bool = True
    strict_key_replacement: bool = False
