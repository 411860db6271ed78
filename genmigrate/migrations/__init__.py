from .registry import MigrationRegistry

__all__ = ["MigrationRegistry"]
