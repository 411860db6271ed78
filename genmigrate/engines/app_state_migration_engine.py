# genmigrate/engines/app_state_migration_engine.py
from __future__ import annotations

import copy
from collections.abc import Mapping
from typing import List, Sequence

from genmigrate import logs
from genmigrate.core.types import AppStateMap, TransformContext
from genmigrate.migrations.registry import MigrationRegistry
from genmigrate.utils.errors import (
    GenesisMigrationError,
    MigrationError,
    UnknownMigration,
)


class AppStateMigrationEngine:
    """
    AppStateMigrationEngine (FROZEN)

    Input (contract):
      - AppStateMap, TransformContext
      - ordered version labels, every one registered in the registry

    Output:
      - new AppStateMap after each labeled transform ran in order

    Rules:
      - labels are resolved up front, an unknown label fails before any
        transform runs
      - each transform gets a deep copy, the caller's map is never touched
      - module removal is logged, never silent
    """

    def __init__(self, registry: MigrationRegistry, versions: Sequence[str]) -> None:
        self.registry = registry
        self.versions: List[str] = list(versions)

    def execute(self, app_state: AppStateMap, ctx: TransformContext) -> AppStateMap:
        transforms = []
        for label in self.versions:
            fn = self.registry.lookup(label)
            if fn is None:
                raise UnknownMigration(label)
            transforms.append((label, fn))

        state = copy.deepcopy(dict(app_state))

        for label, fn in transforms:
            before = set(state)

            try:
                out = fn(copy.deepcopy(state), ctx)
            except GenesisMigrationError:
                raise
            except Exception as e:
                raise MigrationError(f"migration {label} failed: {e}") from e

            if not isinstance(out, Mapping):
                raise MigrationError(
                    f"migration {label} returned {type(out).__name__}, expected a mapping"
                )

            state = dict(out)
            self._log_diff(label, before, set(state))

        return state

    @staticmethod
    def _log_diff(label: str, before: set, after: set) -> None:
        added = sorted(after - before)
        removed = sorted(before - after)
        if added:
            logs.info(f"[AppStateMigration] {label} added modules {added}")
        if removed:
            logs.warning(f"[AppStateMigration] {label} removed modules {removed}")
        logs.info(f"[AppStateMigration] {label} done, modules={len(after)}")
