#!filepath: genmigrate/migrations/registry.py
from __future__ import annotations

import importlib
from typing import Dict, Iterable, List, Optional

from genmigrate import logs
from genmigrate.core.types import MigrationTransform
from genmigrate.utils.errors import GenesisMigrationError

PLUGIN_HOOK = "register_transforms"


class MigrationRegistry:
    """
    version label -> MigrationTransform

    One instance per run, handed to the pipeline explicitly.
    Transforms are registered before dispatch and only looked up afterwards.
    """

    def __init__(self) -> None:
        self._transforms: Dict[str, MigrationTransform] = {}

    # ------------------------------------------------------------------
    # registration
    # ------------------------------------------------------------------
    def register(self, label: str, transform: MigrationTransform) -> MigrationTransform:
        if not label:
            raise ValueError("migration label must be non-empty")
        if not callable(transform):
            raise TypeError(f"transform for {label!r} is not callable")
        if label in self._transforms:
            raise ValueError(f"migration already registered for version: {label}")
        self._transforms[label] = transform
        return transform

    def transform(self, label: str):
        """Decorator form of register()."""
        def _wrap(fn: MigrationTransform) -> MigrationTransform:
            return self.register(label, fn)
        return _wrap

    # ------------------------------------------------------------------
    # lookup
    # ------------------------------------------------------------------
    def lookup(self, label: str) -> Optional[MigrationTransform]:
        return self._transforms.get(label)

    def labels(self) -> List[str]:
        return sorted(self._transforms)

    def __contains__(self, label: str) -> bool:
        return label in self._transforms

    def __len__(self) -> int:
        return len(self._transforms)

    # ------------------------------------------------------------------
    # plugins
    # ------------------------------------------------------------------
    def load_plugins(self, modules: Iterable[str]) -> "MigrationRegistry":
        """
        Import each module and call its register_transforms(registry).
        """
        for name in modules:
            try:
                module = importlib.import_module(name)
            except ImportError as e:
                raise GenesisMigrationError(f"cannot import migration plugin {name!r}: {e}") from e

            hook = getattr(module, PLUGIN_HOOK, None)
            if hook is None:
                raise GenesisMigrationError(
                    f"migration plugin {name!r} does not define {PLUGIN_HOOK}(registry)"
                )

            before = set(self._transforms)
            hook(self)
            added = sorted(set(self._transforms) - before)
            logs.info(f"[MigrationRegistry] plugin {name} registered {added}")

        return self
