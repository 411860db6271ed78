#!filepath: genmigrate/pipeline/context.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from genmigrate.core.types import GenesisDocument, MetadataOverrides


@dataclass
class MigrationContext:
    """
    MigrationContext = the only carrier between steps

    Rules:
    - the pipeline builds it, steps replace fields with new values
    - document is swapped for a new GenesisDocument by every step,
      never mutated in place
    - no business logic here
    """

    # -------------------------
    # input (read once, before any step runs)
    # -------------------------
    source: str
    raw: bytes
    overrides: MetadataOverrides = field(default_factory=MetadataOverrides)
    keyfile_raw: Optional[bytes] = None

    # -------------------------
    # state
    # -------------------------
    document: Optional[GenesisDocument] = None

    # -------------------------
    # output
    # -------------------------
    output: Optional[bytes] = None

    def require_document(self) -> GenesisDocument:
        if self.document is None:
            raise RuntimeError("no genesis document loaded; LoadDocumentStep must run first")
        return self.document
