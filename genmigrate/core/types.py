#!filepath: genmigrate/core/types.py
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, Optional, Tuple

# module name -> decoded module genesis state
AppStateMap = Dict[str, Any]

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


@dataclass(frozen=True)
class GenesisTime:
    """
    UTC instant with nanosecond precision.

    datetime only carries microseconds, so the sub-second part lives in
    ``nanos`` and ``moment`` is always truncated to the whole second.
    """

    moment: datetime
    nanos: int = 0

    def __post_init__(self):
        if self.moment.tzinfo is None:
            raise ValueError("GenesisTime requires an aware datetime")
        if not 0 <= self.nanos < 1_000_000_000:
            raise ValueError(f"nanos out of range: {self.nanos}")
        if self.moment.microsecond:
            raise ValueError("moment must be truncated to the second")

    @property
    def unix_nanos(self) -> int:
        return (self.moment - EPOCH) // timedelta(seconds=1) * 1_000_000_000 + self.nanos


@dataclass(frozen=True)
class GenesisDocument:
    """
    GenesisDocument (FROZEN)

    - every stage returns a new instance via dataclasses.replace
    - nested JSON is never shared between versions
    """

    chain_id: str
    genesis_time: GenesisTime
    initial_height: int
    consensus_params: Optional[Dict[str, Any]]
    app_state: AppStateMap
    validators: Tuple[Dict[str, Any], ...] = ()
    app_hash: str = ""


@dataclass(frozen=True)
class TransformContext:
    """Document metadata visible to a migration transform."""

    chain_id: str
    genesis_time: GenesisTime
    initial_height: int

    @classmethod
    def of(cls, doc: GenesisDocument) -> "TransformContext":
        return cls(
            chain_id=doc.chain_id,
            genesis_time=doc.genesis_time,
            initial_height=doc.initial_height,
        )


MigrationTransform = Callable[[AppStateMap, TransformContext], AppStateMap]


@dataclass(frozen=True)
class ValidatorKeyRecord:
    validator_name: str
    consensus_public_key: str  # base64 ed25519 key bytes
    validator_address: str = ""


@dataclass(frozen=True)
class MetadataOverrides:
    """
    Operator overrides. Empty string / zero means "leave as parsed".
    """

    genesis_time: str = ""
    chain_id: str = ""
    initial_height: int = 0

    def is_empty(self) -> bool:
        return not (self.genesis_time or self.chain_id or self.initial_height)


@dataclass(frozen=True)
class KeyReplacementResult:
    document: GenesisDocument
    replaced: Tuple[str, ...] = ()
    unmatched: Tuple[str, ...] = field(default_factory=tuple)
