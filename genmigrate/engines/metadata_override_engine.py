# genmigrate/engines/metadata_override_engine.py
from __future__ import annotations

import dataclasses

from genmigrate import logs
from genmigrate.core.types import GenesisDocument, MetadataOverrides
from genmigrate.utils.datetime_utils import DateTimeUtils
from genmigrate.utils.errors import InvalidTimestamp, MalformedDocument


class MetadataOverrideEngine:
    """
    Applies operator overrides to document-level metadata only.

    Empty genesis_time / chain_id and zero initial_height leave the parsed
    value in place. app_state is never read here.
    """

    def execute(self, doc: GenesisDocument, overrides: MetadataOverrides) -> GenesisDocument:
        changes = {}

        if overrides.genesis_time:
            try:
                changes["genesis_time"] = DateTimeUtils.parse_rfc3339(overrides.genesis_time)
            except ValueError as e:
                raise InvalidTimestamp(overrides.genesis_time, str(e)) from e

        if overrides.chain_id:
            changes["chain_id"] = overrides.chain_id

        if overrides.initial_height < 0:
            raise MalformedDocument(
                f"initial height override cannot be negative (got {overrides.initial_height})"
            )
        if overrides.initial_height:
            changes["initial_height"] = overrides.initial_height

        for name, value in changes.items():
            logs.info(f"[MetadataOverride] {name}: {getattr(doc, name)!r} -> {value!r}")

        return dataclasses.replace(doc, **changes) if changes else doc
