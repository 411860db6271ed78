# genmigrate/engines/consensus_params_engine.py
from __future__ import annotations

import copy
from typing import Any, Dict

from genmigrate.config.consensus_config import (
    DEFAULT_EVIDENCE_MAX_AGE_DURATION,
    DEFAULT_EVIDENCE_MAX_BYTES,
)
from genmigrate.utils.errors import MissingField


class ConsensusParamsEngine:
    """
    ConsensusParamsEngine (FROZEN)

    Makes the evidence params exported by an older Tendermint parseable by
    the newer one:

        max_age            -> max_age_num_blocks   (value copied, key removed)
        max_age_duration   := policy constant      (any prior value replaced)
        max_bytes          := policy constant      (any prior value replaced)

    Must run exactly once on legacy-shaped input. Running it on already
    migrated params raises MissingField, max_age no longer exists.
    """

    def __init__(
        self,
        *,
        max_age_duration: str = DEFAULT_EVIDENCE_MAX_AGE_DURATION,
        max_bytes: str = DEFAULT_EVIDENCE_MAX_BYTES,
    ) -> None:
        self.max_age_duration = max_age_duration
        self.max_bytes = max_bytes

    def execute(self, consensus_params: Any) -> Dict[str, Any]:
        if not isinstance(consensus_params, dict):
            raise MissingField("consensus_params")

        params = copy.deepcopy(consensus_params)

        evidence = params.get("evidence")
        if not isinstance(evidence, dict):
            raise MissingField("consensus_params.evidence")

        if "max_age" not in evidence:
            raise MissingField("consensus_params.evidence.max_age")

        evidence["max_age_num_blocks"] = evidence.pop("max_age")
        evidence["max_age_duration"] = self.max_age_duration
        evidence["max_bytes"] = self.max_bytes

        return params
