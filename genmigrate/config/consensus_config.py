# genmigrate/config/consensus_config.py
from pydantic import BaseModel, field_validator

# evidence policy written by the consensus-params normalizer
DEFAULT_EVIDENCE_MAX_AGE_DURATION = "172800000000000"  # 48h in ns
DEFAULT_EVIDENCE_MAX_BYTES = "50000"

# ibc connection param, 30s in ns
DEFAULT_MAX_EXPECTED_TIME_PER_BLOCK = "30000000000"


class ConsensusConfig(BaseModel):
    evidence_max_age_duration: str = DEFAULT_EVIDENCE_MAX_AGE_DURATION
    evidence_max_bytes: str = DEFAULT_EVIDENCE_MAX_BYTES
    max_expected_time_per_block: str = DEFAULT_MAX_EXPECTED_TIME_PER_BLOCK

    @field_validator(
        "evidence_max_age_duration",
        "evidence_max_bytes",
        "max_expected_time_per_block",
        mode="before",
    )
    @classmethod
    def _int64_string(cls, v):
        # legacy JSON carries int64 as decimal strings
        s = str(v).strip()
        if not s.isdigit():
            raise ValueError(f"expected a non-negative integer, got {v!r}")
        return s
