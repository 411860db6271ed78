# genmigrate/engines/canonical_json_engine.py
from __future__ import annotations

import json
from typing import Any, Dict

from genmigrate.core.types import GenesisDocument
from genmigrate.utils.datetime_utils import DateTimeUtils
from genmigrate.utils.errors import SerializationError

# Go's encoding/json escapes these even inside otherwise plain UTF-8 output.
# None of them can appear outside a string literal in valid JSON.
_GO_HTML_ESCAPES = (
    ("<", "\\u003c"),
    (">", "\\u003e"),
    ("&", "\\u0026"),
    ("\u2028", "\\u2028"),
    ("\u2029", "\\u2029"),
)


def canonical_dumps(obj: Any) -> bytes:
    """
    Keys sorted at every depth, compact separators, UTF-8.
    Raises SerializationError on anything JSON cannot represent.
    """
    try:
        text = json.dumps(
            obj,
            sort_keys=True,
            separators=(",", ":"),
            ensure_ascii=False,
            allow_nan=False,
        )
        for raw, escaped in _GO_HTML_ESCAPES:
            text = text.replace(raw, escaped)
        # lone surrogates survive json.loads but have no UTF-8 form
        return text.encode("utf-8")
    except (TypeError, ValueError, RecursionError) as e:
        raise SerializationError(f"failed to marshal genesis doc: {e}") from e


class CanonicalJsonEngine:
    """
    CanonicalJsonEngine (FROZEN)

    Output:
      - bytes that are a pure function of the document's content,
        independent of key insertion order
      - nothing partial: the whole document encodes or SerializationError
    """

    def to_json_obj(self, doc: GenesisDocument) -> Dict[str, Any]:
        out: Dict[str, Any] = {
            "genesis_time": DateTimeUtils.format_rfc3339_nano(doc.genesis_time),
            "chain_id": doc.chain_id,
            "initial_height": str(doc.initial_height),
            "consensus_params": doc.consensus_params,
            "app_hash": doc.app_hash,
            "app_state": doc.app_state,
        }
        if doc.validators:
            out["validators"] = list(doc.validators)
        return out

    def execute(self, doc: GenesisDocument) -> bytes:
        return canonical_dumps(self.to_json_obj(doc))
