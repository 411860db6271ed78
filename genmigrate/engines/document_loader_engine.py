# genmigrate/engines/document_loader_engine.py
from __future__ import annotations

import base64
import binascii
import copy
import hashlib
import json
import re
from typing import Any, Dict, Tuple

from genmigrate import logs
from genmigrate.core.types import GenesisDocument
from genmigrate.utils.datetime_utils import DateTimeUtils
from genmigrate.utils.errors import MalformedDocument

MAX_CHAIN_ID_LEN = 50

_INTEGER = re.compile(r"-?[0-9]+")

ED25519_PUBKEY_TYPE = "tendermint/PubKeyEd25519"

KNOWN_FIELDS = frozenset(
    {
        "genesis_time",
        "chain_id",
        "initial_height",
        "consensus_params",
        "validators",
        "app_hash",
        "app_state",
    }
)


def _reject_constant(name: str):
    raise ValueError(f"{name} is not valid JSON")


def _parse_float(text: str):
    # Go re-encodes integral float64 values without a fraction
    value = float(text)
    if value.is_integer() and abs(value) < 1e21:
        return int(value)
    return value


def decode_json(raw: bytes | str) -> Any:
    """json.loads with the strictness of Go's encoding/json."""
    if isinstance(raw, (bytes, bytearray)):
        raw = raw.decode("utf-8")
    return json.loads(
        raw,
        parse_constant=_reject_constant,
        parse_float=_parse_float,
    )


def ed25519_address(pub_key_b64: str) -> str:
    """Tendermint address: first 20 bytes of SHA-256(pubkey), upper hex."""
    key = base64.b64decode(pub_key_b64, validate=True)
    return hashlib.sha256(key).digest()[:20].hex().upper()


class DocumentLoaderEngine:
    """
    DocumentLoaderEngine (FROZEN)

    Input (contract):
      - raw bytes believed to hold a legacy genesis document

    Output:
      - GenesisDocument with app_state decoded into an AppStateMap
      - consensus_params kept as raw JSON (legacy fields preserved)

    Completion rules (same as the Tendermint genesis loader):
      - initial_height missing / 0 -> 1
      - validator without address -> derived from its ed25519 key

    Pure: no I/O, fails fast with MalformedDocument.
    """

    def execute(self, raw: bytes | str) -> GenesisDocument:
        try:
            obj = decode_json(raw)
        except (ValueError, UnicodeDecodeError, RecursionError) as e:
            raise MalformedDocument(f"failed to read genesis document: {e}") from e

        if not isinstance(obj, dict):
            raise MalformedDocument("genesis document must be a JSON object")

        unknown = sorted(set(obj) - KNOWN_FIELDS)
        if unknown:
            logs.warning(f"[DocumentLoader] dropping unknown top-level fields: {unknown}")

        return GenesisDocument(
            chain_id=self._chain_id(obj.get("chain_id")),
            genesis_time=self._genesis_time(obj.get("genesis_time")),
            initial_height=self._initial_height(obj.get("initial_height")),
            consensus_params=obj.get("consensus_params"),
            validators=self._validators(obj.get("validators")),
            app_hash=self._app_hash(obj.get("app_hash")),
            app_state=self._app_state(obj.get("app_state")),
        )

    # ==========================================================
    # field validators
    # ==========================================================
    @staticmethod
    def _chain_id(value: Any) -> str:
        if not isinstance(value, str) or not value:
            raise MalformedDocument("genesis doc must include non-empty chain_id")
        if len(value) > MAX_CHAIN_ID_LEN:
            raise MalformedDocument(
                f"chain_id in genesis doc is too long (max: {MAX_CHAIN_ID_LEN})"
            )
        return value

    @staticmethod
    def _genesis_time(value: Any):
        if value is None:
            raise MalformedDocument("genesis doc must include genesis_time")
        try:
            return DateTimeUtils.parse_rfc3339(value)
        except ValueError as e:
            raise MalformedDocument(f"invalid genesis_time: {e}") from e

    @staticmethod
    def _initial_height(value: Any) -> int:
        if value is None:
            return 1
        if isinstance(value, bool):
            raise MalformedDocument(f"initial_height must be an integer, got {value!r}")
        if isinstance(value, str):
            if not _INTEGER.fullmatch(value):
                raise MalformedDocument(f"initial_height must be an integer, got {value!r}")
            value = int(value)
        if not isinstance(value, int):
            raise MalformedDocument(f"initial_height must be an integer, got {value!r}")
        if value < 0:
            raise MalformedDocument(f"initial_height cannot be negative (got {value})")
        return value or 1

    @staticmethod
    def _app_hash(value: Any) -> str:
        if value is None:
            return ""
        if not isinstance(value, str):
            raise MalformedDocument("app_hash must be a hex string")
        return value

    @staticmethod
    def _app_state(value: Any) -> Dict[str, Any]:
        if value is None:
            raise MalformedDocument("failed to JSON unmarshal initial genesis state: app_state is missing")
        if not isinstance(value, dict):
            raise MalformedDocument(
                f"failed to JSON unmarshal initial genesis state: app_state is {type(value).__name__}, not an object"
            )
        return value

    def _validators(self, value: Any) -> Tuple[Dict[str, Any], ...]:
        if value is None:
            return ()
        if not isinstance(value, list):
            raise MalformedDocument("validators must be a list")

        out = []
        for i, v in enumerate(value):
            if not isinstance(v, dict):
                raise MalformedDocument(f"validator #{i} must be an object")
            out.append(self._validator(i, copy.deepcopy(v)))
        return tuple(out)

    @staticmethod
    def _validator(i: int, v: Dict[str, Any]) -> Dict[str, Any]:
        pub_key = v.get("pub_key")
        if not isinstance(pub_key, dict) or not pub_key.get("value"):
            raise MalformedDocument(f"the genesis file cannot contain validators with no pub_key: #{i}")

        power = v.get("power", "0")
        try:
            power_int = int(power)
        except (TypeError, ValueError):
            raise MalformedDocument(f"validator #{i} has non-integer power {power!r}") from None
        if power_int < 0:
            raise MalformedDocument(f"the genesis file cannot contain validators with negative power: #{i}")

        if not v.get("address") and pub_key.get("type") == ED25519_PUBKEY_TYPE:
            try:
                v["address"] = ed25519_address(pub_key["value"])
            except (binascii.Error, ValueError, TypeError) as e:
                raise MalformedDocument(f"validator #{i} has an invalid pub_key: {e}") from e

        return v
