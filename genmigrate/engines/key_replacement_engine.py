# genmigrate/engines/key_replacement_engine.py
from __future__ import annotations

import base64
import binascii
import copy
import dataclasses
from typing import Any, Dict, List, Sequence

from genmigrate import logs
from genmigrate.core.types import GenesisDocument, KeyReplacementResult, ValidatorKeyRecord
from genmigrate.engines.document_loader_engine import ED25519_PUBKEY_TYPE, decode_json
from genmigrate.utils.errors import KeyfileError

ED25519_KEY_SIZE = 32
SDK_ED25519_PUBKEY_TYPE = "/cosmos.crypto.ed25519.PubKey"
STAKING_MODULE = "staking"


def parse_keyfile(raw: bytes | str) -> List[ValidatorKeyRecord]:
    """
    Keyfile layout:

        [
          {"validator_name": "...", "validator_address": "...",
           "consensus_public_key": "<base64 ed25519>"},
          ...
        ]

    ``stargate_consensus_public_key`` is accepted as the key field too.
    """
    try:
        data = decode_json(raw)
    except (ValueError, UnicodeDecodeError, RecursionError) as e:
        raise KeyfileError(f"replacement keyfile is not valid JSON: {e}") from e

    if not isinstance(data, list):
        raise KeyfileError("replacement keyfile must hold a JSON list of records")

    records = []
    for i, item in enumerate(data):
        if not isinstance(item, dict):
            raise KeyfileError(f"keyfile record #{i} must be an object")

        name = item.get("validator_name") or ""
        address = item.get("validator_address") or ""
        key = item.get("consensus_public_key") or item.get("stargate_consensus_public_key")

        if not isinstance(name, str) or not isinstance(address, str):
            raise KeyfileError(f"keyfile record #{i}: validator_name / validator_address must be strings")
        if not name and not address:
            raise KeyfileError(f"keyfile record #{i} names no validator")
        if not isinstance(key, str) or not key:
            raise KeyfileError(f"keyfile record #{i} has no consensus_public_key")

        try:
            key_bytes = base64.b64decode(key, validate=True)
        except binascii.Error as e:
            raise KeyfileError(f"keyfile record #{i}: consensus key is not base64: {e}") from e
        if len(key_bytes) != ED25519_KEY_SIZE:
            raise KeyfileError(
                f"keyfile record #{i}: ed25519 key must be {ED25519_KEY_SIZE} bytes, got {len(key_bytes)}"
            )

        records.append(
            ValidatorKeyRecord(
                validator_name=name,
                validator_address=address,
                consensus_public_key=key,
            )
        )
    return records


class KeyReplacementEngine:
    """
    KeyReplacementEngine (FROZEN)

    Best-effort merge of replacement consensus keys:
      - document validator matches by name, or by address (case-insensitive)
      - only pub_key changes; power, address, name stay as exported
      - staking validator whose moniker equals validator_name gets its
        consensus_pubkey replaced as well
      - records matching nothing are reported; fatal only when strict
    """

    def __init__(self, *, strict: bool = False) -> None:
        self.strict = strict

    def execute(self, doc: GenesisDocument, records: Sequence[ValidatorKeyRecord]) -> KeyReplacementResult:
        if not records:
            return KeyReplacementResult(document=doc)

        validators = [copy.deepcopy(v) for v in doc.validators]
        app_state = copy.deepcopy(dict(doc.app_state))
        staking_validators = self._staking_validators(app_state)

        replaced: List[str] = []
        unmatched: List[str] = []

        for r in records:
            label = r.validator_name or r.validator_address
            hit = False

            for v in validators:
                if self._matches(v, r):
                    v["pub_key"] = {"type": ED25519_PUBKEY_TYPE, "value": r.consensus_public_key}
                    hit = True

            if r.validator_name:
                for sv in staking_validators:
                    if (sv.get("description") or {}).get("moniker") == r.validator_name:
                        sv["consensus_pubkey"] = {
                            "@type": SDK_ED25519_PUBKEY_TYPE,
                            "key": r.consensus_public_key,
                        }
                        hit = True

            if hit:
                replaced.append(label)
                logs.info(f"[KeyReplacement] replaced consensus key of {label}")
            else:
                unmatched.append(label)

        if unmatched:
            msg = f"[KeyReplacement] keyfile records matched no validator: {unmatched}"
            if self.strict:
                raise KeyfileError(msg)
            logs.warning(msg)

        new_doc = dataclasses.replace(doc, validators=tuple(validators), app_state=app_state)
        return KeyReplacementResult(
            document=new_doc,
            replaced=tuple(replaced),
            unmatched=tuple(unmatched),
        )

    @staticmethod
    def _matches(v: Dict[str, Any], r: ValidatorKeyRecord) -> bool:
        if r.validator_name and v.get("name") == r.validator_name:
            return True
        address = v.get("address")
        return bool(
            r.validator_address
            and isinstance(address, str)
            and address.lower() == r.validator_address.lower()
        )

    @staticmethod
    def _staking_validators(app_state: Dict[str, Any]) -> List[Dict[str, Any]]:
        staking = app_state.get(STAKING_MODULE)
        if not isinstance(staking, dict):
            return []
        validators = staking.get("validators")
        if not isinstance(validators, list):
            return []
        return [v for v in validators if isinstance(v, dict)]
