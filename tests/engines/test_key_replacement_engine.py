import base64
import json

import pytest

from genmigrate.core.types import ValidatorKeyRecord
from genmigrate.engines.document_loader_engine import DocumentLoaderEngine
from genmigrate.engines.key_replacement_engine import KeyReplacementEngine, parse_keyfile
from genmigrate.utils.errors import KeyfileError


@pytest.fixture
def doc(legacy_raw):
    return DocumentLoaderEngine().execute(legacy_raw)


def test_replace_by_name(doc, keys):
    records = [ValidatorKeyRecord(validator_name="alice", consensus_public_key=keys["new"])]
    result = KeyReplacementEngine().execute(doc, records)

    alice, bob = result.document.validators
    assert alice["pub_key"] == {"type": "tendermint/PubKeyEd25519", "value": keys["new"]}
    # only the key changes
    assert alice["power"] == "100"
    assert alice["name"] == "alice"
    assert alice["address"] == doc.validators[0]["address"]
    assert bob == doc.validators[1]
    assert result.replaced == ("alice",)
    # original document untouched
    assert doc.validators[0]["pub_key"]["value"] == keys["alice"]


def test_replace_by_address_case_insensitive(doc, keys):
    address = doc.validators[1]["address"].lower()
    records = [ValidatorKeyRecord(validator_name="", validator_address=address, consensus_public_key=keys["new"])]

    result = KeyReplacementEngine().execute(doc, records)

    assert result.document.validators[1]["pub_key"]["value"] == keys["new"]
    assert result.document.validators[0] == doc.validators[0]


def test_staking_validator_key_replaced(doc, keys):
    records = [ValidatorKeyRecord(validator_name="alice", consensus_public_key=keys["new"])]
    result = KeyReplacementEngine().execute(doc, records)

    staking_val = result.document.app_state["staking"]["validators"][0]
    assert staking_val["consensus_pubkey"] == {"@type": "/cosmos.crypto.ed25519.PubKey", "key": keys["new"]}
    assert staking_val["tokens"] == "100000000"
    assert doc.app_state["staking"]["validators"][0]["consensus_pubkey"]["key"] == keys["alice"]


def test_unmatched_record_ignored(doc, keys):
    records = [ValidatorKeyRecord(validator_name="V1", consensus_public_key=keys["new"])]
    result = KeyReplacementEngine().execute(doc, records)

    assert result.document.validators == doc.validators
    assert result.document.app_state == doc.app_state
    assert result.unmatched == ("V1",)


def test_unmatched_record_strict(doc, keys):
    records = [ValidatorKeyRecord(validator_name="V1", consensus_public_key=keys["new"])]
    with pytest.raises(KeyfileError):
        KeyReplacementEngine(strict=True).execute(doc, records)


def test_no_records_is_noop(doc):
    result = KeyReplacementEngine().execute(doc, [])
    assert result.document is doc


# ----------------------------------------------------------------------
# keyfile parsing
# ----------------------------------------------------------------------
def test_parse_keyfile(keys):
    raw = json.dumps(
        [
            {"validator_name": "alice", "validator_address": "ABC", "consensus_public_key": keys["new"]},
            {"validator_name": "bob", "stargate_consensus_public_key": keys["alice"]},
        ]
    )
    records = parse_keyfile(raw)

    assert records == [
        ValidatorKeyRecord(validator_name="alice", validator_address="ABC", consensus_public_key=keys["new"]),
        ValidatorKeyRecord(validator_name="bob", validator_address="", consensus_public_key=keys["alice"]),
    ]


@pytest.mark.parametrize(
    "raw",
    [
        b"not json",
        b'{"validator_name": "a"}',
        b"[1]",
        b'[{"validator_name": "a"}]',
        b'[{"consensus_public_key": "AAAA"}]',
        b'[{"validator_name": "a", "consensus_public_key": "%%%"}]',
        ('[{"validator_name": "a", "consensus_public_key": "%s"}]' % base64.b64encode(b"short").decode()).encode(),
    ],
)
def test_parse_keyfile_errors(raw):
    with pytest.raises(KeyfileError):
        parse_keyfile(raw)
