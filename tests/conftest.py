# tests/conftest.py
from __future__ import annotations

import base64
import json
from typing import Any, Dict

import pytest
from loguru import logger

from genmigrate.config.app_config import AppConfig
from genmigrate.migrations.registry import MigrationRegistry


@pytest.fixture(autouse=True)
def disable_file_logger():
    logger.remove()
    logger.add(lambda msg: None)
    yield


def ed25519_key(seed: int) -> str:
    return base64.b64encode(bytes([seed]) * 32).decode()


KEY_ALICE = ed25519_key(1)
KEY_BOB = ed25519_key(2)
KEY_NEW = ed25519_key(9)


@pytest.fixture
def legacy_genesis() -> Dict[str, Any]:
    """
    cosmoshub-3 style export, trimmed to what the migration touches.
    """
    return {
        "genesis_time": "2021-02-18T06:00:00Z",
        "chain_id": "cosmoshub-3",
        "consensus_params": {
            "block": {"max_bytes": "200000", "max_gas": "2000000", "time_iota_ms": "1000"},
            "evidence": {"max_age": "1000000"},
            "validator": {"pub_key_types": ["ed25519"]},
        },
        "app_hash": "",
        "validators": [
            {
                "address": "B00A6323737F321EB0B8D59C6FD497A14B60938A",
                "pub_key": {"type": "tendermint/PubKeyEd25519", "value": KEY_ALICE},
                "power": "100",
                "name": "alice",
            },
            {
                "address": "0A2E8F1D1B8F8A4C6B1E5F2C3D4E5F6A7B8C9D0E",
                "pub_key": {"type": "tendermint/PubKeyEd25519", "value": KEY_BOB},
                "power": "50",
                "name": "bob",
            },
        ],
        "app_state": {
            "bank": {"send_enabled": True, "balances": [{"address": "cosmos1abc", "coins": [{"denom": "uatom", "amount": "10"}]}]},
            "staking": {
                "params": {"bond_denom": "uatom"},
                "validators": [
                    {
                        "operator_address": "cosmosvaloper1alice",
                        "consensus_pubkey": {"@type": "/cosmos.crypto.ed25519.PubKey", "key": KEY_ALICE},
                        "description": {"moniker": "alice"},
                        "tokens": "100000000",
                    }
                ],
            },
            "foo": {"nested": {"z": 1, "a": [1, 2, 3]}},
        },
    }


@pytest.fixture
def legacy_raw(legacy_genesis) -> bytes:
    return json.dumps(legacy_genesis).encode()


def passthrough(app_state, ctx):
    return dict(app_state)


@pytest.fixture
def registry() -> MigrationRegistry:
    reg = MigrationRegistry()
    reg.register("v0.43", passthrough)
    return reg


@pytest.fixture
def cfg() -> AppConfig:
    return AppConfig()


@pytest.fixture
def keys() -> Dict[str, str]:
    return {"alice": KEY_ALICE, "bob": KEY_BOB, "new": KEY_NEW}
