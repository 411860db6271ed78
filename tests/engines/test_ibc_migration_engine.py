import base64
import struct

import pytest

from genmigrate.core.types import TransformContext
from genmigrate.engines.ibc_migration_engine import IbcMigrationEngine, parse_chain_revision
from genmigrate.utils.datetime_utils import DateTimeUtils
from genmigrate.utils.errors import MalformedDocument

TM = "/ibc.lightclients.tendermint.v1.ClientState"
SOLO_V1 = "/ibc.lightclients.solomachine.v1.ClientState"
SOLO_V2 = "/ibc.lightclients.solomachine.v2.ClientState"


def b64(raw: bytes) -> str:
    return base64.b64encode(raw).decode()


def tm_consensus(rev, height, ts):
    return {
        "height": {"revision_number": str(rev), "revision_height": str(height)},
        "consensus_state": {
            "@type": "/ibc.lightclients.tendermint.v1.ConsensusState",
            "timestamp": ts,
            "root": {"hash": "aGFzaA=="},
            "next_validators_hash": "ABCD",
        },
    }


def processed_time(rev, height, ns=1_600_000_000_000_000_000):
    return {
        "key": b64(f"consensusStates/{rev}-{height}/processedTime".encode()),
        "value": b64(struct.pack(">Q", ns)),
    }


@pytest.fixture
def ibc_state():
    return {
        "client_genesis": {
            "clients": [
                {
                    "client_id": "07-tendermint-0",
                    "client_state": {"@type": TM, "chain_id": "osmosis-1", "trusting_period": "1209600s"},
                },
                {
                    "client_id": "06-solomachine-1",
                    "client_state": {
                        "@type": SOLO_V1,
                        "sequence": "5",
                        "frozen_sequence": "3",
                        "consensus_state": {
                            "public_key": {"@type": "/cosmos.crypto.secp256k1.PubKey", "key": "AA=="},
                            "diversifier": "solo",
                            "timestamp": "10",
                        },
                        "allow_update_after_proposal": True,
                    },
                },
            ],
            "clients_consensus": [
                {
                    "client_id": "07-tendermint-0",
                    "consensus_states": [
                        tm_consensus(1, 100, "2021-01-01T00:00:00Z"),  # expired
                        tm_consensus(1, 200, "2021-02-10T00:00:00Z"),  # kept
                    ],
                },
                {
                    "client_id": "06-solomachine-1",
                    "consensus_states": [{"height": {"revision_number": "0", "revision_height": "5"}}],
                },
            ],
            "clients_metadata": [
                {
                    "client_id": "07-tendermint-0",
                    "client_metadata": [processed_time(1, 100), processed_time(1, 200)],
                }
            ],
            "params": {"allowed_clients": ["06-solomachine", "07-tendermint"]},
            "create_localhost": False,
            "next_client_sequence": "2",
        },
        "connection_genesis": {
            "connections": [{"id": "connection-0", "client_id": "07-tendermint-0"}],
            "client_connection_paths": [],
            "next_connection_sequence": "1",
        },
        "channel_genesis": {"channels": [{"port_id": "transfer"}]},
    }


def make_ctx(time="2021-02-18T06:00:00Z", chain_id="cosmoshub-4", height=5000):
    return TransformContext(
        chain_id=chain_id,
        genesis_time=DateTimeUtils.parse_rfc3339(time),
        initial_height=height,
    )


def test_no_ibc_module_passes_through():
    state = {"bank": {"x": 1}}
    result = IbcMigrationEngine().execute(state, make_ctx())
    assert result.app_state == state
    assert result.pruned_consensus_states == 0


def test_tendermint_expired_states_pruned(ibc_state):
    result = IbcMigrationEngine().execute({"ibc": ibc_state, "foo": 1}, make_ctx())
    cg = result.app_state["ibc"]["client_genesis"]

    assert result.pruned_consensus_states == 1
    assert cg["clients_consensus"] == [
        {
            "client_id": "07-tendermint-0",
            "consensus_states": [tm_consensus(1, 200, "2021-02-10T00:00:00Z")],
        }
    ]
    assert result.app_state["foo"] == 1


def test_tendermint_metadata_added_for_kept_heights(ibc_state):
    result = IbcMigrationEngine().execute({"ibc": ibc_state}, make_ctx())
    cg = result.app_state["ibc"]["client_genesis"]

    assert cg["clients_metadata"] == [
        {
            "client_id": "07-tendermint-0",
            "client_metadata": [
                {
                    "key": b64(b"consensusStates/1-200/processedHeight"),
                    "value": b64(b"4-5000"),
                },
                processed_time(1, 200),
                {
                    "key": b64(b"iterateConsensusStates" + struct.pack(">QQ", 1, 200)),
                    "value": b64(b"consensusStates/1-200"),
                },
            ],
        }
    ]


def test_solomachine_upgraded_and_consensus_dropped(ibc_state):
    result = IbcMigrationEngine().execute({"ibc": ibc_state}, make_ctx())
    cg = result.app_state["ibc"]["client_genesis"]
    solo = cg["clients"][1]

    assert result.migrated_solomachines == 1
    assert solo["client_id"] == "06-solomachine-1"
    assert solo["client_state"] == {
        "@type": SOLO_V2,
        "sequence": "5",
        "is_frozen": True,
        "consensus_state": {
            "public_key": {"@type": "/cosmos.crypto.secp256k1.PubKey", "key": "AA=="},
            "diversifier": "solo",
            "timestamp": "10",
        },
        "allow_update_after_proposal": True,
    }
    assert all(c["client_id"] != "06-solomachine-1" for c in cg["clients_consensus"])


def test_solomachine_not_frozen(ibc_state):
    ibc_state["client_genesis"]["clients"][1]["client_state"]["frozen_sequence"] = "0"
    result = IbcMigrationEngine().execute({"ibc": ibc_state}, make_ctx())
    assert result.app_state["ibc"]["client_genesis"]["clients"][1]["client_state"]["is_frozen"] is False


def test_connection_params_set(ibc_state):
    result = IbcMigrationEngine(max_expected_time_per_block="42").execute({"ibc": ibc_state}, make_ctx())
    conn = result.app_state["ibc"]["connection_genesis"]

    assert conn["params"] == {"max_expected_time_per_block": "42"}
    assert conn["connections"] == [{"id": "connection-0", "client_id": "07-tendermint-0"}]
    assert result.app_state["ibc"]["channel_genesis"] == {"channels": [{"port_id": "transfer"}]}


def test_expiry_boundary_is_expired(ibc_state):
    # 2021-02-10 + 14d == 2021-02-24 exactly
    result = IbcMigrationEngine().execute({"ibc": ibc_state}, make_ctx(time="2021-02-24T00:00:00Z"))
    cg = result.app_state["ibc"]["client_genesis"]

    assert result.pruned_consensus_states == 2
    assert cg["clients_consensus"] == []
    assert cg["clients_metadata"] == []


def test_input_not_mutated(ibc_state):
    state = {"ibc": ibc_state}
    IbcMigrationEngine().execute(state, make_ctx())
    assert "params" not in state["ibc"]["connection_genesis"]
    assert len(state["ibc"]["client_genesis"]["clients_consensus"][0]["consensus_states"]) == 2


def test_legacy_version_height_fields(ibc_state):
    cs = ibc_state["client_genesis"]["clients_consensus"][0]["consensus_states"][1]
    cs["height"] = {"version_number": "1", "version_height": "200"}

    result = IbcMigrationEngine().execute({"ibc": ibc_state}, make_ctx())
    md = result.app_state["ibc"]["client_genesis"]["clients_metadata"][0]["client_metadata"]
    assert md[0]["key"] == b64(b"consensusStates/1-200/processedHeight")


@pytest.mark.parametrize(
    "chain_id,rev",
    [("cosmoshub-4", 4), ("cosmoshub", 0), ("chain-0", 0), ("a-b-12", 12), ("-1", 0), ("chain--1", 0),
     ("foo-18446744073709551615", 2**64 - 1), ("foo-18446744073709551616", 0)],
)
def test_parse_chain_revision(chain_id, rev):
    assert parse_chain_revision(chain_id) == rev


def test_bad_timestamp_is_malformed(ibc_state):
    cs = ibc_state["client_genesis"]["clients_consensus"][0]["consensus_states"][0]
    cs["consensus_state"]["timestamp"] = "not-a-time"
    with pytest.raises(MalformedDocument):
        IbcMigrationEngine().execute({"ibc": ibc_state}, make_ctx())


def test_ibc_must_be_object():
    with pytest.raises(MalformedDocument):
        IbcMigrationEngine().execute({"ibc": []}, make_ctx())


def test_revision_overflow_chain_id_falls_back_to_zero(ibc_state):
    result = IbcMigrationEngine().execute({"ibc": ibc_state}, make_ctx(chain_id="foo-18446744073709551616"))
    md = result.app_state["ibc"]["client_genesis"]["clients_metadata"][0]["client_metadata"]

    assert md[0]["value"] == b64(b"0-5000")


def test_height_out_of_uint64_range(ibc_state):
    cs = ibc_state["client_genesis"]["clients_consensus"][0]["consensus_states"][1]
    cs["height"] = {"revision_number": str(2**64), "revision_height": "200"}

    with pytest.raises(MalformedDocument):
        IbcMigrationEngine().execute({"ibc": ibc_state}, make_ctx())


@pytest.mark.parametrize(
    "client_genesis",
    [
        {"clients": ["x"], "clients_consensus": ["y"]},
        {"clients": [], "clients_consensus": ["y"]},
        {"clients": [], "clients_metadata": [7]},
        {"clients": [{"client_id": ["unhashable"], "client_state": {"@type": TM}}]},
        {"clients": [{"client_id": 5, "client_state": {"@type": TM}}]},
    ],
)
def test_non_object_entries_are_malformed(client_genesis):
    with pytest.raises(MalformedDocument):
        IbcMigrationEngine().execute({"ibc": {"client_genesis": client_genesis}}, make_ctx())


def test_non_object_consensus_state_entry(ibc_state):
    ibc_state["client_genesis"]["clients_consensus"][0]["consensus_states"].append("stale")
    with pytest.raises(MalformedDocument):
        IbcMigrationEngine().execute({"ibc": ibc_state}, make_ctx())


def test_non_object_inner_consensus_state(ibc_state):
    cs = ibc_state["client_genesis"]["clients_consensus"][0]["consensus_states"][0]
    cs["consensus_state"] = "opaque"
    with pytest.raises(MalformedDocument):
        IbcMigrationEngine().execute({"ibc": ibc_state}, make_ctx())


def test_non_object_metadata_entry(ibc_state):
    ibc_state["client_genesis"]["clients_metadata"][0]["client_metadata"].append(["k", "v"])
    with pytest.raises(MalformedDocument):
        IbcMigrationEngine().execute({"ibc": ibc_state}, make_ctx())


@pytest.mark.parametrize("frozen", ["abc", {"n": 1}])
def test_solomachine_bad_frozen_sequence(ibc_state, frozen):
    ibc_state["client_genesis"]["clients"][1]["client_state"]["frozen_sequence"] = frozen
    with pytest.raises(MalformedDocument):
        IbcMigrationEngine().execute({"ibc": ibc_state}, make_ctx())


def test_solomachine_bad_consensus_state(ibc_state):
    ibc_state["client_genesis"]["clients"][1]["client_state"]["consensus_state"] = ["AA=="]
    with pytest.raises(MalformedDocument):
        IbcMigrationEngine().execute({"ibc": ibc_state}, make_ctx())
