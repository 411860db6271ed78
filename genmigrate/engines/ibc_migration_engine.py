# genmigrate/engines/ibc_migration_engine.py
from __future__ import annotations

import base64
import copy
import re
import struct
from dataclasses import dataclass
from typing import Any, Dict, List, Tuple

from genmigrate import logs
from genmigrate.config.consensus_config import DEFAULT_MAX_EXPECTED_TIME_PER_BLOCK
from genmigrate.core.types import AppStateMap, TransformContext
from genmigrate.utils.datetime_utils import DateTimeUtils
from genmigrate.utils.errors import MalformedDocument

IBC_MODULE = "ibc"

TENDERMINT_CLIENT_STATE = "/ibc.lightclients.tendermint.v1.ClientState"
SOLOMACHINE_V1_CLIENT_STATE = "/ibc.lightclients.solomachine.v1.ClientState"
SOLOMACHINE_V2_CLIENT_STATE = "/ibc.lightclients.solomachine.v2.ClientState"

KEY_CONSENSUS_STATE_PREFIX = "consensusStates"
KEY_ITERATE_CONSENSUS_STATE_PREFIX = "iterateConsensusStates"

# "<anything>-<revision>" with revision a positive integer without leading zero
_REVISION_FORMAT = re.compile(r"(?:.*[^\n-])-[1-9][0-9]*")

Height = Tuple[int, int]

UINT64_LIMIT = 1 << 64


def parse_chain_revision(chain_id: str) -> int:
    """cosmoshub-4 -> 4, chains without a (uint64) revision suffix -> 0."""
    if not _REVISION_FORMAT.fullmatch(chain_id):
        return 0
    revision = int(chain_id.rsplit("-", 1)[1])
    # uint64 overflow falls back to revision 0
    return revision if revision < UINT64_LIMIT else 0


def height_str(h: Height) -> str:
    return f"{h[0]}-{h[1]}"


def consensus_state_key(h: Height) -> bytes:
    return f"{KEY_CONSENSUS_STATE_PREFIX}/{height_str(h)}".encode()


def processed_time_key(h: Height) -> bytes:
    return consensus_state_key(h) + b"/processedTime"


def processed_height_key(h: Height) -> bytes:
    return consensus_state_key(h) + b"/processedHeight"


def iteration_key(h: Height) -> bytes:
    return KEY_ITERATE_CONSENSUS_STATE_PREFIX.encode() + struct.pack(">QQ", h[0], h[1])


def _b64(raw: bytes) -> str:
    return base64.b64encode(raw).decode("ascii")


def _b64decode(value: Any) -> bytes:
    try:
        return base64.b64decode(value or "", validate=True)
    except (ValueError, TypeError) as e:
        raise MalformedDocument(f"ibc metadata is not base64: {value!r}") from e


@dataclass(frozen=True)
class IbcMigrationResult:
    app_state: AppStateMap
    pruned_consensus_states: int = 0
    migrated_solomachines: int = 0


class IbcMigrationEngine:
    """
    IbcMigrationEngine (FROZEN)

    Input (contract):
      - AppStateMap after the labeled migrations
      - TransformContext carrying the FINAL genesis time / initial height

    Output (ibc module only, everything else passes through):
      - solo machine client states v1 -> v2, their consensus states dropped
      - expired tendermint consensus states pruned
        (timestamp + trusting_period <= genesis_time)
      - processed-height and iteration-key metadata added next to every
        surviving processed-time entry
      - connection params.max_expected_time_per_block set
    """

    def __init__(self, *, max_expected_time_per_block: str = DEFAULT_MAX_EXPECTED_TIME_PER_BLOCK) -> None:
        self.max_expected_time_per_block = max_expected_time_per_block

    # ==========================================================
    # Public API
    # ==========================================================
    def execute(self, app_state: AppStateMap, ctx: TransformContext) -> IbcMigrationResult:
        state = copy.deepcopy(dict(app_state))

        ibc = state.get(IBC_MODULE)
        if ibc is None:
            logs.info("[IbcMigration] no ibc module -> pass through")
            return IbcMigrationResult(app_state=state)
        if not isinstance(ibc, dict):
            raise MalformedDocument("ibc genesis state must be an object")

        self_height = (parse_chain_revision(ctx.chain_id), ctx.initial_height)
        genesis_ns = ctx.genesis_time.unix_nanos

        client_genesis = ibc.get("client_genesis") or {}
        if not isinstance(client_genesis, dict):
            raise MalformedDocument("ibc.client_genesis must be an object")

        pruned, solos = self._migrate_clients(client_genesis, genesis_ns, self_height)
        ibc["client_genesis"] = client_genesis

        connection_genesis = ibc.get("connection_genesis") or {}
        if not isinstance(connection_genesis, dict):
            raise MalformedDocument("ibc.connection_genesis must be an object")
        connection_genesis["params"] = {
            "max_expected_time_per_block": self.max_expected_time_per_block,
        }
        ibc["connection_genesis"] = connection_genesis

        logs.info(
            f"[IbcMigration] self_height={height_str(self_height)} "
            f"pruned={pruned} solomachines={solos}"
        )
        return IbcMigrationResult(
            app_state=state,
            pruned_consensus_states=pruned,
            migrated_solomachines=solos,
        )

    # ==========================================================
    # clients
    # ==========================================================
    def _migrate_clients(self, cg: Dict[str, Any], genesis_ns: int, self_height: Height) -> Tuple[int, int]:
        clients = self._objects(cg, "clients")
        consensus_by_id = {
            self._client_id(c): self._objects(c, "consensus_states")
            for c in self._objects(cg, "clients_consensus")
        }
        metadata_by_id = {
            self._client_id(m): self._objects(m, "client_metadata")
            for m in self._objects(cg, "clients_metadata")
        }

        known = {self._client_id(c) for c in clients}
        orphaned = sorted(str(k) for k in set(consensus_by_id) - known)
        if orphaned:
            logs.warning(f"[IbcMigration] dropping consensus states of unknown clients {orphaned}")

        clients_consensus: List[Dict[str, Any]] = []
        clients_metadata: List[Dict[str, Any]] = []
        pruned = 0
        solos = 0

        for client in clients:
            client_id = self._client_id(client)
            client_state = client.get("client_state")
            if not isinstance(client_state, dict):
                raise MalformedDocument(f"ibc client {client_id!r} has no client_state")

            type_url = client_state.get("@type")
            cons_states = consensus_by_id.get(client_id, [])
            metadata = metadata_by_id.get(client_id, [])

            if type_url == SOLOMACHINE_V1_CLIENT_STATE:
                client["client_state"] = self._migrate_solomachine(client_id, client_state)
                solos += 1
                continue

            if type_url == TENDERMINT_CLIENT_STATE:
                trusting_ns = self._duration(client_id, client_state.get("trusting_period"))
                kept = [
                    cs for cs in cons_states
                    if not self._expired(client_id, cs, trusting_ns, genesis_ns)
                ]
                pruned += len(cons_states) - len(kept)

                if kept:
                    clients_consensus.append({"client_id": client_id, "consensus_states": kept})

                new_metadata = self._tendermint_metadata(kept, metadata, self_height)
                if new_metadata:
                    clients_metadata.append({"client_id": client_id, "client_metadata": new_metadata})
                continue

            # other client types keep their state as exported
            if cons_states:
                clients_consensus.append({"client_id": client_id, "consensus_states": cons_states})
            if metadata:
                clients_metadata.append({"client_id": client_id, "client_metadata": metadata})

        cg["clients"] = clients
        cg["clients_consensus"] = clients_consensus
        cg["clients_metadata"] = clients_metadata
        return pruned, solos

    @staticmethod
    def _migrate_solomachine(client_id: str, cs: Dict[str, Any]) -> Dict[str, Any]:
        consensus = cs.get("consensus_state") or {}
        if not isinstance(consensus, dict):
            raise MalformedDocument(f"ibc client {client_id!r} consensus_state must be an object")
        try:
            frozen_sequence = int(cs.get("frozen_sequence") or 0)
        except (TypeError, ValueError):
            raise MalformedDocument(
                f"ibc client {client_id!r} frozen_sequence is not numeric: {cs.get('frozen_sequence')!r}"
            ) from None

        out = {
            "@type": SOLOMACHINE_V2_CLIENT_STATE,
            "sequence": cs.get("sequence", "0"),
            "is_frozen": frozen_sequence != 0,
            "consensus_state": {
                "public_key": consensus.get("public_key"),
                "diversifier": consensus.get("diversifier", ""),
                "timestamp": consensus.get("timestamp", "0"),
            },
            "allow_update_after_proposal": bool(cs.get("allow_update_after_proposal", False)),
        }
        return out

    def _expired(self, client_id: str, cs: Dict[str, Any], trusting_ns: int, genesis_ns: int) -> bool:
        consensus = cs.get("consensus_state") or {}
        if not isinstance(consensus, dict):
            raise MalformedDocument(f"ibc client {client_id!r} consensus_state must be an object")
        ts = consensus.get("timestamp")
        try:
            ts_ns = DateTimeUtils.parse_rfc3339(ts).unix_nanos
        except ValueError as e:
            raise MalformedDocument(f"ibc client {client_id!r} consensus state timestamp: {e}") from e
        return ts_ns + trusting_ns <= genesis_ns

    @staticmethod
    def _duration(client_id: str, value: Any) -> int:
        try:
            return DateTimeUtils.parse_duration_nanos(value)
        except ValueError as e:
            raise MalformedDocument(f"ibc client {client_id!r} trusting_period: {e}") from e

    def _tendermint_metadata(
        self,
        kept: List[Dict[str, Any]],
        metadata: List[Dict[str, Any]],
        self_height: Height,
    ) -> List[Dict[str, str]]:
        """
        The old store only held processed-time metadata. For every surviving
        height that has one, emit processed height, processed time and
        iteration key, in that order.
        """
        by_key = {}
        for m in metadata:
            by_key.setdefault(_b64decode(m.get("key")), m)

        out: List[Dict[str, str]] = []
        for cs in kept:
            h = self._height(cs.get("height"))
            processed_time = by_key.get(processed_time_key(h))
            if processed_time is None:
                continue
            out.append({
                "key": _b64(processed_height_key(h)),
                "value": _b64(height_str(self_height).encode()),
            })
            out.append(processed_time)
            out.append({
                "key": _b64(iteration_key(h)),
                "value": _b64(consensus_state_key(h)),
            })
        return out

    # ==========================================================
    # helpers
    # ==========================================================
    @staticmethod
    def _height(h: Any) -> Height:
        if not isinstance(h, dict):
            raise MalformedDocument(f"ibc height must be an object, got {h!r}")
        number = h.get("revision_number", h.get("version_number", 0))
        height = h.get("revision_height", h.get("version_height", 0))
        try:
            out = int(number or 0), int(height or 0)
        except (TypeError, ValueError):
            raise MalformedDocument(f"ibc height is not numeric: {h!r}") from None
        if not all(0 <= v < UINT64_LIMIT for v in out):
            raise MalformedDocument(f"ibc height out of uint64 range: {h!r}")
        return out

    @staticmethod
    def _list(obj: Any, key: str) -> List[Any]:
        if not isinstance(obj, dict):
            raise MalformedDocument(f"ibc entry holding {key} must be an object")
        value = obj.get(key)
        if value is None:
            return []
        if not isinstance(value, list):
            raise MalformedDocument(f"ibc field {key} must be a list")
        return value

    @classmethod
    def _objects(cls, obj: Any, key: str) -> List[Dict[str, Any]]:
        items = cls._list(obj, key)
        for i, item in enumerate(items):
            if not isinstance(item, dict):
                raise MalformedDocument(f"ibc {key}[{i}] must be an object, got {item!r}")
        return items

    @staticmethod
    def _client_id(entry: Dict[str, Any]) -> str:
        client_id = entry.get("client_id")
        if not isinstance(client_id, str):
            raise MalformedDocument(f"ibc client_id must be a string, got {client_id!r}")
        return client_id
