"""
Versioned ledger state + the one-time V1 -> V2 migration.

V1 stores supply, cap, owner, available balances, allowances and the
deployment window. V2 appends the locked bucket, the transfer-gate marker
and the whitelist. The state object carries every field from the start; a
V1 state simply keeps the V2 fields at their neutral defaults.

Migration only ever touches V2 fields. `v1_view()` exposes the V1-visible
fields so callers (and tests) can compare them across an upgrade.
"""

from __future__ import annotations
import copy
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Set

from ledger.errors import UpgradeError
from ledger.ownership import Ownership

V1 = 1
V2 = 2
SUPPORTED_VERSIONS = (V1, V2)

# Order matters only for readability of serialized documents.
V1_FIELDS = (
    "cap",
    "owner",
    "lock_from_marker",
    "lock_to_marker",
    "total_supply",
    "available",
    "allowances",
)
V2_FIELDS = ("locked", "enabled_from", "whitelist")


@dataclass
class LedgerState:
    version: int
    cap: int
    lock_from_marker: int
    lock_to_marker: int
    ownership: Ownership = field(default_factory=Ownership)
    total_supply: int = 0
    available: Dict[str, int] = field(default_factory=dict)
    allowances: Dict[str, Dict[str, int]] = field(default_factory=dict)
    # V2
    locked: Dict[str, int] = field(default_factory=dict)
    enabled_from: Optional[int] = None
    whitelist: Set[str] = field(default_factory=set)

    @property
    def owner(self) -> Optional[str]:
        return self.ownership.owner


def new_state(
    owner: str,
    cap: int,
    lock_from_marker: int,
    lock_to_marker: int,
    version: int = V2,
) -> LedgerState:
    if version not in SUPPORTED_VERSIONS:
        raise ValueError(f"unsupported ledger version: {version}")
    if cap < 0:
        raise ValueError("cap must be non-negative")
    if lock_from_marker > lock_to_marker:
        raise ValueError(
            f"lock window is inverted: from={lock_from_marker} to={lock_to_marker}"
        )
    return LedgerState(
        version=version,
        cap=cap,
        lock_from_marker=lock_from_marker,
        lock_to_marker=lock_to_marker,
        ownership=Ownership(owner),
    )


def v1_view(state: LedgerState) -> Dict[str, Any]:
    """Deep copy of every field a V1 reader can observe."""
    return {
        "cap": state.cap,
        "owner": state.owner,
        "lock_from_marker": state.lock_from_marker,
        "lock_to_marker": state.lock_to_marker,
        "total_supply": state.total_supply,
        "available": copy.deepcopy(state.available),
        "allowances": copy.deepcopy(state.allowances),
    }


def migrate_v1_to_v2(state: LedgerState) -> LedgerState:
    """
    Upgrade a V1 state in place. Runs once; V1 fields are left as they are and
    the appended fields start from their empty defaults.
    """
    if state.version != V1:
        raise UpgradeError(f"ledger is already at version {state.version}")
    state.locked = {}
    state.enabled_from = None
    state.whitelist = set()
    state.version = V2
    return state


# ------------------------------------------------------------------ #
# Serialization
# ------------------------------------------------------------------ #
def state_to_dict(state: LedgerState) -> Dict[str, Any]:
    doc: Dict[str, Any] = {"version": state.version}
    doc.update(v1_view(state))
    if state.version >= V2:
        doc["locked"] = dict(state.locked)
        doc["enabled_from"] = state.enabled_from
        doc["whitelist"] = sorted(state.whitelist)
    return doc


def state_from_dict(doc: Dict[str, Any]) -> LedgerState:
    """
    Rebuild a state from a stored document. Documents written before the
    upgrade carry no version key and no V2 keys; they load as V1.
    """
    version = int(doc.get("version", V1))
    if version not in SUPPORTED_VERSIONS:
        raise ValueError(f"unsupported ledger version in stored state: {version}")

    state = LedgerState(
        version=version,
        cap=int(doc["cap"]),
        lock_from_marker=int(doc["lock_from_marker"]),
        lock_to_marker=int(doc["lock_to_marker"]),
        ownership=Ownership(doc.get("owner")),
        total_supply=int(doc.get("total_supply", 0)),
        available={k: int(v) for k, v in (doc.get("available") or {}).items()},
        allowances={
            owner: {spender: int(v) for spender, v in spenders.items()}
            for owner, spenders in (doc.get("allowances") or {}).items()
        },
    )
    if version >= V2:
        state.locked = {k: int(v) for k, v in (doc.get("locked") or {}).items()}
        marker = doc.get("enabled_from")
        state.enabled_from = None if marker is None else int(marker)
        state.whitelist = set(doc.get("whitelist") or [])
    return state


def load_into(state: LedgerState, doc: Dict[str, Any]) -> LedgerState:
    """
    Overwrite `state` in place from a stored document. Components hold a
    reference to the live state and its Ownership, so both keep their identity.
    """
    fresh = state_from_dict(doc)
    state.version = fresh.version
    state.cap = fresh.cap
    state.lock_from_marker = fresh.lock_from_marker
    state.lock_to_marker = fresh.lock_to_marker
    state.ownership.owner = fresh.ownership.owner
    state.total_supply = fresh.total_supply
    state.available = fresh.available
    state.allowances = fresh.allowances
    state.locked = fresh.locked
    state.enabled_from = fresh.enabled_from
    state.whitelist = fresh.whitelist
    return state
