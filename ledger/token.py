"""
Capped token

Public entry points of the ledger. Each call:
- checks authorization (owner / self / allowance) where the action is privileged
- consults the transfer gate where value leaves an account or gets locked
- hands the numeric work to the store, supply controller or lock scheduler
- journals the committed result

All calls run under one re-entrant lock, so operations never interleave.
The caller identity is always an explicit argument supplied by the host.
"""

from __future__ import annotations
import threading
from typing import Any, Dict, Optional

from ledger.clock import Clock
from ledger.errors import TransferNotAllowed, UpgradeError, require_account, require_amount
from ledger.gate import TransferGate
from ledger.journal import Journal
from ledger.locks import LockScheduler
from ledger.store import LedgerStore
from ledger.supply import SupplyController
from ledger.upgrade import V1, V2, LedgerState, load_into, migrate_v1_to_v2, new_state, state_to_dict


class Token:
    def __init__(self, state: LedgerState, clock: Clock, journal: Optional[Journal] = None) -> None:
        self._state = state
        self._clock = clock
        self._lock = threading.RLock()
        self.journal = journal if journal is not None else Journal()
        self.ownership = state.ownership
        self.store = LedgerStore(state)
        self.supply = SupplyController(state, self.store, self.ownership)
        self.gate = TransferGate(state, self.ownership, clock)
        self.locks = LockScheduler(self.store, self.gate, self.ownership)

    @classmethod
    def create(
        cls,
        owner: str,
        cap: int,
        lock_from_marker: int,
        lock_to_marker: int,
        clock: Clock,
        version: int = V2,
        journal: Optional[Journal] = None,
    ) -> "Token":
        state = new_state(owner, cap, lock_from_marker, lock_to_marker, version=version)
        return cls(state, clock, journal=journal)

    # ------------------------------------------------------------------ #
    # Plumbing
    # ------------------------------------------------------------------ #
    @property
    def state(self) -> LedgerState:
        return self._state

    @property
    def clock(self) -> Clock:
        return self._clock

    @property
    def version(self) -> int:
        return self._state.version

    @property
    def mutex(self) -> threading.RLock:
        return self._lock

    def _require_v2(self, operation: str) -> None:
        if self._state.version < V2:
            raise UpgradeError(f"{operation} needs ledger version {V2}, ledger is at {self._state.version}")

    def _record(self, event_type: str, actor: Optional[str], **metadata: Any) -> None:
        self.journal.record(event_type, actor, self._clock.current(), **metadata)

    def snapshot(self) -> Dict[str, Any]:
        with self._lock:
            return state_to_dict(self._state)

    def restore(self, doc: Dict[str, Any]) -> None:
        with self._lock:
            load_into(self._state, doc)

    # ------------------------------------------------------------------ #
    # Queries
    # ------------------------------------------------------------------ #
    @property
    def owner(self) -> Optional[str]:
        return self.ownership.owner

    @property
    def total_supply(self) -> int:
        return self.store.total_supply

    @property
    def cap(self) -> int:
        return self.store.cap

    @property
    def enabled_from(self) -> Optional[int]:
        return self.gate.enabled_from

    def is_owner(self, caller: Optional[str]) -> bool:
        return self.ownership.is_owner(caller)

    def balance_of(self, account: str) -> int:
        return self.store.balance_of(account)

    def lock_of(self, account: str) -> int:
        return self.store.lock_of(account)

    def total_balance_of(self, account: str) -> int:
        return self.store.total_balance_of(account)

    def allowance(self, owner: str, spender: str) -> int:
        return self.supply.allowance(owner, spender)

    def check_whitelist(self, account: str) -> bool:
        return self.gate.check_whitelist(account)

    def is_transfer_allowed(self, account: str) -> bool:
        if self._state.version < V2:
            return True
        return self.gate.is_transfer_allowed(account)

    # ------------------------------------------------------------------ #
    # Supply (V1)
    # ------------------------------------------------------------------ #
    def mint(self, caller: str, to: str, amount: int) -> None:
        with self._lock:
            self.supply.mint(caller, to, amount)
            self._record("mint", caller, to=to, amount=amount)

    def burn(self, caller: str, amount: int) -> None:
        with self._lock:
            self.supply.burn(caller, amount)
            self._record("burn", caller, amount=amount)

    def burn_from(self, caller: str, owner: str, amount: int) -> None:
        with self._lock:
            self.supply.burn_from(caller, owner, amount)
            self._record("burn_from", caller, owner=owner, amount=amount)

    def approve(self, caller: str, spender: str, amount: int) -> None:
        with self._lock:
            require_account(caller)
            self.supply.approve(caller, spender, amount)
            self._record("approve", caller, spender=spender, amount=amount)

    def increase_allowance(self, caller: str, spender: str, added: int) -> int:
        with self._lock:
            require_account(caller)
            value = self.supply.increase_allowance(caller, spender, added)
            self._record("approve", caller, spender=spender, amount=value)
            return value

    def decrease_allowance(self, caller: str, spender: str, subtracted: int) -> int:
        with self._lock:
            require_account(caller)
            value = self.supply.decrease_allowance(caller, spender, subtracted)
            self._record("approve", caller, spender=spender, amount=value)
            return value

    # ------------------------------------------------------------------ #
    # Transfers (gated from V2 on)
    # ------------------------------------------------------------------ #
    def _require_transfer_allowed(self, account: str) -> None:
        if not self.is_transfer_allowed(account):
            raise TransferNotAllowed(f"transfers are not open for {account}")

    def transfer(self, caller: str, to: str, amount: int) -> None:
        with self._lock:
            require_account(caller)
            require_account(to)
            require_amount(amount)
            self._require_transfer_allowed(caller)
            self.store.move_available(caller, to, amount)
            self._record("transfer", caller, to=to, amount=amount)

    def transfer_from(self, caller: str, owner: str, to: str, amount: int) -> None:
        with self._lock:
            require_account(caller)
            require_account(owner)
            require_account(to)
            require_amount(amount)
            self._require_transfer_allowed(owner)
            self.supply.require_allowance(owner, caller, amount)
            self.store.require_available(owner, amount)
            self.supply.spend_allowance(owner, caller, amount)
            self.store.move_available(owner, to, amount)
            self._record("transfer_from", caller, owner=owner, to=to, amount=amount)

    # ------------------------------------------------------------------ #
    # Ownership
    # ------------------------------------------------------------------ #
    def transfer_ownership(self, caller: str, new_owner: str) -> None:
        with self._lock:
            self.ownership.transfer_ownership(caller, new_owner)
            self._record("ownership_transferred", caller, new_owner=new_owner)

    def renounce_ownership(self, caller: str) -> None:
        with self._lock:
            self.ownership.renounce_ownership(caller)
            self._record("ownership_renounced", caller)

    # ------------------------------------------------------------------ #
    # Gate, whitelist and locks (V2)
    # ------------------------------------------------------------------ #
    def set_enabled_from(self, caller: str, marker: int) -> None:
        with self._lock:
            self._require_v2("set_enabled_from")
            self.gate.set_enabled_from(caller, marker)
            self._record("gate_set", caller, enabled_from=marker)

    def add_whitelist(self, caller: str, account: str) -> None:
        with self._lock:
            self._require_v2("add_whitelist")
            self.gate.add_whitelist(caller, account)
            self._record("whitelist_added", caller, account=account)

    def revoke_whitelist(self, caller: str, account: str) -> None:
        with self._lock:
            self._require_v2("revoke_whitelist")
            self.gate.revoke_whitelist(caller, account)
            self._record("whitelist_revoked", caller, account=account)

    def renounce_whitelist(self, caller: str) -> None:
        with self._lock:
            self._require_v2("renounce_whitelist")
            self.gate.renounce_whitelist(caller)
            self._record("whitelist_renounced", caller)

    def lock(self, caller: str, account: str, amount: int) -> None:
        with self._lock:
            self._require_v2("lock")
            self.locks.lock(caller, account, amount)
            self._record("lock", caller, account=account, amount=amount)

    # ------------------------------------------------------------------ #
    # Upgrade
    # ------------------------------------------------------------------ #
    def upgrade(self, caller: str) -> None:
        with self._lock:
            self.ownership.require_owner(caller, "upgrade")
            if self._state.version != V1:
                raise UpgradeError(f"ledger is already at version {self._state.version}")
            migrate_v1_to_v2(self._state)
            self._record("upgraded", caller, version=self._state.version)
