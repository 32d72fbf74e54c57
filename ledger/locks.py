"""
Lock scheduler: owner-driven moves from available into the locked bucket.

There is no unlock path. Locked funds stay in total balance but can no
longer be spent.
"""

from __future__ import annotations
from typing import Dict

from ledger.errors import LockExceedsBalance, TransferNotAllowed, require_account, require_amount
from ledger.gate import TransferGate
from ledger.ownership import Ownership
from ledger.store import LedgerStore


class LockScheduler:
    def __init__(self, store: LedgerStore, gate: TransferGate, ownership: Ownership) -> None:
        self._store = store
        self._gate = gate
        self._ownership = ownership

    def lock(self, caller: str, account: str, amount: int) -> None:
        self._ownership.require_owner(caller, "lock")
        require_account(account)
        require_amount(amount)
        available = self._store.balance_of(account)
        if amount > available:
            raise LockExceedsBalance(
                f"cannot lock {amount}, {account} has {available} available"
            )
        if not self._gate.is_transfer_allowed(account):
            raise TransferNotAllowed(
                f"transfers are not open for {account}; lock refused"
            )
        self._store.move_to_locked(account, amount)

    def balances(self, account: str) -> Dict[str, int]:
        return {
            "available": self._store.balance_of(account),
            "locked": self._store.lock_of(account),
            "total": self._store.total_balance_of(account),
        }
