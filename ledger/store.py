"""
Ledger store: per-account available / locked balances and total supply.

Every mutator checks its precondition before writing, so a failed call
never leaves a partial update behind. Zeroed entries are pruned; an
account with nothing in it looks exactly like one that was never used.
"""

from __future__ import annotations
from typing import Dict, List

from ledger.errors import InsufficientBalance, require_account, require_amount
from ledger.upgrade import LedgerState


def _add(bucket: Dict[str, int], account: str, delta: int) -> None:
    value = bucket.get(account, 0) + delta
    if value:
        bucket[account] = value
    else:
        bucket.pop(account, None)


class LedgerStore:
    def __init__(self, state: LedgerState) -> None:
        self._state = state

    # ------------------------------------------------------------------ #
    # Queries
    # ------------------------------------------------------------------ #
    @property
    def total_supply(self) -> int:
        return self._state.total_supply

    @property
    def cap(self) -> int:
        return self._state.cap

    def balance_of(self, account: str) -> int:
        return self._state.available.get(account, 0)

    def lock_of(self, account: str) -> int:
        return self._state.locked.get(account, 0)

    def total_balance_of(self, account: str) -> int:
        return self.balance_of(account) + self.lock_of(account)

    def accounts(self) -> List[str]:
        return sorted(set(self._state.available) | set(self._state.locked))

    # ------------------------------------------------------------------ #
    # Mutators
    # ------------------------------------------------------------------ #
    def require_available(self, account: str, amount: int) -> None:
        have = self.balance_of(account)
        if have < amount:
            raise InsufficientBalance(
                f"{account} has {have} available, needs {amount}"
            )

    def credit(self, account: str, amount: int) -> None:
        """Mint-side credit. The supply controller has already checked the cap."""
        require_account(account)
        require_amount(amount)
        _add(self._state.available, account, amount)
        self._state.total_supply += amount

    def debit_available(self, account: str, amount: int) -> None:
        """Burn-side debit: the amount leaves circulation."""
        require_amount(amount)
        self.require_available(account, amount)
        _add(self._state.available, account, -amount)
        self._state.total_supply -= amount

    def move_available(self, src: str, dst: str, amount: int) -> None:
        """Transfer-side debit: the amount lands in `dst`, supply unchanged."""
        require_account(dst)
        require_amount(amount)
        self.require_available(src, amount)
        _add(self._state.available, src, -amount)
        _add(self._state.available, dst, amount)

    def move_to_locked(self, account: str, amount: int) -> None:
        require_amount(amount)
        self.require_available(account, amount)
        _add(self._state.available, account, -amount)
        _add(self._state.locked, account, amount)
