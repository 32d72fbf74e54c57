"""
Supply controller: capped minting, burning and the allowance table.

- mint: owner only, never past the cap
- burn: caller burns from its own available balance
- burn_from: needs an explicit allowance from the balance owner; the ledger
  owner gets no shortcut here
- approve / increase / decrease: allowance bookkeeping
"""

from __future__ import annotations
from typing import Type

from ledger.errors import (
    CapExceeded,
    InsufficientAllowance,
    LedgerError,
    Unauthorized,
    require_account,
    require_amount,
)
from ledger.ownership import Ownership
from ledger.store import LedgerStore
from ledger.upgrade import LedgerState


class SupplyController:
    def __init__(self, state: LedgerState, store: LedgerStore, ownership: Ownership) -> None:
        self._state = state
        self._store = store
        self._ownership = ownership

    # ------------------------------------------------------------------ #
    # Allowances
    # ------------------------------------------------------------------ #
    def allowance(self, owner: str, spender: str) -> int:
        return self._state.allowances.get(owner, {}).get(spender, 0)

    def _set_allowance(self, owner: str, spender: str, amount: int) -> None:
        spenders = self._state.allowances.setdefault(owner, {})
        if amount:
            spenders[spender] = amount
        else:
            spenders.pop(spender, None)
        if not spenders:
            self._state.allowances.pop(owner, None)

    def require_allowance(
        self,
        owner: str,
        spender: str,
        amount: int,
        error: Type[LedgerError] = InsufficientAllowance,
    ) -> None:
        granted = self.allowance(owner, spender)
        if granted < amount:
            raise error(
                f"{spender} holds allowance {granted} from {owner}, needs {amount}"
            )

    def spend_allowance(self, owner: str, spender: str, amount: int) -> None:
        """Decrement after a successful delegated move. Caller has checked it."""
        self._set_allowance(owner, spender, self.allowance(owner, spender) - amount)

    def approve(self, caller: str, spender: str, amount: int) -> None:
        require_account(spender)
        require_amount(amount)
        self._set_allowance(caller, spender, amount)

    def increase_allowance(self, caller: str, spender: str, added: int) -> int:
        require_account(spender)
        require_amount(added)
        value = self.allowance(caller, spender) + added
        self._set_allowance(caller, spender, value)
        return value

    def decrease_allowance(self, caller: str, spender: str, subtracted: int) -> int:
        require_account(spender)
        require_amount(subtracted)
        current = self.allowance(caller, spender)
        if subtracted > current:
            raise InsufficientAllowance(
                f"cannot decrease allowance {current} by {subtracted}"
            )
        self._set_allowance(caller, spender, current - subtracted)
        return current - subtracted

    # ------------------------------------------------------------------ #
    # Supply
    # ------------------------------------------------------------------ #
    def mint(self, caller: str, to: str, amount: int) -> None:
        self._ownership.require_owner(caller, "mint")
        require_account(to)
        require_amount(amount)
        if self._store.total_supply + amount > self._store.cap:
            raise CapExceeded(
                f"minting {amount} would take supply "
                f"{self._store.total_supply} past cap {self._store.cap}"
            )
        self._store.credit(to, amount)

    def burn(self, caller: str, amount: int) -> None:
        require_account(caller)
        self._store.debit_available(caller, amount)

    def burn_from(self, caller: str, owner: str, amount: int) -> None:
        require_account(caller)
        require_account(owner)
        require_amount(amount)
        # zero allowance never authorizes, even for a zero-amount burn
        if self.allowance(owner, caller) == 0:
            raise Unauthorized(f"{caller} holds no burn allowance from {owner}")
        self.require_allowance(owner, caller, amount, error=Unauthorized)
        self._store.require_available(owner, amount)
        self.spend_allowance(owner, caller, amount)
        self._store.debit_available(owner, amount)
