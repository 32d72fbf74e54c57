"""
Transfer gate.

Transfers (and owner locks) are only allowed once the reference clock has
reached `enabled_from`, unless the account is whitelisted. While the marker
is unset the gate is shut for everyone outside the whitelist.
"""

from __future__ import annotations
from typing import List, Optional

from ledger.clock import Clock
from ledger.errors import InvalidGateMarker, NotWhitelisted, require_account
from ledger.ownership import Ownership
from ledger.upgrade import LedgerState


class TransferGate:
    def __init__(self, state: LedgerState, ownership: Ownership, clock: Clock) -> None:
        self._state = state
        self._ownership = ownership
        self._clock = clock

    @property
    def enabled_from(self) -> Optional[int]:
        return self._state.enabled_from

    def is_open(self) -> bool:
        marker = self._state.enabled_from
        return marker is not None and self._clock.current() >= marker

    def is_transfer_allowed(self, account: str) -> bool:
        return self.is_open() or account in self._state.whitelist

    def set_enabled_from(self, caller: str, marker: int) -> None:
        self._ownership.require_owner(caller, "set_enabled_from")
        if isinstance(marker, bool) or not isinstance(marker, int):
            raise InvalidGateMarker(f"gate marker must be an integer, got {marker!r}")
        now = self._clock.current()
        if marker <= now:
            raise InvalidGateMarker(
                f"gate marker {marker} is not after the current marker {now}"
            )
        if marker > self._state.lock_to_marker:
            raise InvalidGateMarker(
                f"gate marker {marker} lies past the lock window end "
                f"{self._state.lock_to_marker}"
            )
        self._state.enabled_from = marker

    # ------------------------------------------------------------------ #
    # Whitelist
    # ------------------------------------------------------------------ #
    def add_whitelist(self, caller: str, account: str) -> None:
        self._ownership.require_owner(caller, "add_whitelist")
        self._state.whitelist.add(require_account(account))

    def revoke_whitelist(self, caller: str, account: str) -> None:
        self._ownership.require_owner(caller, "revoke_whitelist")
        self._state.whitelist.discard(account)

    def renounce_whitelist(self, caller: str) -> None:
        if caller not in self._state.whitelist:
            raise NotWhitelisted(f"{caller} is not whitelisted")
        self._state.whitelist.discard(caller)

    def check_whitelist(self, account: str) -> bool:
        return account in self._state.whitelist

    def whitelisted(self) -> List[str]:
        return sorted(self._state.whitelist)
