"""
Ownership / authorization guard.

The ledger has exactly one owner (or none, after a renounce). Every
privileged check is a pure function of (current owner, caller).
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Optional

from ledger.errors import Unauthorized, require_account


@dataclass
class Ownership:
    owner: Optional[str] = None

    def is_owner(self, caller: Optional[str]) -> bool:
        return self.owner is not None and caller == self.owner

    def require_owner(self, caller: Optional[str], action: str = "") -> None:
        if not self.is_owner(caller):
            what = f" for {action}" if action else ""
            raise Unauthorized(f"caller {caller!r} is not the owner{what}")

    def transfer_ownership(self, caller: str, new_owner: str) -> None:
        self.require_owner(caller, "transfer_ownership")
        self.owner = require_account(new_owner)

    def renounce_ownership(self, caller: str) -> None:
        self.require_owner(caller, "renounce_ownership")
        self.owner = None

