"""
Capped Token Ledger Package

Provides:
- supply control (capped mint, burn, allowance-based burn_from)
- a transfer gate with a per-account whitelist
- available / locked balance accounting
- versioned state with a one-time V1 -> V2 upgrade

Hosts build a Token (or a LedgerService around one) and pass the caller
identity explicitly into every operation.
"""

from ledger.clock import BlockClock, TimestampClock
from ledger.errors import LedgerError
from ledger.token import Token
from ledger.upgrade import V1, V2, LedgerState

__all__ = [
    "BlockClock",
    "TimestampClock",
    "LedgerError",
    "LedgerState",
    "Token",
    "V1",
    "V2",
]
