"""
Ledger error kinds.

Every rejected operation raises one of these. Each carries a stable `code`
so hosts (API, scripts) can report the exact reason without string matching.
A raised error always means the ledger state was left untouched.
"""

from __future__ import annotations


class LedgerError(Exception):
    code = "LedgerError"

    def __init__(self, message: str = "") -> None:
        super().__init__(message or self.code)
        self.message = message or self.code

    def to_dict(self) -> dict:
        return {"error": self.code, "detail": self.message}


class Unauthorized(LedgerError):
    code = "Unauthorized"


class InsufficientBalance(LedgerError):
    code = "InsufficientBalance"


class InsufficientAllowance(LedgerError):
    code = "InsufficientAllowance"


class CapExceeded(LedgerError):
    code = "CapExceeded"


class LockExceedsBalance(LedgerError):
    code = "LockExceedsBalance"


class TransferNotAllowed(LedgerError):
    code = "TransferNotAllowed"


class InvalidGateMarker(LedgerError):
    code = "InvalidGateMarker"


class NotWhitelisted(LedgerError):
    code = "NotWhitelisted"


class InvalidAmount(LedgerError):
    code = "InvalidAmount"


class InvalidAccount(LedgerError):
    code = "InvalidAccount"


class UpgradeError(LedgerError):
    code = "UpgradeError"


class InvariantViolation(LedgerError):
    """Raised only by the integrity checker. Reaching it means a bug."""

    code = "InvariantViolation"


def require_amount(amount: object) -> int:
    # bool is an int subclass; True/False are never valid token amounts
    if isinstance(amount, bool) or not isinstance(amount, int):
        raise InvalidAmount(f"amount must be an integer, got {amount!r}")
    if amount < 0:
        raise InvalidAmount(f"amount must be non-negative, got {amount}")
    return amount


def require_account(account: object) -> str:
    if not isinstance(account, str) or not account.strip():
        raise InvalidAccount(f"invalid account id: {account!r}")
    return account
