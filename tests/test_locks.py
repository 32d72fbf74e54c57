import pytest

from conftest import ALICE, BOB, OWNER, open_gate
from ledger.errors import InsufficientBalance, LockExceedsBalance, TransferNotAllowed, Unauthorized


def test_lock_with_open_gate(funded, clock):
    open_gate(funded, clock)
    funded.lock(OWNER, ALICE, 750)
    assert funded.balance_of(ALICE) == 1250
    assert funded.lock_of(ALICE) == 750
    assert funded.total_balance_of(ALICE) == 2000
    assert funded.total_supply == 2000


def test_lock_before_gate_opens(funded):
    with pytest.raises(TransferNotAllowed):
        funded.lock(OWNER, ALICE, 750)
    assert funded.balance_of(ALICE) == 2000
    assert funded.lock_of(ALICE) == 0


def test_lock_for_whitelisted_account_before_gate(funded):
    funded.add_whitelist(OWNER, ALICE)
    funded.lock(OWNER, ALICE, 750)
    assert funded.balance_of(ALICE) == 1250
    assert funded.lock_of(ALICE) == 750


def test_lock_refused_after_whitelist_revoked(funded):
    funded.add_whitelist(OWNER, ALICE)
    funded.lock(OWNER, ALICE, 750)
    funded.revoke_whitelist(OWNER, ALICE)
    with pytest.raises(TransferNotAllowed):
        funded.lock(OWNER, ALICE, 100)
    assert funded.lock_of(ALICE) == 750


def test_lock_over_balance(funded):
    # checked before the gate: the amount is wrong whatever the gate says
    with pytest.raises(LockExceedsBalance):
        funded.lock(OWNER, ALICE, 2200)


def test_lock_is_owner_only(funded, clock):
    open_gate(funded, clock)
    with pytest.raises(Unauthorized):
        funded.lock(ALICE, ALICE, 750)
    assert funded.lock_of(ALICE) == 0


def test_locked_funds_cannot_be_spent(funded, clock):
    open_gate(funded, clock)
    funded.lock(OWNER, ALICE, 1500)
    with pytest.raises(InsufficientBalance):
        funded.transfer(ALICE, BOB, 501)
    with pytest.raises(InsufficientBalance):
        funded.burn(ALICE, 501)
    funded.transfer(ALICE, BOB, 500)
    assert funded.total_balance_of(ALICE) == 1500
    assert funded.locks.balances(ALICE) == {"available": 0, "locked": 1500, "total": 1500}


def test_locks_accumulate(funded, clock):
    open_gate(funded, clock)
    funded.lock(OWNER, ALICE, 100)
    funded.lock(OWNER, ALICE, 200)
    assert funded.lock_of(ALICE) == 300
    assert funded.balance_of(ALICE) == 1700
