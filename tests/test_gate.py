import pytest

from conftest import ALICE, BOB, OWNER, open_gate
from ledger.errors import (
    InsufficientAllowance,
    InsufficientBalance,
    InvalidGateMarker,
    NotWhitelisted,
    TransferNotAllowed,
    Unauthorized,
)


def test_gate_closed_while_marker_unset(funded):
    assert funded.enabled_from is None
    assert not funded.is_transfer_allowed(ALICE)
    with pytest.raises(TransferNotAllowed):
        funded.transfer(ALICE, BOB, 250)
    assert funded.balance_of(ALICE) == 2000


def test_marker_must_be_in_the_future(token, clock):
    now = clock.current()
    with pytest.raises(InvalidGateMarker):
        token.set_enabled_from(OWNER, now)
    with pytest.raises(InvalidGateMarker):
        token.set_enabled_from(OWNER, now - 1)
    assert token.enabled_from is None
    token.set_enabled_from(OWNER, now + 1)
    assert token.enabled_from == now + 1


def test_marker_must_stay_inside_lock_window(token):
    with pytest.raises(InvalidGateMarker):
        token.set_enabled_from(OWNER, 12743799)
    token.set_enabled_from(OWNER, 1000)
    assert token.enabled_from == 1000


def test_only_owner_sets_marker(token, clock):
    with pytest.raises(Unauthorized):
        token.set_enabled_from(ALICE, clock.current() + 5)


def test_gate_opens_when_clock_reaches_marker(funded, clock):
    funded.set_enabled_from(OWNER, clock.current() + 3)
    clock.advance(2)
    with pytest.raises(TransferNotAllowed):
        funded.transfer(ALICE, BOB, 250)
    clock.advance(1)
    funded.transfer(ALICE, BOB, 250)
    assert funded.balance_of(ALICE) == 1750
    assert funded.balance_of(BOB) == 250


def test_whitelist_overrides_closed_gate(funded):
    with pytest.raises(TransferNotAllowed):
        funded.transfer(ALICE, BOB, 100)
    funded.add_whitelist(OWNER, ALICE)
    funded.transfer(ALICE, BOB, 100)
    assert funded.balance_of(BOB) == 100

    funded.revoke_whitelist(OWNER, ALICE)
    with pytest.raises(TransferNotAllowed):
        funded.transfer(ALICE, BOB, 100)


def test_renounced_whitelist_closes_again(funded):
    funded.add_whitelist(OWNER, ALICE)
    funded.transfer(ALICE, BOB, 100)
    funded.renounce_whitelist(ALICE)
    assert not funded.check_whitelist(ALICE)
    with pytest.raises(TransferNotAllowed):
        funded.transfer(ALICE, BOB, 100)


def test_renounce_requires_membership(token):
    with pytest.raises(NotWhitelisted):
        token.renounce_whitelist(ALICE)


def test_add_whitelist_is_idempotent(token):
    assert token.check_whitelist(ALICE) is False
    token.add_whitelist(OWNER, ALICE)
    once = token.check_whitelist(ALICE)
    token.add_whitelist(OWNER, ALICE)
    assert token.check_whitelist(ALICE) == once is True
    assert token.gate.whitelisted() == [ALICE]


def test_whitelist_changes_are_owner_only(token):
    with pytest.raises(Unauthorized):
        token.add_whitelist(ALICE, ALICE)
    token.add_whitelist(OWNER, BOB)
    with pytest.raises(Unauthorized):
        token.revoke_whitelist(ALICE, BOB)
    assert token.check_whitelist(BOB)


def test_transfer_from_is_gated_on_the_balance_owner(funded, clock):
    funded.approve(ALICE, BOB, 500)
    with pytest.raises(TransferNotAllowed):
        funded.transfer_from(BOB, ALICE, BOB, 100)
    funded.add_whitelist(OWNER, ALICE)
    funded.transfer_from(BOB, ALICE, OWNER, 100)
    assert funded.balance_of(OWNER) == 100
    assert funded.allowance(ALICE, BOB) == 400


def test_transfer_from_needs_allowance_and_balance(funded, clock):
    open_gate(funded, clock)
    with pytest.raises(InsufficientAllowance):
        funded.transfer_from(BOB, ALICE, BOB, 1)
    funded.approve(ALICE, BOB, 5000)
    with pytest.raises(InsufficientBalance):
        funded.transfer_from(BOB, ALICE, BOB, 2001)
    assert funded.allowance(ALICE, BOB) == 5000
    funded.transfer_from(BOB, ALICE, BOB, 2000)
    assert funded.allowance(ALICE, BOB) == 3000
    assert funded.balance_of(BOB) == 2000
