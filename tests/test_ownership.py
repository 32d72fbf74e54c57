import pytest

from conftest import ALICE, BOB, OWNER
from ledger.errors import InvalidAccount, Unauthorized
from ledger.ownership import Ownership


def test_is_owner_is_a_pure_check():
    own = Ownership(OWNER)
    assert own.is_owner(OWNER)
    assert not own.is_owner(ALICE)
    assert not own.is_owner(None)


def test_transfer_ownership():
    own = Ownership(OWNER)
    with pytest.raises(Unauthorized):
        own.transfer_ownership(ALICE, ALICE)
    with pytest.raises(InvalidAccount):
        own.transfer_ownership(OWNER, "")
    own.transfer_ownership(OWNER, BOB)
    assert own.owner == BOB
    assert not own.is_owner(OWNER)


def test_renounced_ledger_has_no_privileged_caller(funded):
    funded.renounce_ownership(OWNER)
    assert funded.owner is None
    with pytest.raises(Unauthorized):
        funded.mint(OWNER, ALICE, 1)
    # unprivileged operations still work
    funded.burn(ALICE, 5)
    assert funded.balance_of(ALICE) == 1995
