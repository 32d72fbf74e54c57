import json

import pytest

from conftest import ALICE, BOB, OWNER
from ledger.errors import TransferNotAllowed, UpgradeError, Unauthorized
from ledger.integrity import check_invariants
from ledger.upgrade import (
    V1,
    V2,
    V1_FIELDS,
    migrate_v1_to_v2,
    new_state,
    state_from_dict,
    state_to_dict,
    v1_view,
)


def test_v1_state_keeps_upgraded_values(token_v1, clock):
    token_v1.mint(OWNER, ALICE, 1000)
    token_v1.approve(ALICE, BOB, 40)
    before = v1_view(token_v1.state)

    token_v1.upgrade(OWNER)

    assert token_v1.version == V2
    assert v1_view(token_v1.state) == before
    assert token_v1.balance_of(ALICE) == 1000
    assert token_v1.total_supply == 1000
    assert token_v1.allowance(ALICE, BOB) == 40

    # new entry points work on the pre-existing balances
    token_v1.add_whitelist(OWNER, ALICE)
    token_v1.lock(OWNER, ALICE, 750)
    assert token_v1.balance_of(ALICE) == 250
    assert token_v1.lock_of(ALICE) == 750
    assert token_v1.total_balance_of(ALICE) == 1000
    assert check_invariants(token_v1.state) == []


def test_v1_transfers_are_ungated(token_v1):
    token_v1.mint(OWNER, ALICE, 1000)
    token_v1.transfer(ALICE, BOB, 250)
    assert token_v1.balance_of(BOB) == 250


def test_upgrade_turns_on_the_gate(token_v1):
    token_v1.mint(OWNER, ALICE, 1000)
    token_v1.upgrade(OWNER)
    with pytest.raises(TransferNotAllowed):
        token_v1.transfer(ALICE, BOB, 250)


@pytest.mark.parametrize(
    "call",
    [
        lambda t: t.lock(OWNER, ALICE, 1),
        lambda t: t.set_enabled_from(OWNER, 500),
        lambda t: t.add_whitelist(OWNER, ALICE),
        lambda t: t.revoke_whitelist(OWNER, ALICE),
        lambda t: t.renounce_whitelist(ALICE),
    ],
)
def test_v2_entry_points_refused_on_v1(token_v1, call):
    with pytest.raises(UpgradeError):
        call(token_v1)


def test_upgrade_runs_once(token):
    with pytest.raises(UpgradeError):
        token.upgrade(OWNER)


def test_upgrade_is_owner_only(token_v1):
    with pytest.raises(Unauthorized):
        token_v1.upgrade(ALICE)
    assert token_v1.version == V1


def test_migrate_refuses_v2_state():
    state = new_state(OWNER, 100, 0, 10, version=V2)
    with pytest.raises(UpgradeError):
        migrate_v1_to_v2(state)


def test_v1_document_has_no_v2_keys(token_v1):
    token_v1.mint(OWNER, ALICE, 5)
    doc = state_to_dict(token_v1.state)
    assert set(doc) == {"version", *V1_FIELDS}


def test_stored_v1_document_loads_and_migrates(token_v1):
    token_v1.mint(OWNER, ALICE, 1000)
    raw = json.dumps(state_to_dict(token_v1.state))

    doc = json.loads(raw)
    del doc["version"]  # written before versions were recorded
    loaded = state_from_dict(doc)
    assert loaded.version == V1
    before = v1_view(loaded)

    migrate_v1_to_v2(loaded)
    assert v1_view(loaded) == before
    assert loaded.locked == {} and loaded.whitelist == set() and loaded.enabled_from is None

    again = state_from_dict(json.loads(json.dumps(state_to_dict(loaded))))
    assert again.version == V2
    assert v1_view(again) == before


def test_v2_document_round_trips_gate_fields():
    state = new_state(OWNER, 100, 0, 10)
    state.available = {ALICE: 60}
    state.locked = {ALICE: 40}
    state.total_supply = 100
    state.enabled_from = 7
    state.whitelist = {BOB, ALICE}
    loaded = state_from_dict(state_to_dict(state))
    assert loaded.locked == {ALICE: 40}
    assert loaded.enabled_from == 7
    assert loaded.whitelist == {ALICE, BOB}


def test_new_state_validates_window_and_cap():
    with pytest.raises(ValueError):
        new_state(OWNER, 100, 20, 10)
    with pytest.raises(ValueError):
        new_state(OWNER, -1, 0, 10)
    with pytest.raises(ValueError):
        new_state(OWNER, 100, 0, 10, version=3)
