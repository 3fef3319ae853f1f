"""Tests for persistent game state."""
from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from gamemaster.economy import find_recruit
from gamemaster.state import (
    ArmyFull,
    CooldownActive,
    GameState,
    InsufficientFunds,
    MissingItem,
    NotEnoughItems,
    PartyFull,
    UnknownUnit,
)


NOW = datetime(2025, 3, 1, 12, 0, tzinfo=timezone.utc)


def test_profile_is_created_with_starting_values(tmp_path):
    state = GameState(tmp_path / "game.db", starting_balance=750, max_action_points=8)
    profile = state.get_profile(1, now=NOW)

    assert profile.balance == 750
    assert profile.action_points == 8
    assert profile.max_action_points == 8
    assert profile.fame == 0


def test_adjust_balance_refuses_overdraft(state):
    assert state.adjust_balance(1, 100) == 600
    with pytest.raises(InsufficientFunds):
        state.adjust_balance(1, -1000)
    assert state.get_profile(1).balance == 600


def test_action_points_regenerate_over_time(tmp_path):
    state = GameState(
        tmp_path / "game.db",
        max_action_points=3,
        action_point_regen=timedelta(minutes=30),
    )
    state.get_profile(1, now=NOW)
    assert state.spend_action_points(1, 3, now=NOW)
    assert not state.spend_action_points(1, 1, now=NOW)

    profile = state.get_profile(1, now=NOW + timedelta(minutes=65))
    assert profile.action_points == 2
    assert profile.next_action_point(state.action_point_regen) == NOW + timedelta(minutes=90)

    profile = state.get_profile(1, now=NOW + timedelta(hours=5))
    assert profile.action_points == 3
    assert profile.next_action_point(state.action_point_regen) is None


def test_record_work_pays_and_starts_cooldown(state):
    balance = state.record_work(
        1, "work:fishing", 40, {"fish": 4}, timedelta(minutes=30), now=NOW
    )

    assert balance == 540
    assert state.inventory(1) == {"fish": 4}
    assert state.cooldown_ready_at(1, "work:fishing") == NOW + timedelta(minutes=30)

    with pytest.raises(CooldownActive) as excinfo:
        state.record_work(1, "work:fishing", 40, {}, timedelta(minutes=30), now=NOW + timedelta(minutes=5))
    assert excinfo.value.ready_at == NOW + timedelta(minutes=30)
    assert state.get_profile(1).balance == 540

    later = NOW + timedelta(minutes=31)
    assert state.record_work(1, "work:fishing", 10, {"fish": 1}, timedelta(minutes=30), now=later) == 550
    assert state.inventory(1) == {"fish": 5}


def test_open_container_consumes_item(state):
    with pytest.raises(MissingItem):
        state.open_container(1, "large_geode", 100, {"gem": 1})

    state.add_items(1, {"large_geode": 1})
    balance = state.open_container(1, "large_geode", 100, {"gem": 2})

    assert balance == 600
    assert state.inventory(1) == {"gem": 2}


def test_hire_unit_charges_and_grants_fame(state):
    recruit = find_recruit("militia")
    unit = state.hire_unit(1, recruit, 250, max_army=2, fame_gain=5)

    assert unit.name == recruit.name
    assert not unit.in_party
    profile = state.get_profile(1)
    assert profile.balance == 250
    assert profile.fame == 5
    assert [u.id for u in state.units(1)] == [unit.id]


def test_hire_unit_limits(state):
    recruit = find_recruit("militia")
    with pytest.raises(InsufficientFunds):
        state.hire_unit(1, recruit, 10_000, max_army=5)
    assert state.units(1) == []

    state.hire_unit(1, recruit, 100, max_army=1)
    with pytest.raises(ArmyFull):
        state.hire_unit(1, recruit, 100, max_army=1)
    assert state.get_profile(1).balance == 400


def test_toggle_party_membership(state):
    recruit = find_recruit("archer")
    first = state.hire_unit(1, recruit, 10, max_army=5)
    second = state.hire_unit(1, recruit, 10, max_army=5)

    assert state.toggle_party(1, first.id, max_party=1) is True
    assert [unit.id for unit in state.party(1)] == [first.id]
    with pytest.raises(PartyFull):
        state.toggle_party(1, second.id, max_party=1)
    assert state.toggle_party(1, first.id, max_party=1) is False
    assert state.party(1) == []


def test_toggle_party_rejects_other_players_units(state):
    unit = state.hire_unit(1, find_recruit("archer"), 10, max_army=5)
    with pytest.raises(UnknownUnit):
        state.toggle_party(2, unit.id, max_party=5)


def test_bot_settings_roundtrip(state):
    assert state.get_setting("command_prefix") is None
    assert state.get_setting("command_prefix", "$") == "$"
    state.set_setting("command_prefix", "!")
    assert state.get_setting("command_prefix") == "!"


def test_sell_items_defaults_to_everything_held(state):
    state.add_items(1, {"fish": 7, "ore": 2})

    assert state.sell_items(1, "fish", 10, 3) == (3, 530)
    assert state.sell_items(1, "fish", 10) == (4, 570)
    assert "fish" not in state.inventory(1)
    assert state.inventory(1) == {"ore": 2}


def test_sell_items_rejects_missing_and_excess(state):
    with pytest.raises(MissingItem):
        state.sell_items(1, "gem", 250)

    state.add_items(1, {"ore": 2})
    with pytest.raises(NotEnoughItems) as excinfo:
        state.sell_items(1, "ore", 50, 5)
    assert excinfo.value.held == 2
    assert state.inventory(1) == {"ore": 2}
    assert state.get_profile(1).balance == 500


def test_transfer_items_moves_stock(state):
    state.add_items(1, {"gem": 3})

    state.transfer_items(1, 2, "gem", 2)

    assert state.inventory(1) == {"gem": 1}
    assert state.inventory(2) == {"gem": 2}
    with pytest.raises(NotEnoughItems):
        state.transfer_items(1, 2, "gem", 5)
    assert state.inventory(2) == {"gem": 2}


def test_transfer_items_validates_arguments(state):
    state.add_items(1, {"gem": 3})
    with pytest.raises(ValueError):
        state.transfer_items(1, 1, "gem", 1)
    with pytest.raises(ValueError):
        state.transfer_items(1, 2, "gem", 0)
