from __future__ import annotations

from datetime import timedelta

import pytest

from conftest import T0, mutate
from garden_tap.constants import Currency
from garden_tap.database.base import make_engine
from garden_tap.errors import NoToolEquippedError, NotFoundError, NotOwnedError, TransientError
from garden_tap.repository.sql import SqlStorage
from garden_tap.services import wallet
from garden_tap.services.progression import ProgressionEngine


async def test_new_player_starts_with_starter_content(engine):
    state = await engine.get_player_state("p1")

    assert state.level == 1
    assert state.experience == 0
    assert state.energy == state.max_energy == 100
    assert state.unlocked_tools == {1}
    assert state.equipped_tools == {1: 1}
    assert state.unlocked_locations == {1}
    assert state.storage[Currency.WOOD].capacity == 50
    assert state.last_energy_refill_time == T0


async def test_tap_credits_resources_and_spends_energy(engine, clock):
    clock.advance(30)

    result = await engine.tap("p1", 1)

    assert result.resources_gained == 1
    assert result.main_currency_gained == 0.5
    assert result.experience_gained == 1
    assert result.level_up is False
    assert result.energy_left == 99
    state = await engine.get_player_state("p1")
    assert state.currencies[Currency.WOOD] == 1
    assert state.currencies[Currency.COINS] == 0.5
    assert state.experience == 1
    assert state.last_energy_refill_time == T0 + timedelta(seconds=30)


async def test_tap_with_zero_energy_is_a_no_op(engine):
    await mutate(engine, "p1", lambda s: setattr(s, "energy", 0))

    result = await engine.tap("p1", 1)

    assert result.to_dict() == {
        "resourcesGained": 0,
        "mainCurrencyGained": 0,
        "experienceGained": 0,
        "levelUp": False,
        "level": 1,
        "rewards": [],
        "energyLeft": 0,
    }
    state = await engine.get_player_state("p1")
    assert state.currencies == {}
    assert state.experience == 0


async def test_energy_stays_within_bounds(engine, clock):
    for _ in range(115):
        result = await engine.tap("p1", 1)
        state = await engine.get_player_state("p1")
        assert 0 <= state.energy <= state.max_energy
        assert result.energy_left == state.energy
    clock.advance(600)
    refill = await engine.energy_refill("p1")
    assert 0 < refill.energy <= refill.max_energy


async def test_cascading_level_up_applies_rewards_in_order(engine):
    def equip_harvester(state):
        state.unlocked_tools.add(3)
        state.equipped_tools[1] = 3

    await mutate(engine, "p1", equip_harvester)

    result = await engine.tap("p1", 1)

    assert result.level_up is True
    assert result.level == 3
    assert result.experience_gained == 250
    assert [(reward.level, reward.kind) for reward in result.rewards] == [
        (2, "main_currency"),
        (2, "energy"),
        (3, "location_currency"),
        (3, "unlock_tool"),
    ]
    state = await engine.get_player_state("p1")
    assert state.level == 3
    assert state.experience == 250
    assert state.experience < engine.catalog.get_level(4).required_exp
    assert state.max_energy == 110
    assert state.currencies[Currency.COINS] == 205
    assert state.currencies[Currency.DIRT] == 30
    assert state.unlocked_tools == {1, 2, 3}


async def test_tap_credit_is_clamped_by_storage(engine):
    def equip_harvester(state):
        state.unlocked_tools.add(3)
        state.equipped_tools[1] = 3

    await mutate(engine, "p1", equip_harvester)

    result = await engine.tap("p1", 1)

    assert result.resources_gained == 50
    state = await engine.get_player_state("p1")
    assert state.currencies[Currency.WOOD] == 50


async def test_levels_stop_at_last_defined_level(engine):
    state = await engine.get_player_state("p1")
    state.experience = 10_000

    resolution = engine.resolve_levels(state)

    assert state.level == engine.catalog.max_level == 4
    assert resolution.level == 4
    assert state.experience == 10_000
    assert engine.resolve_levels(state).level_up is False


async def test_unlock_rewards_are_idempotent(engine):
    state = await engine.get_player_state("p1")
    state.unlocked_tools.add(2)
    state.experience = 150

    engine.resolve_levels(state)
    engine.unlock_location(state, engine.catalog.get_location(1))
    engine.unlock_location(state, engine.catalog.get_location(1))

    assert state.unlocked_tools == {1, 2}
    assert state.unlocked_locations == {1}


async def test_tap_requires_known_and_unlocked_location(engine):
    with pytest.raises(NotFoundError):
        await engine.tap("p1", 99)
    with pytest.raises(NotOwnedError):
        await engine.tap("p1", 2)


async def test_tap_without_equipped_tool_fails(engine):
    def unlock_garden(state):
        state.unlocked_locations.add(2)
        state.equipped_tools.pop(2, None)

    await mutate(engine, "p1", unlock_garden)

    with pytest.raises(NoToolEquippedError):
        await engine.tap("p1", 2)


async def test_refill_keeps_sub_minute_remainder(engine):
    def drain(state):
        state.energy = 50
        state.last_energy_refill_time = T0

    await mutate(engine, "p1", drain)

    first = await engine.energy_refill("p1", now=T0 + timedelta(seconds=90))
    assert first.energy == 51
    assert first.last_energy_refill_time == T0 + timedelta(seconds=60)

    second = await engine.energy_refill("p1", now=T0 + timedelta(seconds=125))
    assert second.energy == 52
    assert second.last_energy_refill_time == T0 + timedelta(seconds=120)

    same_window = await engine.energy_refill("p1", now=T0 + timedelta(seconds=150))
    assert same_window.energy == 52
    assert same_window.last_energy_refill_time == T0 + timedelta(seconds=120)


async def test_refill_is_capped_and_leaves_full_baseline_alone(engine):
    await mutate(engine, "p1", lambda s: setattr(s, "energy", 98))

    capped = await engine.energy_refill("p1", now=T0 + timedelta(hours=1))
    assert capped.energy == 100

    full = await engine.energy_refill("p1", now=T0 + timedelta(hours=2))
    assert full.energy == 100
    assert full.last_energy_refill_time == capped.last_energy_refill_time


async def test_buy_tool_with_insufficient_funds(engine):
    await mutate(engine, "p1", lambda s: s.currencies.__setitem__(Currency.WOOD, 299))

    assert await engine.buy_or_upgrade_tool("p1", 2) is False

    state = await engine.get_player_state("p1")
    assert state.currencies[Currency.WOOD] == 299
    assert state.unlocked_tools == {1}


async def test_buy_tool_debits_and_does_not_equip(engine):
    await mutate(engine, "p1", lambda s: s.currencies.__setitem__(Currency.WOOD, 300))

    assert await engine.buy_or_upgrade_tool("p1", 2) is True
    assert await engine.buy_or_upgrade_tool("p1", 2) is False

    state = await engine.get_player_state("p1")
    assert state.currencies[Currency.WOOD] == 0
    assert state.unlocked_tools == {1, 2}
    assert state.equipped_tools == {1: 1}


async def test_buy_tool_below_unlock_level(engine):
    await mutate(engine, "p1", lambda s: s.currencies.__setitem__(Currency.WOOD, 5000))

    assert await engine.buy_or_upgrade_tool("p1", 3) is False
    assert (await engine.get_player_state("p1")).currencies[Currency.WOOD] == 5000


async def test_free_tools_count_as_owned(engine):
    assert await engine.buy_or_upgrade_tool("p1", 1) is False


async def test_equip_requires_ownership(engine):
    with pytest.raises(NotOwnedError):
        await engine.equip_tool("p1", 1, 2)
    assert (await engine.get_player_state("p1")).equipped_tools == {1: 1}

    with pytest.raises(NotFoundError):
        await engine.equip_tool("p1", 2, 1)


async def test_equip_owned_tool(engine):
    await mutate(engine, "p1", lambda s: s.unlocked_tools.add(2))

    await engine.equip_tool("p1", 1, 2)
    await engine.equip_tool("p1", 2, 4)

    state = await engine.get_player_state("p1")
    assert state.equipped_tools == {1: 2, 2: 4}
    assert {2, 4} <= state.unlocked_tools


async def test_failed_unit_of_work_leaves_player_untouched(engine):
    await engine.get_player_state("p1")

    with pytest.raises(RuntimeError):
        async with engine.player_session("p1") as (_, state):
            state.energy = 0
            wallet.credit(state, Currency.COINS, 100)
            state.unlocked_tools.add(2)
            raise RuntimeError("boom")

    state = await engine.get_player_state("p1")
    assert state.energy == 100
    assert Currency.COINS not in state.currencies
    assert state.unlocked_tools == {1}


async def test_progress_snapshot_uses_camel_case(engine):
    snapshot = engine.describe(await engine.get_player_state("p1"))

    assert snapshot["maxEnergy"] == 100
    assert snapshot["unlockedTools"] == [1, 4]
    assert snapshot["unlockedLocations"] == [1]
    assert snapshot["equippedTools"] == {"1": 1}
    assert snapshot["nextLevelExp"] == 50


async def test_storage_failures_surface_as_transient(catalog, settings):
    db_engine, session_maker = make_engine("sqlite+aiosqlite://")
    engine = ProgressionEngine(SqlStorage(session_maker), catalog, settings)
    try:
        with pytest.raises(TransientError):
            await engine.get_player_state("p1")
    finally:
        await db_engine.dispose()
