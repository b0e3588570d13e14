from __future__ import annotations

from datetime import timedelta

import pytest

from conftest import T0, mutate
from garden_tap.constants import Currency, PurchaseStatus, ReferralStatus
from garden_tap.errors import NotFoundError, NotOwnedError
from garden_tap.services import exchange, helpers, social, storage


def set_balance(currency: Currency, amount: float):
    return lambda state: state.currencies.__setitem__(currency, amount)


def set_level(level: int):
    return lambda state: setattr(state, "level", level)


# helpers


async def test_hire_helper(engine):
    assert await helpers.buy_helper(engine, "p1", 1) is PurchaseStatus.INSUFFICIENT

    await mutate(engine, "p1", set_balance(Currency.WOOD, 100))
    assert await helpers.buy_helper(engine, "p1", 1) is PurchaseStatus.OK
    assert await helpers.buy_helper(engine, "p1", 1) is PurchaseStatus.ALREADY_OWNED
    assert await helpers.buy_helper(engine, "p1", 2) is PurchaseStatus.LEVEL_TOO_LOW

    state = await engine.get_player_state("p1")
    assert state.helpers == {1: 1}
    assert state.currencies[Currency.WOOD] == 0


async def test_upgrade_helper_until_max_level(engine):
    assert await helpers.upgrade_helper(engine, "p1", 1) is PurchaseStatus.NOT_OWNED
    await mutate(engine, "p1", lambda s: s.helpers.__setitem__(1, 1))

    assert await helpers.upgrade_helper(engine, "p1", 1) is PurchaseStatus.INSUFFICIENT
    await mutate(engine, "p1", set_balance(Currency.WOOD, 600))
    assert await helpers.upgrade_helper(engine, "p1", 1) is PurchaseStatus.OK
    assert await helpers.upgrade_helper(engine, "p1", 1) is PurchaseStatus.OK
    assert await helpers.upgrade_helper(engine, "p1", 1) is PurchaseStatus.MAX_LEVEL

    state = await engine.get_player_state("p1")
    assert state.helpers[1] == 3
    assert state.currencies[Currency.WOOD] == 0


async def test_unknown_helper(engine):
    with pytest.raises(NotFoundError):
        await helpers.buy_helper(engine, "p1", 42)


async def test_list_helpers_reports_progress(engine):
    await mutate(engine, "p1", lambda s: s.helpers.__setitem__(1, 1))

    infos = await helpers.list_helpers(engine, "p1", 1)

    assert [info.name for info in infos] == ["Woodcutter", "Forester"]
    hired, locked = infos
    assert hired.level == 1
    assert hired.income_per_hour == 60
    assert hired.next_upgrade_cost == 200
    assert hired.can_buy is False
    assert locked.level == 0
    assert locked.income_per_hour == 0
    assert locked.to_dict()["canBuy"] is False


async def test_helper_income_needs_a_minute(engine):
    await mutate(engine, "p1", lambda s: s.helpers.__setitem__(1, 1))

    early = await engine.collect_helper_income("p1", now=T0 + timedelta(seconds=30))
    assert early.collected is False
    state = await engine.get_player_state("p1")
    assert state.last_helper_collect_time == T0
    assert Currency.WOOD not in state.currencies


async def test_helper_income_is_prorated_and_clamped(engine):
    await mutate(engine, "p1", lambda s: s.helpers.__setitem__(1, 1))

    half_hour = await engine.collect_helper_income("p1", now=T0 + timedelta(seconds=1800))
    assert half_hour.collected is True
    assert half_hour.earned == {"wood": 30.0}
    assert half_hour.credited == {"wood": 30.0}

    hour_later = await engine.collect_helper_income("p1", now=T0 + timedelta(seconds=5400))
    assert hour_later.earned == {"wood": 60.0}
    assert hour_later.credited == {"wood": 20.0}

    state = await engine.get_player_state("p1")
    assert state.currencies[Currency.WOOD] == 50
    assert state.last_helper_collect_time == T0 + timedelta(seconds=5400)


async def test_hired_helper_earns_only_from_hiring(engine, clock):
    await mutate(engine, "p1", set_balance(Currency.WOOD, 100))
    clock.advance(10 * 24 * 3600)

    assert await helpers.buy_helper(engine, "p1", 1) is PurchaseStatus.OK
    assert (await engine.get_player_state("p1")).last_helper_collect_time == clock()

    income = await engine.collect_helper_income("p1", now=clock() + timedelta(seconds=61))

    assert income.collected is True
    assert income.elapsed_seconds == 61
    assert income.earned == {"wood": 1.02}


async def test_upgrade_settles_income_at_previous_level(engine, clock):
    await mutate(engine, "p1", lambda s: s.helpers.__setitem__(1, 1))
    await mutate(engine, "p1", set_balance(Currency.WOOD, 200))
    clock.advance(1800)

    assert await helpers.upgrade_helper(engine, "p1", 1) is PurchaseStatus.OK
    state = await engine.get_player_state("p1")
    assert state.currencies[Currency.WOOD] == 30
    assert state.last_helper_collect_time == clock()

    income = await engine.collect_helper_income("p1", now=clock() + timedelta(seconds=1800))

    assert income.earned == {"wood": 60.0}
    assert income.credited == {"wood": 20.0}


# storage


async def test_storage_info(engine):
    await mutate(engine, "p1", set_balance(Currency.WOOD, 25))

    info = await storage.get_storage(engine, "p1", 1)

    assert info.to_dict() == {
        "locationId": 1,
        "currency": "wood",
        "level": 1,
        "capacity": 50,
        "amount": 25,
        "percentage": 50,
        "nextCapacity": 100,
        "upgradeCost": 150,
        "upgradeCurrency": "coins",
    }
    with pytest.raises(NotOwnedError):
        await storage.get_storage(engine, "p1", 2)


async def test_upgrade_storage_raises_capacity(engine):
    assert await storage.upgrade_storage(engine, "p1", 1) is PurchaseStatus.INSUFFICIENT

    await mutate(engine, "p1", set_balance(Currency.COINS, 150))
    assert await storage.upgrade_storage(engine, "p1", 1) is PurchaseStatus.OK
    assert await storage.upgrade_storage(engine, "p1", 1) is PurchaseStatus.MAX_LEVEL

    state = await engine.get_player_state("p1")
    assert state.storage[Currency.WOOD].level == 2
    assert state.storage[Currency.WOOD].capacity == 100
    assert state.currencies[Currency.COINS] == 0


# exchange


async def test_buy_energy(engine):
    assert await exchange.buy_energy(engine, "p1", 1) is PurchaseStatus.ALREADY_FULL

    await mutate(engine, "p1", lambda s: setattr(s, "energy", 95))
    assert await exchange.buy_energy(engine, "p1", 1) is PurchaseStatus.INSUFFICIENT

    await mutate(engine, "p1", set_balance(Currency.COINS, 60))
    assert await exchange.buy_energy(engine, "p1", 1) is PurchaseStatus.OK

    state = await engine.get_player_state("p1")
    assert state.energy == 100
    assert state.currencies[Currency.COINS] == 10

    with pytest.raises(NotFoundError):
        await exchange.buy_energy(engine, "p1", 9)


async def test_unlock_location(engine):
    assert await exchange.unlock_location(engine, "p1", 1) is PurchaseStatus.ALREADY_OWNED
    assert await exchange.unlock_location(engine, "p1", 2) is PurchaseStatus.LEVEL_TOO_LOW

    await mutate(engine, "p1", set_level(2))
    assert await exchange.unlock_location(engine, "p1", 2) is PurchaseStatus.INSUFFICIENT

    await mutate(engine, "p1", set_balance(Currency.COINS, 100))
    assert await exchange.unlock_location(engine, "p1", 2) is PurchaseStatus.OK
    assert await exchange.unlock_location(engine, "p1", 2) is PurchaseStatus.ALREADY_OWNED

    state = await engine.get_player_state("p1")
    assert state.unlocked_locations == {1, 2}
    assert state.storage[Currency.DIRT].capacity == 500
    assert state.currencies[Currency.COINS] == 0


# referrals and leaderboard


async def test_referral_code_is_stable(engine):
    code = await social.get_referral_code(engine, "p1")

    assert len(code) == 8
    assert code == code.upper()
    assert await social.get_referral_code(engine, "p1") == code
    assert (await social.referral_stats(engine, "p1"))["code"] == code


async def test_apply_referral_code_rewards_referrer(engine):
    code = await social.get_referral_code(engine, "p1")

    assert await social.apply_referral_code(engine, "p2", code.lower()) is ReferralStatus.OK

    referrer = await engine.get_player_state("p1")
    assert referrer.currencies[Currency.COINS] == 500
    assert referrer.referrals_count == 1
    assert referrer.referral_coins == 500
    assert (await engine.get_player_state("p2")).referred_by == "p1"
    stats = await social.referral_stats(engine, "p1")
    assert stats["referralsCount"] == 1
    assert stats["referralCoins"] == 500


async def test_referral_code_rules(engine):
    code = await social.get_referral_code(engine, "p1")
    await social.apply_referral_code(engine, "p2", code)

    assert await social.apply_referral_code(engine, "p1", code) is ReferralStatus.OWN_CODE
    assert await social.apply_referral_code(engine, "p2", code) is ReferralStatus.ALREADY_APPLIED
    assert await social.apply_referral_code(engine, "p3", "NOPE1234") is ReferralStatus.NOT_FOUND
    assert await social.apply_referral_code(engine, "p3", "") is ReferralStatus.NOT_FOUND
    assert (await engine.get_player_state("p1")).referrals_count == 1


async def test_leaderboard_orders_by_level_then_experience(engine):
    await mutate(engine, "low", set_level(1))
    await mutate(engine, "mid", lambda s: (setattr(s, "level", 3), setattr(s, "experience", 120)))
    await mutate(engine, "top", lambda s: (setattr(s, "level", 3), setattr(s, "experience", 200)))

    entries = await social.leaderboard(engine, limit=2)

    assert [(entry.player_id, entry.level) for entry in entries] == [("top", 3), ("mid", 3)]
