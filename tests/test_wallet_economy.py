from __future__ import annotations

from datetime import timedelta

import pytest

from conftest import T0
from garden_tap.constants import Currency
from garden_tap.middlewares.rate_limit import RateLimiter
from garden_tap.repository.base import PlayerState, StorageSlot
from garden_tap.services import wallet
from garden_tap.services.economy import clamp_credit, fill_percentage, helper_income, refill_energy
from garden_tap.utils.pagination import page_selection, slice_page


def make_state(**currencies) -> PlayerState:
    state = PlayerState(
        player_id="p1",
        level=1,
        experience=0,
        energy=100,
        max_energy=100,
        last_energy_refill_time=T0,
        last_helper_collect_time=T0,
    )
    state.storage[Currency.WOOD] = StorageSlot(location_id=1, level=1, capacity=50)
    for code, amount in currencies.items():
        state.currencies[Currency(code)] = amount
    return state


def test_credit_is_clamped_to_capacity():
    state = make_state(wood=48)

    assert wallet.credit(state, Currency.WOOD, 10) == 2
    assert state.currencies[Currency.WOOD] == 50
    assert wallet.credit(state, Currency.WOOD, 5) == 0
    assert state.currencies[Currency.WOOD] == 50


def test_credit_without_storage_is_unbounded():
    state = make_state()

    assert wallet.credit(state, Currency.COINS, 10_000) == 10_000
    assert wallet.balance(state, Currency.COINS) == 10_000
    assert wallet.capacity(state, Currency.COINS) is None


def test_debit_never_goes_negative():
    state = make_state(coins=10)

    assert wallet.debit(state, Currency.COINS, 11) is False
    assert state.currencies[Currency.COINS] == 10
    assert wallet.debit(state, Currency.COINS, 10) is True
    assert state.currencies[Currency.COINS] == 0
    assert wallet.debit(state, Currency.DIRT, 0) is True


@pytest.mark.parametrize(
    "amount, balance, capacity, expected",
    [
        (10, 48, 50, 2),
        (10, 0, None, 10),
        (-5, 0, 50, 0),
        (10, 60, 50, 0),
    ],
)
def test_clamp_credit(amount, balance, capacity, expected):
    assert clamp_credit(amount, balance, capacity) == expected


def test_refill_energy_advances_by_whole_periods():
    energy, baseline = refill_energy(50, 100, T0, T0 + timedelta(seconds=90))
    assert (energy, baseline) == (51, T0 + timedelta(seconds=60))

    energy, baseline = refill_energy(energy, 100, baseline, T0 + timedelta(seconds=125))
    assert (energy, baseline) == (52, T0 + timedelta(seconds=120))


def test_refill_energy_edge_cases():
    assert refill_energy(100, 100, T0, T0 + timedelta(hours=1)) == (100, T0)
    assert refill_energy(10, 100, T0, T0 + timedelta(seconds=59)) == (10, T0)
    assert refill_energy(10, 100, T0, T0 - timedelta(seconds=600)) == (10, T0)
    assert refill_energy(95, 100, T0, T0 + timedelta(minutes=30)) == (100, T0 + timedelta(minutes=30))


def test_helper_income_and_fill_percentage():
    assert helper_income(60, 1800) == 30
    assert helper_income(100, 100) == 2.78
    assert helper_income(60, 0) == 0
    assert fill_percentage(25, 50) == 50
    assert fill_percentage(80, 50) == 100
    assert fill_percentage(1, 0) == 0


def test_slice_page():
    items = list(range(12))

    assert slice_page(items, 0) == ([0, 1, 2, 3, 4], False, True)
    assert slice_page(items, 2) == ([10, 11], True, False)
    assert slice_page(items, 7) == ([10, 11], True, False)
    assert slice_page([], 3) == ([], False, False)
    assert page_selection(3) == {"1", "2", "3"}


def test_rate_limiter_window():
    limiter = RateLimiter()

    assert all(limiter.allow(1, 3, now=10.0 + i * 0.1) for i in range(3))
    assert limiter.allow(1, 3, now=10.5) is False
    assert limiter.allow(2, 3, now=10.5) is True
    assert limiter.allow(1, 3, now=11.25) is True
