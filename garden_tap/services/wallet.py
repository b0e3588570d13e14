"""Currency balance helpers applied to a loaded player state."""
from __future__ import annotations

import logging

from garden_tap.constants import Currency
from garden_tap.repository.base import PlayerState
from garden_tap.services.economy import clamp_credit

logger = logging.getLogger(__name__)


def balance(state: PlayerState, currency: Currency) -> float:
    return state.currencies.get(currency, 0.0)


def capacity(state: PlayerState, currency: Currency) -> float | None:
    slot = state.storage.get(currency)
    return slot.capacity if slot else None


def credit(state: PlayerState, currency: Currency, amount: float) -> float:
    """Add ``amount`` and return what was actually credited.

    Currencies with a storage record never exceed its capacity; the surplus
    is dropped.
    """

    current = balance(state, currency)
    credited = clamp_credit(amount, current, capacity(state, currency))
    if credited < amount:
        logger.debug(
            "Storage full, surplus dropped",
            extra={"player_id": state.player_id, "currency": currency.value, "dropped": amount - credited},
        )
    if credited > 0 or currency not in state.currencies:
        state.currencies[currency] = current + credited
    return credited


def debit(state: PlayerState, currency: Currency, amount: float) -> bool:
    """Spend ``amount`` if the balance covers it; never goes negative."""

    if amount <= 0:
        return True
    current = balance(state, currency)
    if current < amount:
        return False
    state.currencies[currency] = current - amount
    return True
