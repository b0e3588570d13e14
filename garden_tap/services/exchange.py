"""Coin spending outside of tools: energy packages and locations."""
from __future__ import annotations

import logging

from garden_tap.constants import ENERGY_PACKAGES, MAIN_CURRENCY, PurchaseStatus
from garden_tap.errors import NotFoundError
from garden_tap.services import wallet
from garden_tap.services.progression import ProgressionEngine, owns_location

logger = logging.getLogger(__name__)


async def buy_energy(engine: ProgressionEngine, player_id: str, package_id: int) -> PurchaseStatus:
    package = ENERGY_PACKAGES.get(package_id)
    if package is None:
        raise NotFoundError(f"energy package {package_id} not found")
    async with engine.player_session(player_id) as (_, state):
        if state.energy >= state.max_energy:
            return PurchaseStatus.ALREADY_FULL
        if not wallet.debit(state, MAIN_CURRENCY, package.price):
            return PurchaseStatus.INSUFFICIENT
        state.energy = min(state.energy + package.energy_amount, state.max_energy)
        logger.info("Energy bought", extra={"player_id": player_id, "package_id": package_id})
        return PurchaseStatus.OK


async def unlock_location(engine: ProgressionEngine, player_id: str, location_id: int) -> PurchaseStatus:
    """Buy access to a location with the main currency."""

    location = engine.catalog.get_location(location_id)
    async with engine.player_session(player_id) as (_, state):
        if owns_location(state, location):
            return PurchaseStatus.ALREADY_OWNED
        if state.level < location.unlock_level:
            return PurchaseStatus.LEVEL_TOO_LOW
        if not wallet.debit(state, MAIN_CURRENCY, location.unlock_cost):
            return PurchaseStatus.INSUFFICIENT
        engine.unlock_location(state, location)
        logger.info("Location unlocked", extra={"player_id": player_id, "location_id": location_id})
        return PurchaseStatus.OK
