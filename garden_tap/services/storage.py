"""Storage capacity of location currencies."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

from garden_tap.constants import PurchaseStatus
from garden_tap.errors import NotOwnedError
from garden_tap.services import wallet
from garden_tap.services.economy import fill_percentage
from garden_tap.services.progression import ProgressionEngine

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class StorageInfo:
    location_id: int
    currency: str
    level: int
    capacity: float
    amount: float
    percentage: int
    next_capacity: Optional[float] = None
    upgrade_cost: Optional[float] = None
    upgrade_currency: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "locationId": self.location_id,
            "currency": self.currency,
            "level": self.level,
            "capacity": self.capacity,
            "amount": self.amount,
            "percentage": self.percentage,
            "nextCapacity": self.next_capacity,
            "upgradeCost": self.upgrade_cost,
            "upgradeCurrency": self.upgrade_currency,
        }


async def get_storage(engine: ProgressionEngine, player_id: str, location_id: int) -> StorageInfo:
    location = engine.catalog.get_location(location_id)
    async with engine.player_session(player_id) as (_, state):
        slot = state.storage.get(location.currency)
        if slot is None:
            raise NotOwnedError(f"no storage at location {location_id}")
        amount = wallet.balance(state, location.currency)
        upcoming = engine.catalog.get_storage_level(location_id, slot.level + 1)
        return StorageInfo(
            location_id=location_id,
            currency=location.currency.value,
            level=slot.level,
            capacity=slot.capacity,
            amount=amount,
            percentage=fill_percentage(amount, slot.capacity),
            next_capacity=upcoming.capacity if upcoming else None,
            upgrade_cost=upcoming.upgrade_cost if upcoming else None,
            upgrade_currency=upcoming.currency.value if upcoming else None,
        )


async def upgrade_storage(engine: ProgressionEngine, player_id: str, location_id: int) -> PurchaseStatus:
    """Raise the storage of ``location_id`` by one level for its upgrade price."""

    location = engine.catalog.get_location(location_id)
    async with engine.player_session(player_id) as (_, state):
        slot = state.storage.get(location.currency)
        if slot is None:
            raise NotOwnedError(f"no storage at location {location_id}")
        upcoming = engine.catalog.get_storage_level(location_id, slot.level + 1)
        if upcoming is None:
            return PurchaseStatus.MAX_LEVEL
        if not wallet.debit(state, upcoming.currency, upcoming.upgrade_cost):
            return PurchaseStatus.INSUFFICIENT
        slot.level = upcoming.level
        slot.capacity = upcoming.capacity
        logger.info(
            "Storage upgraded",
            extra={"player_id": player_id, "location_id": location_id, "level": slot.level},
        )
        return PurchaseStatus.OK
