"""Helpers: hiring, upgrades and lazily computed passive income."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import TYPE_CHECKING, Any, Dict, List

from garden_tap.catalog import ContentCatalog
from garden_tap.constants import HELPER_MIN_COLLECT_SECONDS, PurchaseStatus
from garden_tap.repository.base import PlayerState
from garden_tap.services import wallet
from garden_tap.services.economy import helper_income

if TYPE_CHECKING:  # pragma: no cover
    from garden_tap.services.progression import ProgressionEngine

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class HelperIncome:
    collected: bool
    elapsed_seconds: float = 0.0
    earned: Dict[str, float] = field(default_factory=dict)
    credited: Dict[str, float] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "collected": self.collected,
            "elapsedSeconds": self.elapsed_seconds,
            "earned": dict(self.earned),
            "credited": dict(self.credited),
        }


@dataclass(slots=True)
class HelperInfo:
    id: int
    name: str
    location_id: int
    currency: str
    unlock_level: int
    unlock_cost: float
    max_level: int
    level: int
    income_per_hour: float
    next_upgrade_cost: float | None
    can_buy: bool

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "locationId": self.location_id,
            "currency": self.currency,
            "unlockLevel": self.unlock_level,
            "unlockCost": self.unlock_cost,
            "maxLevel": self.max_level,
            "level": self.level,
            "incomePerHour": self.income_per_hour,
            "nextUpgradeCost": self.next_upgrade_cost,
            "canBuy": self.can_buy,
        }


def income_per_hour(catalog: ContentCatalog, helper_id: int, level: int) -> float:
    row = catalog.get_helper_level(helper_id, level)
    return row.income_per_hour if row else 0.0


def accrue_income(
    state: PlayerState, catalog: ContentCatalog, now: datetime, min_seconds: float = HELPER_MIN_COLLECT_SECONDS
) -> HelperIncome:
    """Credit what every hired helper earned since the last collection.

    Hiring or upgrading settles with ``min_seconds=0`` first so the new
    level only pays from that moment on.
    """

    elapsed = (now - state.last_helper_collect_time).total_seconds()
    if elapsed < min_seconds:
        return HelperIncome(collected=False, elapsed_seconds=max(0.0, elapsed))

    result = HelperIncome(collected=True, elapsed_seconds=elapsed)
    for helper_id, level in sorted(state.helpers.items()):
        helper = catalog.get_helper(helper_id)
        amount = helper_income(income_per_hour(catalog, helper_id, level), elapsed)
        if amount <= 0:
            continue
        code = helper.currency.value
        result.earned[code] = round(result.earned.get(code, 0.0) + amount, 2)
        credited = wallet.credit(state, helper.currency, amount)
        result.credited[code] = round(result.credited.get(code, 0.0) + credited, 2)
    state.last_helper_collect_time = now
    if result.earned:
        logger.info("Helper income collected", extra={"player_id": state.player_id, "earned": result.earned})
    return result


async def list_helpers(engine: "ProgressionEngine", player_id: str, location_id: int) -> List[HelperInfo]:
    """Return the location's helpers with the player's progress on each."""

    catalog = engine.catalog
    catalog.get_location(location_id)
    async with engine.player_session(player_id) as (_, state):
        infos = []
        for helper in catalog.helpers_for_location(location_id):
            level = state.helpers.get(helper.id, 0)
            upgrade = catalog.get_helper_level(helper.id, level + 1) if 0 < level < helper.max_level else None
            infos.append(
                HelperInfo(
                    id=helper.id,
                    name=helper.name,
                    location_id=helper.location_id,
                    currency=helper.currency.value,
                    unlock_level=helper.unlock_level,
                    unlock_cost=helper.unlock_cost,
                    max_level=helper.max_level,
                    level=level,
                    income_per_hour=income_per_hour(catalog, helper.id, level),
                    next_upgrade_cost=upgrade.upgrade_cost if upgrade else None,
                    can_buy=(
                        level == 0
                        and state.level >= helper.unlock_level
                        and wallet.balance(state, helper.currency) >= helper.unlock_cost
                    ),
                )
            )
        return infos


async def buy_helper(engine: "ProgressionEngine", player_id: str, helper_id: int) -> PurchaseStatus:
    helper = engine.catalog.get_helper(helper_id)
    async with engine.player_session(player_id) as (_, state):
        if helper.id in state.helpers:
            return PurchaseStatus.ALREADY_OWNED
        if state.level < helper.unlock_level:
            return PurchaseStatus.LEVEL_TOO_LOW
        if not wallet.debit(state, helper.currency, helper.unlock_cost):
            return PurchaseStatus.INSUFFICIENT
        accrue_income(state, engine.catalog, engine.now(), min_seconds=0)
        state.helpers[helper.id] = 1
        logger.info("Helper hired", extra={"player_id": player_id, "helper_id": helper_id})
        return PurchaseStatus.OK


async def upgrade_helper(engine: "ProgressionEngine", player_id: str, helper_id: int) -> PurchaseStatus:
    helper = engine.catalog.get_helper(helper_id)
    async with engine.player_session(player_id) as (_, state):
        level = state.helpers.get(helper.id)
        if level is None:
            return PurchaseStatus.NOT_OWNED
        upgrade = engine.catalog.get_helper_level(helper.id, level + 1)
        if level >= helper.max_level or upgrade is None:
            return PurchaseStatus.MAX_LEVEL
        if not wallet.debit(state, helper.currency, upgrade.upgrade_cost):
            return PurchaseStatus.INSUFFICIENT
        accrue_income(state, engine.catalog, engine.now(), min_seconds=0)
        state.helpers[helper.id] = level + 1
        logger.info("Helper upgraded", extra={"player_id": player_id, "helper_id": helper_id, "level": level + 1})
        return PurchaseStatus.OK
