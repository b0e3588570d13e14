"""Database seeding helpers and the shipped game content."""
from __future__ import annotations

import math
from typing import Any, Dict, List

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from garden_tap.catalog import ContentCatalog
from garden_tap.database.models import (
    HelperLevelRow,
    HelperRow,
    LevelRow,
    LocationRow,
    RewardRow,
    StorageLevelRow,
    ToolRow,
)

SEED_LOCATIONS = [
    {"id": 1, "name": "Лес", "character_id": 1, "unlock_level": 1, "unlock_cost": 0, "currency": "wood", "background": "/assets/backgrounds/forest.jpg"},
    {"id": 2, "name": "Сад", "character_id": 2, "unlock_level": 5, "unlock_cost": 100, "currency": "dirt", "background": "/assets/backgrounds/garden.jpg"},
    {"id": 3, "name": "Ферма", "character_id": 3, "unlock_level": 10, "unlock_cost": 500, "currency": "grain", "background": "/assets/backgrounds/farm.jpg"},
]

SEED_TOOLS = [
    {"id": 1, "name": "Топор", "character_id": 1, "unlock_level": 1, "unlock_cost": 0, "currency": "wood", "main_power": 0.5, "location_power": 1},
    {"id": 2, "name": "Ручная пила", "character_id": 1, "unlock_level": 5, "unlock_cost": 300, "currency": "wood", "main_power": 1.5, "location_power": 3},
    {"id": 3, "name": "Бензопила", "character_id": 1, "unlock_level": 10, "unlock_cost": 1000, "currency": "wood", "main_power": 5, "location_power": 10},
    {"id": 4, "name": "Лопата", "character_id": 2, "unlock_level": 1, "unlock_cost": 0, "currency": "dirt", "main_power": 0.5, "location_power": 1},
    {"id": 5, "name": "Грабли", "character_id": 2, "unlock_level": 3, "unlock_cost": 150, "currency": "dirt", "main_power": 1, "location_power": 2},
    {"id": 6, "name": "Мешок для мусора", "character_id": 2, "unlock_level": 7, "unlock_cost": 500, "currency": "dirt", "main_power": 2.5, "location_power": 5},
    {"id": 7, "name": "Коса", "character_id": 3, "unlock_level": 1, "unlock_cost": 0, "currency": "grain", "main_power": 0.5, "location_power": 1},
    {"id": 8, "name": "Серп", "character_id": 3, "unlock_level": 5, "unlock_cost": 200, "currency": "grain", "main_power": 1.5, "location_power": 3},
    {"id": 9, "name": "Комбайн", "character_id": 3, "unlock_level": 12, "unlock_cost": 800, "currency": "grain", "main_power": 4, "location_power": 8},
]

SEED_LEVELS = [
    {"level": level, "required_exp": int(math.floor(100 * 1.5 ** (level - 1)))} for level in range(1, 51)
]

SEED_REWARDS = [
    {"id": 1, "level": 2, "kind": "main_currency", "amount": 200},
    {"id": 2, "level": 3, "kind": "main_currency", "amount": 300},
    {"id": 3, "level": 3, "kind": "energy", "amount": 10},
    {"id": 4, "level": 4, "kind": "main_currency", "amount": 400},
    {"id": 5, "level": 5, "kind": "unlock_tool", "target_id": 2},
    {"id": 6, "level": 5, "kind": "unlock_location", "target_id": 2},
    {"id": 7, "level": 6, "kind": "main_currency", "amount": 600},
    {"id": 8, "level": 6, "kind": "location_currency", "amount": 100, "currency": "dirt"},
    {"id": 9, "level": 7, "kind": "main_currency", "amount": 700},
    {"id": 10, "level": 8, "kind": "main_currency", "amount": 800},
    {"id": 11, "level": 8, "kind": "energy", "amount": 20},
    {"id": 12, "level": 9, "kind": "main_currency", "amount": 900},
    {"id": 13, "level": 10, "kind": "unlock_tool", "target_id": 3},
    {"id": 14, "level": 10, "kind": "unlock_location", "target_id": 3},
]

SEED_HELPERS = [
    {"id": 1, "name": "Дровосек", "location_id": 1, "unlock_level": 3, "unlock_cost": 100, "currency": "wood", "max_level": 10},
    {"id": 2, "name": "Лесник", "location_id": 1, "unlock_level": 8, "unlock_cost": 500, "currency": "wood", "max_level": 10},
    {"id": 3, "name": "Садовник-помощник", "location_id": 2, "unlock_level": 6, "unlock_cost": 200, "currency": "dirt", "max_level": 10},
    {"id": 4, "name": "Ландшафтный дизайнер", "location_id": 2, "unlock_level": 12, "unlock_cost": 800, "currency": "dirt", "max_level": 10},
    {"id": 5, "name": "Фермер-помощник", "location_id": 3, "unlock_level": 11, "unlock_cost": 400, "currency": "grain", "max_level": 10},
    {"id": 6, "name": "Агроном", "location_id": 3, "unlock_level": 15, "unlock_cost": 1000, "currency": "grain", "max_level": 10},
]

SEED_HELPER_LEVELS = [
    {
        "helper_id": helper["id"],
        "level": level,
        "income_per_hour": math.floor(10 * level * 1.5 ** (level - 1)),
        "upgrade_cost": math.floor(50 * level * 1.8 ** (level - 1)),
    }
    for helper in SEED_HELPERS
    for level in range(1, 11)
]

_STORAGE_CAPACITIES = [500, 1000, 2000, 5000, 10000]
_STORAGE_COSTS = {1: [0, 100, 250, 500, 1000], 2: [0, 150, 300, 600, 1200], 3: [0, 200, 400, 800, 1600]}

SEED_STORAGE_LEVELS = [
    {
        "location_id": location_id,
        "level": index + 1,
        "capacity": capacity,
        "upgrade_cost": costs[index],
        "currency": "coins",
    }
    for location_id, costs in _STORAGE_COSTS.items()
    for index, capacity in enumerate(_STORAGE_CAPACITIES)
]


def default_catalog() -> ContentCatalog:
    """Return the shipped content without touching the database."""

    return ContentCatalog.from_records(
        tools=SEED_TOOLS,
        locations=SEED_LOCATIONS,
        levels=SEED_LEVELS,
        rewards=SEED_REWARDS,
        helpers=SEED_HELPERS,
        helper_levels=SEED_HELPER_LEVELS,
        storage_levels=SEED_STORAGE_LEVELS,
    )


_SEED_TABLES: List[tuple[type, List[Dict[str, Any]]]] = [
    (LocationRow, SEED_LOCATIONS),
    (ToolRow, SEED_TOOLS),
    (LevelRow, SEED_LEVELS),
    (RewardRow, SEED_REWARDS),
    (HelperRow, SEED_HELPERS),
    (HelperLevelRow, SEED_HELPER_LEVELS),
    (StorageLevelRow, SEED_STORAGE_LEVELS),
]


async def seed_if_needed(session: AsyncSession) -> None:
    """Populate static content tables if they are empty."""

    for model, rows in _SEED_TABLES:
        if (await session.scalar(select(func.count()).select_from(model))) == 0:
            for data in rows:
                session.add(model(**data))
            await session.flush()
