from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Callable

import pytest

from garden_tap.catalog import ContentCatalog
from garden_tap.config import Settings
from garden_tap.database.base import init_models, make_engine
from garden_tap.database.models import Base
from garden_tap.repository.base import PlayerState
from garden_tap.repository.memory import InMemoryStorage
from garden_tap.repository.sql import SqlStorage
from garden_tap.services.progression import ProgressionEngine

T0 = datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)

TOOLS = [
    {"id": 1, "name": "Axe", "character_id": 1, "unlock_level": 1, "unlock_cost": 0, "currency": "wood", "main_power": 0.5, "location_power": 1},
    {"id": 2, "name": "Saw", "character_id": 1, "unlock_level": 1, "unlock_cost": 300, "currency": "wood", "main_power": 1.5, "location_power": 3},
    {"id": 3, "name": "Harvester", "character_id": 1, "unlock_level": 3, "unlock_cost": 1000, "currency": "wood", "main_power": 5, "location_power": 250},
    {"id": 4, "name": "Shovel", "character_id": 2, "unlock_level": 1, "unlock_cost": 0, "currency": "dirt", "main_power": 0.5, "location_power": 1},
]
LOCATIONS = [
    {"id": 1, "name": "Forest", "character_id": 1, "unlock_level": 1, "unlock_cost": 0, "currency": "wood"},
    {"id": 2, "name": "Garden", "character_id": 2, "unlock_level": 2, "unlock_cost": 100, "currency": "dirt"},
]
LEVELS = [
    {"level": 1, "required_exp": 50},
    {"level": 2, "required_exp": 100},
    {"level": 3, "required_exp": 300},
    {"level": 4, "required_exp": 600},
]
REWARDS = [
    {"id": 1, "level": 2, "kind": "main_currency", "amount": 200},
    {"id": 2, "level": 2, "kind": "energy", "amount": 10},
    {"id": 3, "level": 3, "kind": "location_currency", "amount": 30, "currency": "dirt"},
    {"id": 4, "level": 3, "kind": "unlock_tool", "target_id": 2},
    {"id": 5, "level": 4, "kind": "unlock_location", "target_id": 2},
]
HELPERS = [
    {"id": 1, "name": "Woodcutter", "location_id": 1, "unlock_level": 1, "unlock_cost": 100, "currency": "wood", "max_level": 3},
    {"id": 2, "name": "Forester", "location_id": 1, "unlock_level": 3, "unlock_cost": 50, "currency": "wood", "max_level": 3},
]
HELPER_LEVELS = [
    {"helper_id": helper_id, "level": level, "income_per_hour": 60 * 2 ** (level - 1), "upgrade_cost": 0 if level == 1 else 100 * 2 ** (level - 1)}
    for helper_id in (1, 2)
    for level in (1, 2, 3)
]
STORAGE_LEVELS = [
    {"location_id": 1, "level": 1, "capacity": 50, "upgrade_cost": 0, "currency": "coins"},
    {"location_id": 1, "level": 2, "capacity": 100, "upgrade_cost": 150, "currency": "coins"},
    {"location_id": 2, "level": 1, "capacity": 500, "upgrade_cost": 0, "currency": "coins"},
]


class FrozenClock:
    def __init__(self, start: datetime = T0) -> None:
        self.current = start

    def __call__(self) -> datetime:
        return self.current

    def advance(self, seconds: float) -> datetime:
        self.current += timedelta(seconds=seconds)
        return self.current


def build_catalog() -> ContentCatalog:
    return ContentCatalog.from_records(
        tools=TOOLS,
        locations=LOCATIONS,
        levels=LEVELS,
        rewards=REWARDS,
        helpers=HELPERS,
        helper_levels=HELPER_LEVELS,
        storage_levels=STORAGE_LEVELS,
    )


@pytest.fixture
def catalog() -> ContentCatalog:
    return build_catalog()


@pytest.fixture
def settings() -> Settings:
    return Settings(
        DEFAULT_MAX_ENERGY=100,
        ENERGY_REFILL_SECONDS=60,
        STARTER_TOOL_ID=1,
        STARTER_LOCATION_ID=1,
        REFERRAL_REWARD=500,
    )


@pytest.fixture
def clock() -> FrozenClock:
    return FrozenClock()


@pytest.fixture
async def sql_storage():
    db_engine, session_maker = make_engine("sqlite+aiosqlite://")
    await init_models(Base.metadata, target=db_engine)
    yield SqlStorage(session_maker)
    await db_engine.dispose()


@pytest.fixture(params=["memory", "sql"])
async def storage(request):
    """Every storage adapter, empty."""

    if request.param == "memory":
        yield InMemoryStorage()
        return
    db_engine, session_maker = make_engine("sqlite+aiosqlite://")
    await init_models(Base.metadata, target=db_engine)
    yield SqlStorage(session_maker)
    await db_engine.dispose()


@pytest.fixture
def engine(storage, catalog, settings, clock) -> ProgressionEngine:
    return ProgressionEngine(storage, catalog, settings, clock=clock)


async def mutate(engine: ProgressionEngine, player_id: str, change: Callable[[PlayerState], None]) -> PlayerState:
    """Apply ``change`` to the stored player in its own unit of work."""

    async with engine.player_session(player_id) as (_, state):
        change(state)
    return await engine.get_player_state(player_id)
