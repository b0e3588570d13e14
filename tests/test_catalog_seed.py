from __future__ import annotations

import pytest
from sqlalchemy import func, select

from conftest import HELPERS, LEVELS, LOCATIONS, REWARDS, TOOLS, build_catalog
from garden_tap.catalog import ContentCatalog
from garden_tap.config import Settings
from garden_tap.constants import Currency, RewardKind
from garden_tap.database.base import init_models, make_engine
from garden_tap.database.models import Base, LevelRow, ToolRow
from garden_tap.database.seed import SEED_LEVELS, SEED_TOOLS, default_catalog, seed_if_needed
from garden_tap.errors import CatalogError, NotFoundError
from garden_tap.repository.memory import InMemoryStorage
from garden_tap.repository.sql import load_catalog
from garden_tap.services.progression import ProgressionEngine


def test_lookups(catalog):
    assert catalog.get_tool(2).unlock_currency is Currency.WOOD
    assert catalog.get_location(2).currency is Currency.DIRT
    assert [tool.id for tool in catalog.tools_for_character(1)] == [1, 2, 3]
    assert catalog.get_level(99) is None
    assert catalog.get_rewards_for_level(3)[1].kind is RewardKind.UNLOCK_TOOL
    assert catalog.get_rewards_for_level(1) == ()
    assert catalog.get_storage_level(1, 2).capacity == 100
    assert catalog.get_storage_level(1, 3) is None
    assert catalog.max_level == 4
    with pytest.raises(NotFoundError):
        catalog.get_tool(100)
    with pytest.raises(NotFoundError):
        catalog.get_helper(100)


@pytest.mark.parametrize(
    "overrides",
    [
        {"tools": [{**TOOLS[0], "currency": "gold"}]},
        {"rewards": [{"id": 1, "level": 2, "kind": "diamonds", "amount": 1}]},
        {"rewards": [{"id": 1, "level": 2, "kind": "unlock_tool", "target_id": 77}]},
        {"rewards": [{"id": 1, "level": 2, "kind": "location_currency", "amount": 5}]},
        {"levels": [{"level": 1, "required_exp": 100}, {"level": 2, "required_exp": 100}]},
        {"helpers": [{**HELPERS[0], "location_id": 9}]},
    ],
)
def test_invalid_content_is_rejected(overrides):
    records = {"tools": TOOLS, "locations": LOCATIONS, "levels": LEVELS, "rewards": REWARDS, **overrides}

    with pytest.raises(CatalogError):
        ContentCatalog.from_records(**records)


def test_engine_requires_starter_content():
    with pytest.raises(CatalogError):
        ProgressionEngine(InMemoryStorage(), build_catalog(), Settings(STARTER_TOOL_ID=99))


def test_shipped_content_is_consistent():
    catalog = default_catalog()

    assert catalog.max_level == 50
    assert catalog.get_level(1).required_exp == 100
    assert catalog.get_level(3).required_exp == 225
    assert len(catalog.tools()) == len(SEED_TOOLS) == 9
    assert len(catalog.locations()) == 3
    assert [helper.id for helper in catalog.helpers_for_location(1)] == [1, 2]
    assert catalog.get_helper_level(1, 2).income_per_hour == 30
    assert catalog.get_storage_level(3, 5).upgrade_cost == 1600


async def test_seed_is_idempotent_and_loads_back():
    db_engine, session_maker = make_engine("sqlite+aiosqlite://")
    try:
        await init_models(Base.metadata, target=db_engine)
        for _ in range(2):
            async with session_maker() as session:
                async with session.begin():
                    await seed_if_needed(session)

        async with session_maker() as session:
            assert await session.scalar(select(func.count()).select_from(LevelRow)) == len(SEED_LEVELS)
            assert await session.scalar(select(func.count()).select_from(ToolRow)) == len(SEED_TOOLS)

        catalog = await load_catalog(session_maker)
    finally:
        await db_engine.dispose()

    assert catalog.max_level == 50
    assert catalog.get_location(1).background == "/assets/backgrounds/forest.jpg"
    assert [reward.kind for reward in catalog.get_rewards_for_level(5)] == [
        RewardKind.UNLOCK_TOOL,
        RewardKind.UNLOCK_LOCATION,
    ]
    assert catalog.get_storage_level(2, 2).capacity == 1000
