"""Database engine and session management."""
from __future__ import annotations

from typing import Tuple

from sqlalchemy import MetaData
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from garden_tap.config import SETTINGS


def make_engine(url: str) -> Tuple[AsyncEngine, async_sessionmaker[AsyncSession]]:
    """Create an engine and a session factory for ``url``."""

    options = {"echo": False, "future": True}
    if url.startswith("sqlite") and (":memory:" in url or url.rstrip("/").endswith(":")):
        # every connection to an in-memory database must see the same data
        options.update(poolclass=StaticPool, connect_args={"check_same_thread": False})
    new_engine = create_async_engine(url, **options)
    return new_engine, async_sessionmaker(new_engine, expire_on_commit=False, class_=AsyncSession)


engine, async_session_maker = make_engine(SETTINGS.DATABASE_URL)


async def init_models(metadata: MetaData, target: AsyncEngine = engine) -> None:
    """Create database tables if they do not exist."""

    async with target.begin() as conn:
        await conn.run_sync(metadata.create_all)
