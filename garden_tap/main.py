"""Entry point for the Garden Tap bot."""
from __future__ import annotations

import asyncio

from aiogram import Bot, Dispatcher
from aiogram.fsm.storage.memory import MemoryStorage

from garden_tap.config import LOGGER, SETTINGS, setup_logging
from garden_tap.constants import RU
from garden_tap.database.base import async_session_maker, init_models
from garden_tap.database.models import Base
from garden_tap.database.seed import seed_if_needed
from garden_tap.handlers import setup_routers
from garden_tap.middlewares.rate_limit import RateLimitMiddleware
from garden_tap.repository.sql import SqlStorage, load_catalog
from garden_tap.services.progression import ProgressionEngine


async def build_engine() -> ProgressionEngine:
    """Create tables, seed content and wire the engine to the database."""

    await init_models(Base.metadata)
    async with async_session_maker() as session:
        async with session.begin():
            await seed_if_needed(session)
    catalog = await load_catalog(async_session_maker)
    return ProgressionEngine(SqlStorage(async_session_maker), catalog, SETTINGS)


async def main() -> None:
    """Run bot polling loop."""

    if not SETTINGS.BOT_TOKEN or ":" not in SETTINGS.BOT_TOKEN:
        raise RuntimeError("BOT_TOKEN не найден или неверен. Укажите его в .env (BOT_TOKEN=...)")

    setup_logging()
    engine = await build_engine()

    bot = Bot(SETTINGS.BOT_TOKEN)
    dispatcher = Dispatcher(storage=MemoryStorage(), engine=engine)
    dispatcher.include_router(setup_routers())
    dispatcher.message.middleware(RateLimitMiddleware())

    await bot.delete_webhook(drop_pending_updates=True)
    LOGGER.info("%s", RU.BOT_STARTED)
    await dispatcher.start_polling(bot)


def run() -> None:
    try:
        asyncio.run(main())
    except (KeyboardInterrupt, SystemExit):
        LOGGER.info("Bot stopped.")


if __name__ == "__main__":
    run()
