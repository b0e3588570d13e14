"""Aggregate all routers for the bot."""
from __future__ import annotations

from aiogram import Router

from garden_tap.handlers import exchange, helpers, locations, profile, start, storage, tap, tools, top


def setup_routers() -> Router:
    """Compose the root router with all feature routers."""

    router = Router()
    router.include_router(start.router)
    router.include_router(tap.router)
    router.include_router(locations.router)
    router.include_router(tools.router)
    router.include_router(helpers.router)
    router.include_router(storage.router)
    router.include_router(exchange.router)
    router.include_router(profile.router)
    router.include_router(top.router)
    return router
