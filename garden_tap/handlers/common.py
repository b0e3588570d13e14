"""Shared pieces of the bot handlers."""
from __future__ import annotations

import logging
from functools import wraps
from typing import Dict

from aiogram.types import Message

from garden_tap.constants import CURRENCY_TITLES, RU, Currency, PurchaseStatus
from garden_tap.keyboards.reply import kb_main_menu

logger = logging.getLogger(__name__)

STATUS_TEXT: Dict[PurchaseStatus, str] = {
    PurchaseStatus.OK: RU.PURCHASE_OK,
    PurchaseStatus.INSUFFICIENT: RU.INSUFFICIENT_FUNDS,
    PurchaseStatus.ALREADY_OWNED: RU.ALREADY_OWNED,
    PurchaseStatus.LEVEL_TOO_LOW: RU.LEVEL_TOO_LOW,
    PurchaseStatus.MAX_LEVEL: RU.MAX_LEVEL,
    PurchaseStatus.NOT_OWNED: RU.NOT_OWNED,
    PurchaseStatus.ALREADY_FULL: RU.ENERGY_FULL,
}


def safe_handler(func):
    """Log unexpected handler errors and answer the user with a generic message."""

    @wraps(func)
    async def wrapper(message: Message, *args, **kwargs):
        try:
            return await func(message, *args, **kwargs)
        except Exception as exc:  # noqa: BLE001 - every failure must be logged
            logger.exception("Unhandled error in %s", func.__name__, exc_info=exc)
            try:
                await message.answer(RU.ERROR, reply_markup=kb_main_menu())
            except Exception:  # noqa: BLE001
                logger.exception("Failed to send error notification to user")

    return wrapper


def player_id_of(message: Message) -> str:
    return str(message.from_user.id)


def currency_title(currency: Currency | str) -> str:
    return CURRENCY_TITLES[Currency.parse(currency)]


def format_amount(amount: float) -> str:
    """Balances accrue fractions; players only see whole units."""

    return str(int(amount))
