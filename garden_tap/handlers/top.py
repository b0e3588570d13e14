"""Leaderboard screen."""
from __future__ import annotations

from aiogram import F, Router
from aiogram.types import Message

from garden_tap.constants import RU
from garden_tap.handlers.common import player_id_of, safe_handler
from garden_tap.keyboards.reply import kb_main_menu
from garden_tap.services.progression import ProgressionEngine
from garden_tap.services.social import leaderboard

router = Router()


@router.message(F.text == RU.BTN_TOP)
@safe_handler
async def top_show(message: Message, engine: ProgressionEngine) -> None:
    entries = await leaderboard(engine)
    if not entries:
        await message.answer(RU.TOP_EMPTY, reply_markup=kb_main_menu())
        return
    me = player_id_of(message)
    lines = [RU.TOP_HEADER]
    for place, entry in enumerate(entries, 1):
        marker = " (вы)" if entry.player_id == me else ""
        lines.append(f"{place}. {entry.player_id}{marker}: ур. {entry.level}, опыт {entry.experience}")
    await message.answer("\n".join(lines), reply_markup=kb_main_menu())
