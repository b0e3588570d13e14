"""Profile, energy refill and referral screens."""
from __future__ import annotations

from aiogram import F, Router
from aiogram.types import Message

from garden_tap.constants import RU
from garden_tap.handlers.common import currency_title, format_amount, player_id_of, safe_handler
from garden_tap.keyboards.reply import kb_main_menu, kb_profile_menu
from garden_tap.services.progression import ProgressionEngine
from garden_tap.services.social import referral_stats

router = Router()


@router.message(F.text == RU.BTN_PROFILE)
@safe_handler
async def profile_show(message: Message, engine: ProgressionEngine) -> None:
    """Show level, energy and balances."""

    player_id = player_id_of(message)
    await engine.energy_refill(player_id)
    player = await engine.get_player_state(player_id)
    level = engine.catalog.get_level(player.level)
    balances = "\n".join(
        f"{currency_title(currency)}: {format_amount(amount)}" for currency, amount in sorted(player.currencies.items())
    )
    text = RU.PROFILE.format(
        lvl=player.level,
        xp=player.experience,
        xp_need=level.required_exp if level else "-",
        energy=player.energy,
        max_energy=player.max_energy,
        balances=balances,
    )
    await message.answer(text, reply_markup=kb_profile_menu())


@router.message(F.text == RU.BTN_REFILL)
@safe_handler
async def profile_refill(message: Message, engine: ProgressionEngine) -> None:
    result = await engine.energy_refill(player_id_of(message))
    await message.answer(f"Энергия: {result.energy}/{result.max_energy}", reply_markup=kb_profile_menu())


@router.message(F.text == RU.BTN_FRIENDS)
@safe_handler
async def profile_friends(message: Message, engine: ProgressionEngine) -> None:
    stats = await referral_stats(engine, player_id_of(message))
    await message.answer(
        RU.REFERRAL_CODE.format(
            code=stats["code"],
            count=stats["referralsCount"],
            coins=format_amount(stats["referralCoins"]),
        ),
        reply_markup=kb_main_menu(),
    )
