"""Handler for the main tap action."""
from __future__ import annotations

from aiogram import F, Router
from aiogram.fsm.context import FSMContext
from aiogram.types import Message

from garden_tap.constants import RU
from garden_tap.errors import NoToolEquippedError, NotOwnedError
from garden_tap.handlers.common import currency_title, format_amount, player_id_of, safe_handler
from garden_tap.keyboards.reply import kb_main_menu, kb_tap
from garden_tap.services.progression import ProgressionEngine, TapResult

router = Router()


def _format_rewards(result: TapResult) -> str:
    parts = []
    for reward in result.rewards:
        if reward.currency:
            parts.append(f"+{format_amount(reward.amount)} {currency_title(reward.currency)}")
        elif reward.kind == "energy":
            parts.append(f"+{format_amount(reward.amount)} к макс. энергии")
        else:
            parts.append(f"{reward.kind} #{reward.target_id}")
    return ", ".join(parts) or "-"


@router.message(F.text == RU.BTN_TAP)
@safe_handler
async def handle_tap(message: Message, state: FSMContext, engine: ProgressionEngine) -> None:
    """Tap at the selected location, regenerating energy first."""

    player_id = player_id_of(message)
    location_id = int((await state.get_data()).get("location_id", engine.settings.STARTER_LOCATION_ID))
    location = engine.catalog.get_location(location_id)
    await engine.energy_refill(player_id)
    try:
        result = await engine.tap(player_id, location_id)
    except NoToolEquippedError:
        await message.answer(RU.NO_TOOL, reply_markup=kb_main_menu())
        return
    except NotOwnedError:
        await message.answer(RU.NOT_OWNED, reply_markup=kb_main_menu())
        return

    if result.energy_left == 0 and result.experience_gained == 0:
        await message.answer(RU.NO_ENERGY, reply_markup=kb_tap())
        return
    await message.answer(
        RU.TAP_RESULT.format(
            res=format_amount(result.resources_gained),
            res_name=currency_title(location.currency),
            coins=result.main_currency_gained,
            xp=result.experience_gained,
            energy=result.energy_left,
        ),
        reply_markup=kb_tap(),
    )
    if result.level_up:
        await message.answer(RU.LEVEL_UP.format(lvl=result.level, rewards=_format_rewards(result)))
