"""Start command and global navigation handlers."""
from __future__ import annotations

from aiogram import F, Router
from aiogram.filters import CommandObject, CommandStart
from aiogram.fsm.context import FSMContext
from aiogram.types import Message

from garden_tap.constants import RU, ReferralStatus
from garden_tap.handlers.common import player_id_of, safe_handler
from garden_tap.keyboards.reply import kb_main_menu
from garden_tap.services.progression import ProgressionEngine
from garden_tap.services.social import apply_referral_code

router = Router()

REFERRAL_TEXT = {
    ReferralStatus.OK: RU.REFERRAL_OK,
    ReferralStatus.NOT_FOUND: RU.REFERRAL_NOT_FOUND,
    ReferralStatus.OWN_CODE: RU.REFERRAL_OWN,
    ReferralStatus.ALREADY_APPLIED: RU.REFERRAL_ALREADY,
}


@router.message(CommandStart())
@safe_handler
async def cmd_start(message: Message, command: CommandObject, state: FSMContext, engine: ProgressionEngine) -> None:
    """Create the player on first contact and apply an invite code if given."""

    await state.clear()
    player_id = player_id_of(message)
    await engine.get_player_state(player_id)
    if command.args:
        status = await apply_referral_code(engine, player_id, command.args)
        await message.answer(REFERRAL_TEXT[status])
    await message.answer(RU.WELCOME, reply_markup=kb_main_menu())


@router.message(F.text == RU.BTN_MENU)
@safe_handler
async def back_to_menu(message: Message, state: FSMContext, engine: ProgressionEngine) -> None:
    """Return to the main menu; helper income is collected on the way."""

    data = await state.get_data()
    await state.clear()
    if "location_id" in data:
        await state.update_data(location_id=data["location_id"])
    await engine.collect_helper_income(player_id_of(message))
    await message.answer(RU.MENU_HINT, reply_markup=kb_main_menu())


@router.message(F.text == RU.BTN_CANCEL)
@safe_handler
async def cancel(message: Message, state: FSMContext) -> None:
    await state.set_state(None)
    await message.answer(RU.MENU_HINT, reply_markup=kb_main_menu())
