"""Storage screen of the current location."""
from __future__ import annotations

from aiogram import F, Router
from aiogram.fsm.context import FSMContext
from aiogram.types import Message

from garden_tap.constants import RU, PurchaseStatus
from garden_tap.errors import NotOwnedError
from garden_tap.handlers.common import STATUS_TEXT, format_amount, player_id_of, safe_handler
from garden_tap.keyboards.reply import kb_actions, kb_menu_only
from garden_tap.services import storage as storage_service
from garden_tap.services.progression import ProgressionEngine
from garden_tap.states import StorageState

router = Router()


async def _render_storage(message: Message, engine: ProgressionEngine, location_id: int) -> None:
    try:
        info = await storage_service.get_storage(engine, player_id_of(message), location_id)
    except NotOwnedError:
        await message.answer(RU.NO_STORAGE, reply_markup=kb_menu_only())
        return
    lines = [
        RU.STORAGE_HEADER.format(
            lvl=info.level,
            amount=format_amount(info.amount),
            capacity=format_amount(info.capacity),
            pct=info.percentage,
        )
    ]
    if info.next_capacity is None:
        lines.append(RU.MAX_LEVEL)
        markup = kb_menu_only()
    else:
        lines.append(RU.STORAGE_NEXT.format(capacity=format_amount(info.next_capacity), cost=format_amount(info.upgrade_cost)))
        markup = kb_actions(RU.BTN_UPGRADE)
    await message.answer("\n".join(lines), reply_markup=markup)


@router.message(F.text == RU.BTN_STORAGE)
@safe_handler
async def storage_root(message: Message, state: FSMContext, engine: ProgressionEngine) -> None:
    await state.set_state(StorageState.viewing)
    location_id = int((await state.get_data()).get("location_id", engine.settings.STARTER_LOCATION_ID))
    await _render_storage(message, engine, location_id)


@router.message(StorageState.viewing, F.text == RU.BTN_UPGRADE)
@safe_handler
async def storage_upgrade(message: Message, state: FSMContext, engine: ProgressionEngine) -> None:
    location_id = int((await state.get_data()).get("location_id", engine.settings.STARTER_LOCATION_ID))
    status = await storage_service.upgrade_storage(engine, player_id_of(message), location_id)
    await message.answer(RU.UPGRADE_OK if status is PurchaseStatus.OK else STATUS_TEXT[status])
    await _render_storage(message, engine, location_id)
