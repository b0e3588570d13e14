"""Handlers for hiring and upgrading helpers."""
from __future__ import annotations

from typing import List

from aiogram import F, Router
from aiogram.fsm.context import FSMContext
from aiogram.types import Message

from garden_tap.constants import PAGE_SIZE, RU
from garden_tap.handlers.common import STATUS_TEXT, currency_title, format_amount, player_id_of, safe_handler
from garden_tap.keyboards.reply import kb_actions, kb_menu_only, kb_numeric_page
from garden_tap.services import helpers as helper_service
from garden_tap.services.helpers import HelperInfo
from garden_tap.services.progression import ProgressionEngine
from garden_tap.states import HelpersState
from garden_tap.utils.pagination import page_selection, slice_page

router = Router()


def _format_helpers(items: List[HelperInfo]) -> str:
    lines = [RU.HELPERS_HEADER]
    for index, info in enumerate(items, 1):
        currency = currency_title(info.currency)
        if info.level == 0:
            price = f"нанять за {format_amount(info.unlock_cost)} {currency} (с {info.unlock_level} ур.)"
        elif info.next_upgrade_cost is not None:
            price = f"повышение {format_amount(info.next_upgrade_cost)} {currency}"
        else:
            price = "макс."
        lines.append(f"[{index}] {info.name}: {info.income_per_hour:g}/ч, ур. {info.level}, {price}")
    return "\n".join(lines)


async def _render_helpers(message: Message, state: FSMContext, engine: ProgressionEngine) -> None:
    data = await state.get_data()
    location_id = int(data.get("location_id", engine.settings.STARTER_LOCATION_ID))
    items = await helper_service.list_helpers(engine, player_id_of(message), location_id)
    page = int(data.get("page", 0))
    sub, has_prev, has_next = slice_page(items, page)
    if not sub:
        await message.answer(RU.EMPTY_LIST, reply_markup=kb_menu_only())
        await state.update_data(helper_ids=[], page=page)
        return
    await message.answer(
        _format_helpers(sub),
        reply_markup=kb_numeric_page(range(1, len(sub) + 1), has_prev, has_next),
    )
    await state.update_data(helper_ids=[info.id for info in sub], hired=[info.id for info in sub if info.level], page=page)


@router.message(F.text == RU.BTN_HELPERS)
@safe_handler
async def helpers_root(message: Message, state: FSMContext, engine: ProgressionEngine) -> None:
    await state.set_state(HelpersState.browsing)
    await state.update_data(page=0)
    await _render_helpers(message, state, engine)


@router.message(HelpersState.browsing, F.text.in_({RU.BTN_PREV, RU.BTN_NEXT}))
@safe_handler
async def helpers_page(message: Message, state: FSMContext, engine: ProgressionEngine) -> None:
    step = -1 if message.text == RU.BTN_PREV else 1
    page = max(0, int((await state.get_data()).get("page", 0)) + step)
    await state.update_data(page=page)
    await _render_helpers(message, state, engine)


@router.message(HelpersState.browsing, F.text.in_(page_selection(PAGE_SIZE)))
@safe_handler
async def helpers_choose(message: Message, state: FSMContext, engine: ProgressionEngine) -> None:
    data = await state.get_data()
    helper_ids = data.get("helper_ids", [])
    index = int(message.text) - 1
    if index < 0 or index >= len(helper_ids):
        return
    helper = engine.catalog.get_helper(helper_ids[index])
    action = RU.BTN_UPGRADE if helper.id in data.get("hired", []) else RU.BTN_BUY
    await state.set_state(HelpersState.confirm)
    await state.update_data(helper_id=helper.id)
    await message.answer(f"{helper.name}: {RU.CHOOSE_ACTION}", reply_markup=kb_actions(action))


@router.message(HelpersState.confirm, F.text.in_({RU.BTN_BUY, RU.BTN_UPGRADE}))
@safe_handler
async def helpers_purchase(message: Message, state: FSMContext, engine: ProgressionEngine) -> None:
    helper_id = int((await state.get_data())["helper_id"])
    if message.text == RU.BTN_BUY:
        status = await helper_service.buy_helper(engine, player_id_of(message), helper_id)
    else:
        status = await helper_service.upgrade_helper(engine, player_id_of(message), helper_id)
    await state.set_state(HelpersState.browsing)
    await message.answer(STATUS_TEXT[status])
    await _render_helpers(message, state, engine)


@router.message(F.text == RU.BTN_COLLECT)
@safe_handler
async def helpers_collect(message: Message, engine: ProgressionEngine) -> None:
    income = await engine.collect_helper_income(player_id_of(message))
    if not income.credited or not any(income.credited.values()):
        await message.answer(RU.HELPERS_NOTHING)
        return
    text = ", ".join(f"{format_amount(amount)} {currency_title(code)}" for code, amount in income.credited.items())
    await message.answer(RU.HELPERS_COLLECTED.format(income=text))
