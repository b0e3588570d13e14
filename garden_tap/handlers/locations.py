"""Choosing and unlocking locations."""
from __future__ import annotations

from aiogram import F, Router
from aiogram.fsm.context import FSMContext
from aiogram.types import Message

from garden_tap.constants import PAGE_SIZE, RU, PurchaseStatus
from garden_tap.handlers.common import STATUS_TEXT, currency_title, format_amount, player_id_of, safe_handler
from garden_tap.keyboards.reply import kb_actions, kb_main_menu, kb_menu_only, kb_numeric_page
from garden_tap.services import exchange
from garden_tap.services.progression import ProgressionEngine, owns_location
from garden_tap.states import LocationState
from garden_tap.utils.pagination import page_selection, slice_page

router = Router()


async def _render_locations(message: Message, state: FSMContext, engine: ProgressionEngine) -> None:
    player = await engine.get_player_state(player_id_of(message))
    page = int((await state.get_data()).get("page", 0))
    sub, has_prev, has_next = slice_page(engine.catalog.locations(), page)
    if not sub:
        await message.answer(RU.EMPTY_LIST, reply_markup=kb_menu_only())
        return
    lines = [RU.LOCATIONS_HEADER]
    for index, location in enumerate(sub, 1):
        mark = "открыта" if owns_location(player, location) else f"ур. {location.unlock_level}, {format_amount(location.unlock_cost)} {RU.CURRENCY}"
        lines.append(f"[{index}] {location.name} ({currency_title(location.currency)}): {mark}")
    await message.answer(
        "\n".join(lines),
        reply_markup=kb_numeric_page(range(1, len(sub) + 1), has_prev, has_next),
    )
    await state.update_data(location_ids=[location.id for location in sub], page=page)


@router.message(F.text == RU.BTN_LOCATIONS)
@safe_handler
async def locations_root(message: Message, state: FSMContext, engine: ProgressionEngine) -> None:
    await state.set_state(LocationState.browsing)
    await state.update_data(page=0)
    await _render_locations(message, state, engine)


@router.message(LocationState.browsing, F.text.in_({RU.BTN_PREV, RU.BTN_NEXT}))
@safe_handler
async def locations_page(message: Message, state: FSMContext, engine: ProgressionEngine) -> None:
    step = -1 if message.text == RU.BTN_PREV else 1
    page = max(0, int((await state.get_data()).get("page", 0)) + step)
    await state.update_data(page=page)
    await _render_locations(message, state, engine)


@router.message(LocationState.browsing, F.text.in_(page_selection(PAGE_SIZE)))
@safe_handler
async def locations_choose(message: Message, state: FSMContext, engine: ProgressionEngine) -> None:
    location_ids = (await state.get_data()).get("location_ids", [])
    index = int(message.text) - 1
    if index < 0 or index >= len(location_ids):
        return
    location = engine.catalog.get_location(location_ids[index])
    player = await engine.get_player_state(player_id_of(message))
    if owns_location(player, location):
        await state.set_state(None)
        await state.update_data(location_id=location.id)
        await message.answer(RU.LOCATION_SELECTED.format(name=location.name), reply_markup=kb_main_menu())
        return
    await state.set_state(LocationState.confirm)
    await state.update_data(pending_location_id=location.id)
    await message.answer(
        RU.LOCATION_LOCKED.format(cost=format_amount(location.unlock_cost), lvl=location.unlock_level),
        reply_markup=kb_actions(RU.BTN_BUY),
    )


@router.message(LocationState.confirm, F.text == RU.BTN_BUY)
@safe_handler
async def locations_buy(message: Message, state: FSMContext, engine: ProgressionEngine) -> None:
    location_id = int((await state.get_data())["pending_location_id"])
    status = await exchange.unlock_location(engine, player_id_of(message), location_id)
    await state.set_state(None)
    if status is PurchaseStatus.OK:
        await state.update_data(location_id=location_id)
    await message.answer(STATUS_TEXT[status], reply_markup=kb_main_menu())
