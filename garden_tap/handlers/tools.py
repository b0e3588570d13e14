"""Handlers for buying and equipping tools."""
from __future__ import annotations

from typing import List

from aiogram import F, Router
from aiogram.fsm.context import FSMContext
from aiogram.types import Message

from garden_tap.catalog import Tool
from garden_tap.constants import PAGE_SIZE, RU
from garden_tap.errors import NotOwnedError
from garden_tap.handlers.common import currency_title, format_amount, player_id_of, safe_handler
from garden_tap.keyboards.reply import kb_actions, kb_main_menu, kb_menu_only, kb_numeric_page
from garden_tap.repository.base import PlayerState
from garden_tap.services.progression import ProgressionEngine, owns_tool
from garden_tap.states import ToolsState
from garden_tap.utils.pagination import page_selection, slice_page

router = Router()


def _format_tools(tools: List[Tool], player: PlayerState) -> str:
    lines = [RU.TOOLS_HEADER]
    for index, tool in enumerate(tools, 1):
        if player.equipped_tools.get(tool.character_id) == tool.id:
            mark = "экипирован"
        elif owns_tool(player, tool):
            mark = "куплен"
        else:
            mark = f"ур. {tool.unlock_level}, {format_amount(tool.unlock_cost)} {currency_title(tool.unlock_currency)}"
        lines.append(f"[{index}] {tool.name} (+{tool.location_power:g}/+{tool.main_power:g}): {mark}")
    return "\n".join(lines)


async def _render_tools(message: Message, state: FSMContext, engine: ProgressionEngine) -> None:
    data = await state.get_data()
    location = engine.catalog.get_location(int(data.get("location_id", engine.settings.STARTER_LOCATION_ID)))
    player = await engine.get_player_state(player_id_of(message))
    page = int(data.get("page", 0))
    sub, has_prev, has_next = slice_page(engine.catalog.tools_for_character(location.character_id), page)
    if not sub:
        await message.answer(RU.EMPTY_LIST, reply_markup=kb_menu_only())
        await state.update_data(tool_ids=[], page=page)
        return
    await message.answer(
        _format_tools(sub, player),
        reply_markup=kb_numeric_page(range(1, len(sub) + 1), has_prev, has_next),
    )
    await state.update_data(tool_ids=[tool.id for tool in sub], page=page)


@router.message(F.text == RU.BTN_TOOLS)
@safe_handler
async def tools_root(message: Message, state: FSMContext, engine: ProgressionEngine) -> None:
    await state.set_state(ToolsState.browsing)
    await state.update_data(page=0)
    await _render_tools(message, state, engine)


@router.message(ToolsState.browsing, F.text.in_({RU.BTN_PREV, RU.BTN_NEXT}))
@safe_handler
async def tools_page(message: Message, state: FSMContext, engine: ProgressionEngine) -> None:
    step = -1 if message.text == RU.BTN_PREV else 1
    page = max(0, int((await state.get_data()).get("page", 0)) + step)
    await state.update_data(page=page)
    await _render_tools(message, state, engine)


@router.message(ToolsState.browsing, F.text.in_(page_selection(PAGE_SIZE)))
@safe_handler
async def tools_choose(message: Message, state: FSMContext, engine: ProgressionEngine) -> None:
    tool_ids = (await state.get_data()).get("tool_ids", [])
    index = int(message.text) - 1
    if index < 0 or index >= len(tool_ids):
        return
    tool = engine.catalog.get_tool(tool_ids[index])
    player = await engine.get_player_state(player_id_of(message))
    action = RU.BTN_EQUIP if owns_tool(player, tool) else RU.BTN_BUY
    await state.set_state(ToolsState.confirm)
    await state.update_data(tool_id=tool.id)
    await message.answer(f"{tool.name}: {RU.CHOOSE_ACTION}", reply_markup=kb_actions(action))


@router.message(ToolsState.confirm, F.text == RU.BTN_BUY)
@safe_handler
async def tools_buy(message: Message, state: FSMContext, engine: ProgressionEngine) -> None:
    tool = engine.catalog.get_tool(int((await state.get_data())["tool_id"]))
    player_id = player_id_of(message)
    if not await engine.buy_or_upgrade_tool(player_id, tool.id):
        player = await engine.get_player_state(player_id)
        if owns_tool(player, tool):
            text = RU.ALREADY_OWNED
        elif player.level < tool.unlock_level:
            text = RU.LEVEL_TOO_LOW
        else:
            text = RU.INSUFFICIENT_FUNDS
        await state.set_state(ToolsState.browsing)
        await message.answer(text, reply_markup=kb_menu_only())
        return
    await message.answer(RU.PURCHASE_OK, reply_markup=kb_actions(RU.BTN_EQUIP))


@router.message(ToolsState.confirm, F.text == RU.BTN_EQUIP)
@safe_handler
async def tools_equip(message: Message, state: FSMContext, engine: ProgressionEngine) -> None:
    tool = engine.catalog.get_tool(int((await state.get_data())["tool_id"]))
    try:
        await engine.equip_tool(player_id_of(message), tool.character_id, tool.id)
    except NotOwnedError:
        await message.answer(RU.EQUIP_NOITEM, reply_markup=kb_menu_only())
        return
    await state.set_state(None)
    await message.answer(RU.EQUIP_OK, reply_markup=kb_main_menu())
