"""FSM states used by the bot screens."""
from __future__ import annotations

from aiogram.fsm.state import State, StatesGroup


class LocationState(StatesGroup):
    browsing = State()
    confirm = State()


class ToolsState(StatesGroup):
    browsing = State()
    confirm = State()


class HelpersState(StatesGroup):
    browsing = State()
    confirm = State()


class StorageState(StatesGroup):
    viewing = State()


class ExchangeState(StatesGroup):
    browsing = State()
