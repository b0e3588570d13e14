"""Reply keyboard builders used across handlers."""
from __future__ import annotations

from typing import Iterable, List

from aiogram.types import KeyboardButton, ReplyKeyboardMarkup

from garden_tap.constants import RU


def _menu_button(text: str) -> KeyboardButton:
    return KeyboardButton(text=text)


def kb_main_menu() -> ReplyKeyboardMarkup:
    """Main navigation keyboard."""

    keyboard = [
        [_menu_button(RU.BTN_TAP), _menu_button(RU.BTN_LOCATIONS)],
        [_menu_button(RU.BTN_TOOLS), _menu_button(RU.BTN_HELPERS)],
        [_menu_button(RU.BTN_STORAGE), _menu_button(RU.BTN_EXCHANGE)],
        [_menu_button(RU.BTN_PROFILE), _menu_button(RU.BTN_FRIENDS), _menu_button(RU.BTN_TOP)],
    ]
    return ReplyKeyboardMarkup(keyboard=keyboard, resize_keyboard=True)


def kb_menu_only() -> ReplyKeyboardMarkup:
    """Keyboard with a single "menu" button."""

    keyboard = [[_menu_button(RU.BTN_MENU)]]
    return ReplyKeyboardMarkup(keyboard=keyboard, resize_keyboard=True)


def kb_tap() -> ReplyKeyboardMarkup:
    keyboard = [[_menu_button(RU.BTN_TAP)], [_menu_button(RU.BTN_MENU)]]
    return ReplyKeyboardMarkup(keyboard=keyboard, resize_keyboard=True)


def kb_numeric_page(numbers: Iterable[int], show_prev: bool, show_next: bool) -> ReplyKeyboardMarkup:
    """Keyboard with numeric selection and optional navigation."""

    number_buttons = [_menu_button(str(num)) for num in numbers]
    keyboard: List[List[KeyboardButton]] = [number_buttons]
    nav_row: List[KeyboardButton] = []
    if show_prev:
        nav_row.append(_menu_button(RU.BTN_PREV))
    if show_next:
        nav_row.append(_menu_button(RU.BTN_NEXT))
    if nav_row:
        keyboard.append(nav_row)
    keyboard.append([_menu_button(RU.BTN_MENU)])
    return ReplyKeyboardMarkup(keyboard=keyboard, resize_keyboard=True)


def kb_actions(*actions: str) -> ReplyKeyboardMarkup:
    """Row of action buttons followed by cancel and menu."""

    keyboard = [
        [_menu_button(text) for text in actions],
        [_menu_button(RU.BTN_CANCEL), _menu_button(RU.BTN_MENU)],
    ]
    return ReplyKeyboardMarkup(keyboard=keyboard, resize_keyboard=True)


def kb_profile_menu() -> ReplyKeyboardMarkup:
    keyboard = [
        [_menu_button(RU.BTN_REFILL), _menu_button(RU.BTN_COLLECT)],
        [_menu_button(RU.BTN_MENU)],
    ]
    return ReplyKeyboardMarkup(keyboard=keyboard, resize_keyboard=True)
