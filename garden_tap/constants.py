"""Core constants and localized strings."""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict


class Currency(str, Enum):
    """Every currency known to the game.

    Raw codes coming from the database or from requests are turned into a
    ``Currency`` once, at the boundary, and never travel further as strings.
    """

    COINS = "coins"
    WOOD = "wood"
    DIRT = "dirt"
    WEED = "weed"
    GRAIN = "grain"

    @classmethod
    def parse(cls, value: object) -> "Currency":
        """Return the currency for ``value`` (case-insensitive code or member)."""

        if isinstance(value, Currency):
            return value
        if isinstance(value, str):
            return cls(value.strip().lower())
        raise ValueError(f"Unsupported currency identifier: {value!r}")


MAIN_CURRENCY = Currency.COINS


class RewardKind(str, Enum):
    MAIN_CURRENCY = "main_currency"
    LOCATION_CURRENCY = "location_currency"
    UNLOCK_TOOL = "unlock_tool"
    UNLOCK_LOCATION = "unlock_location"
    ENERGY = "energy"


class PurchaseStatus(str, Enum):
    """Outcome of a purchase or upgrade; only ``OK`` changes the player."""

    OK = "ok"
    INSUFFICIENT = "insufficient"
    ALREADY_OWNED = "already_owned"
    LEVEL_TOO_LOW = "level_too_low"
    MAX_LEVEL = "max_level"
    NOT_OWNED = "not_owned"
    ALREADY_FULL = "already_full"


class ReferralStatus(str, Enum):
    OK = "ok"
    NOT_FOUND = "not_found"
    OWN_CODE = "own_code"
    ALREADY_APPLIED = "already_applied"


@dataclass(frozen=True, slots=True)
class EnergyPackage:
    id: int
    name: str
    energy_amount: int
    price: int


ENERGY_PACKAGES: Dict[int, EnergyPackage] = {
    1: EnergyPackage(1, "Маленький пакет", 10, 50),
    2: EnergyPackage(2, "Средний пакет", 25, 100),
    3: EnergyPackage(3, "Большой пакет", 50, 180),
}

HELPER_MIN_COLLECT_SECONDS = 60
LEADERBOARD_SIZE = 10
PAGE_SIZE = 5

CURRENCY_TITLES: Dict[Currency, str] = {
    Currency.COINS: "Монеты",
    Currency.WOOD: "Брёвна",
    Currency.DIRT: "Грязь",
    Currency.WEED: "Сорняки",
    Currency.GRAIN: "Зерно",
}


@dataclass(frozen=True, slots=True)
class LocaleRU:
    """Russian localized strings used by the bot."""

    BTN_TAP: str = "Тап"
    BTN_TOOLS: str = "Инструменты"
    BTN_HELPERS: str = "Помощники"
    BTN_STORAGE: str = "Склад"
    BTN_EXCHANGE: str = "Обмен"
    BTN_PROFILE: str = "Профиль"
    BTN_FRIENDS: str = "Друзья"
    BTN_TOP: str = "Топ"
    BTN_LOCATIONS: str = "Локации"
    BTN_MENU: str = "В меню"
    BTN_PREV: str = "Назад страница"
    BTN_NEXT: str = "Вперёд страница"
    BTN_CANCEL: str = "Отмена"
    BTN_CONFIRM: str = "Подтвердить"
    BTN_EQUIP: str = "Экипировать"
    BTN_BUY: str = "Купить"
    BTN_UPGRADE: str = "Повысить"
    BTN_COLLECT: str = "Собрать доход"
    BTN_REFILL: str = "Обновить энергию"

    BOT_STARTED: str = "Бот запущен."
    WELCOME: str = "Добро пожаловать в «Сад тап-тап»! Выберите действие:"
    MENU_HINT: str = "Главное меню:"
    TOO_FAST: str = "Слишком быстро! Лимит тапов достигнут."
    ERROR: str = "Произошла ошибка. Попробуйте позже."
    NO_ENERGY: str = "Энергия закончилась. Подождите восстановления."
    NO_TOOL: str = "Сначала экипируйте инструмент."
    TAP_RESULT: str = "+{res} {res_name}, +{coins} монет, +{xp} опыта. Энергия: {energy}"
    LEVEL_UP: str = "Новый уровень: {lvl}! Награды: {rewards}"
    INSUFFICIENT_FUNDS: str = "Недостаточно средств."
    LEVEL_TOO_LOW: str = "Недостаточный уровень."
    ALREADY_OWNED: str = "Уже куплено."
    MAX_LEVEL: str = "Достигнут максимальный уровень."
    ENERGY_FULL: str = "Энергия уже полная."
    PURCHASE_OK: str = "Покупка успешна."
    UPGRADE_OK: str = "Повышение выполнено."
    EQUIP_OK: str = "Экипировано."
    EQUIP_NOITEM: str = "Сначала купите инструмент."
    HELPERS_COLLECTED: str = "Помощники принесли: {income}"
    HELPERS_NOTHING: str = "Пока нечего собирать."
    REFERRAL_CODE: str = "Ваш реферальный код: {code}\nПриглашено друзей: {count}, получено монет: {coins}"
    REFERRAL_OK: str = "Реферальный код применён!"
    REFERRAL_NOT_FOUND: str = "Реферальный код не найден."
    REFERRAL_OWN: str = "Нельзя использовать свой реферальный код."
    REFERRAL_ALREADY: str = "Вы уже применили реферальный код."
    PROFILE: str = (
        "Профиль\n"
        "Уровень: {lvl}\nОпыт: {xp}/{xp_need}\n"
        "Энергия: {energy}/{max_energy}\n"
        "{balances}"
    )
    TOOLS_HEADER: str = "Инструменты (номер для выбора):"
    HELPERS_HEADER: str = "Помощники (доход/час, уровень):"
    LOCATIONS_HEADER: str = "Локации (номер для выбора):"
    STORAGE_HEADER: str = "Склад (уровень {lvl}): {amount}/{capacity} ({pct}%)"
    STORAGE_NEXT: str = "Следующий уровень: {capacity} за {cost} монет."
    EXCHANGE_HEADER: str = "Пакеты энергии:"
    TOP_HEADER: str = "Лучшие игроки:"
    TOP_EMPTY: str = "Пока никого нет."
    NOT_OWNED: str = "Сначала откройте это."
    LOCATION_SELECTED: str = "Текущая локация: {name}"
    LOCATION_LOCKED: str = "Локация закрыта. Откройте её за {cost} монет (с {lvl} уровня)."
    NO_STORAGE: str = "На этой локации нет склада."
    CHOOSE_ACTION: str = "Выберите действие:"
    EMPTY_LIST: str = "Список пуст."

    CURRENCY: str = "монет"


RU = LocaleRU()
