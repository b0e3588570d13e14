"""Energy packages for coins."""
from __future__ import annotations

from aiogram import F, Router
from aiogram.fsm.context import FSMContext
from aiogram.types import Message

from garden_tap.constants import ENERGY_PACKAGES, RU
from garden_tap.handlers.common import STATUS_TEXT, player_id_of, safe_handler
from garden_tap.keyboards.reply import kb_numeric_page
from garden_tap.services import exchange
from garden_tap.services.progression import ProgressionEngine
from garden_tap.states import ExchangeState

router = Router()


def _format_packages() -> str:
    lines = [RU.EXCHANGE_HEADER]
    for package in ENERGY_PACKAGES.values():
        lines.append(f"[{package.id}] {package.name}: +{package.energy_amount} энергии за {package.price} {RU.CURRENCY}")
    return "\n".join(lines)


@router.message(F.text == RU.BTN_EXCHANGE)
@safe_handler
async def exchange_root(message: Message, state: FSMContext) -> None:
    await state.set_state(ExchangeState.browsing)
    await message.answer(_format_packages(), reply_markup=kb_numeric_page(ENERGY_PACKAGES, False, False))


@router.message(ExchangeState.browsing, F.text.in_({str(package_id) for package_id in ENERGY_PACKAGES}))
@safe_handler
async def exchange_buy(message: Message, engine: ProgressionEngine) -> None:
    player_id = player_id_of(message)
    await engine.energy_refill(player_id)
    status = await exchange.buy_energy(engine, player_id, int(message.text))
    await message.answer(STATUS_TEXT[status])
