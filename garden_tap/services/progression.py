"""Progression engine: taps, energy, levels and tools.

Every public coroutine runs as a single unit of work on the configured
:class:`~garden_tap.repository.base.Storage`. The player aggregate is loaded,
changed in memory and saved; any exception leaves the stored player as it
was.
"""
from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, AsyncIterator, Callable, Dict, List, Optional, Tuple

from garden_tap.catalog import ContentCatalog, Location, Reward, Tool
from garden_tap.config import SETTINGS, Settings
from garden_tap.constants import MAIN_CURRENCY, RewardKind
from garden_tap.errors import CatalogError, NoToolEquippedError, NotFoundError, NotOwnedError
from garden_tap.repository.base import PlayerFactory, PlayerRepository, PlayerState, Storage, StorageSlot
from garden_tap.services import wallet
from garden_tap.services.economy import refill_energy
from garden_tap.services.helpers import HelperIncome, accrue_income
from garden_tap.utils.time import utcnow

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class AppliedReward:
    level: int
    kind: str
    amount: float = 0
    currency: Optional[str] = None
    target_id: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "level": self.level,
            "type": self.kind,
            "amount": self.amount,
            "currency": self.currency,
            "targetId": self.target_id,
        }


@dataclass(slots=True)
class LevelResolution:
    level: int
    level_up: bool = False
    rewards: List[AppliedReward] = field(default_factory=list)


@dataclass(slots=True)
class TapResult:
    resources_gained: float
    main_currency_gained: float
    experience_gained: int
    level_up: bool
    level: int
    energy_left: int
    rewards: List[AppliedReward] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "resourcesGained": self.resources_gained,
            "mainCurrencyGained": self.main_currency_gained,
            "experienceGained": self.experience_gained,
            "levelUp": self.level_up,
            "level": self.level,
            "rewards": [reward.to_dict() for reward in self.rewards],
            "energyLeft": self.energy_left,
        }


@dataclass(slots=True)
class RefillResult:
    energy: int
    max_energy: int
    last_energy_refill_time: datetime

    def to_dict(self) -> Dict[str, Any]:
        return {
            "energy": self.energy,
            "maxEnergy": self.max_energy,
            "lastEnergyRefillTime": self.last_energy_refill_time.isoformat(),
        }


def owns_tool(state: PlayerState, tool: Tool) -> bool:
    """A tool is owned when bought, free or currently equipped."""

    return (
        tool.id in state.unlocked_tools
        or tool.unlock_cost == 0
        or state.equipped_tools.get(tool.character_id) == tool.id
    )


def owns_location(state: PlayerState, location: Location) -> bool:
    return location.id in state.unlocked_locations or location.unlock_cost == 0


class ProgressionEngine(PlayerFactory):
    """Resolves player actions against the content catalog."""

    def __init__(
        self,
        storage: Storage,
        catalog: ContentCatalog,
        settings: Settings = SETTINGS,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self.storage = storage
        self.catalog = catalog
        self.settings = settings
        self.clock = clock
        try:
            self._starter_tool = catalog.get_tool(settings.STARTER_TOOL_ID)
            self._starter_location = catalog.get_location(settings.STARTER_LOCATION_ID)
        except NotFoundError as exc:
            raise CatalogError(f"starter content missing: {exc}") from exc
        storage.bind_factory(self)

    # -- player lifecycle -------------------------------------------------

    def new_player(self, player_id: str) -> PlayerState:
        now = self.clock()
        state = PlayerState(
            player_id=player_id,
            level=1,
            experience=0,
            energy=self.settings.DEFAULT_MAX_ENERGY,
            max_energy=self.settings.DEFAULT_MAX_ENERGY,
            last_energy_refill_time=now,
            last_helper_collect_time=now,
            created=True,
        )
        self.unlock_location(state, self._starter_location)
        state.unlocked_tools.add(self._starter_tool.id)
        state.equipped_tools[self._starter_tool.character_id] = self._starter_tool.id
        return state

    @asynccontextmanager
    async def player_session(
        self, player_id: str, *, create: bool = True
    ) -> AsyncIterator[Tuple[PlayerRepository, PlayerState]]:
        """Load a player for one unit of work and save it when the block ends."""

        async with self.storage.begin() as repo:
            state = await repo.load_player(player_id, create=create)
            yield repo, state
            await repo.save_player(state)

    def now(self, now: Optional[datetime] = None) -> datetime:
        return now or self.clock()

    def unlock_location(self, state: PlayerState, location: Location) -> None:
        """Add ``location`` to the player and open its storage at level 1."""

        state.unlocked_locations.add(location.id)
        first = self.catalog.get_storage_level(location.id, 1)
        if first is not None and location.currency not in state.storage:
            state.storage[location.currency] = StorageSlot(location.id, 1, first.capacity)

    # -- levels -----------------------------------------------------------

    def _apply_reward(self, state: PlayerState, level: int, reward: Reward) -> AppliedReward:
        applied = AppliedReward(level=level, kind=reward.kind.value, target_id=reward.target_id)
        if reward.kind is RewardKind.MAIN_CURRENCY:
            applied.currency = MAIN_CURRENCY.value
            applied.amount = wallet.credit(state, MAIN_CURRENCY, reward.amount)
        elif reward.kind is RewardKind.LOCATION_CURRENCY:
            applied.currency = reward.currency.value
            applied.amount = wallet.credit(state, reward.currency, reward.amount)
        elif reward.kind is RewardKind.UNLOCK_TOOL:
            state.unlocked_tools.add(reward.target_id)
        elif reward.kind is RewardKind.UNLOCK_LOCATION:
            self.unlock_location(state, self.catalog.get_location(reward.target_id))
        elif reward.kind is RewardKind.ENERGY:
            state.max_energy += int(reward.amount)
            applied.amount = reward.amount
        return applied

    def resolve_levels(self, state: PlayerState) -> LevelResolution:
        """Raise the player's level while experience covers the current threshold.

        ``required_exp`` of a level is the total experience that completes it.
        Levels past the last defined one are never granted.
        """

        result = LevelResolution(level=state.level)
        while True:
            current = self.catalog.get_level(state.level)
            upcoming = self.catalog.get_level(state.level + 1)
            if current is None or upcoming is None or state.experience < current.required_exp:
                break
            state.level += 1
            result.level_up = True
            for reward in upcoming.rewards:
                result.rewards.append(self._apply_reward(state, state.level, reward))
        result.level = state.level
        if result.level_up:
            logger.info(
                "Level up",
                extra={"player_id": state.player_id, "level": state.level, "rewards": len(result.rewards)},
            )
        return result

    def add_experience(self, state: PlayerState, amount: int) -> LevelResolution:
        state.experience += max(0, int(amount))
        return self.resolve_levels(state)

    # -- operations -------------------------------------------------------

    async def tap(self, player_id: str, location_id: int, now: Optional[datetime] = None) -> TapResult:
        """Spend one energy to collect resources at ``location_id``."""

        location = self.catalog.get_location(location_id)
        moment = self.now(now)
        async with self.player_session(player_id) as (_, state):
            if not owns_location(state, location):
                raise NotOwnedError(f"location {location_id} is locked")
            tool_id = state.equipped_tools.get(location.character_id)
            if tool_id is None:
                raise NoToolEquippedError(f"no tool equipped for character {location.character_id}")
            if state.energy <= 0:
                return TapResult(0, 0, 0, False, state.level, 0)

            tool = self.catalog.get_tool(tool_id)
            resources = wallet.credit(state, location.currency, tool.location_power)
            coins = wallet.credit(state, MAIN_CURRENCY, tool.main_power)
            experience = int(round(tool.location_power))
            resolution = self.add_experience(state, experience)

            if state.energy >= state.max_energy:
                state.last_energy_refill_time = moment
            state.energy = max(0, state.energy - 1)

            return TapResult(
                resources_gained=resources,
                main_currency_gained=coins,
                experience_gained=experience,
                level_up=resolution.level_up,
                level=state.level,
                energy_left=state.energy,
                rewards=resolution.rewards,
            )

    async def buy_or_upgrade_tool(self, player_id: str, tool_id: int) -> bool:
        """Unlock a tool for its price; ``False`` when owned, too early or unaffordable."""

        tool = self.catalog.get_tool(tool_id)
        async with self.player_session(player_id) as (_, state):
            if owns_tool(state, tool) or state.level < tool.unlock_level:
                return False
            if not wallet.debit(state, tool.unlock_currency, tool.unlock_cost):
                return False
            state.unlocked_tools.add(tool.id)
            logger.info("Tool bought", extra={"player_id": player_id, "tool_id": tool_id})
            return True

    async def equip_tool(self, player_id: str, character_id: int, tool_id: int) -> None:
        tool = self.catalog.get_tool(tool_id)
        if tool.character_id != character_id:
            raise NotFoundError(f"tool {tool_id} does not belong to character {character_id}")
        async with self.player_session(player_id) as (_, state):
            if not owns_tool(state, tool):
                raise NotOwnedError(f"tool {tool_id} is not owned")
            state.unlocked_tools.add(tool.id)
            state.equipped_tools[character_id] = tool.id

    async def energy_refill(self, player_id: str, now: Optional[datetime] = None) -> RefillResult:
        """Regenerate energy for every whole period since the last refill."""

        moment = self.now(now)
        async with self.player_session(player_id) as (_, state):
            state.energy, state.last_energy_refill_time = refill_energy(
                state.energy,
                state.max_energy,
                state.last_energy_refill_time,
                moment,
                self.settings.ENERGY_REFILL_SECONDS,
            )
            return RefillResult(state.energy, state.max_energy, state.last_energy_refill_time)

    async def get_player_state(self, player_id: str) -> PlayerState:
        async with self.player_session(player_id) as (_, state):
            return state

    async def collect_helper_income(self, player_id: str, now: Optional[datetime] = None) -> HelperIncome:
        moment = self.now(now)
        async with self.player_session(player_id) as (_, state):
            return accrue_income(state, self.catalog, moment)

    def describe(self, state: PlayerState) -> Dict[str, Any]:
        """Return the camelCase snapshot used by the web client."""

        next_level = self.catalog.get_level(state.level)
        return {
            "id": state.player_id,
            "level": state.level,
            "experience": state.experience,
            "nextLevelExp": next_level.required_exp if next_level else None,
            "energy": state.energy,
            "maxEnergy": state.max_energy,
            "lastEnergyRefillTime": state.last_energy_refill_time.isoformat(),
            "currencies": {currency.value: amount for currency, amount in state.currencies.items()},
            "unlockedTools": sorted(
                tool.id for tool in self.catalog.tools() if owns_tool(state, tool)
            ),
            "unlockedLocations": sorted(
                location.id for location in self.catalog.locations() if owns_location(state, location)
            ),
            "equippedTools": {str(character): tool for character, tool in state.equipped_tools.items()},
            "helpers": {str(helper_id): level for helper_id, level in state.helpers.items()},
            "storage": {
                currency.value: {"locationId": slot.location_id, "level": slot.level, "capacity": slot.capacity}
                for currency, slot in state.storage.items()
            },
        }
