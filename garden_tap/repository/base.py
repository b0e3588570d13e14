"""Storage port used by the services.

Every operation works on a :class:`PlayerState` aggregate: load it inside a
unit of work, mutate it in memory and save it back. A unit of work either
commits every saved aggregate or none of them.
"""
from __future__ import annotations

import abc
from contextlib import AbstractAsyncContextManager
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional, Set

from garden_tap.constants import Currency


@dataclass(slots=True)
class StorageSlot:
    """Capacity record for one location currency."""

    location_id: int
    level: int
    capacity: float


@dataclass(slots=True)
class PlayerState:
    player_id: str
    level: int
    experience: int
    energy: int
    max_energy: int
    last_energy_refill_time: datetime
    last_helper_collect_time: datetime
    currencies: Dict[Currency, float] = field(default_factory=dict)
    unlocked_tools: Set[int] = field(default_factory=set)
    unlocked_locations: Set[int] = field(default_factory=set)
    equipped_tools: Dict[int, int] = field(default_factory=dict)
    helpers: Dict[int, int] = field(default_factory=dict)
    storage: Dict[Currency, StorageSlot] = field(default_factory=dict)
    referral_code: Optional[str] = None
    referred_by: Optional[str] = None
    referrals_count: int = 0
    referral_coins: float = 0.0
    created: bool = False

    def balance(self, currency: Currency) -> float:
        return self.currencies.get(currency, 0.0)


@dataclass(slots=True)
class LeaderboardEntry:
    player_id: str
    level: int
    experience: int


class PlayerFactory(abc.ABC):
    """Builds the state of a player seen for the first time."""

    @abc.abstractmethod
    def new_player(self, player_id: str) -> PlayerState:
        raise NotImplementedError


class PlayerRepository(abc.ABC):
    """Player persistence bound to a single unit of work."""

    @abc.abstractmethod
    async def load_player(self, player_id: str, *, create: bool = True) -> PlayerState:
        """Return the player's state, locking it for the unit of work.

        Unknown players are created through the storage's factory unless
        ``create`` is false, in which case :class:`NotFoundError` is raised.
        """

    @abc.abstractmethod
    async def save_player(self, state: PlayerState) -> None:
        """Write ``state`` back; nothing is visible until the unit commits."""

    @abc.abstractmethod
    async def find_player_by_referral_code(self, code: str) -> Optional[PlayerState]:
        """Return the player owning ``code`` (locked), if any."""

    @abc.abstractmethod
    async def top_players(self, limit: int) -> List[LeaderboardEntry]:
        """Return players ordered by level and experience, best first."""


class Storage(abc.ABC):
    """Factory of units of work."""

    factory: Optional[PlayerFactory] = None

    def bind_factory(self, factory: PlayerFactory) -> None:
        self.factory = factory

    @abc.abstractmethod
    def begin(self) -> AbstractAsyncContextManager[PlayerRepository]:
        """Open a unit of work; leaving the block without an error commits it."""

    async def close(self) -> None:  # pragma: no cover - optional hook
        return None
