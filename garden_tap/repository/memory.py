"""Process-local storage adapter, used by tests and offline play."""
from __future__ import annotations

import asyncio
import copy
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Dict, List, Optional

from garden_tap.errors import NotFoundError
from garden_tap.repository.base import LeaderboardEntry, PlayerRepository, PlayerState, Storage

logger = logging.getLogger(__name__)


class _MemoryRepository(PlayerRepository):
    def __init__(self, storage: "InMemoryStorage") -> None:
        self._storage = storage
        self._pending: Dict[str, PlayerState] = {}

    async def load_player(self, player_id: str, *, create: bool = True) -> PlayerState:
        if player_id in self._pending:
            return copy.deepcopy(self._pending[player_id])
        stored = self._storage.players.get(player_id)
        if stored is not None:
            return copy.deepcopy(stored)
        if not create or self._storage.factory is None:
            raise NotFoundError(f"player {player_id} not found")
        state = self._storage.factory.new_player(player_id)
        self._pending[player_id] = copy.deepcopy(state)
        return state

    async def save_player(self, state: PlayerState) -> None:
        self._pending[state.player_id] = copy.deepcopy(state)

    async def find_player_by_referral_code(self, code: str) -> Optional[PlayerState]:
        for player_id in list(self._pending) + list(self._storage.players):
            state = self._pending.get(player_id) or self._storage.players[player_id]
            if state.referral_code == code:
                return copy.deepcopy(state)
        return None

    async def top_players(self, limit: int) -> List[LeaderboardEntry]:
        merged = {**self._storage.players, **self._pending}
        ordered = sorted(merged.values(), key=lambda s: (-s.level, -s.experience, s.player_id))
        return [LeaderboardEntry(s.player_id, s.level, s.experience) for s in ordered[:limit]]

    def commit(self) -> None:
        for player_id, state in self._pending.items():
            state.created = False
            self._storage.players[player_id] = state


class InMemoryStorage(Storage):
    """Keeps players in a dict; units of work run one at a time."""

    def __init__(self) -> None:
        self.players: Dict[str, PlayerState] = {}
        self._lock = asyncio.Lock()

    @asynccontextmanager
    async def begin(self) -> AsyncIterator[PlayerRepository]:
        async with self._lock:
            repo = _MemoryRepository(self)
            try:
                yield repo
            except Exception:
                logger.debug("Discarding %s pending player states", len(repo._pending))
                raise
            repo.commit()
