"""SQLAlchemy storage adapter.

Works with the embedded SQLite database (aiosqlite) and with any networked
database SQLAlchemy has an async driver for. One unit of work is one session
transaction; player rows are locked with ``SELECT ... FOR UPDATE`` where the
backend supports it.
"""
from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import Any, AsyncIterator, Dict, List, Optional

from sqlalchemy import select
from sqlalchemy.exc import OperationalError
from sqlalchemy.exc import TimeoutError as PoolTimeoutError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from garden_tap.catalog import ContentCatalog
from garden_tap.constants import Currency
from garden_tap.database.models import (
    HelperLevelRow,
    HelperRow,
    LevelRow,
    LocationRow,
    PlayerCurrencyRow,
    PlayerEquippedToolRow,
    PlayerHelperRow,
    PlayerLocationRow,
    PlayerRow,
    PlayerStorageRow,
    PlayerToolRow,
    RewardRow,
    StorageLevelRow,
    ToolRow,
)
from garden_tap.errors import NotFoundError, TransientError
from garden_tap.repository.base import (
    LeaderboardEntry,
    PlayerRepository,
    PlayerState,
    Storage,
    StorageSlot,
)
from garden_tap.utils.time import ensure_aware, utcnow

logger = logging.getLogger(__name__)


@dataclass
class _LoadedRows:
    player: PlayerRow
    currencies: Dict[Currency, PlayerCurrencyRow] = field(default_factory=dict)
    tools: set = field(default_factory=set)
    locations: set = field(default_factory=set)
    equipped: Dict[int, PlayerEquippedToolRow] = field(default_factory=dict)
    helpers: Dict[int, PlayerHelperRow] = field(default_factory=dict)
    storage: Dict[Currency, PlayerStorageRow] = field(default_factory=dict)


class SqlPlayerRepository(PlayerRepository):
    def __init__(self, session: AsyncSession, storage: "SqlStorage") -> None:
        self.session = session
        self._storage = storage
        self._rows: Dict[str, _LoadedRows] = {}

    async def _player_row(self, *criteria: Any) -> Optional[PlayerRow]:
        stmt = select(PlayerRow).where(*criteria).with_for_update()
        return await self.session.scalar(stmt)

    async def load_player(self, player_id: str, *, create: bool = True) -> PlayerState:
        row = await self._player_row(PlayerRow.id == player_id)
        if row is None:
            if not create or self._storage.factory is None:
                raise NotFoundError(f"player {player_id} not found")
            return await self._create(player_id)
        return await self._hydrate(row)

    async def _create(self, player_id: str) -> PlayerState:
        now = utcnow()
        state = self._storage.factory.new_player(player_id)
        row = PlayerRow(id=player_id, created_at=now, updated_at=now)
        self._copy_scalars(state, row)
        self.session.add(row)
        await self.session.flush()
        self._rows[player_id] = _LoadedRows(player=row)
        await self.save_player(state)
        logger.info("Player created", extra={"player_id": player_id})
        return state

    async def _hydrate(self, row: PlayerRow) -> PlayerState:
        loaded = _LoadedRows(player=row)
        player_id = row.id

        for item in await self.session.scalars(select(PlayerCurrencyRow).where(PlayerCurrencyRow.player_id == player_id)):
            loaded.currencies[Currency.parse(item.currency)] = item
        loaded.tools = set(
            await self.session.scalars(select(PlayerToolRow.tool_id).where(PlayerToolRow.player_id == player_id))
        )
        loaded.locations = set(
            await self.session.scalars(
                select(PlayerLocationRow.location_id).where(PlayerLocationRow.player_id == player_id)
            )
        )
        for item in await self.session.scalars(
            select(PlayerEquippedToolRow).where(PlayerEquippedToolRow.player_id == player_id)
        ):
            loaded.equipped[item.character_id] = item
        for item in await self.session.scalars(select(PlayerHelperRow).where(PlayerHelperRow.player_id == player_id)):
            loaded.helpers[item.helper_id] = item
        for item in await self.session.scalars(select(PlayerStorageRow).where(PlayerStorageRow.player_id == player_id)):
            loaded.storage[Currency.parse(item.currency)] = item
        self._rows[player_id] = loaded

        return PlayerState(
            player_id=player_id,
            level=row.level,
            experience=row.experience,
            energy=row.energy,
            max_energy=row.max_energy,
            last_energy_refill_time=ensure_aware(row.last_energy_refill_time),
            last_helper_collect_time=ensure_aware(row.last_helper_collect_time),
            currencies={currency: item.amount for currency, item in loaded.currencies.items()},
            unlocked_tools=set(loaded.tools),
            unlocked_locations=set(loaded.locations),
            equipped_tools={character: item.tool_id for character, item in loaded.equipped.items()},
            helpers={helper_id: item.level for helper_id, item in loaded.helpers.items()},
            storage={
                currency: StorageSlot(item.location_id, item.level, item.capacity)
                for currency, item in loaded.storage.items()
            },
            referral_code=row.referral_code,
            referred_by=row.referred_by,
            referrals_count=row.referrals_count,
            referral_coins=row.referral_coins,
        )

    @staticmethod
    def _copy_scalars(state: PlayerState, row: PlayerRow) -> None:
        row.level = state.level
        row.experience = state.experience
        row.energy = state.energy
        row.max_energy = state.max_energy
        row.last_energy_refill_time = state.last_energy_refill_time
        row.last_helper_collect_time = state.last_helper_collect_time
        row.referral_code = state.referral_code
        row.referred_by = state.referred_by
        row.referrals_count = state.referrals_count
        row.referral_coins = state.referral_coins

    async def save_player(self, state: PlayerState) -> None:
        loaded = self._rows.get(state.player_id)
        if loaded is None:
            raise NotFoundError(f"player {state.player_id} was not loaded in this transaction")
        player_id = state.player_id
        self._copy_scalars(state, loaded.player)
        loaded.player.updated_at = utcnow()

        for currency, amount in state.currencies.items():
            item = loaded.currencies.get(currency)
            if item is None:
                item = PlayerCurrencyRow(player_id=player_id, currency=currency.value, amount=amount)
                self.session.add(item)
                loaded.currencies[currency] = item
            else:
                item.amount = amount

        for tool_id in state.unlocked_tools - loaded.tools:
            self.session.add(PlayerToolRow(player_id=player_id, tool_id=tool_id))
        loaded.tools |= state.unlocked_tools
        for location_id in state.unlocked_locations - loaded.locations:
            self.session.add(PlayerLocationRow(player_id=player_id, location_id=location_id))
        loaded.locations |= state.unlocked_locations

        for character_id, tool_id in state.equipped_tools.items():
            item = loaded.equipped.get(character_id)
            if item is None:
                item = PlayerEquippedToolRow(player_id=player_id, character_id=character_id, tool_id=tool_id)
                self.session.add(item)
                loaded.equipped[character_id] = item
            else:
                item.tool_id = tool_id

        for helper_id, level in state.helpers.items():
            item = loaded.helpers.get(helper_id)
            if item is None:
                item = PlayerHelperRow(player_id=player_id, helper_id=helper_id, level=level)
                self.session.add(item)
                loaded.helpers[helper_id] = item
            else:
                item.level = level

        for currency, slot in state.storage.items():
            item = loaded.storage.get(currency)
            if item is None:
                item = PlayerStorageRow(
                    player_id=player_id,
                    location_id=slot.location_id,
                    currency=currency.value,
                    level=slot.level,
                    capacity=slot.capacity,
                )
                self.session.add(item)
                loaded.storage[currency] = item
            else:
                item.level = slot.level
                item.capacity = slot.capacity

        await self.session.flush()

    async def find_player_by_referral_code(self, code: str) -> Optional[PlayerState]:
        row = await self._player_row(PlayerRow.referral_code == code)
        if row is None:
            return None
        return await self._hydrate(row)

    async def top_players(self, limit: int) -> List[LeaderboardEntry]:
        rows = await self.session.execute(
            select(PlayerRow.id, PlayerRow.level, PlayerRow.experience)
            .order_by(PlayerRow.level.desc(), PlayerRow.experience.desc(), PlayerRow.id)
            .limit(limit)
        )
        return [LeaderboardEntry(player_id, level, experience) for player_id, level, experience in rows.all()]


class SqlStorage(Storage):
    """Storage backed by an ``async_sessionmaker``."""

    def __init__(self, session_maker: async_sessionmaker[AsyncSession]) -> None:
        self.session_maker = session_maker

    @asynccontextmanager
    async def begin(self) -> AsyncIterator[PlayerRepository]:
        try:
            async with self.session_maker() as session:
                async with session.begin():
                    yield SqlPlayerRepository(session, self)
        except (OperationalError, PoolTimeoutError, asyncio.TimeoutError) as exc:
            logger.warning("Storage unavailable: %s", exc)
            raise TransientError("storage temporarily unavailable") from exc


def _as_dict(row: Any) -> Dict[str, Any]:
    return {column.key: getattr(row, column.key) for column in row.__table__.columns}


async def load_catalog(session_maker: async_sessionmaker[AsyncSession]) -> ContentCatalog:
    """Read every content table and build a validated catalog."""

    async with session_maker() as session:
        tables = {}
        for name, model in (
            ("tools", ToolRow),
            ("locations", LocationRow),
            ("levels", LevelRow),
            ("rewards", RewardRow),
            ("helpers", HelperRow),
            ("helper_levels", HelperLevelRow),
            ("storage_levels", StorageLevelRow),
        ):
            tables[name] = [_as_dict(row) for row in await session.scalars(select(model))]
    catalog = ContentCatalog.from_records(**tables)
    logger.info("Catalog loaded", extra={"tools": len(tables["tools"]), "levels": len(tables["levels"])})
    return catalog
