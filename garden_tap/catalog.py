"""Read-only reference data consulted by the progression engine.

The catalog is built once from raw records (database rows or the seed
tables), validated, and then shared by every request. Currency codes are
parsed into :class:`~garden_tap.constants.Currency` here and nowhere else.
"""
from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from garden_tap.constants import Currency, RewardKind
from garden_tap.errors import CatalogError, NotFoundError


@dataclass(frozen=True, slots=True)
class Tool:
    id: int
    name: str
    character_id: int
    unlock_level: int
    unlock_cost: float
    unlock_currency: Currency
    main_power: float
    location_power: float


@dataclass(frozen=True, slots=True)
class Location:
    id: int
    name: str
    character_id: int
    unlock_level: int
    unlock_cost: float
    currency: Currency
    background: str = ""


@dataclass(frozen=True, slots=True)
class Reward:
    id: int
    level: int
    kind: RewardKind
    amount: float = 0
    currency: Optional[Currency] = None
    target_id: Optional[int] = None


@dataclass(frozen=True, slots=True)
class Level:
    level: int
    required_exp: int
    rewards: Tuple[Reward, ...] = ()


@dataclass(frozen=True, slots=True)
class Helper:
    id: int
    name: str
    location_id: int
    unlock_level: int
    unlock_cost: float
    currency: Currency
    max_level: int


@dataclass(frozen=True, slots=True)
class HelperLevel:
    helper_id: int
    level: int
    income_per_hour: float
    upgrade_cost: float


@dataclass(frozen=True, slots=True)
class StorageLevel:
    location_id: int
    level: int
    capacity: float
    upgrade_cost: float
    currency: Currency


def _currency(value: Any, context: str) -> Currency:
    try:
        return Currency.parse(value)
    except ValueError as exc:
        raise CatalogError(f"{context}: unknown currency {value!r}") from exc


def _optional_int(value: Any) -> Optional[int]:
    return None if value is None else int(value)


class ContentCatalog:
    """Immutable lookup tables for tools, locations, levels and helpers."""

    def __init__(
        self,
        tools: Iterable[Tool],
        locations: Iterable[Location],
        levels: Iterable[Level],
        helpers: Iterable[Helper] = (),
        helper_levels: Iterable[HelperLevel] = (),
        storage_levels: Iterable[StorageLevel] = (),
    ) -> None:
        self._tools: Dict[int, Tool] = {tool.id: tool for tool in tools}
        self._locations: Dict[int, Location] = {location.id: location for location in locations}
        self._levels: Dict[int, Level] = {level.level: level for level in levels}
        self._helpers: Dict[int, Helper] = {helper.id: helper for helper in helpers}

        helper_table: Dict[int, List[HelperLevel]] = defaultdict(list)
        for row in helper_levels:
            helper_table[row.helper_id].append(row)
        self._helper_levels = {key: tuple(sorted(rows, key=lambda r: r.level)) for key, rows in helper_table.items()}

        storage_table: Dict[int, List[StorageLevel]] = defaultdict(list)
        for row in storage_levels:
            storage_table[row.location_id].append(row)
        self._storage_levels = {key: tuple(sorted(rows, key=lambda r: r.level)) for key, rows in storage_table.items()}

        self._validate()

    @classmethod
    def from_records(
        cls,
        *,
        tools: Iterable[Mapping[str, Any]],
        locations: Iterable[Mapping[str, Any]],
        levels: Iterable[Mapping[str, Any]],
        rewards: Iterable[Mapping[str, Any]] = (),
        helpers: Iterable[Mapping[str, Any]] = (),
        helper_levels: Iterable[Mapping[str, Any]] = (),
        storage_levels: Iterable[Mapping[str, Any]] = (),
    ) -> "ContentCatalog":
        """Build a catalog from raw rows, parsing every loosely typed field."""

        rewards_by_level: Dict[int, List[Reward]] = defaultdict(list)
        for row in rewards:
            try:
                kind = RewardKind(row["kind"])
            except ValueError as exc:
                raise CatalogError(f"reward {row.get('id')}: unknown kind {row['kind']!r}") from exc
            currency = row.get("currency")
            rewards_by_level[int(row["level"])].append(
                Reward(
                    id=int(row["id"]),
                    level=int(row["level"]),
                    kind=kind,
                    amount=float(row.get("amount") or 0),
                    currency=None if currency is None else _currency(currency, f"reward {row['id']}"),
                    target_id=_optional_int(row.get("target_id")),
                )
            )

        return cls(
            tools=[
                Tool(
                    id=int(row["id"]),
                    name=row["name"],
                    character_id=int(row["character_id"]),
                    unlock_level=int(row["unlock_level"]),
                    unlock_cost=float(row["unlock_cost"]),
                    unlock_currency=_currency(row["currency"], f"tool {row['id']}"),
                    main_power=float(row["main_power"]),
                    location_power=float(row["location_power"]),
                )
                for row in tools
            ],
            locations=[
                Location(
                    id=int(row["id"]),
                    name=row["name"],
                    character_id=int(row["character_id"]),
                    unlock_level=int(row["unlock_level"]),
                    unlock_cost=float(row["unlock_cost"]),
                    currency=_currency(row["currency"], f"location {row['id']}"),
                    background=row.get("background") or "",
                )
                for row in locations
            ],
            levels=[
                Level(
                    level=int(row["level"]),
                    required_exp=int(row["required_exp"]),
                    rewards=tuple(sorted(rewards_by_level.get(int(row["level"]), []), key=lambda r: r.id)),
                )
                for row in levels
            ],
            helpers=[
                Helper(
                    id=int(row["id"]),
                    name=row["name"],
                    location_id=int(row["location_id"]),
                    unlock_level=int(row["unlock_level"]),
                    unlock_cost=float(row["unlock_cost"]),
                    currency=_currency(row["currency"], f"helper {row['id']}"),
                    max_level=int(row["max_level"]),
                )
                for row in helpers
            ],
            helper_levels=[
                HelperLevel(
                    helper_id=int(row["helper_id"]),
                    level=int(row["level"]),
                    income_per_hour=float(row["income_per_hour"]),
                    upgrade_cost=float(row["upgrade_cost"]),
                )
                for row in helper_levels
            ],
            storage_levels=[
                StorageLevel(
                    location_id=int(row["location_id"]),
                    level=int(row["level"]),
                    capacity=float(row["capacity"]),
                    upgrade_cost=float(row["upgrade_cost"]),
                    currency=_currency(row["currency"], f"storage level {row['location_id']}/{row['level']}"),
                )
                for row in storage_levels
            ],
        )

    def _validate(self) -> None:
        for level in self._levels.values():
            for reward in level.rewards:
                if reward.kind is RewardKind.LOCATION_CURRENCY and reward.currency is None:
                    raise CatalogError(f"reward {reward.id}: location currency reward without currency")
                if reward.kind is RewardKind.UNLOCK_TOOL and reward.target_id not in self._tools:
                    raise CatalogError(f"reward {reward.id}: unknown tool {reward.target_id}")
                if reward.kind is RewardKind.UNLOCK_LOCATION and reward.target_id not in self._locations:
                    raise CatalogError(f"reward {reward.id}: unknown location {reward.target_id}")
        for helper in self._helpers.values():
            if helper.location_id not in self._locations:
                raise CatalogError(f"helper {helper.id}: unknown location {helper.location_id}")
        ordered = sorted(self._levels.values(), key=lambda lvl: lvl.level)
        for previous, current in zip(ordered, ordered[1:]):
            if current.required_exp <= previous.required_exp:
                raise CatalogError(f"level {current.level}: required experience must grow with level")

    def get_tool(self, tool_id: int) -> Tool:
        try:
            return self._tools[tool_id]
        except KeyError:
            raise NotFoundError(f"tool {tool_id} not found") from None

    def get_location(self, location_id: int) -> Location:
        try:
            return self._locations[location_id]
        except KeyError:
            raise NotFoundError(f"location {location_id} not found") from None

    def get_helper(self, helper_id: int) -> Helper:
        try:
            return self._helpers[helper_id]
        except KeyError:
            raise NotFoundError(f"helper {helper_id} not found") from None

    def get_level(self, level: int) -> Optional[Level]:
        """Return the level definition or ``None`` past the last level."""

        return self._levels.get(level)

    def get_rewards_for_level(self, level: int) -> Tuple[Reward, ...]:
        definition = self._levels.get(level)
        return definition.rewards if definition else ()

    def get_helper_level_table(self, helper_id: int) -> Tuple[HelperLevel, ...]:
        return self._helper_levels.get(helper_id, ())

    def get_helper_level(self, helper_id: int, level: int) -> Optional[HelperLevel]:
        for row in self.get_helper_level_table(helper_id):
            if row.level == level:
                return row
        return None

    def get_storage_level(self, location_id: int, level: int) -> Optional[StorageLevel]:
        for row in self._storage_levels.get(location_id, ()):
            if row.level == level:
                return row
        return None

    def tools(self) -> List[Tool]:
        return sorted(self._tools.values(), key=lambda tool: tool.id)

    def tools_for_character(self, character_id: int) -> List[Tool]:
        return [tool for tool in self.tools() if tool.character_id == character_id]

    def locations(self) -> List[Location]:
        return sorted(self._locations.values(), key=lambda location: location.id)

    def helpers_for_location(self, location_id: int) -> List[Helper]:
        return sorted(
            (helper for helper in self._helpers.values() if helper.location_id == location_id),
            key=lambda helper: (helper.unlock_level, helper.id),
        )

    @property
    def max_level(self) -> int:
        return max(self._levels, default=1)
