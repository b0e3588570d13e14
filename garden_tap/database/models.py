"""ORM models for reference content and player progress."""
from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, Float, ForeignKey, Index, Integer, String, UniqueConstraint
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    pass


# Content catalog. Currency columns hold ``Currency`` codes and are parsed by
# ``ContentCatalog.from_records`` when loaded.


class ToolRow(Base):
    __tablename__ = "tools"

    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(String(100))
    character_id: Mapped[int] = mapped_column(Integer, index=True)
    unlock_level: Mapped[int] = mapped_column(Integer, default=1)
    unlock_cost: Mapped[float] = mapped_column(Float, default=0)
    currency: Mapped[str] = mapped_column(String(16))
    main_power: Mapped[float] = mapped_column(Float, default=0)
    location_power: Mapped[float] = mapped_column(Float, default=1)


class LocationRow(Base):
    __tablename__ = "locations"

    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(String(100))
    character_id: Mapped[int] = mapped_column(Integer)
    unlock_level: Mapped[int] = mapped_column(Integer, default=1)
    unlock_cost: Mapped[float] = mapped_column(Float, default=0)
    currency: Mapped[str] = mapped_column(String(16))
    background: Mapped[str] = mapped_column(String(200), default="")


class LevelRow(Base):
    __tablename__ = "levels"

    level: Mapped[int] = mapped_column(primary_key=True)
    required_exp: Mapped[int] = mapped_column(Integer)


class RewardRow(Base):
    __tablename__ = "rewards"

    id: Mapped[int] = mapped_column(primary_key=True)
    level: Mapped[int] = mapped_column(ForeignKey("levels.level", ondelete="CASCADE"), index=True)
    kind: Mapped[str] = mapped_column(String(30))
    amount: Mapped[float] = mapped_column(Float, default=0)
    currency: Mapped[Optional[str]] = mapped_column(String(16), nullable=True)
    target_id: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)


class HelperRow(Base):
    __tablename__ = "helpers"

    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(String(100))
    location_id: Mapped[int] = mapped_column(ForeignKey("locations.id", ondelete="CASCADE"), index=True)
    unlock_level: Mapped[int] = mapped_column(Integer, default=1)
    unlock_cost: Mapped[float] = mapped_column(Float, default=0)
    currency: Mapped[str] = mapped_column(String(16))
    max_level: Mapped[int] = mapped_column(Integer, default=10)


class HelperLevelRow(Base):
    __tablename__ = "helper_levels"

    helper_id: Mapped[int] = mapped_column(ForeignKey("helpers.id", ondelete="CASCADE"), primary_key=True)
    level: Mapped[int] = mapped_column(Integer, primary_key=True)
    income_per_hour: Mapped[float] = mapped_column(Float)
    upgrade_cost: Mapped[float] = mapped_column(Float)


class StorageLevelRow(Base):
    __tablename__ = "storage_levels"

    location_id: Mapped[int] = mapped_column(ForeignKey("locations.id", ondelete="CASCADE"), primary_key=True)
    level: Mapped[int] = mapped_column(Integer, primary_key=True)
    capacity: Mapped[float] = mapped_column(Float)
    upgrade_cost: Mapped[float] = mapped_column(Float, default=0)
    currency: Mapped[str] = mapped_column(String(16))


# Player progress.


class PlayerRow(Base):
    __tablename__ = "players"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    level: Mapped[int] = mapped_column(Integer, default=1)
    experience: Mapped[int] = mapped_column(Integer, default=0)
    energy: Mapped[int] = mapped_column(Integer, default=100)
    max_energy: Mapped[int] = mapped_column(Integer, default=100)
    last_energy_refill_time: Mapped[datetime] = mapped_column(DateTime(timezone=True))
    last_helper_collect_time: Mapped[datetime] = mapped_column(DateTime(timezone=True))
    referral_code: Mapped[Optional[str]] = mapped_column(String(16), unique=True, nullable=True)
    referred_by: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    referrals_count: Mapped[int] = mapped_column(Integer, default=0)
    referral_coins: Mapped[float] = mapped_column(Float, default=0)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True))
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True))

    __table_args__ = (Index("ix_players_rating", "level", "experience"),)


class PlayerCurrencyRow(Base):
    __tablename__ = "player_currencies"

    id: Mapped[int] = mapped_column(primary_key=True)
    player_id: Mapped[str] = mapped_column(ForeignKey("players.id", ondelete="CASCADE"), index=True)
    currency: Mapped[str] = mapped_column(String(16))
    amount: Mapped[float] = mapped_column(Float, default=0)

    __table_args__ = (UniqueConstraint("player_id", "currency", name="uq_player_currency"),)


class PlayerToolRow(Base):
    __tablename__ = "player_tools"

    id: Mapped[int] = mapped_column(primary_key=True)
    player_id: Mapped[str] = mapped_column(ForeignKey("players.id", ondelete="CASCADE"), index=True)
    tool_id: Mapped[int] = mapped_column(ForeignKey("tools.id", ondelete="CASCADE"))

    __table_args__ = (UniqueConstraint("player_id", "tool_id", name="uq_player_tool"),)


class PlayerEquippedToolRow(Base):
    __tablename__ = "player_equipped_tools"

    id: Mapped[int] = mapped_column(primary_key=True)
    player_id: Mapped[str] = mapped_column(ForeignKey("players.id", ondelete="CASCADE"), index=True)
    character_id: Mapped[int] = mapped_column(Integer)
    tool_id: Mapped[int] = mapped_column(ForeignKey("tools.id", ondelete="CASCADE"))

    __table_args__ = (UniqueConstraint("player_id", "character_id", name="uq_player_character"),)


class PlayerLocationRow(Base):
    __tablename__ = "player_locations"

    id: Mapped[int] = mapped_column(primary_key=True)
    player_id: Mapped[str] = mapped_column(ForeignKey("players.id", ondelete="CASCADE"), index=True)
    location_id: Mapped[int] = mapped_column(ForeignKey("locations.id", ondelete="CASCADE"))

    __table_args__ = (UniqueConstraint("player_id", "location_id", name="uq_player_location"),)


class PlayerHelperRow(Base):
    __tablename__ = "player_helpers"

    id: Mapped[int] = mapped_column(primary_key=True)
    player_id: Mapped[str] = mapped_column(ForeignKey("players.id", ondelete="CASCADE"), index=True)
    helper_id: Mapped[int] = mapped_column(ForeignKey("helpers.id", ondelete="CASCADE"))
    level: Mapped[int] = mapped_column(Integer, default=1)

    __table_args__ = (UniqueConstraint("player_id", "helper_id", name="uq_player_helper"),)


class PlayerStorageRow(Base):
    __tablename__ = "player_storage"

    id: Mapped[int] = mapped_column(primary_key=True)
    player_id: Mapped[str] = mapped_column(ForeignKey("players.id", ondelete="CASCADE"), index=True)
    location_id: Mapped[int] = mapped_column(ForeignKey("locations.id", ondelete="CASCADE"))
    currency: Mapped[str] = mapped_column(String(16))
    level: Mapped[int] = mapped_column(Integer, default=1)
    capacity: Mapped[float] = mapped_column(Float)

    __table_args__ = (UniqueConstraint("player_id", "currency", name="uq_player_storage_currency"),)
