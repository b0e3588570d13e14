"""Error taxonomy shared by the engine and the request layers."""
from __future__ import annotations


class GameError(Exception):
    """Base class for every error raised by the game core."""

    kind = "error"


class NotFoundError(GameError):
    """Unknown player, location, tool, helper or currency id."""

    kind = "not_found"


class NotOwnedError(GameError):
    """Action attempted with a tool or location the player does not own."""

    kind = "not_owned"


class NoToolEquippedError(NotOwnedError):
    kind = "no_tool_equipped"


class AlreadyOwnedError(GameError):
    """Reserved for the request layer; services report this as a ``PurchaseStatus``."""

    kind = "already_owned"


class InsufficientResourcesError(GameError):
    """Reserved for the request layer; services report this as a ``PurchaseStatus``."""

    kind = "insufficient_resources"


class TransientError(GameError):
    """Storage or network hiccup; the caller may retry."""

    kind = "transient"


class CatalogError(GameError):
    """Reference data failed validation while being loaded."""

    kind = "catalog"
