"""Economic and progression related utilities."""
from __future__ import annotations

from datetime import datetime, timedelta
from math import floor
from typing import Optional, Tuple


def refill_energy(
    energy: int,
    max_energy: int,
    last_refill: datetime,
    now: datetime,
    period_seconds: int = 60,
) -> Tuple[int, datetime]:
    """Return energy and refill baseline after regenerating one point per period.

    The baseline only moves by whole periods so a partial period carries over
    to the next call. Nothing changes while energy is full or before a full
    period has elapsed.
    """

    if energy >= max_energy:
        return energy, last_refill
    elapsed = (now - last_refill).total_seconds()
    periods = floor(elapsed / period_seconds) if elapsed > 0 else 0
    if periods <= 0:
        return energy, last_refill
    new_energy = min(energy + periods, max_energy)
    return new_energy, last_refill + timedelta(seconds=periods * period_seconds)


def clamp_credit(amount: float, balance: float, capacity: Optional[float]) -> float:
    """Return how much of ``amount`` fits under ``capacity``."""

    if amount <= 0:
        return 0.0
    if capacity is None:
        return amount
    return max(0.0, min(amount, capacity - balance))


def helper_income(income_per_hour: float, elapsed_seconds: float) -> float:
    """Return income for ``elapsed_seconds`` rounded to cents."""

    if elapsed_seconds <= 0 or income_per_hour <= 0:
        return 0.0
    return round(income_per_hour * elapsed_seconds / 3600.0, 2)


def fill_percentage(amount: float, capacity: float) -> int:
    if capacity <= 0:
        return 0
    return min(100, int(floor(amount / capacity * 100)))
