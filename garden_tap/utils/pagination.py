"""Pagination helpers."""
from __future__ import annotations

from typing import Sequence, Tuple, TypeVar

from garden_tap.constants import PAGE_SIZE

T = TypeVar("T")


def slice_page(items: Sequence[T], page: int, page_size: int = PAGE_SIZE) -> Tuple[Sequence[T], bool, bool]:
    """Return a slice of ``items`` for the requested page and navigation flags.

    Pages past the end fall back to the last non-empty page.
    """

    if page_size <= 0:
        raise ValueError("page_size must be positive")
    last_page = max(0, (len(items) - 1) // page_size)
    page = min(max(0, page), last_page)
    start = page * page_size
    end = start + page_size
    return items[start:end], page > 0, end < len(items)


def page_selection(numbers_on_page: int) -> set[str]:
    """Button labels that select an entry on a page."""

    return {str(number) for number in range(1, numbers_on_page + 1)}
