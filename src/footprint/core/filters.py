"""Category filter applied before timeline aggregation."""

from __future__ import annotations

from typing import Iterable

from footprint.core.models import Category, MediaItem

ALL_CATEGORIES = "All"


def apply_filter(entries: Iterable[MediaItem], category: Category | str = ALL_CATEGORIES) -> list[MediaItem]:
    """Keep only entries of the given category, preserving input order.

    Args:
        entries: Entries to narrow.
        category: A Category (or its value), or "All" for no filtering.

    Raises:
        ValueError: If category is neither "All" nor a known category.
    """
    if category == ALL_CATEGORIES:
        return list(entries)

    wanted = Category(category)
    return [entry for entry in entries if entry.category == wanted]
