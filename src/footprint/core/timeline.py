"""Timeline - sorting and grouping of entries for display.

Everything here is a pure function of (entries, category, granularity).
Nothing is cached; callers re-derive the view from the current store
snapshot whenever anything changes.

Example:
    >>> view = build_timeline(store.entries, "All", Granularity.YEAR)
    >>> [group.key for group in view.groups]
    ['2024', '2023']
"""

from __future__ import annotations

from enum import Enum
from typing import Iterable

from pydantic import BaseModel, Field, computed_field

from footprint.core.filters import ALL_CATEGORIES, apply_filter
from footprint.core.models import Category, MediaItem

UNKNOWN_GROUP = "Unknown"

# Sort position of entries whose date cannot be parsed; below any real date
_UNPARSEABLE_ORDINAL = 0


class Granularity(str, Enum):
    """Timeline zoom level.

    Attributes:
        DETAIL: One card per entry, no grouping.
        MONTH: Entries grouped by ``YYYY-MM``.
        YEAR: Entries grouped by ``YYYY``.
    """

    DETAIL = "detail"
    MONTH = "month"
    YEAR = "year"


class TimelineGroup(BaseModel):
    """A named bucket of entries at month or year granularity."""

    key: str
    items: list[MediaItem] = Field(default_factory=list)

    @computed_field
    @property
    def count(self) -> int:
        return len(self.items)


class TimelineView(BaseModel):
    """Everything a renderer needs for one timeline state.

    Attributes:
        granularity: The zoom level the view was built for.
        entries: Filtered entries, most recent first.
        groups: Ordered groups; empty at DETAIL granularity.
    """

    granularity: Granularity
    entries: list[MediaItem] = Field(default_factory=list)
    groups: list[TimelineGroup] = Field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.entries


def _sort_key(entry: MediaItem) -> int:
    parsed = entry.parsed_date
    return parsed.toordinal() if parsed is not None else _UNPARSEABLE_ORDINAL


def sort_entries(entries: Iterable[MediaItem]) -> list[MediaItem]:
    """Sort entries by date, most recent first.

    Unparseable dates compare as the minimum value, so they end up last.
    The sort is stable: entries with equal dates keep their input order.
    """
    return sorted(entries, key=_sort_key, reverse=True)


def group_key(entry: MediaItem, granularity: Granularity) -> str:
    """Return the group an entry falls into at month or year granularity."""
    granularity = Granularity(granularity)
    if granularity == Granularity.DETAIL:
        raise ValueError("Detail granularity has no groups")

    parsed = entry.parsed_date
    if parsed is None:
        return UNKNOWN_GROUP
    if granularity == Granularity.YEAR:
        return f"{parsed.year:04d}"
    return f"{parsed.year:04d}-{parsed.month:02d}"


def group_entries(entries: Iterable[MediaItem], granularity: Granularity) -> list[TimelineGroup]:
    """Partition entries into groups ordered by key, descending.

    Keys are compared as plain strings, so "Unknown" is placed wherever it
    falls lexicographically (ahead of all numeric keys).
    """
    buckets: dict[str, list[MediaItem]] = {}
    for entry in sort_entries(entries):
        buckets.setdefault(group_key(entry, granularity), []).append(entry)

    return [TimelineGroup(key=key, items=buckets[key]) for key in sorted(buckets, reverse=True)]


def build_timeline(
    entries: Iterable[MediaItem],
    category: Category | str = ALL_CATEGORIES,
    granularity: Granularity = Granularity.DETAIL,
) -> TimelineView:
    """Filter, sort and (for month/year) group entries in one pass."""
    granularity = Granularity(granularity)
    ordered = sort_entries(apply_filter(entries, category))

    groups: list[TimelineGroup] = []
    if granularity != Granularity.DETAIL:
        groups = group_entries(ordered, granularity)

    return TimelineView(granularity=granularity, entries=ordered, groups=groups)
