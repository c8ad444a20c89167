"""Cultural Footprint - a personal log of the movies, shows, books and music you consume.

Entries are typed in by hand or inferred by Gemini from a free-form note
and/or a photo, then browsed as a zoomable timeline.

Quick Start:
    >>> from footprint import EntryStore, JsonBlobStorage, build_timeline, Granularity
    >>> store = EntryStore(JsonBlobStorage(Path("~/.footprint").expanduser()))
    >>> store.load()
    >>> view = build_timeline(store.entries, "All", Granularity.YEAR)

CLI Usage:
    $ footprint ingest "Finished Dune last night, loved the worldbuilding"
    $ footprint timeline --granularity month
    $ footprint zoom
"""

__version__ = "0.1.0"

from footprint.core import (
    ALL_CATEGORIES,
    Category,
    EntryStore,
    Granularity,
    GuestbookStore,
    JsonBlobStorage,
    MediaItem,
    Message,
    TimelineZoom,
    apply_filter,
    build_timeline,
)

__all__ = [
    "__version__",
    "ALL_CATEGORIES",
    "Category",
    "EntryStore",
    "Granularity",
    "GuestbookStore",
    "JsonBlobStorage",
    "MediaItem",
    "Message",
    "TimelineZoom",
    "apply_filter",
    "build_timeline",
]
