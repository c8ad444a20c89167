"""Core entry model, persistence and timeline logic."""

from footprint.core.filters import ALL_CATEGORIES, apply_filter
from footprint.core.models import (
    CATEGORY_STYLES,
    Category,
    CategoryStyle,
    MediaItem,
    Message,
    category_style,
    clean_tags,
    encode_cover_image,
    new_entry_id,
    parse_entry_date,
    parse_tags,
)
from footprint.core.storage import (
    JsonBlobStorage,
    PersistenceError,
    PersistenceReadError,
    PersistenceWriteError,
)
from footprint.core.store import DuplicateEntryError, EntryStore, GuestbookStore, seed_entries
from footprint.core.timeline import (
    UNKNOWN_GROUP,
    Granularity,
    TimelineGroup,
    TimelineView,
    build_timeline,
    group_entries,
    group_key,
    sort_entries,
)
from footprint.core.zoom import INITIAL_ZOOM, TimelineZoom, ZoomDirection, ZoomState, advance

__all__ = [
    # Models
    "Category",
    "CategoryStyle",
    "CATEGORY_STYLES",
    "MediaItem",
    "Message",
    "category_style",
    "clean_tags",
    "encode_cover_image",
    "new_entry_id",
    "parse_entry_date",
    "parse_tags",
    # Persistence
    "JsonBlobStorage",
    "PersistenceError",
    "PersistenceReadError",
    "PersistenceWriteError",
    "DuplicateEntryError",
    "EntryStore",
    "GuestbookStore",
    "seed_entries",
    # Filter & timeline
    "ALL_CATEGORIES",
    "apply_filter",
    "UNKNOWN_GROUP",
    "Granularity",
    "TimelineGroup",
    "TimelineView",
    "build_timeline",
    "group_entries",
    "group_key",
    "sort_entries",
    # Zoom
    "INITIAL_ZOOM",
    "TimelineZoom",
    "ZoomDirection",
    "ZoomState",
    "advance",
]
