"""Core data models for Cultural Footprint.

This module holds the persisted record types and the small helpers that
operate on single records:

1. Category and its display metadata (CATEGORY_STYLES)
2. MediaItem, one consumed work
3. Message, one guestbook note

Persisted JSON keeps the keys written by earlier clients (``coverImage``,
and ``type`` accepted on read as the legacy name of ``category``).
"""

from __future__ import annotations

import base64
import re
import uuid
from datetime import date, datetime, timezone
from enum import Enum
from typing import Any, NamedTuple

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


# =============================================================================
# Enums
# =============================================================================


class Category(str, Enum):
    """The closed set of media kinds an entry can belong to."""

    MOVIE = "Movie"
    TV = "TV"
    BOOK = "Book"
    MUSIC = "Music"


class CategoryStyle(NamedTuple):
    """Display metadata for one category.

    Attributes:
        label: English label.
        localized_label: Chinese label.
        icon: Icon name used by presentation layers.
        color: Rich color name used by the terminal front end.
    """

    label: str
    localized_label: str
    icon: str
    color: str


CATEGORY_STYLES: dict[Category, CategoryStyle] = {
    Category.MOVIE: CategoryStyle("Movie", "电影", "film", "blue"),
    Category.TV: CategoryStyle("TV", "剧集", "tv", "magenta"),
    Category.BOOK: CategoryStyle("Book", "书籍", "book-open", "yellow"),
    Category.MUSIC: CategoryStyle("Music", "音乐", "musical-note", "green"),
}

_missing_styles = set(Category) - set(CATEGORY_STYLES)
if _missing_styles:
    raise RuntimeError(f"CATEGORY_STYLES is missing {sorted(c.value for c in _missing_styles)}")


def category_style(category: Category) -> CategoryStyle:
    """Return the display metadata for a category."""
    return CATEGORY_STYLES[Category(category)]


# =============================================================================
# Helpers
# =============================================================================


DEFAULT_RATING = 3
MIN_RATING = 1
MAX_RATING = 5


def new_entry_id() -> str:
    """Generate a fresh opaque identifier."""
    return str(uuid.uuid4())


def clean_tags(tags: list[str]) -> list[str]:
    """Drop empty and whitespace-only tags, keeping order and duplicates."""
    return [tag for tag in tags if tag.strip()]


def parse_tags(text: str) -> list[str]:
    """Split a comma separated tag field the way the edit form does.

    Each piece is trimmed; empty pieces are kept until save time,
    when clean_tags() removes them.
    """
    return [piece.strip() for piece in text.split(",")]


_PARTIAL_DATE = re.compile(r"^(\d{4})(?:-(\d{2}))?$")


def parse_entry_date(value: Any) -> date | None:
    """Parse an entry date, returning None when it cannot be understood.

    Accepts ``YYYY-MM-DD``, full ISO 8601 timestamps, and the partial forms
    ``YYYY`` and ``YYYY-MM`` (first day of the year or month). Never raises.
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str) or not value.strip():
        return None

    text = value.strip()
    partial = _PARTIAL_DATE.match(text)
    if partial:
        try:
            return date(int(partial.group(1)), int(partial.group(2) or 1), 1)
        except ValueError:
            return None
    try:
        return date.fromisoformat(text)
    except ValueError:
        pass
    try:
        return datetime.fromisoformat(text.replace("Z", "+00:00")).date()
    except ValueError:
        return None


def encode_cover_image(data: bytes, mime_type: str) -> str:
    """Encode raw image bytes as the data URL stored in ``coverImage``."""
    payload = base64.b64encode(data).decode("ascii")
    return f"data:{mime_type};base64,{payload}"


# =============================================================================
# Records
# =============================================================================


class MediaItem(BaseModel):
    """One consumed work: a movie, show, book or album.

    ``id`` is the sole equality key for update, delete and merge. It may be
    empty only on legacy records, which EntryStore.load() migrates.

    ``date`` and ``rating`` are stored exactly as given. Invalid values are
    tolerated; use ``parsed_date`` and ``display_rating`` when a sane value
    is needed.

    Attributes:
        id: Opaque unique identifier.
        title: Display name.
        category: One of Movie, TV, Book, Music.
        date: Consumption date, normally ``YYYY-MM-DD``.
        thoughts: Free-form impressions.
        tags: Ordered tags, duplicates allowed.
        rating: Intended range 1-5.
        summary: One-sentence objective summary.
        cover_image: Optional embedded image (data URL), persisted as ``coverImage``.
    """

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    id: str = ""
    title: str = ""
    category: Category = Field(
        default=Category.MOVIE,
        validation_alias=AliasChoices("category", "type"),
    )
    # Any JSON scalar is kept as stored; see parsed_date and display_rating
    date: str | int | float | None = ""
    thoughts: str = ""
    tags: list[str] = Field(default_factory=list)
    rating: int | float | str | None = DEFAULT_RATING
    summary: str = ""
    cover_image: str | None = Field(
        default=None,
        validation_alias=AliasChoices("coverImage", "cover_image"),
        serialization_alias="coverImage",
    )

    @classmethod
    def blank(cls, today: date | None = None) -> "MediaItem":
        """Create a new manual draft with a fresh id and default fields."""
        today = today or date.today()
        return cls(
            id=new_entry_id(),
            title="",
            category=Category.MOVIE,
            date=today.isoformat(),
            thoughts="",
            tags=[],
            rating=DEFAULT_RATING,
            summary="",
        )

    @property
    def parsed_date(self) -> date | None:
        """The entry date, or None if it cannot be parsed."""
        return parse_entry_date(self.date)

    @property
    def date_text(self) -> str:
        """The stored date as display text, empty when there is none."""
        return "" if self.date is None else str(self.date)

    @property
    def display_rating(self) -> int:
        """Rating clamped to the 1-5 star range."""
        try:
            value = round(float(self.rating))
        except (TypeError, ValueError, OverflowError):
            return DEFAULT_RATING
        return max(MIN_RATING, min(MAX_RATING, value))

    @property
    def style(self) -> CategoryStyle:
        return category_style(self.category)

    def to_record(self) -> dict[str, Any]:
        """Serialize to the persisted JSON shape.

        Stored nulls are written back as nulls; only a missing cover is omitted.
        """
        exclude = {"cover_image"} if self.cover_image is None else None
        return self.model_dump(mode="json", by_alias=True, exclude=exclude)


class Message(BaseModel):
    """A guestbook note. Unrelated to media entries.

    Attributes:
        id: Opaque unique identifier.
        text: Message body.
        timestamp: ISO 8601 instant of creation.
    """

    model_config = ConfigDict(extra="allow")

    id: str
    text: str
    timestamp: str

    @classmethod
    def create(cls, text: str, now: datetime | None = None) -> "Message":
        now = now or datetime.now(timezone.utc)
        return cls(id=new_entry_id(), text=text, timestamp=now.isoformat())

    def to_record(self) -> dict[str, Any]:
        return self.model_dump(mode="json", exclude_none=True)
