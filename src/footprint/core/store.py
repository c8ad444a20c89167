"""Entry Store and Guestbook Store.

The EntryStore is the single source of truth for media entries. Every
mutation is applied to the in-memory list first, listeners are notified,
and then the whole collection is written as one snapshot. A failed write
is logged and leaves the store marked ``dirty``; the in-memory list stays
authoritative for the rest of the session.

Stored records that fail validation are never dropped: they are kept
aside verbatim (``unreadable``) and appended to every snapshot written.

Example:
    >>> from footprint.core.storage import JsonBlobStorage
    >>> store = EntryStore(JsonBlobStorage(Path("~/.footprint").expanduser()))
    >>> entries = store.load()
    >>> store.upsert(MediaItem.blank().model_copy(update={"title": "Dune"}))
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Generic, Iterator, TypeVar

from pydantic import BaseModel, ValidationError

from footprint.core.models import Category, MediaItem, Message, clean_tags, new_entry_id
from footprint.core.storage import JsonBlobStorage, PersistenceReadError, PersistenceWriteError

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=BaseModel)

Listener = Callable[[list[Any]], None]

DEFAULT_ENTRIES_KEY = "media_tracker_entries"
DEFAULT_MESSAGES_KEY = "guestbook_messages"


# =============================================================================
# Exceptions
# =============================================================================


class DuplicateEntryError(ValueError):
    """Raised when insert() receives an id that is already stored."""

    pass


# =============================================================================
# Seed Data
# =============================================================================


def seed_entries() -> list[MediaItem]:
    """Example entries shown when nothing has been saved yet."""
    return [
        MediaItem(
            id="1",
            title="Inception",
            category=Category.MOVIE,
            date="2023-11-15",
            thoughts="Absolutely mind-bending visual effects. The ending still haunts me.",
            tags=["Sci-Fi", "Thriller"],
            rating=5,
            summary="A thief who steals corporate secrets through the use of dream-sharing technology.",
        ),
        MediaItem(
            id="2",
            title="The Three-Body Problem",
            category=Category.BOOK,
            date="2023-12-01",
            thoughts="The scale of imagination is terrifying. Makes you feel small in the universe.",
            tags=["Sci-Fi", "Philosophy"],
            rating=5,
            summary="Nanotechnology researcher Wang Miao is taken into a secret joint operation center.",
        ),
    ]


# =============================================================================
# Base Store
# =============================================================================


class _ListStore(Generic[T]):
    """Shared load/commit/subscribe plumbing for a persisted list of records."""

    record_name = "record"

    def __init__(self, storage: JsonBlobStorage, key: str) -> None:
        self._storage = storage
        self._key = key
        self._items: list[T] = []
        # Raw records that could not be parsed; written back untouched
        self._unreadable: list[Any] = []
        self._listeners: list[Listener] = []
        self.dirty = False

    @property
    def key(self) -> str:
        return self._key

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[T]:
        return iter(list(self._items))

    def __contains__(self, item_id: object) -> bool:
        return any(item.id == item_id for item in self._items)

    @property
    def unreadable(self) -> list[Any]:
        """Stored records that failed validation, kept verbatim on every write."""
        return list(self._unreadable)

    def get(self, item_id: str) -> T | None:
        return next((item for item in self._items if item.id == item_id), None)

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a callback receiving the new snapshot after each mutation.

        Returns:
            A function that removes the listener again.
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _seed(self) -> list[T]:
        return []

    def _parse(self, record: dict[str, Any]) -> T:
        raise NotImplementedError

    def _read_raw(self) -> list[Any] | None:
        try:
            raw = self._storage.read(self._key)
        except PersistenceReadError as e:
            logger.error(f"Failed to parse saved {self.record_name}s: {e.message}")
            return None

        if raw is not None and not isinstance(raw, list):
            logger.error(
                f"Saved {self.record_name}s in {self._key} are not a list "
                f"({type(raw).__name__}); ignoring them"
            )
            return None
        return raw

    def _load_records(self) -> list[T]:
        raw = self._read_raw()
        if raw is None:
            logger.debug(f"No usable {self._key} blob, using seed data")
            self._items = self._seed()
            self._unreadable = []
            self._notify()
            return list(self._items)

        items: list[T] = []
        unreadable: list[Any] = []
        seen: set[str] = set()
        migrated = 0

        for index, record in enumerate(raw):
            if not isinstance(record, dict):
                logger.warning(f"Keeping {self.record_name} #{index} aside: not an object")
                unreadable.append(record)
                continue

            item_id = record.get("id")
            if not item_id or str(item_id) in seen:
                record = {**record, "id": new_entry_id()}
                migrated += 1
            elif not isinstance(item_id, str):
                record = {**record, "id": str(item_id)}

            try:
                item = self._parse(record)
            except ValidationError as e:
                logger.warning(
                    f"Keeping {self.record_name} #{index} aside: {e.error_count()} invalid field(s)"
                )
                unreadable.append(record)
                continue

            seen.add(item.id)
            items.append(item)

        self._items = items
        self._unreadable = unreadable
        if migrated:
            logger.info(f"Assigned ids to {migrated} legacy {self.record_name}(s)")
            self._persist()
        self._notify()
        return list(self._items)

    def _write(self, items: list[T]) -> None:
        records = [item.to_record() for item in items]
        self._storage.write(self._key, records + self._unreadable)

    def _persist(self) -> bool:
        try:
            self._write(self._items)
        except PersistenceWriteError as e:
            logger.error(f"Could not save {self.record_name}s: {e.message}")
            self.dirty = True
            return False
        self.dirty = False
        return True

    def _notify(self) -> None:
        snapshot = list(self._items)
        for listener in list(self._listeners):
            listener(snapshot)

    def _commit(self, items: list[T]) -> bool:
        self._items = items
        self._notify()
        return self._persist()

    def remove(self, item_id: str) -> bool:
        """Delete the record with this id.

        Returns:
            True if a record was removed, False if none matched (no-op).
        """
        if item_id not in self:
            return False
        self._commit([item for item in self._items if item.id != item_id])
        return True


# =============================================================================
# Entry Store
# =============================================================================


class EntryStore(_ListStore[MediaItem]):
    """Owns the canonical collection of media entries.

    Backing order is newest-insert-first. Display order is computed
    separately by the timeline functions.
    """

    record_name = "entry"

    def __init__(self, storage: JsonBlobStorage, key: str = DEFAULT_ENTRIES_KEY) -> None:
        super().__init__(storage, key)

    @property
    def entries(self) -> list[MediaItem]:
        """A snapshot of the current entries in backing order."""
        return list(self._items)

    def _seed(self) -> list[MediaItem]:
        return seed_entries()

    def _parse(self, record: dict[str, Any]) -> MediaItem:
        return MediaItem.model_validate(record)

    def load(self) -> list[MediaItem]:
        """Read the persisted entries, migrating records without an id.

        Missing or corrupt data yields the seed entries. Corruption is logged,
        never raised. Migrated ids are written back at once so that they stay
        stable across loads. Records that fail validation are kept aside and
        written back unchanged.
        """
        return self._load_records()

    def save(self, entries: list[MediaItem] | None = None) -> None:
        """Persist the full collection, replacing prior content.

        Records kept aside as unreadable are written after the entries.

        Args:
            entries: If given, becomes the store's content before writing.

        Raises:
            PersistenceWriteError: If the snapshot cannot be written.
            DuplicateEntryError: If ``entries`` repeats an id.
        """
        if entries is not None:
            items = list(entries)
            ids = [item.id for item in items]
            if len(ids) != len(set(ids)):
                raise DuplicateEntryError("Entries must have unique ids")
            self._items = items
            self._notify()

        try:
            self._write(self._items)
        except PersistenceWriteError:
            self.dirty = True
            raise
        self.dirty = False

    def _prepare(self, item: MediaItem) -> MediaItem:
        update: dict[str, Any] = {"tags": clean_tags(item.tags)}
        if not item.id:
            update["id"] = new_entry_id()
        return item.model_copy(update=update)

    def insert(self, item: MediaItem) -> MediaItem:
        """Prepend a new entry.

        Returns:
            The stored entry (with cleaned tags and an id if it had none).

        Raises:
            DuplicateEntryError: If the id is already present.
        """
        prepared = self._prepare(item)
        if prepared.id in self:
            raise DuplicateEntryError(f"Entry {prepared.id} already exists")
        self._commit([prepared, *self._items])
        return prepared

    def upsert(self, item: MediaItem) -> MediaItem:
        """Replace the entry with the same id in place, or prepend it if new."""
        prepared = self._prepare(item)
        for index, existing in enumerate(self._items):
            if existing.id == prepared.id:
                items = list(self._items)
                items[index] = prepared
                self._commit(items)
                return prepared

        self._commit([prepared, *self._items])
        return prepared


# =============================================================================
# Guestbook Store
# =============================================================================


class GuestbookStore(_ListStore[Message]):
    """Persisted guestbook notes, independent of media entries."""

    record_name = "message"

    def __init__(self, storage: JsonBlobStorage, key: str = DEFAULT_MESSAGES_KEY) -> None:
        super().__init__(storage, key)

    @property
    def messages(self) -> list[Message]:
        return list(self._items)

    def _parse(self, record: dict[str, Any]) -> Message:
        return Message.model_validate(record)

    def load(self) -> list[Message]:
        return self._load_records()

    def sign(self, text: str) -> Message:
        """Add a note to the top of the guestbook.

        Raises:
            ValueError: If the text is empty after trimming.
        """
        text = text.strip()
        if not text:
            raise ValueError("Message text cannot be empty")
        message = Message.create(text)
        self._commit([message, *self._items])
        return message
