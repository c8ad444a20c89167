"""Keyed JSON blob storage.

Each key maps to one UTF-8 JSON file under a data directory, much like a
browser key/value store. Writes are atomic (temp file + replace) so a crash
never leaves a half-written blob.
"""

from __future__ import annotations

import json
import logging
import re
import tempfile
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

_KEY_PATTERN = re.compile(r"^[A-Za-z0-9_.-]+$")


# =============================================================================
# Exceptions
# =============================================================================


class PersistenceError(Exception):
    """Base exception for persisted-state failures."""

    def __init__(self, message: str, key: str, original_error: Exception | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.key = key
        self.original_error = original_error


class PersistenceReadError(PersistenceError):
    """A persisted blob exists but is unreadable or corrupt."""

    pass


class PersistenceWriteError(PersistenceError):
    """A blob could not be written (disk full, permissions, ...)."""

    pass


# =============================================================================
# Storage
# =============================================================================


class JsonBlobStorage:
    """File-backed key/value store of JSON documents.

    Attributes:
        root: Directory holding one ``<key>.json`` file per key.
    """

    def __init__(self, root: Path) -> None:
        self.root = Path(root)

    def path_for(self, key: str) -> Path:
        if not _KEY_PATTERN.match(key):
            raise ValueError(f"Invalid storage key: {key!r}")
        return self.root / f"{key}.json"

    def read(self, key: str) -> Any | None:
        """Read and decode a blob.

        Returns:
            The decoded JSON value, or None when the key has never been written.

        Raises:
            PersistenceReadError: If the blob cannot be read or decoded.
        """
        path = self.path_for(key)
        if not path.exists():
            return None

        try:
            text = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise PersistenceReadError(f"Failed to read {key}: {e}", key, e) from e

        try:
            return json.loads(text)
        except json.JSONDecodeError as e:
            raise PersistenceReadError(f"Corrupt JSON in {key}: {e}", key, e) from e

    def write(self, key: str, value: Any) -> None:
        """Encode and atomically replace a blob.

        Raises:
            PersistenceWriteError: If the blob cannot be written.
        """
        path = self.path_for(key)
        temp_name: str | None = None
        try:
            self.root.mkdir(parents=True, exist_ok=True)
            with tempfile.NamedTemporaryFile(
                "w", dir=self.root, delete=False, encoding="utf-8", suffix=".tmp"
            ) as tf:
                temp_name = tf.name
                json.dump(value, tf, ensure_ascii=False, indent=2)
            Path(temp_name).replace(path)
        except (OSError, TypeError, ValueError) as e:
            if temp_name is not None:
                Path(temp_name).unlink(missing_ok=True)
            raise PersistenceWriteError(f"Failed to write {key}: {e}", key, e) from e

        logger.debug(f"Wrote {key} ({path.stat().st_size} bytes)")
