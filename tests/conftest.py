"""Central Pytest Fixtures for Cultural Footprint.

Fixtures included:
- Environment: isolated_env (autouse) keeps HOME, API keys and the config
  cache out of the tests
- Storage: storage, entry_store, empty_store
- Core data: sample_entries
- AI: valid_payload, valid_payload_json, mock_ai_client, png_bytes
"""

import io
import json
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import pytest
from PIL import Image

from footprint.ai.client import AIClient, AIResponse
from footprint.config import reset_config
from footprint.core.models import Category, MediaItem
from footprint.core.storage import JsonBlobStorage
from footprint.core.store import EntryStore

# =============================================================================
# Environment
# =============================================================================


@pytest.fixture(autouse=True)
def isolated_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    """Point HOME at a temp dir and clear keys so no real config leaks in."""
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.chdir(tmp_path)
    for name in ("GEMINI_API_KEY", "FOOTPRINT_API_KEY", "FOOTPRINT_DEBUG", "FOOTPRINT_AI__ENABLED"):
        monkeypatch.delenv(name, raising=False)
    reset_config()
    yield home
    reset_config()


# =============================================================================
# Storage
# =============================================================================


@pytest.fixture
def data_dir(tmp_path: Path) -> Path:
    return tmp_path / "data"


@pytest.fixture
def storage(data_dir: Path) -> JsonBlobStorage:
    return JsonBlobStorage(data_dir)


@pytest.fixture
def entry_store(storage: JsonBlobStorage) -> EntryStore:
    """A store loaded from nothing, i.e. holding the seed entries."""
    store = EntryStore(storage)
    store.load()
    return store


@pytest.fixture
def empty_store(storage: JsonBlobStorage) -> EntryStore:
    """A store whose persisted collection is an empty list."""
    storage.write("media_tracker_entries", [])
    store = EntryStore(storage)
    store.load()
    return store


# =============================================================================
# Core Data
# =============================================================================


@pytest.fixture
def sample_entries() -> list[MediaItem]:
    """Entries across categories, months and years, plus one undated."""
    return [
        MediaItem(id="a", title="Arrival", category=Category.MOVIE, date="2024-03-10", rating=4),
        MediaItem(id="b", title="Dune", category=Category.BOOK, date="2024-03-02", rating=5),
        MediaItem(id="c", title="Severance", category=Category.TV, date="2024-01-20", rating=5),
        MediaItem(id="d", title="Kind of Blue", category=Category.MUSIC, date="2023-12-24", rating=4),
        MediaItem(id="e", title="Mystery Tape", category=Category.MUSIC, date="someday", rating=2),
        MediaItem(id="f", title="Solaris", category=Category.BOOK, date="2023-06-01", rating=3),
    ]


# =============================================================================
# AI
# =============================================================================


@pytest.fixture
def valid_payload() -> dict:
    """A response that satisfies the ingestion schema."""
    return {
        "title": "Spirited Away",
        "category": "Movie",
        "date": "2024-05-01",
        "thoughts": "Still magical on the fifth watch.",
        "tags": ["Animation", "Fantasy", "Ghibli"],
        "rating": 5,
        "summary": "A girl wanders into a world of spirits and must free her parents.",
    }


@pytest.fixture
def valid_payload_json(valid_payload: dict) -> str:
    return json.dumps(valid_payload)


@pytest.fixture
def mock_ai_client(valid_payload_json: str) -> MagicMock:
    """Mock AIClient whose structured call returns a valid payload."""
    client = MagicMock(spec=AIClient)
    client.model_name = "gemini-test"
    client.generate_structured = AsyncMock(
        return_value=AIResponse(text=valid_payload_json, model="gemini-test")
    )
    return client


@pytest.fixture
def png_bytes() -> bytes:
    """A tiny real PNG image."""
    buffer = io.BytesIO()
    Image.new("RGB", (4, 4), color="red").save(buffer, format="PNG")
    return buffer.getvalue()
