"""Tests for CLI commands using Click's testing utilities."""

from __future__ import annotations

import json
from pathlib import Path
from unittest.mock import AsyncMock, patch

import pytest
from click.testing import CliRunner

from footprint.ai.ingest import FALLBACK_MESSAGE, IngestionDraft, IngestionError
from footprint.cli.main import cli

# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def runner() -> CliRunner:
    """Create a Click test runner."""
    return CliRunner()


@pytest.fixture
def invoke(runner: CliRunner, data_dir: Path):
    """Invoke the CLI against an isolated data directory."""

    def _invoke(*args: str, **kwargs):
        return runner.invoke(cli, ["--data-dir", str(data_dir), *args], **kwargs)

    return _invoke


@pytest.fixture
def api_key(monkeypatch: pytest.MonkeyPatch) -> str:
    """Configure a (fake) Gemini key so ingest gets past its pre-check."""
    key = "test-key-not-real"
    monkeypatch.setenv("GEMINI_API_KEY", key)
    return key


def saved(data_dir: Path, key: str = "media_tracker_entries"):
    return json.loads((data_dir / f"{key}.json").read_text(encoding="utf-8"))


# =============================================================================
# Version Tests
# =============================================================================


class TestVersion:
    def test_version_option(self, runner: CliRunner) -> None:
        result = runner.invoke(cli, ["--version"])

        assert result.exit_code == 0
        assert "Cultural Footprint" in result.output

    def test_help_lists_commands(self, runner: CliRunner) -> None:
        result = runner.invoke(cli, ["--help"])

        assert result.exit_code == 0
        for command in ("add", "ingest", "timeline", "zoom", "guestbook"):
            assert command in result.output


# =============================================================================
# Entry Command Tests
# =============================================================================


class TestEntryCommands:
    def test_list_shows_seed_entries(self, invoke) -> None:
        result = invoke("list")

        assert result.exit_code == 0
        assert "Inception" in result.output

    def test_list_filters_by_category(self, invoke) -> None:
        result = invoke("list", "--category", "Music")

        assert result.exit_code == 0
        assert "Inception" not in result.output
        assert "No entries match" in result.output

    def test_invalid_env_override_still_runs(
        self, invoke, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("FOOTPRINT_AI__TEMPERATURE", "9")

        result = invoke("list")

        assert result.exit_code == 0
        assert "Inception" in result.output

    def test_lists_entry_with_legacy_values(self, invoke, data_dir: Path) -> None:
        data_dir.mkdir(parents=True)
        (data_dir / "media_tracker_entries.json").write_text(
            json.dumps([{"id": "old1", "title": "Old Tape", "rating": "five", "date": None}]),
            encoding="utf-8",
        )

        result = invoke("list")

        assert result.exit_code == 0
        assert "Old Tape" in result.output

    def test_add_persists_entry(self, invoke, data_dir: Path) -> None:
        result = invoke(
            "add", "--title", "Arrival", "--category", "Movie", "--date", "2024-03-10",
            "--rating", "4", "--tags", "Sci-Fi, , Linguistics",
        )

        assert result.exit_code == 0
        records = saved(data_dir)
        assert records[0]["title"] == "Arrival"
        assert records[0]["tags"] == ["Sci-Fi", "Linguistics"]
        assert records[0]["rating"] == 4
        assert [r["id"] for r in records[1:]] == ["1", "2"]

    def test_add_requires_title(self, invoke) -> None:
        assert invoke("add").exit_code == 2

    def test_add_rejects_out_of_range_rating(self, invoke) -> None:
        assert invoke("add", "--title", "X", "--rating", "9").exit_code == 2

    def test_add_with_cover(self, invoke, data_dir: Path, tmp_path: Path, png_bytes: bytes) -> None:
        cover = tmp_path / "cover.png"
        cover.write_bytes(png_bytes)

        result = invoke("add", "--title", "Covered", "--cover", str(cover))

        assert result.exit_code == 0
        assert saved(data_dir)[0]["coverImage"].startswith("data:image/png;base64,")

    def test_show_by_prefix(self, invoke) -> None:
        invoke("add", "--title", "Arrival", "--summary", "Aliens arrive.")
        result = invoke("show", "2")

        assert result.exit_code == 0
        assert "Three-Body" in result.output

    def test_show_unknown(self, invoke) -> None:
        result = invoke("show", "nope")

        assert result.exit_code == 1
        assert "No entry" in result.output

    def test_edit_keeps_other_fields(self, invoke, data_dir: Path) -> None:
        result = invoke("edit", "1", "--rating", "4")

        assert result.exit_code == 0
        record = next(r for r in saved(data_dir) if r["id"] == "1")
        assert record["rating"] == 4
        assert record["title"] == "Inception"
        assert record["tags"] == ["Sci-Fi", "Thriller"]

    def test_edit_keeps_position(self, invoke, data_dir: Path) -> None:
        invoke("edit", "2", "--title", "Three Body")
        assert [r["id"] for r in saved(data_dir)] == ["1", "2"]

    def test_edit_without_changes(self, invoke) -> None:
        result = invoke("edit", "1")

        assert result.exit_code == 0
        assert "Nothing to change" in result.output

    def test_remove_with_yes(self, invoke, data_dir: Path) -> None:
        result = invoke("remove", "1", "--yes")

        assert result.exit_code == 0
        assert [r["id"] for r in saved(data_dir)] == ["2"]

    def test_remove_cancelled(self, invoke, data_dir: Path) -> None:
        result = invoke("remove", "1", input="n\n")

        assert result.exit_code == 0
        assert "Cancelled" in result.output
        assert not (data_dir / "media_tracker_entries.json").exists()


# =============================================================================
# Ingest Command Tests
# =============================================================================


class TestIngestCommand:
    def test_requires_text_or_image(self, invoke) -> None:
        result = invoke("ingest")
        assert result.exit_code == 2

    def test_success_adds_entry(
        self, invoke, api_key: str, data_dir: Path, valid_payload: dict
    ) -> None:
        with patch("footprint.cli.main.IngestionService") as service_cls:
            service_cls.return_value.ingest = AsyncMock(
                return_value=IngestionDraft.model_validate(valid_payload)
            )
            result = invoke("ingest", "Rewatched Spirited Away")

        assert result.exit_code == 0
        assert "Spirited Away" in result.output
        assert saved(data_dir)[0]["title"] == "Spirited Away"

    def test_failure_offers_manual_entry(self, invoke, api_key: str, data_dir: Path) -> None:
        with patch("footprint.cli.main.IngestionService") as service_cls:
            service_cls.return_value.ingest = AsyncMock(side_effect=IngestionError("bad response"))
            result = invoke("ingest", "Something I watched")

        assert result.exit_code == 1
        assert FALLBACK_MESSAGE in " ".join(result.output.split())
        assert "footprint add" in result.output
        assert not (data_dir / "media_tracker_entries.json").exists()

    def test_without_api_key_fails_gracefully(self, invoke) -> None:
        with patch("footprint.cli.main.IngestionService") as service_cls:
            result = invoke("ingest", "Finished Dune")

        assert result.exit_code == 1
        assert "GEMINI_API_KEY" in result.output
        assert "footprint add" in result.output
        service_cls.assert_not_called()

    def test_disabled_ai_is_not_called(
        self, invoke, api_key: str, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setenv("FOOTPRINT_AI__ENABLED", "false")

        with patch("footprint.cli.main.IngestionService") as service_cls:
            result = invoke("ingest", "Finished Dune")

        assert result.exit_code == 1
        assert "not configured" in result.output
        service_cls.assert_not_called()


# =============================================================================
# Timeline Command Tests
# =============================================================================


class TestTimelineCommands:
    def test_detail_timeline(self, invoke) -> None:
        result = invoke("timeline")

        assert result.exit_code == 0
        assert "2023-12-01" in result.output
        assert "Inception" in result.output

    def test_year_timeline(self, invoke) -> None:
        result = invoke("timeline", "--granularity", "year")

        assert result.exit_code == 0
        assert "2023" in result.output
        assert "2 records" in result.output

    def test_empty_timeline(self, invoke) -> None:
        result = invoke("timeline", "--category", "TV")

        assert result.exit_code == 0
        assert "No entries yet" in result.output

    def test_zoom_persists_state(self, invoke, data_dir: Path) -> None:
        invoke("zoom")
        assert saved(data_dir, "timeline_zoom") == {"granularity": "month", "direction": "zoomOut"}

        invoke("zoom")
        invoke("zoom")
        assert saved(data_dir, "timeline_zoom") == {"granularity": "month", "direction": "zoomIn"}

        result = invoke("timeline")
        assert "2023-12" in result.output
        assert "Expand Items" in result.output

    def test_zoom_reset(self, invoke, data_dir: Path) -> None:
        invoke("zoom")
        invoke("zoom", "--reset")
        assert saved(data_dir, "timeline_zoom")["granularity"] == "detail"


# =============================================================================
# Guestbook Command Tests
# =============================================================================


class TestGuestbookCommands:
    def test_sign_and_list(self, invoke) -> None:
        assert invoke("guestbook", "sign", "Lovely list").exit_code == 0

        result = invoke("guestbook", "list")
        assert "Lovely list" in result.output

    def test_empty_message_rejected(self, invoke) -> None:
        assert invoke("guestbook", "sign", "   ").exit_code == 2

    def test_remove(self, invoke, data_dir: Path) -> None:
        invoke("guestbook", "sign", "Temporary")
        message_id = saved(data_dir, "guestbook_messages")[0]["id"]

        result = invoke("guestbook", "remove", message_id)

        assert result.exit_code == 0
        assert saved(data_dir, "guestbook_messages") == []

    def test_list_empty(self, invoke) -> None:
        assert "empty" in invoke("guestbook", "list").output
