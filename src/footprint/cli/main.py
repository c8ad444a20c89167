"""Command-line interface for Cultural Footprint.

A thin front end over the core operations: filter, aggregate, advance zoom
and ingest. Built with Click for commands and Rich for terminal output.

Usage:
    footprint ingest "Rewatched Spirited Away, still magical" --image poster.jpg
    footprint add --title "Dune" --category Book --rating 4
    footprint timeline --granularity year
    footprint zoom
    footprint guestbook sign "Nice list!"
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from datetime import date
from pathlib import Path
from typing import Any

import click
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table
from rich.tree import Tree

from footprint import __version__
from footprint.ai.ingest import (
    FALLBACK_MESSAGE,
    IngestionError,
    IngestionService,
    IngestionSession,
    detect_image_mime_type,
)
from footprint.config import AppConfig, PathsConfig, get_config, load_config
from footprint.core.filters import ALL_CATEGORIES
from footprint.core.models import (
    Category,
    MediaItem,
    encode_cover_image,
    parse_tags,
)
from footprint.core.storage import JsonBlobStorage, PersistenceReadError, PersistenceWriteError
from footprint.core.store import EntryStore, GuestbookStore
from footprint.core.timeline import Granularity, TimelineView, build_timeline
from footprint.core.zoom import TimelineZoom
from footprint.utils.logging import configure_logging, get_logger

logger = get_logger(__name__)

# Rich console for output
console = Console()

CATEGORY_CHOICES = [ALL_CATEGORIES, *(c.value for c in Category)]

MANUAL_ENTRY_HINT = "Try: footprint add --title \"...\" --category Movie"


# =============================================================================
# Helper Functions
# =============================================================================


def print_success(text: str) -> None:
    console.print(f"[green]✓[/green] {text}")


def print_warning(text: str) -> None:
    console.print(f"[yellow]⚠[/yellow] {text}")


def print_error(text: str) -> None:
    console.print(f"[red]✗[/red] {text}")


def print_info(text: str) -> None:
    console.print(f"[blue]ℹ[/blue] {text}")


def stars(entry: MediaItem) -> str:
    filled = entry.display_rating
    return "★" * filled + "☆" * (5 - filled)


def category_badge(entry: MediaItem) -> str:
    style = entry.style
    return f"[{style.color}]{style.label}[/{style.color}]"


@dataclass
class CLIState:
    """Per-invocation state shared by all commands via ctx.obj."""

    config: AppConfig
    storage: JsonBlobStorage
    _entries: EntryStore | None = field(default=None, repr=False)

    @property
    def entries(self) -> EntryStore:
        if self._entries is None:
            self._entries = EntryStore(self.storage, self.config.storage.entries_key)
            self._entries.load()
        return self._entries

    def guestbook(self) -> GuestbookStore:
        book = GuestbookStore(self.storage, self.config.storage.messages_key)
        book.load()
        return book

    def load_zoom(self) -> TimelineZoom:
        try:
            record = self.storage.read(self.config.storage.zoom_key)
        except PersistenceReadError as e:
            logger.warning(f"Ignoring saved zoom state: {e.message}")
            record = None
        return TimelineZoom.from_record(record)

    def save_zoom(self, zoom: TimelineZoom) -> None:
        try:
            self.storage.write(self.config.storage.zoom_key, zoom.to_record())
        except PersistenceWriteError as e:
            logger.error(f"Could not save zoom state: {e.message}")


def resolve_entry(store: EntryStore, entry_id: str) -> MediaItem:
    """Find an entry by full id or unique id prefix."""
    exact = store.get(entry_id)
    if exact is not None:
        return exact

    matches = [entry for entry in store if entry.id.startswith(entry_id)]
    if len(matches) == 1:
        return matches[0]
    if not matches:
        raise click.ClickException(f"No entry with id {entry_id!r}")
    raise click.ClickException(f"Id prefix {entry_id!r} is ambiguous ({len(matches)} entries)")


def warn_if_unsaved(store: EntryStore | GuestbookStore) -> None:
    if store.dirty:
        print_warning("Could not write changes to disk; they were kept for this session only.")


def read_cover(path: Path | None) -> str | None:
    if path is None:
        return None
    data = path.read_bytes()
    try:
        mime_type = detect_image_mime_type(data)
    except IngestionError as e:
        raise click.BadParameter(e.message, param_hint="--cover") from e
    return encode_cover_image(data, mime_type)


# =============================================================================
# Rendering
# =============================================================================


def render_entry_table(entries: list[MediaItem], title: str) -> None:
    table = Table(title=title, show_header=True)
    table.add_column("ID", style="dim", no_wrap=True)
    table.add_column("Date", no_wrap=True)
    table.add_column("Category")
    table.add_column("Title", style="bold")
    table.add_column("Rating", no_wrap=True)
    table.add_column("Tags")

    for entry in entries:
        table.add_row(
            entry.id[:8],
            escape(entry.date_text or "-"),
            category_badge(entry),
            escape(entry.title or "(untitled)"),
            stars(entry),
            escape(", ".join(entry.tags)),
        )
    console.print(table)


def render_entry(entry: MediaItem) -> None:
    lines = [
        f"{category_badge(entry)} · {escape(entry.date_text or '-')} · {stars(entry)}",
        "",
    ]
    if entry.summary:
        lines += [f"[italic]{escape(entry.summary)}[/italic]", ""]
    if entry.thoughts:
        lines += [escape(entry.thoughts), ""]
    if entry.tags:
        lines.append(" ".join(f"#{escape(tag)}" for tag in entry.tags))
    if entry.cover_image:
        lines.append("[dim](has cover image)[/dim]")
    lines.append(f"[dim]id: {entry.id}[/dim]")

    console.print(Panel("\n".join(lines).rstrip(), title=escape(entry.title or "(untitled)"), expand=False))


def render_timeline(view: TimelineView, hint: str | None = None) -> None:
    if view.is_empty:
        print_info("No entries yet. Add one with 'footprint add' or 'footprint ingest'.")
        return

    caption = f"Timeline · {view.granularity.value}"
    if hint:
        caption += f" · next: {hint}"

    if view.granularity == Granularity.DETAIL:
        tree = Tree(f"[bold]{caption}[/bold]")
        for entry in view.entries:
            tree.add(
                f"{escape(entry.date_text or '-')}  {category_badge(entry)}  "
                f"[bold]{escape(entry.title or '(untitled)')}[/bold]  {stars(entry)}"
            )
        console.print(tree)
        return

    tree = Tree(f"[bold]{caption}[/bold]")
    for group in view.groups:
        branch = tree.add(f"[bold cyan]{group.key}[/bold cyan]  [dim]{group.count} records[/dim]")
        for entry in group.items:
            branch.add(f"{category_badge(entry)}  {escape(entry.title or '(untitled)')}")
    console.print(tree)


# =============================================================================
# Main CLI Group
# =============================================================================


@click.group()
@click.version_option(version=__version__, prog_name="Cultural Footprint")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output")
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Path to config file",
)
@click.option(
    "--data-dir",
    type=click.Path(file_okay=False, path_type=Path),
    help="Directory holding saved entries (overrides config)",
)
@click.pass_context
def cli(ctx: click.Context, verbose: bool, config_path: Path | None, data_dir: Path | None) -> None:
    """Cultural Footprint - log the movies, shows, books and music you consume.

    Quick start:
        footprint ingest "Just finished Dune, the sandworms!"
        footprint timeline
    """
    app_config = load_config(config_path) if config_path else get_config()
    if data_dir is not None:
        app_config = app_config.model_copy(update={"paths": PathsConfig(data_dir=data_dir)})

    log_file = configure_logging(app_config, verbose=verbose)
    if log_file is not None:
        logger.debug(f"Logging to {log_file}")

    ctx.obj = CLIState(config=app_config, storage=JsonBlobStorage(app_config.paths.data_dir))


# =============================================================================
# Entry Commands
# =============================================================================


@cli.command("list")
@click.option("--category", type=click.Choice(CATEGORY_CHOICES), default=ALL_CATEGORIES)
@click.pass_obj
def list_entries(state: CLIState, category: str) -> None:
    """Show entries as a table, most recent first."""
    view = build_timeline(state.entries.entries, category, Granularity.DETAIL)
    if view.is_empty:
        print_info("No entries match.")
        return
    render_entry_table(view.entries, title=f"{category} entries ({len(view.entries)})")


@cli.command()
@click.argument("entry_id")
@click.pass_obj
def show(state: CLIState, entry_id: str) -> None:
    """Show one entry in detail."""
    render_entry(resolve_entry(state.entries, entry_id))


def _entry_options(required_title: bool) -> Any:
    def decorator(func: Any) -> Any:
        options = [
            click.option("--title", "-t", required=required_title, help="Title of the work"),
            click.option("--category", type=click.Choice([c.value for c in Category])),
            click.option("--date", "entry_date", help="Date consumed (YYYY-MM-DD)"),
            click.option("--rating", "-r", type=click.IntRange(1, 5), help="Rating from 1 to 5"),
            click.option("--tags", help="Comma separated tags"),
            click.option("--thoughts", help="Your impressions"),
            click.option("--summary", help="One-sentence summary"),
            click.option(
                "--cover",
                type=click.Path(exists=True, dir_okay=False, path_type=Path),
                help="Cover image file",
            ),
        ]
        for option in reversed(options):
            func = option(func)
        return func

    return decorator


def _collect_updates(
    title: str | None,
    category: str | None,
    entry_date: str | None,
    rating: int | None,
    tags: str | None,
    thoughts: str | None,
    summary: str | None,
    cover: Path | None,
) -> dict[str, Any]:
    updates: dict[str, Any] = {}
    if title is not None:
        updates["title"] = title
    if category is not None:
        updates["category"] = Category(category)
    if entry_date is not None:
        updates["date"] = entry_date
    if rating is not None:
        updates["rating"] = rating
    if tags is not None:
        updates["tags"] = parse_tags(tags)
    if thoughts is not None:
        updates["thoughts"] = thoughts
    if summary is not None:
        updates["summary"] = summary
    if cover is not None:
        updates["cover_image"] = read_cover(cover)
    return updates


@cli.command()
@_entry_options(required_title=True)
@click.pass_obj
def add(state: CLIState, **fields: Any) -> None:
    """Add an entry by hand."""
    draft = MediaItem.blank(today=date.today())
    entry = state.entries.upsert(draft.model_copy(update=_collect_updates(**fields)))
    print_success(f"Added {escape(entry.title)} ({entry.id[:8]})")
    warn_if_unsaved(state.entries)


@cli.command()
@click.argument("entry_id")
@_entry_options(required_title=False)
@click.option("--clear-cover", is_flag=True, help="Remove the cover image")
@click.pass_obj
def edit(state: CLIState, entry_id: str, clear_cover: bool, **fields: Any) -> None:
    """Edit an entry; unspecified fields keep their values."""
    existing = resolve_entry(state.entries, entry_id)
    updates = _collect_updates(**fields)
    if clear_cover:
        updates["cover_image"] = None
    if not updates:
        print_info("Nothing to change.")
        return

    entry = state.entries.upsert(existing.model_copy(update=updates))
    print_success(f"Saved {escape(entry.title)}")
    warn_if_unsaved(state.entries)


@cli.command()
@click.argument("entry_id")
@click.option("--yes", "-y", is_flag=True, help="Do not ask for confirmation")
@click.pass_obj
def remove(state: CLIState, entry_id: str, yes: bool) -> None:
    """Delete an entry."""
    entry = resolve_entry(state.entries, entry_id)
    if not yes and not click.confirm(f"Delete '{entry.title}'?", default=False):
        print_info("Cancelled.")
        return

    state.entries.remove(entry.id)
    print_success(f"Removed {escape(entry.title)}")
    warn_if_unsaved(state.entries)


@cli.command()
@click.argument("text", required=False, default="")
@click.option(
    "--image",
    "-i",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Photo of a cover, poster or player screenshot",
)
@click.option("--mime-type", help="Image MIME type (detected if omitted)")
@click.pass_context
def ingest(ctx: click.Context, text: str, image: Path | None, mime_type: str | None) -> None:
    """Let Gemini turn a note and/or photo into an entry."""
    state: CLIState = ctx.obj
    if not text.strip() and image is None:
        raise click.UsageError("Give a note, an --image, or both.")

    if not state.config.is_ai_available():
        print_warning("Gemini is not configured (set GEMINI_API_KEY, or enable ai in the config).")
        print_error(FALLBACK_MESSAGE)
        print_info(MANUAL_ENTRY_HINT)
        ctx.exit(1)

    image_bytes = image.read_bytes() if image is not None else None
    session = IngestionSession(IngestionService(settings=state.config.ai), state.entries)

    try:
        with console.status("Analyzing with Gemini..."):
            entry = asyncio.run(session.submit(text, image_bytes, mime_type))
    except IngestionError as e:
        logger.debug(f"Ingestion failed: {e.message}")
        print_error(e.user_message)
        print_info(MANUAL_ENTRY_HINT)
        ctx.exit(1)

    print_success(f"Added {escape(entry.title)} ({entry.id[:8]})")
    render_entry(entry)
    warn_if_unsaved(state.entries)


# =============================================================================
# Timeline Commands
# =============================================================================


@cli.command()
@click.option("--category", type=click.Choice(CATEGORY_CHOICES), default=ALL_CATEGORIES)
@click.option(
    "--granularity",
    "-g",
    type=click.Choice([g.value for g in Granularity]),
    help="Zoom level (defaults to the saved zoom state)",
)
@click.pass_obj
def timeline(state: CLIState, category: str, granularity: str | None) -> None:
    """Show the timeline, flat or grouped by month/year."""
    zoom = state.load_zoom()
    level = Granularity(granularity) if granularity else zoom.granularity
    render_timeline(build_timeline(state.entries.entries, category, level), hint=zoom.hint)


@cli.command()
@click.option("--category", type=click.Choice(CATEGORY_CHOICES), default=ALL_CATEGORIES)
@click.option("--reset", is_flag=True, help="Go back to the detail view")
@click.pass_obj
def zoom(state: CLIState, category: str, reset: bool) -> None:
    """Press the zoom toggle: detail → month → year → month → detail."""
    timeline_zoom = state.load_zoom()
    new_state = timeline_zoom.reset() if reset else timeline_zoom.toggle()
    state.save_zoom(timeline_zoom)

    render_timeline(
        build_timeline(state.entries.entries, category, new_state.granularity),
        hint=timeline_zoom.hint,
    )


# =============================================================================
# Guestbook Commands
# =============================================================================


@cli.group()
def guestbook() -> None:
    """Leave and read short notes."""


@guestbook.command("sign")
@click.argument("text")
@click.pass_obj
def guestbook_sign(state: CLIState, text: str) -> None:
    """Add a note."""
    book = state.guestbook()
    try:
        book.sign(text)
    except ValueError as e:
        raise click.BadParameter(str(e), param_hint="TEXT") from e
    print_success("Thanks for signing!")
    warn_if_unsaved(book)


@guestbook.command("list")
@click.pass_obj
def guestbook_list(state: CLIState) -> None:
    """Show all notes, newest first."""
    messages = state.guestbook().messages
    if not messages:
        print_info("The guestbook is empty.")
        return
    for message in messages:
        console.print(f"[dim]{message.id[:8]}  {escape(message.timestamp)}[/dim]")
        console.print(f"  {escape(message.text)}")


@guestbook.command("remove")
@click.argument("message_id")
@click.pass_obj
def guestbook_remove(state: CLIState, message_id: str) -> None:
    """Delete a note by id or id prefix."""
    book = state.guestbook()
    matches = [m for m in book.messages if m.id == message_id or m.id.startswith(message_id)]
    if len(matches) != 1:
        raise click.ClickException(f"No unique message matches {message_id!r}")
    book.remove(matches[0].id)
    print_success("Message removed")
    warn_if_unsaved(book)
