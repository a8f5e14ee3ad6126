"""CLI entry point for somanynotes."""

import json
import sys
from pathlib import Path

import click

from . import library
from .config import load_config
from .exceptions import CollectionError, ConfigError, StoreError
from .models import DEFAULT_COLLECTION, Author
from .packer import write_export
from .store import NoteStore
from .unpacker import summarize_errors


def _store(ctx: click.Context) -> NoteStore:
    return ctx.obj["store"]


def _load(ctx: click.Context):
    try:
        return _store(ctx).load()
    except StoreError as e:
        click.echo(f"Store error: {e}", err=True)
        sys.exit(2)


def _save(ctx: click.Context, data) -> None:
    try:
        _store(ctx).save(data)
    except StoreError as e:
        click.echo(f"Store error: {e}", err=True)
        sys.exit(2)


def _require_note(data, note_id: str) -> None:
    if not library.is_note_saved(data, note_id):
        click.echo(f"Note not found: {note_id}", err=True)
        sys.exit(1)


def _change_collections(ctx, operation, *args) -> None:
    data = _load(ctx)
    try:
        updated = operation(data, *args)
    except CollectionError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)
    _save(ctx, updated)


@click.group()
@click.option(
    "--store-path",
    type=click.Path(dir_okay=False),
    default=None,
    help="JSON file holding saved notes (default: ./somanynotes.json or SOMANYNOTES_STORE_PATH env var)",
)
@click.option(
    "--verbose", "-v",
    is_flag=True,
    default=False,
    help="Enable verbose output",
)
@click.pass_context
def main(ctx, store_path, verbose):
    """Save, rank and annotate Nostr notes, and move them between devices.

    Example: somanynotes export --output-dir ~/backups
    """
    try:
        config = load_config(store_path=store_path, verbose=verbose)
    except ConfigError as e:
        click.echo(f"Configuration error: {e}", err=True)
        sys.exit(2)

    if verbose:
        click.echo(f"Store path: {config.store_path}")

    ctx.obj = {"config": config, "store": NoteStore(config.store_path)}


@main.command()
@click.argument("event_file", type=click.Path(exists=True, dir_okay=False))
@click.option("--collection", "-c", default=DEFAULT_COLLECTION, help="Collection to file the note under")
@click.option(
    "--author-metadata",
    type=click.Path(exists=True, dir_okay=False),
    default=None,
    help="JSON file with the author's profile metadata",
)
@click.pass_context
def add(ctx, event_file, collection, author_metadata):
    """Save the event stored in EVENT_FILE (JSON) as a note."""
    try:
        event = json.loads(Path(event_file).read_text(encoding="utf-8"))
        metadata = (
            json.loads(Path(author_metadata).read_text(encoding="utf-8"))
            if author_metadata else None
        )
    except json.JSONDecodeError as e:
        click.echo(f"Invalid JSON: {e}", err=True)
        sys.exit(1)

    if not isinstance(event, dict) or "id" not in event or "pubkey" not in event:
        click.echo("Event JSON must contain 'id' and 'pubkey'", err=True)
        sys.exit(1)

    author = Author(pubkey=event["pubkey"], metadata=metadata or None)
    _change_collections(ctx, library.add_note, event, author, collection)
    click.echo(f"Saved note {event['id']} to {collection}")


@main.command("list")
@click.argument("collection", required=False)
@click.pass_context
def list_notes(ctx, collection):
    """List saved notes, ranked by upvotes, optionally for one COLLECTION."""
    data = _load(ctx)
    names = [collection] if collection else data.collections

    for name in names:
        notes = library.notes_by_collection(data, name)
        click.echo(f"{name} ({len(notes)})")
        for note in notes:
            preview = note.content[:60].replace("\n", " ")
            marker = " *" if note.thoughts else ""
            click.echo(
                f"  {note.id[:8]}  {note.upvotes:>3}  "
                f"{note.author.display_name}: {preview}{marker}"
            )


@main.command()
@click.pass_context
def collections(ctx):
    """Show every collection with its note count."""
    data = _load(ctx)
    for name, notes in library.group_by_collection(data).items():
        click.echo(f"{name}: {len(notes)} notes")


@main.command()
@click.argument("note_id")
@click.pass_context
def upvote(ctx, note_id):
    """Give a note one more upvote."""
    data = _load(ctx)
    _require_note(data, note_id)
    _save(ctx, library.upvote_note(data, note_id))


@main.command()
@click.argument("note_id")
@click.pass_context
def downvote(ctx, note_id):
    """Take one upvote away from a note."""
    data = _load(ctx)
    _require_note(data, note_id)
    _save(ctx, library.downvote_note(data, note_id))


@main.command()
@click.argument("note_id")
@click.argument("collection")
@click.pass_context
def move(ctx, note_id, collection):
    """Move a note into COLLECTION, creating it if needed."""
    _require_note(_load(ctx), note_id)
    _change_collections(ctx, library.move_note, note_id, collection)
    click.echo(f"Moved {note_id} to {collection}")


@main.command()
@click.argument("note_id")
@click.argument("text", default="")
@click.pass_context
def thoughts(ctx, note_id, text):
    """Set your thoughts on a note (empty TEXT clears them)."""
    data = _load(ctx)
    _require_note(data, note_id)
    _save(ctx, library.update_note_thoughts(data, note_id, text))


@main.command()
@click.argument("note_id")
@click.pass_context
def remove(ctx, note_id):
    """Delete a saved note."""
    data = _load(ctx)
    _require_note(data, note_id)
    _save(ctx, library.remove_note(data, note_id))
    click.echo(f"Removed {note_id}")


@main.command("create-collection")
@click.argument("name")
@click.pass_context
def create_collection(ctx, name):
    """Register an empty collection."""
    _change_collections(ctx, library.create_collection, name)


@main.command("rename-collection")
@click.argument("old_name")
@click.argument("new_name")
@click.pass_context
def rename_collection(ctx, old_name, new_name):
    """Rename a collection and every note in it."""
    _change_collections(ctx, library.rename_collection, old_name, new_name)


@main.command("delete-collection")
@click.argument("name")
@click.pass_context
def delete_collection(ctx, name):
    """Delete a collection, moving its notes back to Default."""
    _change_collections(ctx, library.delete_collection, name)


@main.command("export")
@click.option(
    "--output-dir",
    type=click.Path(file_okay=False),
    default=None,
    help="Directory for the zip (default: current directory or SOMANYNOTES_EXPORT_DIR env var)",
)
@click.pass_context
def export_notes(ctx, output_dir):
    """Export every collection as a zip of markdown files."""
    config = ctx.obj["config"]
    data = _load(ctx)
    target = Path(output_dir) if output_dir else config.export_dir

    try:
        path = write_export(
            library.group_by_collection(data), target, verbose=config.verbose
        )
    except OSError as e:
        click.echo(f"Failed to write export: {e}", err=True)
        sys.exit(2)

    click.echo(f"Exported {len(data.notes)} notes to: {path}")


@main.command("import")
@click.argument("archive", type=click.Path(exists=True, dir_okay=False))
@click.option(
    "--overwrite/--no-overwrite",
    default=False,
    help="Replace notes that are already saved (default: skip them)",
)
@click.option(
    "--merge-collections/--no-merge-collections",
    default=True,
    help="Register collections found in the archive (default: yes)",
)
@click.pass_context
def import_notes(ctx, archive, overwrite, merge_collections):
    """Import notes from an export ARCHIVE."""
    config = ctx.obj["config"]
    try:
        result = _store(ctx).import_notes(
            archive,
            overwrite_existing=overwrite,
            merge_collections=merge_collections,
            verbose=config.verbose,
        )
    except StoreError as e:
        click.echo(f"Store error: {e}", err=True)
        sys.exit(2)

    if result.success:
        click.echo(f"Imported {result.imported} notes, skipped {result.skipped}")
        if config.verbose and result.collections:
            click.echo(f"Collections: {', '.join(result.collections)}")

    if result.errors:
        click.echo(f"Errors ({len(result.errors)}):", err=True)
        for line in summarize_errors(result.errors):
            click.echo(f"  {line}", err=True)

    if not result.success:
        sys.exit(2)
    elif result.errors:
        sys.exit(1)
