"""Pack collections of notes into a portable zip archive."""

import io
import zipfile
from collections import Counter
from datetime import datetime
from pathlib import Path
from typing import Optional

import click

from .codec import note_to_markdown
from .models import Note
from .utils import (
    export_filename,
    format_locale_datetime,
    sanitize_filename,
    sanitize_folder_name,
)

README_NAME = "README.md"
SUMMARY_NAME = "SUMMARY.md"
COLLECTION_SUMMARY_NAME = "_COLLECTION_SUMMARY.md"

TOP_AUTHORS_LIMIT = 10
PREVIEW_LENGTH = 100


def sort_notes(notes: list[Note]) -> list[Note]:
    """Most upvoted first, then most recently saved."""
    return sorted(notes, key=lambda n: (n.upvotes, n.saved_at), reverse=True)


def build_readme(now: datetime) -> str:
    """Static explanation of the archive layout."""
    return f"""# So Many Notes Export

This export contains your saved Nostr notes organized by collection.

## Structure

Each collection is stored in its own folder:
- `Default/` - Notes in the Default collection
- `[Collection Name]/` - Notes in custom collections

## File Format

Each note is saved as a Markdown (.md) file containing:
- Note metadata (author, dates, upvotes, etc.)
- Original content
- Full event JSON for reference
- Author metadata

## Import

These files can be:
- Read in any markdown editor
- Imported into note-taking apps
- Used as backup/archive
- Shared with others

Generated on: {format_locale_datetime(now)}
"""


def top_authors(
    notes_by_collection: dict[str, list[Note]], limit: int = TOP_AUTHORS_LIMIT
) -> list[tuple[str, int]]:
    """Authors with the most saved notes across every collection.

    Ties keep the order in which authors were first seen.
    """
    counts = Counter(
        note.author.display_name
        for notes in notes_by_collection.values()
        for note in notes
    )
    return counts.most_common(limit)


def build_summary(notes_by_collection: dict[str, list[Note]], now: datetime) -> str:
    """Aggregate statistics for the whole export."""
    total_notes = sum(len(notes) for notes in notes_by_collection.values())
    collections = sorted(notes_by_collection)

    lines = [
        "# Export Summary",
        "",
        f"**Total Notes:** {total_notes}",
        f"**Collections:** {len(collections)}",
        f"**Export Date:** {format_locale_datetime(now)}",
        "",
        "## Collections",
        "",
    ]
    for name in collections:
        lines.append(f"- **{name}:** {len(notes_by_collection[name])} notes")
    lines.extend(["", "## Top Authors", ""])
    for name, count in top_authors(notes_by_collection):
        lines.append(f"- **{name}:** {count} notes")
    return "\n".join(lines) + "\n"


def build_collection_summary(
    collection_name: str, sorted_notes: list[Note], now: datetime
) -> str:
    """Ranked overview of one collection's notes."""
    entries = []
    for index, note in enumerate(sorted_notes, start=1):
        preview = note.content[:PREVIEW_LENGTH].replace("\n", " ")
        if len(note.content) > PREVIEW_LENGTH:
            preview += "..."
        entries.append(
            f"{index:03d}. **{note.author.display_name}** ({note.upvotes} upvotes)\n"
            f"     {preview}"
        )

    header = "\n".join([
        f"# {collection_name} Collection",
        "",
        f"**Total Notes:** {len(sorted_notes)}",
        "**Created:** Various dates",
        f"**Last Updated:** {format_locale_datetime(now)}",
        "",
        "## Notes in this Collection",
        "",
    ])
    return header + "\n" + "\n\n".join(entries) + "\n"


def _unique_folder(name: str, used: set[str]) -> str:
    candidate, counter = name, 2
    while candidate in used:
        candidate = f"{name}_{counter}"
        counter += 1
    used.add(candidate)
    return candidate


def pack_notes(
    notes_by_collection: dict[str, list[Note]],
    now: Optional[datetime] = None,
    verbose: bool = False,
) -> bytes:
    """Build the export archive and return it as zip bytes.

    Collections without notes get no folder. Names that sanitize to the
    same folder get a numeric suffix, so they come back as separate
    collections on import.
    """
    now = now or datetime.now()
    buffer = io.BytesIO()
    used_folders: set[str] = set()

    with zipfile.ZipFile(buffer, "w", compression=zipfile.ZIP_DEFLATED) as archive:
        archive.writestr(README_NAME, build_readme(now))
        archive.writestr(SUMMARY_NAME, build_summary(notes_by_collection, now))

        for collection_name, notes in notes_by_collection.items():
            if not notes:
                continue

            folder_name = _unique_folder(sanitize_folder_name(collection_name), used_folders)
            sorted_notes = sort_notes(notes)

            for index, note in enumerate(sorted_notes, start=1):
                markdown, filename = note_to_markdown(note)
                entry_name = f"{folder_name}/{index:03d}_{sanitize_filename(filename)}.md"
                archive.writestr(entry_name, markdown)

            archive.writestr(
                f"{folder_name}/{COLLECTION_SUMMARY_NAME}",
                build_collection_summary(collection_name, sorted_notes, now),
            )
            if verbose:
                click.echo(f"  Packed {len(sorted_notes)} notes from {collection_name}")

    return buffer.getvalue()


def write_export(
    notes_by_collection: dict[str, list[Note]],
    output_dir: Path,
    now: Optional[datetime] = None,
    verbose: bool = False,
) -> Path:
    """Write the export archive into output_dir.

    Returns the path to the created zip file.
    """
    now = now or datetime.now()
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)

    filepath = output_dir / export_filename(now.date())
    filepath.write_bytes(pack_notes(notes_by_collection, now=now, verbose=verbose))
    return filepath
