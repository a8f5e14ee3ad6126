"""Read an export archive back into notes.

Walks every entry of the zip, skips the generated summary documents, and
decodes the remaining markdown files. Problems with a single entry are
recorded and the walk continues. The store itself is only read, never
changed; merging the batch is left to ``merge.merge_imported_notes``.
"""

import io
import zipfile
from pathlib import Path
from typing import BinaryIO, Union

import click

from .codec import parse_note_from_markdown
from .exceptions import NoteDecodeError
from .models import DEFAULT_COLLECTION, ImportResult, Note, NotesData
from .packer import COLLECTION_SUMMARY_NAME, README_NAME, SUMMARY_NAME

NO_VALID_NOTES = "No valid notes found in the zip file"

ArchiveSource = Union[str, Path, bytes, BinaryIO]

_IGNORED_NAMES = (README_NAME, SUMMARY_NAME, COLLECTION_SUMMARY_NAME)


def is_note_entry(info: zipfile.ZipInfo) -> bool:
    """Whether an archive entry should be decoded as a note document."""
    if info.is_dir() or not info.filename.endswith(".md"):
        return False
    return not any(name in info.filename for name in _IGNORED_NAMES)


def collection_for_path(path: str) -> str:
    """Collection a document belongs to, from its folder in the archive."""
    parts = path.split("/")
    return parts[0] if len(parts) > 1 else DEFAULT_COLLECTION


def import_notes_from_zip(
    source: ArchiveSource,
    existing: NotesData,
    overwrite_existing: bool = False,
    verbose: bool = False,
) -> ImportResult:
    """Decode every note document in an export archive.

    Args:
        source: Path to the zip, its raw bytes, or an open binary file.
        existing: Current store state, used to skip notes that already exist.
        overwrite_existing: Keep notes whose id is already saved instead of
            skipping them.
        verbose: Echo one line per skipped or failed entry.

    Returns:
        An ImportResult. ``success`` is False when the archive cannot be
        opened or holds no importable notes.
    """
    result = ImportResult()
    existing_ids = {note.id for note in existing.notes}
    new_notes: list[Note] = []
    new_collections: dict[str, None] = {}

    if isinstance(source, bytes):
        source = io.BytesIO(source)

    try:
        with zipfile.ZipFile(source) as archive:
            for info in archive.infolist():
                if not is_note_entry(info):
                    continue

                path = info.filename
                collection_name = collection_for_path(path)
                try:
                    text = archive.read(info).decode("utf-8")
                    note = parse_note_from_markdown(text, collection_name)
                except NoteDecodeError as e:
                    result.errors.append(f"Failed to parse note from {path}: {e}")
                    if verbose:
                        click.echo(f"  Warning: could not parse {path}: {e}", err=True)
                    continue
                except Exception as e:
                    result.errors.append(f"Error processing {path}: {e}")
                    if verbose:
                        click.echo(f"  Warning: could not read {path}: {e}", err=True)
                    continue

                if note.id in existing_ids and not overwrite_existing:
                    result.skipped += 1
                    if verbose:
                        click.echo(f"  Skipped {path}: note {note.id} already saved")
                    continue

                new_notes.append(note)
                new_collections[collection_name] = None
                result.imported += 1
    except (zipfile.BadZipFile, OSError) as e:
        return ImportResult(errors=[f"Failed to process zip file: {e}"])

    if not new_notes:
        result.errors.append(NO_VALID_NOTES)
        return result

    result.collections = list(new_collections)
    result.notes = new_notes
    result.success = True
    return result


def summarize_errors(errors: list[str], limit: int = 3) -> list[str]:
    """First few errors plus a count of the rest, for display."""
    shown = errors[:limit]
    if len(errors) > limit:
        shown.append(f"+{len(errors) - limit} more errors")
    return shown
