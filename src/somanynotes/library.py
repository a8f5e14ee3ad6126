"""Operations on saved notes and their collections.

Every function takes the current ``NotesData`` and returns a new one, leaving
its input untouched. Persisting the result is the caller's job.
"""

from dataclasses import replace
from typing import Any, Optional

from .exceptions import CollectionError
from .models import DEFAULT_COLLECTION, Author, Note, NotesData
from .packer import sort_notes
from .utils import now_ms


def _with_collection(collections: list[str], name: str) -> list[str]:
    return collections if name in collections else [*collections, name]


def _check_collection_name(name: str) -> None:
    if not name.strip():
        raise CollectionError("Collection name cannot be empty")


def _update_note(data: NotesData, note_id: str, **changes: Any) -> NotesData:
    notes = [
        replace(note, **changes) if note.id == note_id else note
        for note in data.notes
    ]
    return replace(data, notes=notes)


def find_note(data: NotesData, note_id: str) -> Optional[Note]:
    return next((note for note in data.notes if note.id == note_id), None)


def is_note_saved(data: NotesData, note_id: str) -> bool:
    return find_note(data, note_id) is not None


def get_note_collection(data: NotesData, note_id: str) -> Optional[str]:
    note = find_note(data, note_id)
    return note.collection if note else None


def add_note(
    data: NotesData,
    event: dict[str, Any],
    author: Author,
    collection: str = DEFAULT_COLLECTION,
    saved_at: Optional[int] = None,
) -> NotesData:
    """Save an event as a new note at the front of the list.

    A note already saved under the same event id is replaced.
    """
    _check_collection_name(collection)
    note = Note(
        id=event["id"],
        event=event,
        author=author,
        collection=collection,
        upvotes=0,
        saved_at=saved_at if saved_at is not None else now_ms(),
    )
    return NotesData(
        notes=[note, *(n for n in data.notes if n.id != note.id)],
        collections=_with_collection(data.collections, collection),
    )


def remove_note(data: NotesData, note_id: str) -> NotesData:
    return replace(data, notes=[n for n in data.notes if n.id != note_id])


def upvote_note(data: NotesData, note_id: str) -> NotesData:
    note = find_note(data, note_id)
    if note is None:
        return data
    return _update_note(data, note_id, upvotes=note.upvotes + 1)


def downvote_note(data: NotesData, note_id: str) -> NotesData:
    """Take one vote away, never going below zero."""
    note = find_note(data, note_id)
    if note is None:
        return data
    return _update_note(data, note_id, upvotes=max(0, note.upvotes - 1))


def move_note(data: NotesData, note_id: str, collection: str) -> NotesData:
    _check_collection_name(collection)
    moved = _update_note(data, note_id, collection=collection)
    return replace(moved, collections=_with_collection(data.collections, collection))


def update_note_thoughts(data: NotesData, note_id: str, thoughts: str) -> NotesData:
    """Set a note's annotation; blank text clears it."""
    return _update_note(data, note_id, thoughts=thoughts.strip() or None)


def create_collection(data: NotesData, name: str) -> NotesData:
    _check_collection_name(name)
    return replace(data, collections=_with_collection(data.collections, name))


def rename_collection(data: NotesData, old_name: str, new_name: str) -> NotesData:
    """Rename a collection and move its notes along with it.

    Raises:
        CollectionError: For the Default collection, an unknown or taken
            name, or a blank new name.
    """
    if old_name == DEFAULT_COLLECTION:
        raise CollectionError("The Default collection cannot be renamed")
    if old_name not in data.collections:
        raise CollectionError(f"Unknown collection: {old_name}")
    if new_name in data.collections:
        raise CollectionError(f"Collection already exists: {new_name}")
    if not new_name.strip():
        raise CollectionError("Collection name cannot be empty")

    return NotesData(
        notes=[
            replace(n, collection=new_name) if n.collection == old_name else n
            for n in data.notes
        ],
        collections=[new_name if c == old_name else c for c in data.collections],
    )


def delete_collection(data: NotesData, name: str) -> NotesData:
    """Remove a collection; its notes fall back to Default."""
    if name == DEFAULT_COLLECTION:
        raise CollectionError("The Default collection cannot be deleted")

    return NotesData(
        notes=[
            replace(n, collection=DEFAULT_COLLECTION) if n.collection == name else n
            for n in data.notes
        ],
        collections=[c for c in data.collections if c != name],
    )


def notes_by_collection(data: NotesData, collection: str) -> list[Note]:
    """Notes of one collection, ranked the same way the export ranks them."""
    return sort_notes([n for n in data.notes if n.collection == collection])


def group_by_collection(data: NotesData) -> dict[str, list[Note]]:
    """Map every registered collection, empty ones included, to its notes."""
    grouped: dict[str, list[Note]] = {name: [] for name in data.collections}
    for note in data.notes:
        grouped.setdefault(note.collection, []).append(note)
    return grouped
