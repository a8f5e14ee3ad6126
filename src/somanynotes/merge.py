"""Combine an imported batch of notes with the notes already saved."""

from .models import Note, NotesData


def merge_imported_notes(
    existing: NotesData,
    imported: list[Note],
    overwrite_existing: bool = False,
    merge_collections: bool = True,
) -> NotesData:
    """Return a new store state with the imported notes folded in.

    A note whose id is already saved replaces the saved one in place when
    ``overwrite_existing`` is set and is dropped otherwise. New notes are
    appended in batch order. Neither argument is modified.
    """
    merged_notes = list(existing.notes)
    merged_collections = dict.fromkeys(existing.collections)
    positions: dict[str, int] = {}
    for index, note in enumerate(merged_notes):
        positions.setdefault(note.id, index)

    for note in imported:
        index = positions.get(note.id)
        if index is not None:
            if overwrite_existing:
                merged_notes[index] = note
        else:
            positions[note.id] = len(merged_notes)
            merged_notes.append(note)

        if merge_collections:
            merged_collections[note.collection] = None

    return NotesData(notes=merged_notes, collections=list(merged_collections))
