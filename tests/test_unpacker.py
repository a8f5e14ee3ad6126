import struct

import pytest

from somanynotes.codec import note_to_markdown
from somanynotes.models import NotesData
from somanynotes.packer import pack_notes
from somanynotes.unpacker import (
    NO_VALID_NOTES,
    collection_for_path,
    import_notes_from_zip,
    summarize_errors,
)


def _doc(note):
    return note_to_markdown(note)[0]


def _patch_central_header(data, entry_name, offset, value):
    """Overwrite one 2-byte field of an entry's central directory record."""
    central = data.find(b"PK\x01\x02")
    header = data.find(entry_name.encode(), central) - 46
    return data[:header + offset] + struct.pack("<H", value) + data[header + offset + 2:]


def test_collection_inferred_from_folder(make_note, build_zip):
    data = build_zip({
        "Work/042_foo.md": _doc(make_note("in-folder", collection="Ignored")),
        "042_foo.md": _doc(make_note("top-level", collection="Ignored")),
    })
    result = import_notes_from_zip(data, NotesData())

    assert result.success
    collections = {note.id: note.collection for note in result.notes}
    assert collections == {"in-folder": "Work", "top-level": "Default"}
    assert result.collections == ["Work", "Default"]


def test_collection_for_path():
    assert collection_for_path("Work/042_foo.md") == "Work"
    assert collection_for_path("Work/nested/042_foo.md") == "Work"
    assert collection_for_path("042_foo.md") == "Default"


def test_bad_document_is_isolated(make_note, build_zip):
    good = _doc(make_note("good"))
    bad = good.split("## Metadata")[0]
    data = build_zip({"Default/001_good.md": good, "Default/002_bad.md": bad})

    result = import_notes_from_zip(data, NotesData())

    assert result.success
    assert result.imported == 1
    assert len(result.errors) == 1
    assert "Default/002_bad.md" in result.errors[0]
    assert "No Event JSON found" in result.errors[0]


def test_undecodable_entry_is_isolated(make_note, build_zip):
    data = build_zip({
        "Default/001_good.md": _doc(make_note("good")),
        "Default/002_binary.md": b"\xff\xfe\xfa\x00",
    })
    result = import_notes_from_zip(data, NotesData())

    assert result.success
    assert result.imported == 1
    assert result.errors[0].startswith("Error processing Default/002_binary.md")


def test_only_summaries_means_no_valid_notes(build_zip):
    data = build_zip({"README.md": "# readme", "SUMMARY.md": "# summary"})
    result = import_notes_from_zip(data, NotesData())

    assert not result.success
    assert result.imported == 0
    assert result.errors == [NO_VALID_NOTES]
    assert result.notes is None


def test_generated_and_foreign_entries_are_ignored(make_note, build_zip):
    data = build_zip({
        "Work/": "",
        "Work/_COLLECTION_SUMMARY.md": "# Work Collection",
        "Work/SUMMARY.md": "# nested summary",
        "Work/image.png": b"\x89PNG",
        "Work/notes.txt": "plain text",
        "Work/001_note.md": _doc(make_note("kept")),
    })
    result = import_notes_from_zip(data, NotesData())

    assert result.success
    assert [note.id for note in result.notes] == ["kept"]
    assert result.errors == []


def test_corrupt_archive():
    result = import_notes_from_zip(b"definitely not a zip", NotesData())

    assert not result.success
    assert result.imported == 0
    assert result.skipped == 0
    assert len(result.errors) == 1
    assert result.errors[0].startswith("Failed to process zip file")


def test_existing_notes_are_skipped(make_note, build_zip):
    existing = NotesData(notes=[make_note("X")])
    data = build_zip({
        "Default/001_x.md": _doc(make_note("X", upvotes=99)),
        "Default/002_y.md": _doc(make_note("Y")),
    })
    result = import_notes_from_zip(data, existing)

    assert result.skipped == 1
    assert result.imported == 1
    assert [note.id for note in result.notes] == ["Y"]
    assert existing.notes[0].upvotes == 5


def test_existing_notes_kept_when_overwriting(make_note, build_zip):
    existing = NotesData(notes=[make_note("X")])
    data = build_zip({"Default/001_x.md": _doc(make_note("X", upvotes=99))})

    result = import_notes_from_zip(data, existing, overwrite_existing=True)

    assert result.success
    assert result.skipped == 0
    assert result.notes[0].upvotes == 99


def test_only_skipped_notes_is_a_failure(make_note, build_zip):
    existing = NotesData(notes=[make_note("X")])
    data = build_zip({"Default/001_x.md": _doc(make_note("X"))})

    result = import_notes_from_zip(data, existing)

    assert not result.success
    assert result.skipped == 1
    assert result.errors == [NO_VALID_NOTES]


def test_reads_archive_from_path(tmp_path, make_note):
    archive = tmp_path / "export.zip"
    archive.write_bytes(pack_notes({"Work": [make_note("p1", collection="Work")]}))

    result = import_notes_from_zip(archive, NotesData())

    assert result.success
    assert result.notes[0].collection == "Work"


def test_packed_archive_imports_every_note(make_note):
    notes_by_collection = {
        "Default": [make_note("d1", collection="Default")],
        "Work": [
            make_note("w1", collection="Work", thoughts="keep this"),
            make_note("w2", collection="Work", upvotes=0, metadata=None),
        ],
        "Empty": [],
    }
    result = import_notes_from_zip(pack_notes(notes_by_collection), NotesData())

    assert result.success
    assert result.imported == 3
    assert sorted(result.collections) == ["Default", "Work"]
    by_id = {note.id: note for note in result.notes}
    assert by_id["w1"].thoughts == "keep this"
    assert by_id["w2"].author.metadata is None
    assert by_id["w2"].upvotes == 0


def test_summarize_errors():
    errors = [f"error {i}" for i in range(5)]
    assert summarize_errors(errors) == ["error 0", "error 1", "error 2", "+2 more errors"]
    assert summarize_errors(errors[:2]) == ["error 0", "error 1"]


@pytest.mark.parametrize("offset, value", [
    (10, 99),  # unknown compression method
    (8, 0x1),  # encrypted
])
def test_unreadable_entry_is_isolated(make_note, build_zip, offset, value):
    data = build_zip({
        "Default/001_good.md": _doc(make_note("good")),
        "Default/002_locked.md": _doc(make_note("locked")),
    })
    data = _patch_central_header(data, "Default/002_locked.md", offset, value)

    result = import_notes_from_zip(data, NotesData())

    assert result.success
    assert result.imported == 1
    assert len(result.errors) == 1
    assert result.errors[0].startswith("Error processing Default/002_locked.md")


def test_deeply_nested_event_json_is_isolated(make_note, build_zip):
    nested = (
        "**Author Pubkey:** `pk`\n"
        "\n## Metadata\n\n- **Event JSON:**\n```json\n"
        + "[" * 100000 + "]" * 100000
        + "\n```\n"
    )
    data = build_zip({
        "Default/001_good.md": _doc(make_note("good")),
        "Default/002_nested.md": nested,
    })

    result = import_notes_from_zip(data, NotesData())

    assert result.success
    assert result.imported == 1
    assert len(result.errors) == 1
    assert "Default/002_nested.md" in result.errors[0]
