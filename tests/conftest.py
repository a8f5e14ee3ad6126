import io
import zipfile
from datetime import datetime

import pytest

from somanynotes.models import Author, Note

SAVED_AT = int(datetime(2024, 3, 15, 14, 30).timestamp() * 1000)

_DEFAULT_METADATA = {
    "name": "Test User",
    "about": "A test user",
    "picture": "https://example.com/avatar.jpg",
}


def _make_event(event_id, content="This is a test note", pubkey="testpubkey123"):
    return {
        "id": event_id,
        "pubkey": pubkey,
        "created_at": 1700000000,
        "kind": 1,
        "tags": [["t", "nostr"], ["p", "abc123"]],
        "content": content,
        "sig": "testsig",
    }


def _make_note(
    event_id,
    content="This is a test note",
    thoughts=None,
    collection="Test Collection",
    upvotes=5,
    saved_at=SAVED_AT,
    pubkey="testpubkey123",
    metadata=_DEFAULT_METADATA,
):
    event = _make_event(event_id, content=content, pubkey=pubkey)
    return Note(
        id=event_id,
        event=event,
        author=Author(pubkey=pubkey, metadata=dict(metadata) if metadata else None),
        collection=collection,
        upvotes=upvotes,
        saved_at=saved_at,
        thoughts=thoughts,
    )


def _build_zip(entries):
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w") as archive:
        for name, content in entries.items():
            archive.writestr(name, content)
    return buffer.getvalue()


@pytest.fixture
def make_event():
    return _make_event


@pytest.fixture
def make_note():
    return _make_note


@pytest.fixture
def build_zip():
    """Zip bytes from a mapping of entry name to text or bytes."""
    return _build_zip
