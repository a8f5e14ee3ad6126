"""Data models for somanynotes."""

from dataclasses import dataclass, field
from typing import Any, Optional

from .utils import gen_user_name

DEFAULT_COLLECTION = "Default"


@dataclass
class Author:
    """Public key of a note's author plus whatever profile metadata we know."""

    pubkey: str
    metadata: Optional[dict[str, Any]] = None

    @property
    def display_name(self) -> str:
        if self.metadata and self.metadata.get("name"):
            return self.metadata["name"]
        return gen_user_name(self.pubkey)


@dataclass
class Note:
    """A saved post with its collection, rating and annotation."""

    id: str
    event: dict[str, Any]
    author: Author
    collection: str = DEFAULT_COLLECTION
    upvotes: int = 0
    saved_at: int = 0  # milliseconds since epoch
    thoughts: Optional[str] = None

    @property
    def content(self) -> str:
        return self.event.get("content", "")

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "id": self.id,
            "event": self.event,
            "author": {"pubkey": self.author.pubkey},
            "collection": self.collection,
            "upvotes": self.upvotes,
            "savedAt": self.saved_at,
        }
        if self.author.metadata is not None:
            data["author"]["metadata"] = self.author.metadata
        if self.thoughts is not None:
            data["thoughts"] = self.thoughts
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Note":
        author = data.get("author") or {}
        return cls(
            id=data["id"],
            event=data["event"],
            author=Author(
                pubkey=author.get("pubkey", ""),
                metadata=author.get("metadata"),
            ),
            collection=data.get("collection", DEFAULT_COLLECTION),
            upvotes=int(data.get("upvotes", 0)),
            saved_at=int(data.get("savedAt", 0)),
            thoughts=data.get("thoughts"),
        )


@dataclass
class NotesData:
    """Everything the store persists: notes in order plus the collection registry."""

    notes: list[Note] = field(default_factory=list)
    collections: list[str] = field(
        default_factory=lambda: [DEFAULT_COLLECTION]
    )

    def to_dict(self) -> dict[str, Any]:
        return {
            "notes": [note.to_dict() for note in self.notes],
            "collections": list(self.collections),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "NotesData":
        collections = list(data.get("collections") or [])
        if DEFAULT_COLLECTION not in collections:
            collections.insert(0, DEFAULT_COLLECTION)
        return cls(
            notes=[Note.from_dict(n) for n in data.get("notes") or []],
            collections=collections,
        )


@dataclass
class ImportResult:
    """Outcome of reading one export archive."""

    success: bool = False
    imported: int = 0
    skipped: int = 0
    errors: list[str] = field(default_factory=list)
    collections: list[str] = field(default_factory=list)
    notes: Optional[list[Note]] = None
