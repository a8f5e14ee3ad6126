"""Markdown archive documents: one saved note per file, and back again.

The decoder is tied to the exact layout the encoder writes. It extracts each
section with anchored patterns instead of parsing the document as general
markdown, so anything the encoder never produces is not supported.
"""

import json
import re
from typing import Any, Optional

from .exceptions import NoteDecodeError
from .models import Author, Note
from .utils import content_slug, format_locale_date, now_ms, parse_locale_date

THOUGHTS_HEADING = "## Your Thoughts"
METADATA_HEADING = "## Metadata"

_EVENT_JSON_RE = re.compile(r"- \*\*Event JSON:\*\*\n```json\n(.*?)\n```", re.DOTALL)
_AUTHOR_METADATA_RE = re.compile(
    r"- \*\*Author Metadata:\*\*\n```json\n(.*?)\n```", re.DOTALL
)
_PUBKEY_RE = re.compile(r"\*\*Author Pubkey:\*\* `([^`]+)`")
_UPVOTES_RE = re.compile(r"\*\*Upvotes:\*\* (\d+)")
_SAVED_RE = re.compile(r"\*\*Saved:\*\* ([^\n]+)")
_THOUGHTS_RE = re.compile(r"## Your Thoughts\n\n(.*)\n\n---\n?\Z", re.DOTALL)
_THOUGHTS_FALLBACK_RE = re.compile(r"## Your Thoughts\n\n(.*)\Z", re.DOTALL)


def has_thoughts(thoughts: Optional[str]) -> bool:
    return bool(thoughts and thoughts.strip())


def note_filename(note: Note) -> str:
    """Suggested filename stem (without .md) for a note's document."""
    return content_slug(note.content) or f"note-{str(note.event.get('id', ''))[:8]}"


def note_to_markdown(note: Note) -> tuple[str, str]:
    """Render a note as an archive document.

    Returns the markdown text and a suggested filename stem.
    """
    event = note.event
    author_name = note.author.display_name
    created = format_locale_date(int(event.get("created_at", 0)) * 1000)
    saved = format_locale_date(note.saved_at)

    lines = [
        f"# Note by {author_name}",
        "",
        f"**Author:** {author_name}",
        f"**Author Pubkey:** `{note.author.pubkey}`",
        f"**Event ID:** `{event.get('id', '')}`",
        f"**Kind:** {event.get('kind', '')}",
        f"**Created:** {created}",
        f"**Saved:** {saved}",
        f"**Upvotes:** {note.upvotes}",
        f"**Collection:** {note.collection}",
        "",
        "---",
        "",
        "## Content",
        "",
        note.content,
        "",
        "---",
    ]
    if has_thoughts(note.thoughts):
        lines.extend([
            "",
            THOUGHTS_HEADING,
            "",
            note.thoughts,
            "",
            "---",
        ])
    lines.extend([
        "",
        METADATA_HEADING,
        "",
        "- **Event JSON:**",
        "```json",
        _dump_json(event),
        "```",
        "",
        "- **Author Metadata:**",
        "```json",
        _dump_json(note.author.metadata or {}),
        "```",
        "",
    ])
    return "\n".join(lines), note_filename(note)


def parse_note_from_markdown(markdown: str, collection_name: str) -> Note:
    """Rebuild a note from a document written by note_to_markdown.

    The note id comes from the embedded event and the collection from
    ``collection_name`` (where the document lives in the archive), never
    from the document header.

    Raises:
        NoteDecodeError: If the event JSON or author pubkey is missing, or a
            JSON block is malformed.
    """
    # The metadata appendix is always last and its JSON cannot contain a
    # raw newline, so the last heading is the real one.
    split_at = markdown.rfind(f"\n{METADATA_HEADING}\n")
    if split_at == -1:
        body, appendix = markdown, markdown
    else:
        body, appendix = markdown[:split_at], markdown[split_at:]

    event_match = _EVENT_JSON_RE.search(appendix)
    if not event_match:
        raise NoteDecodeError("No Event JSON found in markdown")
    event = _load_json(event_match.group(1), "Event JSON")
    if not isinstance(event, dict) or not isinstance(event.get("id"), str):
        raise NoteDecodeError("Event JSON has no event id")

    metadata = None
    metadata_match = _AUTHOR_METADATA_RE.search(appendix)
    if metadata_match:
        parsed = _load_json(metadata_match.group(1), "Author Metadata")
        # {} is written for authors without metadata
        if isinstance(parsed, dict) and parsed:
            metadata = parsed

    pubkey_match = _PUBKEY_RE.search(body)
    if not pubkey_match:
        raise NoteDecodeError("No author pubkey found in markdown")

    upvotes_match = _UPVOTES_RE.search(body)
    upvotes = int(upvotes_match.group(1)) if upvotes_match else 0

    # Lossy: only the calendar day survives, and an unreadable date becomes now.
    saved_at = None
    saved_match = _SAVED_RE.search(body)
    if saved_match:
        saved_at = parse_locale_date(saved_match.group(1))
    if saved_at is None:
        saved_at = now_ms()

    return Note(
        id=event["id"],
        event=event,
        author=Author(pubkey=pubkey_match.group(1), metadata=metadata),
        collection=collection_name,
        upvotes=upvotes,
        saved_at=saved_at,
        thoughts=_extract_thoughts(body, event.get("content", "")),
    )


def _extract_thoughts(body: str, content: str) -> Optional[str]:
    """Pull the annotation block out of the document body, if there is one."""
    # Skip past the content section so a heading quoted in the note itself
    # is never mistaken for the annotation block.
    tail = body
    content_section = f"## Content\n\n{content}\n\n---\n"
    position = body.find(content_section)
    if position != -1:
        tail = body[position + len(content_section):]

    match = _THOUGHTS_RE.search(tail) or _THOUGHTS_FALLBACK_RE.search(tail)
    if not match:
        return None
    thoughts = match.group(1).strip()
    return thoughts or None


def _dump_json(value: Any) -> str:
    return json.dumps(value, indent=2, ensure_ascii=False)


def _load_json(text: str, label: str) -> Any:
    try:
        return json.loads(text)
    except json.JSONDecodeError as e:
        raise NoteDecodeError(f"Malformed {label}: {e}") from e
    except RecursionError as e:
        raise NoteDecodeError(f"{label} is nested too deeply") from e
