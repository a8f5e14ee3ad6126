"""Utility functions for somanynotes."""

import hashlib
import re
import time
from datetime import date, datetime
from typing import Optional

_ADJECTIVES = [
    "Swift", "Bright", "Calm", "Bold", "Wise", "Kind", "Quick", "Brave",
    "Cool", "Sharp", "Clear", "Strong", "Smart", "Fast", "Keen", "Pure",
    "Noble", "Gentle", "Fierce", "Steady",
]
_NOUNS = [
    "Fox", "Eagle", "Bear", "Wolf", "Lion", "Tiger", "Hawk", "Owl",
    "Deer", "Raven", "Falcon", "Lynx", "Otter", "Whale", "Shark",
    "Dolphin", "Phoenix", "Dragon", "Panther", "Jaguar",
]

_FORBIDDEN_PATH_CHARS = r'[<>:"/\\|?*]'


def gen_user_name(pubkey: str) -> str:
    """Deterministic human-friendly name for an author with no profile name."""
    digest = hashlib.sha256(pubkey.encode("utf-8")).digest()
    adjective = _ADJECTIVES[digest[0] % len(_ADJECTIVES)]
    noun = _NOUNS[digest[1] % len(_NOUNS)]
    return f"{adjective} {noun}"


def sanitize_folder_name(name: str) -> str:
    """Replace characters that are invalid in folder names with underscores."""
    return re.sub(_FORBIDDEN_PATH_CHARS, "_", name).strip()


def sanitize_filename(name: str) -> str:
    """Replace invalid filename characters and whitespace runs with underscores."""
    name = re.sub(_FORBIDDEN_PATH_CHARS, "_", name)
    name = re.sub(r"\s+", "_", name)
    return name.strip()


def content_slug(content: str, max_length: int = 50) -> str:
    """Filename stem built from the start of a note's content.

    Only ASCII word characters, whitespace and hyphens are kept, so the
    result may be empty.
    """
    preview = content[:max_length]
    return re.sub(r"[^\w\s-]", "", preview, flags=re.ASCII).strip()


def now_ms() -> int:
    """Current time in milliseconds since epoch."""
    return int(time.time() * 1000)


def format_locale_date(timestamp_ms: int) -> str:
    """Render a millisecond timestamp as an en-US date string (M/D/YYYY)."""
    dt = datetime.fromtimestamp(timestamp_ms / 1000)
    return f"{dt.month}/{dt.day}/{dt.year}"


def format_locale_datetime(dt: datetime) -> str:
    """Render a datetime the way an en-US locale prints date and time."""
    hour = dt.hour % 12 or 12
    suffix = "AM" if dt.hour < 12 else "PM"
    return (
        f"{dt.month}/{dt.day}/{dt.year}, "
        f"{hour}:{dt.minute:02d}:{dt.second:02d} {suffix}"
    )


def parse_locale_date(text: str) -> Optional[int]:
    """Parse a date written by format_locale_date (or ISO 8601) to milliseconds.

    Returns None when the text is not a recognisable date.
    """
    text = text.strip()
    match = re.match(r"^(\d{1,2})/(\d{1,2})/(\d{4})\b", text)
    try:
        if match:
            month, day, year = (int(g) for g in match.groups())
            parsed = datetime(year, month, day)
        else:
            parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    return int(parsed.timestamp() * 1000)


def export_filename(today: Optional[date] = None, prefix: str = "somanynotes") -> str:
    """Download name for an export archive, sortable by its ISO date suffix."""
    today = today or date.today()
    return f"{prefix}-export-{today.isoformat()}.zip"
