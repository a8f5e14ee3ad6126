"""JSON-file key/value store for saved notes."""

import json
import os
import tempfile
from pathlib import Path
from typing import Any

from .exceptions import StoreError
from .merge import merge_imported_notes
from .models import ImportResult, NotesData
from .unpacker import ArchiveSource, import_notes_from_zip

STORE_KEY = "saved-notes"


class NoteStore:
    """Persisted notes state kept under one key of a JSON document."""

    def __init__(self, path: Path):
        self.path = Path(path)

    def _read_all(self) -> dict[str, Any]:
        if not self.path.is_file():
            return {}
        try:
            raw = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            raise StoreError(f"Cannot read note store {self.path}: {e}") from e
        if not isinstance(raw, dict):
            raise StoreError(f"Note store {self.path} is not a JSON object")
        return raw

    def load(self) -> NotesData:
        """Current state, or an empty store with only Default if nothing is saved."""
        stored = self._read_all().get(STORE_KEY)
        if stored is None:
            return NotesData()
        try:
            return NotesData.from_dict(stored)
        except (KeyError, TypeError, ValueError) as e:
            raise StoreError(f"Note store {self.path} holds invalid notes: {e}") from e

    def save(self, data: NotesData) -> None:
        """Write the state, replacing the file only once the write succeeded."""
        document = self._read_all()
        document[STORE_KEY] = data.to_dict()
        self.path.parent.mkdir(parents=True, exist_ok=True)

        fd, tmp_name = tempfile.mkstemp(dir=self.path.parent, suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(document, f, indent=2, ensure_ascii=False)
            os.replace(tmp_name, self.path)
        except OSError as e:
            Path(tmp_name).unlink(missing_ok=True)
            raise StoreError(f"Cannot write note store {self.path}: {e}") from e

    def import_notes(
        self,
        source: ArchiveSource,
        overwrite_existing: bool = False,
        merge_collections: bool = True,
        verbose: bool = False,
    ) -> ImportResult:
        """Import an export archive and save the merged state on success."""
        data = self.load()
        result = import_notes_from_zip(
            source, data, overwrite_existing=overwrite_existing, verbose=verbose
        )
        if result.success and result.notes:
            merged = merge_imported_notes(
                data,
                result.notes,
                overwrite_existing=overwrite_existing,
                merge_collections=merge_collections,
            )
            self.save(merged)
        return result
