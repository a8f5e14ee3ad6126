"""Custom exceptions for somanynotes."""


class SoManyNotesError(Exception):
    """Base exception for somanynotes."""


class ConfigError(SoManyNotesError):
    """Raised when configuration is missing or invalid."""


class NoteDecodeError(SoManyNotesError):
    """Raised when a markdown document cannot be turned back into a note."""


class StoreError(SoManyNotesError):
    """Raised when the persisted note store cannot be read or written."""


class CollectionError(SoManyNotesError):
    """Raised when a collection operation is not allowed."""
