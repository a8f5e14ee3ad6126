"""Save, rank and annotate Nostr notes, and exchange them as zip archives."""

__version__ = "0.1.0"
