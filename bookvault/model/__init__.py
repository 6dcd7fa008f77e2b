"""
bookvault.model - Document model

Entries, immutable document snapshots and versioned history. The book model
that commits user edits lives in bookvault.model.manager.
"""

from bookvault.model.document import Document, DocumentKind, Entry
from bookvault.model.entries import Expense, Person
from bookvault.model.versioned import (
    NoRedoAvailable,
    NoUndoAvailable,
    VersionedStore,
    VersionedStoreError,
)

__all__ = [
    "Document",
    "DocumentKind",
    "Entry",
    "Expense",
    "Person",
    "NoRedoAvailable",
    "NoUndoAvailable",
    "VersionedStore",
    "VersionedStoreError",
]
