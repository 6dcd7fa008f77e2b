"""
Document snapshots for the address book and the expense book.

A Document is an immutable, full copy of one book's entries at a single
point in time. Edits never mutate a Document; they return a new one, which
is what lets the versioned store keep every snapshot safely.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Union

from bookvault.model.entries import Expense, Person

Entry = Union[Person, Expense]


class DocumentKind(str, Enum):
    """Identifies which logical document an operation concerns."""

    ADDRESS_BOOK = "AddressBook"
    EXPENSE_BOOK = "ExpenseBook"

    @property
    def entry_type(self) -> type[Person] | type[Expense]:
        """Entry class stored in documents of this kind."""
        return Person if self is DocumentKind.ADDRESS_BOOK else Expense

    @property
    def remote_file_name(self) -> str:
        """Name of this kind's sub-resource under a remote reference."""
        return f"{self.value}.bak"

    @property
    def data_file_name(self) -> str:
        """Default file name of the primary data file."""
        return f"{self.value.lower()}.json"

    @property
    def backup_file_name(self) -> str:
        """Default file name of the local backup file."""
        return f"{self.value.lower()}.bak"

    @classmethod
    def parse(cls, value: str) -> DocumentKind:
        """
        Look up a kind by value, case-insensitively.

        Accepts "AddressBook", "addressbook" and "address_book" forms.

        Raises:
            ValueError: If value names no known kind
        """
        wanted = value.replace("_", "").replace("-", "").lower()
        for kind in cls:
            if kind.value.lower() == wanted:
                return kind
        valid = ", ".join(k.value for k in cls)
        raise ValueError(f"Unknown document kind '{value}'. Must be one of: {valid}")


@dataclass(frozen=True)
class Document:
    """
    Immutable snapshot of one book.

    Attributes:
        kind: Which book this snapshot belongs to
        entries: Entries in insertion order

    Usage:
        book = Document.empty(DocumentKind.ADDRESS_BOOK)
        book = book.with_entry(person)
        len(book)  # 1
    """

    kind: DocumentKind
    entries: tuple[Entry, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        entries = tuple(self.entries)
        expected = self.kind.entry_type
        for entry in entries:
            if not isinstance(entry, expected):
                raise TypeError(
                    f"{self.kind.value} cannot hold {type(entry).__name__} entries"
                )
        object.__setattr__(self, "entries", entries)

    @classmethod
    def empty(cls, kind: DocumentKind) -> Document:
        return cls(kind=kind)

    def __len__(self) -> int:
        return len(self.entries)

    def __iter__(self):
        return iter(self.entries)

    def contains(self, entry: Entry) -> bool:
        """Check whether an entry describing the same item is present."""
        return any(existing.is_same(entry) for existing in self.entries)

    def with_entry(self, entry: Entry) -> Document:
        """
        Return a copy with entry appended.

        Raises:
            ValueError: If an entry describing the same item already exists
        """
        if self.contains(entry):
            raise ValueError(f"Duplicate entry in {self.kind.value}: {entry!r}")
        return Document(kind=self.kind, entries=self.entries + (entry,))

    def without_entry(self, entry: Entry) -> Document:
        """
        Return a copy with entry removed.

        Raises:
            ValueError: If entry is not in the document
        """
        if entry not in self.entries:
            raise ValueError(f"Entry not found in {self.kind.value}: {entry!r}")
        remaining = tuple(e for e in self.entries if e != entry)
        return Document(kind=self.kind, entries=remaining)

    def replace_entry(self, target: Entry, edited: Entry) -> Document:
        """
        Return a copy with target replaced by edited, keeping its position.

        Raises:
            ValueError: If target is missing, or edited duplicates another entry
        """
        if target not in self.entries:
            raise ValueError(f"Entry not found in {self.kind.value}: {target!r}")
        others = [e for e in self.entries if e != target]
        if any(e.is_same(edited) for e in others):
            raise ValueError(f"Duplicate entry in {self.kind.value}: {edited!r}")
        replaced = tuple(edited if e == target else e for e in self.entries)
        return Document(kind=self.kind, entries=replaced)
