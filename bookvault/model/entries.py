"""
Entry records held by bookvault documents.

Provides immutable representations of the two entry types:
- Person: one contact in the address book
- Expense: one spending record in the expense book

Both types convert to and from plain dictionaries so a codec can serialize
them without knowing their fields. Field syntax (phone digits, date format,
amounts) is validated by the command layer, not here.
"""

from __future__ import annotations

import re
import unicodedata
from dataclasses import dataclass, field
from typing import Any, ClassVar


def _require_str(data: dict[str, Any], key: str, entry_type: str) -> str:
    value = data.get(key)
    if not isinstance(value, str):
        raise ValueError(f"{entry_type}.{key} must be a string, got {value!r}")
    return value


def _tags_from(data: dict[str, Any], entry_type: str) -> tuple[str, ...]:
    tags = data.get("tags", [])
    if not isinstance(tags, list) or not all(isinstance(t, str) for t in tags):
        raise ValueError(f"{entry_type}.tags must be a list of strings")
    return tuple(sorted(set(tags)))


def _normalize_name(value: str) -> str:
    """Lowercase, accent-free, single-spaced form of a name for identity checks."""
    normalized = unicodedata.normalize("NFKD", value)
    normalized = "".join(c for c in normalized if not unicodedata.combining(c))
    return re.sub(r"\s+", " ", normalized.lower()).strip()


@dataclass(frozen=True)
class Person:
    """
    A contact stored in the address book.

    Attributes:
        name: Full name of the person
        phone: Phone number as entered
        email: Email address
        address: Postal address
        tags: Sorted, de-duplicated tag names

    Usage:
        person = Person("Alex Yeoh", "87438807", "alexyeoh@example.com",
                        "Blk 30 Geylang Street 29", tags=("friends",))

        # Same identity even when other fields differ
        person.is_same(person.with_tags("colleagues"))
    """

    KIND_KEY: ClassVar[str] = "person"

    name: str
    phone: str
    email: str
    address: str
    tags: tuple[str, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        # Tags are a set semantically; keep a canonical order for equality
        object.__setattr__(self, "tags", tuple(sorted(set(self.tags))))

    def is_same(self, other: Person) -> bool:
        """
        Check whether two records describe the same person.

        Two persons are the same if they share a name and either the phone
        number or the email address.
        """
        if _normalize_name(self.name) != _normalize_name(other.name):
            return False
        return self.phone == other.phone or self.email == other.email

    def with_tags(self, *tags: str) -> Person:
        """Return a copy with the given tags added."""
        return Person(
            name=self.name,
            phone=self.phone,
            email=self.email,
            address=self.address,
            tags=self.tags + tags,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "phone": self.phone,
            "email": self.email,
            "address": self.address,
            "tags": list(self.tags),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Person:
        """
        Create a Person from a dictionary produced by to_dict().

        Raises:
            ValueError: If a field is missing or has the wrong type
        """
        if not isinstance(data, dict):
            raise ValueError(f"person entry must be a dictionary, got {data!r}")
        return cls(
            name=_require_str(data, "name", "person"),
            phone=_require_str(data, "phone", "person"),
            email=_require_str(data, "email", "person"),
            address=_require_str(data, "address", "person"),
            tags=_tags_from(data, "person"),
        )


@dataclass(frozen=True)
class Expense:
    """
    A single expense stored in the expense book.

    Attributes:
        name: Short description of the expense
        category: Spending category (e.g. "Food")
        date: Date of the expense in dd-mm-yyyy form
        value: Amount spent, kept as entered (e.g. "12.50")
        tags: Sorted, de-duplicated tag names
    """

    KIND_KEY: ClassVar[str] = "expense"

    name: str
    category: str
    date: str
    value: str
    tags: tuple[str, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        object.__setattr__(self, "tags", tuple(sorted(set(self.tags))))

    def is_same(self, other: Expense) -> bool:
        """Two expenses are the same if name, date and value all match."""
        return (
            _normalize_name(self.name) == _normalize_name(other.name)
            and self.date == other.date
            and self.value == other.value
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "category": self.category,
            "date": self.date,
            "value": self.value,
            "tags": list(self.tags),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Expense:
        """
        Create an Expense from a dictionary produced by to_dict().

        Raises:
            ValueError: If a field is missing or has the wrong type
        """
        if not isinstance(data, dict):
            raise ValueError(f"expense entry must be a dictionary, got {data!r}")
        return cls(
            name=_require_str(data, "name", "expense"),
            category=_require_str(data, "category", "expense"),
            date=_require_str(data, "date", "expense"),
            value=_require_str(data, "value", "expense"),
            tags=_tags_from(data, "expense"),
        )
