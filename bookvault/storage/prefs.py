"""
User preferences for backup locations and stored remote references.

Preferences file format (prefs.json):

    {
        "version": "1.0",
        "backup_paths": {
            "AddressBook": "/home/me/.bookvault/data/addressbook.bak",
            "ExpenseBook": "/home/me/.bookvault/data/expensebook.bak"
        },
        "references": {
            "AddressBook": "aa5a315d61ae9438b18d"
        }
    }

Notes:
    - A missing file means "use defaults"
    - Missing backup paths default to <data_dir>/<kind>.bak
    - A stored reference is overwritten, never merged, on each successful
      remote backup of that kind
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from bookvault.events.types import BackupSucceeded
from bookvault.model.document import DocumentKind

PREFS_VERSION = "1.0"

DEFAULT_PREFS_FILE = "prefs.json"

logger = logging.getLogger(__name__)


class PreferencesError(Exception):
    """Raised when preferences cannot be loaded, validated or saved."""

    pass


def _parse_kind_map(data: Any, section: str) -> dict[DocumentKind, str]:
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise PreferencesError(
            f"{section} must be a dictionary, got {type(data).__name__}"
        )

    parsed: dict[DocumentKind, str] = {}
    for key, value in data.items():
        try:
            kind = DocumentKind.parse(key)
        except ValueError as e:
            raise PreferencesError(f"{section}: {e}") from e
        if not isinstance(value, str) or not value.strip():
            raise PreferencesError(f"{section}.{key} must be a non-empty string")
        parsed[kind] = value
    return parsed


@dataclass
class UserPrefs:
    """
    Backup locations and stored references, keyed by document kind.

    Attributes:
        data_dir: Directory used for default backup paths
        backup_paths: Explicit local backup path per kind
        references: Stored remote reference per kind

    Usage:
        prefs = UserPrefs(data_dir=Path("~/.bookvault/data"))
        prefs.backup_path_for(DocumentKind.ADDRESS_BOOK)
        prefs.set_reference(DocumentKind.ADDRESS_BOOK, "aa5a315d61ae9438b18d")
    """

    data_dir: Path = field(default_factory=lambda: Path("data"))
    backup_paths: dict[DocumentKind, Path] = field(default_factory=dict)
    references: dict[DocumentKind, str] = field(default_factory=dict)
    version: str = PREFS_VERSION

    def backup_path_for(self, kind: DocumentKind) -> Path:
        return self.backup_paths.get(kind) or self.data_dir / kind.backup_file_name

    def reference_for(self, kind: DocumentKind) -> str | None:
        return self.references.get(kind)

    def set_reference(self, kind: DocumentKind, reference: str) -> None:
        """Overwrite the stored reference of a kind."""
        previous = self.references.get(kind)
        self.references[kind] = reference
        logger.debug(
            f"Stored reference for {kind.value} changed: {previous!r} -> {reference!r}"
        )

    @classmethod
    def from_dict(cls, data: dict[str, Any], data_dir: Path | None = None) -> UserPrefs:
        """
        Create UserPrefs from a dictionary.

        Raises:
            PreferencesError: If the structure is invalid
        """
        if not isinstance(data, dict):
            raise PreferencesError(
                f"Preferences must be a dictionary, got {type(data).__name__}"
            )

        paths = _parse_kind_map(data.get("backup_paths"), "backup_paths")
        references = _parse_kind_map(data.get("references"), "references")

        prefs = cls(
            backup_paths={k: Path(v).expanduser() for k, v in paths.items()},
            references=references,
            version=str(data.get("version", PREFS_VERSION)),
        )
        if data_dir is not None:
            prefs.data_dir = Path(data_dir)
        return prefs

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {"version": self.version}
        if self.backup_paths:
            result["backup_paths"] = {
                k.value: str(v) for k, v in self.backup_paths.items()
            }
        if self.references:
            result["references"] = {k.value: v for k, v in self.references.items()}
        return result

    @classmethod
    def load_from_file(cls, path: Path | str, data_dir: Path | None = None) -> UserPrefs:
        """
        Load preferences from a JSON file.

        Returns default preferences if the file doesn't exist.

        Raises:
            PreferencesError: If the file exists but cannot be parsed or is invalid
        """
        path = Path(path).expanduser()

        if not path.exists():
            logger.debug(f"Preferences file not found: {path}, using defaults")
            return cls(data_dir=Path(data_dir)) if data_dir else cls()

        try:
            with open(path, encoding="utf-8") as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            raise PreferencesError(f"Failed to parse preferences at {path}: {e}") from e
        except OSError as e:
            raise PreferencesError(f"Failed to read preferences file: {e}") from e

        logger.debug(f"Loaded preferences from {path}")
        return cls.from_dict(data, data_dir=data_dir)

    def save_to_file(self, path: Path | str) -> None:
        """
        Save preferences to a JSON file readable by the owner only.

        Raises:
            PreferencesError: If the file cannot be written
        """
        path = Path(path).expanduser()

        try:
            path.parent.mkdir(parents=True, mode=0o700, exist_ok=True)

            with open(path, "w", encoding="utf-8") as f:
                json.dump(self.to_dict(), f, indent=2)
                f.write("\n")

            path.chmod(0o600)
            logger.debug(f"Saved preferences to {path}")

        except OSError as e:
            raise PreferencesError(f"Failed to write preferences file: {e}") from e


class PreferencesStorage:
    """
    Persists UserPrefs whenever a remote backup stores a new reference.

    Subscribe handle_backup_succeeded to BackupSucceeded on the channel.
    """

    def __init__(self, path: Path, prefs: UserPrefs):
        self.path = Path(path)
        self.prefs = prefs

    def save(self) -> None:
        self.prefs.save_to_file(self.path)

    def handle_backup_succeeded(self, event: BackupSucceeded) -> None:
        if event.reference is None:
            return
        logger.info(f"Saving stored reference for {event.kind.value}")
        try:
            self.save()
        except PreferencesError as e:
            logger.error(f"Could not save preferences: {e}")
