"""
Event value objects published on the event channel.

Events describe something that already happened. They are frozen so that
subscribers can share them freely; the documents they carry are immutable
snapshots, never live state.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING

from bookvault.model.document import Document, DocumentKind

if TYPE_CHECKING:
    from bookvault.backup.targets import BackupTarget


class ChangeReason(str, Enum):
    """Why a document's current snapshot changed."""

    COMMIT = "commit"
    UNDO = "undo"
    REDO = "redo"
    RESTORE = "restore"


@dataclass(frozen=True)
class Event:
    """Base class for everything published on the channel."""

    @property
    def message(self) -> str:
        return type(self).__name__


@dataclass(frozen=True)
class DocumentChanged(Event):
    """A document's current snapshot was replaced."""

    kind: DocumentKind
    document: Document
    reason: ChangeReason = ChangeReason.COMMIT

    @property
    def message(self) -> str:
        return f"{self.kind.value} changed ({self.reason.value})"


@dataclass(frozen=True)
class DocumentRestored(DocumentChanged):
    """A restore request succeeded and its store was reset."""

    target: BackupTarget | None = None
    reason: ChangeReason = ChangeReason.RESTORE

    @property
    def message(self) -> str:
        source = self.target.describe() if self.target else "backup"
        return f"{self.kind.value} restored from {source} ({len(self.document)} entries)"


@dataclass(frozen=True)
class BackupSucceeded(Event):
    """A backup request finished; carries the local path or remote reference."""

    target: BackupTarget
    path: Path | None = None
    reference: str | None = None

    @property
    def kind(self) -> DocumentKind:
        return self.target.kind

    @property
    def message(self) -> str:
        if self.reference is not None:
            return (
                f"{self.kind.value} saved to {self.target.service.value} "
                f"(reference: {self.reference})"
            )
        return f"{self.kind.value} backed up to {self.path}"


@dataclass(frozen=True)
class _Failure(Event):
    target: BackupTarget
    error: Exception = field(compare=False)

    @property
    def kind(self) -> DocumentKind:
        return self.target.kind

    @property
    def error_kind(self) -> str:
        return type(self.error).__name__


@dataclass(frozen=True)
class BackupFailed(_Failure):
    """A backup request failed; nothing was updated."""

    @property
    def message(self) -> str:
        return (
            f"Backup of {self.kind.value} to {self.target.describe()} failed "
            f"({self.error_kind}): {self.error}"
        )


@dataclass(frozen=True)
class RestoreFailed(_Failure):
    """A restore request failed; the store was left untouched."""

    @property
    def message(self) -> str:
        return (
            f"Restore of {self.kind.value} from {self.target.describe()} failed "
            f"({self.error_kind}): {self.error}"
        )


@dataclass(frozen=True)
class RestoreCompleted(Event):
    """Every document of a multi-document restore has been restored."""

    kinds: tuple[DocumentKind, ...]

    @property
    def message(self) -> str:
        return "Data restore successful"


__all__ = [
    "ChangeReason",
    "Event",
    "DocumentChanged",
    "DocumentRestored",
    "BackupSucceeded",
    "BackupFailed",
    "RestoreFailed",
    "RestoreCompleted",
]
