"""
Backup targets: which document a request concerns, and where it goes.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from bookvault.model.document import DocumentKind
from bookvault.storage.remote import RemoteService


class Medium(str, Enum):
    LOCAL = "local"
    REMOTE = "remote"


@dataclass(frozen=True)
class BackupTarget:
    """
    Immutable description of one backup or restore destination.

    Use the local() and remote() constructors rather than building targets
    by hand. The auth token is kept out of repr() so targets can be logged.

    Attributes:
        kind: Document the request concerns
        medium: Local file or remote storage
        path: Local file path (local targets only)
        service: Remote service (remote targets only)
        reference: Remote reference; None means "use the stored reference"
        auth_token: Credential for this request only
    """

    kind: DocumentKind
    medium: Medium
    path: Path | None = None
    service: RemoteService | None = None
    reference: str | None = None
    auth_token: str | None = field(default=None, repr=False, compare=False)

    @classmethod
    def local(cls, kind: DocumentKind, path: Path | str) -> BackupTarget:
        return cls(kind=kind, medium=Medium.LOCAL, path=Path(path).expanduser())

    @classmethod
    def remote(
        cls,
        kind: DocumentKind,
        reference: str | None = None,
        auth_token: str | None = None,
        service: RemoteService = RemoteService.GITHUB,
    ) -> BackupTarget:
        return cls(
            kind=kind,
            medium=Medium.REMOTE,
            service=service,
            reference=reference,
            auth_token=auth_token,
        )

    @property
    def is_local(self) -> bool:
        return self.medium is Medium.LOCAL

    def with_reference(self, reference: str) -> BackupTarget:
        """Return a copy of a remote target pointing at reference."""
        return BackupTarget(
            kind=self.kind,
            medium=self.medium,
            path=self.path,
            service=self.service,
            reference=reference,
            auth_token=self.auth_token,
        )

    def describe(self) -> str:
        """Short human-readable location, without credentials."""
        if self.is_local:
            return str(self.path)
        service = self.service.value if self.service else "remote storage"
        if self.reference:
            return f"{service} ({self.reference})"
        return service
