"""
Error taxonomy for backup and restore operations.

Every failure raised by the storage layer or the backup orchestrator derives
from BookVaultError so callers can catch the whole family at once:

- ValidationError: bad path or target, rejected before any I/O
- StorageIOError: local read/write failure
- ConversionError: stored content cannot be decoded into a document
- NotFoundError: local backup file or remote sub-resource is absent
- RemoteStorageError: base for failures talking to remote storage
    - AuthError: missing or invalid remote credential
    - NetworkError: transport-level failure
    - RemoteServiceError: service rejected the request for another reason
"""


class BookVaultError(Exception):
    """Base class for bookvault errors."""

    pass


class ValidationError(BookVaultError):
    """Raised when a request is rejected before any I/O is attempted."""

    pass


class StorageIOError(BookVaultError):
    """Raised when reading or writing a local file fails."""

    pass


class ConversionError(BookVaultError):
    """Raised when stored content cannot be converted into a document."""

    pass


class NotFoundError(BookVaultError):
    """Raised when a backup file or remote sub-resource does not exist."""

    pass


class RemoteStorageError(BookVaultError):
    """Raised when a remote storage operation fails."""

    pass


class AuthError(RemoteStorageError):
    """Raised when the remote credential is missing or rejected."""

    pass


class NetworkError(RemoteStorageError):
    """Raised when the remote service cannot be reached."""

    pass


class RemoteServiceError(RemoteStorageError):
    """Raised when the remote service rejects a request."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


__all__ = [
    "BookVaultError",
    "ValidationError",
    "StorageIOError",
    "ConversionError",
    "NotFoundError",
    "RemoteStorageError",
    "AuthError",
    "NetworkError",
    "RemoteServiceError",
]
