"""
Interface for remote reference-based storage services.

A reference storage saves text under a name and hands back an opaque
reference; later the same text is fetched with that reference and the name
of the wanted sub-resource. Implementations hold no state beyond the
credential they were created with, so a fresh instance is made per request.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable
from enum import Enum
from typing import Any

from bookvault.model.document import DocumentKind


class RemoteService(str, Enum):
    """Supported remote storage services."""

    GITHUB = "github"

    @classmethod
    def parse(cls, value: str) -> RemoteService:
        try:
            return cls(value.lower())
        except ValueError:
            valid = ", ".join(s.value for s in cls)
            raise ValueError(
                f"Unknown remote service '{value}'. Must be one of: {valid}"
            ) from None


class ReferenceStorage(ABC):
    """Base interface for remote storage backends."""

    @abstractmethod
    def save(self, content: str, name: str, description: str = "") -> str:
        """
        Save content as a sub-resource called name.

        Returns:
            Reference to pass to read() later

        Raises:
            AuthError, NetworkError, RemoteServiceError
        """

    @abstractmethod
    def read(self, reference: str, kind: DocumentKind) -> str:
        """
        Fetch the sub-resource for kind stored under reference.

        Raises:
            NotFoundError: If the reference or sub-resource does not exist
            AuthError, NetworkError, RemoteServiceError
        """


# Builds a storage for one request from the auth token of that request
StorageFactory = Callable[[RemoteService, "str | None"], ReferenceStorage]


def create_reference_storage(
    service: RemoteService, auth_token: str | None, **options: Any
) -> ReferenceStorage:
    """
    Create a storage client for service using auth_token.

    Args:
        service: Remote service to talk to
        auth_token: Credential for this request only
        **options: Passed to the client (e.g. api_url, timeout)
    """
    if service is RemoteService.GITHUB:
        from bookvault.storage.github import GistStorage

        return GistStorage(auth_token, **options)

    raise ValueError(f"Unsupported remote service: {service}")
