"""
GitHub Gists backend for remote backups.

Each remote backup creates one secret gist holding a single file named
after the document kind ("AddressBook.bak", "ExpenseBook.bak"). The gist id
is the reference handed back to the caller and stored in preferences.

Provides:
- Saving content as a new secret gist
- Reading a kind's file back from a gist, following raw_url for large files
- Mapping HTTP and transport failures onto the bookvault error taxonomy

No request is retried; a failed call surfaces immediately.
"""

from __future__ import annotations

import logging
from typing import Any

import requests
from requests.exceptions import RequestException

from bookvault import __version__
from bookvault.errors import (
    AuthError,
    NetworkError,
    NotFoundError,
    RemoteServiceError,
)
from bookvault.model.document import DocumentKind
from bookvault.storage.remote import ReferenceStorage

DEFAULT_API_URL = "https://api.github.com"

# HTTP timeout configuration
DEFAULT_TIMEOUT = 30.0  # seconds

DEFAULT_DESCRIPTION = "bookvault backup"

USER_AGENT = f"bookvault/{__version__}"

logger = logging.getLogger(__name__)


class GistStorage(ReferenceStorage):
    """
    Reference storage backed by GitHub Gists.

    Attributes:
        api_url: Base URL of the GitHub REST API
        timeout: Per-request timeout in seconds

    Usage:
        storage = GistStorage(personal_access_token)

        # Save a backup, keep the returned gist id
        ref = storage.save(text, "AddressBook.bak", "Address Book Backup")

        # Fetch it back later
        text = storage.read(ref, DocumentKind.ADDRESS_BOOK)
    """

    def __init__(
        self,
        auth_token: str | None,
        api_url: str = DEFAULT_API_URL,
        timeout: float = DEFAULT_TIMEOUT,
    ):
        self._auth_token = auth_token
        self.api_url = api_url.rstrip("/")
        self.timeout = timeout

    def __repr__(self) -> str:
        return f"GistStorage(api_url={self.api_url!r})"

    def _headers(self) -> dict[str, str]:
        if not self._auth_token or not self._auth_token.strip():
            raise AuthError("Invalid auth token received")
        return {
            "Authorization": f"token {self._auth_token.strip()}",
            "Accept": "application/vnd.github+json",
            "User-Agent": USER_AGENT,
        }

    def _request(
        self, method: str, url: str, operation: str, **kwargs: Any
    ) -> requests.Response:
        """
        Perform one HTTP request and return the successful response.

        Raises:
            AuthError: On 401/403 responses
            NotFoundError: On 404 responses
            RemoteServiceError: On any other non-2xx response
            NetworkError: On connection failures and timeouts
        """
        headers = self._headers()
        logger.debug(f"{operation}: {method} {url}")

        try:
            response = requests.request(
                method, url, headers=headers, timeout=self.timeout, **kwargs
            )
        except requests.Timeout as e:
            logger.error(f"{operation} timed out after {self.timeout}s")
            raise NetworkError(f"{operation} timed out: {e}") from e
        except RequestException as e:
            logger.error(f"Network error during {operation}: {e}")
            raise NetworkError(f"{operation} failed: {e}") from e

        status = response.status_code
        if status in (401, 403):
            raise AuthError(
                f"{operation} was refused by GitHub ({status}); "
                "check the personal access token and its gist scope"
            )
        if status == 404:
            raise NotFoundError(f"{operation}: resource not found at {url}")
        if not 200 <= status < 300:
            raise RemoteServiceError(
                f"{operation} failed with HTTP {status}: {response.text[:200]}",
                status_code=status,
            )

        return response

    def _json(self, response: requests.Response, operation: str) -> dict[str, Any]:
        try:
            body = response.json()
        except ValueError as e:
            raise RemoteServiceError(f"{operation} returned invalid JSON") from e
        if not isinstance(body, dict):
            raise RemoteServiceError(f"{operation} returned unexpected payload")
        return body

    def save(self, content: str, name: str, description: str = "") -> str:
        """
        Create a secret gist holding content as file name.

        Returns:
            The id of the new gist

        Raises:
            AuthError, NetworkError, RemoteServiceError
        """
        payload = {
            "description": description or DEFAULT_DESCRIPTION,
            "public": False,
            "files": {name: {"content": content}},
        }
        operation = f"Saving {name} to GitHub Gists"
        response = self._request("POST", f"{self.api_url}/gists", operation, json=payload)
        body = self._json(response, operation)

        reference = body.get("id")
        if not reference:
            html_url = body.get("html_url", "")
            reference = html_url.rstrip("/").rsplit("/", 1)[-1] if html_url else None
        if not reference:
            raise RemoteServiceError(f"{operation} returned no gist id")

        logger.info(f"Saved {name} ({len(content)} chars) to gist {reference}")
        return str(reference)

    def read(self, reference: str, kind: DocumentKind) -> str:
        """
        Return the content of kind's file in gist reference.

        Raises:
            NotFoundError: If the gist or the kind's file is missing
            AuthError, NetworkError, RemoteServiceError
        """
        file_name = kind.remote_file_name
        operation = f"Reading {file_name} from gist {reference}"
        response = self._request("GET", f"{self.api_url}/gists/{reference}", operation)
        body = self._json(response, operation)

        gist_file = (body.get("files") or {}).get(file_name)
        if not gist_file:
            raise NotFoundError(f"Gist {reference} has no file named {file_name}")

        content = gist_file.get("content")
        if gist_file.get("truncated") or content is None:
            raw_url = gist_file.get("raw_url")
            if not raw_url:
                raise RemoteServiceError(f"{operation}: file content unavailable")
            logger.debug(f"{file_name} is truncated, fetching {raw_url}")
            raw = self._request("GET", raw_url, operation)
            content = raw.text

        logger.info(f"Read {file_name} ({len(content)} chars) from gist {reference}")
        return content
