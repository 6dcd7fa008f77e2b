"""
Text serialization of documents.

The backup orchestrator only needs something that turns a Document into
text and back; JsonDocumentCodec is the format used for local backups,
primary data files and remote backups alike.

Format:
    {
        "version": "1.0",
        "kind": "AddressBook",
        "entries": [
            {"name": "Alex Yeoh", "phone": "87438807", ...},
            ...
        ]
    }
"""

from __future__ import annotations

import json
import logging
from typing import Any

from bookvault.errors import ConversionError
from bookvault.model.document import Document, DocumentKind

CODEC_VERSION = "1.0"

# Versions this codec can read
SUPPORTED_VERSIONS = frozenset({"1.0"})

logger = logging.getLogger(__name__)


class JsonDocumentCodec:
    """
    Converts documents to JSON text and back.

    Usage:
        codec = JsonDocumentCodec()
        text = codec.encode(book)
        same_book = codec.decode(text, DocumentKind.ADDRESS_BOOK)
    """

    def __init__(self, indent: int | None = 2):
        self.indent = indent

    def encode(self, document: Document) -> str:
        payload: dict[str, Any] = {
            "version": CODEC_VERSION,
            "kind": document.kind.value,
            "entries": [entry.to_dict() for entry in document.entries],
        }
        return json.dumps(payload, indent=self.indent, ensure_ascii=False) + "\n"

    def decode(self, text: str, kind: DocumentKind) -> Document:
        """
        Parse text produced by encode() into a document of the given kind.

        Args:
            text: Serialized document
            kind: Kind the caller expects to get back

        Returns:
            The decoded Document

        Raises:
            ConversionError: If text is empty, not valid JSON, of another
                kind or version, or holds malformed entries
        """
        if not text or not text.strip():
            raise ConversionError(f"No {kind.value} data found (content is empty)")

        try:
            data = json.loads(text)
        except json.JSONDecodeError as e:
            raise ConversionError(f"{kind.value} data is not valid JSON: {e}") from e

        if not isinstance(data, dict):
            raise ConversionError(
                f"{kind.value} data must be a JSON object, got {type(data).__name__}"
            )

        version = data.get("version")
        if version not in SUPPORTED_VERSIONS:
            raise ConversionError(f"Unsupported {kind.value} data version: {version!r}")

        stored_kind = data.get("kind")
        if stored_kind != kind.value:
            raise ConversionError(
                f"Expected {kind.value} data, found {stored_kind!r} instead"
            )

        raw_entries = data.get("entries")
        if not isinstance(raw_entries, list):
            raise ConversionError(f"{kind.value} data has no entries list")

        entry_type = kind.entry_type
        try:
            entries = tuple(entry_type.from_dict(item) for item in raw_entries)
        except ValueError as e:
            raise ConversionError(f"Illegal values found in {kind.value}: {e}") from e

        document = Document(kind=kind, entries=entries)
        logger.debug(f"Decoded {kind.value} with {len(document)} entries")
        return document
