"""
Local file storage for documents.

Provides:
- Reading and writing the primary data file of each document kind
- Atomic full-replace writes shared with local backups
- A DocumentChanged handler that keeps data files in step with the model
"""

from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path

from bookvault.errors import ConversionError, NotFoundError, StorageIOError
from bookvault.events.types import DocumentChanged
from bookvault.model.document import Document, DocumentKind
from bookvault.storage.codec import JsonDocumentCodec

logger = logging.getLogger(__name__)


def write_text_atomic(path: Path, text: str) -> None:
    """
    Replace the contents of path with text.

    Writes to a temporary file in the same directory and renames it over
    path, so readers never see a half-written file.

    Raises:
        OSError: If the directory cannot be created or the file written
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", dir=path.parent)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(text)
        os.replace(tmp_name, path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise


def read_document_file(
    path: Path, kind: DocumentKind, codec: JsonDocumentCodec
) -> Document:
    """
    Read and decode a document file.

    Raises:
        NotFoundError: If path does not exist
        StorageIOError: If path exists but cannot be read
        ConversionError: If the content is empty or malformed
    """
    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError as e:
        raise NotFoundError(f"{kind.value} file not found: {path}") from e
    except UnicodeDecodeError as e:
        raise ConversionError(f"{kind.value} file is not UTF-8 text: {path}") from e
    except OSError as e:
        raise StorageIOError(f"Failed to read {kind.value} file {path}: {e}") from e

    return codec.decode(text, kind)


class DocumentStorage:
    """
    Storage for the primary data file of each document kind.

    Attributes:
        data_dir: Directory holding the data files
        codec: Codec used for every read and write
    """

    def __init__(self, data_dir: Path, codec: JsonDocumentCodec | None = None):
        self.data_dir = Path(data_dir).expanduser()
        self.codec = codec or JsonDocumentCodec()

    def path_for(self, kind: DocumentKind) -> Path:
        return self.data_dir / kind.data_file_name

    def read(self, kind: DocumentKind, path: Path | None = None) -> Document | None:
        """
        Read a document, returning None if its file does not exist yet.

        Raises:
            StorageIOError: If the file exists but cannot be read
            ConversionError: If the file content is malformed
        """
        path = path or self.path_for(kind)
        logger.debug(f"Attempting to read data from file: {path}")
        try:
            return read_document_file(path, kind, self.codec)
        except NotFoundError:
            logger.info(f"{path} not found, starting with an empty {kind.value}")
            return None

    def save(self, document: Document, path: Path | None = None) -> Path:
        """
        Write a document to its data file.

        Raises:
            StorageIOError: If the file cannot be written
        """
        path = path or self.path_for(document.kind)
        logger.debug(f"Attempting to write to data file: {path}")
        try:
            write_text_atomic(path, self.codec.encode(document))
        except OSError as e:
            raise StorageIOError(f"Failed to write {path}: {e}") from e
        return path

    def handle_document_changed(self, event: DocumentChanged) -> None:
        """Save the changed document; failures are logged, not raised."""
        logger.info(f"{event.kind.value} changed, saving to file")
        try:
            self.save(event.document)
        except StorageIOError as e:
            logger.error(f"Could not save {event.kind.value}: {e}")
