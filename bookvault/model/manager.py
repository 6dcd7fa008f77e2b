"""
In-memory model of the address book and expense book.

BookModel owns one VersionedStore per document kind and is the single place
where user edits are committed. Every change to a current snapshot is
announced on the event channel so persistence and display can follow.
"""

from __future__ import annotations

import logging

from bookvault.events.channel import EventChannel
from bookvault.events.types import ChangeReason, DocumentChanged
from bookvault.model.document import Document, DocumentKind, Entry
from bookvault.model.versioned import VersionedStore

logger = logging.getLogger(__name__)


class BookModel:
    """
    Versioned address book and expense book.

    Attributes:
        stores: One VersionedStore per document kind
        channel: Channel that receives DocumentChanged events

    Usage:
        model = BookModel(address_book, expense_book, channel)
        model.add_entry(DocumentKind.ADDRESS_BOOK, person)
        model.undo(DocumentKind.ADDRESS_BOOK)
    """

    def __init__(
        self,
        address_book: Document | None,
        expense_book: Document | None,
        channel: EventChannel,
        history_limit: int | None = None,
    ):
        address_book = address_book or Document.empty(DocumentKind.ADDRESS_BOOK)
        expense_book = expense_book or Document.empty(DocumentKind.EXPENSE_BOOK)

        for kind, document in (
            (DocumentKind.ADDRESS_BOOK, address_book),
            (DocumentKind.EXPENSE_BOOK, expense_book),
        ):
            if document.kind is not kind:
                raise ValueError(f"Expected {kind.value}, got {document.kind.value}")

        logger.debug(
            f"Initializing model with {len(address_book)} person(s) "
            f"and {len(expense_book)} expense(s)"
        )
        self.channel = channel
        self.stores: dict[DocumentKind, VersionedStore[Document]] = {
            DocumentKind.ADDRESS_BOOK: VersionedStore(address_book, history_limit),
            DocumentKind.EXPENSE_BOOK: VersionedStore(expense_book, history_limit),
        }

    def document(self, kind: DocumentKind) -> Document:
        return self.stores[kind].current()

    def _commit(self, document: Document) -> None:
        self.stores[document.kind].commit(document)
        self._indicate_changed(document.kind, ChangeReason.COMMIT)

    def _indicate_changed(self, kind: DocumentKind, reason: ChangeReason) -> None:
        self.channel.publish(
            DocumentChanged(kind=kind, document=self.document(kind), reason=reason)
        )

    def add_entry(self, kind: DocumentKind, entry: Entry) -> None:
        self._commit(self.document(kind).with_entry(entry))

    def remove_entry(self, kind: DocumentKind, entry: Entry) -> None:
        self._commit(self.document(kind).without_entry(entry))

    def update_entry(self, kind: DocumentKind, target: Entry, edited: Entry) -> None:
        self._commit(self.document(kind).replace_entry(target, edited))

    def can_undo(self, kind: DocumentKind) -> bool:
        return self.stores[kind].can_undo()

    def can_redo(self, kind: DocumentKind) -> bool:
        return self.stores[kind].can_redo()

    def undo(self, kind: DocumentKind) -> Document:
        """
        Undo the last commit of a document.

        Raises:
            NoUndoAvailable: If the document has no earlier snapshot
        """
        document = self.stores[kind].undo()
        self._indicate_changed(kind, ChangeReason.UNDO)
        return document

    def redo(self, kind: DocumentKind) -> Document:
        """
        Redo the last undone commit of a document.

        Raises:
            NoRedoAvailable: If the document has no later snapshot
        """
        document = self.stores[kind].redo()
        self._indicate_changed(kind, ChangeReason.REDO)
        return document
