"""Shared fixtures for the bookvault test suite."""

import logging

import pytest

from bookvault.model.document import Document, DocumentKind
from bookvault.model.entries import Expense, Person
from bookvault.utils.logging import LOGGER_NAME


@pytest.fixture
def alice():
    return Person(
        "Alice Pauline",
        "94351253",
        "alice@example.com",
        "123, Jurong West Ave 6, #08-111",
        tags=("friends",),
    )


@pytest.fixture
def bob():
    return Person("Bob Choo", "22222222", "bob@example.com", "Block 123, Bobby Street 3")


@pytest.fixture
def lunch():
    return Expense("Chicken rice", "Food", "01-02-2020", "4.50", tags=("lunch",))


@pytest.fixture
def empty_address_book():
    return Document.empty(DocumentKind.ADDRESS_BOOK)


@pytest.fixture
def empty_expense_book():
    return Document.empty(DocumentKind.EXPENSE_BOOK)


@pytest.fixture
def address_book(alice, bob):
    return Document(DocumentKind.ADDRESS_BOOK, (alice, bob))


@pytest.fixture
def expense_book(lunch):
    return Document(DocumentKind.EXPENSE_BOOK, (lunch,))


@pytest.fixture(autouse=True)
def reset_bookvault_logger():
    """Undo setup_logging() so handlers and file locks don't leak between tests."""
    yield
    logger = logging.getLogger(LOGGER_NAME)
    for handler in list(logger.handlers):
        handler.close()
        logger.removeHandler(handler)
    logger.propagate = True
    logger.disabled = False
    logger.setLevel(logging.NOTSET)
