"""
Tests for the JSON document codec.
"""

import json

import pytest

from bookvault.errors import ConversionError
from bookvault.model.document import Document, DocumentKind
from bookvault.storage.codec import CODEC_VERSION, JsonDocumentCodec


class TestEncode:
    """Tests for JsonDocumentCodec.encode()."""

    def test_encode_writes_version_kind_and_entries(self, address_book, alice):
        """Test the top-level layout of encoded documents."""
        data = json.loads(JsonDocumentCodec().encode(address_book))

        assert data["version"] == CODEC_VERSION
        assert data["kind"] == "AddressBook"
        assert data["entries"][0] == alice.to_dict()
        assert len(data["entries"]) == 2

    def test_encode_empty_document(self, empty_expense_book):
        """Test that an empty document encodes to an empty entries list."""
        data = json.loads(JsonDocumentCodec().encode(empty_expense_book))
        assert data["entries"] == []

    def test_encode_keeps_unicode(self):
        """Test that non-ASCII names are written as-is."""
        from bookvault.model.entries import Person

        book = Document(
            DocumentKind.ADDRESS_BOOK, (Person("Zoë Ng", "1", "z@x.com", "addr"),)
        )
        assert "Zoë" in JsonDocumentCodec().encode(book)


class TestDecode:
    """Tests for JsonDocumentCodec.decode()."""

    @pytest.fixture
    def codec(self):
        return JsonDocumentCodec()

    def test_decode_reverses_encode(self, codec, expense_book):
        """Test that decode gives back an equal document."""
        text = codec.encode(expense_book)
        assert codec.decode(text, DocumentKind.EXPENSE_BOOK) == expense_book

    @pytest.mark.parametrize("text", ["", "   \n"])
    def test_empty_content_rejected(self, codec, text):
        """Test that empty content is a conversion error."""
        with pytest.raises(ConversionError, match="empty"):
            codec.decode(text, DocumentKind.ADDRESS_BOOK)

    def test_invalid_json_rejected(self, codec):
        """Test that malformed JSON is a conversion error."""
        with pytest.raises(ConversionError, match="not valid JSON"):
            codec.decode("{not json", DocumentKind.ADDRESS_BOOK)

    def test_non_object_rejected(self, codec):
        """Test that a JSON list is rejected."""
        with pytest.raises(ConversionError, match="JSON object"):
            codec.decode("[]", DocumentKind.ADDRESS_BOOK)

    def test_wrong_kind_rejected(self, codec, expense_book):
        """Test that an expense book cannot be decoded as an address book."""
        text = codec.encode(expense_book)
        with pytest.raises(ConversionError, match="Expected AddressBook"):
            codec.decode(text, DocumentKind.ADDRESS_BOOK)

    def test_unsupported_version_rejected(self, codec):
        """Test that unknown versions are rejected."""
        text = json.dumps({"version": "9.9", "kind": "AddressBook", "entries": []})
        with pytest.raises(ConversionError, match="version"):
            codec.decode(text, DocumentKind.ADDRESS_BOOK)

    def test_missing_entries_rejected(self, codec):
        """Test that a document without an entries list is rejected."""
        text = json.dumps({"version": "1.0", "kind": "AddressBook"})
        with pytest.raises(ConversionError, match="entries"):
            codec.decode(text, DocumentKind.ADDRESS_BOOK)

    def test_malformed_entry_rejected(self, codec):
        """Test that an entry with missing fields is rejected."""
        text = json.dumps(
            {"version": "1.0", "kind": "AddressBook", "entries": [{"name": "A"}]}
        )
        with pytest.raises(ConversionError, match="Illegal values"):
            codec.decode(text, DocumentKind.ADDRESS_BOOK)
