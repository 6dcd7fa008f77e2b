"""
bookvault.storage - Persistence layer

Document codec, local data files, user preferences and remote reference
storage backends.
"""

from bookvault.storage.codec import JsonDocumentCodec
from bookvault.storage.documents import DocumentStorage
from bookvault.storage.prefs import PreferencesError, PreferencesStorage, UserPrefs
from bookvault.storage.remote import (
    ReferenceStorage,
    RemoteService,
    create_reference_storage,
)

__all__ = [
    "JsonDocumentCodec",
    "DocumentStorage",
    "PreferencesError",
    "PreferencesStorage",
    "UserPrefs",
    "ReferenceStorage",
    "RemoteService",
    "create_reference_storage",
]
