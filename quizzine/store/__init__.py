"""Versioned local persistence for user state."""

from quizzine.store.backends import MemoryStorage, SqlStorage, StorageBackend
from quizzine.store.document_store import DEFAULT_STORAGE_KEY, DocumentStore
from quizzine.store.migrations import MIGRATIONS, migrate

__all__ = [
    "DEFAULT_STORAGE_KEY",
    "DocumentStore",
    "MIGRATIONS",
    "MemoryStorage",
    "SqlStorage",
    "StorageBackend",
    "migrate",
]
