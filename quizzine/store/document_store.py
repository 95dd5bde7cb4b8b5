"""
Persistent store for the single user-state document.

The document is loaded lazily, migrated to the current schema, sanitized and
saved eagerly after every mutation. There is no locking: two writers doing
read-modify-write at the same time can overwrite each other (last write wins).
"""

from __future__ import annotations

import json
from collections.abc import Generator
from contextlib import contextmanager
from datetime import date
from pathlib import Path

from loguru import logger
from pydantic import ValidationError

from quizzine.models import CURRENT_SCHEMA_VERSION, StoreDocument
from quizzine.store.backends import StorageBackend
from quizzine.store.migrations import detect_version, migrate

DEFAULT_STORAGE_KEY = "quizzineApp"
EXPORT_FILENAME_TEMPLATE = "quizzine-backup-{day}.json"


class DocumentStore:
    """
    Load/save/reset/export/import for the store document.

    Usage:
        store = DocumentStore(MemoryStorage())
        with store.mutate() as doc:
            doc.bookmarks.append("q1")
    """

    def __init__(self, backend: StorageBackend, key: str = DEFAULT_STORAGE_KEY):
        self.backend = backend
        self.key = key

    def load(self) -> StoreDocument:
        """
        Read the stored document.

        Missing or unparseable data yields a fresh default document, which is
        persisted immediately so the next load is clean.
        """
        raw = self.backend.get_item(self.key)
        if raw is None:
            logger.debug("No stored document, creating defaults")
            return self._persist_default()

        try:
            data = json.loads(raw)
        except json.JSONDecodeError as e:
            logger.warning(f"Stored document is corrupt ({e}), resetting to defaults")
            return self._persist_default()

        if not isinstance(data, dict):
            logger.warning(
                f"Stored document is a JSON {type(data).__name__}, not an object; "
                "resetting to defaults"
            )
            return self._persist_default()

        data, migrated = migrate(data)

        try:
            document = StoreDocument.model_validate(data)
        except ValidationError as e:
            logger.warning(f"Stored document failed validation ({e.error_count()} errors), resetting")
            return self._persist_default()

        if detect_version(data) > CURRENT_SCHEMA_VERSION:
            # Newer documents are never rewritten by this version
            return document

        if migrated or document.to_json_dict() != data:
            self.save(document)

        return document

    def save(self, document: StoreDocument) -> None:
        self.backend.set_item(self.key, json.dumps(document.to_json_dict(), ensure_ascii=False))

    def reset(self) -> None:
        """Replace all stored state with defaults."""
        logger.info("Resetting store to defaults")
        self.save(StoreDocument())

    @contextmanager
    def mutate(self) -> Generator[StoreDocument, None, None]:
        """
        Read-modify-write scope.

        The document is saved when the block exits cleanly and discarded if
        it raises.
        """
        document = self.load()
        yield document
        self.save(document)

    # =========================================================================
    # Backup
    # =========================================================================

    def export_json(self) -> str:
        """Serialize the whole document as pretty-printed JSON."""
        return json.dumps(self.load().to_json_dict(), indent=2, ensure_ascii=False)

    def export_to_file(self, directory: Path | None = None, today: date | None = None) -> Path:
        """Write a timestamped backup file and return its path."""
        directory = directory or Path.cwd()
        directory.mkdir(parents=True, exist_ok=True)
        day = (today or date.today()).isoformat()
        path = directory / EXPORT_FILENAME_TEMPLATE.format(day=day)
        path.write_text(self.export_json(), encoding="utf-8")
        logger.info(f"Exported store to {path}")
        return path

    def import_json(self, blob: str | bytes) -> bool:
        """
        Replace the stored document with ``blob``.

        Only parseability is checked; structurally odd documents are accepted
        and cleaned up by the next load. Returns False (and leaves the current
        document untouched) if the blob is not JSON.
        """
        try:
            data = json.loads(blob)
        except (json.JSONDecodeError, TypeError, UnicodeDecodeError) as e:
            logger.error(f"Failed to import store document: {e}")
            return False

        self.backend.set_item(self.key, json.dumps(data, ensure_ascii=False))
        logger.info("Imported store document")
        return True

    def _persist_default(self) -> StoreDocument:
        document = StoreDocument()
        self.save(document)
        return document
