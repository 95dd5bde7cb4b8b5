"""
Storage backends for the store document.

Backends mirror browser local storage: a flat string key → string value map.
The document store never cares where the blob lives.

- MemoryStorage: in-process dict (tests, ephemeral runs)
- SqlStorage: SQLAlchemy key/value table, SQLite file by default
"""

from __future__ import annotations

from collections.abc import Generator
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Protocol

from loguru import logger
from sqlalchemy import DateTime, String, Text, create_engine
from sqlalchemy.engine import make_url
from sqlalchemy.orm import DeclarativeBase, Mapped, Session, mapped_column, sessionmaker


class StorageBackend(Protocol):
    """Minimal key/value contract used by DocumentStore."""

    def get_item(self, key: str) -> str | None: ...

    def set_item(self, key: str, value: str) -> None: ...

    def remove_item(self, key: str) -> None: ...


class MemoryStorage:
    """Dict-backed storage. Nothing survives the process."""

    def __init__(self, initial: dict[str, str] | None = None):
        self._items: dict[str, str] = dict(initial or {})

    def get_item(self, key: str) -> str | None:
        return self._items.get(key)

    def set_item(self, key: str, value: str) -> None:
        self._items[key] = value

    def remove_item(self, key: str) -> None:
        self._items.pop(key, None)

    def __contains__(self, key: str) -> bool:
        return key in self._items


# =============================================================================
# SQL Storage
# =============================================================================


class Base(DeclarativeBase):
    pass


class StorageItem(Base):
    """One stored blob."""

    __tablename__ = "storage_items"

    key: Mapped[str] = mapped_column(String(255), primary_key=True)
    value: Mapped[str] = mapped_column(Text, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )


class SqlStorage:
    """
    Key/value storage on a SQL database.

    Args:
        url: SQLAlchemy URL, e.g. ``sqlite:////home/me/.quizzine/storage.db``
    """

    def __init__(self, url: str):
        self.url = url
        self._ensure_sqlite_dir(url)
        self.engine = create_engine(url, pool_pre_ping=True)
        self._session_factory = sessionmaker(bind=self.engine, autocommit=False, autoflush=False)
        Base.metadata.create_all(bind=self.engine)
        logger.debug(f"SqlStorage initialized at {url}")

    @staticmethod
    def _ensure_sqlite_dir(url: str) -> None:
        parsed = make_url(url)
        if parsed.get_backend_name() == "sqlite" and parsed.database not in (None, "", ":memory:"):
            Path(parsed.database).expanduser().parent.mkdir(parents=True, exist_ok=True)

    @contextmanager
    def session_scope(self) -> Generator[Session, None, None]:
        """Provide a transactional scope around a series of operations."""
        session = self._session_factory()
        try:
            yield session
            session.commit()
        except Exception:  # Intentionally broad - rollback on any error before re-raising
            session.rollback()
            raise
        finally:
            session.close()

    def get_item(self, key: str) -> str | None:
        with self.session_scope() as session:
            item = session.get(StorageItem, key)
            return item.value if item is not None else None

    def set_item(self, key: str, value: str) -> None:
        with self.session_scope() as session:
            item = session.get(StorageItem, key)
            if item is None:
                session.add(StorageItem(key=key, value=value))
            else:
                item.value = value

    def remove_item(self, key: str) -> None:
        with self.session_scope() as session:
            item = session.get(StorageItem, key)
            if item is not None:
                session.delete(item)

    def dispose(self) -> None:
        self.engine.dispose()
