"""
Schema migrations for the store document.

Each entry in MIGRATIONS upgrades a raw document dict from version N to N+1.
Documents written before versioning existed carry no ``schemaVersion`` and
are treated as version 0.

Version history:
    0 -> unversioned; streak stored as ``lastActive`` (timestamp number or
         date string) or ``lastActiveDate``
    1 -> streak is ``{lastActivityDate, currentStreak}``
    2 -> adds ``questionPerformance``, ``customQuizzes`` and ``settings.hardMode``
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import date, datetime
from typing import Any

from loguru import logger

from quizzine.models import CURRENT_SCHEMA_VERSION

SCHEMA_VERSION_KEY = "schemaVersion"

Migration = Callable[[dict[str, Any]], dict[str, Any]]


def _legacy_value_to_date(value: Any) -> str:
    """Convert a legacy streak marker to a YYYY-MM-DD string ("" if unusable)."""
    if isinstance(value, bool):
        return ""
    if isinstance(value, (int, float)):
        try:
            # JavaScript-style millisecond timestamp, interpreted in local time
            return datetime.fromtimestamp(value / 1000).date().isoformat()
        except (OverflowError, OSError, ValueError):
            return ""
    if isinstance(value, str) and value:
        candidate = value.strip()[:10]
        try:
            return date.fromisoformat(candidate).isoformat()
        except ValueError:
            return ""
    return ""


def _v0_to_v1(doc: dict[str, Any]) -> dict[str, Any]:
    streaks = doc.get("streaks")
    if not isinstance(streaks, dict):
        return doc

    if "lastActivityDate" not in streaks:
        legacy = streaks.get("lastActiveDate", streaks.get("lastActive"))
        converted = _legacy_value_to_date(legacy)
        logger.info(f"Migrating legacy streak marker {legacy!r} -> {converted!r}")
        streaks["lastActivityDate"] = converted
        if not converted:
            streaks["currentStreak"] = 0

    streaks.pop("lastActive", None)
    streaks.pop("lastActiveDate", None)
    return doc


def _v1_to_v2(doc: dict[str, Any]) -> dict[str, Any]:
    doc.setdefault("questionPerformance", {})
    doc.setdefault("customQuizzes", [])
    settings = doc.get("settings")
    if isinstance(settings, dict):
        settings.setdefault("hardMode", False)
    return doc


MIGRATIONS: dict[int, Migration] = {
    0: _v0_to_v1,
    1: _v1_to_v2,
}


def detect_version(doc: dict[str, Any]) -> int:
    version = doc.get(SCHEMA_VERSION_KEY, 0)
    if isinstance(version, bool) or not isinstance(version, int) or version < 0:
        logger.warning(f"Unrecognized schema version {version!r}, treating as 0")
        return 0
    return version


def migrate(doc: dict[str, Any]) -> tuple[dict[str, Any], bool]:
    """
    Upgrade a raw document to CURRENT_SCHEMA_VERSION.

    Returns:
        (document, changed) where changed is True if any migration ran
    """
    version = detect_version(doc)

    if version > CURRENT_SCHEMA_VERSION:
        logger.warning(
            f"Store document is schema v{version}, newer than supported "
            f"v{CURRENT_SCHEMA_VERSION}; loading without migration"
        )
        return doc, False

    changed = False
    while version < CURRENT_SCHEMA_VERSION:
        doc = MIGRATIONS[version](doc)
        version += 1
        doc[SCHEMA_VERSION_KEY] = version
        changed = True
        logger.debug(f"Store document migrated to schema v{version}")

    return doc, changed
