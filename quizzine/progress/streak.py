"""
Calendar-day activity streak.

Dates are local calendar days stored as YYYY-MM-DD strings. Day differences
are taken between parsed dates, never between timestamps, so DST changes
cannot shift the count.

Transition against today:
    same day        -> unchanged
    yesterday       -> streak + 1
    anything else   -> streak = 1 (gap, no prior activity, future date, garbage)
"""

from __future__ import annotations

from datetime import date

from loguru import logger

from quizzine.models import StreakState
from quizzine.store.document_store import DocumentStore


def parse_day(value: str) -> date | None:
    try:
        return date.fromisoformat(value)
    except (TypeError, ValueError):
        return None


def day_difference(earlier: str, later: str) -> int | None:
    """Whole days from ``earlier`` to ``later``; None if either is not a date."""
    start, end = parse_day(earlier), parse_day(later)
    if start is None or end is None:
        return None
    return (end - start).days


def advance(state: StreakState, today: date) -> StreakState:
    """Pure streak transition for activity on ``today``."""
    today_str = today.isoformat()
    delta = day_difference(state.last_activity_date, today_str)

    if delta == 0:
        return state
    if delta == 1:
        return StreakState(last_activity_date=today_str, current_streak=state.current_streak + 1)
    return StreakState(last_activity_date=today_str, current_streak=1)


class StreakTracker:
    def __init__(self, store: DocumentStore):
        self.store = store

    def current(self) -> StreakState:
        return self.store.load().streaks

    def record_activity(self, today: date | None = None) -> StreakState:
        """Apply today's activity; a no-op when already counted today."""
        today = today or date.today()
        doc = self.store.load()
        updated = advance(doc.streaks, today)
        if updated == doc.streaks:
            return updated

        doc.streaks = updated
        self.store.save(doc)
        logger.debug(f"Streak now {updated.current_streak} (last activity {updated.last_activity_date})")
        return updated
