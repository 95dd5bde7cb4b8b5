"""
Per-question performance and confidence tracking.

Both aggregates are append-only: they are incremented on every answer and
never rebuilt from the attempts log.
"""

from __future__ import annotations

from datetime import datetime

from quizzine.models import (
    DEFAULT_CONFIDENCE,
    MAX_CONFIDENCE,
    MIN_CONFIDENCE,
    QuestionPerformanceStats,
    StoreDocument,
    utcnow,
)
from quizzine.store.document_store import DocumentStore


def adjust_confidence(current: int, correct: bool) -> int:
    """Nudge a rating by one step, clamped to [0, 5]."""
    step = 1 if correct else -1
    return max(MIN_CONFIDENCE, min(MAX_CONFIDENCE, current + step))


def apply_answer(
    doc: StoreDocument,
    question_id: str,
    correct: bool,
    when: datetime | None = None,
) -> QuestionPerformanceStats:
    """Record one answer into ``doc`` in place and return the updated stats."""
    stats = doc.question_performance.get(question_id) or QuestionPerformanceStats()
    stats = stats.model_copy(
        update={
            "total_attempts": stats.total_attempts + 1,
            "correct_attempts": stats.correct_attempts + (1 if correct else 0),
            "incorrect_attempts": stats.incorrect_attempts + (0 if correct else 1),
            "last_attempt": when or utcnow(),
        }
    )
    doc.question_performance[question_id] = stats

    current = doc.confidence_ratings.get(question_id, DEFAULT_CONFIDENCE)
    doc.confidence_ratings[question_id] = adjust_confidence(current, correct)
    return stats


class PerformanceTracker:
    """Store-backed wrapper around apply_answer."""

    def __init__(self, store: DocumentStore):
        self.store = store

    def record_answer(
        self,
        question_id: str,
        correct: bool,
        when: datetime | None = None,
    ) -> QuestionPerformanceStats:
        with self.store.mutate() as doc:
            return apply_answer(doc, question_id, correct, when)

    def confidence_for(self, question_id: str) -> int:
        return self.store.load().confidence_ratings.get(question_id, DEFAULT_CONFIDENCE)

    def stats_for(self, question_id: str) -> QuestionPerformanceStats:
        return self.store.load().question_performance.get(question_id) or QuestionPerformanceStats()
