"""
Smart Boost: surface the questions a learner keeps missing.

Policy: keep questions with at least one recorded incorrect attempt and order
them by their last attempt, most recent first. No cap on the result size.
Scoping to the current course is the caller's job (pass that course's
questions in).
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime, timezone

from quizzine.models import Question
from quizzine.store.document_store import DocumentStore

_NEVER = datetime.min.replace(tzinfo=timezone.utc)


class SmartBoostSelector:
    def __init__(self, store: DocumentStore):
        self.store = store

    def select(self, questions: Iterable[Question]) -> list[Question]:
        performance = self.store.load().question_performance

        weak = [
            q for q in questions
            if q.id in performance and performance[q.id].incorrect_attempts > 0
        ]
        # sorted() is stable, so ties keep bank order
        return sorted(
            weak,
            key=lambda q: performance[q.id].last_attempt or _NEVER,
            reverse=True,
        )
