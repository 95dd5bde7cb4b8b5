"""
Unit tests for confidence and per-question performance tracking.

Run: pytest tests/unit/test_performance.py -v
"""

import random
from datetime import datetime, timezone

import pytest

from quizzine.adaptive import PerformanceTracker, adjust_confidence
from quizzine.models import DEFAULT_CONFIDENCE, MAX_CONFIDENCE, MIN_CONFIDENCE


class TestAdjustConfidence:
    @pytest.mark.parametrize(
        "current, correct, expected",
        [
            (3, True, 4),
            (3, False, 2),
            (5, True, 5),
            (0, False, 0),
            (0, True, 1),
            (5, False, 4),
        ],
    )
    def test_steps_and_clamps(self, current, correct, expected):
        assert adjust_confidence(current, correct) == expected

    def test_stays_in_bounds_over_long_sequences(self):
        rng = random.Random(7)
        rating = DEFAULT_CONFIDENCE
        for _ in range(500):
            rating = adjust_confidence(rating, rng.random() < 0.5)
            assert MIN_CONFIDENCE <= rating <= MAX_CONFIDENCE


class TestPerformanceTracker:
    def test_first_miss_drops_default_confidence(self, store):
        tracker = PerformanceTracker(store)
        assert tracker.confidence_for("q1") == DEFAULT_CONFIDENCE

        tracker.record_answer("q1", correct=False)

        assert tracker.confidence_for("q1") == 2

    def test_counters_accumulate(self, store):
        tracker = PerformanceTracker(store)
        first = datetime(2024, 6, 1, 9, tzinfo=timezone.utc)
        second = datetime(2024, 6, 2, 9, tzinfo=timezone.utc)

        tracker.record_answer("q1", correct=True, when=first)
        tracker.record_answer("q1", correct=False, when=second)
        tracker.record_answer("q1", correct=False, when=second)

        stats = tracker.stats_for("q1")
        assert stats.total_attempts == 3
        assert stats.correct_attempts == 1
        assert stats.incorrect_attempts == 2
        assert stats.total_attempts == stats.correct_attempts + stats.incorrect_attempts
        assert stats.last_attempt == second

    def test_questions_are_tracked_independently(self, store):
        tracker = PerformanceTracker(store)
        tracker.record_answer("q1", correct=True)

        assert tracker.stats_for("q2").total_attempts == 0
        assert tracker.confidence_for("q2") == DEFAULT_CONFIDENCE
        assert tracker.confidence_for("q1") == 4

    def test_persisted_in_store(self, store):
        PerformanceTracker(store).record_answer("q3", correct=False)

        doc = store.load()
        assert doc.question_performance["q3"].incorrect_attempts == 1
        assert doc.confidence_ratings["q3"] == 2
