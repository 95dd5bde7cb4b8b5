"""Streaks and dashboard statistics."""

from quizzine.progress.stats import (
    ProgressSummary,
    TagPerformance,
    WeekScore,
    quiz_title,
    recent_attempts,
    summarize,
    tag_performance,
    weekly_scores,
)
from quizzine.progress.streak import StreakTracker, advance, day_difference

__all__ = [
    "ProgressSummary",
    "StreakTracker",
    "TagPerformance",
    "WeekScore",
    "advance",
    "day_difference",
    "quiz_title",
    "recent_attempts",
    "summarize",
    "tag_performance",
    "weekly_scores",
]
