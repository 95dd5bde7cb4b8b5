"""Question bank loading and lookup."""

from quizzine.content.repository import (
    CacheState,
    QuestionBank,
    QuestionRepository,
    WeekSummary,
    parse_bank,
)

__all__ = ["CacheState", "QuestionBank", "QuestionRepository", "WeekSummary", "parse_bank"]
