"""
Dashboard statistics derived from the attempts log.

All functions are pure: they take attempts (and the bank where question
metadata is needed) and return plain values.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from quizzine.content.repository import QuestionBank
from quizzine.models import Question, QuizAttempt, QuizMode


@dataclass
class ProgressSummary:
    total_attempts: int
    total_questions_answered: int
    average_score: int  # percent
    current_streak: int


@dataclass
class WeekScore:
    week: int
    score: int  # percent

    @property
    def label(self) -> str:
        return f"Week {self.week}"


@dataclass
class TagPerformance:
    tag: str
    correct: int
    total: int

    @property
    def percentage(self) -> int:
        return round(self.correct / self.total * 100) if self.total else 0


def _percent(correct: int, total: int) -> int:
    return round(correct / total * 100) if total > 0 else 0


def average_score(attempts: Sequence[QuizAttempt]) -> int:
    correct = sum(a.score for a in attempts)
    total = sum(a.total_questions for a in attempts)
    return _percent(correct, total)


def summarize(attempts: Sequence[QuizAttempt], current_streak: int = 0) -> ProgressSummary:
    return ProgressSummary(
        total_attempts=len(attempts),
        total_questions_answered=sum(a.total_questions for a in attempts),
        average_score=average_score(attempts),
        current_streak=current_streak,
    )


def weekly_scores(attempts: Sequence[QuizAttempt]) -> list[WeekScore]:
    """Aggregate score per week over weekly-mode attempts, ascending by week."""
    totals: dict[int, list[int]] = {}
    for attempt in attempts:
        if attempt.mode is not QuizMode.WEEKLY or not attempt.week:
            continue
        bucket = totals.setdefault(attempt.week, [0, 0])
        bucket[0] += attempt.score
        bucket[1] += attempt.total_questions

    return [WeekScore(week, _percent(*totals[week])) for week in sorted(totals)]


def recent_attempts(attempts: Sequence[QuizAttempt], limit: int = 5) -> list[QuizAttempt]:
    return sorted(attempts, key=lambda a: a.timestamp, reverse=True)[:limit]


def tag_performance(attempts: Sequence[QuizAttempt], bank: QuestionBank) -> list[TagPerformance]:
    """Correct/total per tag across every recorded answer, weakest tag first."""
    results: dict[str, TagPerformance] = {}
    for attempt in attempts:
        for answer in attempt.answers:
            question = bank.get(answer.question_id)
            if question is None:
                continue
            for tag in question.tags:
                entry = results.setdefault(tag, TagPerformance(tag, 0, 0))
                entry.total += 1
                if answer.correct:
                    entry.correct += 1

    return sorted(results.values(), key=lambda t: (t.percentage, t.tag))


def quiz_title(mode: QuizMode, questions: Sequence[Question] = (), week: int | None = None) -> str:
    if mode is QuizMode.WEEKLY:
        if not week:
            return "Quiz"
        if questions and questions[0].week_title:
            return f"Week {week} - {questions[0].week_title}"
        return f"Week {week}"
    return {
        QuizMode.FULL: "Full Quiz",
        QuizMode.BOOKMARK: "Bookmarked Questions",
        QuizMode.SMART: "Smart Boost Quiz",
        QuizMode.CUSTOM: "Custom Quiz",
    }.get(mode, "Quiz")
