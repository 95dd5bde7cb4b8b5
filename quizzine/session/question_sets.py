"""Mode-specific question set acquisition for quiz sessions."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Protocol

from loguru import logger

from quizzine.adaptive.smart_boost import SmartBoostSelector
from quizzine.content.repository import QuestionBank
from quizzine.library.bookmarks import BookmarkManager
from quizzine.library.custom_quizzes import CustomQuizManager
from quizzine.library.preferences import PreferencesManager
from quizzine.models import Question, QuizMode
from quizzine.store.document_store import DocumentStore


class BankSource(Protocol):
    async def get_all(self) -> QuestionBank: ...


@dataclass
class QuestionSet:
    questions: list[Question] = field(default_factory=list)
    course_id: str | None = None


class QuestionSetLoader:
    """
    Resolve the questions for a mode.

    weekly/full/smart are scoped to the current course, bookmark spans every
    course, custom follows the quiz's own id list. Missing preconditions
    (no week, no quiz id, no course) produce an empty set.
    """

    def __init__(self, store: DocumentStore, repository: BankSource):
        self.repository = repository
        self.preferences = PreferencesManager(store)
        self.bookmarks = BookmarkManager(store)
        self.custom_quizzes = CustomQuizManager(store)
        self.selector = SmartBoostSelector(store)

    async def acquire(
        self,
        mode: QuizMode,
        week: int | None = None,
        custom_quiz_id: str | None = None,
    ) -> QuestionSet:
        bank = await self.repository.get_all()
        course_id = self.preferences.current_course_id(bank)

        if mode is QuizMode.BOOKMARK:
            return QuestionSet(self.bookmarks.bookmarked_questions(bank), course_id)

        if mode is QuizMode.CUSTOM:
            if not custom_quiz_id:
                logger.warning("Custom quiz requested without a quiz id")
                return QuestionSet([], course_id)
            questions = self.custom_quizzes.get_questions_for_custom_quiz(
                custom_quiz_id, bank.questions_by_id
            )
            return QuestionSet(questions, course_id)

        if course_id is None:
            logger.warning(f"No course available for {mode.value} quiz")
            return QuestionSet([], None)

        if mode is QuizMode.WEEKLY:
            if week is None:
                logger.warning("Weekly quiz requested without a week")
                return QuestionSet([], course_id)
            return QuestionSet(bank.for_week(course_id, week), course_id)

        if mode is QuizMode.FULL:
            return QuestionSet(bank.for_course(course_id), course_id)

        if mode is QuizMode.SMART:
            return QuestionSet(self.selector.select(bank.for_course(course_id)), course_id)

        raise ValueError(f"Unsupported quiz mode: {mode!r}")
