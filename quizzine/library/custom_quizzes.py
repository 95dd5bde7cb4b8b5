"""
User-authored custom quizzes.

A custom quiz is a named, ordered list of question ids. Ids are resolved
against the current bank at read time, so a quiz silently shrinks when the
bank drops questions it referenced.
"""

from __future__ import annotations

import uuid
from collections.abc import Iterable, Mapping

from loguru import logger

from quizzine.exceptions import CustomQuizNotFoundError, InvalidCustomQuizError
from quizzine.models import CustomQuiz, Question, StoreDocument, utcnow
from quizzine.store.document_store import DocumentStore


def _dedupe(question_ids: Iterable[str]) -> list[str]:
    return list(dict.fromkeys(question_ids))


def _validated_name(name: str) -> str:
    name = name.strip()
    if not name:
        raise InvalidCustomQuizError("Custom quiz name must not be blank")
    return name


def _validated_ids(question_ids: Iterable[str]) -> list[str]:
    ids = _dedupe(question_ids)
    if not ids:
        raise InvalidCustomQuizError("Custom quiz needs at least one question")
    return ids


class CustomQuizManager:
    """CRUD over custom quizzes stored in the store document."""

    def __init__(self, store: DocumentStore):
        self.store = store

    def list_custom_quizzes(self) -> list[CustomQuiz]:
        return list(self.store.load().custom_quizzes)

    def get_custom_quiz(self, quiz_id: str) -> CustomQuiz | None:
        return next((q for q in self.store.load().custom_quizzes if q.id == quiz_id), None)

    def save_custom_quiz(
        self,
        name: str,
        question_ids: Iterable[str],
        course_id: str | None = None,
    ) -> CustomQuiz:
        """
        Create a new custom quiz.

        Raises:
            InvalidCustomQuizError: Blank name or no questions
        """
        quiz = CustomQuiz(
            id=uuid.uuid4().hex[:12],
            name=_validated_name(name),
            timestamp=utcnow(),
            question_ids=_validated_ids(question_ids),
            course_id=course_id,
        )
        with self.store.mutate() as doc:
            doc.custom_quizzes.append(quiz)
        logger.info(f"Saved custom quiz {quiz.id} '{quiz.name}' with {len(quiz.question_ids)} questions")
        return quiz

    def update_custom_quiz(
        self,
        quiz_id: str,
        name: str | None = None,
        question_ids: Iterable[str] | None = None,
    ) -> CustomQuiz:
        """
        Rename a quiz and/or replace its question list.

        Raises:
            CustomQuizNotFoundError: No quiz with this id
            InvalidCustomQuizError: Blank name or empty question list
        """
        changes: dict[str, object] = {"updated_at": utcnow()}
        if name is not None:
            changes["name"] = _validated_name(name)
        if question_ids is not None:
            changes["question_ids"] = _validated_ids(question_ids)

        with self.store.mutate() as doc:
            index = self._index_of(doc, quiz_id)
            updated = doc.custom_quizzes[index].model_copy(update=changes)
            doc.custom_quizzes[index] = updated
        return updated

    def delete_custom_quiz(self, quiz_id: str) -> None:
        """
        Raises:
            CustomQuizNotFoundError: No quiz with this id
        """
        with self.store.mutate() as doc:
            index = self._index_of(doc, quiz_id)
            removed = doc.custom_quizzes.pop(index)
        logger.info(f"Deleted custom quiz {removed.id} '{removed.name}'")

    def get_questions_for_custom_quiz(
        self,
        quiz_id: str,
        questions_by_id: Mapping[str, Question],
    ) -> list[Question]:
        """Resolve a quiz's ids against the bank index, skipping ids that no longer exist."""
        quiz = self.get_custom_quiz(quiz_id)
        if quiz is None:
            logger.warning(f"Custom quiz {quiz_id} not found")
            return []

        questions = []
        for question_id in quiz.question_ids:
            question = questions_by_id.get(question_id)
            if question is None:
                logger.debug(f"Custom quiz {quiz_id}: question {question_id} no longer in bank")
                continue
            questions.append(question)
        return questions

    @staticmethod
    def _index_of(doc: StoreDocument, quiz_id: str) -> int:
        for index, quiz in enumerate(doc.custom_quizzes):
            if quiz.id == quiz_id:
                return index
        raise CustomQuizNotFoundError(quiz_id)
