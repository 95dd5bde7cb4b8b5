"""Exception hierarchy for the quiz engine."""

from __future__ import annotations


class QuizzineError(Exception):
    """Base class for all quiz engine errors."""


class QuestionBankError(QuizzineError):
    """The question bank could not be fetched or parsed."""


class CustomQuizNotFoundError(QuizzineError):
    """A custom quiz mutation referenced an id that does not exist."""

    def __init__(self, quiz_id: str):
        super().__init__(f"Custom quiz not found: {quiz_id}")
        self.quiz_id = quiz_id


class InvalidCustomQuizError(QuizzineError):
    """A custom quiz was saved without a name or without questions."""


class SessionStateError(QuizzineError):
    """A session operation was invoked in a state that does not allow it."""
