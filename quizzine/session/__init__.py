"""Quiz session orchestration."""

from quizzine.session.controller import QuizSession, SessionState
from quizzine.session.question_sets import QuestionSet, QuestionSetLoader
from quizzine.session.views import SessionQuestionView

__all__ = ["QuestionSet", "QuestionSetLoader", "QuizSession", "SessionQuestionView", "SessionState"]
