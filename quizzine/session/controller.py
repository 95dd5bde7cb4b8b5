"""
Quiz session state machine.

    LOADING -> EMPTY                      (no questions, terminal)
    LOADING -> IN_PROGRESS -> RESULTS
    RESULTS -> REVIEWING -> RESULTS       (read-only navigation)
    RESULTS -> IN_PROGRESS                (retry incorrect questions)
    any     -> FINISHED                   (close)

Each answer updates the per-question performance aggregates immediately.
The QuizAttempt is written only when the last question is answered;
a session abandoned midway leaves no attempt behind.
"""

from __future__ import annotations

import random
import time
import uuid
from collections.abc import Callable
from datetime import date, datetime
from enum import Enum

from loguru import logger

from quizzine.adaptive.performance import apply_answer
from quizzine.exceptions import SessionStateError
from quizzine.models import Answer, Question, QuizAttempt, QuizMode, utcnow
from quizzine.progress.stats import quiz_title
from quizzine.progress.streak import StreakTracker
from quizzine.session.question_sets import BankSource, QuestionSetLoader
from quizzine.session.views import SessionQuestionView
from quizzine.store.document_store import DocumentStore


class SessionState(str, Enum):
    LOADING = "loading"
    EMPTY = "empty"
    IN_PROGRESS = "in_progress"
    RESULTS = "results"
    REVIEWING = "reviewing"
    FINISHED = "finished"


class QuizSession:
    """
    One quiz run.

    Args:
        mode: Question set acquisition mode
        store: Document store for settings, performance and attempts
        repository: Anything with ``async get_all() -> QuestionBank``
        week: Week number (weekly mode)
        custom_quiz_id: Custom quiz id (custom mode)
        rng: Random source for question order and option shuffling
        clock: Monotonic clock in seconds, used for answer timing
        now: Wall clock for timestamps
        today: Local calendar date for the streak tracker
    """

    def __init__(
        self,
        mode: QuizMode,
        store: DocumentStore,
        repository: BankSource,
        week: int | None = None,
        custom_quiz_id: str | None = None,
        rng: random.Random | None = None,
        clock: Callable[[], float] = time.monotonic,
        now: Callable[[], datetime] = utcnow,
        today: Callable[[], date] = date.today,
    ):
        self.mode = QuizMode(mode)
        self.store = store
        self.week = week
        self.custom_quiz_id = custom_quiz_id
        self.course_id: str | None = None
        self.hard_mode = False

        self._loader = QuestionSetLoader(store, repository)
        self._streaks = StreakTracker(store)
        self._rng = rng or random.Random()
        self._clock = clock
        self._now = now
        self._today = today

        self._state = SessionState.LOADING
        self._questions: list[Question] = []
        self._index = 0
        self._answers: list[Answer] = []
        self._views: dict[str, SessionQuestionView] = {}
        self._presented_at: dict[str, float] = {}
        self._attempt: QuizAttempt | None = None

    # =========================================================================
    # Read-only state
    # =========================================================================

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def questions(self) -> list[Question]:
        return list(self._questions)

    @property
    def current_index(self) -> int:
        return self._index

    @property
    def answers(self) -> list[Answer]:
        return list(self._answers)

    @property
    def attempt(self) -> QuizAttempt | None:
        """The attempt persisted by the most recent completion."""
        return self._attempt

    @property
    def progress(self) -> tuple[int, int]:
        """(1-based position, total questions)."""
        return self._index + 1, len(self._questions)

    @property
    def is_last_question(self) -> bool:
        return self._index == len(self._questions) - 1

    @property
    def score(self) -> int:
        return sum(1 for a in self._answers if a.correct)

    @property
    def title(self) -> str:
        return quiz_title(self.mode, self._questions, self.week)

    @property
    def current_view(self) -> SessionQuestionView:
        """The current question as shown, built on first presentation."""
        self._require("view a question", SessionState.IN_PROGRESS, SessionState.REVIEWING)
        return self._view_for(self._questions[self._index])

    def answer_for(self, question_id: str) -> Answer | None:
        return next((a for a in self._answers if a.question_id == question_id), None)

    # =========================================================================
    # Transitions
    # =========================================================================

    async def load(self) -> SessionState:
        """Acquire the question set and enter IN_PROGRESS (or EMPTY)."""
        self._require("load", SessionState.LOADING)

        self.hard_mode = self.store.load().settings.hard_mode
        try:
            question_set = await self._loader.acquire(self.mode, self.week, self.custom_quiz_id)
        except Exception as e:  # acquisition failures degrade to an empty session
            logger.error(f"Error loading {self.mode.value} questions: {e!r}")
            self._state = SessionState.EMPTY
            return self._state

        self.course_id = question_set.course_id
        questions = list(question_set.questions)
        if not questions:
            logger.info(f"No questions for {self.mode.value} quiz")
            self._state = SessionState.EMPTY
            return self._state

        self._rng.shuffle(questions)
        self._questions = questions

        if self.mode is QuizMode.WEEKLY and self.week is not None and self.week >= 1:
            with self.store.mutate() as doc:
                doc.settings.last_visited_week = self.week

        self._state = SessionState.IN_PROGRESS
        logger.debug(f"Loaded {len(questions)} questions for {self.title} (hard mode: {self.hard_mode})")
        return self._state

    def answer(self, selected_index: int, time_taken_ms: int | None = None) -> Answer:
        """
        Answer the current question by its displayed option index.

        Raises:
            SessionStateError: Not in progress
            ValueError: Index outside the displayed options
        """
        self._require("answer", SessionState.IN_PROGRESS)
        view = self.current_view
        options = view.options
        if not 0 <= selected_index < len(options):
            raise ValueError(f"Option index {selected_index} outside 0..{len(options) - 1}")

        if time_taken_ms is None:
            elapsed = self._clock() - self._presented_at[view.question_id]
            time_taken_ms = max(0, int(elapsed * 1000))

        answer = Answer(
            question_id=view.question_id,
            selected_option_index=selected_index,
            selected_option_text=options[selected_index],
            correct=view.is_correct(selected_index),
            time_taken_ms=time_taken_ms,
        )
        self._answers.append(answer)

        with self.store.mutate() as doc:
            apply_answer(doc, answer.question_id, answer.correct, self._now())

        if self.is_last_question:
            self._finish()
        else:
            self._index += 1
        return answer

    def start_review(self) -> SessionQuestionView:
        self._require("start review", SessionState.RESULTS)
        self._state = SessionState.REVIEWING
        self._index = 0
        return self.current_view

    def review_next(self) -> SessionQuestionView:
        self._require("navigate review", SessionState.REVIEWING)
        if self._index < len(self._questions) - 1:
            self._index += 1
        return self.current_view

    def review_previous(self) -> SessionQuestionView:
        self._require("navigate review", SessionState.REVIEWING)
        if self._index > 0:
            self._index -= 1
        return self.current_view

    def back_to_results(self) -> None:
        self._require("return to results", SessionState.REVIEWING)
        self._state = SessionState.RESULTS

    def retry_incorrect(self) -> list[Question]:
        """
        Restart with only the questions answered incorrectly.

        The retry is persisted as its own attempt once it completes.

        Raises:
            SessionStateError: Not on the results screen, or nothing to retry
        """
        self._require("retry incorrect questions", SessionState.RESULTS)
        incorrect_ids = {a.question_id for a in self._answers if not a.correct}
        if not incorrect_ids:
            raise SessionStateError("No incorrect answers to retry")

        self._questions = [q for q in self._questions if q.id in incorrect_ids]
        self._index = 0
        self._answers = []
        self._views = {}
        self._presented_at = {}
        self._state = SessionState.IN_PROGRESS
        logger.debug(f"Retrying {len(self._questions)} incorrect questions")
        return self.questions

    def close(self) -> None:
        """End the session; unfinished progress is discarded."""
        if self._state is SessionState.IN_PROGRESS:
            logger.debug(f"Abandoning session after {len(self._answers)} answers")
        self._state = SessionState.FINISHED

    # =========================================================================
    # Internals
    # =========================================================================

    def _view_for(self, question: Question) -> SessionQuestionView:
        view = self._views.get(question.id)
        if view is None:
            view = SessionQuestionView.build(question, shuffle=self.hard_mode, rng=self._rng)
            self._views[question.id] = view
            self._presented_at[question.id] = self._clock()
        return view

    def _finish(self) -> None:
        attempt = QuizAttempt(
            id=uuid.uuid4().hex[:12],
            timestamp=self._now(),
            mode=self.mode,
            course_id=self.course_id,
            week=self.week if self.mode is QuizMode.WEEKLY else None,
            custom_quiz_id=self.custom_quiz_id,
            answers=list(self._answers),
            score=self.score,
            total_questions=len(self._questions),
        )
        with self.store.mutate() as doc:
            doc.attempts.append(attempt)
        self._streaks.record_activity(self._today())

        self._attempt = attempt
        self._state = SessionState.RESULTS
        logger.info(f"Quiz complete: {attempt.score}/{attempt.total_questions} ({self.title})")

    def _require(self, operation: str, *allowed: SessionState) -> None:
        if self._state not in allowed:
            raise SessionStateError(f"Cannot {operation} while session is {self._state.value}")
