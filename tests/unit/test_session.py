"""
Unit tests for the quiz session state machine.

Run: pytest tests/unit/test_session.py -v
"""

import random
from datetime import date, datetime, timezone

import pytest

from quizzine.adaptive import PerformanceTracker
from quizzine.content.repository import QuestionBank
from quizzine.exceptions import SessionStateError
from quizzine.library import BookmarkManager, CustomQuizManager, PreferencesManager
from quizzine.models import QuizMode
from quizzine.session import QuizSession, SessionQuestionView, SessionState

FIXED_NOW = datetime(2024, 6, 1, 18, 0, tzinfo=timezone.utc)


class FakeClock:
    def __init__(self, start: float = 0.0):
        self.now = start

    def __call__(self) -> float:
        return self.now


class FailingRepository:
    async def get_all(self) -> QuestionBank:
        raise RuntimeError("bank exploded")


def make_session(store, repository, mode=QuizMode.WEEKLY, **kwargs) -> QuizSession:
    kwargs.setdefault("rng", random.Random(42))
    kwargs.setdefault("now", lambda: FIXED_NOW)
    kwargs.setdefault("today", lambda: date(2024, 6, 1))
    return QuizSession(mode, store, repository, **kwargs)


def answer_current(session: QuizSession, correct: bool):
    view = session.current_view
    if correct:
        return session.answer(view.correct_index, time_taken_ms=1000)
    wrong = (view.correct_index + 1) % len(view.options)
    return session.answer(wrong, time_taken_ms=1000)


def play(session: QuizSession, missed: set[str] = frozenset()):
    while session.state is SessionState.IN_PROGRESS:
        answer_current(session, session.current_view.question_id not in missed)


class TestLoading:
    @pytest.mark.asyncio
    async def test_weekly_load(self, store, repository):
        session = make_session(store, repository, week=1)

        assert await session.load() is SessionState.IN_PROGRESS
        assert sorted(q.id for q in session.questions) == ["q1", "q2", "q3"]
        assert session.course_id == "cs101"
        assert session.progress == (1, 3)
        assert session.title == "Week 1 - Basics"

    @pytest.mark.asyncio
    async def test_weekly_load_remembers_week(self, store, repository):
        await make_session(store, repository, week=2).load()
        assert store.load().settings.last_visited_week == 2

    @pytest.mark.asyncio
    async def test_weekly_without_week_is_empty(self, store, repository):
        session = make_session(store, repository)
        assert await session.load() is SessionState.EMPTY

    @pytest.mark.asyncio
    async def test_unknown_week_is_empty(self, store, repository):
        assert await make_session(store, repository, week=9).load() is SessionState.EMPTY

    @pytest.mark.asyncio
    async def test_custom_without_id_is_empty(self, store, repository):
        assert await make_session(store, repository, mode=QuizMode.CUSTOM).load() is SessionState.EMPTY

    @pytest.mark.asyncio
    async def test_loader_failure_is_empty(self, store):
        session = make_session(store, FailingRepository(), mode=QuizMode.FULL)
        assert await session.load() is SessionState.EMPTY

    @pytest.mark.asyncio
    async def test_empty_bank_is_empty(self, store, make_repository):
        session = make_session(store, make_repository(QuestionBank()), mode=QuizMode.FULL)
        assert await session.load() is SessionState.EMPTY

    @pytest.mark.asyncio
    async def test_load_twice_fails(self, store, repository):
        session = make_session(store, repository, mode=QuizMode.FULL)
        await session.load()
        with pytest.raises(SessionStateError):
            await session.load()


class TestModes:
    @pytest.mark.asyncio
    async def test_full_uses_current_course(self, store, repository):
        PreferencesManager(store).select_course("math")
        session = make_session(store, repository, mode=QuizMode.FULL)
        await session.load()
        assert [q.id for q in session.questions] == ["m1"]

    @pytest.mark.asyncio
    async def test_smart_selects_missed_questions(self, store, repository):
        PerformanceTracker(store).record_answer("q3", correct=False)

        session = make_session(store, repository, mode=QuizMode.SMART)
        await session.load()

        assert [q.id for q in session.questions] == ["q3"]
        assert session.title == "Smart Boost Quiz"

    @pytest.mark.asyncio
    async def test_smart_without_history_is_empty(self, store, repository):
        assert await make_session(store, repository, mode=QuizMode.SMART).load() is SessionState.EMPTY

    @pytest.mark.asyncio
    async def test_bookmark_spans_courses(self, store, repository):
        bookmarks = BookmarkManager(store)
        bookmarks.toggle_bookmark("m1")
        bookmarks.toggle_bookmark("q4")

        session = make_session(store, repository, mode=QuizMode.BOOKMARK)
        await session.load()

        assert sorted(q.id for q in session.questions) == ["m1", "q4"]

    @pytest.mark.asyncio
    async def test_custom_quiz(self, store, repository):
        quiz = CustomQuizManager(store).save_custom_quiz("Mix", ["q4", "m1", "removed"])

        session = make_session(store, repository, mode=QuizMode.CUSTOM, custom_quiz_id=quiz.id)
        await session.load()
        play(session)

        assert sorted(q.id for q in session.questions) == ["m1", "q4"]
        assert session.attempt.custom_quiz_id == quiz.id
        assert session.attempt.week is None


class TestAnswering:
    @pytest.mark.asyncio
    async def test_weekly_scenario(self, store, repository):
        session = make_session(store, repository, week=1)
        await session.load()

        play(session, missed={"q2"})

        assert session.state is SessionState.RESULTS
        attempt = session.attempt
        assert (attempt.score, attempt.total_questions) == (2, 3)
        assert attempt.mode is QuizMode.WEEKLY
        assert attempt.week == 1
        assert attempt.course_id == "cs101"
        assert attempt.timestamp == FIXED_NOW

        doc = store.load()
        assert doc.attempts == [attempt]
        assert doc.confidence_ratings == {"q1": 4, "q2": 2, "q3": 4}
        assert doc.question_performance["q2"].incorrect_attempts == 1

    @pytest.mark.asyncio
    async def test_answer_records_displayed_text(self, store, repository):
        session = make_session(store, repository, mode=QuizMode.FULL)
        await session.load()
        view = session.current_view

        answer = session.answer(view.correct_index, time_taken_ms=10)

        assert answer.correct is True
        assert answer.selected_option_text == view.question.correct_option
        assert session.answer_for(view.question_id) == answer

    @pytest.mark.asyncio
    async def test_performance_updates_before_completion(self, store, repository):
        session = make_session(store, repository, week=1)
        await session.load()
        first = session.current_view.question_id

        answer_current(session, correct=False)

        assert store.load().question_performance[first].incorrect_attempts == 1
        assert store.load().attempts == []

    @pytest.mark.asyncio
    @pytest.mark.parametrize("index", [-1, 4, 99])
    async def test_out_of_range_index(self, store, repository, index):
        session = make_session(store, repository, week=1)
        await session.load()

        with pytest.raises(ValueError):
            session.answer(index)

        assert session.answers == []
        assert session.current_index == 0
        assert store.load().question_performance == {}

    @pytest.mark.asyncio
    async def test_elapsed_time_from_clock(self, store, repository):
        clock = FakeClock(100.0)
        session = make_session(store, repository, week=1, clock=clock)
        await session.load()
        view = session.current_view

        clock.now = 102.5
        answer = session.answer(view.correct_index)

        assert answer.time_taken_ms == 2500

    @pytest.mark.asyncio
    async def test_answer_before_load_fails(self, store, repository):
        with pytest.raises(SessionStateError):
            make_session(store, repository, week=1).answer(0)

    @pytest.mark.asyncio
    async def test_completion_records_streak(self, store, repository):
        session = make_session(store, repository, week=2, today=lambda: date(2024, 6, 1))
        await session.load()
        play(session)

        streaks = store.load().streaks
        assert streaks.last_activity_date == "2024-06-01"
        assert streaks.current_streak == 1

    @pytest.mark.asyncio
    async def test_abandoned_session_writes_no_attempt(self, store, repository):
        session = make_session(store, repository, week=1)
        await session.load()
        answer_current(session, correct=True)

        session.close()

        assert session.state is SessionState.FINISHED
        assert store.load().attempts == []
        assert store.load().streaks.current_streak == 0
        with pytest.raises(SessionStateError):
            session.answer(0)


class TestHardMode:
    @pytest.mark.asyncio
    async def test_shuffled_options_keep_correct_answer(self, store, repository):
        PreferencesManager(store).update_settings(hard_mode=True)
        session = make_session(store, repository, mode=QuizMode.FULL, rng=random.Random(3))
        await session.load()
        assert session.hard_mode is True

        shown = {}
        while session.state is SessionState.IN_PROGRESS:
            view = session.current_view
            assert view.is_shuffled
            assert sorted(view.options) == sorted(view.question.options)
            assert view.options[view.correct_index] == view.question.correct_option
            shown[view.question_id] = view
            answer = session.answer(view.correct_index, time_taken_ms=5)
            assert answer.correct is True

        assert session.attempt.score == 4

        review = session.start_review()
        while True:
            assert review is shown[review.question_id]
            if session.current_index == len(session.questions) - 1:
                break
            review = session.review_next()

    def test_view_without_shuffle(self, bank):
        view = SessionQuestionView.build(bank.get("q4"), shuffle=False)
        assert view.options == bank.get("q4").options
        assert view.correct_index == 3
        assert view.original_index(2) == 2

    def test_view_maps_back_to_original_index(self, bank):
        view = SessionQuestionView(bank.get("q1"), permutation=(2, 0, 3, 1))
        assert view.options == ["lambda", "def", "fn", "func"]
        assert view.correct_index == 1
        assert view.original_index(1) == 0
        assert view.is_correct(1)
        assert not view.is_correct(0)


class TestReviewAndRetry:
    @pytest.mark.asyncio
    async def test_review_navigation_clamps_and_is_read_only(self, store, repository):
        session = make_session(store, repository, week=1)
        await session.load()
        play(session, missed={"q1"})
        answers_before = session.answers

        session.start_review()
        assert session.state is SessionState.REVIEWING
        session.review_previous()
        assert session.current_index == 0
        for _ in range(5):
            session.review_next()
        assert session.current_index == 2

        with pytest.raises(SessionStateError):
            session.answer(0)

        session.back_to_results()
        assert session.state is SessionState.RESULTS
        assert session.answers == answers_before
        assert len(store.load().attempts) == 1

    @pytest.mark.asyncio
    async def test_review_requires_results(self, store, repository):
        session = make_session(store, repository, week=1)
        await session.load()
        with pytest.raises(SessionStateError):
            session.start_review()

    @pytest.mark.asyncio
    async def test_retry_incorrect(self, store, repository):
        session = make_session(store, repository, week=1)
        await session.load()
        play(session, missed={"q2", "q3"})

        retried = session.retry_incorrect()

        assert sorted(q.id for q in retried) == ["q2", "q3"]
        assert session.state is SessionState.IN_PROGRESS
        assert session.answers == []

        play(session)

        attempts = store.load().attempts
        assert len(attempts) == 2
        assert (attempts[1].score, attempts[1].total_questions) == (2, 2)

    @pytest.mark.asyncio
    async def test_retry_with_nothing_missed(self, store, repository):
        session = make_session(store, repository, week=2)
        await session.load()
        play(session)

        with pytest.raises(SessionStateError):
            session.retry_incorrect()
        assert session.state is SessionState.RESULTS
