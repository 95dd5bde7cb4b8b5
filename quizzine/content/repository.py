"""
Question repository: fetches the static question bank once and caches it.

The bank is a JSON document shaped as::

    {"courses": [{"id", "name", "description"?, "questions": [Question, ...]}]}

It is read from an HTTP(S) URL with httpx, or from a local file path.
Concurrent callers share one in-flight fetch. A failed fetch is logged,
yields an empty bank and is retried on the next call.
"""

from __future__ import annotations

import asyncio
import json
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any

import httpx
from loguru import logger
from pydantic import ValidationError

from quizzine.exceptions import QuestionBankError
from quizzine.models import Course, Question


class CacheState(str, Enum):
    UNLOADED = "unloaded"
    LOADING = "loading"
    LOADED = "loaded"
    FAILED = "failed"


@dataclass
class WeekSummary:
    """Question count and tags for one week of a course."""

    week: int
    title: str | None
    question_count: int
    tags: list[str] = field(default_factory=list)


@dataclass
class QuestionBank:
    """Processed question bank with an id index built once per load."""

    courses: list[Course] = field(default_factory=list)
    questions: list[Question] = field(default_factory=list)
    questions_by_id: dict[str, Question] = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self.questions_by_id = {q.id: q for q in self.questions}

    @property
    def is_empty(self) -> bool:
        return not self.questions

    def get(self, question_id: str) -> Question | None:
        return self.questions_by_id.get(question_id)

    def course(self, course_id: str) -> Course | None:
        return next((c for c in self.courses if c.id == course_id), None)

    def for_course(self, course_id: str) -> list[Question]:
        return [q for q in self.questions if q.course_id == course_id]

    def for_week(self, course_id: str, week: int) -> list[Question]:
        return [q for q in self.questions if q.course_id == course_id and q.week == week]

    def weeks(self, course_id: str) -> list[WeekSummary]:
        """Summaries of every week in a course, ascending by week number."""
        summaries: dict[int, WeekSummary] = {}
        for q in self.for_course(course_id):
            summary = summaries.setdefault(q.week, WeekSummary(q.week, q.week_title, 0))
            summary.question_count += 1
            if summary.title is None and q.week_title:
                summary.title = q.week_title
            for tag in q.tags:
                if tag not in summary.tags:
                    summary.tags.append(tag)
        return [summaries[w] for w in sorted(summaries)]


def _is_week(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def parse_bank(raw: Any) -> QuestionBank:
    """
    Turn the raw bank document into a QuestionBank.

    Each question is stamped with its owning course id, and a missing week
    title is taken from a sibling question of the same course and week.
    Entries that fail validation are skipped.

    Raises:
        QuestionBankError: If the document is not shaped like a bank
    """
    if not isinstance(raw, dict):
        raise QuestionBankError(f"Question bank must be a JSON object, got {type(raw).__name__}")

    raw_courses = raw.get("courses") or []
    if not isinstance(raw_courses, list):
        raise QuestionBankError("Question bank 'courses' must be a list")

    courses: list[Course] = []
    questions: list[Question] = []

    for raw_course in raw_courses:
        try:
            course = Course.model_validate(raw_course)
        except ValidationError as e:
            logger.warning(f"Skipping invalid course entry: {e.error_count()} errors")
            continue
        courses.append(course)

        raw_questions = raw_course.get("questions") or []
        if not isinstance(raw_questions, list):
            logger.warning(f"Course {course.id}: 'questions' is not a list, ignoring")
            continue

        week_titles: dict[int, str] = {}
        for rq in raw_questions:
            if isinstance(rq, dict) and rq.get("weekTitle") and _is_week(rq.get("week")):
                week_titles.setdefault(rq["week"], rq["weekTitle"])

        for rq in raw_questions:
            if not isinstance(rq, dict):
                continue
            data = {**rq, "courseId": course.id}
            if not data.get("weekTitle") and _is_week(rq.get("week")):
                data["weekTitle"] = week_titles.get(rq["week"])
            try:
                questions.append(Question.model_validate(data))
            except ValidationError as e:
                logger.warning(f"Course {course.id}: skipping invalid question {rq.get('id')!r}: {e}")

    return QuestionBank(courses=courses, questions=questions)


class QuestionRepository:
    """
    Lazy, fetch-once cache of the question bank.

    Args:
        source: HTTP(S) URL or local file path of the bank JSON
        timeout: Seconds before the fetch is abandoned and treated as failed
        client: Optional httpx.AsyncClient (one is created and owned otherwise)
    """

    def __init__(
        self,
        source: str,
        timeout: float = 10.0,
        client: httpx.AsyncClient | None = None,
    ):
        self.source = source
        self.timeout = timeout
        self._client = client
        self._owns_client = client is None
        self._state = CacheState.UNLOADED
        self._bank: QuestionBank | None = None
        self._task: asyncio.Task[QuestionBank] | None = None

    @property
    def state(self) -> CacheState:
        return self._state

    @property
    def is_remote(self) -> bool:
        return self.source.startswith(("http://", "https://"))

    async def get_all(self) -> QuestionBank:
        """
        Return the cached bank, fetching it on first use.

        Never raises for content failures; an empty bank is returned instead.
        """
        if self._state is CacheState.LOADED and self._bank is not None:
            return self._bank

        if self._task is None:
            self._state = CacheState.LOADING
            self._task = asyncio.create_task(self._load())

        task = self._task
        try:
            return await asyncio.shield(task)
        except Exception as e:  # any load failure degrades to an empty bank and is retried
            if self._task is task:
                self._task = None
                self._state = CacheState.FAILED
                logger.error(f"Failed to load question bank from {self.source}: {e!r}")
            return QuestionBank()

    def invalidate(self) -> None:
        """Drop the cached bank so the next call fetches again."""
        self._bank = None
        self._task = None
        self._state = CacheState.UNLOADED

    async def aclose(self) -> None:
        if self._owns_client and self._client is not None:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> QuestionRepository:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def _load(self) -> QuestionBank:
        logger.debug(f"Fetching question bank from {self.source}")
        raw = await asyncio.wait_for(self._fetch_raw(), timeout=self.timeout)
        bank = parse_bank(raw)
        self._bank = bank
        self._state = CacheState.LOADED
        logger.info(f"Fetched {len(bank.courses)} courses and {len(bank.questions)} total questions")
        return bank

    async def _fetch_raw(self) -> Any:
        if self.is_remote:
            if self._client is None:
                self._client = httpx.AsyncClient(
                    timeout=httpx.Timeout(self.timeout),
                    follow_redirects=True,
                )
            response = await self._client.get(self.source)
            response.raise_for_status()
            return response.json()

        path = Path(self.source).expanduser()
        text = await asyncio.to_thread(path.read_text, encoding="utf-8")
        return json.loads(text)
