"""
Domain models for the quiz engine.

Everything that ends up in the store document is a pydantic model so that
loading, sanitizing and exporting share one definition. Persisted JSON uses
camelCase keys; Python attributes are snake_case.
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Annotated, Any

from loguru import logger
from pydantic import (
    AfterValidator,
    BaseModel,
    ConfigDict,
    Field,
    TypeAdapter,
    ValidationError,
    ValidationInfo,
    ValidatorFunctionWrapHandler,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel

CURRENT_SCHEMA_VERSION = 2

DEFAULT_CONFIDENCE = 3
MIN_CONFIDENCE = 0
MAX_CONFIDENCE = 5


def _ensure_utc(value: datetime) -> datetime:
    # Naive timestamps from older exports are treated as UTC so they stay comparable.
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


UtcDatetime = Annotated[datetime, AfterValidator(_ensure_utc)]
ConfidenceValue = Annotated[int, Field(ge=MIN_CONFIDENCE, le=MAX_CONFIDENCE)]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class _CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )


class QuizMode(str, Enum):
    """Question-set acquisition modes for a quiz session."""

    WEEKLY = "weekly"
    FULL = "full"
    BOOKMARK = "bookmark"
    SMART = "smart"
    CUSTOM = "custom"


# =============================================================================
# Question Bank Content
# =============================================================================


class Course(_CamelModel):
    id: str
    name: str
    description: str | None = None


class Question(_CamelModel):
    """A multiple-choice question from the static bank."""

    id: str
    course_id: str = ""
    week: int
    week_title: str | None = None
    question: str
    options: list[str]
    correct_index: int
    tags: list[str] = Field(default_factory=list)

    @model_validator(mode="after")
    def _check_correct_index(self) -> Question:
        if not self.options:
            raise ValueError(f"question {self.id} has no options")
        if not 0 <= self.correct_index < len(self.options):
            raise ValueError(
                f"question {self.id}: correctIndex {self.correct_index} "
                f"outside 0..{len(self.options) - 1}"
            )
        return self

    @property
    def correct_option(self) -> str:
        return self.options[self.correct_index]


# =============================================================================
# Quiz Results
# =============================================================================


class Answer(_CamelModel):
    """A single answered question within an attempt."""

    model_config = ConfigDict(frozen=True)

    question_id: str
    selected_option_index: int
    selected_option_text: str = ""
    correct: bool
    time_taken_ms: int = Field(default=0, ge=0, alias="timeTaken")


class QuizAttempt(_CamelModel):
    """A completed quiz run. Created once at completion and never modified."""

    model_config = ConfigDict(frozen=True)

    id: str
    timestamp: UtcDatetime
    mode: QuizMode
    course_id: str | None = None
    week: int | None = None
    custom_quiz_id: str | None = None
    answers: list[Answer] = Field(default_factory=list)
    score: int = Field(ge=0)
    total_questions: int = Field(ge=0)

    @property
    def percentage(self) -> int:
        if self.total_questions == 0:
            return 0
        return round(self.score / self.total_questions * 100)


class QuestionPerformanceStats(_CamelModel):
    """Append-only outcome counters for one question."""

    total_attempts: int = Field(default=0, ge=0)
    correct_attempts: int = Field(default=0, ge=0)
    incorrect_attempts: int = Field(default=0, ge=0)
    last_attempt: UtcDatetime | None = None


# =============================================================================
# User Curation & Preferences
# =============================================================================


class CustomQuiz(_CamelModel):
    id: str
    name: str
    timestamp: UtcDatetime
    question_ids: list[str] = Field(default_factory=list)
    course_id: str | None = None
    updated_at: UtcDatetime | None = None


class StreakState(_CamelModel):
    """Last activity as a plain YYYY-MM-DD string ("" before any activity)."""

    last_activity_date: str = ""
    current_streak: int = Field(default=0, ge=0)


class UserSettings(_CamelModel):
    hard_mode: bool = False
    reminders: bool = False
    dark_mode: bool = False
    last_visited_week: int = Field(default=1, ge=1)
    current_course_id: str | None = None


# =============================================================================
# Store Document (aggregate root)
# =============================================================================

# Collections cleaned entry by entry: one bad entry is dropped, the rest survive.
_COLLECTION_ITEMS: dict[str, tuple[type, TypeAdapter]] = {
    "attempts": (list, TypeAdapter(QuizAttempt)),
    "bookmarks": (list, TypeAdapter(str)),
    "custom_quizzes": (list, TypeAdapter(CustomQuiz)),
    "confidence_ratings": (dict, TypeAdapter(ConfidenceValue)),
    "question_performance": (dict, TypeAdapter(QuestionPerformanceStats)),
}


def _is_valid(adapter: TypeAdapter, item: Any) -> bool:
    try:
        adapter.validate_python(item)
    except ValidationError:
        return False
    return True


def _drop_invalid_entries(field_name: str, value: Any) -> list | dict | None:
    """Valid entries of a collection field, or None if the field is not a cleanable collection."""
    spec = _COLLECTION_ITEMS.get(field_name)
    if spec is None or not isinstance(value, spec[0]):
        return None
    container, adapter = spec
    if container is list:
        return [item for item in value if _is_valid(adapter, item)]
    return {key: item for key, item in value.items() if isinstance(key, str) and _is_valid(adapter, item)}


class StoreDocument(_CamelModel):
    """
    The single persisted document holding all mutable user state.

    Invalid entries of a collection are dropped one by one; any other
    sub-object that fails validation is replaced by its default. Neither
    fails the whole load.
    """

    schema_version: int = CURRENT_SCHEMA_VERSION
    attempts: list[QuizAttempt] = Field(default_factory=list)
    bookmarks: list[str] = Field(default_factory=list)
    settings: UserSettings = Field(default_factory=UserSettings)
    confidence_ratings: dict[str, ConfidenceValue] = Field(default_factory=dict)
    streaks: StreakState = Field(default_factory=StreakState)
    custom_quizzes: list[CustomQuiz] = Field(default_factory=list)
    question_performance: dict[str, QuestionPerformanceStats] = Field(default_factory=dict)

    @field_validator("*", mode="wrap")
    @classmethod
    def _reset_invalid(
        cls, value: Any, handler: ValidatorFunctionWrapHandler, info: ValidationInfo
    ) -> Any:
        try:
            return handler(value)
        except ValidationError as e:
            cleaned = _drop_invalid_entries(info.field_name, value)
            if cleaned is not None:
                try:
                    result = handler(cleaned)
                except ValidationError:
                    pass
                else:
                    logger.warning(
                        f"Store field '{info.field_name}': dropped "
                        f"{len(value) - len(cleaned)} invalid entries"
                    )
                    return result
            logger.warning(
                f"Store field '{info.field_name}' is invalid, resetting to default "
                f"({e.error_count()} errors)"
            )
            field = cls.model_fields[info.field_name]
            return field.get_default(call_default_factory=True)

    def to_json_dict(self) -> dict[str, Any]:
        """Serialize to the persisted camelCase shape."""
        return self.model_dump(mode="json", by_alias=True)
