"""User settings: hard mode, reminders, theme and the selected course."""

from __future__ import annotations

from typing import Any

from loguru import logger

from quizzine.content.repository import QuestionBank
from quizzine.models import UserSettings
from quizzine.store.document_store import DocumentStore


class PreferencesManager:
    def __init__(self, store: DocumentStore):
        self.store = store

    def get_settings(self) -> UserSettings:
        return self.store.load().settings

    def update_settings(self, **changes: Any) -> UserSettings:
        """
        Merge ``changes`` into the stored settings.

        Raises:
            ValueError: Unknown setting name or invalid value
        """
        unknown = set(changes) - set(UserSettings.model_fields)
        if unknown:
            raise ValueError(f"Unknown settings: {', '.join(sorted(unknown))}")

        with self.store.mutate() as doc:
            merged = {**doc.settings.model_dump(), **changes}
            # pydantic.ValidationError is a ValueError
            doc.settings = UserSettings.model_validate(merged)
        logger.debug(f"Settings updated: {changes}")
        return doc.settings

    def select_course(self, course_id: str) -> UserSettings:
        return self.update_settings(current_course_id=course_id)

    def current_course_id(self, bank: QuestionBank) -> str | None:
        """The selected course, falling back to the bank's first course."""
        selected = self.get_settings().current_course_id
        if selected and (bank.is_empty or bank.course(selected) is not None):
            return selected
        if bank.courses:
            return bank.courses[0].id
        return selected
