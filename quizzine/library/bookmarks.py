"""Bookmark set management."""

from __future__ import annotations

from loguru import logger

from quizzine.content.repository import QuestionBank
from quizzine.models import Question
from quizzine.store.document_store import DocumentStore


class BookmarkManager:
    """Toggle and query bookmarked question ids."""

    def __init__(self, store: DocumentStore):
        self.store = store

    def toggle_bookmark(self, question_id: str) -> bool:
        """
        Add the question if absent, remove it if present.

        Returns:
            True if the question is bookmarked after the call
        """
        with self.store.mutate() as doc:
            if question_id in doc.bookmarks:
                doc.bookmarks.remove(question_id)
                bookmarked = False
            else:
                doc.bookmarks.append(question_id)
                bookmarked = True
        logger.debug(f"Bookmark {question_id}: {'added' if bookmarked else 'removed'}")
        return bookmarked

    def is_bookmarked(self, question_id: str) -> bool:
        return question_id in self.store.load().bookmarks

    def bookmark_ids(self) -> list[str]:
        return list(self.store.load().bookmarks)

    def bookmarked_questions(self, bank: QuestionBank) -> list[Question]:
        """Bookmarked questions that exist in the bank, in bank order."""
        bookmarks = set(self.store.load().bookmarks)
        return [q for q in bank.questions if q.id in bookmarks]
