"""User curation on top of the store: bookmarks, custom quizzes, settings."""

from quizzine.library.bookmarks import BookmarkManager
from quizzine.library.custom_quizzes import CustomQuizManager
from quizzine.library.preferences import PreferencesManager

__all__ = ["BookmarkManager", "CustomQuizManager", "PreferencesManager"]
