"""
Quizzine: quiz session engine and local persistence for a learning app.

Layers:
- store     -> versioned local document (bookmarks, attempts, streaks, ...)
- content   -> cached question bank repository
- library   -> bookmarks, custom quizzes, preferences
- adaptive  -> performance/confidence tracking and Smart Boost
- progress  -> streak tracker and dashboard statistics
- session   -> quiz session state machine
"""

__version__ = "1.0.0"
