"""Answer tracking and weak-question selection."""

from quizzine.adaptive.performance import PerformanceTracker, adjust_confidence, apply_answer
from quizzine.adaptive.smart_boost import SmartBoostSelector

__all__ = ["PerformanceTracker", "SmartBoostSelector", "adjust_confidence", "apply_answer"]
