"""
Session question views.

A view pairs a bank question with the option order shown to the learner.
It is built once, the first time the question is shown in a session, so the
remapped correct index stays stable for as long as the session keeps it.
"""

from __future__ import annotations

import random
from dataclasses import dataclass

from quizzine.models import Question


@dataclass(frozen=True)
class SessionQuestionView:
    """
    A question as presented.

    ``permutation[i]`` is the original option index displayed at position i;
    None means the bank order.
    """

    question: Question
    permutation: tuple[int, ...] | None = None

    @classmethod
    def build(cls, question: Question, shuffle: bool, rng: random.Random | None = None) -> SessionQuestionView:
        if not shuffle:
            return cls(question)
        order = list(range(len(question.options)))
        (rng or random).shuffle(order)
        return cls(question, tuple(order))

    @property
    def question_id(self) -> str:
        return self.question.id

    @property
    def options(self) -> list[str]:
        if self.permutation is None:
            return list(self.question.options)
        return [self.question.options[i] for i in self.permutation]

    @property
    def correct_index(self) -> int:
        if self.permutation is None:
            return self.question.correct_index
        return self.permutation.index(self.question.correct_index)

    @property
    def is_shuffled(self) -> bool:
        return self.permutation is not None

    def original_index(self, displayed_index: int) -> int:
        if self.permutation is None:
            return displayed_index
        return self.permutation[displayed_index]

    def is_correct(self, displayed_index: int) -> bool:
        return displayed_index == self.correct_index
