"""
Next-question selection, one strategy per practice mode.

- RandomSelector: weighted draw favouring unseen and weak questions
- SequentialSelector: bank order with wrap-around and a resumable cursor
- TestSelector: fixed-length shuffled sequence, no repeats, no weighting
"""

from __future__ import annotations

import random
from collections.abc import Mapping
from typing import Optional

from loguru import logger

from .bank import Question, QuestionBank
from .errors import EmptyCandidatePoolError
from .mastery import weight as question_weight
from .progress import ProgressRecord

DEFAULT_TEST_LENGTH = 40


class RandomSelector:
    """Weighted random draw over the bank, never repeating the current question."""

    def __init__(self, rng: Optional[random.Random] = None):
        self.rng = rng or random.Random()

    def select(
        self,
        bank: QuestionBank,
        records: Mapping[int, ProgressRecord],
        exclude: Optional[int] = None,
    ) -> Question:
        """
        Draw one question with probability proportional to its weight.

        Args:
            bank: Question bank
            records: Progress by question number
            exclude: Number of the question on screen, skipped to avoid repeats

        Returns:
            Selected question. When excluding leaves nothing (single-question
            bank) the excluded question itself is returned.

        Raises:
            EmptyCandidatePoolError: the bank is empty
        """
        if len(bank) == 0:
            raise EmptyCandidatePoolError("Cannot select from an empty question bank")

        candidates = [q for q in bank if q.number != exclude]
        if not candidates:
            return bank.get(exclude)

        weights = [question_weight(records[q.number]) for q in candidates]
        total = sum(weights)

        # Cumulative subtraction; the last iterated candidate wins rounding ties
        remainder = self.rng.random() * total
        for question, w in zip(candidates, weights):
            remainder -= w
            if remainder <= 0:
                return question
        return candidates[-1]


class SequentialSelector:
    """Walks the bank in load order, wrapping to the start after the last question."""

    def __init__(self, bank: QuestionBank, cursor: int = 0):
        if len(bank) == 0:
            raise EmptyCandidatePoolError("Cannot walk an empty question bank")
        self.bank = bank
        self.cursor = cursor % len(bank)

    def next(self) -> Question:
        if self.cursor >= len(self.bank):
            self.cursor = 0
        question = self.bank.at(self.cursor)
        self.cursor += 1
        return question

    @property
    def resume_position(self) -> int:
        """Cursor value to persist so the next run continues after the last question shown."""
        return self.cursor % len(self.bank)


class TestSelector:
    """Pre-shuffled fixed-length exam sequence."""

    # Not a pytest test class
    __test__ = False

    def __init__(
        self,
        bank: QuestionBank,
        length: int = DEFAULT_TEST_LENGTH,
        rng: Optional[random.Random] = None,
    ):
        if len(bank) == 0:
            raise EmptyCandidatePoolError("Cannot build a test from an empty question bank")
        rng = rng or random.Random()
        size = min(length, len(bank))
        # sample() is an unbiased shuffle of the chosen subset
        self.sequence: tuple[Question, ...] = tuple(rng.sample(list(bank), size))
        self.position = 0
        logger.debug(f"Built test sequence of {size} questions")

    def __len__(self) -> int:
        return len(self.sequence)

    @property
    def exhausted(self) -> bool:
        return self.position >= len(self.sequence)

    def next(self) -> Optional[Question]:
        """Next question in the sequence, or None once every question has been served."""
        if self.exhausted:
            return None
        question = self.sequence[self.position]
        self.position += 1
        return question
