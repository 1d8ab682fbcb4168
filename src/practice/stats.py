"""
Progress statistics for the summary and per-question views.
"""

from __future__ import annotations

from collections import Counter
from collections.abc import Mapping
from dataclasses import dataclass

from .bank import Question, QuestionBank
from .mastery import MasteryTier, classify, weight
from .progress import ProgressRecord


@dataclass(frozen=True)
class ProgressSummary:
    questions_seen: int
    total_correct: int
    total_attempts: int

    @property
    def accuracy_pct(self) -> int:
        """Overall accuracy as a whole percentage (0 with no attempts)."""
        if self.total_attempts == 0:
            return 0
        return round(self.total_correct / self.total_attempts * 100)


@dataclass(frozen=True)
class QuestionReport:
    number: int
    tier: MasteryTier
    weight: float
    correct: int
    attempts: int
    answer: str


def summarize(records: Mapping[int, ProgressRecord]) -> ProgressSummary:
    """Totals over every question that has been seen at least once."""
    seen = [r for r in records.values() if r.seen]
    return ProgressSummary(
        questions_seen=len(seen),
        total_correct=sum(r.correct_count for r in seen),
        total_attempts=sum(r.attempt_count for r in seen),
    )


def tier_counts(records: Mapping[int, ProgressRecord]) -> dict[MasteryTier, int]:
    counts = Counter(classify(r) for r in records.values())
    return {tier: counts.get(tier, 0) for tier in MasteryTier}


def question_row(question: Question, record: ProgressRecord) -> QuestionReport:
    return QuestionReport(
        number=question.number,
        tier=classify(record),
        weight=weight(record),
        correct=record.correct_count,
        attempts=record.attempt_count,
        answer=question.correct_choice.text,
    )


def question_report(bank: QuestionBank, records: Mapping[int, ProgressRecord]) -> list[QuestionReport]:
    """One row per question in bank order."""
    return [question_row(q, records[q.number]) for q in bank]
