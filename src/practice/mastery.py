"""
Mastery tiers and sampling weights.

Both are pure functions of a ProgressRecord and share one rule evaluation,
so the weight bands always line up with the tiers:

    unseen (100) > struggling (55-90) > learning (20-50) > mastered (1-10)

Accuracy drives the decision. Response time only matters at the extremes:
very slow answers with middling accuracy count as struggling, and fast,
accurate answers over several attempts count as mastered.
"""

from __future__ import annotations

from enum import Enum

from .progress import ProgressRecord

# Struggling
STRUGGLING_ACCURACY = 0.5
SLOW_AVG_TIME_MS = 15_000
SLOW_ACCURACY_CEILING = 0.7

# Mastered
FLUENT_ACCURACY = 0.85
FLUENT_MIN_ATTEMPTS = 3
FLUENT_MAX_AVG_TIME_MS = 12_000
PERFECT_MIN_ATTEMPTS = 2

UNSEEN_WEIGHT = 100.0


class MasteryTier(str, Enum):
    """Coarse classification of how well a question is known."""

    NOT_SEEN = "not_seen"
    STRUGGLING = "struggling"
    LEARNING = "learning"
    MASTERED = "mastered"

    @property
    def display_name(self) -> str:
        """Human-readable name."""
        return self.value.replace("_", " ").title()

    @property
    def color(self) -> str:
        """Rich color for CLI display."""
        return {
            MasteryTier.NOT_SEEN: "dim",
            MasteryTier.STRUGGLING: "red",
            MasteryTier.LEARNING: "yellow",
            MasteryTier.MASTERED: "green",
        }[self]


class Rule(str, Enum):
    """Which classification rule matched, in evaluation order."""

    UNSEEN = "unseen"
    LOW_ACCURACY = "low_accuracy"
    SLOW_AND_SHAKY = "slow_and_shaky"
    FLUENT = "fluent"
    PERFECT = "perfect"
    LEARNING = "learning"

    @property
    def tier(self) -> MasteryTier:
        return _RULE_TIERS[self]


_RULE_TIERS = {
    Rule.UNSEEN: MasteryTier.NOT_SEEN,
    Rule.LOW_ACCURACY: MasteryTier.STRUGGLING,
    Rule.SLOW_AND_SHAKY: MasteryTier.STRUGGLING,
    Rule.FLUENT: MasteryTier.MASTERED,
    Rule.PERFECT: MasteryTier.MASTERED,
    Rule.LEARNING: MasteryTier.LEARNING,
}


def assess(record: ProgressRecord) -> Rule:
    """Evaluate the rules in order and return the first one that matches."""
    if not record.seen or record.attempt_count == 0:
        return Rule.UNSEEN

    accuracy = record.accuracy
    avg_time = record.avg_time_ms

    if accuracy < STRUGGLING_ACCURACY:
        return Rule.LOW_ACCURACY
    if avg_time > SLOW_AVG_TIME_MS and accuracy < SLOW_ACCURACY_CEILING:
        return Rule.SLOW_AND_SHAKY
    # Perfect records take the lower mastered band even when also fluent
    if accuracy == 1.0 and record.attempt_count >= PERFECT_MIN_ATTEMPTS:
        return Rule.PERFECT
    if (
        accuracy >= FLUENT_ACCURACY
        and record.attempt_count >= FLUENT_MIN_ATTEMPTS
        and avg_time <= FLUENT_MAX_AVG_TIME_MS
    ):
        return Rule.FLUENT
    return Rule.LEARNING


def classify(record: ProgressRecord) -> MasteryTier:
    """Mastery tier for a question's history."""
    return assess(record).tier


def weight(record: ProgressRecord) -> float:
    """
    Relative sampling priority for adaptive practice.

    Not a probability: the selector normalises over all candidates.
    Always > 0.
    """
    rule = assess(record)
    if rule is Rule.UNSEEN:
        return UNSEEN_WEIGHT

    accuracy = record.accuracy
    if rule is Rule.LOW_ACCURACY:
        return 60 + (1 - accuracy) * 30
    if rule is Rule.SLOW_AND_SHAKY:
        return 55 + (1 - accuracy) * 20
    if rule is Rule.FLUENT:
        return float(max(1, 15 - record.attempt_count))
    if rule is Rule.PERFECT:
        return float(max(1, 12 - record.attempt_count))
    return 20 + (1 - accuracy) * 30
