"""
Exception hierarchy for the practice engine.

Two families:
- BankLoadError: the question bank could not be read. Fatal to starting a session.
- InvariantViolation: the engine was driven in a way that cannot happen in a
  correct program (unknown question number, empty selection pool, answering
  outside a running session). These are defects, not recoverable conditions.

Corrupt or missing durable state is not an error: the store logs it and
re-initialises defaults.
"""


class PracticeError(Exception):
    """Base class for all practice engine errors."""


class BankLoadError(PracticeError):
    """Question bank is missing, unreadable or malformed."""


class InvariantViolation(PracticeError):
    """Programming error detected by the engine."""


class UnknownQuestionError(InvariantViolation):
    """A question number that the progress store does not hold."""

    def __init__(self, number: int):
        super().__init__(f"Unknown question number: {number}")
        self.number = number


class EmptyCandidatePoolError(InvariantViolation):
    """A selector was asked to pick from an empty bank."""


class SessionStateError(InvariantViolation):
    """Session operation invoked in a state that does not allow it."""
