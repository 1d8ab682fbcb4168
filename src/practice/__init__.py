"""
Practice engine - adaptive question scheduling and mastery tracking.

Components:
- bank: immutable question records (QuestionBank, load_bank)
- progress: durable per-question statistics (ProgressStore)
- mastery: tier classification and sampling weights
- selector: random / sequential / test selection
- session: run state machine (SessionController)
- stats: summary and per-question reports

Rendering lives in src/cli; nothing here imports it.
"""

from src.practice.bank import Choice, Question, QuestionBank, load_bank
from src.practice.errors import (
    BankLoadError,
    EmptyCandidatePoolError,
    InvariantViolation,
    PracticeError,
    SessionStateError,
    UnknownQuestionError,
)
from src.practice.mastery import MasteryTier, classify, weight
from src.practice.progress import ProgressRecord, ProgressStore
from src.practice.session import AnswerOutcome, Mode, SessionController, SessionState, SessionStatus
from src.practice.storage import JsonFileStore, KeyValueStore, MemoryStore

__all__ = [
    "AnswerOutcome",
    "BankLoadError",
    "Choice",
    "EmptyCandidatePoolError",
    "InvariantViolation",
    "JsonFileStore",
    "KeyValueStore",
    "MasteryTier",
    "MemoryStore",
    "Mode",
    "PracticeError",
    "ProgressRecord",
    "ProgressStore",
    "Question",
    "QuestionBank",
    "SessionController",
    "SessionState",
    "SessionStatus",
    "UnknownQuestionError",
    "classify",
    "load_bank",
    "weight",
]
