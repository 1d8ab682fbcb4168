"""
Per-question progress tracking with synchronous persistence.

Every answered or skipped question is one attempt. The store writes the
whole progress map back to its durable slot after each attempt, so a crash
loses at most the attempt in flight.
"""

from __future__ import annotations

import json
from collections.abc import Iterable, Mapping
from dataclasses import asdict, dataclass, replace
from types import MappingProxyType
from typing import Optional

from loguru import logger

from .errors import UnknownQuestionError
from .storage import KeyValueStore

PROGRESS_KEY = "user_progress"
CURSOR_KEY = "sequential_cursor"


@dataclass
class ProgressRecord:
    """Historical statistics for one question."""

    seen: bool = False
    correct_count: int = 0
    incorrect_count: int = 0
    attempt_count: int = 0
    total_time_ms: int = 0

    @property
    def accuracy(self) -> float:
        """Share of attempts answered correctly (0.0 when never attempted)."""
        if self.attempt_count == 0:
            return 0.0
        return self.correct_count / self.attempt_count

    @property
    def avg_time_ms(self) -> float:
        if self.attempt_count == 0:
            return 0.0
        return self.total_time_ms / self.attempt_count

    def is_consistent(self) -> bool:
        counts = (self.correct_count, self.incorrect_count, self.attempt_count, self.total_time_ms)
        return (
            all(isinstance(c, int) and c >= 0 for c in counts)
            and self.attempt_count == self.correct_count + self.incorrect_count
            and (self.seen or self.attempt_count == 0)
        )

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> "ProgressRecord":
        """Create from dictionary."""
        return cls(**data)


class ProgressStore:
    """
    Owns every ProgressRecord and the sequential-mode cursor.

    Callers get copies from get() and a read-only view from records();
    the only way to change a record is record().
    """

    def __init__(self, kv: KeyValueStore, question_numbers: Iterable[int]):
        self.kv = kv
        self.question_numbers = list(question_numbers)
        self._records: dict[int, ProgressRecord] = {}

    def _defaults(self) -> dict[int, ProgressRecord]:
        return {n: ProgressRecord() for n in self.question_numbers}

    def _decode(self, raw: str) -> Optional[dict[int, ProgressRecord]]:
        try:
            data = json.loads(raw)
            if not isinstance(data, dict):
                return None
            records = {int(k): ProgressRecord.from_dict(v) for k, v in data.items()}
        except (json.JSONDecodeError, KeyError, TypeError, ValueError):
            return None
        if not all(r.is_consistent() for r in records.values()):
            return None
        return records

    def _read(self, key: str) -> tuple[Optional[str], bool]:
        """Raw slot contents, and whether the slot could be read at all."""
        try:
            return self.kv.get(key), True
        except (OSError, UnicodeDecodeError) as e:
            logger.warning(f"Could not read stored {key}: {e}")
            return None, False

    def load(self) -> dict[int, ProgressRecord]:
        """
        Load progress from the durable slot.

        First run, or unreadable state, initialises one zero record per
        question and persists it immediately. Questions added to the bank
        since the last save get zero records.

        Returns:
            Copy of the number -> record mapping
        """
        raw, readable = self._read(PROGRESS_KEY)
        records = self._decode(raw) if raw is not None else None

        if records is None:
            if raw is not None or not readable:
                logger.warning("Stored progress is corrupt - starting from a clean slate")
            else:
                logger.info(f"No stored progress - initialising {len(self.question_numbers)} records")
            self._records = self._defaults()
            self.save(self._records)
        else:
            missing = [n for n in self.question_numbers if n not in records]
            for n in missing:
                records[n] = ProgressRecord()
            # Records for questions no longer in the bank are dropped
            self._records = {n: records[n] for n in self.question_numbers}
            if missing:
                logger.info(f"Added progress records for {len(missing)} new questions")
                self.save(self._records)

        return {n: replace(r) for n, r in self._records.items()}

    def save(self, records: Mapping[int, ProgressRecord]) -> None:
        """Overwrite the durable slot with the given records."""
        self._records = {int(n): replace(r) for n, r in records.items()}
        payload = {str(n): r.to_dict() for n, r in self._records.items()}
        self.kv.set(PROGRESS_KEY, json.dumps(payload))

    def record(self, number: int, was_correct: bool, elapsed_ms: float, time_cap_ms: int) -> ProgressRecord:
        """
        Record one attempt and persist.

        Args:
            number: Question number
            was_correct: Outcome of the attempt (skips count as incorrect)
            elapsed_ms: Time spent on the question
            time_cap_ms: Upper bound on the time credited to this attempt

        Returns:
            Copy of the updated record

        Raises:
            UnknownQuestionError: number is not held by the store
        """
        progress = self._records.get(number)
        if progress is None:
            raise UnknownQuestionError(number)

        progress.seen = True
        if was_correct:
            progress.correct_count += 1
        else:
            progress.incorrect_count += 1
        progress.attempt_count += 1
        progress.total_time_ms += int(min(max(elapsed_ms, 0), time_cap_ms))

        self.save(self._records)
        return replace(progress)

    def get(self, number: int) -> ProgressRecord:
        try:
            return replace(self._records[number])
        except KeyError:
            raise UnknownQuestionError(number) from None

    def records(self) -> Mapping[int, ProgressRecord]:
        """Read-only view of the live records."""
        return MappingProxyType(self._records)

    def reset(self) -> None:
        """Forget all progress and the sequential cursor."""
        logger.info("Resetting all progress")
        self.save(self._defaults())
        self.kv.delete(CURSOR_KEY)

    # ------------------------------------------------------------------
    # Sequential cursor
    # ------------------------------------------------------------------

    def load_cursor(self) -> int:
        """Persisted sequential position, 0 when absent or unreadable."""
        raw, _ = self._read(CURSOR_KEY)
        if raw is None:
            return 0
        try:
            cursor = int(json.loads(raw))
        except (json.JSONDecodeError, TypeError, ValueError):
            logger.warning("Stored sequential cursor is corrupt - starting from the beginning")
            return 0
        return max(cursor, 0)

    def save_cursor(self, cursor: int) -> None:
        self.kv.set(CURSOR_KEY, json.dumps(int(cursor)))
