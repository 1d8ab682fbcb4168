"""
Question bank: immutable question records loaded once per process.

The bank file is a JSON array of objects shaped like:

    {"question": "...", "images": ["img/1.png"], "choices": [
        {"text": "...", "is_correct": true}, ...]}

Only the first `limit` entries are used. Each question is numbered by its
position (1-based); any id embedded in the file is ignored.
"""

from __future__ import annotations

import json
from collections.abc import Iterable, Iterator
from pathlib import Path
from typing import Any

from loguru import logger
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .errors import BankLoadError, UnknownQuestionError

DEFAULT_BANK_LIMIT = 200

# Shown whenever a question has no prompt text of its own
GENERIC_PROMPT = "Select the correct answer:"


class Choice(BaseModel):
    """One answer option."""

    model_config = ConfigDict(frozen=True)

    text: str
    is_correct: bool = False


class Question(BaseModel):
    """A multiple-choice question. Never mutated after load."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    number: int = Field(ge=1)
    prompt: str | None = Field(default=None, alias="question")
    images: tuple[str, ...] = ()
    choices: tuple[Choice, ...]

    @field_validator("choices")
    @classmethod
    def _exactly_one_correct(cls, choices: tuple[Choice, ...]) -> tuple[Choice, ...]:
        correct = sum(1 for c in choices if c.is_correct)
        if correct != 1:
            raise ValueError(f"expected exactly one correct choice, found {correct}")
        return choices

    @property
    def has_prompt(self) -> bool:
        return bool(self.prompt and self.prompt.strip())

    @property
    def display_prompt(self) -> str:
        """Prompt text, or the generic instruction when the question has none."""
        return self.prompt.strip() if self.has_prompt else GENERIC_PROMPT

    @property
    def correct_index(self) -> int:
        return next(i for i, c in enumerate(self.choices) if c.is_correct)

    @property
    def correct_choice(self) -> Choice:
        return self.choices[self.correct_index]


class QuestionBank:
    """Read-only, load-ordered collection of questions."""

    def __init__(self, questions: Iterable[Question]):
        self._questions: tuple[Question, ...] = tuple(questions)
        self._by_number = {q.number: q for q in self._questions}
        if len(self._by_number) != len(self._questions):
            raise BankLoadError("Duplicate question numbers in bank")

    @classmethod
    def from_entries(
        cls, entries: list[dict[str, Any]], limit: int = DEFAULT_BANK_LIMIT
    ) -> QuestionBank:
        """Build a bank from raw JSON objects, numbering them by position."""
        if not isinstance(entries, list):
            raise BankLoadError("Question bank must be a JSON array")

        questions = []
        for index, entry in enumerate(entries[:limit]):
            if not isinstance(entry, dict):
                raise BankLoadError(f"Entry {index + 1} is not an object")
            try:
                questions.append(Question.model_validate({**entry, "number": index + 1}))
            except ValidationError as e:
                raise BankLoadError(f"Entry {index + 1} is malformed: {e}") from e

        return cls(questions)

    def __len__(self) -> int:
        return len(self._questions)

    def __iter__(self) -> Iterator[Question]:
        return iter(self._questions)

    def __contains__(self, number: object) -> bool:
        return number in self._by_number

    def at(self, index: int) -> Question:
        """Question at a 0-based load-order position."""
        return self._questions[index]

    def get(self, number: int) -> Question:
        try:
            return self._by_number[number]
        except KeyError:
            raise UnknownQuestionError(number) from None

    def numbers(self) -> list[int]:
        return [q.number for q in self._questions]


def load_bank(path: str | Path, limit: int = DEFAULT_BANK_LIMIT) -> QuestionBank:
    """
    Load the question bank from a JSON file.

    Args:
        path: Path to the JSON array
        limit: Maximum number of questions kept (first N in file order)

    Returns:
        QuestionBank with questions numbered 1..N

    Raises:
        BankLoadError: file missing, unreadable, not JSON, or malformed entries
    """
    path = Path(path)
    try:
        with open(path, "r", encoding="utf-8") as f:
            entries = json.load(f)
    except FileNotFoundError as e:
        raise BankLoadError(f"Question bank not found: {path}") from e
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
        raise BankLoadError(f"Could not read question bank {path}: {e}") from e

    bank = QuestionBank.from_entries(entries, limit=limit)
    logger.info(f"Loaded {len(bank)} questions from {path}")
    return bank
