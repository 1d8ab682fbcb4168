"""
Practice session orchestration.

SessionController drives one run at a time through

    IDLE -> RUNNING -> FINISHED | EXITED

It asks the mode's selector for questions, times each one, records outcomes
in the ProgressStore and, in test mode, enforces the countdown. Rendering is
left to the caller: after a correct answer AnswerOutcome.auto_advance_ms
says how long to show the feedback before calling advance(); after an
incorrect answer the caller waits for the learner.
"""

from __future__ import annotations

import random
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Optional, Union

from loguru import logger

from .bank import Choice, Question, QuestionBank
from .errors import SessionStateError
from .progress import ProgressStore
from .selector import DEFAULT_TEST_LENGTH, RandomSelector, SequentialSelector, TestSelector
from .timer import DEFAULT_TEST_DURATION_MS, Clock, Countdown, CountdownTicker, format_ms, monotonic_ms

if TYPE_CHECKING:
    from config import Settings

DEFAULT_TIME_CAP_MS = 10_000
DEFAULT_AUTO_ADVANCE_MS = 1000


class Mode(str, Enum):
    """Practice mode."""

    RANDOM = "random"  # Weighted drill
    SEQUENTIAL = "sequential"  # Bank order, resumable
    TEST = "test"  # Timed fixed-length exam


class SessionStatus(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    FINISHED = "finished"
    EXITED = "exited"


@dataclass
class SessionState:
    """Transient state of the active run. Only the sequential cursor outlives it."""

    mode: Optional[Mode] = None
    status: SessionStatus = SessionStatus.IDLE
    cursor: int = 0  # sequential: next bank index; test: questions served
    current: Optional[Question] = None
    question_started_ms: Optional[float] = None
    resolved: bool = False  # current question already answered or skipped

    # Test mode
    sequence: tuple[Question, ...] = ()
    session_started_ms: Optional[float] = None

    # Per-run counters, reset on every start()
    answered: int = 0  # random/sequential only
    correct: int = 0


@dataclass(frozen=True)
class AnswerOutcome:
    """Result of answering the current question."""

    question: Question
    choice: Choice
    correct: bool
    correct_choice: Choice
    elapsed_ms: float
    auto_advance_ms: Optional[int]


class SessionController:
    """
    Orchestrator for a practice run.

    The ProgressStore must already be loaded; the controller only calls
    record() and the cursor methods on it.
    """

    def __init__(
        self,
        bank: QuestionBank,
        store: ProgressStore,
        *,
        time_cap_ms: int = DEFAULT_TIME_CAP_MS,
        test_length: int = DEFAULT_TEST_LENGTH,
        test_duration_ms: int = DEFAULT_TEST_DURATION_MS,
        auto_advance_ms: int = DEFAULT_AUTO_ADVANCE_MS,
        tick_seconds: float = 1.0,
        rng: Optional[random.Random] = None,
        clock: Clock = monotonic_ms,
    ):
        self.bank = bank
        self.store = store
        self.time_cap_ms = time_cap_ms
        self.test_length = test_length
        self.test_duration_ms = test_duration_ms
        self.auto_advance_ms = auto_advance_ms
        self.tick_seconds = tick_seconds
        self.rng = rng or random.Random()
        self.clock = clock

        self.state = SessionState()
        self._random = RandomSelector(self.rng)
        self._sequential: Optional[SequentialSelector] = None
        self._test: Optional[TestSelector] = None
        self._countdown: Optional[Countdown] = None
        self._ticker: Optional[CountdownTicker] = None

    @classmethod
    def from_settings(
        cls, bank: QuestionBank, store: ProgressStore, settings: Settings, **kwargs
    ) -> SessionController:
        """Build a controller from config.Settings."""
        return cls(
            bank,
            store,
            time_cap_ms=settings.time_cap_ms,
            test_length=settings.test_length,
            test_duration_ms=settings.test_duration_ms,
            auto_advance_ms=settings.auto_advance_ms,
            tick_seconds=settings.tick_seconds,
            **kwargs,
        )

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def start(self, mode: Union[Mode, str], resume: bool = False) -> SessionState:
        """
        Begin a new run.

        Args:
            mode: Practice mode
            resume: Sequential only - continue from the persisted cursor
                instead of restarting at the first question

        Returns:
            The fresh session state (no question is shown until advance())
        """
        if self.state.status is SessionStatus.RUNNING:
            raise SessionStateError("A session is already running - exit it first")

        mode = Mode(mode)
        self._cancel_timers()
        self._sequential = None
        self._test = None
        self._countdown = None
        self.state = SessionState(mode=mode, status=SessionStatus.RUNNING)

        if mode is Mode.SEQUENTIAL:
            cursor = self.store.load_cursor() if resume else 0
            if not resume:
                self.store.save_cursor(0)
            self._sequential = SequentialSelector(self.bank, cursor)
            self.state.cursor = self._sequential.cursor
        elif mode is Mode.TEST:
            self._test = TestSelector(self.bank, self.test_length, self.rng)
            self._countdown = Countdown(self.test_duration_ms, self.clock)
            self._countdown.start()
            self.state.sequence = self._test.sequence
            self.state.session_started_ms = self._countdown.started_ms

        logger.info(f"Started {mode.value} session (resume={resume})")
        return self.state

    def advance(self) -> Optional[Question]:
        """
        Move to the next question.

        Returns:
            The question to display, or None when the test has finished
            (sequence exhausted or time up).
        """
        self._check_deadline()
        if self._test_finished():
            return None
        self._require_running()
        mode = self.state.mode

        if mode is Mode.TEST:
            question = self._test.next()
            if question is None:
                self._finish("all questions answered")
                return None
            self.state.cursor = self._test.position
        elif mode is Mode.SEQUENTIAL:
            question = self._sequential.next()
            self.state.cursor = self._sequential.cursor
        else:
            exclude = self.state.current.number if self.state.current else None
            question = self._random.select(self.bank, self.store.records(), exclude)

        self.state.current = question
        self.state.question_started_ms = self.clock()
        self.state.resolved = False
        return question

    def answer(self, choice: Union[Choice, int]) -> AnswerOutcome:
        """
        Answer the current question with a Choice or a 0-based choice index.

        Records the attempt immediately; the caller decides when to advance().
        """
        self._check_deadline()
        self._require_running()
        question = self._require_open_question()

        if isinstance(choice, int):
            if not 0 <= choice < len(question.choices):
                raise SessionStateError(f"Choice index {choice} out of range")
            choice = question.choices[choice]
        elif choice not in question.choices:
            raise SessionStateError("Choice does not belong to the current question")

        elapsed = self._record(question, choice.is_correct)
        return AnswerOutcome(
            question=question,
            choice=choice,
            correct=choice.is_correct,
            correct_choice=question.correct_choice,
            elapsed_ms=elapsed,
            auto_advance_ms=self.auto_advance_ms if choice.is_correct else None,
        )

    def skip(self) -> Optional[Question]:
        """
        Count the current question as incorrect and move on immediately.

        Returns None once a test has finished, like advance().
        """
        self._check_deadline()
        if self._test_finished():
            return None
        self._require_running()
        if self.state.current is not None and not self.state.resolved:
            self._record(self.state.current, False)
        return self.advance()

    def exit(self) -> SessionState:
        """Abandon the run. Nothing further is written to the progress store."""
        self._cancel_timers()
        if self.state.status in (SessionStatus.IDLE, SessionStatus.RUNNING):
            self.state.status = SessionStatus.EXITED
            logger.info(f"Exited {self.state.mode.value if self.state.mode else 'idle'} session")
        return self.state

    # ------------------------------------------------------------------
    # Test countdown
    # ------------------------------------------------------------------

    def tick(self) -> int:
        """
        Countdown heartbeat for test mode.

        Returns:
            Remaining milliseconds; 0 outside a running test. Finishes the
            run when the budget is used up.
        """
        if self.state.status is not SessionStatus.RUNNING or self._countdown is None:
            return 0
        remaining = self._countdown.remaining_ms()
        if remaining == 0:
            self._finish("time is up")
        return remaining

    def remaining_ms(self) -> Optional[int]:
        """Time left in the current test, None outside test mode."""
        if self._countdown is None:
            return None
        return self._countdown.remaining_ms()

    def format_remaining(self) -> str:
        remaining = self.remaining_ms()
        return format_ms(remaining) if remaining is not None else ""

    def start_ticker(self, period_s: Optional[float] = None) -> CountdownTicker:
        """Run tick() every period on the current asyncio loop until the test ends."""
        if self.state.mode is not Mode.TEST or self.state.status is not SessionStatus.RUNNING:
            raise SessionStateError("The countdown only runs during a test")
        self._cancel_ticker()
        self._ticker = CountdownTicker(self.tick, period_s or self.tick_seconds)
        self._ticker.start()
        return self._ticker

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _record(self, question: Question, correct: bool) -> float:
        elapsed = self.clock() - self.state.question_started_ms
        self.store.record(question.number, correct, elapsed, self.time_cap_ms)
        self.state.resolved = True
        if correct:
            self.state.correct += 1
        if self.state.mode is not Mode.TEST:
            self.state.answered += 1
        if self.state.mode is Mode.SEQUENTIAL:
            self.store.save_cursor(self._sequential.resume_position)
        return elapsed

    def _check_deadline(self) -> None:
        if (
            self.state.status is SessionStatus.RUNNING
            and self._countdown is not None
            and self._countdown.expired
        ):
            self._finish("time is up")

    def _test_finished(self) -> bool:
        return self.state.mode is Mode.TEST and self.state.status is SessionStatus.FINISHED

    def _finish(self, reason: str) -> None:
        self._cancel_timers()
        self.state.status = SessionStatus.FINISHED
        self.state.current = None
        logger.info(f"Finished {self.state.mode.value} session: {reason}")

    def _cancel_ticker(self) -> None:
        if self._ticker is not None:
            self._ticker.cancel()
            self._ticker = None

    def _cancel_timers(self) -> None:
        self._cancel_ticker()
        if self._countdown is not None:
            self._countdown.cancel()

    def _require_running(self) -> None:
        if self.state.status is not SessionStatus.RUNNING:
            raise SessionStateError(f"No running session (status: {self.state.status.value})")

    def _require_open_question(self) -> Question:
        if self.state.current is None:
            raise SessionStateError("No question on screen - call advance() first")
        if self.state.resolved:
            raise SessionStateError(f"Question {self.state.current.number} was already answered")
        return self.state.current
