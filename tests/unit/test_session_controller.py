"""
Unit tests for SessionController.

Tests:
- State machine transitions (start / advance / exit / finish)
- Answer recording, timing and skip semantics
- Sequential resume across controller instances
- Test-mode sequence exhaustion and countdown expiry
"""

import random

import pytest

from src.practice.errors import SessionStateError
from src.practice.progress import ProgressStore
from src.practice.session import Mode, SessionController, SessionStatus
from src.practice.storage import MemoryStore


@pytest.fixture
def controller(bank, store, clock):
    return SessionController(bank, store, rng=random.Random(4), clock=clock)


class TestLifecycle:
    def test_starts_idle(self, controller):
        assert controller.state.status is SessionStatus.IDLE
        with pytest.raises(SessionStateError):
            controller.advance()

    def test_start_runs_without_showing_a_question(self, controller):
        state = controller.start(Mode.RANDOM)
        assert state.status is SessionStatus.RUNNING
        assert state.current is None

    def test_accepts_mode_strings(self, controller):
        assert controller.start("sequential").mode is Mode.SEQUENTIAL

    def test_cannot_start_twice(self, controller):
        controller.start(Mode.RANDOM)
        with pytest.raises(SessionStateError):
            controller.start(Mode.TEST)

    def test_exit_blocks_further_answers(self, controller, store):
        controller.start(Mode.RANDOM)
        question = controller.advance()
        controller.exit()
        assert controller.state.status is SessionStatus.EXITED
        with pytest.raises(SessionStateError):
            controller.answer(question.correct_index)
        assert store.get(question.number).attempt_count == 0

    def test_restart_after_exit_resets_counters(self, controller):
        controller.start(Mode.RANDOM)
        question = controller.advance()
        controller.answer(question.correct_index)
        controller.exit()

        state = controller.start(Mode.RANDOM)
        assert state.answered == 0
        assert state.correct == 0


class TestAnswering:
    def test_correct_answer_records_elapsed_time(self, controller, store, clock):
        controller.start(Mode.RANDOM)
        question = controller.advance()
        clock.advance(3500)
        outcome = controller.answer(question.correct_choice)

        assert outcome.correct is True
        assert outcome.elapsed_ms == 3500
        assert outcome.auto_advance_ms == 1000
        record = store.get(question.number)
        assert record.correct_count == 1
        assert record.total_time_ms == 3500
        assert controller.state.answered == 1
        assert controller.state.correct == 1

    def test_incorrect_answer_waits_for_caller(self, controller, store):
        controller.start(Mode.RANDOM)
        question = controller.advance()
        wrong = next(i for i, c in enumerate(question.choices) if not c.is_correct)
        outcome = controller.answer(wrong)

        assert outcome.correct is False
        assert outcome.auto_advance_ms is None
        assert outcome.correct_choice == question.correct_choice
        assert store.get(question.number).incorrect_count == 1
        assert controller.state.current == question

    def test_long_answer_is_capped(self, controller, store, clock):
        controller.start(Mode.RANDOM)
        question = controller.advance()
        clock.advance(50_000)
        controller.answer(question.correct_index)
        assert store.get(question.number).total_time_ms == 10_000

    def test_cannot_answer_twice(self, controller):
        controller.start(Mode.RANDOM)
        question = controller.advance()
        controller.answer(question.correct_index)
        with pytest.raises(SessionStateError):
            controller.answer(question.correct_index)

    def test_cannot_answer_before_advance(self, controller):
        controller.start(Mode.RANDOM)
        with pytest.raises(SessionStateError):
            controller.answer(0)

    def test_choice_from_another_question_rejected(self, controller, bank):
        controller.start(Mode.SEQUENTIAL)
        controller.advance()
        with pytest.raises(SessionStateError):
            controller.answer(bank.get(2).correct_choice)

    def test_choice_index_out_of_range(self, controller):
        controller.start(Mode.RANDOM)
        controller.advance()
        with pytest.raises(SessionStateError):
            controller.answer(7)

    def test_random_mode_avoids_immediate_repeat(self, controller):
        controller.start(Mode.RANDOM)
        previous = controller.advance()
        for _ in range(200):
            current = controller.advance()
            assert current.number != previous.number
            previous = current


class TestSkip:
    def test_skip_records_incorrect_and_advances(self, controller, store, clock):
        controller.start(Mode.SEQUENTIAL)
        first = controller.advance()
        clock.advance(2000)
        second = controller.skip()

        record = store.get(first.number)
        assert record.incorrect_count == 1
        assert record.attempt_count == 1
        assert record.total_time_ms == 2000
        assert second.number == first.number + 1
        assert controller.state.answered == 1

    def test_skip_after_answer_does_not_double_count(self, controller, store):
        controller.start(Mode.SEQUENTIAL)
        first = controller.advance()
        controller.answer(0)
        controller.skip()
        assert store.get(first.number).attempt_count == 1


class TestSequentialMode:
    def test_fresh_start_walks_bank_in_order(self, controller):
        controller.start(Mode.SEQUENTIAL)
        numbers = [controller.advance().number for _ in range(200)]
        assert numbers == list(range(1, 201))
        assert controller.advance().number == 1

    def test_resume_continues_after_last_answered(self, bank, kv, clock):
        store = ProgressStore(kv, bank.numbers())
        store.load()
        first = SessionController(bank, store, clock=clock)
        first.start(Mode.SEQUENTIAL)
        for _ in range(3):
            question = first.advance()
            first.answer(question.correct_index)
        first.exit()

        second = SessionController(bank, store, clock=clock)
        second.start(Mode.SEQUENTIAL, resume=True)
        assert second.advance().number == 4

    def test_unanswered_question_is_shown_again_on_resume(self, controller, bank, store, clock):
        controller.start(Mode.SEQUENTIAL)
        question = controller.advance()
        controller.answer(question.correct_index)
        controller.advance()  # question 2 shown, never answered
        controller.exit()

        again = SessionController(bank, store, clock=clock)
        again.start(Mode.SEQUENTIAL, resume=True)
        assert again.advance().number == 2

    def test_fresh_start_resets_persisted_cursor(self, controller, store):
        store.save_cursor(17)
        controller.start(Mode.SEQUENTIAL, resume=False)
        assert store.load_cursor() == 0
        assert controller.advance().number == 1

    def test_resume_wraps_at_end_of_bank(self, controller, store):
        store.save_cursor(199)
        controller.start(Mode.SEQUENTIAL, resume=True)
        question = controller.advance()
        assert question.number == 200
        controller.answer(question.correct_index)
        assert store.load_cursor() == 0


class TestTestMode:
    def test_sequence_then_finished(self, controller):
        state = controller.start(Mode.TEST)
        assert len(state.sequence) == 40

        served = []
        for _ in range(40):
            question = controller.advance()
            served.append(question.number)
            controller.answer(question.correct_index)

        assert len(set(served)) == 40
        assert controller.state.status is SessionStatus.RUNNING
        assert controller.advance() is None
        assert controller.state.status is SessionStatus.FINISHED

    def test_short_bank_test_length(self, small_bank, clock):
        store = ProgressStore(MemoryStore(), small_bank.numbers())
        store.load()
        controller = SessionController(small_bank, store, clock=clock)
        controller.start(Mode.TEST)
        for _ in range(5):
            assert controller.advance() is not None
        assert controller.advance() is None

    def test_answers_are_recorded_but_not_counted_as_answered(self, controller, store):
        controller.start(Mode.TEST)
        question = controller.advance()
        controller.answer(question.correct_index)
        assert store.get(question.number).correct_count == 1
        assert controller.state.answered == 0
        assert controller.state.correct == 1

    def test_countdown_formats_remaining_time(self, controller, clock):
        controller.start(Mode.TEST)
        assert controller.format_remaining() == "40:00"
        clock.advance(65_500)
        assert controller.tick() == 40 * 60 * 1000 - 65_500
        assert controller.format_remaining() == "38:54"

    def test_time_up_forces_finished(self, controller, clock):
        controller.start(Mode.TEST)
        controller.advance()
        clock.advance(40 * 60 * 1000)
        assert controller.tick() == 0
        assert controller.state.status is SessionStatus.FINISHED
        assert controller.state.current is None

    def test_expired_deadline_checked_on_advance(self, controller, clock):
        controller.start(Mode.TEST)
        controller.advance()
        clock.advance(41 * 60 * 1000)
        assert controller.advance() is None
        assert controller.state.status is SessionStatus.FINISHED

    def test_answer_after_time_up_is_rejected(self, controller, store, clock):
        controller.start(Mode.TEST)
        question = controller.advance()
        clock.advance(40 * 60 * 1000)
        with pytest.raises(SessionStateError):
            controller.answer(question.correct_index)
        assert store.get(question.number).attempt_count == 0

    def test_skip_after_time_up_returns_none(self, controller, store, clock):
        controller.start(Mode.TEST)
        question = controller.advance()
        clock.advance(40 * 60 * 1000)
        assert controller.skip() is None
        assert controller.state.status is SessionStatus.FINISHED
        assert store.get(question.number).attempt_count == 0

    def test_tick_outside_test_mode(self, controller):
        controller.start(Mode.RANDOM)
        assert controller.tick() == 0
        assert controller.remaining_ms() is None
        assert controller.format_remaining() == ""
        assert controller.state.status is SessionStatus.RUNNING


class TestFromSettings:
    def test_settings_values_are_applied(self, bank, store):
        from config import Settings

        settings = Settings(time_cap_ms=5000, test_length=10, test_duration_minutes=5, auto_advance_ms=0, tick_seconds=0.5)
        controller = SessionController.from_settings(bank, store, settings)
        assert controller.time_cap_ms == 5000
        assert controller.test_length == 10
        assert controller.test_duration_ms == 5 * 60 * 1000
        assert controller.auto_advance_ms == 0
        assert controller.tick_seconds == 0.5
