"""
Unit tests for question bank loading.
"""

import json

import pytest

from src.practice.bank import GENERIC_PROMPT, QuestionBank, load_bank
from src.practice.errors import BankLoadError, UnknownQuestionError


class TestNumbering:
    def test_numbers_follow_load_order(self, entries_of):
        bank = QuestionBank.from_entries(entries_of(3))
        assert bank.numbers() == [1, 2, 3]
        assert bank.get(2).prompt == "Question text 2"

    def test_embedded_ids_are_overridden(self, entries_of):
        entries = entries_of(2)
        entries[0]["number"] = 99
        entries[0]["id"] = "abc"
        bank = QuestionBank.from_entries(entries)
        assert bank.numbers() == [1, 2]

    def test_truncates_to_limit(self, entries_of):
        bank = QuestionBank.from_entries(entries_of(250))
        assert len(bank) == 200
        assert bank.at(199).number == 200

    def test_custom_limit(self, entries_of):
        bank = QuestionBank.from_entries(entries_of(10), limit=4)
        assert len(bank) == 4

    def test_unknown_number(self, small_bank):
        with pytest.raises(UnknownQuestionError):
            small_bank.get(6)
        assert 6 not in small_bank
        assert 5 in small_bank


class TestQuestionRecord:
    def test_missing_prompt_uses_generic_text(self, entries_of):
        entries = entries_of(2)
        entries[0]["question"] = None
        entries[1]["question"] = "   "
        bank = QuestionBank.from_entries(entries)
        assert bank.get(1).display_prompt == GENERIC_PROMPT
        assert bank.get(2).display_prompt == GENERIC_PROMPT
        assert not bank.get(1).has_prompt

    def test_prompt_key_is_optional(self, entries_of):
        entries = entries_of(1)
        del entries[0]["question"]
        bank = QuestionBank.from_entries(entries)
        assert bank.get(1).prompt is None

    def test_images_and_choices_keep_order(self, small_bank):
        question = small_bank.get(1)
        assert question.images == ("img/1.png",)
        assert [c.text for c in question.choices] == ["Wrong 1a", "Answer 1", "Wrong 1b"]
        assert question.correct_index == 1
        assert question.correct_choice.text == "Answer 1"

    def test_questions_are_immutable(self, small_bank):
        question = small_bank.get(1)
        with pytest.raises(Exception):
            question.prompt = "changed"


class TestValidation:
    def test_no_correct_choice_rejected(self, entries_of):
        entries = entries_of(2)
        entries[1]["choices"][1]["is_correct"] = False
        with pytest.raises(BankLoadError, match="Entry 2"):
            QuestionBank.from_entries(entries)

    def test_two_correct_choices_rejected(self, entries_of):
        entries = entries_of(1)
        entries[0]["choices"][0]["is_correct"] = True
        with pytest.raises(BankLoadError):
            QuestionBank.from_entries(entries)

    def test_non_array_root_rejected(self):
        with pytest.raises(BankLoadError):
            QuestionBank.from_entries({"question": "x"})

    def test_non_object_entry_rejected(self):
        with pytest.raises(BankLoadError):
            QuestionBank.from_entries(["just a string"])


class TestLoadBank:
    def test_loads_json_file(self, tmp_path, entries_of):
        path = tmp_path / "quiz_data.json"
        path.write_text(json.dumps(entries_of(3)), encoding="utf-8")
        bank = load_bank(path)
        assert len(bank) == 3

    def test_missing_file(self, tmp_path):
        with pytest.raises(BankLoadError, match="not found"):
            load_bank(tmp_path / "absent.json")

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "quiz_data.json"
        path.write_text("[{not json", encoding="utf-8")
        with pytest.raises(BankLoadError):
            load_bank(path)

    def test_undecodable_file(self, tmp_path):
        path = tmp_path / "quiz_data.json"
        path.write_bytes(b'[{"question": "\xff\xfe", "choices": []}]')
        with pytest.raises(BankLoadError):
            load_bank(path)
