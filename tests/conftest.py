"""
Pytest Configuration and Fixtures.

This file configures pytest and provides shared fixtures for all tests.
"""
import sys
from pathlib import Path

import pytest

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from src.practice.bank import QuestionBank  # noqa: E402
from src.practice.progress import ProgressStore  # noqa: E402
from src.practice.storage import MemoryStore  # noqa: E402


def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "smoke: Smoke tests for CLI commands")


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their location."""
    for item in items:
        if "unit" in str(item.fspath):
            item.add_marker(pytest.mark.unit)
        elif "smoke" in str(item.fspath):
            item.add_marker(pytest.mark.smoke)


class FakeClock:
    """Millisecond clock that only moves when told to."""

    def __init__(self, start: float = 1_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, ms: float) -> None:
        self.now += ms


def make_entries(count: int) -> list[dict]:
    """Raw bank entries; the correct choice of question i is 'Answer i'."""
    return [
        {
            "question": f"Question text {i}",
            "images": [f"img/{i}.png"] if i % 2 else [],
            "choices": [
                {"text": f"Wrong {i}a", "is_correct": False},
                {"text": f"Answer {i}", "is_correct": True},
                {"text": f"Wrong {i}b", "is_correct": False},
            ],
        }
        for i in range(1, count + 1)
    ]


@pytest.fixture(scope="session")
def project_root():
    """Return the project root directory."""
    return PROJECT_ROOT


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def bank():
    """A 200-question bank."""
    return QuestionBank.from_entries(make_entries(200))


@pytest.fixture
def small_bank():
    return QuestionBank.from_entries(make_entries(5))


@pytest.fixture
def kv():
    return MemoryStore()


@pytest.fixture
def store(bank, kv):
    """Loaded progress store for the 200-question bank."""
    progress = ProgressStore(kv, bank.numbers())
    progress.load()
    return progress


@pytest.fixture
def entries_of():
    """Factory for raw bank entries."""
    return make_entries


@pytest.fixture
def bank_of():
    """Factory for banks of a given size."""
    return lambda count: QuestionBank.from_entries(make_entries(count))
