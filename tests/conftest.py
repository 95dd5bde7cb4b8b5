"""
Pytest Configuration and Fixtures.

This file configures pytest and provides shared fixtures for all tests.
"""
import copy
import sys
from pathlib import Path

import pytest

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from quizzine.content.repository import QuestionBank, parse_bank  # noqa: E402
from quizzine.store import DocumentStore, MemoryStorage  # noqa: E402


def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "integration: Integration tests (real storage backends)")
    config.addinivalue_line("markers", "smoke: Smoke tests for CLI commands")


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their location."""
    for item in items:
        # Mark based on test file location
        if "unit" in str(item.fspath):
            item.add_marker(pytest.mark.unit)
        elif "integration" in str(item.fspath):
            item.add_marker(pytest.mark.integration)
        elif "smoke" in str(item.fspath):
            item.add_marker(pytest.mark.smoke)


SAMPLE_BANK = {
    "courses": [
        {
            "id": "cs101",
            "name": "Intro to Programming",
            "description": "Variables, loops and functions",
            "questions": [
                {
                    "id": "q1",
                    "week": 1,
                    "weekTitle": "Basics",
                    "question": "Which keyword defines a function?",
                    "options": ["def", "func", "lambda", "fn"],
                    "correctIndex": 0,
                    "tags": ["python"],
                },
                {
                    "id": "q2",
                    "week": 1,
                    "question": "Which loop runs at least once?",
                    "options": ["for", "do-while", "while", "none"],
                    "correctIndex": 1,
                    "tags": ["python", "loops"],
                },
                {
                    "id": "q3",
                    "week": 1,
                    "question": "What does 'break' do?",
                    "options": ["skips", "returns", "exits the loop", "nothing"],
                    "correctIndex": 2,
                    "tags": ["loops"],
                },
                {
                    "id": "q4",
                    "week": 2,
                    "weekTitle": "Functions",
                    "question": "What does a function return without 'return'?",
                    "options": ["0", "''", "False", "None"],
                    "correctIndex": 3,
                },
            ],
        },
        {
            "id": "math",
            "name": "Discrete Math",
            "questions": [
                {
                    "id": "m1",
                    "week": 1,
                    "weekTitle": "Sets",
                    "question": "|{1, 2, 2}| = ?",
                    "options": ["2", "3"],
                    "correctIndex": 0,
                    "tags": ["sets"],
                },
            ],
        },
    ]
}


class StaticRepository:
    """In-memory stand-in for QuestionRepository."""

    def __init__(self, bank: QuestionBank):
        self.bank = bank
        self.calls = 0

    async def get_all(self) -> QuestionBank:
        self.calls += 1
        return self.bank


@pytest.fixture(scope="session")
def project_root():
    """Return the project root directory."""
    return PROJECT_ROOT


@pytest.fixture
def bank_data():
    """Raw question bank document (a fresh copy per test)."""
    return copy.deepcopy(SAMPLE_BANK)


@pytest.fixture
def bank(bank_data):
    """Processed question bank."""
    return parse_bank(bank_data)


@pytest.fixture
def make_repository():
    """Factory for in-memory repositories over an arbitrary bank."""
    return StaticRepository


@pytest.fixture
def repository(bank):
    return StaticRepository(bank)


@pytest.fixture
def storage():
    return MemoryStorage()


@pytest.fixture
def store(storage):
    """Document store on in-memory storage."""
    return DocumentStore(storage)
