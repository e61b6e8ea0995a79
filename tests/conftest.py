"""
Shared pytest fixtures and configuration for PatenteQuiz tests.

This file is automatically discovered by pytest and provides
fixtures available to all tests.
"""

import random
import sys
from pathlib import Path

import pytest

# Make the project root importable so tests can use ``src.`` imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from src.models.content import Category, Lesson, Question
from src.models.records import User
from src.utils.persistence import CATEGORIES, LESSONS, QUESTIONS, USERS, InMemoryRecordStore


def make_question(index: int, correct_answer: bool = True, lesson_id: str = None) -> Question:
    """Build a question with a predictable id (``q-<index>``)."""
    return Question(
        id=f"q-{index}",
        text_it=f"Domanda {index}",
        text_ar=f"سؤال {index}",
        correct_answer=correct_answer,
        lesson_id=lesson_id,
    )


def make_pool(size: int, lesson_id: str = None) -> list:
    """Questions alternating true/false answers."""
    return [make_question(i, correct_answer=(i % 2 == 0), lesson_id=lesson_id) for i in range(size)]


@pytest.fixture
def store():
    """Empty in-memory store with schema validation enabled."""
    return InMemoryRecordStore()


@pytest.fixture
def rng():
    """Seeded random source for reproducible sampling."""
    return random.Random(42)


@pytest.fixture
def question_pool():
    """Forty questions, enough for a full exam."""
    return make_pool(40)


@pytest.fixture
def learner(store):
    """A regular user stored in ``store``."""
    user = User(id="user-1", email="learner@example.com", password="x", name="Learner")
    return store.add(USERS, user.to_dict())


@pytest.fixture
def admin(store):
    """An admin user stored in ``store``."""
    user = User(id="admin-1", email="boss@example.com", password="x", name="Boss", role="admin")
    return store.add(USERS, user.to_dict())


@pytest.fixture
def catalog_store(store):
    """
    Store with two categories, three lessons and their questions.

    Layout:
        cat-rules:  lesson-1 (4 questions), lesson-2 (2 questions)
        cat-signs:  lesson-3 (3 questions, unpublished)
        plus 1 question without a lesson
    """
    store.add(CATEGORIES, Category(id="cat-signs", name_ar="إشارات", order=2).to_dict())
    store.add(CATEGORIES, Category(id="cat-rules", name_ar="قواعد", order=1).to_dict())
    store.add(LESSONS, Lesson(id="lesson-2", category_id="cat-rules", title_ar="ب", order=2).to_dict())
    store.add(LESSONS, Lesson(id="lesson-1", category_id="cat-rules", title_ar="أ", order=1).to_dict())
    store.add(
        LESSONS,
        Lesson(id="lesson-3", category_id="cat-signs", title_ar="ج", is_published=False).to_dict(),
    )

    index = 0
    for lesson_id, count in (("lesson-1", 4), ("lesson-2", 2), ("lesson-3", 3), (None, 1)):
        for _ in range(count):
            store.add(QUESTIONS, make_question(index, index % 2 == 0, lesson_id).to_dict())
            index += 1
    return store


def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line("markers", "unit: mark test as a unit test")
    config.addinivalue_line("markers", "integration: mark test as an integration test")
    config.addinivalue_line("markers", "slow: mark test as slow running")


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their location."""
    for item in items:
        if "unit" in str(item.fspath):
            item.add_marker(pytest.mark.unit)
        elif "integration" in str(item.fspath):
            item.add_marker(pytest.mark.integration)
