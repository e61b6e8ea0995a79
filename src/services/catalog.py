"""
Content browsing: categories, lessons, road signs and the glossary.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

try:
    from ..assessment.question_bank import QuestionBank
    from ..errors import RecordNotFound
    from ..models.content import SIGN_CATEGORIES
    from ..utils.persistence import (
        CATEGORIES,
        GLOSSARY,
        LESSON_PROGRESS,
        LESSONS,
        SIGNS,
        RecordStore,
    )
except ImportError:
    from src.assessment.question_bank import QuestionBank
    from src.errors import RecordNotFound
    from src.models.content import SIGN_CATEGORIES
    from src.utils.persistence import (
        CATEGORIES,
        GLOSSARY,
        LESSON_PROGRESS,
        LESSONS,
        SIGNS,
        RecordStore,
    )


def _by_order(records: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    return sorted(records, key=lambda r: r.get("order", 0))


class CatalogService:
    """Read-only views over published learning content."""

    def __init__(self, store: RecordStore):
        self.store = store
        self.bank = QuestionBank(store)

    def categories(self, user_id: Optional[str] = None) -> List[Dict[str, Any]]:
        """
        Published categories in display order.

        Each entry gets ``lesson_count`` (published lessons) and, when
        ``user_id`` is given, ``completed_count``.
        """
        completed = self._completed_lessons(user_id) if user_id else set()
        out = []
        for category in _by_order(self.store.find(CATEGORIES, is_published=True)):
            lessons = self.store.find(LESSONS, category_id=category["id"], is_published=True)
            category["lesson_count"] = len(lessons)
            if user_id:
                category["completed_count"] = sum(1 for l in lessons if l["id"] in completed)
            out.append(category)
        return out

    def lessons(self, category_id: str, user_id: Optional[str] = None) -> List[Dict[str, Any]]:
        """Published lessons of a category in display order, flagged ``completed`` per user."""
        completed = self._completed_lessons(user_id) if user_id else set()
        lessons = _by_order(self.store.find(LESSONS, category_id=category_id, is_published=True))
        for lesson in lessons:
            lesson["completed"] = lesson["id"] in completed
        return lessons

    def published_lessons(self) -> List[Dict[str, Any]]:
        return _by_order(self.store.find(LESSONS, is_published=True))

    def lesson_detail(self, lesson_id: str) -> Dict[str, Any]:
        """
        A lesson with its questions (answers visible, study mode).

        Raises:
            RecordNotFound: Unknown lesson
        """
        lesson = self.store.get(LESSONS, lesson_id)
        if lesson is None:
            raise RecordNotFound(LESSONS, lesson_id)
        lesson["questions"] = [q.to_dict() for q in self.bank.for_lesson(lesson_id)]
        return lesson

    def signs(self, category: Optional[str] = None) -> List[Dict[str, Any]]:
        """All road signs, or those of one sign category."""
        if category in (None, "all"):
            return self.store.all(SIGNS)
        if category not in SIGN_CATEGORIES:
            raise ValueError(f"Unknown sign category: {category}")
        return self.store.find(SIGNS, category=category)

    def search_glossary(self, query: str = "") -> List[Dict[str, Any]]:
        """
        Glossary terms matching ``query``.

        Arabic fields match by substring, Italian fields case-insensitively.
        An empty query returns every term.
        """
        query = (query or "").strip()
        terms = self.store.all(GLOSSARY)
        if not query:
            return terms
        lowered = query.lower()

        def matches(term: Dict[str, Any]) -> bool:
            return (
                query in term.get("term_ar", "")
                or query in term.get("definition_ar", "")
                or lowered in term.get("term_it", "").lower()
                or lowered in term.get("definition_it", "").lower()
            )

        return [t for t in terms if matches(t)]

    def _completed_lessons(self, user_id: str) -> set:
        return {
            p["lesson_id"] for p in self.store.find(LESSON_PROGRESS, user_id=user_id, completed=True)
        }
