"""
Question Bank - read-only question lookup by lesson or category.
"""

from __future__ import annotations

from typing import List, Optional

try:
    from ..models.content import Question
    from ..utils.persistence import LESSONS, QUESTIONS, RecordStore
except ImportError:
    from src.models.content import Question
    from src.utils.persistence import LESSONS, QUESTIONS, RecordStore


class QuestionBank:
    """Reads Question records from the store; never writes."""

    def __init__(self, store: RecordStore):
        self.store = store

    def get(self, question_id: str) -> Optional[Question]:
        record = self.store.get(QUESTIONS, question_id)
        return Question.from_dict(record) if record else None

    def all_questions(self) -> List[Question]:
        return [Question.from_dict(r) for r in self.store.all(QUESTIONS)]

    def for_lesson(self, lesson_id: str) -> List[Question]:
        return [Question.from_dict(r) for r in self.store.find(QUESTIONS, lesson_id=lesson_id)]

    def for_category(self, category_id: str) -> List[Question]:
        """Questions owned by any lesson of the category."""
        lesson_ids = {l["id"] for l in self.store.find(LESSONS, category_id=category_id)}
        if not lesson_ids:
            return []
        return [
            Question.from_dict(r)
            for r in self.store.find(QUESTIONS, lambda r: r.get("lesson_id") in lesson_ids)
        ]

    def select(
        self,
        lesson_id: Optional[str] = None,
        category_id: Optional[str] = None,
    ) -> List[Question]:
        """
        Question pool for a practice filter.

        A lesson filter takes precedence over a category filter; with neither,
        every question is eligible.
        """
        if lesson_id:
            return self.for_lesson(lesson_id)
        if category_id:
            return self.for_category(category_id)
        return self.all_questions()
