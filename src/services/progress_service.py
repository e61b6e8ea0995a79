"""
Per-user progress: statistics, mistakes review, lesson completion and streaks.
"""

from __future__ import annotations

import logging
from datetime import date, datetime, timezone
from typing import Any, Callable, Dict, List, Optional

try:
    from ..errors import RecordNotFound
    from ..models.records import LessonProgress
    from ..utils.persistence import (
        EXAMS,
        LESSON_PROGRESS,
        LESSONS,
        QUESTION_PROGRESS,
        QUESTIONS,
        USERS,
        RecordStore,
    )
    from ..utils.progress import (
        accuracy_by_category,
        correct_rate,
        learner_level,
        next_streak,
        readiness,
    )
except ImportError:
    from src.errors import RecordNotFound
    from src.models.records import LessonProgress
    from src.utils.persistence import (
        EXAMS,
        LESSON_PROGRESS,
        LESSONS,
        QUESTION_PROGRESS,
        QUESTIONS,
        USERS,
        RecordStore,
    )
    from src.utils.progress import (
        accuracy_by_category,
        correct_rate,
        learner_level,
        next_streak,
        readiness,
    )


logger = logging.getLogger(__name__)


class ProgressService:
    """Reads QuestionProgress/ExamAttempt facts and maintains lesson progress."""

    def __init__(self, store: RecordStore, clock: Optional[Callable[[], datetime]] = None):
        self.store = store
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    def stats(self, user_id: str) -> Dict[str, Any]:
        """
        Dashboard/profile statistics for one user.

        Returns:
            Dict with answers (total/correct/wrong), correct_rate, level,
            exams/exams_passed, lessons_completed/total_lessons, streak,
            readiness advice and per-category accuracy
        """
        answers = self.store.find(QUESTION_PROGRESS, user_id=user_id)
        exams = self.store.find(EXAMS, user_id=user_id)
        lessons_done = self.store.find(LESSON_PROGRESS, user_id=user_id, completed=True)
        user = self.store.get(USERS, user_id) or {}

        correct = sum(1 for a in answers if a.get("correct"))
        rate = correct_rate(answers)
        categories = {q["id"]: q.get("category", "general") for q in self.store.all(QUESTIONS)}

        return {
            "total": len(answers),
            "correct": correct,
            "wrong": len(answers) - correct,
            "correct_rate": rate,
            "level": learner_level(len(answers)),
            "exams": len(exams),
            "exams_passed": sum(1 for e in exams if e.get("passed")),
            "lessons_completed": len(lessons_done),
            "total_lessons": self.store.count(LESSONS),
            "streak": user.get("streak", 0),
            "readiness": readiness(rate),
            "by_category": accuracy_by_category(answers, categories),
        }

    def mistakes(self, user_id: str) -> List[Dict[str, Any]]:
        """
        Wrongly answered questions, once each, in first-mistake order.

        Each entry is the progress record plus the ``question`` dict (None if
        the question was since deleted).
        """
        seen = set()
        out = []
        for record in self.store.find(QUESTION_PROGRESS, user_id=user_id, correct=False):
            qid = record["question_id"]
            if qid in seen:
                continue
            seen.add(qid)
            record["question"] = self.store.get(QUESTIONS, qid)
            out.append(record)
        return out

    def exam_history(self, user_id: str) -> List[Dict[str, Any]]:
        """Exam attempts, newest first."""
        exams = self.store.find(EXAMS, user_id=user_id)
        return sorted(exams, key=lambda e: e.get("completed_at", ""), reverse=True)

    def is_lesson_completed(self, user_id: str, lesson_id: str) -> bool:
        record = self.store.first(LESSON_PROGRESS, user_id=user_id, lesson_id=lesson_id)
        return bool(record and record.get("completed"))

    def mark_lesson_complete(self, user_id: str, lesson_id: str, score: int = 100) -> Dict[str, Any]:
        """Create or update the single progress record for user+lesson."""
        now = self._clock().isoformat()
        existing = self.store.first(LESSON_PROGRESS, user_id=user_id, lesson_id=lesson_id)
        changes = {
            "completed": True,
            "score": score,
            "completed_at": now,
            "last_accessed_at": now,
        }
        if existing:
            return self.store.update(LESSON_PROGRESS, existing["id"], changes)

        progress = LessonProgress(user_id=user_id, lesson_id=lesson_id, **changes)
        logger.info("User %s completed lesson %s", user_id, lesson_id)
        return self.store.add(LESSON_PROGRESS, progress.to_dict())

    def update_streak(self, user_id: str, today: Optional[date] = None) -> int:
        """
        Register activity for ``today`` and return the new streak.

        Raises:
            RecordNotFound: Unknown user
        """
        user = self.store.get(USERS, user_id)
        if user is None:
            raise RecordNotFound(USERS, user_id)

        today = today or self._clock().date()
        last = user.get("last_active_date")
        last_active = date.fromisoformat(last) if last else None
        if last_active == today:
            return user.get("streak", 0)

        streak = next_streak(user.get("streak", 0), last_active, today)
        self.store.update(USERS, user_id, {"last_active_date": today.isoformat(), "streak": streak})
        return streak

    def reset_progress(self, user_id: str) -> Dict[str, int]:
        """Delete every answer, lesson progress and exam record of a user."""
        removed = {
            QUESTION_PROGRESS: self.store.delete_where(QUESTION_PROGRESS, user_id=user_id),
            LESSON_PROGRESS: self.store.delete_where(LESSON_PROGRESS, user_id=user_id),
            EXAMS: self.store.delete_where(EXAMS, user_id=user_id),
        }
        logger.info("Reset progress for user %s: %s", user_id, removed)
        return removed
