"""
Unit tests for ProgressService.
"""

import unittest
from datetime import date, datetime, timezone

from src.assessment.recorder import ProgressRecorder
from src.errors import RecordNotFound
from src.models.records import User
from src.services.progress_service import ProgressService
from src.utils.persistence import (
    EXAMS,
    LESSON_PROGRESS,
    QUESTION_PROGRESS,
    QUESTIONS,
    USERS,
    InMemoryRecordStore,
)

from conftest import make_question


class TestProgressService(unittest.TestCase):
    def setUp(self):
        self.store = InMemoryRecordStore()
        self.store.add(USERS, User(id="u1", email="u1@example.com", password="x", name="U").to_dict())
        for i in range(3):
            self.store.add(QUESTIONS, make_question(i).to_dict())
        self.now = datetime(2024, 5, 10, 12, 0, tzinfo=timezone.utc)
        self.service = ProgressService(self.store, clock=lambda: self.now)
        self.recorder = ProgressRecorder(self.store)

    def answer(self, question_id, correct, user_id="u1"):
        self.recorder.record(user_id, question_id, correct)

    def test_stats_empty(self):
        stats = self.service.stats("u1")
        self.assertEqual(stats["total"], 0)
        self.assertEqual(stats["correct_rate"], 0)
        self.assertEqual(stats["level"], 1)
        self.assertEqual(stats["readiness"], "study_basics")

    def test_stats_counts(self):
        self.answer("q-0", True)
        self.answer("q-1", False)
        self.answer("q-2", True)
        self.answer("q-0", True, user_id="u2")
        stats = self.service.stats("u1")
        self.assertEqual(stats["total"], 3)
        self.assertEqual(stats["correct"], 2)
        self.assertEqual(stats["wrong"], 1)
        self.assertEqual(stats["correct_rate"], 67)
        self.assertEqual(stats["readiness"], "review_mistakes")
        self.assertEqual(stats["by_category"]["general"]["answered"], 3)

    def test_stats_exams(self):
        for passed in (True, False):
            self.store.add(
                EXAMS,
                {
                    "user_id": "u1",
                    "questions": ["q-0"],
                    "answers": {"q-0": True},
                    "score": 1 if passed else 0,
                    "total": 1,
                    "passed": passed,
                    "started_at": "2024-05-10T10:00:00+00:00",
                    "completed_at": "2024-05-10T10:10:00+00:00",
                    "time_spent": 600,
                },
            )
        stats = self.service.stats("u1")
        self.assertEqual(stats["exams"], 2)
        self.assertEqual(stats["exams_passed"], 1)
        self.assertEqual(len(self.service.exam_history("u1")), 2)

    def test_mistakes_once_per_question(self):
        self.answer("q-1", False)
        self.answer("q-0", False)
        self.answer("q-1", False)
        self.answer("q-2", True)
        mistakes = self.service.mistakes("u1")
        self.assertEqual([m["question_id"] for m in mistakes], ["q-1", "q-0"])
        self.assertEqual(mistakes[0]["question"]["text_it"], "Domanda 1")

    def test_mistake_for_deleted_question(self):
        self.answer("q-gone", False)
        self.assertIsNone(self.service.mistakes("u1")[0]["question"])

    def test_mark_lesson_complete_upserts(self):
        self.service.mark_lesson_complete("u1", "lesson-1", score=70)
        self.service.mark_lesson_complete("u1", "lesson-1", score=90)
        records = self.store.find(LESSON_PROGRESS, user_id="u1")
        self.assertEqual(len(records), 1)
        self.assertEqual(records[0]["score"], 90)
        self.assertTrue(self.service.is_lesson_completed("u1", "lesson-1"))
        self.assertFalse(self.service.is_lesson_completed("u1", "lesson-2"))

    def test_update_streak(self):
        self.assertEqual(self.service.update_streak("u1", today=date(2024, 5, 10)), 1)
        self.assertEqual(self.service.update_streak("u1", today=date(2024, 5, 10)), 1)
        self.assertEqual(self.service.update_streak("u1", today=date(2024, 5, 11)), 2)
        self.assertEqual(self.service.update_streak("u1", today=date(2024, 5, 14)), 1)
        self.assertEqual(self.store.get(USERS, "u1")["last_active_date"], "2024-05-14")

    def test_update_streak_defaults_to_clock(self):
        self.service.update_streak("u1")
        self.assertEqual(self.store.get(USERS, "u1")["last_active_date"], "2024-05-10")

    def test_update_streak_unknown_user(self):
        with self.assertRaises(RecordNotFound):
            self.service.update_streak("ghost")

    def test_reset_progress(self):
        self.answer("q-0", True)
        self.answer("q-0", True, user_id="u2")
        self.service.mark_lesson_complete("u1", "lesson-1")
        removed = self.service.reset_progress("u1")
        self.assertEqual(removed[QUESTION_PROGRESS], 1)
        self.assertEqual(removed[LESSON_PROGRESS], 1)
        self.assertEqual(self.store.count(QUESTION_PROGRESS), 1)


if __name__ == "__main__":
    unittest.main()
