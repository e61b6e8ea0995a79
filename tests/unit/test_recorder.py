"""
Unit tests for ProgressRecorder.
"""

import unittest
from concurrent.futures import ThreadPoolExecutor
from unittest.mock import Mock

from src.assessment.recorder import ProgressRecorder
from src.errors import PersistenceWriteFailure
from src.models.assessment_session import AssessmentSession
from src.utils.persistence import EXAMS, QUESTION_PROGRESS, InMemoryRecordStore

from conftest import make_pool


class TestProgressRecorder(unittest.TestCase):
    """Test answer and exam attempt recording."""

    def setUp(self):
        self.store = InMemoryRecordStore()
        self.recorder = ProgressRecorder(self.store)

    def test_record_appends_progress(self):
        self.recorder.record("user-1", "q-1", True, timestamp="2024-05-01T10:00:00+00:00")
        records = self.store.all(QUESTION_PROGRESS)
        self.assertEqual(len(records), 1)
        self.assertEqual(records[0]["user_id"], "user-1")
        self.assertEqual(records[0]["question_id"], "q-1")
        self.assertTrue(records[0]["correct"])
        self.assertIsNone(records[0]["exam_id"])

    def test_record_is_append_only(self):
        self.recorder.record("user-1", "q-1", False)
        self.recorder.record("user-1", "q-1", True)
        self.assertEqual(self.store.count(QUESTION_PROGRESS, question_id="q-1"), 2)

    def test_record_with_exam_id(self):
        self.recorder.record("user-1", "q-1", False, exam_id="qs-1")
        self.assertEqual(self.store.all(QUESTION_PROGRESS)[0]["exam_id"], "qs-1")

    def test_write_failure_is_logged_not_raised(self):
        store = Mock()
        store.add.side_effect = PersistenceWriteFailure(QUESTION_PROGRESS, "disk full")
        recorder = ProgressRecorder(store)

        with self.assertLogs("src.assessment.recorder", level="WARNING") as logs:
            recorder.record("user-1", "q-1", True)

        self.assertEqual(recorder.failed_writes, 1)
        self.assertIn("disk full", logs.output[0])
        store.add.assert_called_once()

    def test_unexpected_store_error_is_logged_not_raised(self):
        store = Mock()
        store.add.side_effect = RuntimeError("connection reset")
        recorder = ProgressRecorder(store)

        with self.assertLogs("src.assessment.recorder", level="ERROR") as logs:
            recorder.record("user-1", "q-1", True)

        self.assertEqual(recorder.failed_writes, 1)
        self.assertIn("question_progress", logs.output[0])

    def test_write_failure_not_retried(self):
        store = Mock()
        store.add.side_effect = PersistenceWriteFailure(QUESTION_PROGRESS, "down")
        recorder = ProgressRecorder(store)
        with self.assertLogs("src.assessment.recorder", level="WARNING"):
            recorder.record("user-1", "q-1", True)
            recorder.record("user-1", "q-2", True)
        self.assertEqual(store.add.call_count, 2)
        self.assertEqual(recorder.failed_writes, 2)

    def test_writes_through_executor(self):
        with ThreadPoolExecutor(max_workers=1) as executor:
            recorder = ProgressRecorder(self.store, executor=executor)
            recorder.record("user-1", "q-1", True)
        self.assertEqual(self.store.count(QUESTION_PROGRESS), 1)

    def test_shut_down_executor_falls_back_inline(self):
        executor = ThreadPoolExecutor(max_workers=1)
        executor.shutdown()
        recorder = ProgressRecorder(self.store, executor=executor)
        with self.assertLogs("src.assessment.recorder", level="WARNING"):
            recorder.record("user-1", "q-1", True)
        self.assertEqual(self.store.count(QUESTION_PROGRESS), 1)

    def test_exam_result_recorded(self):
        session = AssessmentSession("exam", user_id="user-1", countdown_factory=None)
        session.start(make_pool(3))
        result = session.finish()
        self.recorder.record_session_result(session, result)

        exams = self.store.all(EXAMS)
        self.assertEqual(len(exams), 1)
        self.assertEqual(exams[0]["id"], session.session_id)
        self.assertEqual(exams[0]["total"], 3)
        self.assertEqual(exams[0]["score"], 0)

    def test_practice_result_not_stored_as_exam(self):
        session = AssessmentSession("practice", user_id="user-1")
        session.start(make_pool(1))
        result = session.finish()
        self.recorder.record_session_result(session, result)
        self.assertEqual(self.store.count(EXAMS), 0)

    def test_anonymous_session_not_recorded(self):
        session = AssessmentSession("exam", countdown_factory=None)
        session.start(make_pool(2))
        result = session.finish()
        self.recorder.record_session_result(session, result)
        self.assertEqual(self.store.count(EXAMS), 0)


if __name__ == "__main__":
    unittest.main()
