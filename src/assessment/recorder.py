"""
Progress Recorder - append-only writes of answers and exam attempts.

Writes are fire-and-forget: failures are logged and dropped, never retried,
and never change the outcome of the session that produced them.
"""

from __future__ import annotations

import logging
from concurrent.futures import Executor
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any, Dict, Optional

try:
    from ..errors import PersistenceWriteFailure
    from ..models.records import QuestionProgress
    from ..utils.persistence import EXAMS, QUESTION_PROGRESS, RecordStore
except ImportError:
    from src.errors import PersistenceWriteFailure
    from src.models.records import QuestionProgress
    from src.utils.persistence import EXAMS, QUESTION_PROGRESS, RecordStore

if TYPE_CHECKING:
    from ..models.assessment_session import AssessmentSession, SessionResult


logger = logging.getLogger(__name__)


class ProgressRecorder:
    """
    Appends QuestionProgress and ExamAttempt records to the store.

    Usage:
        recorder = ProgressRecorder(store)
        recorder.record("user-1", "q-1", correct=True)

        # Off the caller's thread:
        recorder = ProgressRecorder(store, executor=ThreadPoolExecutor(1))
    """

    def __init__(self, store: RecordStore, executor: Optional[Executor] = None):
        """
        Args:
            store: Storage collaborator
            executor: Optional executor to run writes asynchronously
        """
        self.store = store
        self.executor = executor
        self.failed_writes = 0

    def record(
        self,
        user_id: str,
        question_id: str,
        correct: bool,
        timestamp: Optional[str] = None,
        exam_id: Optional[str] = None,
    ) -> None:
        """Append one answer fact."""
        progress = QuestionProgress(
            user_id=user_id,
            question_id=question_id,
            correct=bool(correct),
            answered_at=timestamp or datetime.now(timezone.utc).isoformat(),
            exam_id=exam_id,
        )
        self._submit(QUESTION_PROGRESS, progress.to_dict())

    def record_session_result(
        self,
        session: "AssessmentSession",
        result: "SessionResult",
    ) -> None:
        """
        Persist the outcome of a finished session.

        Exam sessions append an ExamAttempt record; practice and lesson quiz
        results are not stored beyond their per-answer facts.
        """
        if session.user_id is None:
            logger.debug("Session %s has no user; result not recorded", session.session_id)
            return
        record = session.to_exam_record()
        if record is None:
            return
        self._submit(EXAMS, record)

    # ---------- internals ----------

    def _submit(self, collection: str, record: Dict[str, Any]) -> None:
        if self.executor is not None:
            try:
                self.executor.submit(self._write, collection, record)
                return
            except RuntimeError as e:
                # Executor already shut down: the session may have been torn down
                logger.warning("Executor unavailable, writing %s inline: %s", collection, e)
        self._write(collection, record)

    def _write(self, collection: str, record: Dict[str, Any]) -> None:
        try:
            self.store.add(collection, record)
        except PersistenceWriteFailure as e:
            self.failed_writes += 1
            logger.warning("Progress write dropped: %s", e)
        except Exception:
            self.failed_writes += 1
            logger.exception("Progress write to %s failed", collection)
