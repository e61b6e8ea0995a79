"""
Learning Orchestrator

Wires the assessment pieces together for one learner:
1. Question selection (bank + sampler)
2. Session lifecycle (practice, lesson quiz, exam simulation)
3. Progress recording (per answer, exam attempts)
4. Follow-up on outcomes (lesson completion, notifier callback)

This is the entry point a UI or API layer drives.
"""

from __future__ import annotations

import logging
import random
from concurrent.futures import Executor
from typing import Callable, Optional

from .assessment.question_bank import QuestionBank
from .assessment.recorder import ProgressRecorder
from .assessment.sampler import sample_questions
from .assessment.timer import ExamCountdown
from .config import AssessmentConfig, config
from .errors import RecordNotFound
from .models.assessment_session import (
    AssessmentSession,
    SessionMode,
    SessionOutcome,
    SessionResult,
)
from .services.progress_service import ProgressService
from .utils.persistence import LESSONS, RecordStore


logger = logging.getLogger(__name__)

Notifier = Callable[[SessionOutcome, SessionResult, AssessmentSession], None]


class LearningOrchestrator:
    """
    Runs question sessions for one learner.

    Only one session is active at a time: starting a new one abandons the
    previous one (its countdown is cancelled, nothing is scored).

    Usage:
        orchestrator = LearningOrchestrator(store, user_id)
        session = orchestrator.start_exam()
        session.submit_answer(True)
        result = orchestrator.finish()
    """

    def __init__(
        self,
        store: RecordStore,
        user_id: str,
        settings: Optional[AssessmentConfig] = None,
        notifier: Optional[Notifier] = None,
        executor: Optional[Executor] = None,
        rng: Optional[random.Random] = None,
        countdown: bool = True,
    ):
        """
        Initialize the orchestrator.

        Args:
            store: Storage collaborator
            user_id: Learner the sessions belong to
            settings: Session sizes and pass rules (default: config.assessment)
            notifier: Called with (event, result, session) for every outcome
            executor: Runs progress writes off the caller's thread
            rng: Random source for question order (default: seeded from config)
            countdown: Run the exam countdown on a background timer; when False
                the host calls ``session.check_deadline()`` itself
        """
        self.store = store
        self.user_id = user_id
        self.settings = settings or config.assessment
        self.notifier = notifier
        self.countdown = countdown
        self.rng = rng or random.Random(self.settings.random_seed)

        self.bank = QuestionBank(store)
        self.recorder = ProgressRecorder(store, executor=executor)
        self.progress = ProgressService(store)
        self.session: Optional[AssessmentSession] = None

    # ==================== Session starters ====================

    def start_practice(
        self,
        lesson_id: Optional[str] = None,
        category_id: Optional[str] = None,
        size: Optional[int] = None,
    ) -> AssessmentSession:
        """
        Practice run over a lesson, a category, or every question.

        Raises:
            EmptySelection: No questions match the filter
        """
        pool = self.bank.select(lesson_id=lesson_id, category_id=category_id)
        return self._start(
            SessionMode.PRACTICE,
            pool,
            size or self.settings.practice_questions,
            lesson_id=lesson_id,
        )

    def start_lesson_quiz(self, lesson_id: str) -> AssessmentSession:
        """
        Quiz over every question of a lesson, in random order.

        Raises:
            RecordNotFound: Unknown lesson
            EmptySelection: Lesson has no questions
        """
        if self.store.get(LESSONS, lesson_id) is None:
            raise RecordNotFound(LESSONS, lesson_id)
        pool = self.bank.for_lesson(lesson_id)
        return self._start(SessionMode.LESSON_QUIZ, pool, max(len(pool), 1), lesson_id=lesson_id)

    def start_exam(self) -> AssessmentSession:
        """
        Timed exam simulation drawn from the whole question bank.

        Raises:
            EmptySelection: The bank is empty
        """
        return self._start(SessionMode.EXAM, self.bank.all_questions(), self.settings.exam_questions)

    # ==================== Session control ====================

    def finish(self) -> Optional[SessionResult]:
        """Finish the active session (exam submit); None if there is none."""
        if self.session is None:
            return None
        return self.session.finish()

    def abandon(self) -> None:
        """Drop the active session without scoring it."""
        if self.session is not None:
            self.session.abandon()
            self.session = None

    def is_good_run(self, result: SessionResult) -> bool:
        """Whether a finished session reached the practice success ratio."""
        return result.ratio >= self.settings.practice_success_ratio

    # ==================== Internals ====================

    def _start(
        self,
        mode: SessionMode,
        pool,
        size: int,
        lesson_id: Optional[str] = None,
    ) -> AssessmentSession:
        questions = sample_questions(pool, size, rng=self.rng)

        if self.session is not None and not self.session.is_finished:
            self.session.abandon()

        session = AssessmentSession(
            mode,
            user_id=self.user_id,
            recorder=self.recorder,
            lesson_id=lesson_id,
            duration_seconds=self.settings.exam_duration_seconds,
            max_errors=self.settings.exam_max_errors,
            pass_ratio=self.settings.lesson_pass_ratio,
            countdown_factory=ExamCountdown if self.countdown else None,
        )
        session.on_outcome(lambda event, result: self._handle_outcome(session, event, result))
        session.start(questions)
        self.session = session

        logger.info(
            "User %s started %s with %d questions", self.user_id, mode.value, len(questions)
        )
        return session

    def _handle_outcome(
        self,
        session: AssessmentSession,
        event: SessionOutcome,
        result: SessionResult,
    ) -> None:
        if (
            session.mode is SessionMode.LESSON_QUIZ
            and event is SessionOutcome.PASSED
            and session.lesson_id
        ):
            score = round(result.ratio * 100)
            self.progress.mark_lesson_complete(self.user_id, session.lesson_id, score=score)

        if self.notifier is not None:
            self.notifier(event, result, session)
