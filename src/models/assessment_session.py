"""
Assessment Session - one state machine for practice, lesson quiz and exam simulation.

States: not_started -> in_progress -> finished.

Mode decides the rules:
- practice: answers commit immediately, auto-advance, no pass/fail (ratio only)
- lesson_quiz: answers commit immediately, auto-advance, pass at ceil(70%)
- exam: free navigation, answers may change until finish, countdown timer,
  pass with at most 3 wrong answers
"""

from __future__ import annotations

import logging
import math
import threading
import uuid
from dataclasses import asdict, dataclass
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import TYPE_CHECKING, Callable, Dict, List, Optional, Sequence

try:
    from ..assessment.evaluator import evaluate
    from ..assessment.timer import ExamCountdown
    from ..config import config
    from ..errors import EmptySelection, InvalidTransition
    from .content import Question
    from .records import ExamAttempt
except ImportError:
    from src.assessment.evaluator import evaluate
    from src.assessment.timer import ExamCountdown
    from src.config import config
    from src.errors import EmptySelection, InvalidTransition
    from src.models.content import Question
    from src.models.records import ExamAttempt

if TYPE_CHECKING:
    from ..assessment.recorder import ProgressRecorder


logger = logging.getLogger(__name__)


class SessionMode(str, Enum):
    PRACTICE = "practice"
    LESSON_QUIZ = "lesson_quiz"
    EXAM = "exam"


class SessionState(str, Enum):
    NOT_STARTED = "not_started"
    IN_PROGRESS = "in_progress"
    FINISHED = "finished"


class SessionOutcome(str, Enum):
    """Events emitted when a session finishes; the UI turns them into messages."""

    PASSED = "passed"
    FAILED = "failed"
    TIME_EXPIRED = "time_expired"
    COMPLETED = "completed"


OutcomeListener = Callable[[SessionOutcome, "SessionResult"], None]


@dataclass(frozen=True)
class SessionResult:
    """
    Final score of a session.

    Attributes:
        mode: Session mode
        total: Number of questions in the session
        answered: Questions that received an answer
        correct: Correct answers (unanswered count as wrong)
        passed: Pass/fail; None for practice
        time_spent_seconds: Seconds between start and finish
        expired: Whether the exam countdown ended the session
    """

    mode: SessionMode
    total: int
    answered: int
    correct: int
    passed: Optional[bool]
    time_spent_seconds: int
    expired: bool = False

    @property
    def wrong(self) -> int:
        return self.total - self.correct

    @property
    def ratio(self) -> float:
        return self.correct / self.total if self.total else 0.0

    def to_dict(self) -> dict:
        data = asdict(self)
        data["mode"] = self.mode.value
        data["wrong"] = self.wrong
        data["ratio"] = self.ratio
        return data


def exam_pass_threshold(total: int, max_errors: int) -> int:
    """Minimum correct answers for an exam: total minus the allowed errors."""
    return max(total - max_errors, 0)


def lesson_pass_threshold(total: int, ratio: float) -> int:
    """
    Minimum correct answers for a lesson quiz: ceil(total * ratio).

    Rounded before ceil so that e.g. 10 * 0.7 gives 7, not 8.
    """
    return math.ceil(round(total * ratio, 9))


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class AssessmentSession:
    """
    Question-session state machine shared by practice, lesson quiz and exam.

    Invalid calls (e.g. submitting after finish) are ignored with a warning,
    or raise InvalidTransition when ``strict=True``. ``finish()`` is
    idempotent and the exam countdown is cancelled on every finish path.
    Thread-safe: the countdown thread and user calls share one lock.
    """

    def __init__(
        self,
        mode: SessionMode | str,
        user_id: Optional[str] = None,
        recorder: Optional[ProgressRecorder] = None,
        lesson_id: Optional[str] = None,
        duration_seconds: Optional[int] = None,
        max_errors: Optional[int] = None,
        pass_ratio: Optional[float] = None,
        strict: bool = False,
        session_id: Optional[str] = None,
        clock: Optional[Callable[[], datetime]] = None,
        countdown_factory: Optional[Callable[[float, Callable[[], None]], ExamCountdown]] = ExamCountdown,
    ):
        """
        Initialize a session.

        Args:
            mode: practice / lesson_quiz / exam
            user_id: Learner the progress is attributed to (None = not recorded)
            recorder: Progress recorder (None = nothing persisted)
            lesson_id: Lesson being quizzed (lesson_quiz mode)
            duration_seconds: Exam time limit (default: config)
            max_errors: Allowed exam errors (default: config)
            pass_ratio: Lesson quiz pass ratio (default: config)
            strict: Raise InvalidTransition instead of ignoring invalid calls
            session_id: Session ID (auto-generated if None)
            clock: Returns the current aware datetime (injectable for tests)
            countdown_factory: Builds the exam countdown; None disables the
                background timer (use ``check_deadline`` instead)
        """
        settings = config.assessment
        self.mode = SessionMode(mode)
        self.session_id = session_id or f"qs-{uuid.uuid4()}"
        self.user_id = user_id
        self.recorder = recorder
        self.lesson_id = lesson_id
        self.duration_seconds = (
            duration_seconds if duration_seconds is not None else settings.exam_duration_seconds
        )
        self.max_errors = max_errors if max_errors is not None else settings.exam_max_errors
        self.pass_ratio = pass_ratio if pass_ratio is not None else settings.lesson_pass_ratio
        self.strict = strict
        self._clock = clock or _utc_now
        self._countdown_factory = countdown_factory

        self.state = SessionState.NOT_STARTED
        self.questions: List[Question] = []
        self.current_index = 0
        self.started_at: Optional[datetime] = None
        self.deadline: Optional[datetime] = None
        self.completed_at: Optional[datetime] = None

        self._submitted: Dict[str, Optional[bool]] = {}
        self._results: Dict[str, Optional[bool]] = {}
        self._result: Optional[SessionResult] = None
        self._expired = False
        self._countdown: Optional[ExamCountdown] = None
        self._listeners: List[OutcomeListener] = []
        self._lock = threading.RLock()

    # ---------- read-only views ----------

    @property
    def is_exam(self) -> bool:
        return self.mode is SessionMode.EXAM

    @property
    def is_finished(self) -> bool:
        return self.state is SessionState.FINISHED

    @property
    def total(self) -> int:
        return len(self.questions)

    @property
    def current_question(self) -> Optional[Question]:
        with self._lock:
            if self.state is not SessionState.IN_PROGRESS or self.current_index >= self.total:
                return None
            return self.questions[self.current_index]

    @property
    def answers(self) -> Dict[str, Optional[bool]]:
        """Submitted answers by question id (None = unanswered)."""
        with self._lock:
            return dict(self._submitted)

    @property
    def results(self) -> Dict[str, Optional[bool]]:
        """Correctness by question id (None = unanswered)."""
        with self._lock:
            return dict(self._results)

    @property
    def answered_count(self) -> int:
        with self._lock:
            return sum(1 for r in self._results.values() if r is not None)

    @property
    def result(self) -> Optional[SessionResult]:
        return self._result

    def on_outcome(self, listener: OutcomeListener) -> None:
        """Register a callback for outcome events emitted at finish."""
        self._listeners.append(listener)

    def time_remaining(self) -> Optional[int]:
        """Whole seconds left before the exam deadline; None outside exam mode."""
        if not self.is_exam or self.deadline is None:
            return None
        if self.is_finished:
            return 0
        left = (self.deadline - self._clock()).total_seconds()
        return max(0, math.ceil(left))

    # ---------- transitions ----------

    def start(self, questions: Sequence[Question]) -> Optional[Question]:
        """
        Begin the session with an already sampled question sequence.

        Returns:
            The first question

        Raises:
            EmptySelection: If ``questions`` is empty
            ValueError: If a question id appears twice
        """
        with self._lock:
            if self.state is not SessionState.NOT_STARTED:
                return self._reject("start")

            if not questions:
                raise EmptySelection()
            ids = [q.id for q in questions]
            if len(set(ids)) != len(ids):
                raise ValueError("Session questions must have unique ids")

            self.questions = list(questions)
            self.current_index = 0
            self._submitted = {qid: None for qid in ids}
            self._results = {qid: None for qid in ids}
            self.started_at = self._clock()
            self.state = SessionState.IN_PROGRESS

            if self.is_exam:
                self.deadline = self.started_at + timedelta(seconds=self.duration_seconds)
                if self._countdown_factory is not None:
                    self._countdown = self._countdown_factory(self.duration_seconds, self.expire)
                    self._countdown.start()

        logger.info(
            "Session %s started: mode=%s questions=%d", self.session_id, self.mode.value, self.total
        )
        return self.questions[0]

    def submit_answer(self, answer: bool) -> Optional[bool]:
        """
        Answer the current question.

        Practice and lesson quiz record the answer, advance, and finish after
        the last question. Exam mode stores the answer (replacing any earlier
        one) and stays on the question.

        Returns:
            Whether the answer was correct, or None if the call was ignored
        """
        finish_now = False
        with self._lock:
            if self.state is not SessionState.IN_PROGRESS or self.current_index >= self.total:
                return self._reject("submit_answer")

            question = self.questions[self.current_index]
            correct = evaluate(answer, question.correct_answer)
            self._submitted[question.id] = bool(answer)
            self._results[question.id] = correct

            if not self.is_exam:
                self.current_index += 1
                finish_now = self.current_index >= self.total

        try:
            if not self.is_exam:
                self._record_answer(question.id, correct)
        finally:
            if finish_now:
                self.finish()
        return correct

    def advance(self) -> bool:
        """Move to the next exam question. Returns whether the position changed."""
        with self._lock:
            if not self._can_navigate("advance"):
                return False
            if self.current_index >= self.total - 1:
                return False
            self.current_index += 1
            return True

    def retreat(self) -> bool:
        """Move to the previous exam question. Returns whether the position changed."""
        with self._lock:
            if not self._can_navigate("retreat"):
                return False
            if self.current_index == 0:
                return False
            self.current_index -= 1
            return True

    def go_to(self, index: int) -> bool:
        """Jump to any exam question (question grid)."""
        with self._lock:
            if not self._can_navigate("go_to"):
                return False
            if not 0 <= index < self.total:
                raise IndexError(f"Question index {index} out of range [0, {self.total})")
            self.current_index = index
            return True

    def finish(self) -> Optional[SessionResult]:
        """
        End the session and compute its result.

        Idempotent: later calls return the same result without recording or
        emitting anything again.
        """
        return self._finish()

    def _finish(self, expired: bool = False) -> Optional[SessionResult]:
        with self._lock:
            if self.state is SessionState.FINISHED:
                return self._result
            if self.state is SessionState.NOT_STARTED:
                return self._reject("finish")
            if expired:
                self._expired = True
                logger.info("Session %s: time expired", self.session_id)

            if self._countdown is not None:
                self._countdown.cancel()

            self.completed_at = self._clock()
            self._result = self._compute_result()
            self.state = SessionState.FINISHED
            if not self.is_exam:
                self.current_index = self.total
            result = self._result

        logger.info(
            "Session %s finished: %d/%d correct, passed=%s, expired=%s",
            self.session_id,
            result.correct,
            result.total,
            result.passed,
            result.expired,
        )

        if self.is_exam:
            self._record_exam(result)
        self._emit(result)
        return result

    def expire(self) -> Optional[SessionResult]:
        """Countdown callback: finish the exam as if submitted, scoring blanks as wrong."""
        with self._lock:
            if self.state is not SessionState.IN_PROGRESS:
                return self._result
        return self._finish(expired=True)

    def abandon(self) -> None:
        """Stop the countdown of an unfinished session without scoring or recording it."""
        with self._lock:
            if self._countdown is not None:
                self._countdown.cancel()
            if self.state is SessionState.IN_PROGRESS:
                logger.info("Session %s abandoned", self.session_id)

    def check_deadline(self, now: Optional[datetime] = None) -> bool:
        """
        Expire the exam if the deadline has passed (tick-driven hosts).

        Returns:
            True if this call expired the session
        """
        with self._lock:
            if not self.is_exam or self.state is not SessionState.IN_PROGRESS:
                return False
            if (now or self._clock()) < self.deadline:
                return False
        return self.expire() is not None

    # ---------- persistence views ----------

    def to_exam_record(self) -> Optional[dict]:
        """ExamAttempt record for a finished exam, None otherwise."""
        if not self.is_exam or self._result is None:
            return None
        return ExamAttempt(
            id=self.session_id,
            user_id=self.user_id,
            questions=[q.id for q in self.questions],
            answers=dict(self._submitted),
            score=self._result.correct,
            total=self._result.total,
            passed=bool(self._result.passed),
            started_at=self.started_at.isoformat(),
            completed_at=self.completed_at.isoformat(),
            time_spent=self._result.time_spent_seconds,
            expired=self._result.expired,
        ).to_dict()

    def to_dict(self) -> dict:
        """Snapshot of the session for display or debugging."""
        with self._lock:
            return {
                "session_id": self.session_id,
                "mode": self.mode.value,
                "state": self.state.value,
                "user_id": self.user_id,
                "lesson_id": self.lesson_id,
                "questions": [q.id for q in self.questions],
                "current_index": self.current_index,
                "answers": dict(self._submitted),
                "started_at": self.started_at.isoformat() if self.started_at else None,
                "deadline": self.deadline.isoformat() if self.deadline else None,
                "result": self._result.to_dict() if self._result else None,
            }

    # ---------- internals ----------

    def _compute_result(self) -> SessionResult:
        total = self.total
        correct = sum(1 for r in self._results.values() if r is True)
        answered = sum(1 for r in self._results.values() if r is not None)

        if self.mode is SessionMode.EXAM:
            passed: Optional[bool] = correct >= exam_pass_threshold(total, self.max_errors)
        elif self.mode is SessionMode.LESSON_QUIZ:
            passed = correct >= lesson_pass_threshold(total, self.pass_ratio)
        else:
            passed = None

        elapsed = int((self.completed_at - self.started_at).total_seconds())
        if self.is_exam:
            elapsed = min(elapsed, int(self.duration_seconds))

        return SessionResult(
            mode=self.mode,
            total=total,
            answered=answered,
            correct=correct,
            passed=passed,
            time_spent_seconds=max(0, elapsed),
            expired=self._expired,
        )

    def _can_navigate(self, operation: str) -> bool:
        if not self.is_exam or self.state is not SessionState.IN_PROGRESS:
            self._reject(operation)
            return False
        return True

    def _reject(self, operation: str):
        error = InvalidTransition(operation, f"{self.state.value} ({self.mode.value})")
        if self.strict:
            raise error
        logger.warning("Session %s: ignored %s", self.session_id, error)
        return None

    def _record_answer(self, question_id: str, correct: bool, exam_id: Optional[str] = None) -> None:
        if self.recorder is None or self.user_id is None:
            return
        self.recorder.record(self.user_id, question_id, correct, exam_id=exam_id)

    def _record_exam(self, result: SessionResult) -> None:
        for question in self.questions:
            self._record_answer(
                question.id, self._results.get(question.id) is True, exam_id=self.session_id
            )
        if self.recorder is not None:
            self.recorder.record_session_result(self, result)

    def _emit(self, result: SessionResult) -> None:
        events = []
        if result.expired:
            events.append(SessionOutcome.TIME_EXPIRED)
        if result.passed is None:
            events.append(SessionOutcome.COMPLETED)
        else:
            events.append(SessionOutcome.PASSED if result.passed else SessionOutcome.FAILED)

        for event in events:
            for listener in list(self._listeners):
                try:
                    listener(event, result)
                except Exception:
                    logger.exception("Outcome listener failed for %s", event.value)
