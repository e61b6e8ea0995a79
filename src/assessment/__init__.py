"""
Assessment core: question selection, answer evaluation, exam countdown and
progress recording.
"""

from .evaluator import evaluate
from .timer import ExamCountdown
from .recorder import ProgressRecorder
from .sampler import sample_questions
from .question_bank import QuestionBank

__all__ = [
    "evaluate",
    "ExamCountdown",
    "ProgressRecorder",
    "sample_questions",
    "QuestionBank",
]
