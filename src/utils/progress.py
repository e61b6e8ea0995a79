"""
Progress analytics helpers for dashboards and reporting.

Provides:
- Correct-answer rate and learner level
- Daily streak arithmetic
- Exam readiness advice
- Per-category accuracy breakdown
"""

from __future__ import annotations

from datetime import date, timedelta
from typing import Dict, Iterable, List, Mapping, Optional


ANSWERS_PER_LEVEL = 20

READINESS_STUDY_BASICS = "study_basics"
READINESS_REVIEW_MISTAKES = "review_mistakes"
READINESS_EXAM_READY = "exam_ready"


def correct_rate(progress: Iterable[Mapping]) -> int:
    """
    Percentage of correct answers, rounded to an integer.

    Args:
        progress: QuestionProgress records (need a ``correct`` key)

    Returns:
        0-100, or 0 when there are no answers

    Example:
        >>> correct_rate([{"correct": True}, {"correct": False}])
        50
    """
    records = list(progress)
    if not records:
        return 0
    correct = sum(1 for r in records if r.get("correct"))
    return round(correct * 100 / len(records))


def learner_level(answer_count: int) -> int:
    """One level per 20 answered questions, starting at level 1."""
    return max(1, answer_count // ANSWERS_PER_LEVEL + 1)


def next_streak(current: int, last_active: Optional[date], today: date) -> int:
    """
    Streak after activity on ``today``.

    Active yesterday: +1. Already active today: unchanged. Otherwise the
    streak restarts at 1.
    """
    if last_active == today:
        return current
    if last_active == today - timedelta(days=1):
        return current + 1
    return 1


def readiness(rate: int) -> str:
    """
    Study advice from the overall correct rate.

    Returns:
        ``study_basics`` below 50%, ``review_mistakes`` below 85%,
        ``exam_ready`` otherwise
    """
    if rate < 50:
        return READINESS_STUDY_BASICS
    if rate < 85:
        return READINESS_REVIEW_MISTAKES
    return READINESS_EXAM_READY


def pass_rate(exams: Iterable[Mapping]) -> int:
    """Percentage of passed exam attempts, rounded."""
    attempts = list(exams)
    if not attempts:
        return 0
    return round(sum(1 for e in attempts if e.get("passed")) * 100 / len(attempts))


def accuracy_by_category(
    progress: Iterable[Mapping],
    question_categories: Mapping[str, str],
) -> Dict[str, Dict[str, float]]:
    """
    Group answers by question category.

    Args:
        progress: QuestionProgress records
        question_categories: question_id -> category

    Returns:
        category -> {"answered", "correct", "rate"}; unknown questions are
        grouped under ``"uncategorized"``
    """
    groups: Dict[str, List[bool]] = {}
    for record in progress:
        category = question_categories.get(record.get("question_id"), "uncategorized")
        groups.setdefault(category, []).append(bool(record.get("correct")))

    return {
        category: {
            "answered": len(outcomes),
            "correct": sum(outcomes),
            "rate": round(sum(outcomes) * 100 / len(outcomes), 2),
        }
        for category, outcomes in sorted(groups.items())
    }
