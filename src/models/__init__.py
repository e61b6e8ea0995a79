"""
Data models for the driving-licence quiz.

This module contains core data models:
- Question, Category, Lesson, Sign, GlossaryTerm: learning content
- User, QuestionProgress, ExamAttempt, LessonProgress, ...: stored records
- AssessmentSession: practice / lesson quiz / exam state machine
"""

from .content import Category, GlossaryTerm, Lesson, Question, Sign
from .records import (
    AdminLog,
    ExamAttempt,
    LessonProgress,
    Like,
    Notification,
    Post,
    PostComment,
    QuestionProgress,
    Report,
    User,
)
from .assessment_session import (
    AssessmentSession,
    SessionMode,
    SessionOutcome,
    SessionResult,
    SessionState,
)

__all__ = [
    # Content
    "Category",
    "GlossaryTerm",
    "Lesson",
    "Question",
    "Sign",
    # Records
    "AdminLog",
    "ExamAttempt",
    "LessonProgress",
    "Like",
    "Notification",
    "Post",
    "PostComment",
    "QuestionProgress",
    "Report",
    "User",
    # Sessions
    "AssessmentSession",
    "SessionMode",
    "SessionOutcome",
    "SessionResult",
    "SessionState",
]
