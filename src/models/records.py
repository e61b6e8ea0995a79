"""
User-owned records: accounts, progress facts, exam attempts and community data.

QuestionProgress and ExamAttempt are append-only: written once, never updated.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Literal, Optional

from .content import _RecordMixin, new_id, utc_now


Role = Literal["user", "admin"]
ReportTarget = Literal["post", "comment", "user"]
ReportStatus = Literal["pending", "reviewed", "resolved"]
NotificationType = Literal["like", "comment", "report", "system", "achievement"]

REPORT_TARGETS = ("post", "comment", "user")
REPORT_STATUSES = ("pending", "reviewed", "resolved")


@dataclass
class User(_RecordMixin):
    """
    Account record as stored. ``password`` holds the bcrypt hash.

    Use ``public_dict()`` for anything leaving the service layer.
    """

    id: str
    email: str
    password: str
    name: str
    role: Role = "user"
    avatar: Optional[str] = None
    banned: bool = False
    streak: int = 0
    last_login: Optional[str] = None
    last_active_date: Optional[str] = None
    refresh_token: Optional[str] = None
    created_at: str = field(default_factory=utc_now)
    updated_at: str = field(default_factory=utc_now)

    def public_dict(self) -> dict:
        data = self.to_dict()
        data.pop("password", None)
        return data


@dataclass
class QuestionProgress(_RecordMixin):
    """One answer to one question by one user at one time."""

    user_id: str
    question_id: str
    correct: bool
    answered_at: str = field(default_factory=utc_now)
    exam_id: Optional[str] = None
    id: str = field(default_factory=new_id)


@dataclass
class ExamAttempt(_RecordMixin):
    """A finished exam simulation."""

    user_id: str
    questions: List[str]
    answers: Dict[str, Optional[bool]]
    score: int
    total: int
    passed: bool
    started_at: str
    completed_at: str
    time_spent: int
    expired: bool = False
    id: str = field(default_factory=new_id)


@dataclass
class LessonProgress(_RecordMixin):
    """Completion state of a lesson for a user (one record per user+lesson)."""

    user_id: str
    lesson_id: str
    completed: bool = False
    score: int = 0
    completed_at: Optional[str] = None
    last_accessed_at: str = field(default_factory=utc_now)
    id: str = field(default_factory=new_id)


@dataclass
class Post(_RecordMixin):
    user_id: str
    user_name: str
    content: str
    likes_count: int = 0
    comments_count: int = 0
    is_deleted: bool = False
    created_at: str = field(default_factory=utc_now)
    updated_at: str = field(default_factory=utc_now)
    id: str = field(default_factory=new_id)


@dataclass
class PostComment(_RecordMixin):
    post_id: str
    user_id: str
    user_name: str
    content: str
    is_deleted: bool = False
    created_at: str = field(default_factory=utc_now)
    id: str = field(default_factory=new_id)


@dataclass
class Like(_RecordMixin):
    post_id: str
    user_id: str
    created_at: str = field(default_factory=utc_now)
    id: str = field(default_factory=new_id)


@dataclass
class Report(_RecordMixin):
    reporter_id: str
    target_type: ReportTarget
    target_id: str
    reason: str
    status: ReportStatus = "pending"
    reviewed_at: Optional[str] = None
    created_at: str = field(default_factory=utc_now)
    id: str = field(default_factory=new_id)


@dataclass
class Notification(_RecordMixin):
    user_id: str
    type: NotificationType
    title: str
    message: str
    read: bool = False
    related_id: Optional[str] = None
    created_at: str = field(default_factory=utc_now)
    id: str = field(default_factory=new_id)


@dataclass
class AdminLog(_RecordMixin):
    """Audit entry for an admin action."""

    admin_id: str
    action: str
    target_type: str
    target_id: str
    details: str = ""
    created_at: str = field(default_factory=utc_now)
    id: str = field(default_factory=new_id)
