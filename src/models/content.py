"""
Learning content records: questions, categories, lessons, signs and glossary terms.

All content is bilingual (Italian exam text, Arabic explanation) and is only
created or edited through the admin service; sessions read it and never mutate it.
"""

from __future__ import annotations

import uuid
from dataclasses import asdict, dataclass, field, fields
from datetime import datetime, timezone
from typing import Any, Dict, Literal, Optional


Difficulty = Literal["easy", "medium", "hard"]
SignCategory = Literal[
    "warning", "prohibition", "obligation", "information", "priority", "temporary"
]

SIGN_CATEGORIES = (
    "warning",
    "prohibition",
    "obligation",
    "information",
    "priority",
    "temporary",
)


def utc_now() -> str:
    """Current UTC timestamp in ISO 8601 format."""
    return datetime.now(timezone.utc).isoformat()


def new_id() -> str:
    return str(uuid.uuid4())


class _RecordMixin:
    """dict conversion shared by content dataclasses."""

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]):
        """Build from a stored record, ignoring unknown keys."""
        known = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in data.items() if k in known})


@dataclass(frozen=True)
class Question(_RecordMixin):
    """
    A true/false exam question.

    Attributes:
        id: Question identifier
        text_it: Question text in Italian (as it appears in the exam)
        text_ar: Arabic translation
        correct_answer: Whether the statement is true
        explanation_ar: Arabic explanation
        explanation_it: Italian explanation
        category: Free-form topic tag
        difficulty: easy/medium/hard
        lesson_id: Owning lesson (optional)
        sign_id: Related road sign (optional)
    """

    id: str
    text_it: str
    text_ar: str
    correct_answer: bool
    explanation_ar: str = ""
    explanation_it: str = ""
    category: str = "general"
    difficulty: Difficulty = "medium"
    lesson_id: Optional[str] = None
    sign_id: Optional[str] = None
    created_at: str = field(default_factory=utc_now)


@dataclass
class Category(_RecordMixin):
    """A group of lessons."""

    id: str
    name_ar: str
    name_it: str = ""
    description_ar: str = ""
    icon: str = "category"
    color: str = "#2563eb"
    image_url: str = ""
    order: int = 1
    is_published: bool = True
    created_at: str = field(default_factory=utc_now)
    updated_at: str = field(default_factory=utc_now)


@dataclass
class Lesson(_RecordMixin):
    """A lesson inside a category, with bilingual body text."""

    id: str
    category_id: str
    title_ar: str
    title_it: str = ""
    description_ar: str = ""
    description_it: str = ""
    content_ar: str = ""
    content_it: str = ""
    image_url: str = ""
    order: int = 1
    icon: str = "menu_book"
    color: str = "#2563eb"
    is_published: bool = True
    created_at: str = field(default_factory=utc_now)
    updated_at: str = field(default_factory=utc_now)


@dataclass
class Sign(_RecordMixin):
    """A road sign."""

    id: str
    name_ar: str
    name_it: str
    category: SignCategory
    description_ar: str = ""
    description_it: str = ""
    image_emoji: str = ""
    image_url: Optional[str] = None
    created_at: str = field(default_factory=utc_now)


@dataclass
class GlossaryTerm(_RecordMixin):
    """An Italian driving term with its Arabic translation."""

    id: str
    term_it: str
    term_ar: str
    definition_it: str = ""
    definition_ar: str = ""
    category: str = "general"
    created_at: str = field(default_factory=utc_now)
