"""
Admin panel operations: content CRUD, moderation, statistics and JSON import/export.

Every call checks that the acting user is an admin, and every change writes
an AdminLog entry.
"""

from __future__ import annotations

import logging
from datetime import date, datetime, timezone
from typing import Any, Callable, Dict, List, Optional

try:
    from ..config import config
    from ..errors import PermissionDenied, RecordNotFound
    from ..models.content import Category, GlossaryTerm, Lesson, Question, Sign, new_id, utc_now
    from ..models.records import REPORT_STATUSES, AdminLog
    from ..utils.persistence import (
        ADMIN_LOGS,
        CATEGORIES,
        COLLECTIONS,
        EXAMS,
        GLOSSARY,
        LESSONS,
        POSTS,
        QUESTION_PROGRESS,
        QUESTIONS,
        REPORTS,
        SIGNS,
        USERS,
        RecordStore,
    )
    from ..utils.progress import correct_rate, pass_rate
except ImportError:
    from src.config import config
    from src.errors import PermissionDenied, RecordNotFound
    from src.models.content import Category, GlossaryTerm, Lesson, Question, Sign, new_id, utc_now
    from src.models.records import REPORT_STATUSES, AdminLog
    from src.utils.persistence import (
        ADMIN_LOGS,
        CATEGORIES,
        COLLECTIONS,
        EXAMS,
        GLOSSARY,
        LESSONS,
        POSTS,
        QUESTION_PROGRESS,
        QUESTIONS,
        REPORTS,
        SIGNS,
        USERS,
        RecordStore,
    )
    from src.utils.progress import correct_rate, pass_rate


logger = logging.getLogger(__name__)

CONTENT_TYPES = {
    CATEGORIES: Category,
    LESSONS: Lesson,
    QUESTIONS: Question,
    SIGNS: Sign,
    GLOSSARY: GlossaryTerm,
}


class AdminService:
    """
    Admin operations performed by ``admin_id``.

    Usage:
        admin = AdminService(store, admin_id=user["id"])
        lesson = admin.create(LESSONS, {"category_id": cat_id, "title_ar": "..."})
    """

    def __init__(
        self,
        store: RecordStore,
        admin_id: str,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.store = store
        self.admin_id = admin_id
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    # ---------- content CRUD ----------

    def list(self, collection: str) -> List[Dict[str, Any]]:
        self._require_admin()
        self._content_type(collection)
        records = self.store.all(collection)
        if collection in (CATEGORIES, LESSONS):
            records.sort(key=lambda r: r.get("order", 0))
        return records

    def create(self, collection: str, data: Dict[str, Any]) -> Dict[str, Any]:
        """
        Add a content record. Missing ``id`` is generated; defaults are filled
        from the content dataclass.

        Raises:
            PermissionDenied: Acting user is not an admin
            ValueError: Unknown collection or missing required fields
        """
        self._require_admin()
        content_type = self._content_type(collection)
        item = self._build(collection, content_type, {**data, "id": data.get("id") or new_id()})
        record = self.store.add(collection, item.to_dict())
        self._log("create", collection, record["id"])
        return record

    def update(self, collection: str, record_id: str, changes: Dict[str, Any]) -> Dict[str, Any]:
        self._require_admin()
        content_type = self._content_type(collection)
        changes = {k: v for k, v in changes.items() if k != "id"}
        if "updated_at" in content_type.__dataclass_fields__:
            changes["updated_at"] = utc_now()
        record = self.store.update(collection, record_id, changes)
        self._log("update", collection, record_id, ", ".join(sorted(changes)))
        return record

    def delete(self, collection: str, record_id: str) -> bool:
        self._require_admin()
        self._content_type(collection)
        removed = self.store.delete(collection, record_id)
        if removed:
            self._log("delete", collection, record_id)
        return removed

    # ---------- moderation ----------

    def set_banned(self, user_id: str, banned: bool) -> Dict[str, Any]:
        self._require_admin()
        if user_id == self.admin_id:
            raise PermissionDenied("Admins cannot ban themselves")
        record = self.store.update(USERS, user_id, {"banned": bool(banned), "updated_at": utc_now()})
        self._log("ban" if banned else "unban", USERS, user_id)
        record.pop("password", None)
        return record

    def users(self) -> List[Dict[str, Any]]:
        """All users without password hashes."""
        self._require_admin()
        users = self.store.all(USERS)
        for user in users:
            user.pop("password", None)
        return users

    def delete_post(self, post_id: str) -> Dict[str, Any]:
        self._require_admin()
        record = self.store.update(POSTS, post_id, {"is_deleted": True, "updated_at": utc_now()})
        self._log("delete", POSTS, post_id)
        return record

    def reports(self, status: Optional[str] = None) -> List[Dict[str, Any]]:
        self._require_admin()
        reports = self.store.find(REPORTS, status=status) if status else self.store.all(REPORTS)
        return sorted(reports, key=lambda r: r["created_at"], reverse=True)

    def resolve_report(self, report_id: str, status: str = "resolved") -> Dict[str, Any]:
        self._require_admin()
        if status not in REPORT_STATUSES:
            raise ValueError(f"Unknown report status: {status}")
        record = self.store.update(REPORTS, report_id, {"status": status, "reviewed_at": utc_now()})
        self._log(f"report_{status}", REPORTS, report_id)
        return record

    def logs(self, limit: Optional[int] = None) -> List[Dict[str, Any]]:
        """Audit log, newest first."""
        self._require_admin()
        entries = sorted(self.store.all(ADMIN_LOGS), key=lambda e: e["created_at"], reverse=True)
        return entries[:limit] if limit else entries

    # ---------- statistics ----------

    def dashboard_stats(self, today: Optional[date] = None) -> Dict[str, Any]:
        self._require_admin()
        today = today or self._clock().date()
        users = self.store.all(USERS)
        exams = self.store.all(EXAMS)
        answers = self.store.all(QUESTION_PROGRESS)

        return {
            "users": len(users),
            "active_today": sum(1 for u in users if u.get("last_active_date") == today.isoformat()),
            "categories": self.store.count(CATEGORIES),
            "lessons": self.store.count(LESSONS),
            "questions": self.store.count(QUESTIONS),
            "signs": self.store.count(SIGNS),
            "glossary": self.store.count(GLOSSARY),
            "posts": self.store.count(POSTS),
            "pending_reports": self.store.count(REPORTS, status="pending"),
            "exams": len(exams),
            "exams_passed": sum(1 for e in exams if e.get("passed")),
            "exam_pass_rate": pass_rate(exams),
            "total_answers": len(answers),
            "correct_answers": sum(1 for a in answers if a.get("correct")),
            "answer_accuracy": correct_rate(answers),
        }

    # ---------- import / export ----------

    def export_collection(self, collection: str) -> List[Dict[str, Any]]:
        """Records of a collection as a JSON-serialisable list (no password hashes)."""
        self._require_admin()
        if collection not in COLLECTIONS:
            raise ValueError(f"Unknown collection: {collection}")
        records = self.store.all(collection)
        if collection == USERS:
            for record in records:
                record.pop("password", None)
        return records

    def import_collection(self, collection: str, records: List[Dict[str, Any]]) -> int:
        """
        Insert or replace content records from a JSON list.

        Every record is checked before anything is written, so a bad entry
        leaves the collection untouched.

        Returns:
            Number of records written

        Raises:
            ValueError: Not a list, or a record is malformed or missing required fields
        """
        self._require_admin()
        content_type = self._content_type(collection)
        if not isinstance(records, list):
            raise ValueError("Import data must be a JSON list")

        staged = []
        for data in records:
            if not isinstance(data, dict):
                raise ValueError("Each imported record must be an object")
            record_id = data.get("id")
            existing = self.store.get(collection, record_id) if record_id else None
            payload = {**(existing or {}), **data, "id": record_id or new_id()}
            staged.append((existing is not None, self._build(collection, content_type, payload)))

        written = 0
        for exists, item in staged:
            if exists:
                self.store.update(collection, item.id, item.to_dict())
            else:
                self.store.add(collection, item.to_dict())
            written += 1

        self._log("import", collection, "*", f"{written} records")
        return written

    # ---------- internals ----------

    @staticmethod
    def _build(collection: str, content_type, payload: Dict[str, Any]):
        try:
            return content_type.from_dict(payload)
        except TypeError as e:
            raise ValueError(f"Invalid {collection} record: {e}") from e

    def _require_admin(self) -> Dict[str, Any]:
        user = self.store.get(USERS, self.admin_id)
        if user is None:
            raise RecordNotFound(USERS, self.admin_id)
        is_admin = user.get("role") == "admin" or user.get("email") == config.auth.admin_email
        if not is_admin or user.get("banned"):
            raise PermissionDenied("Admin privileges required")
        return user

    def _content_type(self, collection: str):
        if collection not in CONTENT_TYPES:
            raise ValueError(f"Not an editable content collection: {collection}")
        return CONTENT_TYPES[collection]

    def _log(self, action: str, target_type: str, target_id: str, details: str = "") -> None:
        entry = AdminLog(
            admin_id=self.admin_id,
            action=action,
            target_type=target_type,
            target_id=target_id,
            details=details,
        )
        self.store.add(ADMIN_LOGS, entry.to_dict())
        logger.info("Admin %s: %s %s/%s", self.admin_id, action, target_type, target_id)
