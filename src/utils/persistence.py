"""
Record persistence with validation.

The storage collaborator is an explicit ``RecordStore`` passed to every
component that reads or writes data. Two implementations are provided:
an in-memory store (tests, throwaway sessions) and a JSON-file store
(one file per record under ``<root>/<collection>/``).
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
import threading
import uuid
from abc import ABC, abstractmethod
from copy import deepcopy
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

try:
    from ..config import config
    from ..errors import PersistenceWriteFailure, RecordNotFound
    from .validation import RecordValidator
except ImportError:
    from src.config import config
    from src.errors import PersistenceWriteFailure, RecordNotFound
    from src.utils.validation import RecordValidator


logger = logging.getLogger(__name__)


# Collection names
USERS = "users"
CATEGORIES = "categories"
LESSONS = "lessons"
SIGNS = "signs"
QUESTIONS = "questions"
EXAMS = "exams"
LESSON_PROGRESS = "progress"
QUESTION_PROGRESS = "question_progress"
POSTS = "posts"
COMMENTS = "comments"
LIKES = "likes"
REPORTS = "reports"
NOTIFICATIONS = "notifications"
ADMIN_LOGS = "admin_logs"
GLOSSARY = "glossary_terms"

COLLECTIONS = (
    USERS,
    CATEGORIES,
    LESSONS,
    SIGNS,
    QUESTIONS,
    EXAMS,
    LESSON_PROGRESS,
    QUESTION_PROGRESS,
    POSTS,
    COMMENTS,
    LIKES,
    REPORTS,
    NOTIFICATIONS,
    ADMIN_LOGS,
    GLOSSARY,
)

SCHEMA_FILES = {
    USERS: "user.schema.json",
    QUESTIONS: "question.schema.json",
    EXAMS: "exam_attempt.schema.json",
    LESSON_PROGRESS: "lesson_progress.schema.json",
    QUESTION_PROGRESS: "question_progress.schema.json",
}

Predicate = Callable[[Dict[str, Any]], bool]


def default_validator() -> RecordValidator:
    """Validator over the project's ``schemas/`` directory."""
    return RecordValidator(config.paths.schemas_dir, SCHEMA_FILES)


def _matches(record: Dict[str, Any], predicate: Optional[Predicate], equals: Dict[str, Any]) -> bool:
    for key, value in equals.items():
        if record.get(key) != value:
            return False
    return predicate(record) if predicate else True


class RecordStore(ABC):
    """
    Storage interface used by sessions and services.

    Records are plain dicts keyed by ``id``. Returned records are copies;
    mutating them does not change the store.
    """

    def __init__(self, validator: Optional[RecordValidator] = None, validate: bool = True):
        """
        Args:
            validator: Record validator (default: project schemas)
            validate: Whether to validate records before writing
        """
        self.validator = validator or (default_validator() if validate else None)
        self._lock = threading.RLock()

    # ---------- abstract storage primitives ----------

    @abstractmethod
    def _read_all(self, collection: str) -> List[Dict[str, Any]]:
        """Return every record of a collection."""

    @abstractmethod
    def _read(self, collection: str, record_id: str) -> Optional[Dict[str, Any]]:
        """Return one record or None."""

    @abstractmethod
    def _write(self, collection: str, record: Dict[str, Any]) -> None:
        """Insert or replace a record."""

    @abstractmethod
    def _remove(self, collection: str, record_id: str) -> bool:
        """Remove a record; return whether it existed."""

    # ---------- public API ----------

    def add(self, collection: str, record: Dict[str, Any]) -> Dict[str, Any]:
        """
        Append a record, assigning a fresh ``id`` when missing.

        Returns:
            The stored record (copy)

        Raises:
            PersistenceWriteFailure: Validation or I/O failure
        """
        record = deepcopy(record)
        if not record.get("id"):
            record["id"] = str(uuid.uuid4())
        with self._lock:
            self._check(collection, record)
            self._safe_write(collection, record)
        return deepcopy(record)

    def get(self, collection: str, record_id: str) -> Optional[Dict[str, Any]]:
        with self._lock:
            record = self._read(collection, record_id)
        return deepcopy(record) if record is not None else None

    def find(
        self,
        collection: str,
        predicate: Optional[Predicate] = None,
        **equals: Any,
    ) -> List[Dict[str, Any]]:
        """
        Records matching every ``field=value`` pair and the optional predicate.

        Example:
            store.find(QUESTION_PROGRESS, user_id="u1", correct=False)
        """
        with self._lock:
            records = self._read_all(collection)
        return [deepcopy(r) for r in records if _matches(r, predicate, equals)]

    def first(self, collection: str, predicate: Optional[Predicate] = None, **equals: Any):
        matches = self.find(collection, predicate, **equals)
        return matches[0] if matches else None

    def all(self, collection: str) -> List[Dict[str, Any]]:
        return self.find(collection)

    def count(self, collection: str, predicate: Optional[Predicate] = None, **equals: Any) -> int:
        return len(self.find(collection, predicate, **equals))

    def update(self, collection: str, record_id: str, changes: Dict[str, Any]) -> Dict[str, Any]:
        """
        Merge ``changes`` into an existing record.

        Raises:
            RecordNotFound: No record with that id
            PersistenceWriteFailure: Validation or I/O failure
        """
        with self._lock:
            current = self._read(collection, record_id)
            if current is None:
                raise RecordNotFound(collection, record_id)
            updated = {**deepcopy(current), **deepcopy(changes), "id": record_id}
            self._check(collection, updated)
            self._safe_write(collection, updated)
        return deepcopy(updated)

    def delete(self, collection: str, record_id: str) -> bool:
        with self._lock:
            return self._remove(collection, record_id)

    def delete_where(self, collection: str, predicate: Optional[Predicate] = None, **equals: Any) -> int:
        with self._lock:
            doomed = [r["id"] for r in self._read_all(collection) if _matches(r, predicate, equals)]
            for record_id in doomed:
                self._remove(collection, record_id)
        return len(doomed)

    # ---------- internals ----------

    def _check(self, collection: str, record: Dict[str, Any]) -> None:
        if self.validator is None:
            return
        try:
            result = self.validator.validate(collection, record)
        except (OSError, ValueError) as e:
            # Schema file missing or unreadable
            raise PersistenceWriteFailure(collection, f"validator unavailable: {e}") from e
        if not result.valid:
            raise PersistenceWriteFailure(collection, "; ".join(result.errors))

    def _safe_write(self, collection: str, record: Dict[str, Any]) -> None:
        try:
            self._write(collection, record)
        except PersistenceWriteFailure:
            raise
        except (OSError, TypeError, ValueError) as e:
            raise PersistenceWriteFailure(collection, str(e)) from e


class InMemoryRecordStore(RecordStore):
    """Dict-backed store. Insertion order is preserved per collection."""

    def __init__(self, validator: Optional[RecordValidator] = None, validate: bool = True):
        super().__init__(validator=validator, validate=validate)
        self._data: Dict[str, Dict[str, Dict[str, Any]]] = {}

    def _read_all(self, collection: str) -> List[Dict[str, Any]]:
        return list(self._data.get(collection, {}).values())

    def _read(self, collection: str, record_id: str) -> Optional[Dict[str, Any]]:
        return self._data.get(collection, {}).get(record_id)

    def _write(self, collection: str, record: Dict[str, Any]) -> None:
        self._data.setdefault(collection, {})[record["id"]] = record

    def _remove(self, collection: str, record_id: str) -> bool:
        return self._data.get(collection, {}).pop(record_id, None) is not None


class JsonFileRecordStore(RecordStore):
    """
    Stores each record as ``<root>/<collection>/<id>.json``.

    Features:
    - Atomic writes (temp file + replace)
    - Records listed in creation order (by file mtime, then name)
    - Unreadable files are skipped with a warning
    """

    def __init__(
        self,
        root: Path | str = None,
        validator: Optional[RecordValidator] = None,
        validate: bool = True,
    ):
        """
        Args:
            root: Store directory (default: config.paths.store_dir)
        """
        super().__init__(validator=validator, validate=validate)
        self.root = Path(root) if root else config.paths.store_dir
        self.root.mkdir(parents=True, exist_ok=True)

    def _collection_dir(self, collection: str) -> Path:
        return self.root / collection

    def _path(self, collection: str, record_id: str) -> Path:
        return self._collection_dir(collection) / f"{record_id}.json"

    def _load(self, filepath: Path) -> Optional[Dict[str, Any]]:
        try:
            with open(filepath, "r", encoding="utf-8") as f:
                return json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.warning("Failed to load %s: %s", filepath, e)
            return None

    def _read_all(self, collection: str) -> List[Dict[str, Any]]:
        directory = self._collection_dir(collection)
        if not directory.exists():
            return []
        files = sorted(directory.glob("*.json"), key=lambda p: (p.stat().st_mtime_ns, p.name))
        records = (self._load(p) for p in files)
        return [r for r in records if r is not None]

    def _read(self, collection: str, record_id: str) -> Optional[Dict[str, Any]]:
        filepath = self._path(collection, record_id)
        if not filepath.exists():
            return None
        return self._load(filepath)

    def _write(self, collection: str, record: Dict[str, Any]) -> None:
        directory = self._collection_dir(collection)
        directory.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(dir=directory, suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(record, f, indent=2, ensure_ascii=False)
            os.replace(tmp_path, self._path(collection, record["id"]))
        except BaseException:
            if os.path.exists(tmp_path):
                os.remove(tmp_path)
            raise

    def _remove(self, collection: str, record_id: str) -> bool:
        filepath = self._path(collection, record_id)
        if not filepath.exists():
            return False
        filepath.unlink()
        return True
