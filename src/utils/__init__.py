"""
Utility modules for PatenteQuiz.

This module contains utility functions:
- validation: JSON Schema validation of stored records
- persistence: Record stores (in-memory, JSON files)
- progress: Learner statistics helpers
- logging_setup: Application logging configuration
"""

from .validation import RecordValidator, SchemaValidator, ValidationResult
from .persistence import (
    InMemoryRecordStore,
    JsonFileRecordStore,
    RecordStore,
    default_validator,
)
from .progress import (
    accuracy_by_category,
    correct_rate,
    learner_level,
    next_streak,
    pass_rate,
    readiness,
)
from .logging_setup import setup_logging

__all__ = [
    # Validation
    "RecordValidator",
    "SchemaValidator",
    "ValidationResult",
    # Persistence
    "InMemoryRecordStore",
    "JsonFileRecordStore",
    "RecordStore",
    "default_validator",
    # Progress analytics
    "accuracy_by_category",
    "correct_rate",
    "learner_level",
    "next_streak",
    "pass_rate",
    "readiness",
    # Logging
    "setup_logging",
]
