"""
Configuration management for PatenteQuiz.

This module centralizes all configuration settings following 12-factor app principles:
- Secrets loaded from environment variables
- Sensible defaults for development
- Type hints for IDE support
- Single source of truth for all settings
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()


DEV_SECRET_KEY = "patente-dev-secret-change-me"


@dataclass
class AssessmentConfig:
    """Practice, lesson quiz and exam simulation settings."""

    difficulty_levels: tuple = ("easy", "medium", "hard")

    # Session sizes
    practice_questions: int = 10
    exam_questions: int = 30

    # Exam simulation: 30 minutes, at most 3 wrong answers
    exam_duration_seconds: int = 1800
    exam_max_errors: int = 3

    # Lesson quiz needs 70% correct; practice reports >= 70% as a good run
    lesson_pass_ratio: float = 0.7
    practice_success_ratio: float = 0.7

    # Reproducibility
    random_seed: Optional[int] = None  # Set for reproducible question order


@dataclass
class AuthConfig:
    """Credential hashing and signed token settings."""

    secret_key: str = field(
        default_factory=lambda: os.getenv("PATENTE_SECRET_KEY", DEV_SECRET_KEY)
    )
    algorithm: str = "HS256"
    token_expiry_hours: int = field(
        default_factory=lambda: int(os.getenv("TOKEN_EXPIRY_HOURS", "24"))
    )
    min_password_length: int = 6
    bcrypt_rounds: int = 10
    admin_email: str = field(
        default_factory=lambda: os.getenv("PATENTE_ADMIN_EMAIL", "admin@patente.com")
    )


@dataclass
class PathConfig:
    """File system paths - single source of truth for all directories."""

    # Base paths
    project_root: Path = field(default_factory=lambda: Path(__file__).parent.parent)
    data_dir: Path = field(
        default_factory=lambda: Path(
            os.getenv("PATENTE_DATA_DIR", str(Path(__file__).parent.parent / "data"))
        )
    )

    # Data subdirectories (computed from data_dir)
    store_dir: Path = field(init=False)
    logs_dir: Path = field(init=False)

    # Record schemas
    schemas_dir: Path = field(init=False)

    def __post_init__(self):
        """Initialize computed paths."""
        self.data_dir = Path(self.data_dir)
        self.store_dir = self.data_dir / "store"
        self.logs_dir = self.data_dir / "logs"
        self.schemas_dir = self.project_root / "schemas"

    def prepare_filesystem(self):
        """
        Create directories if they don't exist.

        Separated from __post_init__ to avoid side-effects on import.
        Call this explicitly from your app entrypoint.
        """
        for directory in [self.data_dir, self.store_dir, self.logs_dir]:
            directory.mkdir(parents=True, exist_ok=True)


@dataclass
class LoggingConfig:
    """Logging configuration."""

    log_level: str = field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO"))
    log_file: str = "patente.log"
    max_bytes: int = 5_000_000
    backup_count: int = 3


class Config:
    """
    Main configuration class. Singleton pattern.

    Usage:
        from src.config import config

        exam_size = config.assessment.exam_questions
        config.prepare_fs()
    """

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance.paths = PathConfig()
            cls._instance.assessment = AssessmentConfig()
            cls._instance.auth = AuthConfig()
            cls._instance.logging = LoggingConfig()
        return cls._instance

    def prepare_fs(self):
        """Prepare filesystem (create directories). Call once at startup."""
        self.paths.prepare_filesystem()

    def validate(self) -> list[str]:
        """
        Validate configuration and return list of errors.

        Returns:
            List of error messages (empty if valid)
        """
        errors = []
        assessment = self.assessment

        if assessment.practice_questions <= 0:
            errors.append(
                f"practice_questions must be > 0, got {assessment.practice_questions}"
            )

        if assessment.exam_questions <= 0:
            errors.append(f"exam_questions must be > 0, got {assessment.exam_questions}")

        if assessment.exam_duration_seconds <= 0:
            errors.append(
                f"exam_duration_seconds must be > 0, got {assessment.exam_duration_seconds}"
            )

        if not (0 <= assessment.exam_max_errors < assessment.exam_questions):
            errors.append(
                f"exam_max_errors must be in [0, exam_questions), got {assessment.exam_max_errors}"
            )

        if not (0 < assessment.lesson_pass_ratio <= 1):
            errors.append(
                f"lesson_pass_ratio must be in (0, 1], got {assessment.lesson_pass_ratio}"
            )

        if not (0 < assessment.practice_success_ratio <= 1):
            errors.append(
                f"practice_success_ratio must be in (0, 1], got {assessment.practice_success_ratio}"
            )

        if self.auth.min_password_length < 1:
            errors.append(
                f"min_password_length must be >= 1, got {self.auth.min_password_length}"
            )

        if self.auth.token_expiry_hours <= 0:
            errors.append(
                f"token_expiry_hours must be > 0, got {self.auth.token_expiry_hours}"
            )

        if self.auth.secret_key == DEV_SECRET_KEY:
            errors.append("PATENTE_SECRET_KEY not set in environment (using dev secret)")

        if not self.paths.schemas_dir.exists():
            errors.append(f"Schemas directory not found: {self.paths.schemas_dir}")

        return errors


# Global config instance
config = Config()
