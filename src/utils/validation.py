"""
Schema validation utilities for PatenteQuiz records.

Provides JSON Schema validation with clear error messages, plus record-level
integrity checks that a schema cannot express (e.g. exam score <= total).
"""

import json
from pathlib import Path
from typing import Any, Dict, Optional

from jsonschema import Draft7Validator, FormatChecker, ValidationError


class ValidationResult:
    """
    Result of a validation attempt.

    Attributes:
        valid: Whether data passed validation
        errors: List of error messages
        data: The validated data
    """

    def __init__(self, valid: bool, errors: list[str], data: Any = None):
        self.valid = valid
        self.errors = errors
        self.data = data

    def __bool__(self) -> bool:
        """Allow using result in boolean context."""
        return self.valid

    def __str__(self) -> str:
        """Human-readable representation."""
        if self.valid:
            return "✓ Validation passed"
        return f"✗ Validation failed with {len(self.errors)} error(s):\n" + "\n".join(
            f"  - {error}" for error in self.errors
        )


class SchemaValidator:
    """
    JSON Schema validator for a single schema file.

    Usage:
        validator = SchemaValidator("schemas/question.schema.json")
        result = validator.validate(data)
        if not result:
            print(result.errors)
    """

    def __init__(self, schema_path: Path | str):
        """
        Initialize validator with a schema file.

        Args:
            schema_path: Path to JSON Schema file
        """
        self.schema_path = Path(schema_path)
        with open(self.schema_path, "r", encoding="utf-8") as f:
            self.schema = json.load(f)
        # Use FormatChecker to validate date-time, email, etc.
        self.validator = Draft7Validator(self.schema, format_checker=FormatChecker())

    def validate(self, data: dict) -> ValidationResult:
        """
        Validate data against schema.

        Args:
            data: Data to validate

        Returns:
            ValidationResult with validation status and any errors
        """
        errors = [self._format_error(error) for error in self.validator.iter_errors(data)]
        return ValidationResult(valid=not errors, errors=errors, data=data)

    def _format_error(self, error: ValidationError) -> str:
        """
        Convert ValidationError to human-readable message with details.

        Args:
            error: jsonschema ValidationError

        Returns:
            Formatted error message with validator and schema path
        """
        path = " -> ".join(str(p) for p in error.path) if error.path else "root"
        validator_name = getattr(error, "validator", "unknown")
        schema_path = "/".join(str(p) for p in error.schema_path)
        return (
            f"At '{path}': {error.message} "
            f"[validator={validator_name}, schema_path=/{schema_path}]"
        )


class RecordValidator:
    """
    Validates store records per collection.

    Collections without a registered schema are accepted as-is. Schemas are
    loaded lazily and cached.
    """

    def __init__(self, schemas_dir: Path | str, schema_files: Dict[str, str]):
        """
        Args:
            schemas_dir: Directory holding ``*.schema.json`` files
            schema_files: Mapping of collection name to schema file name
        """
        self.schemas_dir = Path(schemas_dir)
        self.schema_files = dict(schema_files)
        self._validators: Dict[str, SchemaValidator] = {}

    def has_schema(self, collection: str) -> bool:
        return collection in self.schema_files

    def validate(self, collection: str, record: dict) -> ValidationResult:
        """
        Validate one record of ``collection``.

        Args:
            collection: Collection name
            record: Record to validate

        Returns:
            ValidationResult
        """
        validator = self._get_validator(collection)
        if validator is None:
            return ValidationResult(valid=True, errors=[], data=record)

        result = validator.validate(record)
        extra_errors = self._integrity_errors(collection, record) if result.valid else []
        all_errors = result.errors + extra_errors
        return ValidationResult(valid=not all_errors, errors=all_errors, data=record)

    def _get_validator(self, collection: str) -> Optional[SchemaValidator]:
        if collection not in self.schema_files:
            return None
        if collection not in self._validators:
            self._validators[collection] = SchemaValidator(
                self.schemas_dir / self.schema_files[collection]
            )
        return self._validators[collection]

    def _integrity_errors(self, collection: str, record: dict) -> list[str]:
        """Checks that JSON Schema cannot express."""
        errors = []

        if collection == "exams":
            questions = record.get("questions", [])
            if len(set(questions)) != len(questions):
                errors.append("Exam question sequence contains duplicate ids")
            if record.get("total") != len(questions):
                errors.append(
                    f"Exam total ({record.get('total')}) does not match "
                    f"question count ({len(questions)})"
                )
            if record.get("score", 0) > record.get("total", 0):
                errors.append(
                    f"Exam score ({record.get('score')}) exceeds total ({record.get('total')})"
                )
            unknown = set(record.get("answers", {})) - set(questions)
            if unknown:
                errors.append(f"Answers reference questions outside the exam: {sorted(unknown)}")

        return errors
