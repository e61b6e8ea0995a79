"""
Unit tests for record schema validation.

Tests:
- ValidationResult behaviour
- SchemaValidator against the shipped schemas
- Exam record integrity checks
"""

import json

import pytest

from src.config import config
from src.models.content import Question
from src.utils.persistence import EXAMS, QUESTIONS, SCHEMA_FILES, USERS
from src.utils.validation import RecordValidator, SchemaValidator, ValidationResult


def exam_record(**overrides):
    record = {
        "id": "qs-1",
        "user_id": "user-1",
        "questions": ["q-1", "q-2", "q-3"],
        "answers": {"q-1": True, "q-2": False, "q-3": None},
        "score": 2,
        "total": 3,
        "passed": True,
        "started_at": "2024-05-01T10:00:00+00:00",
        "completed_at": "2024-05-01T10:20:00+00:00",
        "time_spent": 1200,
    }
    record.update(overrides)
    return record


class TestValidationResult:
    """Test suite for ValidationResult class."""

    def test_valid_result_is_truthy(self):
        result = ValidationResult(valid=True, errors=[])
        assert bool(result) is True

    def test_invalid_result_is_falsy(self):
        result = ValidationResult(valid=False, errors=["error"])
        assert bool(result) is False

    def test_str_lists_errors(self):
        result = ValidationResult(valid=False, errors=["first", "second"])
        text = str(result)
        assert "2 error(s)" in text
        assert "first" in text and "second" in text


class TestSchemaValidator:
    """Test suite for SchemaValidator."""

    @pytest.fixture
    def question_validator(self):
        return SchemaValidator(config.paths.schemas_dir / SCHEMA_FILES[QUESTIONS])

    def test_valid_question(self, question_validator):
        question = Question(id="q-1", text_it="Testo", text_ar="نص", correct_answer=False)
        assert question_validator.validate(question.to_dict())

    def test_missing_required_field(self, question_validator):
        result = question_validator.validate({"id": "q-1", "text_it": "Testo", "text_ar": ""})
        assert not result
        assert any("correct_answer" in err for err in result.errors)

    def test_invalid_difficulty(self, question_validator):
        question = Question(id="q-1", text_it="T", text_ar="", correct_answer=True).to_dict()
        question["difficulty"] = "extreme"
        result = question_validator.validate(question)
        assert not result
        assert any("difficulty" in err for err in result.errors)

    def test_error_message_has_path(self, question_validator):
        question = Question(id="q-1", text_it="T", text_ar="", correct_answer=True).to_dict()
        question["correct_answer"] = "yes"
        result = question_validator.validate(question)
        assert any("At 'correct_answer'" in err for err in result.errors)

    def test_custom_schema_file(self, tmp_path):
        schema = {"type": "object", "required": ["name"]}
        path = tmp_path / "thing.schema.json"
        path.write_text(json.dumps(schema))
        validator = SchemaValidator(path)
        assert validator.validate({"name": "x"})
        assert not validator.validate({})


class TestRecordValidator:
    """Test suite for RecordValidator."""

    @pytest.fixture
    def validator(self):
        return RecordValidator(config.paths.schemas_dir, SCHEMA_FILES)

    def test_collection_without_schema_is_accepted(self, validator):
        assert not validator.has_schema("posts")
        assert validator.validate("posts", {"anything": 1})

    def test_valid_exam_record(self, validator):
        assert validator.validate(EXAMS, exam_record())

    def test_duplicate_exam_questions_rejected(self, validator):
        result = validator.validate(EXAMS, exam_record(questions=["q-1", "q-1", "q-3"]))
        assert not result
        assert any("duplicate" in err for err in result.errors)

    def test_total_must_match_question_count(self, validator):
        result = validator.validate(EXAMS, exam_record(total=4, score=2))
        assert any("does not match" in err for err in result.errors)

    def test_score_cannot_exceed_total(self, validator):
        result = validator.validate(EXAMS, exam_record(score=5))
        assert not result

    def test_answers_outside_exam_rejected(self, validator):
        result = validator.validate(EXAMS, exam_record(answers={"q-9": True}))
        assert any("outside the exam" in err for err in result.errors)

    def test_user_role_enum(self, validator):
        user = {
            "id": "u1",
            "email": "a@b.it",
            "password": "hash",
            "name": "A",
            "role": "superuser",
            "banned": False,
            "streak": 0,
        }
        assert not validator.validate(USERS, user)
        user["role"] = "admin"
        assert validator.validate(USERS, user)
