"""
Unit tests for the error taxonomy and logging setup.
"""

import logging
from logging.handlers import RotatingFileHandler

import pytest

from src.errors import (
    EmptySelection,
    InvalidTransition,
    PatenteError,
    PersistenceWriteFailure,
    RecordNotFound,
)
from src.utils.logging_setup import PACKAGE_LOGGER, setup_logging


class TestErrors:
    def test_hierarchy(self):
        assert issubclass(EmptySelection, ValueError)
        assert issubclass(InvalidTransition, RuntimeError)
        assert issubclass(PersistenceWriteFailure, IOError)
        assert issubclass(RecordNotFound, KeyError)
        for error in (EmptySelection, InvalidTransition, PersistenceWriteFailure, RecordNotFound):
            assert issubclass(error, PatenteError)

    def test_messages(self):
        assert str(EmptySelection()) == "No questions in this selection"
        assert str(InvalidTransition("finish", "not_started")) == "Cannot finish while session is not_started"
        assert str(RecordNotFound("users", "u1")) == "users/u1 not found"
        assert "disk full" in str(PersistenceWriteFailure("exams", "disk full"))


class TestSetupLogging:
    @pytest.fixture(autouse=True)
    def clean_logger(self):
        logger = logging.getLogger(PACKAGE_LOGGER)
        saved = (list(logger.handlers), logger.level)
        logger.handlers.clear()
        if hasattr(logger, "_patente_configured"):
            del logger._patente_configured
        yield
        for handler in logger.handlers:
            handler.close()
        logger.handlers[:] = saved[0]
        logger.setLevel(saved[1])
        if hasattr(logger, "_patente_configured"):
            del logger._patente_configured

    def test_attaches_file_and_console_handlers(self, tmp_path):
        logger = setup_logging(level="debug", log_dir=tmp_path)
        assert logger.level == logging.DEBUG
        assert any(isinstance(h, RotatingFileHandler) for h in logger.handlers)
        assert len(logger.handlers) == 2

    def test_idempotent(self, tmp_path):
        setup_logging(log_dir=tmp_path)
        logger = setup_logging(log_dir=tmp_path)
        assert len(logger.handlers) == 2

    def test_module_loggers_write_to_file(self, tmp_path):
        setup_logging(level="INFO", log_dir=tmp_path)
        logging.getLogger("src.models.assessment_session").info("hello log")
        for handler in logging.getLogger(PACKAGE_LOGGER).handlers:
            handler.flush()
        assert "hello log" in (tmp_path / "patente.log").read_text(encoding="utf-8")
