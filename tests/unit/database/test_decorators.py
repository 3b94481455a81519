"""Tests for database decorators and the DatabaseOperation context manager."""
import pytest
from unittest.mock import MagicMock
from sqlalchemy.exc import IntegrityError, OperationalError

from dojo.core.exceptions import DatabaseError, ValidationError
from dojo.core.logging_manager import DojoLogger
from dojo.database.decorators import (
    DatabaseOperation,
    handle_db_errors,
    log_database_operation,
    validate_metadata,
)


class _Service:
    """Minimal object carrying a logger, like the managers do."""

    def __init__(self, logger=None):
        self.logger = logger

    @log_database_operation("do_work")
    def work(self, value):
        return value * 2

    @log_database_operation("fail_work")
    def fail(self):
        raise ValueError("boom")

    @validate_metadata(["name"])
    def create(self, metadata):
        return metadata["name"]

    @handle_db_errors
    def integrity(self):
        raise IntegrityError("INSERT", {}, Exception("UNIQUE constraint failed"))

    @handle_db_errors
    def operational(self):
        raise OperationalError("SELECT", {}, Exception("disk I/O error"))


class TestLogDatabaseOperation:
    """Tests for log_database_operation."""

    def test_logs_completion(self):
        """Completed calls log <name>_completed with success."""
        logger = MagicMock(spec=DojoLogger)
        assert _Service(logger).work(4) == 8

        operation, details = logger.log_operation.call_args[0]
        assert operation == "do_work_completed"
        assert details["success"] is True
        assert "duration_seconds" in details

    def test_logs_and_reraises_errors(self):
        """Exceptions are logged and propagate unchanged."""
        logger = MagicMock(spec=DojoLogger)
        with pytest.raises(ValueError):
            _Service(logger).fail()

        error, context = logger.log_error.call_args[0]
        assert isinstance(error, ValueError)
        assert context["operation"] == "fail_work"
        logger.log_operation.assert_not_called()

    def test_works_without_logger(self):
        assert _Service().work(1) == 2


class TestValidateMetadata:
    """Tests for validate_metadata."""

    def test_passes_valid_metadata(self):
        assert _Service().create({"name": "Alpha"}) == "Alpha"

    def test_rejects_missing_field(self):
        with pytest.raises(ValidationError):
            _Service().create({"description": "no name"})

    def test_reads_keyword_metadata(self):
        with pytest.raises(ValidationError):
            _Service().create(metadata={"name": ""})


class TestHandleDbErrors:
    """Tests for handle_db_errors."""

    def test_integrity_error_translated(self):
        with pytest.raises(DatabaseError, match="integrity"):
            _Service().integrity()

    def test_other_sqlalchemy_errors_translated(self):
        with pytest.raises(DatabaseError, match="operation failed"):
            _Service().operational()


class TestDatabaseOperation:
    """Tests for the DatabaseOperation context manager."""

    def test_logs_completion_with_details(self):
        logger = MagicMock(spec=DojoLogger)
        with DatabaseOperation(logger, "merge_snapshot", {"steps": 3}):
            pass

        operation, details = logger.log_operation.call_args[0]
        assert operation == "merge_snapshot_completed"
        assert details["steps"] == 3

    def test_translates_sqlalchemy_errors(self):
        logger = MagicMock(spec=DojoLogger)
        with pytest.raises(DatabaseError):
            with DatabaseOperation(logger, "merge_snapshot"):
                raise OperationalError("UPDATE", {}, Exception("disk I/O error"))
        logger.log_error.assert_called_once()

    def test_other_errors_propagate_unchanged(self):
        logger = MagicMock(spec=DojoLogger)
        with pytest.raises(KeyError):
            with DatabaseOperation(logger, "merge_snapshot"):
                raise KeyError("x")
        logger.log_error.assert_called_once()
