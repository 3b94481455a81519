#!/usr/bin/env python3
"""
decorators.py
--------------------
Logging and error translation shared by the managers, the exporter and
the merge executor.

- DatabaseOperation: context manager timing a block, logging its outcome
  and turning SQLAlchemy errors into DatabaseError
- log_database_operation: DatabaseOperation as a method decorator (logs
  only, no translation)
- handle_db_errors: translation only
- validate_metadata: required-field check on the metadata argument
"""
from __future__ import annotations

import time
from functools import wraps
from typing import Any, Callable, Dict, List, Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from dojo.core.exceptions import DatabaseError
from dojo.core.logging_manager import DojoLogger, safe_logger
from dojo.core.validators import DataValidator


def translate_db_error(error: SQLAlchemyError) -> DatabaseError:
    """Map a SQLAlchemy error to the DatabaseError raised in its place."""
    if isinstance(error, IntegrityError):
        return DatabaseError(f"Data integrity violation: {error}")
    return DatabaseError(f"Database operation failed: {error}")


class DatabaseOperation:
    """
    Time a block of store work and log how it ended.

        with DatabaseOperation(self.logger, "create_project", {"name": name}):
            self.session.add(project)
            self.session.flush()

    Success logs '<name>_completed' with the duration and details. Any
    exception is written to the error log; SQLAlchemy errors are re-raised
    as DatabaseError unless translate is False.
    """

    def __init__(
        self,
        logger: Optional[DojoLogger],
        operation_name: str,
        details: Optional[Dict[str, Any]] = None,
        translate: bool = True,
    ) -> None:
        self.logger = safe_logger(logger)
        self.operation_name = operation_name
        self.details = details or {}
        self.translate = translate
        self._started = 0.0

    @property
    def elapsed(self) -> float:
        return time.perf_counter() - self._started

    def __enter__(self) -> "DatabaseOperation":
        self._started = time.perf_counter()
        self.logger.log_debug(f"Starting {self.operation_name}", self.details)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> bool:
        if exc_val is None:
            self.logger.log_operation(
                f"{self.operation_name}_completed",
                {"duration_seconds": self.elapsed, "success": True, **self.details},
            )
            return False

        self.logger.log_error(
            exc_val,
            {
                "operation": self.operation_name,
                "duration_seconds": self.elapsed,
                **self.details,
            },
        )
        if self.translate and isinstance(exc_val, SQLAlchemyError):
            raise translate_db_error(exc_val) from exc_val
        return False


def log_database_operation(operation_name: str):
    """
    Log a method call through DatabaseOperation using the instance's logger.

    Exceptions propagate unchanged; stack handle_db_errors to translate.
    """

    def decorator(function: Callable) -> Callable:
        @wraps(function)
        def wrapper(self, *args, **kwargs):
            details = {"args_count": len(args), "kwargs_keys": sorted(kwargs)}
            with DatabaseOperation(
                getattr(self, "logger", None), operation_name, details, translate=False
            ):
                return function(self, *args, **kwargs)

        return wrapper

    return decorator


def handle_db_errors(function: Callable) -> Callable:
    """Re-raise SQLAlchemy errors from the wrapped call as DatabaseError."""

    @wraps(function)
    def wrapper(*args, **kwargs):
        try:
            return function(*args, **kwargs)
        except SQLAlchemyError as e:
            raise translate_db_error(e) from e

    return wrapper


def validate_metadata(required_fields: List[str]):
    """
    Check required fields on a manager's metadata argument.

    The metadata is the last positional argument, or the ``metadata``
    keyword. Raises ValidationError on a missing or empty field.
    """

    def decorator(function: Callable) -> Callable:
        @wraps(function)
        def wrapper(self, *args, **kwargs):
            metadata = args[-1] if args else kwargs.get("metadata", {})
            DataValidator.validate_required_fields(metadata, required_fields)
            return function(self, *args, **kwargs)

        return wrapper

    return decorator
