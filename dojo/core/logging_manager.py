#!/usr/bin/env python3
"""
logging_manager.py
--------------------
Logging for the Dojo store, the snapshot importer and the CLI.

Each DojoLogger owns two rotating files inside its log directory:

    <component>.log   every message, DEBUG and up
    errors.log        exceptions only, with context and traceback

Warnings (skipped snapshot records, dropped array items) are echoed to
stderr as well. Structured details are rendered as JSON so log lines can
be grepped by operation name and parsed back.

Components that may run without logging take an Optional[DojoLogger]
and call through safe_logger(), which substitutes a shared NullLogger.
"""
# --- Annotations ---
from __future__ import annotations

# --- Standard library imports ---
import json
import logging
import sys
import traceback
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Dict, Optional

# --- Third party imports ---
import click

FILE_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - [%(funcName)s:%(lineno)d] - %(message)s"
CONSOLE_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
ERRORS_FILE = "errors.log"


def _rotating_handler(
    path: Path, level: int, max_bytes: int, backup_count: int
) -> RotatingFileHandler:
    handler = RotatingFileHandler(
        path, maxBytes=max_bytes, backupCount=backup_count, encoding="utf-8"
    )
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(FILE_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
    return handler


def _fresh_logger(name: str, level: int) -> logging.Logger:
    """Fetch a named logger and drop handlers left by an earlier instance."""
    logger = logging.getLogger(name)
    logger.setLevel(level)
    for handler in list(logger.handlers):
        handler.close()
        logger.removeHandler(handler)
    return logger


def format_cli_error(error: Exception) -> str:
    return f"❌ {type(error).__name__}: {error}"


class DojoLogger:
    """
    File-backed logger for one component ('database', 'cli', ...).

    Attributes:
        log_dir: Directory holding the log files
        component_name: Prefix for logger names and the main log file
        main_logger: Receives operations, info, debug and warnings
        error_logger: Receives log_error output only
    """

    def __init__(
        self,
        log_dir: Path,
        component_name: str = "dojo",
        max_bytes: int = 10 * 1024 * 1024,
        backup_count: int = 5,
    ) -> None:
        """
        Args:
            log_dir: Directory for log files (created if missing)
            component_name: Component identifier
            max_bytes: Rotation threshold per file
            backup_count: Rotated files kept per log
        """
        self.log_dir = Path(log_dir)
        self.component_name = component_name
        self.log_dir.mkdir(parents=True, exist_ok=True)

        self.main_logger = _fresh_logger(f"{component_name}.operations", logging.DEBUG)
        self.main_logger.addHandler(
            _rotating_handler(
                self.log_dir / f"{component_name}.log",
                logging.DEBUG,
                max_bytes,
                backup_count,
            )
        )
        console = logging.StreamHandler()
        console.setLevel(logging.WARNING)
        console.setFormatter(logging.Formatter(CONSOLE_FORMAT, datefmt="%H:%M:%S"))
        self.main_logger.addHandler(console)

        self.error_logger = _fresh_logger(f"{component_name}.errors", logging.ERROR)
        self.error_logger.addHandler(
            _rotating_handler(
                self.log_dir / ERRORS_FILE, logging.ERROR, max_bytes, backup_count
            )
        )

    def close(self) -> None:
        """Close and detach all handlers."""
        for logger in (self.main_logger, self.error_logger):
            for handler in list(logger.handlers):
                handler.close()
                logger.removeHandler(handler)

    def _emit(
        self, level: int, label: str, message: str, details: Optional[Dict[str, Any]]
    ) -> None:
        line = f"{label} - {message}"
        if details:
            line += f": {json.dumps(details, default=str)}"
        self.main_logger.log(level, line, stacklevel=3)

    def log_operation(
        self, operation: str, details: Optional[Dict[str, Any]] = None
    ) -> None:
        """Record a named operation; details are always rendered, even if empty."""
        self.main_logger.info(
            f"OPERATION - {operation}: {json.dumps(details or {}, default=str)}",
            stacklevel=2,
        )

    def log_info(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        self._emit(logging.INFO, "INFO", message, details)

    def log_debug(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        self._emit(logging.DEBUG, "DEBUG", message, details)

    def log_warning(
        self, message: str, details: Optional[Dict[str, Any]] = None
    ) -> None:
        self._emit(logging.WARNING, "WARNING", message, details)

    def log_error(
        self, error: Exception, context: Optional[Dict[str, Any]] = None
    ) -> None:
        """
        Write an exception to errors.log.

        Three records: type and message, the context as key=value pairs
        (when given), and the active traceback.
        """
        self.error_logger.error(f"ERROR - {type(error).__name__}: {error}")
        if context:
            pairs = ", ".join(f"{key}={value}" for key, value in context.items())
            self.error_logger.error(f"Context: {pairs}")
        self.error_logger.error(f"Traceback:\n{traceback.format_exc()}")

    def log_cli_error(
        self,
        error: Exception,
        context: Optional[Dict[str, Any]] = None,
        show_traceback: bool = False,
    ) -> str:
        """
        Log an error raised under a CLI command and build its terminal message.

        Returns:
            '❌ <Type>: <message>', followed by the traceback when
            show_traceback is set

        Examples:
            >>> logger.log_cli_error(ParseError("Invalid JSON"))
            '❌ ParseError: Invalid JSON'
        """
        self.log_error(error, context or {"source": "cli"})
        message = format_cli_error(error)
        if show_traceback:
            message += f"\n\n{traceback.format_exc()}"
        return message


class NullLogger:
    """Stand-in with DojoLogger's interface that records nothing."""

    def log_operation(self, operation: str, details: Optional[Dict[str, Any]] = None) -> None:
        pass

    def log_error(self, error: Exception, context: Optional[Dict[str, Any]] = None) -> None:
        pass

    def log_debug(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        pass

    def log_info(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        pass

    def log_warning(self, message: str, details: Optional[Dict[str, Any]] = None) -> None:
        pass

    def log_cli_error(
        self,
        error: Exception,
        context: Optional[Dict[str, Any]] = None,
        show_traceback: bool = False,
    ) -> str:
        return format_cli_error(error)


_null_logger = NullLogger()


def safe_logger(logger: Optional[DojoLogger]) -> DojoLogger:
    """
    Return logger, or the shared NullLogger when it is None.

        safe_logger(self.logger).log_warning(skip.render())
    """
    return logger if logger is not None else _null_logger  # type: ignore[return-value]


def handle_cli_error(
    ctx: "click.Context",
    error: Exception,
    operation: str,
    additional_context: Optional[Dict[str, Any]] = None,
    exit_code: int = 1,
) -> None:
    """
    Report a failed CLI command and exit.

    Full details go to errors.log through the context's logger; stderr
    gets one line (plus the traceback under --verbose).

    Args:
        ctx: Click context; reads ctx.obj['logger'] and ctx.obj['verbose']
        error: The exception that ended the command
        operation: Command name recorded in the error context
        additional_context: Extra key/values for the error context
        exit_code: Process exit status
    """
    context: Dict[str, Any] = {"operation": operation, **(additional_context or {})}
    message = safe_logger(ctx.obj.get("logger")).log_cli_error(
        error, context, show_traceback=ctx.obj.get("verbose", False)
    )
    click.echo(message, err=True)
    sys.exit(exit_code)
