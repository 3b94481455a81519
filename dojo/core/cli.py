#!/usr/bin/env python3
"""
cli.py
------
Shared CLI helpers for Dojo commands.

Functions:
    setup_logger: Initialize a DojoLogger for CLI operations

Usage:
    from dojo.core.cli import setup_logger

    logger = setup_logger(log_dir, "cli")
    logger.log_info("Starting import...")
"""
# --- Annotations ---
from __future__ import annotations

# --- Standard library imports ---
from pathlib import Path

# --- Local imports ---
from dojo.core.logging_manager import DojoLogger


def setup_logger(log_dir: Path, component_name: str) -> DojoLogger:
    """
    Setup logging for CLI operations.

    Creates the operations log directory if it doesn't exist and initializes
    a DojoLogger instance for the specified component.

    Args:
        log_dir: Base log directory (typically from paths.LOG_DIR)
        component_name: Component identifier for logging (e.g., 'cli')

    Returns:
        Configured DojoLogger instance
    """
    operations_log_dir = Path(log_dir) / "operations"
    operations_log_dir.mkdir(parents=True, exist_ok=True)
    return DojoLogger(operations_log_dir, component_name=component_name)
