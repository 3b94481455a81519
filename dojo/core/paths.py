#!/usr/bin/env python3
"""
paths.py
-------------------
Path constants and configuration for the Dojo project.

All project paths are Path objects relative to the project root, so every
component resolves files the same way.

The project structure:
    ROOT/
    ├── dojo/          # Source package
    ├── data/          # Local store and snapshots (private)
    ├── logs/          # Application logs
    └── dojo.yaml      # Optional import settings

The location of the data directory can be moved with the DOJO_DATA_DIR
environment variable (useful when the package is installed elsewhere).
"""
# --- Annotations ---
from __future__ import annotations

# --- Standard library imports ---
import os
from pathlib import Path


def _get_project_root() -> Path:
    """
    Determine project root directory.

    Assumes this file is at ROOT/dojo/core/paths.py.

    Returns:
        Path object for project root
    """
    return Path(__file__).resolve().parent.parent.parent


# ----- Project directory -----
ROOT: Path = _get_project_root()
DATA_DIR: Path = Path(os.environ.get("DOJO_DATA_DIR", ROOT / "data")).expanduser()

# ---- Store ----
DB_DIR = DATA_DIR / "store"
DB_PATH = DB_DIR / "dojo.db"

# ---- Snapshots ----
SNAPSHOT_DIR = DATA_DIR / "snapshots"

# ---- Logs ----
LOG_DIR = ROOT / "logs"

# ---- Settings ----
CONFIG_PATH = ROOT / "dojo.yaml"
