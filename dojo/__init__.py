"""
Dojo Package
============

Local store and snapshot import engine for a personal leadership tracker
(projects, timeline entries, commitments, reflections and people).

Main Components:
    - database: SQLAlchemy ORM models, entity managers, export and the
      legacy entry cleanup
    - pipeline: Snapshot import (parse -> resolve -> order -> merge -> report)
    - core: Logging, validation, paths, settings, exceptions
    - cli: Command-line entry point

Example Usage:
    >>> from dojo.database import DojoDB
    >>> from dojo.pipeline import SnapshotImporter
    >>> db = DojoDB(db_path="~/dojo.db")
    >>> result = SnapshotImporter(db).import_snapshot(raw_text)
    >>> result.to_dict()["created"]
    {'project': 1, 'entry': 2}
"""

__version__ = "1.0.0"

from dojo.database.manager import DojoDB
from dojo.pipeline.snapshot_importer import SnapshotImporter

__all__ = [
    "DojoDB",
    "SnapshotImporter",
]
