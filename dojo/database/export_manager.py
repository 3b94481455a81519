#!/usr/bin/env python3
"""
export_manager.py
-----------------
Snapshot export for the Dojo local store.

Writes the store as a version-2 snapshot: the same JSON document the
snapshot importer reads, so another client (or this store) can merge it.

Snapshot layout:
    {
        "schemaVersion": 2,
        "exportedAt": "2026-01-05T09:00:00Z",
        "projects": [...],
        "people": [...],
        "entries": [...],
        "commitments": [...],
        "reflections": [...]
    }

Notes:
    - Keys are camelCase; timestamps are ISO-8601 UTC
    - Entities are identified by their external id; references use it too
    - Soft-deleted entities are left out unless include_deleted is set,
      in which case they carry "deletedAt"
    - Legacy-kind entries are never exported
    - File writes go to a temporary file first and are moved into place

Usage:
    exporter = ExportManager(logger=db.logger)

    with db.session_scope() as session:
        snapshot = exporter.export_snapshot(session)
        stats = exporter.export_to_file(session, Path("exports/dojo.json"))
"""
import json
import os
import tempfile
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional, Union

from sqlalchemy.orm import Session

from dojo.core.logging_manager import DojoLogger, safe_logger

from .configs import EXPORT_CONFIGS, iso
from .decorators import handle_db_errors, log_database_operation
from .models import Entry, EntryKind, utc_now

SNAPSHOT_SCHEMA_VERSION = 2


class ExportManager:
    """
    Handles snapshot export operations for the database.
    """

    def __init__(self, logger: Optional[DojoLogger] = None) -> None:
        """
        Initialize export manager.

        Args:
            logger: Optional logger for export operations
        """
        self.logger = logger

    @handle_db_errors
    @log_database_operation("export_snapshot")
    def export_snapshot(
        self, session: Session, include_deleted: bool = False
    ) -> Dict[str, Any]:
        """
        Build a snapshot document of the whole store.

        Args:
            session: SQLAlchemy session
            include_deleted: Include soft-deleted entities as tombstones

        Returns:
            Snapshot dictionary ready for json.dumps
        """
        snapshot: Dict[str, Any] = {
            "schemaVersion": SNAPSHOT_SCHEMA_VERSION,
            "exportedAt": iso(utc_now()),
        }

        for config in EXPORT_CONFIGS:
            query = session.query(config.model)
            if not include_deleted:
                query = query.filter(config.model.deleted_at.is_(None))
            if config.model is Entry:
                query = query.filter(Entry.kind != EntryKind.LEGACY_COMMITMENT)

            items = [config.serializer(obj) for obj in query.order_by(config.model.id)]
            snapshot[config.json_key] = items

        safe_logger(self.logger).log_info(
            "Snapshot exported",
            {c.json_key: len(snapshot[c.json_key]) for c in EXPORT_CONFIGS},
        )
        return snapshot

    def export_to_file(
        self,
        session: Session,
        export_file: Union[str, Path],
        include_deleted: bool = False,
    ) -> Dict[str, Any]:
        """
        Export the store to a UTF-8 JSON snapshot file.

        Args:
            session: SQLAlchemy session
            export_file: Destination path
            include_deleted: Include soft-deleted entities as tombstones

        Returns:
            Export statistics: per-kind counts, output path, duration
        """
        start = datetime.now()
        export_file = Path(export_file).expanduser()
        export_file.parent.mkdir(parents=True, exist_ok=True)

        snapshot = self.export_snapshot(session, include_deleted=include_deleted)

        fd, temp_name = tempfile.mkstemp(
            prefix=f".{export_file.name}.", suffix=".tmp", dir=export_file.parent
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(snapshot, f, ensure_ascii=False, indent=2)
                f.write("\n")
            os.replace(temp_name, export_file)
        except BaseException:
            Path(temp_name).unlink(missing_ok=True)
            raise

        stats: Dict[str, Any] = {
            c.json_key: len(snapshot[c.json_key]) for c in EXPORT_CONFIGS
        }
        stats["output_path"] = str(export_file)
        stats["duration"] = (datetime.now() - start).total_seconds()

        safe_logger(self.logger).log_operation("export_to_file", stats)
        return stats
