#!/usr/bin/env python3
"""
legacy_normalizer.py
--------------------
One-time cleanup of the legacy entry shape.

Older clients stored commitments as timeline entries with kind
"commitment". Commitments have long been their own model, so any entry
still carrying that kind is historical residue. This pass physically
deletes those entries (soft-deleted ones included):

    - their participant links are removed
    - commitments and reflections sourced from them keep existing, with
      source_entry_id cleared

It is the only place besides the owner cascade where rows are removed
for good. Running it again finds nothing to delete.

Usage:
    report = LegacyEntryNormalizer(db, logger).run()
    print(report.deleted)
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional

from sqlalchemy import String, delete, select, type_coerce, update

from dojo.core.logging_manager import DojoLogger, safe_logger

from .decorators import handle_db_errors, log_database_operation
from .models import Commitment, Entry, EntryKind, Reflection, entry_participants

if TYPE_CHECKING:
    from .manager import DojoDB


@dataclass(frozen=True)
class NormalizationReport:
    """
    Outcome of a legacy cleanup run.

    Attributes:
        scanned: Number of entries examined
        deleted: Number of legacy-kind entries removed
    """

    scanned: int
    deleted: int


class LegacyEntryNormalizer:
    """Removes entries that still carry the legacy commitment kind."""

    def __init__(self, db: "DojoDB", logger: Optional[DojoLogger] = None) -> None:
        self.db = db
        self.logger = logger

    @handle_db_errors
    @log_database_operation("normalize_legacy_entries")
    def run(self) -> NormalizationReport:
        """
        Delete all legacy-kind entries in one transaction.

        Returns:
            NormalizationReport with scanned and deleted counts
        """
        logger = safe_logger(self.logger)

        with self.db.session_scope() as session:
            # Stored kinds are read as plain strings; unknown values are left alone
            raw_kind = type_coerce(Entry.__table__.c.kind, String)
            rows = session.execute(select(Entry.__table__.c.id, raw_kind)).all()
            legacy_ids = [
                entry_id
                for entry_id, kind in rows
                if kind == EntryKind.LEGACY_COMMITMENT.value
            ]

            if legacy_ids:
                session.execute(
                    update(Commitment)
                    .where(Commitment.source_entry_id.in_(legacy_ids))
                    .values(source_entry_id=None)
                )
                session.execute(
                    update(Reflection)
                    .where(Reflection.source_entry_id.in_(legacy_ids))
                    .values(source_entry_id=None)
                )
                session.execute(
                    delete(entry_participants).where(
                        entry_participants.c.entry_id.in_(legacy_ids)
                    )
                )
                session.execute(delete(Entry).where(Entry.id.in_(legacy_ids)))

                for entry_id in legacy_ids:
                    logger.log_debug("Deleted legacy entry", {"entry_id": entry_id})

        report = NormalizationReport(scanned=len(rows), deleted=len(legacy_ids))
        logger.log_operation(
            "legacy_normalization_complete",
            {"scanned": report.scanned, "deleted": report.deleted},
        )
        return report
