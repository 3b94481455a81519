#!/usr/bin/env python3
"""
snapshot_importer.py
--------------------
Import facade: runs parse, resolve, order, merge and report as one
logical operation on a DojoDB store.

    result = SnapshotImporter(db, logger).import_snapshot(raw_text)
    print(result.to_dict())

Phases:
    1. parse_snapshot          ParseError -> nothing touched
    2. IdentityResolver        reads the store
    3. DependencyOrderer       pure
    4. MergeExecutor           one exclusive transaction
    5. ResultReporter          counts and warnings

The store's import lock is held from resolution through the merge, so the
plan cannot go stale under a concurrent import. An optional timeout is
checked between phases and on every merge step; expiring before the merge
writes nothing, expiring during it rolls back. Once the merge has begun
the import cannot be cancelled.
"""
from __future__ import annotations

import time
from pathlib import Path
from typing import TYPE_CHECKING, Optional, Union

from sqlalchemy.exc import SQLAlchemyError

from dojo.core.exceptions import ImportTimeoutError, ParseError, StorageError
from dojo.core.logging_manager import DojoLogger, safe_logger
from dojo.core.settings import ImportSettings
from dojo.database.models import utc_now

from .dependency_orderer import DependencyOrderer
from .entity_resolver import IdentityResolver
from .merge_executor import MergeExecutor
from .result_reporter import ImportResult, ResultReporter
from .snapshot import parse_snapshot

if TYPE_CHECKING:
    from dojo.database import DojoDB


class SnapshotImporter:
    """
    Merges client snapshots into a local store.

    Attributes:
        db: Target store
        logger: Logger for import operations (defaults to the store's)
        config: Import settings (defaults to the store's)
    """

    def __init__(
        self,
        db: "DojoDB",
        logger: Optional[DojoLogger] = None,
        config: Optional[ImportSettings] = None,
    ) -> None:
        self.db = db
        self.logger = logger if logger is not None else db.logger
        self.config = config or db.settings

    def import_snapshot(
        self, raw_text: Union[str, bytes], timeout: Optional[float] = None
    ) -> ImportResult:
        """
        Import one snapshot.

        Args:
            raw_text: Snapshot JSON as str or UTF-8 bytes
            timeout: Overall limit in seconds (defaults to the configured
                default_timeout; None means no limit)

        Returns:
            ImportResult

        Raises:
            ParseError: Snapshot rejected; the store was not touched
            StorageError: Merge failed and was rolled back
            ImportTimeoutError: Timeout expired; nothing was written
        """
        logger = safe_logger(self.logger)
        if timeout is None:
            timeout = self.config.default_timeout

        start = time.monotonic()
        started_at = utc_now()
        deadline = start + timeout if timeout is not None else None

        logger.log_operation("import_snapshot_start", {"timeout": timeout})

        try:
            snapshot = parse_snapshot(raw_text)
            logger.log_operation(
                "parse_snapshot",
                {
                    "schema_version": snapshot.schema_version,
                    "records": snapshot.total_records,
                    "warnings": len(snapshot.warnings),
                },
            )
            for warning in snapshot.warnings:
                logger.log_warning(warning)
            self._check_deadline(deadline, "parsing")

            with self.db.import_lock:
                with self.db.session_scope() as session:
                    plan = IdentityResolver(
                        session,
                        self.logger,
                        case_sensitive=self.config.fingerprint_case_sensitive,
                    ).resolve(snapshot)
                self._check_deadline(deadline, "identity resolution")

                ordered = DependencyOrderer(self.logger).order(plan)
                self._check_deadline(deadline, "dependency ordering")

                outcome = MergeExecutor(self.db, self.logger).execute(
                    ordered, deadline=deadline, started_at=started_at
                )
        except SQLAlchemyError as e:
            logger.log_error(e, {"operation": "import_snapshot"})
            raise StorageError(f"Store access failed: {e}") from e
        except Exception as e:
            logger.log_error(e, {"operation": "import_snapshot"})
            raise

        result = ResultReporter.build(
            snapshot, ordered, outcome, time.monotonic() - start
        )
        logger.log_operation(
            "import_snapshot_complete",
            {**result.to_dict(), "duration": result.duration},
        )
        return result

    def import_file(
        self, path: Union[str, Path], timeout: Optional[float] = None
    ) -> ImportResult:
        """
        Import a snapshot file.

        Raises:
            ParseError: If the file cannot be read
        """
        path = Path(path).expanduser()
        try:
            raw = path.read_bytes()
        except OSError as e:
            raise ParseError(f"Cannot read snapshot {path}: {e}") from e

        safe_logger(self.logger).log_info("Importing snapshot file", {"path": str(path)})
        return self.import_snapshot(raw, timeout=timeout)

    @staticmethod
    def _check_deadline(deadline: Optional[float], phase: str) -> None:
        if deadline is not None and time.monotonic() > deadline:
            raise ImportTimeoutError(
                f"Import timed out after {phase}; nothing was written"
            )
