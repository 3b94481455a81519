#!/usr/bin/env python3
"""
merge_executor.py
-----------------
Applies an ordered plan to the local store in one exclusive transaction.

    CREATE  new row carrying the snapshot's external id; its local id goes
            into the translation table at once (flush), so later kinds in
            the same batch can point at it
    UPDATE  snapshot values win for scalar fields, participants are
            replaced, foreign keys are rewritten through the translation
            table; a required value the snapshot lacks keeps the local one

Tombstoned local rows are never modified by an import: an UPDATE aimed at
one counts as unchanged. A snapshot tombstone (deletedAt) soft-deletes the
row it creates or updates.

updated_at moves only when something actually changed, to the snapshot's
updatedAt (or the import start time), never before created_at.

Any storage failure, or the deadline passing, rolls the whole transaction
back and raises StorageError (ImportTimeoutError for the deadline).

Usage:
    outcome = MergeExecutor(db, logger).execute(ordered_plan)
    print(outcome.created, outcome.write_log)
"""
from __future__ import annotations

import time
from copy import deepcopy
from dataclasses import dataclass, field
from datetime import datetime
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Tuple

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from dojo.core.exceptions import DojoError, ImportTimeoutError, StorageError
from dojo.core.logging_manager import DojoLogger, safe_logger
from dojo.database.decorators import DatabaseOperation
from dojo.database.managers import BaseManager
from dojo.database.models import utc_now

from .configs import CONFIG_BY_KIND, EntityImportConfig
from .dependency_orderer import OrderedPlan, Translation
from .entity_resolver import Action, PlannedAction

if TYPE_CHECKING:
    from dojo.database import DojoDB

IMPORT_ACTOR = "import"

# (kind, action, local id)
WriteLogEntry = Tuple[str, str, int]


@dataclass
class MergeOutcome:
    """
    Result of a committed merge.

    Attributes:
        created, updated, unchanged: kind -> count
        write_log: Every write in commit order
        translation: kind -> {external id -> local id} after the merge
    """

    created: Dict[str, int] = field(default_factory=dict)
    updated: Dict[str, int] = field(default_factory=dict)
    unchanged: Dict[str, int] = field(default_factory=dict)
    write_log: List[WriteLogEntry] = field(default_factory=list)
    translation: Translation = field(default_factory=dict)

    def bump(self, counts: Dict[str, int], kind: str) -> None:
        counts[kind] = counts.get(kind, 0) + 1


class MergeExecutor:
    """Writes an ordered plan into the store."""

    def __init__(self, db: "DojoDB", logger: Optional[DojoLogger] = None) -> None:
        self.db = db
        self.logger = logger

    def execute(
        self,
        plan: OrderedPlan,
        deadline: Optional[float] = None,
        started_at: Optional[datetime] = None,
    ) -> MergeOutcome:
        """
        Run the merge.

        Args:
            plan: Output of DependencyOrderer.order
            deadline: time.monotonic() value after which the merge aborts
            started_at: Import start time, used when a record has no updatedAt

        Returns:
            MergeOutcome of the committed transaction

        Raises:
            StorageError: On any storage failure (everything rolled back)
            ImportTimeoutError: When the deadline passes (everything rolled back)
        """
        started_at = started_at or utc_now()
        outcome = MergeOutcome(translation=deepcopy(plan.translation_seed))
        logger = safe_logger(self.logger)

        try:
            with DatabaseOperation(
                self.logger, "merge_snapshot", {"steps": len(plan.steps)}
            ):
                with self.db.import_transaction() as session:
                    managers = self.db.managers_for(session)
                    for step in plan.steps:
                        self._check_deadline(deadline)
                        self._apply(session, managers, step, outcome, started_at)
                    self._check_deadline(deadline)
        except StorageError:
            raise
        except (DojoError, SQLAlchemyError, OSError) as e:
            raise StorageError(f"Merge rolled back: {e}") from e

        logger.log_operation(
            "merge_complete",
            {
                "created": outcome.created,
                "updated": outcome.updated,
                "unchanged": outcome.unchanged,
                "writes": len(outcome.write_log),
            },
        )
        return outcome

    @staticmethod
    def _check_deadline(deadline: Optional[float]) -> None:
        if deadline is not None and time.monotonic() > deadline:
            raise ImportTimeoutError("Import timed out during merge; rolled back")

    # -------------------------------------------------------------------------
    # Steps
    # -------------------------------------------------------------------------

    def _apply(
        self,
        session: Session,
        managers: Dict[str, BaseManager],
        step: PlannedAction,
        outcome: MergeOutcome,
        started_at: datetime,
    ) -> None:
        config = CONFIG_BY_KIND[step.kind]
        manager = managers[config.manager_attr]

        if step.action is Action.CREATE:
            entity = self._create(manager, config, step, outcome, started_at)
            outcome.bump(outcome.created, step.kind)
            outcome.write_log.append((step.kind, Action.CREATE.value, entity.id))
            if step.record.external_id:
                outcome.translation.setdefault(step.kind, {})[
                    step.record.external_id
                ] = entity.id
            return

        entity = session.get(config.model, step.local_id)
        if entity is None:
            raise StorageError(
                f"{config.model.__name__} id={step.local_id} vanished during import"
            )

        if entity.is_deleted:
            safe_logger(self.logger).log_debug(
                "Tombstoned target left untouched",
                {"kind": step.kind, "id": entity.id, "key": step.record.key},
            )
            outcome.bump(outcome.unchanged, step.kind)
            return

        if self._update(manager, config, entity, step, outcome, started_at):
            outcome.bump(outcome.updated, step.kind)
            outcome.write_log.append((step.kind, Action.UPDATE.value, entity.id))
        else:
            outcome.bump(outcome.unchanged, step.kind)

    def _create(
        self,
        manager: BaseManager,
        config: EntityImportConfig,
        step: PlannedAction,
        outcome: MergeOutcome,
        started_at: datetime,
    ) -> Any:
        record = step.record
        metadata: Dict[str, Any] = {}
        for name in config.scalar_fields:
            value = getattr(record, name)
            if value is not None:
                metadata[name] = value

        created_at = record.created_at or started_at
        metadata["created_at"] = created_at
        metadata["updated_at"] = record.updated_at or started_at
        if record.external_id:
            metadata["external_id"] = record.external_id
        for name in config.created_at_defaults:
            metadata.setdefault(name, created_at)
        if record.deleted_at is not None:
            metadata.update(self._tombstone_fields(record.deleted_at))

        for ref in config.references:
            value = getattr(record, ref.field)
            if ref.many:
                metadata["participants"] = self._translate_many(
                    outcome, ref.target, value
                )
            elif value is not None:
                metadata[ref.column] = outcome.translation[ref.target][value]

        return manager.create(metadata)

    def _update(
        self,
        manager: BaseManager,
        config: EntityImportConfig,
        entity: Any,
        step: PlannedAction,
        outcome: MergeOutcome,
        started_at: datetime,
    ) -> bool:
        """Apply the record to a live entity; True if anything changed."""
        record = step.record
        columns = config.model.__table__.c

        values: Dict[str, Any] = {}
        for name in config.scalar_fields:
            value = getattr(record, name)
            if value is None and not columns[name].nullable:
                continue
            values[name] = value

        participants: Optional[List[int]] = None
        for ref in config.references:
            value = getattr(record, ref.field)
            if ref.many:
                participants = self._translate_many(outcome, ref.target, value)
            elif value is not None:
                values[ref.column] = outcome.translation[ref.target][value]
            elif columns[ref.column].nullable:
                values[ref.column] = None

        changed = manager.assign_fields(entity, values)

        if participants is not None and manager.set_participants(entity, participants):
            changed.append("participants")

        if record.deleted_at is not None:
            for name, value in self._tombstone_fields(record.deleted_at).items():
                setattr(entity, name, value)
            changed.append("deleted_at")

        if not changed:
            return False

        manager.touch(entity, record.updated_at or started_at)
        manager.session.flush()
        safe_logger(self.logger).log_debug(
            f"Updated {config.model.__name__}",
            {"id": entity.id, "fields": changed, "matched_by": step.matched_by},
        )
        return True

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    @staticmethod
    def _translate_many(outcome: MergeOutcome, target: str, refs) -> List[int]:
        return [outcome.translation[target][ref] for ref in refs or ()]

    @staticmethod
    def _tombstone_fields(deleted_at: datetime) -> Dict[str, Any]:
        return {
            "deleted_at": deleted_at,
            "deleted_by": IMPORT_ACTOR,
            "deletion_reason": "Deleted on another client",
        }
