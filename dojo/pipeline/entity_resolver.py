#!/usr/bin/env python3
"""
entity_resolver.py
------------------
Identity resolution: decide, for every snapshot record, whether it
creates a new local entity, updates an existing one, or is skipped.

Two id spaces meet here. Snapshot records carry the producing client's
external id (when they carry one at all); local rows have their own
integer ids plus the external id they were created or imported with.

Rules, per kind and in array order:

    1. external id known locally (tombstones included) -> UPDATE
    2. external id repeated within the same array       -> SKIP
    3. external id unknown locally                      -> CREATE
    4. no external id: fingerprint match
         - fingerprint incomplete or no candidate       -> CREATE
         - one candidate, fingerprint unique in batch   -> UPDATE
         - otherwise (ambiguous)                        -> CREATE + warning
    5. a CREATE lacking required data, or any entry
       still carrying the legacy kind                   -> SKIP

Local rows already claimed by an external id match are not offered as
fingerprint candidates, so two records never resolve to the same row.

The resolver only reads. The same store and snapshot always produce the
same plan.

Usage:
    with db.session_scope() as session:
        plan = IdentityResolver(session, logger).resolve(snapshot)
"""
from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional, Set, Tuple, Type

from sqlalchemy import select
from sqlalchemy.orm import Session

from dojo.core.exceptions import DojoError, ValidationError
from dojo.core.logging_manager import DojoLogger, safe_logger
from dojo.core.validators import DataValidator

from .configs import COMMIT_ORDER, CONFIG_BY_KIND, EntityImportConfig
from .snapshot import EntryRecord, Snapshot, SnapshotRecord

Fingerprint = Tuple[Any, ...]


class Action(str, Enum):
    """What the merge does with a snapshot record."""

    CREATE = "create"
    UPDATE = "update"
    SKIP = "skip"


@dataclass(frozen=True)
class PlannedAction:
    """
    Resolution outcome for one record.

    Attributes:
        kind: Entity kind
        record: The snapshot record
        action: CREATE or UPDATE
        local_id: Target row for UPDATE
        matched_by: "external_id" or "fingerprint" for UPDATE
    """

    kind: str
    record: SnapshotRecord
    action: Action
    local_id: Optional[int] = None
    matched_by: Optional[str] = None


@dataclass(frozen=True)
class SkipRecord:
    """
    A record left out of the merge.

    Attributes:
        kind: Entity kind
        key: Record key (external id or "<kind>[index]")
        error: Exception class describing the reason
        message: Human readable reason
        external_id: External id of the skipped record, if any
    """

    kind: str
    key: str
    error: Type[DojoError]
    message: str
    external_id: Optional[str] = None

    def render(self) -> str:
        return f"Skipped {self.kind} '{self.key}' ({self.error.__name__}): {self.message}"


@dataclass
class ResolutionPlan:
    """
    Output of identity resolution.

    Attributes:
        actions: kind -> planned CREATE/UPDATE actions in array order
        skipped: Records skipped during resolution
        warnings: Non-fatal notes (ambiguous fingerprints)
        local_ids: kind -> {external id -> local id} for every local row
    """

    actions: Dict[str, List[PlannedAction]] = field(default_factory=dict)
    skipped: List[SkipRecord] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    local_ids: Dict[str, Dict[str, int]] = field(default_factory=dict)

    def count(self, action: Action) -> int:
        return sum(
            1 for actions in self.actions.values() for a in actions if a.action is action
        )


class IdentityResolver:
    """Maps snapshot records onto local entities."""

    def __init__(
        self,
        session: Session,
        logger: Optional[DojoLogger] = None,
        case_sensitive: bool = True,
    ) -> None:
        """
        Args:
            session: Read session on the local store
            logger: Optional logger
            case_sensitive: Compare fingerprint strings exactly (True) or
                case-folded (False)
        """
        self.session = session
        self.logger = logger
        self.case_sensitive = case_sensitive

    def resolve(self, snapshot: Snapshot) -> ResolutionPlan:
        """
        Build the resolution plan for a parsed snapshot.

        Args:
            snapshot: Parsed snapshot

        Returns:
            ResolutionPlan
        """
        plan = ResolutionPlan()
        for kind in COMMIT_ORDER:
            self._resolve_kind(CONFIG_BY_KIND[kind], snapshot.records(kind), plan)

        safe_logger(self.logger).log_operation(
            "resolve_identities",
            {
                "create": plan.count(Action.CREATE),
                "update": plan.count(Action.UPDATE),
                "skipped": len(plan.skipped),
                "warnings": len(plan.warnings),
            },
        )
        return plan

    # -------------------------------------------------------------------------
    # Per-kind resolution
    # -------------------------------------------------------------------------

    def _resolve_kind(
        self,
        config: EntityImportConfig,
        records: List[SnapshotRecord],
        plan: ResolutionPlan,
    ) -> None:
        kind = config.kind
        rows = self._load_rows(config)

        by_external_id = {
            row["external_id"]: row["id"] for row in rows if row["external_id"]
        }
        plan.local_ids[kind] = by_external_id

        claimed = {
            by_external_id[r.external_id]
            for r in records
            if r.external_id and r.external_id in by_external_id
        }
        candidates: Dict[Fingerprint, List[int]] = {}
        for row in rows:
            if row["id"] in claimed:
                continue
            fingerprint = self._fingerprint(config, row)
            if fingerprint is not None:
                candidates.setdefault(fingerprint, []).append(row["id"])

        batch_counts = Counter(
            fp
            for fp in (
                self._fingerprint(config, self._record_values(config, r))
                for r in records
                if not r.external_id
            )
            if fp is not None
        )

        seen: Set[str] = set()
        planned: List[PlannedAction] = []

        for record in records:
            if record.external_id:
                if record.external_id in seen:
                    plan.skipped.append(
                        self._skip(
                            kind,
                            record,
                            ValidationError,
                            f"duplicate id '{record.external_id}' in snapshot",
                        )
                    )
                    continue
                seen.add(record.external_id)
                local_id = by_external_id.get(record.external_id)
                if local_id is not None:
                    action = PlannedAction(
                        kind, record, Action.UPDATE, local_id, "external_id"
                    )
                else:
                    action = PlannedAction(kind, record, Action.CREATE)
            else:
                action = self._match_fingerprint(
                    config, record, candidates, batch_counts, plan
                )

            reason = self._invalid_reason(config, action)
            if reason is not None:
                plan.skipped.append(self._skip(kind, record, ValidationError, reason))
                continue

            planned.append(action)

        plan.actions[kind] = planned

    def _match_fingerprint(
        self,
        config: EntityImportConfig,
        record: SnapshotRecord,
        candidates: Dict[Fingerprint, List[int]],
        batch_counts: Counter,
        plan: ResolutionPlan,
    ) -> PlannedAction:
        fingerprint = self._fingerprint(config, self._record_values(config, record))
        if fingerprint is None:
            return PlannedAction(config.kind, record, Action.CREATE)

        matches = candidates.get(fingerprint, [])
        if not matches:
            return PlannedAction(config.kind, record, Action.CREATE)

        if len(matches) == 1 and batch_counts[fingerprint] == 1:
            return PlannedAction(
                config.kind, record, Action.UPDATE, matches[0], "fingerprint"
            )

        warning = (
            f"Ambiguous match for {config.kind} '{record.key}': "
            f"{len(matches)} local candidate(s), "
            f"{batch_counts[fingerprint]} snapshot record(s) share its fingerprint; "
            "created as new"
        )
        plan.warnings.append(warning)
        safe_logger(self.logger).log_warning(warning)
        return PlannedAction(config.kind, record, Action.CREATE)

    @staticmethod
    def _invalid_reason(
        config: EntityImportConfig, action: PlannedAction
    ) -> Optional[str]:
        record = action.record
        if isinstance(record, EntryRecord) and record.kind.is_legacy:
            return f"entry kind '{record.kind.value}' is legacy-only"

        if action.action is not Action.CREATE:
            return None

        for name in config.required_fields:
            if getattr(record, name) is None:
                return f"required field '{name}' missing"
        for ref in config.required_references:
            if getattr(record, ref.field) is None:
                return f"required reference '{ref.wire_name}' missing"
        return None

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    def _load_rows(self, config: EntityImportConfig) -> List[Dict[str, Any]]:
        model = config.model
        columns = ["id", "external_id", *config.fingerprint_fields]
        query = select(*(getattr(model, c) for c in columns)).order_by(model.id)
        return [dict(zip(columns, row)) for row in self.session.execute(query)]

    @staticmethod
    def _record_values(
        config: EntityImportConfig, record: SnapshotRecord
    ) -> Dict[str, Any]:
        return {name: getattr(record, name) for name in config.fingerprint_fields}

    def _fingerprint(
        self, config: EntityImportConfig, values: Dict[str, Any]
    ) -> Optional[Fingerprint]:
        """Comparable tuple of the fingerprint fields, or None if any is missing."""
        parts: List[Any] = []
        for name in config.fingerprint_fields:
            value = values.get(name)
            if value is None:
                return None
            if isinstance(value, datetime):
                value = DataValidator.as_utc(value)
            elif isinstance(value, Enum):
                value = value.value
            elif isinstance(value, str):
                value = value.strip()
                if not self.case_sensitive:
                    value = value.casefold()
            parts.append(value)
        return tuple(parts)

    def _skip(
        self,
        kind: str,
        record: SnapshotRecord,
        error: Type[DojoError],
        message: str,
    ) -> SkipRecord:
        skip = SkipRecord(kind, record.key, error, message, record.external_id)
        safe_logger(self.logger).log_warning(skip.render())
        return skip
