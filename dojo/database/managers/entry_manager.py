#!/usr/bin/env python3
"""
entry_manager.py
--------------------
Manages timeline Entry entities and their participants.

Every entry belongs to exactly one project. The legacy "commitment"
entry kind is read-only history: creating or switching an entry to it
raises ValidationError.

Usage:
    entry_mgr = EntryManager(session, logger)

    entry = entry_mgr.create({
        "project": project,
        "kind": "meeting",
        "title": "1:1 with Alice",
        "participants": [alice, bob.id],
    })
    decisions = entry_mgr.get_all(project=project, kind="decision")
"""
from typing import Any, Dict, List, Optional, Union

from dojo.core.exceptions import ValidationError
from dojo.core.validators import DataValidator
from dojo.database.decorators import (
    handle_db_errors,
    log_database_operation,
    validate_metadata,
)
from dojo.database.models import (
    DecisionOutcome,
    DecisionStakes,
    Entry,
    EntryKind,
    Person,
    Project,
)
from .base_manager import BaseManager


def normalize_entry_kind(value: Any) -> Optional[EntryKind]:
    """Absent stays absent; unknown values decode to NOTE."""
    if value is None:
        return None
    return EntryKind.from_raw(value)


def _confidence(value: Any) -> Optional[int]:
    return DataValidator.normalize_rating(value, default=None)


def _decision_flag(value: Any) -> Optional[bool]:
    return DataValidator.normalize_bool(value)


class EntryManager(BaseManager):
    """Manages Entry table operations."""

    model_class = Entry
    field_configs = [
        ("kind", normalize_entry_kind),
        ("title", DataValidator.normalize_string),
        ("occurred_at", DataValidator.normalize_datetime),
        ("raw_content", DataValidator.normalize_string, True),
        ("ai_summary", DataValidator.normalize_string, True),
        ("decisions", DataValidator.normalize_string, True),
        ("is_decision", _decision_flag),
        ("decision_rationale", DataValidator.normalize_string, True),
        ("decision_assumptions", DataValidator.normalize_string, True),
        ("decision_confidence", _confidence, True),
        (
            "decision_stakes",
            lambda v: DataValidator.normalize_enum(v, DecisionStakes),
            True,
        ),
        ("decision_review_date", DataValidator.normalize_datetime, True),
        (
            "decision_outcome",
            lambda v: DataValidator.normalize_enum(v, DecisionOutcome),
            True,
        ),
        ("decision_outcome_date", DataValidator.normalize_datetime, True),
        ("decision_outcome_notes", DataValidator.normalize_string, True),
        ("decision_assumption_results", DataValidator.normalize_string, True),
        ("decision_learning", DataValidator.normalize_string, True),
    ]

    @handle_db_errors
    @log_database_operation("get_entry")
    def get(
        self,
        entry_id: Optional[int] = None,
        external_id: Optional[str] = None,
        include_deleted: bool = False,
    ) -> Optional[Entry]:
        """Retrieve an entry by local id or external id."""
        if entry_id is not None:
            return self._get_by_id(entry_id, include_deleted=include_deleted)
        if external_id is not None:
            return self.get_by_external_id(external_id, include_deleted=include_deleted)
        return None

    @handle_db_errors
    @log_database_operation("get_all_entries")
    def get_all(
        self,
        project: Optional[Union[Project, int]] = None,
        kind: Optional[Union[EntryKind, str]] = None,
        include_deleted: bool = False,
    ) -> List[Entry]:
        """Retrieve entries in timeline order, optionally by project and kind."""
        filters: Dict[str, Any] = {}
        if project is not None:
            filters["project_id"] = self._resolve_object(project, Project).id
        if kind is not None:
            filters["kind"] = EntryKind.from_raw(kind)
        return self._get_all(
            order_by="occurred_at", include_deleted=include_deleted, **filters
        )

    @handle_db_errors
    @log_database_operation("create_entry")
    @validate_metadata(["title"])
    def create(self, metadata: Dict[str, Any]) -> Entry:
        """
        Create a new timeline entry.

        Args:
            metadata: Dictionary with required keys:
                - title: Entry title
                - project or project_id: Owning Project (object or id)
                Optional keys:
                - kind: EntryKind or string (default note)
                - occurred_at, raw_content, ai_summary, decisions, is_decision
                - decision_* hypothesis and outcome fields
                - participants: List of Person objects or IDs
                - external_id, created_at, updated_at

        Returns:
            Created Entry object

        Raises:
            ValidationError: If the project is missing or the kind is legacy
        """
        fields = self._normalize_fields(metadata)
        self._reject_legacy(fields.get("kind"))

        project_ref = metadata.get("project", metadata.get("project_id"))
        if project_ref is None:
            raise ValidationError("Entry requires a project")
        try:
            project = self._resolve_object(project_ref, Project)
        except (ValueError, TypeError) as e:
            raise ValidationError(f"Invalid project for entry: {e}") from e
        fields["project_id"] = project.id

        entry = self._create_entity(fields)

        if "participants" in metadata:
            self.set_participants(entry, metadata["participants"])

        return entry

    @handle_db_errors
    @log_database_operation("update_entry")
    def update(self, entry: Entry, metadata: Dict[str, Any]) -> Entry:
        """
        Update an existing entry.

        Participants, when given, replace the current list.

        Raises:
            DatabaseError: If entry not found or is deleted
            ValidationError: If switching to the legacy kind
        """
        entry = self._ensure_live(entry)
        if "kind" in metadata:
            self._reject_legacy(normalize_entry_kind(metadata["kind"]))

        self._update_scalar_fields(entry, metadata)

        project_ref = metadata.get("project", metadata.get("project_id"))
        if project_ref is not None:
            entry.project_id = self._resolve_object(project_ref, Project).id

        if "participants" in metadata:
            self.set_participants(entry, metadata["participants"])

        self.touch(entry)
        self.session.flush()
        return entry

    def set_participants(
        self, entry: Entry, participants: List[Union[Person, int]]
    ) -> bool:
        """
        Replace the entry's participants.

        Returns:
            True if the participant set changed
        """
        resolved: List[Person] = []
        for item in participants or []:
            try:
                person = self._resolve_object(item, Person)
            except (ValueError, TypeError) as e:
                raise ValidationError(f"Unknown participant: {item!r}") from e
            if person not in resolved:
                resolved.append(person)

        if {p.id for p in entry.participants} == {p.id for p in resolved}:
            return False

        entry.participants = resolved
        self.session.flush()
        return True

    @handle_db_errors
    @log_database_operation("delete_entry")
    def delete(
        self,
        entry: Union[Entry, int],
        deleted_by: Optional[str] = None,
        reason: Optional[str] = None,
        hard_delete: bool = False,
    ) -> None:
        """
        Delete an entry (soft delete by default).

        Hard deletion keeps commitments and reflections sourced from the
        entry, with their source link cleared.
        """
        self._delete_entity(entry, deleted_by, reason, hard_delete)

    @handle_db_errors
    @log_database_operation("restore_entry")
    def restore(self, entry: Union[Entry, int]) -> Entry:
        """Restore a soft-deleted entry."""
        return self._restore_entity(entry)

    @staticmethod
    def _reject_legacy(kind: Optional[EntryKind]) -> None:
        if kind is not None and kind.is_legacy:
            raise ValidationError(
                f"Entry kind '{kind.value}' is legacy-only and cannot be written"
            )
