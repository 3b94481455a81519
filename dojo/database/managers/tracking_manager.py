#!/usr/bin/env python3
"""
tracking_manager.py
--------------------
Manages Commitment and Reflection entities.

Both carry optional links to a project, a source entry and a person,
given either as objects or as local ids.

Usage:
    commitment_mgr = CommitmentManager(session, logger)
    commitment = commitment_mgr.create({
        "title": "Send the roadmap",
        "direction": "i_owe",
        "project": project,
        "person": alice,
    })
    commitment_mgr.mark_done(commitment)
    commitment_mgr.reopen(commitment)

    reflection_mgr = ReflectionManager(session, logger)
    reflection = reflection_mgr.create({
        "reflection_type": "periodic",
        "period_type": "week",
        "questions_answers": [{"question": "What went well?", "answer": "..."}],
    })
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
    Commitment,
    CommitmentDirection,
    CommitmentStatus,
    Entry,
    Person,
    Project,
    Reflection,
    ReflectionMood,
    ReflectionPeriodType,
    ReflectionType,
)
from .base_manager import BaseManager

# (metadata key, foreign key column, model)
LINK_CONFIGS = [
    ("project", "project_id", Project),
    ("source_entry", "source_entry_id", Entry),
    ("person", "person_id", Person),
]


def normalize_questions_answers(value: Any) -> List[Dict[str, str]]:
    """Keep {question, answer} pairs that have a question."""
    if not isinstance(value, list):
        return []
    pairs = []
    for item in value:
        if not isinstance(item, dict):
            continue
        question = DataValidator.normalize_string(item.get("question"))
        if not question:
            continue
        answer = item.get("answer")
        if not isinstance(answer, str):
            answer = ""
        pairs.append({"question": question, "answer": answer})
    return pairs


def normalize_stats(value: Any) -> Optional[Dict[str, Any]]:
    return value if isinstance(value, dict) else None


class _LinkedEntityManager(BaseManager):
    """Shared link handling for entities with optional project/entry/person."""

    def _resolve_links(self, metadata: Dict[str, Any]) -> Dict[str, Optional[int]]:
        """Map the link references present in metadata to local ids."""
        links: Dict[str, Optional[int]] = {}
        for key, column, model in LINK_CONFIGS:
            if key in metadata:
                ref = metadata[key]
            elif column in metadata:
                ref = metadata[column]
            else:
                continue

            if ref is None:
                links[column] = None
                continue
            try:
                links[column] = self._resolve_object(ref, model).id
            except (ValueError, TypeError) as e:
                raise ValidationError(f"Invalid {key}: {e}") from e
        return links

    def _create_linked(self, metadata: Dict[str, Any]) -> Any:
        fields = self._normalize_fields(metadata)
        links = self._resolve_links(metadata)
        fields.update({k: v for k, v in links.items() if v is not None})
        return self._create_entity(fields)

    def _update_linked(self, entity: Any, metadata: Dict[str, Any]) -> Any:
        entity = self._ensure_live(entity)
        self._update_scalar_fields(entity, metadata)
        for column, value in self._resolve_links(metadata).items():
            setattr(entity, column, value)
        self.touch(entity)
        self.session.flush()
        return entity


class CommitmentManager(_LinkedEntityManager):
    """Manages Commitment table operations."""

    model_class = Commitment
    field_configs = [
        ("title", DataValidator.normalize_string),
        (
            "direction",
            lambda v: DataValidator.normalize_enum(v, CommitmentDirection),
        ),
        ("status", lambda v: DataValidator.normalize_enum(v, CommitmentStatus)),
        ("importance", lambda v: DataValidator.normalize_rating(v, default=None)),
        ("urgency", lambda v: DataValidator.normalize_rating(v, default=None)),
        ("due_date", DataValidator.normalize_datetime, True),
        ("notes", DataValidator.normalize_string, True),
        ("counterparty", DataValidator.normalize_string, True),
        ("ai_generated", DataValidator.normalize_bool),
        ("completed_at", DataValidator.normalize_datetime, True),
    ]

    @handle_db_errors
    @log_database_operation("get_commitment")
    def get(
        self,
        commitment_id: Optional[int] = None,
        external_id: Optional[str] = None,
        include_deleted: bool = False,
    ) -> Optional[Commitment]:
        """Retrieve a commitment by local id or external id."""
        if commitment_id is not None:
            return self._get_by_id(commitment_id, include_deleted=include_deleted)
        if external_id is not None:
            return self.get_by_external_id(external_id, include_deleted=include_deleted)
        return None

    @handle_db_errors
    @log_database_operation("get_all_commitments")
    def get_all(
        self,
        include_deleted: bool = False,
        status: Optional[Union[CommitmentStatus, str]] = None,
        direction: Optional[Union[CommitmentDirection, str]] = None,
    ) -> List[Commitment]:
        """Retrieve commitments, optionally by status and direction."""
        filters: Dict[str, Any] = {}
        if status is not None:
            filters["status"] = DataValidator.normalize_enum(status, CommitmentStatus)
        if direction is not None:
            filters["direction"] = DataValidator.normalize_enum(
                direction, CommitmentDirection
            )
        return self._get_all(include_deleted=include_deleted, **filters)

    @handle_db_errors
    @log_database_operation("get_active_commitments")
    def get_active(self) -> List[Commitment]:
        """Open and blocked commitments, soonest due first."""
        active = [c for c in self._get_all() if c.status.is_active]
        undated = [c for c in active if c.due_date is None]
        dated = sorted(
            (c for c in active if c.due_date is not None),
            key=lambda c: DataValidator.as_utc(c.due_date),
        )
        return dated + undated

    @handle_db_errors
    @log_database_operation("create_commitment")
    @validate_metadata(["title"])
    def create(self, metadata: Dict[str, Any]) -> Commitment:
        """
        Create a new commitment.

        Args:
            metadata: Dictionary with required key:
                - title
                Optional keys:
                - direction (default i_owe), status (default open)
                - importance, urgency: 1-5 (default 3, clamped)
                - due_date, notes, counterparty, ai_generated, completed_at
                - project / project_id, source_entry / source_entry_id,
                  person / person_id
                - external_id, created_at, updated_at

        Returns:
            Created Commitment object
        """
        return self._create_linked(metadata)

    @handle_db_errors
    @log_database_operation("update_commitment")
    def update(self, commitment: Commitment, metadata: Dict[str, Any]) -> Commitment:
        """Update an existing commitment."""
        return self._update_linked(commitment, metadata)

    @handle_db_errors
    @log_database_operation("mark_commitment_done")
    def mark_done(self, commitment: Commitment) -> Commitment:
        """Mark a commitment done and stamp completed_at."""
        commitment = self._ensure_live(commitment)
        commitment.mark_done()
        self.touch(commitment)
        self.session.flush()
        return commitment

    @handle_db_errors
    @log_database_operation("reopen_commitment")
    def reopen(self, commitment: Commitment) -> Commitment:
        """Reopen a commitment and clear completed_at."""
        commitment = self._ensure_live(commitment)
        commitment.reopen()
        self.touch(commitment)
        self.session.flush()
        return commitment

    @handle_db_errors
    @log_database_operation("delete_commitment")
    def delete(
        self,
        commitment: Union[Commitment, int],
        deleted_by: Optional[str] = None,
        reason: Optional[str] = None,
        hard_delete: bool = False,
    ) -> None:
        """Delete a commitment (soft delete by default)."""
        self._delete_entity(commitment, deleted_by, reason, hard_delete)

    @handle_db_errors
    @log_database_operation("restore_commitment")
    def restore(self, commitment: Union[Commitment, int]) -> Commitment:
        """Restore a soft-deleted commitment."""
        return self._restore_entity(commitment)


class ReflectionManager(_LinkedEntityManager):
    """Manages Reflection table operations."""

    model_class = Reflection
    field_configs = [
        (
            "reflection_type",
            lambda v: DataValidator.normalize_enum(v, ReflectionType),
        ),
        (
            "period_type",
            lambda v: DataValidator.normalize_enum(v, ReflectionPeriodType),
            True,
        ),
        ("period_start", DataValidator.normalize_datetime, True),
        ("period_end", DataValidator.normalize_datetime, True),
        ("mood", lambda v: DataValidator.normalize_enum(v, ReflectionMood), True),
        ("stats", normalize_stats, True),
        ("questions_answers", normalize_questions_answers),
        ("ai_questions", DataValidator.normalize_string_list),
    ]

    @handle_db_errors
    @log_database_operation("get_reflection")
    def get(
        self,
        reflection_id: Optional[int] = None,
        external_id: Optional[str] = None,
        include_deleted: bool = False,
    ) -> Optional[Reflection]:
        """Retrieve a reflection by local id or external id."""
        if reflection_id is not None:
            return self._get_by_id(reflection_id, include_deleted=include_deleted)
        if external_id is not None:
            return self.get_by_external_id(external_id, include_deleted=include_deleted)
        return None

    @handle_db_errors
    @log_database_operation("get_all_reflections")
    def get_all(
        self,
        include_deleted: bool = False,
        reflection_type: Optional[Union[ReflectionType, str]] = None,
    ) -> List[Reflection]:
        """Retrieve reflections, optionally by type."""
        filters: Dict[str, Any] = {}
        if reflection_type is not None:
            filters["reflection_type"] = DataValidator.normalize_enum(
                reflection_type, ReflectionType
            )
        return self._get_all(include_deleted=include_deleted, **filters)

    @handle_db_errors
    @log_database_operation("create_reflection")
    def create(self, metadata: Dict[str, Any]) -> Reflection:
        """
        Create a new reflection.

        Args:
            metadata: Dictionary with optional keys:
                - reflection_type (default periodic), period_type,
                  period_start, period_end, mood
                - stats: dict
                - questions_answers: list of {question, answer}
                - ai_questions: list of strings
                - project / project_id, source_entry / source_entry_id,
                  person / person_id
                - external_id, created_at, updated_at

        Returns:
            Created Reflection object
        """
        return self._create_linked(metadata)

    @handle_db_errors
    @log_database_operation("update_reflection")
    def update(self, reflection: Reflection, metadata: Dict[str, Any]) -> Reflection:
        """Update an existing reflection."""
        return self._update_linked(reflection, metadata)

    @handle_db_errors
    @log_database_operation("delete_reflection")
    def delete(
        self,
        reflection: Union[Reflection, int],
        deleted_by: Optional[str] = None,
        reason: Optional[str] = None,
        hard_delete: bool = False,
    ) -> None:
        """Delete a reflection (soft delete by default)."""
        self._delete_entity(reflection, deleted_by, reason, hard_delete)

    @handle_db_errors
    @log_database_operation("restore_reflection")
    def restore(self, reflection: Union[Reflection, int]) -> Reflection:
        """Restore a soft-deleted reflection."""
        return self._restore_entity(reflection)
