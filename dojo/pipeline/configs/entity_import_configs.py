#!/usr/bin/env python3
"""
entity_import_configs.py
------------------------

Declarative per-kind configuration for the snapshot import pipeline.

Each entity kind is described once: where it lives in the snapshot, which
model and manager persist it, which fields are required to create it,
which fields identify it when the snapshot carries no id, and which other
entities it references. The resolver, orderer and executor are driven
entirely by these configs.

COMMIT_ORDER fixes the order in which kinds are resolved and written:
every reference points at a kind earlier in the order.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Optional, Tuple, Type

from dojo.database.models import Commitment, Entry, Person, Project, Reflection


@dataclass(frozen=True)
class ReferenceConfig:
    """
    A reference from one snapshot record to another entity.

    Attributes:
        field: Record attribute holding the external id(s)
        wire_name: Key used in the snapshot (for messages)
        target: Kind of the referenced entity
        column: Foreign key column on the model (None for many-to-many)
        many: Whether the field holds a list of external ids
        required_on_create: A CREATE without this reference is invalid
    """

    field: str
    wire_name: str
    target: str
    column: Optional[str] = None
    many: bool = False
    required_on_create: bool = False


@dataclass(frozen=True)
class EntityImportConfig:
    """
    Configuration for importing one entity kind.

    Attributes:
        kind: Singular kind name (e.g., "project", "entry")
        snapshot_key: Array name in the snapshot (e.g., "projects")
        model: SQLAlchemy model class
        manager_attr: Key of the kind's manager in DojoDB.managers_for()
        scalar_fields: Record attributes copied onto the model as-is
        required_fields: Scalar fields that must be present to create
        fingerprint_fields: Fields identifying a record that has no id
        references: References to other kinds
        created_at_defaults: Fields that take created_at when a CREATE lacks them
    """

    kind: str
    snapshot_key: str
    model: Type
    manager_attr: str
    scalar_fields: Tuple[str, ...]
    required_fields: Tuple[str, ...] = ()
    fingerprint_fields: Tuple[str, ...] = ()
    references: Tuple[ReferenceConfig, ...] = field(default_factory=tuple)
    created_at_defaults: Tuple[str, ...] = ()

    @property
    def required_references(self) -> Tuple[ReferenceConfig, ...]:
        return tuple(r for r in self.references if r.required_on_create)


PROJECT_IMPORT_CONFIG = EntityImportConfig(
    kind="project",
    snapshot_key="projects",
    model=Project,
    manager_attr="projects",
    scalar_fields=(
        "name",
        "description",
        "type",
        "status",
        "priority",
        "owner_notes",
        "last_active_at",
    ),
    required_fields=("name",),
    fingerprint_fields=("name", "created_at"),
)

PERSON_IMPORT_CONFIG = EntityImportConfig(
    kind="person",
    snapshot_key="people",
    model=Person,
    manager_attr="people",
    scalar_fields=("name", "organization", "role", "relationship_type", "notes"),
    required_fields=("name",),
    fingerprint_fields=("name",),
)

ENTRY_IMPORT_CONFIG = EntityImportConfig(
    kind="entry",
    snapshot_key="entries",
    model=Entry,
    manager_attr="entries",
    scalar_fields=(
        "kind",
        "title",
        "occurred_at",
        "raw_content",
        "ai_summary",
        "decisions",
        "is_decision",
        "decision_rationale",
        "decision_assumptions",
        "decision_confidence",
        "decision_stakes",
        "decision_review_date",
        "decision_outcome",
        "decision_outcome_date",
        "decision_outcome_notes",
        "decision_assumption_results",
        "decision_learning",
    ),
    required_fields=("title",),
    fingerprint_fields=("title", "occurred_at"),
    references=(
        ReferenceConfig(
            "project_ref", "projectId", "project", "project_id", required_on_create=True
        ),
        ReferenceConfig("participant_refs", "participantIds", "person", many=True),
    ),
    created_at_defaults=("occurred_at",),
)

COMMITMENT_IMPORT_CONFIG = EntityImportConfig(
    kind="commitment",
    snapshot_key="commitments",
    model=Commitment,
    manager_attr="commitments",
    scalar_fields=(
        "title",
        "direction",
        "status",
        "counterparty",
        "due_date",
        "importance",
        "urgency",
        "notes",
        "ai_generated",
        "completed_at",
    ),
    required_fields=("title",),
    fingerprint_fields=("title", "created_at"),
    references=(
        ReferenceConfig("project_ref", "projectId", "project", "project_id"),
        ReferenceConfig("source_entry_ref", "sourceEntryId", "entry", "source_entry_id"),
        ReferenceConfig("person_ref", "personId", "person", "person_id"),
    ),
)

REFLECTION_IMPORT_CONFIG = EntityImportConfig(
    kind="reflection",
    snapshot_key="reflections",
    model=Reflection,
    manager_attr="reflections",
    scalar_fields=(
        "reflection_type",
        "period_type",
        "period_start",
        "period_end",
        "mood",
        "stats",
        "questions_answers",
        "ai_questions",
    ),
    fingerprint_fields=("period_type", "period_start", "created_at"),
    references=(
        ReferenceConfig("project_ref", "projectId", "project", "project_id"),
        ReferenceConfig("source_entry_ref", "sourceEntryId", "entry", "source_entry_id"),
        ReferenceConfig("person_ref", "personId", "person", "person_id"),
    ),
)

# Dependency order: every reference targets an earlier kind
IMPORT_CONFIGS: Tuple[EntityImportConfig, ...] = (
    PROJECT_IMPORT_CONFIG,
    PERSON_IMPORT_CONFIG,
    ENTRY_IMPORT_CONFIG,
    COMMITMENT_IMPORT_CONFIG,
    REFLECTION_IMPORT_CONFIG,
)

COMMIT_ORDER: Tuple[str, ...] = tuple(c.kind for c in IMPORT_CONFIGS)

CONFIG_BY_KIND: Dict[str, EntityImportConfig] = {c.kind: c for c in IMPORT_CONFIGS}
