#!/usr/bin/env python3
"""
snapshot.py
-----------
Snapshot parsing: raw JSON text to typed, normalized records.

A snapshot is one JSON object produced by a client export:

    {
        "schemaVersion": 2,
        "projects": [...],
        "people": [...],
        "entries": [...],
        "commitments": [...],
        "reflections": [...]
    }

The parser is strict about the envelope and lenient about the records:

    - invalid JSON, a non-object document, a missing or unsupported
      schemaVersion, or an array key holding something other than a list
      raise ParseError
    - array items that are not objects are dropped with a warning
    - unknown fields are ignored, malformed scalars fall back to their
      defaults, ratings are clamped to 1-5
    - version 1 aliases (entryId, questionsAndAnswers) are accepted

Values are normalized with the same rules the entity managers apply, so
a record compares equal to the row it was created from.

The parser never touches the store.

Usage:
    snapshot = parse_snapshot(path.read_bytes())
    for record in snapshot.entries:
        print(record.key, record.title)
"""
from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, ClassVar, Dict, List, Optional, Tuple, Union

from dojo.core.exceptions import ParseError
from dojo.core.validators import DataValidator
from dojo.database.managers.person_manager import normalize_relationship_type
from dojo.database.managers.tracking_manager import (
    normalize_questions_answers,
    normalize_stats,
)
from dojo.database.models import (
    CommitmentDirection,
    CommitmentStatus,
    DecisionOutcome,
    DecisionStakes,
    EntryKind,
    ProjectStatus,
    ProjectType,
    ReflectionMood,
    ReflectionPeriodType,
    ReflectionType,
    RelationshipType,
)

SUPPORTED_SCHEMA_VERSION = 2

# Older web exports used these names
FIELD_ALIASES = {
    "entryId": "sourceEntryId",
    "questionsAndAnswers": "questionsAnswers",
}


# ----- Records -----
@dataclass(frozen=True)
class SnapshotRecord:
    """
    Fields shared by every snapshot record.

    Attributes:
        index: Position in the snapshot array
        external_id: Identifier assigned by the producing client (optional)
        created_at, updated_at, deleted_at: UTC timestamps (optional)
    """

    index: int = 0
    external_id: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    deleted_at: Optional[datetime] = None

    entity_kind: ClassVar[str] = "record"

    @property
    def key(self) -> str:
        """External id, or "<kind>[index]" for records without one."""
        return self.external_id or f"{self.entity_kind}[{self.index}]"


@dataclass(frozen=True)
class ProjectRecord(SnapshotRecord):
    entity_kind: ClassVar[str] = "project"

    name: Optional[str] = None
    description: Optional[str] = None
    type: ProjectType = ProjectType.PROJECT
    status: ProjectStatus = ProjectStatus.ACTIVE
    priority: int = 3
    owner_notes: Optional[str] = None
    last_active_at: Optional[datetime] = None


@dataclass(frozen=True)
class PersonRecord(SnapshotRecord):
    entity_kind: ClassVar[str] = "person"

    name: Optional[str] = None
    organization: Optional[str] = None
    role: Optional[str] = None
    relationship_type: Optional[RelationshipType] = None
    notes: Optional[str] = None


@dataclass(frozen=True)
class EntryRecord(SnapshotRecord):
    entity_kind: ClassVar[str] = "entry"

    project_ref: Optional[str] = None
    participant_refs: Tuple[str, ...] = ()
    kind: EntryKind = EntryKind.NOTE
    title: Optional[str] = None
    occurred_at: Optional[datetime] = None
    raw_content: Optional[str] = None
    ai_summary: Optional[str] = None
    decisions: Optional[str] = None
    is_decision: bool = False
    decision_rationale: Optional[str] = None
    decision_assumptions: Optional[str] = None
    decision_confidence: Optional[int] = None
    decision_stakes: Optional[DecisionStakes] = None
    decision_review_date: Optional[datetime] = None
    decision_outcome: Optional[DecisionOutcome] = None
    decision_outcome_date: Optional[datetime] = None
    decision_outcome_notes: Optional[str] = None
    decision_assumption_results: Optional[str] = None
    decision_learning: Optional[str] = None


@dataclass(frozen=True)
class CommitmentRecord(SnapshotRecord):
    entity_kind: ClassVar[str] = "commitment"

    project_ref: Optional[str] = None
    source_entry_ref: Optional[str] = None
    person_ref: Optional[str] = None
    title: Optional[str] = None
    direction: CommitmentDirection = CommitmentDirection.I_OWE
    status: CommitmentStatus = CommitmentStatus.OPEN
    counterparty: Optional[str] = None
    due_date: Optional[datetime] = None
    importance: int = 3
    urgency: int = 3
    notes: Optional[str] = None
    ai_generated: bool = False
    completed_at: Optional[datetime] = None


@dataclass(frozen=True)
class ReflectionRecord(SnapshotRecord):
    entity_kind: ClassVar[str] = "reflection"

    project_ref: Optional[str] = None
    source_entry_ref: Optional[str] = None
    person_ref: Optional[str] = None
    reflection_type: ReflectionType = ReflectionType.PERIODIC
    period_type: Optional[ReflectionPeriodType] = None
    period_start: Optional[datetime] = None
    period_end: Optional[datetime] = None
    mood: Optional[ReflectionMood] = None
    stats: Optional[Dict[str, Any]] = None
    questions_answers: List[Dict[str, str]] = field(default_factory=list)
    ai_questions: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class Snapshot:
    """
    A parsed snapshot.

    Attributes:
        schema_version: Declared schemaVersion
        projects, people, entries, commitments, reflections: Records in
            array order
        warnings: Parser warnings (dropped items)
    """

    schema_version: int
    projects: List[ProjectRecord] = field(default_factory=list)
    people: List[PersonRecord] = field(default_factory=list)
    entries: List[EntryRecord] = field(default_factory=list)
    commitments: List[CommitmentRecord] = field(default_factory=list)
    reflections: List[ReflectionRecord] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    def records(self, kind: str) -> List[SnapshotRecord]:
        """Records of one kind ("project", "person", ...)."""
        return getattr(self, _LAYOUTS[kind].array)

    @property
    def total_records(self) -> int:
        return sum(len(self.records(kind)) for kind in _LAYOUTS)


# ----- Field normalizers -----
def _string(value: Any) -> Optional[str]:
    return DataValidator.normalize_string(value)


def _enum(enum_class, default=None) -> Callable[[Any], Any]:
    return lambda value: DataValidator.normalize_enum(value, enum_class, default)


def _rating(default: Optional[int]) -> Callable[[Any], Optional[int]]:
    return lambda value: DataValidator.normalize_rating(value, default=default)


def _flag(value: Any) -> bool:
    return bool(DataValidator.normalize_bool(value, False))


def _refs(value: Any) -> Tuple[str, ...]:
    unique: List[str] = []
    for ref in DataValidator.normalize_string_list(value):
        if ref not in unique:
            unique.append(ref)
    return tuple(unique)


_datetime = DataValidator.normalize_datetime

# (wire key, record attribute, normalizer)
FieldMapping = Tuple[str, str, Callable[[Any], Any]]

_COMMON_FIELDS: Tuple[FieldMapping, ...] = (
    ("id", "external_id", _string),
    ("createdAt", "created_at", _datetime),
    ("updatedAt", "updated_at", _datetime),
    ("deletedAt", "deleted_at", _datetime),
)

_PROJECT_FIELDS: Tuple[FieldMapping, ...] = (
    ("name", "name", _string),
    ("description", "description", _string),
    ("type", "type", _enum(ProjectType, ProjectType.PROJECT)),
    ("status", "status", _enum(ProjectStatus, ProjectStatus.ACTIVE)),
    ("priority", "priority", _rating(3)),
    ("ownerNotes", "owner_notes", _string),
    ("lastActiveAt", "last_active_at", _datetime),
)

_PERSON_FIELDS: Tuple[FieldMapping, ...] = (
    ("name", "name", _string),
    ("organization", "organization", _string),
    ("role", "role", _string),
    ("relationshipType", "relationship_type", normalize_relationship_type),
    ("notes", "notes", _string),
)

_ENTRY_FIELDS: Tuple[FieldMapping, ...] = (
    ("projectId", "project_ref", _string),
    ("participantIds", "participant_refs", _refs),
    ("kind", "kind", EntryKind.from_raw),
    ("title", "title", _string),
    ("occurredAt", "occurred_at", _datetime),
    ("rawContent", "raw_content", _string),
    ("aiSummary", "ai_summary", _string),
    ("decisions", "decisions", _string),
    ("isDecision", "is_decision", _flag),
    ("decisionRationale", "decision_rationale", _string),
    ("decisionAssumptions", "decision_assumptions", _string),
    ("decisionConfidence", "decision_confidence", _rating(None)),
    ("decisionStakes", "decision_stakes", _enum(DecisionStakes)),
    ("decisionReviewDate", "decision_review_date", _datetime),
    ("decisionOutcome", "decision_outcome", _enum(DecisionOutcome)),
    ("decisionOutcomeDate", "decision_outcome_date", _datetime),
    ("decisionOutcomeNotes", "decision_outcome_notes", _string),
    ("decisionAssumptionResults", "decision_assumption_results", _string),
    ("decisionLearning", "decision_learning", _string),
)

_COMMITMENT_FIELDS: Tuple[FieldMapping, ...] = (
    ("projectId", "project_ref", _string),
    ("sourceEntryId", "source_entry_ref", _string),
    ("personId", "person_ref", _string),
    ("title", "title", _string),
    ("direction", "direction", _enum(CommitmentDirection, CommitmentDirection.I_OWE)),
    ("status", "status", _enum(CommitmentStatus, CommitmentStatus.OPEN)),
    ("counterparty", "counterparty", _string),
    ("dueDate", "due_date", _datetime),
    ("importance", "importance", _rating(3)),
    ("urgency", "urgency", _rating(3)),
    ("notes", "notes", _string),
    ("aiGenerated", "ai_generated", _flag),
    ("completedAt", "completed_at", _datetime),
)

_REFLECTION_FIELDS: Tuple[FieldMapping, ...] = (
    ("projectId", "project_ref", _string),
    ("sourceEntryId", "source_entry_ref", _string),
    ("personId", "person_ref", _string),
    ("reflectionType", "reflection_type", _enum(ReflectionType, ReflectionType.PERIODIC)),
    ("periodType", "period_type", _enum(ReflectionPeriodType)),
    ("periodStart", "period_start", _datetime),
    ("periodEnd", "period_end", _datetime),
    ("mood", "mood", _enum(ReflectionMood)),
    ("stats", "stats", normalize_stats),
    ("questionsAnswers", "questions_answers", normalize_questions_answers),
    ("aiQuestions", "ai_questions", DataValidator.normalize_string_list),
)


@dataclass(frozen=True)
class _KindLayout:
    array: str
    record_class: type
    fields: Tuple[FieldMapping, ...]


_LAYOUTS: Dict[str, _KindLayout] = {
    "project": _KindLayout("projects", ProjectRecord, _PROJECT_FIELDS),
    "person": _KindLayout("people", PersonRecord, _PERSON_FIELDS),
    "entry": _KindLayout("entries", EntryRecord, _ENTRY_FIELDS),
    "commitment": _KindLayout("commitments", CommitmentRecord, _COMMITMENT_FIELDS),
    "reflection": _KindLayout("reflections", ReflectionRecord, _REFLECTION_FIELDS),
}


# ----- Parsing -----
def _decode(raw_text: Union[str, bytes, bytearray]) -> str:
    if isinstance(raw_text, (bytes, bytearray)):
        try:
            return bytes(raw_text).decode("utf-8-sig")
        except UnicodeDecodeError as e:
            raise ParseError(f"Snapshot is not valid UTF-8: {e}") from e
    if not isinstance(raw_text, str):
        raise ParseError(f"Snapshot must be text, got {type(raw_text).__name__}")
    return raw_text


def _schema_version(document: Dict[str, Any]) -> int:
    if "schemaVersion" not in document:
        raise ParseError("Snapshot has no schemaVersion")

    version = document["schemaVersion"]
    if isinstance(version, bool) or not isinstance(version, int):
        raise ParseError(f"Invalid schemaVersion: {version!r}")
    if version < 1:
        raise ParseError(f"Invalid schemaVersion: {version}")
    if version > SUPPORTED_SCHEMA_VERSION:
        raise ParseError(
            f"Unsupported schemaVersion {version} "
            f"(newest supported is {SUPPORTED_SCHEMA_VERSION})"
        )
    return version


def _apply_aliases(item: Dict[str, Any]) -> Dict[str, Any]:
    resolved = dict(item)
    for alias, canonical in FIELD_ALIASES.items():
        if alias in resolved and canonical not in resolved:
            resolved[canonical] = resolved[alias]
    return resolved


def parse_record(kind: str, item: Dict[str, Any], index: int = 0) -> SnapshotRecord:
    """
    Build one typed record from a snapshot array item.

    Args:
        kind: Entity kind ("project", "person", ...)
        item: Raw JSON object
        index: Position in the snapshot array

    Returns:
        Record of the kind's class with normalized values
    """
    layout = _LAYOUTS[kind]
    item = _apply_aliases(item)

    values: Dict[str, Any] = {"index": index}
    for wire_key, attr, normalizer in _COMMON_FIELDS + layout.fields:
        if wire_key not in item:
            continue
        value = normalizer(item[wire_key])
        if value is not None:
            values[attr] = value

    created = values.get("created_at")
    updated = values.get("updated_at")
    if created is not None and updated is not None and updated < created:
        values["updated_at"] = created

    return layout.record_class(**values)


def _parse_array(
    document: Dict[str, Any], kind: str, warnings: List[str]
) -> List[SnapshotRecord]:
    array = _LAYOUTS[kind].array
    items = document.get(array)
    if items is None:
        return []
    if not isinstance(items, list):
        raise ParseError(
            f"'{array}' must be a list, got {type(items).__name__}"
        )

    records: List[SnapshotRecord] = []
    for index, item in enumerate(items):
        if not isinstance(item, dict):
            warnings.append(
                f"{array}[{index}]: expected an object, got "
                f"{type(item).__name__}; item dropped"
            )
            continue
        records.append(parse_record(kind, item, index))
    return records


def parse_snapshot(raw_text: Union[str, bytes, bytearray]) -> Snapshot:
    """
    Parse raw snapshot text.

    Args:
        raw_text: JSON document as str or UTF-8 bytes

    Returns:
        Snapshot with typed records and parser warnings

    Raises:
        ParseError: If the document cannot be imported at all
    """
    text = _decode(raw_text)
    try:
        document = json.loads(text)
    except json.JSONDecodeError as e:
        raise ParseError(f"Invalid JSON: {e}") from e

    if not isinstance(document, dict):
        raise ParseError(
            f"Snapshot must be a JSON object, got {type(document).__name__}"
        )

    version = _schema_version(document)

    warnings: List[str] = []
    arrays = {
        _LAYOUTS[kind].array: _parse_array(document, kind, warnings) for kind in _LAYOUTS
    }
    return Snapshot(schema_version=version, warnings=warnings, **arrays)
