#!/usr/bin/env python3
"""
snapshot_export_configs.py
--------------------------

Configuration-driven snapshot export for database entities.

Each entity kind is described by an EntityExportConfig naming its key in
the snapshot, its model and a serializer producing the camelCase wire
shape that the snapshot importer (and the other clients) read back.
References are written as external ids.
"""
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Dict, Optional, Type

from dojo.core.validators import DataValidator

from ..models import Commitment, Entry, Person, Project, Reflection


@dataclass
class EntityExportConfig:
    """
    Configuration for exporting an entity type to a snapshot.

    Attributes:
        json_key: Array name in the snapshot (e.g., "projects", "people")
        model: SQLAlchemy model class to query
        serializer: Function that takes an entity instance and returns a dict
    """

    json_key: str
    model: Type
    serializer: Callable[[Any], Dict[str, Any]]


def iso(value: Optional[datetime]) -> Optional[str]:
    """ISO-8601 UTC timestamp with a trailing Z, or None."""
    if value is None:
        return None
    return DataValidator.as_utc(value).isoformat().replace("+00:00", "Z")


def _enum(value: Any) -> Optional[str]:
    return value.value if value is not None else None


def _ref(entity: Any) -> Optional[str]:
    return entity.external_id if entity is not None else None


def _audit(entity: Any) -> Dict[str, Any]:
    data = {
        "createdAt": iso(entity.created_at),
        "updatedAt": iso(entity.updated_at),
    }
    if entity.deleted_at is not None:
        data["deletedAt"] = iso(entity.deleted_at)
    return data


# ========================================
# Serializer Functions
# ========================================


def _serialize_project(project: Project) -> Dict[str, Any]:
    """Serialize Project entity."""
    return {
        "id": project.external_id,
        "name": project.name,
        "description": project.description,
        "type": _enum(project.type),
        "status": _enum(project.status),
        "priority": project.priority,
        "ownerNotes": project.owner_notes,
        "lastActiveAt": iso(project.last_active_at),
        **_audit(project),
    }


def _serialize_person(person: Person) -> Dict[str, Any]:
    """Serialize Person entity."""
    return {
        "id": person.external_id,
        "name": person.name,
        "organization": person.organization,
        "role": person.role,
        "relationshipType": _enum(person.relationship_type),
        "notes": person.notes,
        **_audit(person),
    }


def _serialize_entry(entry: Entry) -> Dict[str, Any]:
    """Serialize Entry entity with participants as external ids."""
    return {
        "id": entry.external_id,
        "projectId": _ref(entry.project),
        "kind": _enum(entry.kind),
        "title": entry.title,
        "occurredAt": iso(entry.occurred_at),
        "rawContent": entry.raw_content,
        "aiSummary": entry.ai_summary,
        "decisions": entry.decisions,
        "isDecision": entry.is_decision,
        "decisionRationale": entry.decision_rationale,
        "decisionAssumptions": entry.decision_assumptions,
        "decisionConfidence": entry.decision_confidence,
        "decisionStakes": _enum(entry.decision_stakes),
        "decisionReviewDate": iso(entry.decision_review_date),
        "decisionOutcome": _enum(entry.decision_outcome),
        "decisionOutcomeDate": iso(entry.decision_outcome_date),
        "decisionOutcomeNotes": entry.decision_outcome_notes,
        "decisionAssumptionResults": entry.decision_assumption_results,
        "decisionLearning": entry.decision_learning,
        "participantIds": sorted(
            p.external_id for p in entry.participants if p.external_id
        ),
        **_audit(entry),
    }


def _serialize_commitment(commitment: Commitment) -> Dict[str, Any]:
    """Serialize Commitment entity."""
    return {
        "id": commitment.external_id,
        "title": commitment.title,
        "direction": _enum(commitment.direction),
        "status": _enum(commitment.status),
        "projectId": _ref(commitment.project),
        "sourceEntryId": _ref(commitment.source_entry),
        "personId": _ref(commitment.person),
        "counterparty": commitment.counterparty,
        "dueDate": iso(commitment.due_date),
        "importance": commitment.importance,
        "urgency": commitment.urgency,
        "notes": commitment.notes,
        "aiGenerated": commitment.ai_generated,
        "completedAt": iso(commitment.completed_at),
        **_audit(commitment),
    }


def _serialize_reflection(reflection: Reflection) -> Dict[str, Any]:
    """Serialize Reflection entity."""
    return {
        "id": reflection.external_id,
        "projectId": _ref(reflection.project),
        "sourceEntryId": _ref(reflection.source_entry),
        "personId": _ref(reflection.person),
        "reflectionType": _enum(reflection.reflection_type),
        "periodType": _enum(reflection.period_type),
        "periodStart": iso(reflection.period_start),
        "periodEnd": iso(reflection.period_end),
        "mood": _enum(reflection.mood),
        "stats": reflection.stats,
        "questionsAnswers": list(reflection.questions_answers or []),
        "aiQuestions": list(reflection.ai_questions or []),
        **_audit(reflection),
    }


# ========================================
# Export Configurations
# ========================================

# In dependency order, as they appear in the snapshot
EXPORT_CONFIGS = [
    EntityExportConfig("projects", Project, _serialize_project),
    EntityExportConfig("people", Person, _serialize_person),
    EntityExportConfig("entries", Entry, _serialize_entry),
    EntityExportConfig("commitments", Commitment, _serialize_commitment),
    EntityExportConfig("reflections", Reflection, _serialize_reflection),
]
