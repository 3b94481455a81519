"""
Dojo Database Models
--------------------

SQLAlchemy ORM models for the local store.

Modules:
    - base: Base class, mixins and time/id helpers
    - enums: Enumeration types
    - associations: Many-to-many tables
    - core: Project, Entry
    - entities: Person
    - tracking: Commitment, Reflection
"""
from .associations import entry_participants
from .base import (
    Base,
    ExternalIdMixin,
    SoftDeleteMixin,
    TimestampMixin,
    new_external_id,
    utc_now,
)
from .core import Entry, Project
from .entities import Person
from .enums import (
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
from .tracking import Commitment, Reflection

__all__ = [
    # Base
    "Base",
    "ExternalIdMixin",
    "SoftDeleteMixin",
    "TimestampMixin",
    "new_external_id",
    "utc_now",
    # Associations
    "entry_participants",
    # Models
    "Project",
    "Entry",
    "Person",
    "Commitment",
    "Reflection",
    # Enums
    "CommitmentDirection",
    "CommitmentStatus",
    "DecisionOutcome",
    "DecisionStakes",
    "EntryKind",
    "ProjectStatus",
    "ProjectType",
    "ReflectionMood",
    "ReflectionPeriodType",
    "ReflectionType",
    "RelationshipType",
]
