"""
Core Models
-----------

The two central models of the timeline.

Models:
    - Project: A project, relationship or area of responsibility
    - Entry: A timeline card (meeting, update, decision, note, prep...)

A Project owns its Entries, Commitments and Reflections: physically
deleting a project deletes them too. Soft deletion never cascades.
"""
# --- Annotations ---
from __future__ import annotations

# --- Standard library imports ---
from datetime import datetime
from typing import TYPE_CHECKING, List, Optional

# --- Third party imports ---
from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

# --- Local imports ---
from .associations import entry_participants
from .base import (
    Base,
    ExternalIdMixin,
    SoftDeleteMixin,
    TimestampMixin,
    enum_column,
    utc_now,
)
from .enums import (
    DecisionOutcome,
    DecisionStakes,
    EntryKind,
    ProjectStatus,
    ProjectType,
)

if TYPE_CHECKING:
    from .entities import Person
    from .tracking import Commitment, Reflection


# ----- Project Model -----
class Project(Base, ExternalIdMixin, TimestampMixin, SoftDeleteMixin):
    """
    Represents a project, relationship or area being tracked.

    Attributes:
        id: Primary key (never reused)
        external_id: Identifier shared with other clients
        name: Display name
        description: Free-text description
        type: ProjectType
        status: ProjectStatus
        priority: 1-5, higher is more important
        owner_notes: Private notes
        last_active_at: Last time anything happened in the project

    Relationships:
        entries: One-to-many with Entry (cascade delete)
        commitments: One-to-many with Commitment (cascade delete)
        reflections: One-to-many with Reflection (cascade delete)
    """

    __tablename__ = "projects"
    __table_args__ = (
        CheckConstraint("name != ''", name="ck_project_non_empty_name"),
        CheckConstraint(
            "priority >= 1 AND priority <= 5", name="ck_project_priority_range"
        ),
        {"sqlite_autoincrement": True},
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    description: Mapped[Optional[str]] = mapped_column(Text)
    type: Mapped[ProjectType] = mapped_column(
        enum_column(ProjectType), default=ProjectType.PROJECT, nullable=False
    )
    status: Mapped[ProjectStatus] = mapped_column(
        enum_column(ProjectStatus), default=ProjectStatus.ACTIVE, nullable=False
    )
    priority: Mapped[int] = mapped_column(Integer, default=3, nullable=False)
    owner_notes: Mapped[Optional[str]] = mapped_column(Text)
    last_active_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))

    # ---- Relationships ----
    entries: Mapped[List["Entry"]] = relationship(
        "Entry", back_populates="project", cascade="all, delete-orphan"
    )
    commitments: Mapped[List["Commitment"]] = relationship(
        "Commitment", back_populates="project", cascade="all, delete"
    )
    reflections: Mapped[List["Reflection"]] = relationship(
        "Reflection", back_populates="project", cascade="all, delete"
    )

    def mark_active(self) -> None:
        """Update the last active timestamp."""
        self.last_active_at = utc_now()

    @property
    def active_entries(self) -> List["Entry"]:
        """Entries that are not soft deleted, newest first."""
        live = [e for e in self.entries if not e.is_deleted]
        return sorted(live, key=lambda e: e.occurred_at, reverse=True)

    def __repr__(self) -> str:
        return f"<Project(id={self.id}, name='{self.name}')>"


# ----- Entry Model -----
class Entry(Base, ExternalIdMixin, TimestampMixin, SoftDeleteMixin):
    """
    A timeline card belonging to exactly one project.

    Attributes:
        id: Primary key (never reused)
        external_id: Identifier shared with other clients
        project_id: Owning project (required)
        kind: EntryKind
        title: Card title
        occurred_at: When the meeting/decision/etc. happened
        raw_content: Captured text
        ai_summary: Optional AI summary
        decisions: Free-text decisions taken
        is_decision: Flag for entries that record a decision

    Decision hypothesis fields:
        decision_rationale, decision_assumptions, decision_confidence (1-5),
        decision_stakes, decision_review_date

    Decision outcome fields:
        decision_outcome, decision_outcome_date, decision_outcome_notes,
        decision_assumption_results, decision_learning

    Relationships:
        project: Many-to-one with Project
        participants: Many-to-many with Person
        commitments: Commitments sourced from this entry (nullified on delete)
        reflections: Reflections sourced from this entry (nullified on delete)
    """

    __tablename__ = "entries"
    __table_args__ = (
        CheckConstraint("title != ''", name="ck_entry_non_empty_title"),
        {"sqlite_autoincrement": True},
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    project_id: Mapped[int] = mapped_column(
        ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, index=True
    )
    kind: Mapped[EntryKind] = mapped_column(
        enum_column(EntryKind), default=EntryKind.NOTE, nullable=False, index=True
    )
    title: Mapped[str] = mapped_column(String(500), nullable=False)
    occurred_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, nullable=False, index=True
    )
    raw_content: Mapped[Optional[str]] = mapped_column(Text)
    ai_summary: Mapped[Optional[str]] = mapped_column(Text)
    decisions: Mapped[Optional[str]] = mapped_column(Text)
    is_decision: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    # ---- Decision hypothesis ----
    decision_rationale: Mapped[Optional[str]] = mapped_column(Text)
    decision_assumptions: Mapped[Optional[str]] = mapped_column(Text)
    decision_confidence: Mapped[Optional[int]] = mapped_column(Integer)
    decision_stakes: Mapped[Optional[DecisionStakes]] = mapped_column(
        enum_column(DecisionStakes)
    )
    decision_review_date: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True)
    )

    # ---- Decision outcome ----
    decision_outcome: Mapped[Optional[DecisionOutcome]] = mapped_column(
        enum_column(DecisionOutcome)
    )
    decision_outcome_date: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True)
    )
    decision_outcome_notes: Mapped[Optional[str]] = mapped_column(Text)
    decision_assumption_results: Mapped[Optional[str]] = mapped_column(Text)
    decision_learning: Mapped[Optional[str]] = mapped_column(Text)

    # ---- Relationships ----
    project: Mapped["Project"] = relationship("Project", back_populates="entries")
    participants: Mapped[List["Person"]] = relationship(
        "Person", secondary=entry_participants, back_populates="entries"
    )
    commitments: Mapped[List["Commitment"]] = relationship(
        "Commitment", back_populates="source_entry"
    )
    reflections: Mapped[List["Reflection"]] = relationship(
        "Reflection", back_populates="source_entry"
    )

    @property
    def is_decision_entry(self) -> bool:
        """Whether this entry represents a decision (either by kind or flag)."""
        return self.kind == EntryKind.DECISION or self.is_decision

    @property
    def display_content(self) -> str:
        """AI summary if present, otherwise raw content truncated."""
        if self.ai_summary:
            return self.ai_summary
        if self.raw_content:
            suffix = "..." if len(self.raw_content) > 200 else ""
            return self.raw_content[:200] + suffix
        return ""

    def __repr__(self) -> str:
        return f"<Entry(id={self.id}, kind={self.kind.value}, title='{self.title}')>"
