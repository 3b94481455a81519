"""
Tracking Models
---------------

Things followed up over time.

Models:
    - Commitment: Something the user owes, or is waiting for
    - Reflection: A periodic or ad-hoc reflection with Q&A

Both may optionally point at a project, a source entry and a person.
Deleting the source entry leaves them in place with the link cleared.
"""
# --- Annotations ---
from __future__ import annotations

# --- Standard library imports ---
from datetime import datetime
from typing import TYPE_CHECKING, Any, Dict, List, Optional

# --- Third party imports ---
from sqlalchemy import (
    JSON,
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
from .base import (
    Base,
    ExternalIdMixin,
    SoftDeleteMixin,
    TimestampMixin,
    enum_column,
    utc_now,
)
from .enums import (
    CommitmentDirection,
    CommitmentStatus,
    ReflectionMood,
    ReflectionPeriodType,
    ReflectionType,
)

if TYPE_CHECKING:
    from .core import Entry, Project
    from .entities import Person


# ----- Commitment Model -----
class Commitment(Base, ExternalIdMixin, TimestampMixin, SoftDeleteMixin):
    """
    A commitment the user made or is waiting on.

    Attributes:
        id: Primary key (never reused)
        external_id: Identifier shared with other clients
        title: What was promised
        direction: CommitmentDirection (i_owe / waiting_for)
        status: CommitmentStatus
        importance: 1-5
        urgency: 1-5
        due_date: Optional due date
        notes: Free-text notes
        counterparty: Free-text name of the other party
        ai_generated: Whether the commitment was extracted automatically
        completed_at: When it was marked done

    Relationships:
        project: Optional owning project
        source_entry: Optional entry the commitment came from
        person: Optional person involved
    """

    __tablename__ = "commitments"
    __table_args__ = (
        CheckConstraint("title != ''", name="ck_commitment_non_empty_title"),
        CheckConstraint(
            "importance >= 1 AND importance <= 5", name="ck_commitment_importance"
        ),
        CheckConstraint("urgency >= 1 AND urgency <= 5", name="ck_commitment_urgency"),
        {"sqlite_autoincrement": True},
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    title: Mapped[str] = mapped_column(String(500), nullable=False)
    direction: Mapped[CommitmentDirection] = mapped_column(
        enum_column(CommitmentDirection),
        default=CommitmentDirection.I_OWE,
        nullable=False,
    )
    status: Mapped[CommitmentStatus] = mapped_column(
        enum_column(CommitmentStatus),
        default=CommitmentStatus.OPEN,
        nullable=False,
        index=True,
    )
    importance: Mapped[int] = mapped_column(Integer, default=3, nullable=False)
    urgency: Mapped[int] = mapped_column(Integer, default=3, nullable=False)
    due_date: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))
    notes: Mapped[Optional[str]] = mapped_column(Text)
    counterparty: Mapped[Optional[str]] = mapped_column(String(255))
    ai_generated: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    completed_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))

    # ---- Foreign keys ----
    project_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("projects.id", ondelete="CASCADE"), index=True
    )
    source_entry_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("entries.id", ondelete="SET NULL"), index=True
    )
    person_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("people.id", ondelete="SET NULL"), index=True
    )

    # ---- Relationships ----
    project: Mapped[Optional["Project"]] = relationship(
        "Project", back_populates="commitments"
    )
    source_entry: Mapped[Optional["Entry"]] = relationship(
        "Entry", back_populates="commitments"
    )
    person: Mapped[Optional["Person"]] = relationship(
        "Person", back_populates="commitments"
    )

    @property
    def is_overdue(self) -> bool:
        if self.due_date is None or not self.status.is_active:
            return False
        due = self.due_date
        if due.tzinfo is None:
            return due < utc_now().replace(tzinfo=None)
        return due < utc_now()

    def mark_done(self) -> None:
        """Mark the commitment as done and stamp the completion time."""
        self.status = CommitmentStatus.DONE
        self.completed_at = utc_now()

    def reopen(self) -> None:
        """Reopen a completed or dropped commitment."""
        self.status = CommitmentStatus.OPEN
        self.completed_at = None

    def __repr__(self) -> str:
        return (
            f"<Commitment(id={self.id}, title='{self.title}', "
            f"status={self.status.value})>"
        )


# ----- Reflection Model -----
class Reflection(Base, ExternalIdMixin, TimestampMixin, SoftDeleteMixin):
    """
    A reflection on a period, a project or a relationship.

    Attributes:
        id: Primary key (never reused)
        external_id: Identifier shared with other clients
        reflection_type: ReflectionType
        period_type: Optional ReflectionPeriodType
        period_start: Start of the reflected period
        period_end: End of the reflected period
        mood: Optional ReflectionMood
        stats: JSON blob of period statistics
        questions_answers: JSON list of {question, answer}
        ai_questions: JSON list of suggested questions

    Relationships:
        project: Optional project being reflected on
        source_entry: Optional entry that prompted the reflection
        person: Optional person (relationship reflections)
    """

    __tablename__ = "reflections"
    __table_args__ = {"sqlite_autoincrement": True}

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    reflection_type: Mapped[ReflectionType] = mapped_column(
        enum_column(ReflectionType), default=ReflectionType.PERIODIC, nullable=False
    )
    period_type: Mapped[Optional[ReflectionPeriodType]] = mapped_column(
        enum_column(ReflectionPeriodType)
    )
    period_start: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))
    period_end: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True))
    mood: Mapped[Optional[ReflectionMood]] = mapped_column(
        enum_column(ReflectionMood)
    )
    stats: Mapped[Optional[Dict[str, Any]]] = mapped_column(JSON)
    questions_answers: Mapped[List[Dict[str, str]]] = mapped_column(
        JSON, default=list, nullable=False
    )
    ai_questions: Mapped[List[str]] = mapped_column(JSON, default=list, nullable=False)

    # ---- Foreign keys ----
    project_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("projects.id", ondelete="CASCADE"), index=True
    )
    source_entry_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("entries.id", ondelete="SET NULL"), index=True
    )
    person_id: Mapped[Optional[int]] = mapped_column(
        ForeignKey("people.id", ondelete="SET NULL"), index=True
    )

    # ---- Relationships ----
    project: Mapped[Optional["Project"]] = relationship(
        "Project", back_populates="reflections"
    )
    source_entry: Mapped[Optional["Entry"]] = relationship(
        "Entry", back_populates="reflections"
    )
    person: Mapped[Optional["Person"]] = relationship(
        "Person", back_populates="reflections"
    )

    @property
    def answered_count(self) -> int:
        """Number of questions with a non-empty answer."""
        return sum(
            1 for qa in self.questions_answers or [] if (qa.get("answer") or "").strip()
        )

    def __repr__(self) -> str:
        return (
            f"<Reflection(id={self.id}, type={self.reflection_type.value}, "
            f"period_start={self.period_start})>"
        )
