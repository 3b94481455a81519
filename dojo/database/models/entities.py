"""
Entity Models
-------------

People the user works with.

Models:
    - Person: Someone appearing in entries, commitments or reflections
"""
# --- Annotations ---
from __future__ import annotations

# --- Standard library imports ---
from typing import TYPE_CHECKING, List, Optional

# --- Third party imports ---
from sqlalchemy import CheckConstraint, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

# --- Local imports ---
from .associations import entry_participants
from .base import Base, ExternalIdMixin, SoftDeleteMixin, TimestampMixin, enum_column
from .enums import RelationshipType

if TYPE_CHECKING:
    from .core import Entry
    from .tracking import Commitment, Reflection


class Person(Base, ExternalIdMixin, TimestampMixin, SoftDeleteMixin):
    """
    A person the user works with.

    Attributes:
        id: Primary key (never reused)
        external_id: Identifier shared with other clients
        name: Display name
        organization: Company or organization
        role: Job title or role
        relationship_type: RelationshipType (optional)
        notes: Free-text notes

    Relationships:
        entries: Many-to-many with Entry (participants)
        commitments: Commitments involving this person
        reflections: Relationship reflections about this person
    """

    __tablename__ = "people"
    __table_args__ = (
        CheckConstraint("name != ''", name="ck_person_non_empty_name"),
        {"sqlite_autoincrement": True},
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    organization: Mapped[Optional[str]] = mapped_column(String(255))
    role: Mapped[Optional[str]] = mapped_column(String(255))
    relationship_type: Mapped[Optional[RelationshipType]] = mapped_column(
        enum_column(RelationshipType)
    )
    notes: Mapped[Optional[str]] = mapped_column(Text)

    # ---- Relationships ----
    entries: Mapped[List["Entry"]] = relationship(
        "Entry", secondary=entry_participants, back_populates="participants"
    )
    commitments: Mapped[List["Commitment"]] = relationship(
        "Commitment", back_populates="person"
    )
    reflections: Mapped[List["Reflection"]] = relationship(
        "Reflection", back_populates="person"
    )

    @property
    def display_name(self) -> str:
        """Name with role and organization when known."""
        details = ", ".join(p for p in (self.role, self.organization) if p)
        return f"{self.name} ({details})" if details else self.name

    @property
    def entry_count(self) -> int:
        """Number of entries this person took part in."""
        return len(self.entries)

    def __repr__(self) -> str:
        return f"<Person(id={self.id}, name='{self.name}')>"
