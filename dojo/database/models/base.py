"""
Base Classes and Mixins
------------------------

Foundational ORM classes for the Dojo database.

Classes:
    - Base: Declarative base for all SQLAlchemy models
    - ExternalIdMixin: Identifier shared with other clients
    - TimestampMixin: created_at / updated_at audit columns
    - SoftDeleteMixin: Mixin providing soft delete functionality

Every entity table is created with SQLite AUTOINCREMENT so local ids are
never reused after a row is deleted.
"""
# --- Annotations ---
from __future__ import annotations

# --- Standard library imports ---
import uuid
from datetime import datetime, timezone
from typing import Optional

# --- Third party ---
from sqlalchemy import DateTime, String, Text
from sqlalchemy import Enum as SQLEnum
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


def enum_column(enum_class) -> SQLEnum:
    """SQL enum storing member values (the wire values) rather than names."""
    return SQLEnum(
        enum_class,
        values_callable=lambda x: [e.value for e in x],
        native_enum=False,
        validate_strings=True,
    )


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def new_external_id() -> str:
    """Fresh external identifier for locally created entities."""
    return str(uuid.uuid4())


# --- Base ORM class ---
class Base(DeclarativeBase):
    """
    Base class for all ORM models.

    Serves as the declarative base for SQLAlchemy models and provides
    access to the metadata object for table creation.
    """

    pass


# --- External identity ---
class ExternalIdMixin:
    """
    Identifier assigned by the client that produced the entity.

    Entities created on this store get a fresh UUID so that snapshots
    exported from here carry a stable id. Imported entities keep the id
    from the snapshot, which is how re-imports find them again.
    """

    external_id: Mapped[Optional[str]] = mapped_column(
        String(64),
        unique=True,
        index=True,
        nullable=True,
        default=new_external_id,
        doc="Identifier shared with other clients",
    )


# --- Audit timestamps ---
class TimestampMixin:
    """
    Audit timestamps for every entity.

    Attributes:
        created_at: When the entity was first created (on any client)
        updated_at: When the entity was last modified
    """

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, onupdate=utc_now, nullable=False
    )


# --- Soft Delete ---
class SoftDeleteMixin:
    """
    Mixin providing soft delete functionality for models.

    Soft delete marks records as deleted without removing them from the
    database. Tombstones are kept for sync consistency with other clients.

    Attributes:
        deleted_at: Timestamp when the record was soft deleted
        deleted_by: Identifier of who deleted the record
        deletion_reason: Optional explanation for the deletion
    """

    deleted_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True, doc="Timestamp of soft deletion"
    )
    deleted_by: Mapped[Optional[str]] = mapped_column(
        String, nullable=True, doc="User or process that deleted the record"
    )
    deletion_reason: Mapped[Optional[str]] = mapped_column(
        Text, nullable=True, doc="Reason for deletion"
    )

    @property
    def is_deleted(self) -> bool:
        """Check if the record is soft deleted."""
        return self.deleted_at is not None

    def soft_delete(
        self, deleted_by: Optional[str] = None, reason: Optional[str] = None
    ) -> None:
        """
        Mark record as soft deleted.

        Args:
            deleted_by: Identifier of who is deleting the record
            reason: Explanation for the deletion
        """
        self.deleted_at = utc_now()
        self.deleted_by = deleted_by
        self.deletion_reason = reason

    def restore(self) -> None:
        """Restore a soft deleted record."""
        self.deleted_at = None
        self.deleted_by = None
        self.deletion_reason = None
