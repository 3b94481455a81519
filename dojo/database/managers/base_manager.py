#!/usr/bin/env python3
"""
base_manager.py
--------------------
Base manager providing common CRUD operations and utilities.
All entity managers inherit from this class.

Key Features:
    - Retry logic for database lock handling
    - Lookups by local id, external id or any field, soft-delete aware
    - Metadata normalization driven by (field, normalizer) configs
    - Change-tracking field assignment (used by imports to detect no-ops)
    - Soft and hard delete, restore

Usage:
    Subclass BaseManager for each entity type and implement:
    - get(): Retrieve single entity with entity-specific lookups
    - create(): Create new entity with validation and relationships
    - update(): Update entity with validation and relationships
    - delete(): Delete entity (soft or hard)
    - restore(): Restore soft-deleted entity

Example:
    class ProjectManager(BaseManager):
        model_class = Project
        field_configs = [
            ("name", DataValidator.normalize_string),
            ("description", DataValidator.normalize_string, True),
        ]

        @handle_db_errors
        @log_database_operation("create_project")
        @validate_metadata(["name"])
        def create(self, metadata: Dict[str, Any]) -> Project:
            return self._create_entity(metadata)
"""
# --- Annotations ---
from __future__ import annotations

# --- Standard library imports ---
import time
from abc import ABC
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, Protocol, Type, TypeVar, Union

# --- Third party imports ---
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Mapped, Session

# --- Local imports ---
from dojo.core.exceptions import DatabaseError
from dojo.core.logging_manager import DojoLogger, safe_logger
from dojo.core.validators import DataValidator
from dojo.database.models import utc_now

# Fields every model carries that callers may set explicitly on create
AUDIT_FIELDS = (
    "external_id",
    "created_at",
    "updated_at",
    "deleted_at",
    "deleted_by",
    "deletion_reason",
)


class HasId(Protocol):
    """Protocol for objects that have an id attribute."""

    id: Mapped[int]


T = TypeVar("T", bound=HasId)


def values_equal(current: Any, new: Any) -> bool:
    """
    Compare a stored attribute value with a new one.

    Datetimes are compared in UTC because SQLite hands them back naive.
    """
    if isinstance(current, datetime) and isinstance(new, datetime):
        return DataValidator.as_utc(current) == DataValidator.as_utc(new)
    return current == new


class BaseManager(ABC):
    """
    Abstract base manager providing common CRUD operations and utilities.

    Attributes:
        session: SQLAlchemy session for database operations
        logger: Optional logger for operation tracking
        model_class: ORM model managed by the subclass
        field_configs: Scalar field configs, as accepted by
            _update_scalar_fields
    """

    model_class: Type[Any]
    field_configs: List[tuple] = []

    def __init__(self, session: Session, logger: Optional[DojoLogger] = None):
        """
        Initialize the base manager.

        Args:
            session: SQLAlchemy session
            logger: Optional logger for operation tracking
        """
        self.session = session
        self.logger = logger

    # -------------------------------------------------------------------------
    # Core Helper Methods
    # -------------------------------------------------------------------------

    def _execute_with_retry(
        self,
        operation: Callable,
        max_retries: int = 3,
        retry_delay: float = 0.1,
    ) -> Any:
        """
        Execute database operation with retry on lock.

        Args:
            operation: Callable that performs the operation
            max_retries: Maximum number of retry attempts
            retry_delay: Base delay between retries (exponential backoff)

        Returns:
            Result of the operation

        Raises:
            OperationalError: If all retries exhausted
        """
        for attempt in range(max_retries):
            try:
                return operation()
            except OperationalError as e:
                error_msg = str(e).lower()

                if (
                    "locked" in error_msg or "busy" in error_msg
                ) and attempt < max_retries - 1:
                    wait_time = retry_delay * (2**attempt)

                    safe_logger(self.logger).log_debug(
                        f"Database locked, retrying in {wait_time}s",
                        {"attempt": attempt + 1, "max_retries": max_retries},
                    )

                    time.sleep(wait_time)
                    continue

                raise

        raise DatabaseError("Retry loop completed without success")

    def _resolve_object(self, item: Union[T, int], model_class: Type[T]) -> T:
        """
        Resolve an item to an ORM object.

        Args:
            item: Object instance or ID
            model_class: Target model class

        Returns:
            Resolved ORM object

        Raises:
            ValueError: If object not found or not persisted
            TypeError: If item type is invalid
        """
        if isinstance(item, model_class):
            if item.id is None:
                raise ValueError(f"{model_class.__name__} instance must be persisted")
            return item
        elif isinstance(item, int) and not isinstance(item, bool):
            obj = self.session.get(model_class, item)
            if obj is None:
                raise ValueError(f"No {model_class.__name__} found with id: {item}")
            return obj
        else:
            raise TypeError(
                f"Expected {model_class.__name__} instance or int, got {type(item)}"
            )

    # -------------------------------------------------------------------------
    # Generic Lookup Helpers
    # -------------------------------------------------------------------------

    def _get_by_id(
        self,
        entity_id: int,
        include_deleted: bool = False,
    ) -> Optional[Any]:
        """
        Get entity by local ID with optional soft-delete filtering.

        Args:
            entity_id: The entity ID
            include_deleted: Include soft-deleted entities

        Returns:
            Entity if found, None otherwise
        """
        entity = self.session.get(self.model_class, entity_id)
        if entity is None:
            return None
        if not include_deleted and entity.deleted_at is not None:
            return None
        return entity

    def _get_by_field(
        self,
        field_name: str,
        value: Any,
        normalize: bool = True,
        include_deleted: bool = False,
    ) -> Optional[Any]:
        """
        Get entity by a specific field value.

        Args:
            field_name: Field name to filter by
            value: Value to look up
            normalize: Whether to normalize string values
            include_deleted: Include soft-deleted entities

        Returns:
            First matching entity (lowest id), or None
        """
        if value is None:
            return None

        if normalize and isinstance(value, str):
            value = DataValidator.normalize_string(value)
            if not value:
                return None

        query = self.session.query(self.model_class).filter_by(**{field_name: value})
        if not include_deleted:
            query = query.filter(self.model_class.deleted_at.is_(None))

        return query.order_by(self.model_class.id).first()

    def get_by_external_id(
        self, external_id: Optional[str], include_deleted: bool = True
    ) -> Optional[Any]:
        """
        Get entity by the identifier shared with other clients.

        Soft-deleted entities are included by default: a tombstone still
        owns its identifier.
        """
        return self._get_by_field(
            "external_id", external_id, normalize=False, include_deleted=include_deleted
        )

    def _get_all(
        self,
        order_by: Optional[str] = None,
        include_deleted: bool = False,
        **filters: Any,
    ) -> List[Any]:
        """
        Get all entities of the managed type with optional filtering.

        Args:
            order_by: Field name to order by (defaults to id)
            include_deleted: Include soft-deleted entities
            **filters: Additional filter conditions

        Returns:
            List of entities
        """
        query = self.session.query(self.model_class)

        if filters:
            query = query.filter_by(**filters)

        if not include_deleted:
            query = query.filter(self.model_class.deleted_at.is_(None))

        order_attr = getattr(self.model_class, order_by or "id")
        return query.order_by(order_attr, self.model_class.id).all()

    def _count(self, include_deleted: bool = False, **filters: Any) -> int:
        """
        Count entities with optional filtering.

        Args:
            include_deleted: Include soft-deleted entities
            **filters: Additional filter conditions

        Returns:
            Count of matching entities
        """
        query = self.session.query(self.model_class)
        if filters:
            query = query.filter_by(**filters)
        if not include_deleted:
            query = query.filter(self.model_class.deleted_at.is_(None))
        return query.count()

    # -------------------------------------------------------------------------
    # Scalar Field Helpers
    # -------------------------------------------------------------------------

    def _normalize_fields(self, metadata: Dict[str, Any]) -> Dict[str, Any]:
        """
        Normalize the scalar fields present in metadata.

        Absent keys and values normalizing to None are left out, so model
        defaults apply on create.
        """
        fields: Dict[str, Any] = {}
        for config in self.field_configs:
            field_name, normalizer = config[0], config[1]
            if field_name not in metadata:
                continue
            value = normalizer(metadata[field_name])
            if value is not None:
                fields[field_name] = value

        for field_name in AUDIT_FIELDS:
            if metadata.get(field_name) is not None:
                fields[field_name] = metadata[field_name]
        return fields

    def _update_scalar_fields(
        self,
        entity: Any,
        metadata: Dict[str, Any],
        field_configs: Optional[List[tuple]] = None,
    ) -> None:
        """
        Update multiple scalar fields from metadata using normalizers.

        Args:
            entity: Entity to update
            metadata: Dictionary containing field values
            field_configs: List of tuples (defaults to the manager's):
                - (field_name, normalizer) for required fields
                - (field_name, normalizer, allow_none) for optional fields

        Example:
            self._update_scalar_fields(project, metadata, [
                ("name", DataValidator.normalize_string),
                ("description", DataValidator.normalize_string, True),
            ])
        """
        for config in field_configs or self.field_configs:
            field_name = config[0]
            normalizer = config[1]
            allow_none = config[2] if len(config) > 2 else False

            if field_name not in metadata:
                continue

            value = normalizer(metadata[field_name])
            if value is not None or allow_none:
                setattr(entity, field_name, value)

    def assign_fields(self, entity: Any, values: Dict[str, Any]) -> List[str]:
        """
        Set attributes whose value differs from the stored one.

        Args:
            entity: Entity to modify
            values: Attribute name -> new value (already normalized)

        Returns:
            Names of the attributes that actually changed
        """
        changed: List[str] = []
        for name, value in values.items():
            if values_equal(getattr(entity, name), value):
                continue
            setattr(entity, name, value)
            changed.append(name)
        return changed

    @staticmethod
    def touch(entity: Any, when: Optional[datetime] = None) -> None:
        """Stamp updated_at, never earlier than created_at."""
        stamp = DataValidator.as_utc(when or utc_now())
        created = DataValidator.as_utc(entity.created_at)
        if created is not None and stamp < created:
            stamp = created
        entity.updated_at = stamp

    # -------------------------------------------------------------------------
    # Generic Create / Delete Helpers
    # -------------------------------------------------------------------------

    def _create_entity(self, fields: Dict[str, Any]) -> Any:
        """Add a new entity with the given normalized fields and flush it."""
        entity = self.model_class(**fields)
        now = utc_now()
        if entity.created_at is None:
            entity.created_at = now
        self.touch(entity, entity.updated_at or now)
        self.session.add(entity)
        self._execute_with_retry(self.session.flush)

        safe_logger(self.logger).log_debug(
            f"Created {self.model_class.__name__}",
            {"id": entity.id, "external_id": entity.external_id},
        )
        return entity

    def _resolve_for_delete(self, entity: Union[Any, int]) -> Any:
        if isinstance(entity, int) and not isinstance(entity, bool):
            resolved = self._get_by_id(entity, include_deleted=True)
            if resolved is None:
                raise DatabaseError(
                    f"{self.model_class.__name__} not found with id: {entity}"
                )
            return resolved
        return entity

    def _delete_entity(
        self,
        entity: Union[Any, int],
        deleted_by: Optional[str] = None,
        reason: Optional[str] = None,
        hard_delete: bool = False,
    ) -> None:
        """
        Delete an entity (soft delete by default).

        Notes:
            - Soft delete keeps the row as a tombstone for other clients
            - Hard delete removes the row; owned children follow the
              model's cascade rules
        """
        entity = self._resolve_for_delete(entity)
        name = self.model_class.__name__

        if hard_delete:
            safe_logger(self.logger).log_debug(
                f"Hard deleting {name}", {"id": entity.id}
            )
            self.session.delete(entity)
        else:
            safe_logger(self.logger).log_debug(
                f"Soft deleting {name}",
                {"id": entity.id, "deleted_by": deleted_by, "reason": reason},
            )
            entity.soft_delete(deleted_by=deleted_by, reason=reason)

        self._execute_with_retry(self.session.flush)

    def _restore_entity(self, entity: Union[Any, int]) -> Any:
        """
        Restore a soft-deleted entity.

        Raises:
            DatabaseError: If entity not found or not deleted
        """
        entity = self._resolve_for_delete(entity)
        if not entity.is_deleted:
            raise DatabaseError(
                f"{self.model_class.__name__} is not deleted: id={entity.id}"
            )

        entity.restore()
        self._execute_with_retry(self.session.flush)

        safe_logger(self.logger).log_debug(
            f"Restored {self.model_class.__name__}", {"id": entity.id}
        )
        return entity

    def _ensure_live(self, entity: Any) -> Any:
        """
        Reload an entity for editing.

        Raises:
            DatabaseError: If the entity is missing or soft deleted
        """
        db_entity = self.session.get(self.model_class, entity.id)
        name = self.model_class.__name__
        if db_entity is None:
            raise DatabaseError(f"{name} with id={entity.id} not found")
        if db_entity.is_deleted:
            raise DatabaseError(f"Cannot update deleted {name}: id={db_entity.id}")
        return db_entity
