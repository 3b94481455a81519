#!/usr/bin/env python3
"""
person_manager.py
--------------------
Manages Person entities.

Key Features:
    - CRUD operations for people
    - Relationship type categorization (manager, peer, investor, ...)
    - Soft delete support (preserves data with deleted_at flag)

Usage:
    person_mgr = PersonManager(session, logger)

    person = person_mgr.create({
        "name": "Alice",
        "organization": "Acme",
        "relationship_type": "direct_report",
    })
    reports = person_mgr.get_by_relationship_type("direct_report")
"""
from typing import Any, Dict, List, Optional, Union

from dojo.core.validators import DataValidator
from dojo.database.decorators import (
    handle_db_errors,
    log_database_operation,
    validate_metadata,
)
from dojo.database.models import Person, RelationshipType
from .base_manager import BaseManager


def normalize_relationship_type(value: Any) -> Optional[RelationshipType]:
    """Absent stays absent; anything unrecognised becomes OTHER."""
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    return DataValidator.normalize_enum(value, RelationshipType, RelationshipType.OTHER)


class PersonManager(BaseManager):
    """Manages Person table operations."""

    model_class = Person
    field_configs = [
        ("name", DataValidator.normalize_string),
        ("organization", DataValidator.normalize_string, True),
        ("role", DataValidator.normalize_string, True),
        ("relationship_type", normalize_relationship_type, True),
        ("notes", DataValidator.normalize_string, True),
    ]

    @handle_db_errors
    @log_database_operation("get_person")
    def get(
        self,
        person_id: Optional[int] = None,
        external_id: Optional[str] = None,
        name: Optional[str] = None,
        include_deleted: bool = False,
    ) -> Optional[Person]:
        """Retrieve a person by local id, external id or name."""
        if person_id is not None:
            return self._get_by_id(person_id, include_deleted=include_deleted)
        if external_id is not None:
            return self.get_by_external_id(external_id, include_deleted=include_deleted)
        if name is not None:
            return self._get_by_field("name", name, include_deleted=include_deleted)
        return None

    @handle_db_errors
    @log_database_operation("get_all_persons")
    def get_all(self, include_deleted: bool = False) -> List[Person]:
        """Retrieve all people ordered by name."""
        return self._get_all(order_by="name", include_deleted=include_deleted)

    @handle_db_errors
    @log_database_operation("get_persons_by_relationship")
    def get_by_relationship_type(
        self, relationship_type: Union[RelationshipType, str]
    ) -> List[Person]:
        """Retrieve live people with the given relationship type."""
        normalized = normalize_relationship_type(relationship_type)
        return self._get_all(order_by="name", relationship_type=normalized)

    @handle_db_errors
    @log_database_operation("create_person")
    @validate_metadata(["name"])
    def create(self, metadata: Dict[str, Any]) -> Person:
        """
        Create a new person.

        Args:
            metadata: Dictionary with required key:
                - name: Display name
                Optional keys:
                - organization, role, notes
                - relationship_type: RelationshipType or string
                - external_id, created_at, updated_at

        Returns:
            Created Person object
        """
        return self._create_entity(self._normalize_fields(metadata))

    @handle_db_errors
    @log_database_operation("update_person")
    def update(self, person: Person, metadata: Dict[str, Any]) -> Person:
        """
        Update an existing person.

        Raises:
            DatabaseError: If person not found or is deleted
        """
        person = self._ensure_live(person)
        self._update_scalar_fields(person, metadata)
        self.touch(person)
        self.session.flush()
        return person

    @handle_db_errors
    @log_database_operation("delete_person")
    def delete(
        self,
        person: Union[Person, int],
        deleted_by: Optional[str] = None,
        reason: Optional[str] = None,
        hard_delete: bool = False,
    ) -> None:
        """
        Delete a person (soft delete by default).

        Hard deletion removes the person from entry participants and clears
        the person on commitments and reflections.
        """
        self._delete_entity(person, deleted_by, reason, hard_delete)

    @handle_db_errors
    @log_database_operation("restore_person")
    def restore(self, person: Union[Person, int]) -> Person:
        """Restore a soft-deleted person."""
        return self._restore_entity(person)
