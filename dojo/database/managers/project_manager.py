#!/usr/bin/env python3
"""
project_manager.py
--------------------
Manages Project entities.

A Project owns its entries, commitments and reflections. Soft deletion
hides the project only; hard deletion removes everything it owns.

Usage:
    project_mgr = ProjectManager(session, logger)

    project = project_mgr.create({"name": "Platform rewrite", "priority": 4})
    project_mgr.mark_active(project)
    project_mgr.update(project, {"status": "on_hold"})

    # Soft delete, restore
    project_mgr.delete(project, deleted_by="me", reason="Cancelled")
    project_mgr.restore(project)

    # Remove for good, with everything it owns
    project_mgr.delete(project, hard_delete=True)
"""
from typing import Any, Dict, List, Optional, Union

from dojo.core.validators import DataValidator
from dojo.database.decorators import (
    handle_db_errors,
    log_database_operation,
    validate_metadata,
)
from dojo.database.models import Project, ProjectStatus, ProjectType
from .base_manager import BaseManager


def _project_type(value: Any) -> Optional[ProjectType]:
    return DataValidator.normalize_enum(value, ProjectType)


def _project_status(value: Any) -> Optional[ProjectStatus]:
    return DataValidator.normalize_enum(value, ProjectStatus)


def _priority(value: Any) -> Optional[int]:
    return DataValidator.normalize_rating(value, default=None)


class ProjectManager(BaseManager):
    """Manages Project table operations."""

    model_class = Project
    field_configs = [
        ("name", DataValidator.normalize_string),
        ("description", DataValidator.normalize_string, True),
        ("type", _project_type),
        ("status", _project_status),
        ("priority", _priority),
        ("owner_notes", DataValidator.normalize_string, True),
        ("last_active_at", DataValidator.normalize_datetime, True),
    ]

    @handle_db_errors
    @log_database_operation("get_project")
    def get(
        self,
        project_id: Optional[int] = None,
        external_id: Optional[str] = None,
        name: Optional[str] = None,
        include_deleted: bool = False,
    ) -> Optional[Project]:
        """
        Retrieve a project by local id, external id or name.

        Name lookups return the oldest live project with that name.
        """
        if project_id is not None:
            return self._get_by_id(project_id, include_deleted=include_deleted)
        if external_id is not None:
            return self.get_by_external_id(external_id, include_deleted=include_deleted)
        if name is not None:
            return self._get_by_field("name", name, include_deleted=include_deleted)
        return None

    @handle_db_errors
    @log_database_operation("get_all_projects")
    def get_all(
        self,
        include_deleted: bool = False,
        status: Optional[Union[ProjectStatus, str]] = None,
    ) -> List[Project]:
        """Retrieve projects, optionally filtered by status."""
        filters: Dict[str, Any] = {}
        if status is not None:
            filters["status"] = DataValidator.normalize_enum(status, ProjectStatus)
        return self._get_all(order_by="name", include_deleted=include_deleted, **filters)

    @handle_db_errors
    @log_database_operation("create_project")
    @validate_metadata(["name"])
    def create(self, metadata: Dict[str, Any]) -> Project:
        """
        Create a new project.

        Args:
            metadata: Dictionary with required key:
                - name: Project name
                Optional keys:
                - description, owner_notes
                - type: ProjectType or string (default project)
                - status: ProjectStatus or string (default active)
                - priority: 1-5 (default 3, clamped)
                - last_active_at
                - external_id, created_at, updated_at

        Returns:
            Created Project object
        """
        return self._create_entity(self._normalize_fields(metadata))

    @handle_db_errors
    @log_database_operation("update_project")
    def update(self, project: Project, metadata: Dict[str, Any]) -> Project:
        """
        Update an existing project.

        Raises:
            DatabaseError: If project not found or is deleted
        """
        project = self._ensure_live(project)
        self._update_scalar_fields(project, metadata)
        self.touch(project)
        self.session.flush()
        return project

    @handle_db_errors
    @log_database_operation("mark_project_active")
    def mark_active(self, project: Project) -> Project:
        """Stamp the project's last activity time."""
        project.mark_active()
        self.session.flush()
        return project

    @handle_db_errors
    @log_database_operation("delete_project")
    def delete(
        self,
        project: Union[Project, int],
        deleted_by: Optional[str] = None,
        reason: Optional[str] = None,
        hard_delete: bool = False,
    ) -> None:
        """
        Delete a project (soft delete by default).

        Hard deletion removes its entries, commitments and reflections.
        """
        self._delete_entity(project, deleted_by, reason, hard_delete)

    @handle_db_errors
    @log_database_operation("restore_project")
    def restore(self, project: Union[Project, int]) -> Project:
        """Restore a soft-deleted project."""
        return self._restore_entity(project)
