"""Tests for ProjectManager."""
import pytest

from dojo.core.exceptions import DatabaseError, ValidationError
from dojo.database.models import Commitment, Entry, ProjectStatus, ProjectType


class TestProjectCreate:
    """Tests for creating projects."""

    def test_create_with_defaults(self, project_manager):
        project = project_manager.create({"name": "  Alpha  "})

        assert project.id is not None
        assert project.name == "Alpha"
        assert project.type is ProjectType.PROJECT
        assert project.status is ProjectStatus.ACTIVE
        assert project.priority == 3
        assert project.external_id

    def test_create_normalizes_values(self, project_manager):
        project = project_manager.create(
            {"name": "Alpha", "status": "ON_HOLD", "type": "area", "priority": 9}
        )
        assert project.status is ProjectStatus.ON_HOLD
        assert project.type is ProjectType.AREA
        assert project.priority == 5

    def test_create_keeps_external_id(self, project_manager):
        project = project_manager.create({"name": "Alpha", "external_id": "p-1"})
        assert project.external_id == "p-1"

    def test_create_requires_name(self, project_manager):
        with pytest.raises(ValidationError):
            project_manager.create({"description": "nameless"})

    def test_duplicate_external_id_rejected(self, project_manager):
        project_manager.create({"name": "Alpha", "external_id": "p-1"})
        with pytest.raises(DatabaseError):
            project_manager.create({"name": "Beta", "external_id": "p-1"})


class TestProjectLookup:
    """Tests for get and get_all."""

    def test_get_by_each_key(self, project_manager):
        project = project_manager.create({"name": "Alpha", "external_id": "p-1"})

        assert project_manager.get(project_id=project.id) is project
        assert project_manager.get(external_id="p-1") is project
        assert project_manager.get(name="Alpha") is project
        assert project_manager.get() is None

    def test_get_all_filters_status(self, project_manager):
        project_manager.create({"name": "Beta"})
        project_manager.create({"name": "Alpha", "status": "archived"})

        assert [p.name for p in project_manager.get_all()] == ["Alpha", "Beta"]
        archived = project_manager.get_all(status="archived")
        assert [p.name for p in archived] == ["Alpha"]


class TestProjectUpdateDelete:
    """Tests for update, delete and restore."""

    def test_update(self, project_manager):
        project = project_manager.create({"name": "Alpha"})
        project_manager.update(project, {"description": "Rewrite", "status": "completed"})

        assert project.description == "Rewrite"
        assert project.status is ProjectStatus.COMPLETED

    def test_update_deleted_rejected(self, project_manager):
        project = project_manager.create({"name": "Alpha"})
        project_manager.delete(project)
        with pytest.raises(DatabaseError, match="deleted"):
            project_manager.update(project, {"name": "Beta"})

    def test_soft_delete_and_restore(self, project_manager):
        project = project_manager.create({"name": "Alpha"})
        project_manager.delete(project, deleted_by="me", reason="Cancelled")

        assert project_manager.get(project_id=project.id) is None
        assert project_manager.get(project_id=project.id, include_deleted=True).is_deleted

        project_manager.restore(project)
        assert not project.is_deleted

    def test_hard_delete_cascades_to_owned_rows(
        self, db_session, project_manager, entry_manager, commitment_manager
    ):
        project = project_manager.create({"name": "Alpha"})
        entry_manager.create({"title": "Kickoff", "project": project})
        commitment_manager.create({"title": "Send deck", "project": project})

        project_manager.delete(project, hard_delete=True)

        assert db_session.query(Entry).count() == 0
        assert db_session.query(Commitment).count() == 0

    def test_mark_active(self, project_manager):
        project = project_manager.create({"name": "Alpha"})
        project_manager.mark_active(project)
        assert project.last_active_at is not None
