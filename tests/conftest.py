"""
conftest.py
-----------
Shared pytest fixtures for Dojo tests.

Provides fixtures for:
- Database setup and teardown
- Entity managers bound to a test session
- Snapshot payload factories
"""
import json
import pytest
from pathlib import Path
from tempfile import TemporaryDirectory


# ----- Path Fixtures -----

@pytest.fixture
def tmp_dir():
    """Create a temporary directory for test file operations."""
    with TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


# ----- Sample Data Factory Functions -----

def make_project(external_id="p-1", name="Alpha", **extra):
    """Factory for a project snapshot record."""
    record = {
        "id": external_id,
        "name": name,
        "createdAt": "2026-01-01T09:00:00Z",
        "updatedAt": "2026-01-01T09:00:00Z",
    }
    record.update(extra)
    return {k: v for k, v in record.items() if v is not None}


def make_person(external_id="u-1", name="Alice", **extra):
    """Factory for a person snapshot record."""
    record = {
        "id": external_id,
        "name": name,
        "createdAt": "2026-01-01T09:00:00Z",
        "updatedAt": "2026-01-01T09:00:00Z",
    }
    record.update(extra)
    return {k: v for k, v in record.items() if v is not None}


def make_entry(external_id="e-1", project_id="p-1", title="Kickoff", **extra):
    """Factory for an entry snapshot record."""
    record = {
        "id": external_id,
        "projectId": project_id,
        "kind": "meeting",
        "title": title,
        "occurredAt": "2026-01-02T10:00:00Z",
        "createdAt": "2026-01-02T10:00:00Z",
        "updatedAt": "2026-01-02T10:00:00Z",
    }
    record.update(extra)
    return {k: v for k, v in record.items() if v is not None}


def make_commitment(external_id="c-1", title="Send roadmap", **extra):
    """Factory for a commitment snapshot record."""
    record = {
        "id": external_id,
        "title": title,
        "direction": "i_owe",
        "status": "open",
        "createdAt": "2026-01-03T08:00:00Z",
        "updatedAt": "2026-01-03T08:00:00Z",
    }
    record.update(extra)
    return {k: v for k, v in record.items() if v is not None}


def make_reflection(external_id="r-1", **extra):
    """Factory for a reflection snapshot record."""
    record = {
        "id": external_id,
        "reflectionType": "periodic",
        "periodType": "week",
        "periodStart": "2026-01-05T00:00:00Z",
        "periodEnd": "2026-01-11T23:59:59Z",
        "questionsAnswers": [{"question": "What went well?", "answer": "Shipping"}],
        "createdAt": "2026-01-11T18:00:00Z",
        "updatedAt": "2026-01-11T18:00:00Z",
    }
    record.update(extra)
    return {k: v for k, v in record.items() if v is not None}


def make_snapshot(
    projects=None,
    people=None,
    entries=None,
    commitments=None,
    reflections=None,
    schema_version=2,
):
    """Factory for a snapshot JSON document."""
    return json.dumps(
        {
            "schemaVersion": schema_version,
            "projects": projects or [],
            "people": people or [],
            "entries": entries or [],
            "commitments": commitments or [],
            "reflections": reflections or [],
        }
    )


class SnapshotFactory:
    """Record and document factories, exposed to tests as a fixture."""

    project = staticmethod(make_project)
    person = staticmethod(make_person)
    entry = staticmethod(make_entry)
    commitment = staticmethod(make_commitment)
    reflection = staticmethod(make_reflection)
    snapshot = staticmethod(make_snapshot)


@pytest.fixture
def factory():
    """Snapshot record factories."""
    return SnapshotFactory


@pytest.fixture
def sample_snapshot():
    """A snapshot touching every entity kind and reference."""
    return make_snapshot(
        projects=[make_project()],
        people=[make_person(), make_person("u-2", "Bob")],
        entries=[
            make_entry(participantIds=["u-1", "u-2"]),
            make_entry("e-2", title="Pricing decision", kind="decision", isDecision=True),
        ],
        commitments=[
            make_commitment(projectId="p-1", sourceEntryId="e-1", personId="u-2"),
        ],
        reflections=[make_reflection(projectId="p-1")],
    )


# ----- Test Database Fixtures -----

@pytest.fixture
def test_db_path(tmp_dir):
    """Create temporary test database path."""
    return tmp_dir / "test.db"


@pytest.fixture
def test_db(test_db_path):
    """
    Create test database instance with schema.

    Returns a DojoDB instance with an initialized schema and the legacy
    cleanup disabled. Database is torn down after the test.
    """
    from dojo.database.manager import DojoDB

    db = DojoDB(db_path=test_db_path, normalize_legacy=False)

    yield db

    db.dispose()
    if test_db_path.exists():
        test_db_path.unlink()


@pytest.fixture
def db_session(test_db):
    """
    Create a database session for tests.

    Provides a session with automatic rollback after test.
    """
    with test_db.session_scope() as session:
        yield session
        session.rollback()


@pytest.fixture
def importer(test_db):
    """Create SnapshotImporter bound to the test database."""
    from dojo.pipeline import SnapshotImporter
    return SnapshotImporter(test_db)


@pytest.fixture
def project_manager(db_session):
    """Create ProjectManager instance for testing."""
    from dojo.database.managers.project_manager import ProjectManager
    return ProjectManager(db_session)


@pytest.fixture
def person_manager(db_session):
    """Create PersonManager instance for testing."""
    from dojo.database.managers.person_manager import PersonManager
    return PersonManager(db_session)


@pytest.fixture
def entry_manager(db_session):
    """Create EntryManager instance for testing."""
    from dojo.database.managers.entry_manager import EntryManager
    return EntryManager(db_session)


@pytest.fixture
def commitment_manager(db_session):
    """Create CommitmentManager instance for testing."""
    from dojo.database.managers.tracking_manager import CommitmentManager
    return CommitmentManager(db_session)


@pytest.fixture
def reflection_manager(db_session):
    """Create ReflectionManager instance for testing."""
    from dojo.database.managers.tracking_manager import ReflectionManager
    return ReflectionManager(db_session)
