"""Tests for DojoDB: schema, sessions, import transaction and statistics."""
import threading

import pytest
from sqlalchemy import inspect

from dojo.core.exceptions import DatabaseError
from dojo.core.settings import ImportSettings
from dojo.database.manager import DojoDB
from dojo.database.models import Entry, EntryKind, Project


class TestDojoDBInit:
    """Tests for engine and schema setup."""

    def test_creates_all_tables(self, test_db):
        tables = set(inspect(test_db.engine).get_table_names())
        assert {
            "projects",
            "people",
            "entries",
            "entry_participants",
            "commitments",
            "reflections",
        } <= tables

    def test_foreign_keys_enforced(self, test_db):
        with test_db.engine.connect() as conn:
            assert conn.exec_driver_sql("PRAGMA foreign_keys").scalar() == 1

    def test_creates_parent_directory(self, tmp_dir):
        db = DojoDB(tmp_dir / "nested" / "store" / "dojo.db", normalize_legacy=False)
        try:
            assert db.db_path.parent.is_dir()
        finally:
            db.dispose()

    def test_logs_to_log_dir(self, tmp_dir):
        db = DojoDB(
            tmp_dir / "dojo.db", log_dir=tmp_dir / "logs", normalize_legacy=False
        )
        db.dispose()
        assert (tmp_dir / "logs" / "database.log").exists()

    def test_startup_cleanup_follows_settings(self, tmp_dir):
        settings = ImportSettings(normalize_legacy_on_startup=False)
        db = DojoDB(tmp_dir / "dojo.db", settings=settings)
        try:
            assert db.last_normalization is None
        finally:
            db.dispose()

    def test_startup_cleanup_runs_by_default(self, tmp_dir):
        db = DojoDB(tmp_dir / "dojo.db")
        try:
            assert db.last_normalization is not None
            assert db.last_normalization.deleted == 0
        finally:
            db.dispose()


class TestSessionScope:
    """Tests for session_scope and manager binding."""

    def test_commits_on_success(self, test_db):
        with test_db.session_scope():
            test_db.projects.create({"name": "Alpha"})

        with test_db.session_scope():
            assert test_db.projects.get(name="Alpha") is not None

    def test_rolls_back_on_error(self, test_db):
        with pytest.raises(RuntimeError):
            with test_db.session_scope():
                test_db.projects.create({"name": "Alpha"})
                raise RuntimeError("abort")

        with test_db.session_scope():
            assert test_db.projects.get(name="Alpha") is None

    def test_managers_require_session(self, test_db):
        with pytest.raises(DatabaseError, match="requires active session"):
            test_db.projects

    def test_managers_bound_per_thread(self, test_db):
        """A scope on another thread neither replaces nor clears this one's managers."""
        seen = []

        def other_scope():
            with test_db.session_scope() as session:
                seen.append(test_db.projects.session is session)

        with test_db.session_scope() as session:
            thread = threading.Thread(target=other_scope)
            thread.start()
            thread.join()
            assert test_db.projects.session is session

        assert seen == [True]

    def test_nested_scope_restores_outer_managers(self, test_db):
        with test_db.session_scope() as outer:
            with test_db.session_scope() as inner:
                assert test_db.people.session is inner
            assert test_db.people.session is outer

    def test_managers_for_session(self, test_db):
        with test_db.session_scope() as session:
            managers = test_db.managers_for(session)
        assert set(managers) == {
            "projects", "people", "entries", "commitments", "reflections"
        }
        assert all(m.session is session for m in managers.values())


class TestImportTransaction:
    """Tests for the exclusive import transaction."""

    def test_commits_together(self, test_db):
        with test_db.import_transaction() as session:
            session.add(Project(name="Alpha"))
            session.add(Project(name="Beta"))

        assert test_db.get_stats()["project"]["active"] == 2

    def test_rolls_back_together(self, test_db):
        with pytest.raises(RuntimeError):
            with test_db.import_transaction() as session:
                session.add(Project(name="Alpha"))
                session.flush()
                raise RuntimeError("abort")

        assert test_db.get_stats()["project"]["active"] == 0

    def test_lock_is_reentrant(self, test_db):
        """The facade holds the lock while the executor re-enters it."""
        with test_db.import_lock:
            with test_db.import_transaction() as session:
                session.add(Project(name="Alpha"))
        assert test_db.get_stats()["project"]["active"] == 1

    def test_lock_blocks_other_threads(self, test_db):
        acquired = []

        def contender():
            acquired.append(test_db.import_lock.acquire(blocking=False))

        with test_db.import_transaction():
            thread = threading.Thread(target=contender)
            thread.start()
            thread.join()

        assert acquired == [False]


class TestStatsAndDigest:
    """Tests for get_stats and content_digest."""

    def test_stats_split_active_and_deleted(self, test_db):
        with test_db.session_scope():
            alpha = test_db.projects.create({"name": "Alpha"})
            test_db.projects.create({"name": "Beta"})
            test_db.projects.delete(alpha)

        stats = test_db.get_stats()
        assert stats["project"] == {"active": 1, "deleted": 1}
        assert stats["entry"] == {"active": 0, "deleted": 0}

    def test_digest_changes_with_content(self, test_db):
        before = test_db.content_digest()
        assert before == test_db.content_digest()

        with test_db.session_scope():
            test_db.projects.create({"name": "Alpha"})

        assert test_db.content_digest() != before

    def test_ids_never_reused(self, test_db):
        """AUTOINCREMENT keeps ids of deleted rows retired."""
        with test_db.session_scope():
            first = test_db.projects.create({"name": "Alpha"})
            first_id = first.id
            test_db.projects.delete(first, hard_delete=True)

        with test_db.session_scope():
            second = test_db.projects.create({"name": "Beta"})
            assert second.id > first_id


class TestLegacyKindStorage:
    """Legacy entries can still be read from disk."""

    def test_legacy_kind_round_trips(self, test_db):
        with test_db.session_scope() as session:
            project = Project(name="Alpha")
            session.add(project)
            session.flush()
            session.add(
                Entry(project_id=project.id, kind=EntryKind.LEGACY_COMMITMENT, title="Old")
            )

        with test_db.session_scope() as session:
            entry = session.query(Entry).one()
            assert entry.kind.is_legacy
