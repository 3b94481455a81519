"""Tests for the legacy entry cleanup pass."""
from unittest.mock import MagicMock

from sqlalchemy import text

from dojo.core.logging_manager import DojoLogger
from dojo.database.legacy_normalizer import LegacyEntryNormalizer
from dojo.database.models import (
    Commitment,
    Entry,
    EntryKind,
    Person,
    Project,
    Reflection,
)


def _seed(db):
    """One live entry, two legacy entries, and records sourced from a legacy one."""
    with db.session_scope() as session:
        project = Project(name="Alpha")
        alice = Person(name="Alice")
        session.add_all([project, alice])
        session.flush()

        keep = Entry(project_id=project.id, kind=EntryKind.MEETING, title="Sync")
        legacy = Entry(
            project_id=project.id,
            kind=EntryKind.LEGACY_COMMITMENT,
            title="Send deck",
            participants=[alice],
        )
        tombstone = Entry(
            project_id=project.id, kind=EntryKind.LEGACY_COMMITMENT, title="Old"
        )
        session.add_all([keep, legacy, tombstone])
        session.flush()
        tombstone.soft_delete(deleted_by="me")

        session.add(Commitment(title="Send deck", source_entry_id=legacy.id))
        session.add(Reflection(source_entry_id=legacy.id))


class TestLegacyEntryNormalizer:
    """Tests for LegacyEntryNormalizer.run."""

    def test_deletes_legacy_entries(self, test_db):
        _seed(test_db)

        report = LegacyEntryNormalizer(test_db).run()

        assert report.scanned == 3
        assert report.deleted == 2
        with test_db.session_scope() as session:
            titles = [e.title for e in session.query(Entry).all()]
            assert titles == ["Sync"]

    def test_sourced_records_survive_with_link_cleared(self, test_db):
        _seed(test_db)
        LegacyEntryNormalizer(test_db).run()

        with test_db.session_scope() as session:
            commitment = session.query(Commitment).one()
            reflection = session.query(Reflection).one()
            assert commitment.source_entry_id is None
            assert reflection.source_entry_id is None
            assert session.query(Person).count() == 1

    def test_second_run_is_a_no_op(self, test_db):
        _seed(test_db)
        LegacyEntryNormalizer(test_db).run()
        digest = test_db.content_digest()

        report = LegacyEntryNormalizer(test_db).run()

        assert report.deleted == 0
        assert test_db.content_digest() == digest

    def test_logs_outcome(self, test_db):
        _seed(test_db)
        logger = MagicMock(spec=DojoLogger)

        LegacyEntryNormalizer(test_db, logger).run()

        operations = [c[0][0] for c in logger.log_operation.call_args_list]
        assert "legacy_normalization_complete" in operations

    def test_runs_via_db(self, test_db):
        _seed(test_db)
        report = test_db.normalize_legacy_entries()
        assert report.deleted == 2

    def test_unrecognised_stored_kind_is_left_alone(self, test_db):
        _seed(test_db)
        with test_db.session_scope() as session:
            session.execute(text("UPDATE entries SET kind = 'retro' WHERE title = 'Sync'"))

        report = LegacyEntryNormalizer(test_db).run()

        assert report.scanned == 3
        assert report.deleted == 2
        with test_db.session_scope() as session:
            kinds = session.execute(text("SELECT kind FROM entries")).scalars().all()
            assert kinds == ["retro"]
