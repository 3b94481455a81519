"""Tests for snapshot export."""
import json

from dojo.database.export_manager import SNAPSHOT_SCHEMA_VERSION, ExportManager
from dojo.database.models import Entry, EntryKind


def _populate(db):
    with db.session_scope() as session:
        project = db.projects.create({"name": "Alpha", "external_id": "p-1"})
        alice = db.people.create({"name": "Alice", "external_id": "u-1"})
        entry = db.entries.create(
            {
                "title": "Kickoff",
                "kind": "meeting",
                "project": project,
                "participants": [alice],
                "external_id": "e-1",
            }
        )
        db.commitments.create(
            {"title": "Send deck", "source_entry": entry, "person": alice}
        )
        gone = db.people.create({"name": "Bob", "external_id": "u-2"})
        db.people.delete(gone, deleted_by="me")
        session.add(
            Entry(project_id=project.id, kind=EntryKind.LEGACY_COMMITMENT, title="Old")
        )


class TestExportSnapshot:
    """Tests for ExportManager.export_snapshot."""

    def test_document_shape(self, test_db):
        _populate(test_db)
        with test_db.session_scope() as session:
            snapshot = ExportManager().export_snapshot(session)

        assert snapshot["schemaVersion"] == SNAPSHOT_SCHEMA_VERSION
        assert snapshot["exportedAt"].endswith("Z")
        assert [p["id"] for p in snapshot["projects"]] == ["p-1"]
        assert [p["id"] for p in snapshot["people"]] == ["u-1"]

    def test_references_use_external_ids(self, test_db):
        _populate(test_db)
        with test_db.session_scope() as session:
            snapshot = ExportManager().export_snapshot(session)

        entry = snapshot["entries"][0]
        assert entry["projectId"] == "p-1"
        assert entry["participantIds"] == ["u-1"]
        commitment = snapshot["commitments"][0]
        assert commitment["sourceEntryId"] == "e-1"
        assert commitment["personId"] == "u-1"
        assert commitment["projectId"] is None

    def test_legacy_entries_never_exported(self, test_db):
        _populate(test_db)
        with test_db.session_scope() as session:
            snapshot = ExportManager().export_snapshot(session, include_deleted=True)
        assert [e["title"] for e in snapshot["entries"]] == ["Kickoff"]

    def test_include_deleted_adds_tombstones(self, test_db):
        _populate(test_db)
        with test_db.session_scope() as session:
            snapshot = ExportManager().export_snapshot(session, include_deleted=True)

        bob = next(p for p in snapshot["people"] if p["id"] == "u-2")
        assert bob["deletedAt"].endswith("Z")
        assert "deletedAt" not in snapshot["people"][0]


class TestExportToFile:
    """Tests for ExportManager.export_to_file."""

    def test_writes_json_and_stats(self, test_db, tmp_dir):
        _populate(test_db)
        output = tmp_dir / "exports" / "dojo.json"

        with test_db.session_scope() as session:
            stats = ExportManager().export_to_file(session, output)

        assert stats["projects"] == 1
        assert stats["entries"] == 1
        assert stats["output_path"] == str(output)
        data = json.loads(output.read_text(encoding="utf-8"))
        assert data["schemaVersion"] == 2
        assert not list(output.parent.glob("*.tmp"))

    def test_export_reimports_as_no_op(self, test_db, tmp_dir):
        """Importing this store's own export changes nothing."""
        from dojo.pipeline import SnapshotImporter

        _populate(test_db)
        test_db.normalize_legacy_entries()
        output = tmp_dir / "dojo.json"
        with test_db.session_scope() as session:
            ExportManager().export_to_file(session, output)
        digest = test_db.content_digest()

        result = SnapshotImporter(test_db).import_file(output)

        assert result.total_created == 0
        assert result.total_updated == 0
        assert test_db.content_digest() == digest
