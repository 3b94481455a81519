#!/usr/bin/env python3
"""
Integration tests for the dojo CLI.

Runs the click commands against a temporary store, log directory and
settings file.
"""
import json

import pytest
from click.testing import CliRunner

from dojo.cli import cli
from dojo.database import DojoDB
from dojo.database.models import Entry, EntryKind, Project


class TestDojoCLI:
    """Test CLI commands with a temporary database."""

    @pytest.fixture
    def runner(self):
        """Create Click test runner."""
        return CliRunner()

    @pytest.fixture
    def test_dirs(self, tmp_path):
        """Create temporary paths for testing."""
        return {
            "db_path": tmp_path / "store" / "dojo.db",
            "log_dir": tmp_path / "logs",
            "config": tmp_path / "dojo.yaml",
            "root": tmp_path,
        }

    @pytest.fixture
    def snapshot_file(self, test_dirs, sample_snapshot):
        path = test_dirs["root"] / "snapshot.json"
        path.write_text(sample_snapshot, encoding="utf-8")
        return path

    def invoke_cli(self, runner, test_dirs, args, **kwargs):
        """Helper to invoke CLI with test configuration."""
        base_args = [
            "--db-path", str(test_dirs["db_path"]),
            "--log-dir", str(test_dirs["log_dir"]),
            "--config", str(test_dirs["config"]),
        ]
        return runner.invoke(cli, base_args + args, **kwargs)

    def test_cli_help(self, runner):
        result = runner.invoke(cli, ["--help"])
        assert result.exit_code == 0
        for command in ("init", "import", "export", "normalize", "stats"):
            assert command in result.output

    def test_init_creates_store(self, runner, test_dirs):
        result = self.invoke_cli(runner, test_dirs, ["init"])

        assert result.exit_code == 0
        assert "Database ready" in result.output
        assert test_dirs["db_path"].exists()
        assert (test_dirs["log_dir"] / "operations" / "cli.log").exists()

    def test_init_reports_legacy_cleanup(self, runner, test_dirs):
        db = DojoDB(test_dirs["db_path"], normalize_legacy=False)
        with db.session_scope() as session:
            project = Project(name="Alpha")
            session.add(project)
            session.flush()
            session.add(
                Entry(project_id=project.id, kind=EntryKind.LEGACY_COMMITMENT, title="Old")
            )
        db.dispose()

        result = self.invoke_cli(runner, test_dirs, ["init"])

        assert result.exit_code == 0
        assert "Removed 1 legacy" in result.output

    def test_import_summary(self, runner, test_dirs, snapshot_file):
        result = self.invoke_cli(runner, test_dirs, ["import", str(snapshot_file)])

        assert result.exit_code == 0
        assert "Import complete: 7 created" in result.output
        assert "created: project: 1, person: 2, entry: 2" in result.output

    def test_import_json(self, runner, test_dirs, snapshot_file):
        self.invoke_cli(runner, test_dirs, ["import", str(snapshot_file)])

        result = self.invoke_cli(
            runner, test_dirs, ["import", str(snapshot_file), "--json"]
        )

        assert result.exit_code == 0
        report = json.loads(result.output)
        assert report["created"] == {}
        assert report["unchanged"]["person"] == 2
        assert report["warnings"] == []

    def test_import_lists_warnings(self, runner, test_dirs, factory):
        path = test_dirs["root"] / "partial.json"
        path.write_text(
            factory.snapshot(commitments=[factory.commitment(sourceEntryId="e-404")]),
            encoding="utf-8",
        )

        result = self.invoke_cli(runner, test_dirs, ["import", str(path)])

        assert result.exit_code == 0
        assert "1 warning(s)" in result.output
        assert "sourceEntryId 'e-404' not found" in result.output

    def test_import_invalid_snapshot(self, runner, test_dirs):
        path = test_dirs["root"] / "broken.json"
        path.write_text('{"schemaVersion": 2', encoding="utf-8")

        result = self.invoke_cli(runner, test_dirs, ["import", str(path)])

        assert result.exit_code == 1
        assert "ParseError" in result.output

    def test_import_missing_file(self, runner, test_dirs):
        result = self.invoke_cli(
            runner, test_dirs, ["import", str(test_dirs["root"] / "nope.json")]
        )
        assert result.exit_code == 2

    def test_import_rejects_non_positive_timeout(self, runner, test_dirs, snapshot_file):
        result = self.invoke_cli(
            runner, test_dirs, ["import", str(snapshot_file), "--timeout", "0"]
        )
        assert result.exit_code == 2

    def test_export(self, runner, test_dirs, snapshot_file):
        self.invoke_cli(runner, test_dirs, ["import", str(snapshot_file)])
        output = test_dirs["root"] / "exports" / "dojo.json"

        result = self.invoke_cli(runner, test_dirs, ["export", str(output)])

        assert result.exit_code == 0
        assert "people: 2" in result.output
        data = json.loads(output.read_text(encoding="utf-8"))
        assert {p["id"] for p in data["people"]} == {"u-1", "u-2"}

    def test_stats_json(self, runner, test_dirs, snapshot_file):
        self.invoke_cli(runner, test_dirs, ["import", str(snapshot_file)])

        result = self.invoke_cli(runner, test_dirs, ["stats", "--json"])

        assert result.exit_code == 0
        counts = json.loads(result.output)
        assert counts["entry"] == {"active": 2, "deleted": 0}

    def test_normalize(self, runner, test_dirs):
        result = self.invoke_cli(runner, test_dirs, ["normalize"])

        assert result.exit_code == 0
        assert "deleted: 0" in result.output

    def test_invalid_config(self, runner, test_dirs):
        test_dirs["config"].write_text("default_timeout: -5\n", encoding="utf-8")

        result = self.invoke_cli(runner, test_dirs, ["stats"])

        assert result.exit_code == 1
        assert "ConfigError" in result.output
