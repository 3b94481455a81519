"""Tests for identity resolution."""
from datetime import datetime, timezone
from unittest.mock import MagicMock

from dojo.core.exceptions import ValidationError
from dojo.core.logging_manager import DojoLogger
from dojo.pipeline.entity_resolver import Action, IdentityResolver
from dojo.pipeline.snapshot import parse_snapshot


def _resolve(session, text, **kwargs):
    return IdentityResolver(session, **kwargs).resolve(parse_snapshot(text))


class TestExternalIdMatching:
    """Records carrying an id."""

    def test_unknown_id_creates(self, db_session, factory):
        plan = _resolve(db_session, factory.snapshot(people=[factory.person()]))

        (action,) = plan.actions["person"]
        assert action.action is Action.CREATE
        assert action.local_id is None

    def test_known_id_updates(self, db_session, person_manager, factory):
        alice = person_manager.create({"name": "Alice", "external_id": "u-1"})

        plan = _resolve(db_session, factory.snapshot(people=[factory.person()]))

        (action,) = plan.actions["person"]
        assert action.action is Action.UPDATE
        assert action.local_id == alice.id
        assert action.matched_by == "external_id"
        assert plan.local_ids["person"] == {"u-1": alice.id}

    def test_tombstone_still_owns_its_id(self, db_session, person_manager, factory):
        alice = person_manager.create({"name": "Alice", "external_id": "u-1"})
        person_manager.delete(alice, deleted_by="me")

        plan = _resolve(db_session, factory.snapshot(people=[factory.person()]))

        assert plan.actions["person"][0].action is Action.UPDATE
        assert plan.actions["person"][0].local_id == alice.id

    def test_present_but_unmatched_id_never_falls_back(
        self, db_session, person_manager, factory
    ):
        """An id that matches nothing creates, even if the name matches."""
        person_manager.create({"name": "Alice", "external_id": "local-alice"})

        plan = _resolve(db_session, factory.snapshot(people=[factory.person()]))

        assert plan.actions["person"][0].action is Action.CREATE

    def test_duplicate_id_skips_later_record(self, db_session, factory):
        text = factory.snapshot(
            people=[factory.person(), factory.person(name="Alice B.")]
        )
        plan = _resolve(db_session, text)

        assert len(plan.actions["person"]) == 1
        assert plan.actions["person"][0].record.name == "Alice"
        (skip,) = plan.skipped
        assert skip.error is ValidationError
        assert "duplicate id 'u-1'" in skip.message


class TestFingerprintMatching:
    """Records without an id."""

    def test_unique_fingerprint_updates(self, db_session, person_manager, factory):
        alice = person_manager.create({"name": "Alice"})

        plan = _resolve(
            db_session, factory.snapshot(people=[factory.person(external_id=None)])
        )

        (action,) = plan.actions["person"]
        assert action.action is Action.UPDATE
        assert action.local_id == alice.id
        assert action.matched_by == "fingerprint"

    def test_project_fingerprint_includes_created_at(
        self, db_session, project_manager, factory
    ):
        created = datetime(2026, 1, 1, 9, tzinfo=timezone.utc)
        project = project_manager.create({"name": "Alpha", "created_at": created})

        same = factory.project(external_id=None)
        later = factory.project(external_id=None, createdAt="2026-05-01T00:00:00Z")
        plan = _resolve(db_session, factory.snapshot(projects=[same, later]))

        first, second = plan.actions["project"]
        assert first.action is Action.UPDATE
        assert first.local_id == project.id
        assert second.action is Action.CREATE

    def test_no_candidate_creates_silently(self, db_session, factory):
        plan = _resolve(
            db_session, factory.snapshot(people=[factory.person(external_id=None)])
        )
        assert plan.actions["person"][0].action is Action.CREATE
        assert plan.warnings == []

    def test_several_local_candidates_is_ambiguous(
        self, db_session, person_manager, factory
    ):
        person_manager.create({"name": "Alice"})
        person_manager.create({"name": "Alice"})
        logger = MagicMock(spec=DojoLogger)

        plan = _resolve(
            db_session,
            factory.snapshot(people=[factory.person(external_id=None)]),
            logger=logger,
        )

        assert plan.actions["person"][0].action is Action.CREATE
        (warning,) = plan.warnings
        assert warning.startswith("Ambiguous match for person 'person[0]'")
        logger.log_warning.assert_called_once_with(warning)

    def test_shared_fingerprint_in_batch_is_ambiguous(
        self, db_session, person_manager, factory
    ):
        person_manager.create({"name": "Alice"})
        text = factory.snapshot(
            people=[factory.person(external_id=None), factory.person(external_id=None)]
        )

        plan = _resolve(db_session, text)

        assert [a.action for a in plan.actions["person"]] == [
            Action.CREATE,
            Action.CREATE,
        ]
        assert len(plan.warnings) == 2

    def test_claimed_rows_are_not_candidates(
        self, db_session, person_manager, factory
    ):
        alice = person_manager.create({"name": "Alice", "external_id": "u-1"})
        text = factory.snapshot(
            people=[factory.person(), factory.person(external_id=None)]
        )

        plan = _resolve(db_session, text)

        by_id, by_fingerprint = plan.actions["person"]
        assert by_id.local_id == alice.id
        assert by_fingerprint.action is Action.CREATE

    def test_soft_deleted_rows_are_candidates(
        self, db_session, person_manager, factory
    ):
        alice = person_manager.create({"name": "Alice"})
        person_manager.delete(alice)

        plan = _resolve(
            db_session, factory.snapshot(people=[factory.person(external_id=None)])
        )

        assert plan.actions["person"][0].local_id == alice.id

    def test_case_folded_matching(self, db_session, person_manager, factory):
        person_manager.create({"name": "Alice"})
        text = factory.snapshot(people=[factory.person(external_id=None, name="ALICE")])

        exact = _resolve(db_session, text)
        folded = _resolve(db_session, text, case_sensitive=False)

        assert exact.actions["person"][0].action is Action.CREATE
        assert folded.actions["person"][0].action is Action.UPDATE

    def test_incomplete_fingerprint_creates(self, db_session, project_manager, factory):
        project_manager.create({"name": "Alpha"})
        record = factory.project(external_id=None, createdAt=None)

        plan = _resolve(db_session, factory.snapshot(projects=[record]))

        assert plan.actions["project"][0].action is Action.CREATE


class TestInvalidRecords:
    """Records that cannot be written."""

    def test_create_without_required_field_skipped(self, db_session, factory):
        plan = _resolve(
            db_session, factory.snapshot(people=[factory.person(name=None)])
        )

        assert plan.actions["person"] == []
        (skip,) = plan.skipped
        assert skip.key == "u-1"
        assert skip.message == "required field 'name' missing"
        assert skip.render() == (
            "Skipped person 'u-1' (ValidationError): required field 'name' missing"
        )

    def test_update_without_required_field_allowed(
        self, db_session, person_manager, factory
    ):
        person_manager.create({"name": "Alice", "external_id": "u-1"})

        plan = _resolve(
            db_session, factory.snapshot(people=[factory.person(name=None)])
        )

        assert plan.actions["person"][0].action is Action.UPDATE
        assert plan.skipped == []

    def test_entry_without_project_skipped(self, db_session, factory):
        plan = _resolve(
            db_session, factory.snapshot(entries=[factory.entry(project_id=None)])
        )

        (skip,) = plan.skipped
        assert skip.message == "required reference 'projectId' missing"

    def test_legacy_entry_skipped(self, db_session, factory):
        text = factory.snapshot(
            projects=[factory.project()],
            entries=[factory.entry(kind="commitment")],
        )

        plan = _resolve(db_session, text)

        assert plan.actions["entry"] == []
        (skip,) = plan.skipped
        assert skip.error is ValidationError
        assert "legacy-only" in skip.message


class TestDeterminism:
    """Same store and snapshot, same plan."""

    def test_repeatable(self, db_session, person_manager, sample_snapshot):
        person_manager.create({"name": "Alice"})

        first = _resolve(db_session, sample_snapshot)
        second = _resolve(db_session, sample_snapshot)

        assert first == second

    def test_logs_summary(self, db_session, sample_snapshot):
        logger = MagicMock(spec=DojoLogger)
        _resolve(db_session, sample_snapshot, logger=logger)

        operation, details = logger.log_operation.call_args[0]
        assert operation == "resolve_identities"
        assert details["create"] == 7
