"""Tests for CommitmentManager and ReflectionManager."""
from datetime import datetime, timedelta, timezone

import pytest

from dojo.core.exceptions import ValidationError
from dojo.database.managers.tracking_manager import (
    normalize_questions_answers,
    normalize_stats,
)
from dojo.database.models import (
    CommitmentDirection,
    CommitmentStatus,
    ReflectionPeriodType,
    ReflectionType,
)


class TestNormalizers:
    """Tests for reflection payload normalizers."""

    def test_questions_answers(self):
        pairs = normalize_questions_answers(
            [{"question": " Q1 ", "answer": "A"}, {"question": ""}, "junk"]
        )
        assert pairs == [{"question": "Q1", "answer": "A"}]
        assert normalize_questions_answers(None) == []

    def test_stats(self):
        assert normalize_stats({"entries": 4}) == {"entries": 4}
        assert normalize_stats([1, 2]) is None


class TestCommitmentManager:
    """Tests for CommitmentManager."""

    def test_create_with_links(
        self, commitment_manager, project_manager, person_manager
    ):
        project = project_manager.create({"name": "Alpha"})
        alice = person_manager.create({"name": "Alice"})

        commitment = commitment_manager.create(
            {"title": "Send deck", "project": project, "person_id": alice.id}
        )

        assert commitment.project is project
        assert commitment.person is alice
        assert commitment.direction is CommitmentDirection.I_OWE
        assert commitment.status is CommitmentStatus.OPEN

    def test_create_rejects_unknown_link(self, commitment_manager):
        with pytest.raises(ValidationError, match="Invalid person"):
            commitment_manager.create({"title": "Send deck", "person_id": 404})

    def test_ratings_clamped(self, commitment_manager):
        commitment = commitment_manager.create(
            {"title": "Send deck", "importance": 0, "urgency": "7"}
        )
        assert commitment.importance == 1
        assert commitment.urgency == 5

    def test_mark_done_and_reopen(self, commitment_manager):
        commitment = commitment_manager.create({"title": "Send deck"})

        commitment_manager.mark_done(commitment)
        assert commitment.status is CommitmentStatus.DONE
        assert commitment.completed_at is not None

        commitment_manager.reopen(commitment)
        assert commitment.status is CommitmentStatus.OPEN
        assert commitment.completed_at is None

    def test_update_clears_link(self, commitment_manager, project_manager):
        project = project_manager.create({"name": "Alpha"})
        commitment = commitment_manager.create({"title": "Send deck", "project": project})

        commitment_manager.update(commitment, {"project": None})

        assert commitment.project_id is None

    def test_get_active_sorted_by_due_date(self, commitment_manager):
        now = datetime.now(timezone.utc)
        commitment_manager.create({"title": "Later", "due_date": now + timedelta(days=5)})
        commitment_manager.create({"title": "Undated"})
        commitment_manager.create({"title": "Soon", "due_date": now + timedelta(days=1)})
        commitment_manager.create({"title": "Done", "status": "done"})

        titles = [c.title for c in commitment_manager.get_active()]
        assert titles == ["Soon", "Later", "Undated"]


class TestReflectionManager:
    """Tests for ReflectionManager."""

    def test_create(self, reflection_manager):
        reflection = reflection_manager.create(
            {
                "period_type": "week",
                "questions_answers": [
                    {"question": "What went well?", "answer": "Shipping"},
                    {"question": "What was hard?", "answer": "  "},
                ],
                "ai_questions": ["Why?", ""],
            }
        )

        assert reflection.reflection_type is ReflectionType.PERIODIC
        assert reflection.period_type is ReflectionPeriodType.WEEK
        assert reflection.answered_count == 1
        assert reflection.ai_questions == ["Why?"]

    def test_defaults_to_empty_lists(self, reflection_manager):
        reflection = reflection_manager.create({})
        assert reflection.questions_answers == []
        assert reflection.ai_questions == []

    def test_get_all_by_type(self, reflection_manager):
        reflection_manager.create({"reflection_type": "quick"})
        reflection_manager.create({"reflection_type": "project"})

        quick = reflection_manager.get_all(reflection_type="quick")
        assert [r.reflection_type for r in quick] == [ReflectionType.QUICK]
