#!/usr/bin/env python3
"""
result_reporter.py
------------------
Aggregates the output of every import phase into one ImportResult.

Terminal failures are never reported here: ParseError and StorageError
propagate to the caller instead of producing a partial result.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List

from .configs import COMMIT_ORDER
from .dependency_orderer import OrderedPlan
from .merge_executor import MergeOutcome
from .snapshot import Snapshot


def _nonzero(counts: Dict[str, int]) -> Dict[str, int]:
    return {kind: counts[kind] for kind in COMMIT_ORDER if counts.get(kind)}


@dataclass
class ImportResult:
    """
    Summary of a completed import.

    Attributes:
        created, updated, unchanged, skipped: kind -> count
        warnings: Parser, resolution and skip messages in phase order
        duration: Seconds from start to commit
        schema_version: schemaVersion of the imported snapshot
    """

    created: Dict[str, int] = field(default_factory=dict)
    updated: Dict[str, int] = field(default_factory=dict)
    unchanged: Dict[str, int] = field(default_factory=dict)
    skipped: Dict[str, int] = field(default_factory=dict)
    warnings: List[str] = field(default_factory=list)
    duration: float = 0.0
    schema_version: int = 0

    @property
    def total_created(self) -> int:
        return sum(self.created.values())

    @property
    def total_updated(self) -> int:
        return sum(self.updated.values())

    @property
    def total_skipped(self) -> int:
        return sum(self.skipped.values())

    @property
    def total_unchanged(self) -> int:
        return sum(self.unchanged.values())

    def to_dict(self) -> Dict[str, Any]:
        """Counts by kind (zero counts omitted) and warnings."""
        return {
            "created": _nonzero(self.created),
            "updated": _nonzero(self.updated),
            "unchanged": _nonzero(self.unchanged),
            "skipped": _nonzero(self.skipped),
            "warnings": list(self.warnings),
        }

    def summary(self) -> str:
        return (
            f"{self.total_created} created, {self.total_updated} updated, "
            f"{self.total_unchanged} unchanged, {self.total_skipped} skipped "
            f"({len(self.warnings)} warnings) in {self.duration:.2f}s"
        )


class ResultReporter:
    """Builds ImportResult objects."""

    @staticmethod
    def build(
        snapshot: Snapshot,
        plan: OrderedPlan,
        outcome: MergeOutcome,
        duration: float,
    ) -> ImportResult:
        """
        Combine phase outputs.

        Args:
            snapshot: Parsed snapshot (parser warnings, schema version)
            plan: Ordered plan (resolution warnings, all skips)
            outcome: Committed merge counts
            duration: Elapsed seconds

        Returns:
            ImportResult
        """
        skipped: Dict[str, int] = {}
        for skip in plan.skipped:
            skipped[skip.kind] = skipped.get(skip.kind, 0) + 1

        warnings = list(snapshot.warnings)
        warnings.extend(plan.warnings)
        warnings.extend(skip.render() for skip in plan.skipped)

        return ImportResult(
            created=dict(outcome.created),
            updated=dict(outcome.updated),
            unchanged=dict(outcome.unchanged),
            skipped=skipped,
            warnings=warnings,
            duration=duration,
            schema_version=snapshot.schema_version,
        )
