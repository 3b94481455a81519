"""
Dojo Snapshot Import Pipeline
-----------------------------

Parser -> IdentityResolver -> DependencyOrderer -> MergeExecutor ->
ResultReporter, run as one operation by SnapshotImporter.

Usage:
    from dojo.pipeline import SnapshotImporter

    result = SnapshotImporter(db).import_file("snapshot.json")
"""
from .dependency_orderer import DependencyOrderer, OrderedPlan
from .entity_resolver import (
    Action,
    IdentityResolver,
    PlannedAction,
    ResolutionPlan,
    SkipRecord,
)
from .merge_executor import MergeExecutor, MergeOutcome
from .result_reporter import ImportResult, ResultReporter
from .snapshot import SUPPORTED_SCHEMA_VERSION, Snapshot, parse_snapshot
from .snapshot_importer import SnapshotImporter

__all__ = [
    "Action",
    "DependencyOrderer",
    "IdentityResolver",
    "ImportResult",
    "MergeExecutor",
    "MergeOutcome",
    "OrderedPlan",
    "PlannedAction",
    "ResolutionPlan",
    "ResultReporter",
    "SUPPORTED_SCHEMA_VERSION",
    "SkipRecord",
    "Snapshot",
    "SnapshotImporter",
    "parse_snapshot",
]
