#!/usr/bin/env python3
"""
dependency_orderer.py
---------------------
Orders planned actions so that every reference is written before it is
used, and drops records whose references cannot be satisfied.

Kinds are processed in COMMIT_ORDER (project, person, entry, commitment,
reflection) and, within a kind, in snapshot array order. A reference is
satisfied when its target is

    - planned (CREATE or UPDATE) in the same snapshot, or
    - already present in the local store (tombstones included).

A reference to a record that was itself skipped skips the dependent as
well (cascading skip). A reference to nothing at all skips the record.
Skips only propagate forward: nothing earlier in the order is revisited.

The translation seed maps UPDATE targets and store-resolved references
to local ids; the merge executor extends it with the ids of the rows it
creates.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Set

from dojo.core.exceptions import ReferentialError
from dojo.core.logging_manager import DojoLogger, safe_logger

from .configs import COMMIT_ORDER, CONFIG_BY_KIND, ReferenceConfig
from .entity_resolver import Action, PlannedAction, ResolutionPlan, SkipRecord

Translation = Dict[str, Dict[str, int]]


@dataclass
class OrderedPlan:
    """
    Output of dependency ordering.

    Attributes:
        steps: Actions in commit order
        skipped: Every skipped record (resolution and ordering)
        warnings: Resolution warnings carried forward
        translation_seed: kind -> {external id -> local id} known up front
    """

    steps: List[PlannedAction] = field(default_factory=list)
    skipped: List[SkipRecord] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    translation_seed: Translation = field(default_factory=dict)


class DependencyOrderer:
    """Validates references and fixes the write order."""

    def __init__(self, logger: Optional[DojoLogger] = None) -> None:
        self.logger = logger

    def order(self, plan: ResolutionPlan) -> OrderedPlan:
        """
        Order a resolution plan for execution.

        Args:
            plan: Output of IdentityResolver.resolve

        Returns:
            OrderedPlan
        """
        ordered = OrderedPlan(
            skipped=list(plan.skipped),
            warnings=list(plan.warnings),
            translation_seed={kind: {} for kind in COMMIT_ORDER},
        )

        planned: Dict[str, Set[str]] = {kind: set() for kind in COMMIT_ORDER}
        skipped: Dict[str, Set[str]] = {kind: set() for kind in COMMIT_ORDER}
        for skip in plan.skipped:
            if skip.external_id:
                skipped[skip.kind].add(skip.external_id)

        for kind in COMMIT_ORDER:
            config = CONFIG_BY_KIND[kind]
            for action in plan.actions.get(kind, []):
                record = action.record
                message = None
                for ref in config.references:
                    message = self._check_reference(
                        ref, record, plan, planned, skipped, ordered.translation_seed
                    )
                    if message is not None:
                        break

                if message is not None:
                    skip = SkipRecord(
                        kind, record.key, ReferentialError, message, record.external_id
                    )
                    ordered.skipped.append(skip)
                    if record.external_id:
                        skipped[kind].add(record.external_id)
                    safe_logger(self.logger).log_warning(skip.render())
                    continue

                ordered.steps.append(action)
                if record.external_id:
                    planned[kind].add(record.external_id)
                    if action.action is Action.UPDATE:
                        ordered.translation_seed[kind][record.external_id] = (
                            action.local_id
                        )

        safe_logger(self.logger).log_operation(
            "order_dependencies",
            {"steps": len(ordered.steps), "skipped": len(ordered.skipped)},
        )
        return ordered

    @staticmethod
    def _check_reference(
        ref: ReferenceConfig,
        record,
        plan: ResolutionPlan,
        planned: Dict[str, Set[str]],
        skipped: Dict[str, Set[str]],
        seed: Translation,
    ) -> Optional[str]:
        """Return the reason the reference fails, or None if it resolves."""
        value = getattr(record, ref.field)
        if value is None:
            return None
        targets = value if ref.many else (value,)

        for target_id in targets:
            if target_id in planned[ref.target]:
                continue
            if target_id in skipped[ref.target]:
                return f"{ref.wire_name} '{target_id}' refers to a skipped {ref.target}"
            local_id = plan.local_ids.get(ref.target, {}).get(target_id)
            if local_id is not None:
                seed[ref.target][target_id] = local_id
                continue
            return f"{ref.wire_name} '{target_id}' not found"
        return None
