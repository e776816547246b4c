"""
Auto-fill orchestration.

    comparator -> pools -> initial placement -> sit-together -> sit-away -> commit

The seat id -> guest id map is the only working state and is threaded through
the passes explicitly. The caller's guests and tables are never mutated; the
result carries a materialized copy of the tables with the new map applied.
"""
from __future__ import annotations

import copy
import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

from .models import (
    Guest,
    LockedGuestLocation,
    ProximityRules,
    RandomizeOrder,
    SeatAssignments,
    SortRule,
    Table,
    TableRules,
    Violation,
)
from .optimize import DEFAULT_MAX_SIT_AWAY_ATTEMPTS, apply_sit_away, apply_sit_together
from .placement import perform_initial_placement
from .pools import build_candidate_order, build_prioritized_pools
from .seating import SeatIndex, build_locked_guest_map
from .sorting import DEFAULT_SORT_RULES, is_randomize_applicable, make_comparator
from .violations import detect_violations, summarize_violations

logger = logging.getLogger(__name__)


@dataclass
class AutoFillResult:
    assignments: SeatAssignments = field(default_factory=dict)
    tables: List[Table] = field(default_factory=list)
    violations: List[Violation] = field(default_factory=list)


def materialize(tables: List[Table], assignments: SeatAssignments) -> List[Table]:
    """Deep copy of ``tables`` with unlocked seats cleared and ``assignments`` applied."""
    committed = copy.deepcopy(tables)
    for table in committed:
        for seat in table.seats:
            if seat.locked:
                continue
            seat.assigned_guest_id = assignments.get(seat.id)
    return committed


class AutoFillModel:
    """Deterministic priority-ordered seat filler."""

    def __init__(
        self,
        sort_rules: Optional[Sequence[SortRule]] = None,
        table_rules: Optional[TableRules] = None,
        proximity_rules: Optional[ProximityRules] = None,
        randomize_order: Optional[RandomizeOrder] = None,
        include_internal: bool = True,
        include_external: bool = True,
        max_sit_away_attempts: int = DEFAULT_MAX_SIT_AWAY_ATTEMPTS,
    ) -> None:
        self.sort_rules: List[SortRule] = list(sort_rules) if sort_rules else list(DEFAULT_SORT_RULES)
        self.table_rules = table_rules or TableRules()
        self.proximity_rules = proximity_rules or ProximityRules()
        self.randomize_order = randomize_order
        self.include_internal = include_internal
        self.include_external = include_external
        self.max_sit_away_attempts = max_sit_away_attempts
        # Inputs
        self.guests: List[Guest] = []
        self.tables: List[Table] = []
        self.guest_lookup: Dict[str, Guest] = {}

    def build(self, guests: List[Guest], tables: List[Table]) -> None:
        """Store the roster and seat graph. Soft-deleted guests are dropped."""
        self.proximity_rules.validate()
        self.guests = [g for g in guests if not g.deleted]
        self.tables = tables
        self.guest_lookup = {g.id: g for g in self.guests}
        dropped = len(guests) - len(self.guests)
        if dropped:
            logger.debug("Ignoring %d deleted guests", dropped)

    def _candidates(self, locked: Dict[str, LockedGuestLocation]):
        internal = [g for g in self.guests if g.internal and g.id not in locked] if self.include_internal else []
        external = [g for g in self.guests if not g.internal and g.id not in locked] if self.include_external else []
        return internal, external

    def solve(self) -> AutoFillResult:
        """Run every pass and return the committed arrangement and its violations."""
        if not self.include_internal and not self.include_external:
            logger.warning("Neither internal nor external guests selected; nothing to seat")
            return AutoFillResult()

        comparator = make_comparator(self.sort_rules)
        index = SeatIndex(self.tables)
        locked = build_locked_guest_map(self.tables)
        internal, external = self._candidates(locked)

        pools = build_prioritized_pools(internal, external, self.proximity_rules, comparator)
        randomize = self.randomize_order
        if randomize is not None and randomize.enabled and not is_randomize_applicable(self.sort_rules):
            logger.info("Rank randomization ignored: sort rules are not a single ranking rule")
            randomize = None
        order = build_candidate_order(pools, comparator, self.proximity_rules, randomize)

        assignments = perform_initial_placement(
            self.tables, order, set(locked), self.table_rules, self.proximity_rules, index
        )
        assignments = apply_sit_together(
            assignments, self.tables, self.proximity_rules, self.guests, comparator, locked, index
        )
        assignments = apply_sit_away(
            assignments, self.tables, self.proximity_rules, self.guests, comparator, locked, index,
            max_attempts=self.max_sit_away_attempts,
        )

        committed = materialize(self.tables, assignments)
        violations = detect_violations(committed, self.proximity_rules, self.guest_lookup)
        summary = summarize_violations(violations)
        logger.info(
            "Seated %d of %d candidates (%d locked); %d violations (%d sit-together, %d sit-away)",
            len(assignments), len(order), len(locked),
            summary["total"], summary["sit_together"], summary["sit_away"],
        )
        return AutoFillResult(assignments=assignments, tables=committed, violations=violations)
