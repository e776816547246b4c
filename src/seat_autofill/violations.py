"""
Proximity violation detection.

Re-scans a finished arrangement, reading each guest's seat from
``Seat.assigned_guest_id`` on locked and unlocked seats alike, and reports:

    sit-together-unmet: both guests seated but not adjacent (or on different tables)
    sit-away-breached:  both guests seated on adjacent seats

A guest who is not seated, or is missing from the guest lookup, cannot break
a rule. Nothing here mutates its input.
"""
from __future__ import annotations

import copy
import logging
from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Tuple

from .models import Guest, ProximityRules, Seat, Table, Violation, ViolationKind
from .seating import SeatIndex

logger = logging.getLogger(__name__)


def _seated(tables: List[Table]) -> Dict[str, Tuple[Table, Seat]]:
    located: Dict[str, Tuple[Table, Seat]] = {}
    for table in tables:
        for seat in table.seats:
            if seat.assigned_guest_id:
                located[seat.assigned_guest_id] = (table, seat)
    return located


def detect_violations(
    tables: List[Table],
    rules: ProximityRules,
    guest_lookup: Mapping[str, Guest],
) -> List[Violation]:
    """Every proximity rule the arrangement in ``tables`` breaks, one per pair and kind."""
    index = SeatIndex(tables)
    located = _seated(tables)
    violations: List[Violation] = []
    seen = set()

    for rule in rules.sit_together:
        key = (rule.key, ViolationKind.SIT_TOGETHER_UNMET)
        if key in seen:
            continue
        seen.add(key)
        guest1 = guest_lookup.get(rule.guest1_id)
        guest2 = guest_lookup.get(rule.guest2_id)
        if guest1 is None or guest2 is None:
            continue
        loc1, loc2 = located.get(rule.guest1_id), located.get(rule.guest2_id)
        if loc1 is None or loc2 is None:
            continue
        (table1, seat1), (table2, seat2) = loc1, loc2
        if table1.id != table2.id:
            reason = (
                f"{guest1.name} and {guest2.name} should sit together but are on different tables "
                f"({table1.display_label} vs {table2.display_label})"
            )
        elif not index.are_adjacent(seat1.id, seat2.id):
            reason = f"{guest1.name} and {guest2.name} should sit together but are not adjacent"
        else:
            continue
        violations.append(Violation(
            kind=ViolationKind.SIT_TOGETHER_UNMET,
            guest1_id=rule.guest1_id,
            guest2_id=rule.guest2_id,
            guest1_name=guest1.name,
            guest2_name=guest2.name,
            table_id=table1.id,
            table_label=table1.display_label,
            seat1_id=seat1.id,
            seat2_id=seat2.id,
            reason=reason,
        ))

    for rule in rules.sit_away:
        key = (rule.key, ViolationKind.SIT_AWAY_BREACHED)
        if key in seen:
            continue
        seen.add(key)
        guest1 = guest_lookup.get(rule.guest1_id)
        guest2 = guest_lookup.get(rule.guest2_id)
        if guest1 is None or guest2 is None:
            continue
        loc1, loc2 = located.get(rule.guest1_id), located.get(rule.guest2_id)
        if loc1 is None or loc2 is None:
            continue
        (table1, seat1), (_, seat2) = loc1, loc2
        if not index.are_adjacent(seat1.id, seat2.id):
            continue
        violations.append(Violation(
            kind=ViolationKind.SIT_AWAY_BREACHED,
            guest1_id=rule.guest1_id,
            guest2_id=rule.guest2_id,
            guest1_name=guest1.name,
            guest2_name=guest2.name,
            table_id=table1.id,
            table_label=table1.display_label,
            seat1_id=seat1.id,
            seat2_id=seat2.id,
            reason=f"{guest1.name} and {guest2.name} should not sit together but are adjacent",
        ))

    logger.debug("Violation check: %d found", len(violations))
    return violations


def summarize_violations(violations: List[Violation]) -> Dict[str, int]:
    together = sum(1 for v in violations if v.kind is ViolationKind.SIT_TOGETHER_UNMET)
    away = sum(1 for v in violations if v.kind is ViolationKind.SIT_AWAY_BREACHED)
    return {"sit_together": together, "sit_away": away, "total": together + away}


def violations_by_table(violations: List[Violation]) -> Dict[str, List[Violation]]:
    grouped: Dict[str, List[Violation]] = {}
    for violation in violations:
        grouped.setdefault(violation.table_id, []).append(violation)
    return grouped


def violations_for_guest(violations: List[Violation], guest_id: str) -> List[Violation]:
    return [v for v in violations if guest_id in (v.guest1_id, v.guest2_id)]


def detect_violations_after_assignment(
    tables: List[Table],
    seat_id: str,
    guest_id: str,
    rules: ProximityRules,
    guest_lookup: Mapping[str, Guest],
) -> List[Violation]:
    """Violations if ``guest_id`` were seated at ``seat_id``. Unknown seats give ``[]``."""
    simulated = copy.deepcopy(tables)
    for table in simulated:
        for seat in table.seats:
            if seat.assigned_guest_id == guest_id:
                seat.assigned_guest_id = None
    target = next((s for t in simulated for s in t.seats if s.id == seat_id), None)
    if target is None:
        logger.warning("Assignment simulation failed: seat %s not found", seat_id)
        return []
    target.assigned_guest_id = guest_id
    return detect_violations(simulated, rules, guest_lookup)


@dataclass
class AssignmentCheck:
    is_valid: bool
    warnings: List[str] = field(default_factory=list)
    violations: List[Violation] = field(default_factory=list)


def validate_seat_assignment(
    tables: List[Table],
    seat_id: str,
    guest_id: str,
    rules: ProximityRules,
    guest_lookup: Mapping[str, Guest],
) -> AssignmentCheck:
    """What-if check for a manual placement, limited to rules naming ``guest_id``."""
    if not any(s.id == seat_id for t in tables for s in t.seats):
        return AssignmentCheck(is_valid=False, warnings=["Table or seat not found"])
    found = detect_violations_after_assignment(tables, seat_id, guest_id, rules, guest_lookup)
    own = violations_for_guest(found, guest_id)
    return AssignmentCheck(
        is_valid=not own,
        warnings=[v.reason or "Proximity rule violation" for v in own],
        violations=own,
    )
