"""
Initial seat placement.

Walks tables by display number and their unlocked seats by seat number and
fills each seat greedily from the ordered candidate list. Three fill modes:

    spacing: alternate populations, e.g. spacing 2 gives I E E I E E ...
    ratio:   fill toward per-table target counts, e.g. 2:1 on 9 seats is 6/3
    default: next candidate in priority order

A seat restricted to one population always takes the next guest of that
population regardless of the active mode. Every pick avoids, when it can,
seating a guest beside a locked guest they must sit away from.
"""
from __future__ import annotations

import logging
import math
from typing import List, Optional, Set

from .models import Guest, ProximityRules, Seat, SeatAssignments, SeatMode, Table, TableRules
from .seating import SeatIndex, can_place, sorted_seats, sorted_tables, would_violate_sit_away_with_locked

logger = logging.getLogger(__name__)

INTERNAL = True
EXTERNAL = False


class _CandidatePicker:
    """Hands out unassigned candidates in priority order."""

    def __init__(
        self,
        candidates: List[Guest],
        taken: Set[str],
        index: SeatIndex,
        rules: Optional[ProximityRules],
    ) -> None:
        self.candidates = candidates
        self.taken = taken
        self.index = index
        self.rules = rules

    def remaining(self, internal: bool) -> bool:
        return any(g.internal == internal and g.id not in self.taken for g in self.candidates)

    def pick(self, seat: Seat, internal: Optional[bool] = None) -> Optional[Guest]:
        eligible = [
            g for g in self.candidates
            if g.id not in self.taken
            and (internal is None or g.internal == internal)
            and can_place(g, seat)
        ]
        if not eligible:
            return None
        first = eligible[0]
        if self.rules is None or not self.rules.sit_away:
            return first
        if not would_violate_sit_away_with_locked(first.id, seat, self.index, self.rules):
            return first
        for guest in eligible[1:]:
            if not would_violate_sit_away_with_locked(guest.id, seat, self.index, self.rules):
                return guest
        # Accept the breach rather than leave the seat empty
        return first


def _mode_population(seat: Seat) -> Optional[bool]:
    if seat.mode is SeatMode.INTERNAL_ONLY:
        return INTERNAL
    if seat.mode is SeatMode.EXTERNAL_ONLY:
        return EXTERNAL
    return None


def perform_initial_placement(
    tables: List[Table],
    candidates: List[Guest],
    locked_guest_ids: Set[str],
    table_rules: Optional[TableRules] = None,
    proximity_rules: Optional[ProximityRules] = None,
    index: Optional[SeatIndex] = None,
) -> SeatAssignments:
    """Greedy seat-by-seat fill. Returns a new seat id -> guest id map.

    ``candidates`` must already be in placement order. Locked seats are never
    written and locked guests are never placed again.
    """
    index = index or SeatIndex(tables)
    assignments: SeatAssignments = {}
    taken: Set[str] = set(locked_guest_ids)
    picker = _CandidatePicker(candidates, taken, index, proximity_rules)

    def place(seat: Seat, guest: Optional[Guest]) -> bool:
        if guest is None:
            return False
        assignments[seat.id] = guest.id
        taken.add(guest.id)
        return True

    spacing_on = bool(table_rules and table_rules.spacing.enabled)
    ratio_on = bool(table_rules and table_rules.ratio.enabled) and not spacing_on

    for table in sorted_tables(tables):
        seats = [s for s in sorted_seats(table.seats) if not s.locked]
        if spacing_on:
            _fill_with_spacing(seats, table_rules, picker, place)
        elif ratio_on:
            _fill_with_ratio(seats, table_rules, picker, place)
        else:
            for seat in seats:
                place(seat, picker.pick(seat))
        logger.debug(
            "Table %s: %d of %d unlocked seats filled",
            table.display_label, sum(1 for s in seats if s.id in assignments), len(seats),
        )
    return assignments


def _fill_with_spacing(seats: List[Seat], table_rules: TableRules, picker: _CandidatePicker, place) -> None:
    spacing = max(0, int(table_rules.spacing.spacing))
    start_with_external = table_rules.spacing.start_with_external
    internal_turn_at = spacing if start_with_external else 0

    pattern_active = picker.remaining(INTERNAL) and picker.remaining(EXTERNAL)
    position = 0
    i = 0
    while i < len(seats):
        seat = seats[i]
        if pattern_active and not (picker.remaining(INTERNAL) and picker.remaining(EXTERNAL)):
            pattern_active = False

        if not pattern_active:
            place(seat, picker.pick(seat))
            i += 1
            continue

        forced = _mode_population(seat)
        if forced is not None:
            place(seat, picker.pick(seat, forced))
            i += 1
            continue

        population = INTERNAL if position == internal_turn_at else EXTERNAL
        if place(seat, picker.pick(seat, population)):
            position = 0 if position + 1 > spacing else position + 1
            i += 1
        else:
            # Turn's population cannot fill this seat; refill it by priority
            pattern_active = False


def _fill_with_ratio(seats: List[Seat], table_rules: TableRules, picker: _CandidatePicker, place) -> None:
    ratio = table_rules.ratio
    total = ratio.internal_ratio + ratio.external_ratio
    target_internal = target_external = 0
    if total > 0:
        target_internal = int(math.floor(ratio.internal_ratio / total * len(seats)))
        target_external = len(seats) - target_internal

    placed = {INTERNAL: 0, EXTERNAL: 0}
    for seat in seats:
        forced = _mode_population(seat)
        if forced is not None:
            if place(seat, picker.pick(seat, forced)):
                placed[forced] += 1
            continue
        if placed[INTERNAL] < target_internal and place(seat, picker.pick(seat, INTERNAL)):
            placed[INTERNAL] += 1
            continue
        if placed[EXTERNAL] < target_external and place(seat, picker.pick(seat, EXTERNAL)):
            placed[EXTERNAL] += 1
            continue
        place(seat, picker.pick(seat))
