"""
Proximity repair passes run after initial placement.

Both passes walk their rules in priority order. For each rule the guest that
sorts first under the comparator is the anchor and normally stays put; the other guest
is the mover. When the mover is locked the roles swap, and a rule whose two
guests are both locked is skipped. Locked seats are never written.

Sit-together starts with whole clusters of guests chained by rules. A
cluster spread over several tables is gathered onto the table of its locked
member, or else of its highest-priority member. At that table every member
is moved to the seat that puts it beside the most partners. Rules still
broken then get a pairwise repair that pulls the mover next to the anchor.
It tries an empty neighbouring seat first, then a swap with a neighbour who
can take the mover's seat without losing a sit-together neighbour of their
own. As a last resort the anchor moves beside the mover, and only when that
keeps the anchor beside its other partners.

Sit-away pushes the mover to another seat at the same table that is not next
to the anchor, keeping a move only when it lowers the total violation count.
"""
from __future__ import annotations

import logging
from functools import cmp_to_key
from typing import Dict, Iterable, List, Optional, Set, Tuple

from .models import Guest, LockedGuestLocation, ProximityRule, ProximityRules, Seat, SeatAssignments, Table
from .pools import build_sit_together_clusters
from .seating import SeatIndex, can_place, move_guest, seat_order_key, sorted_seats, swap_guests
from .sorting import Comparator

logger = logging.getLogger(__name__)

DEFAULT_MAX_SIT_AWAY_ATTEMPTS = 20


def _ordered_pairs(
    rules: List[ProximityRule],
    lookup: Dict[str, Guest],
    comparator: Comparator,
) -> List[Tuple[Guest, Guest]]:
    """(anchor, mover) per rule, highest-priority anchor first."""
    pairs = []
    for rule in rules:
        g1 = lookup.get(rule.guest1_id)
        g2 = lookup.get(rule.guest2_id)
        if g1 is None or g2 is None:
            continue
        pairs.append(comparator.first(g1, g2))
    return sorted(pairs, key=cmp_to_key(lambda a, b: comparator(a[0], b[0])))


def count_violations(assignments: SeatAssignments, index: SeatIndex, rules: ProximityRules) -> int:
    """Number of proximity rules the working map currently breaks."""
    seated = index.occupancy(assignments)
    total = 0
    for rule in rules.sit_together:
        s1, s2 = seated.get(rule.guest1_id), seated.get(rule.guest2_id)
        if s1 is None or s2 is None:
            continue
        if not index.are_adjacent(s1, s2):
            total += 1
    for rule in rules.sit_away:
        s1, s2 = seated.get(rule.guest1_id), seated.get(rule.guest2_id)
        if s1 is None or s2 is None:
            continue
        if index.are_adjacent(s1, s2):
            total += 1
    return total


class _SitTogetherPass:
    def __init__(self, assignments, index, rules, lookup, locked) -> None:
        self.assignments: SeatAssignments = assignments
        self.index: SeatIndex = index
        self.rules: ProximityRules = rules
        self.lookup: Dict[str, Guest] = lookup
        self.locked: Dict[str, LockedGuestLocation] = locked

    def seat_of(self, guest_id: str) -> Optional[Seat]:
        return self.index.locate(guest_id, self.assignments)

    def empty_seat_next_to(self, guest: Guest, target: Seat) -> Optional[Seat]:
        for seat in self.index.neighbors(target.id):
            if seat.locked or self.assignments.get(seat.id):
                continue
            if can_place(guest, seat):
                return seat
        return None

    def loses_partner(self, guest_id: str, from_seat_id: str, to_seat_id: str, mover_id: str) -> bool:
        """Would moving ``guest_id`` between seats split them from a current partner?"""
        seated = self.index.occupancy(self.assignments)
        for partner in self.rules.together_partners(guest_id):
            if partner == mover_id:
                # The mover takes guest_id's seat, so the pair just trades places
                continue
            partner_seat = seated.get(partner)
            if partner_seat is None:
                continue
            if self.index.are_adjacent(from_seat_id, partner_seat) and not self.index.are_adjacent(to_seat_id, partner_seat):
                return True
        return False

    def can_displace(self, occupant_id: str, occupant_seat: Seat, vacated: Seat, mover_id: str, protected: Set[str]) -> bool:
        if occupant_id in protected or occupant_id in self.locked:
            return False
        occupant = self.lookup.get(occupant_id)
        if occupant is None or not can_place(occupant, vacated):
            return False
        return not self.loses_partner(occupant_id, occupant_seat.id, vacated.id, mover_id)

    def relocate(self, guest: Guest, from_seat: Seat, to_seat: Seat, protected: Set[str]) -> bool:
        """Move ``guest`` into ``to_seat``, swapping out its occupant if there is one."""
        if to_seat.locked or to_seat.id == from_seat.id or not can_place(guest, to_seat):
            return False
        occupant_id = self.assignments.get(to_seat.id)
        if not occupant_id:
            move_guest(self.assignments, guest.id, from_seat.id, to_seat.id)
            return True
        if not self.can_displace(occupant_id, to_seat, from_seat, guest.id, protected):
            return False
        swap_guests(self.assignments, to_seat.id, from_seat.id)
        return True

    def target_table(self, members: List[Guest]) -> Optional[Table]:
        """Table holding the first locked member, else the highest-priority seated one."""
        for member in sorted(members, key=lambda g: g.id):
            if member.id in self.locked:
                return self.index.table_of(self.seat_of(member.id).id)
        for member in members:
            seat = self.seat_of(member.id)
            if seat is not None:
                return self.index.table_of(seat.id)
        return None

    def consolidate(self, members: List[Guest]) -> int:
        """Bring a cluster spread over several tables onto one. Returns moves made."""
        seats = {m.id: self.seat_of(m.id) for m in members}
        spread = {self.index.table_of(s.id).id for s in seats.values() if s is not None}
        if len(spread) < 2:
            return 0
        target = self.target_table(members)
        protected = {m.id for m in members}
        moved = 0
        for member in members:
            seat = self.seat_of(member.id)
            if seat is None or member.id in self.locked or self.index.table_of(seat.id) is target:
                continue
            beside: Dict[str, Seat] = {}
            for other in members:
                other_seat = self.seat_of(other.id)
                if other_seat is None or self.index.table_of(other_seat.id) is not target:
                    continue
                for neighbour in self.index.neighbors(other_seat.id):
                    beside.setdefault(neighbour.id, neighbour)
            rest = [s for s in target.seats if s.id not in beside]
            for group in (list(beside.values()), rest):
                group = sorted(group, key=lambda s: (1 if self.assignments.get(s.id) else 0, seat_order_key(s)))
                if any(self.relocate(member, seat, s, protected) for s in group):
                    logger.debug("Moved %s to table %s with its cluster", member.name, target.display_label)
                    moved += 1
                    break
        return moved

    def arrange(self, members: List[Guest]) -> int:
        """Seat each cluster member beside as many of its partners at the table as possible."""
        by_table: Dict[str, List[Guest]] = {}
        for member in members:
            seat = self.seat_of(member.id)
            if seat is not None:
                by_table.setdefault(self.index.table_of(seat.id).id, []).append(member)

        protected = {m.id for m in members}
        moved = 0
        for group in by_table.values():
            if len(group) < 2:
                continue
            anchor = next((m for m in group if m.id in self.locked), group[0])
            group_ids = {m.id for m in group}
            for member in group:
                if member is anchor or member.id in self.locked:
                    continue
                seat = self.seat_of(member.id)
                partner_seats = [
                    self.seat_of(p).id for p in self.rules.together_partners(member.id) if p in group_ids
                ]
                current = self._adjacent_count(seat.id, partner_seats)
                if current == len(partner_seats):
                    continue

                best, best_key = None, (current, 0)
                seen: Set[str] = {seat.id}
                for partner_seat in partner_seats:
                    for candidate in self.index.neighbors(partner_seat):
                        if candidate.id in seen:
                            continue
                        seen.add(candidate.id)
                        if candidate.locked or not can_place(member, candidate):
                            continue
                        occupant_id = self.assignments.get(candidate.id)
                        if occupant_id and not self.can_displace(occupant_id, candidate, seat, member.id, protected):
                            continue
                        key = (self._adjacent_count(candidate.id, partner_seats), 0 if occupant_id else 1)
                        if key[0] > current and key > best_key:
                            best, best_key = candidate, key
                if best is not None and self.relocate(member, seat, best, protected):
                    logger.debug("Moved %s beside %d of its partners", member.name, best_key[0])
                    moved += 1
        return moved

    def _adjacent_count(self, seat_id: str, partner_seats: List[str]) -> int:
        return sum(1 for s in partner_seats if self.index.are_adjacent(seat_id, s))

    def swap_next_to(self, mover: Guest, anchor_seat: Seat, mover_seat: Seat) -> Optional[str]:
        for seat in self.index.neighbors(anchor_seat.id):
            if seat.locked or not can_place(mover, seat):
                continue
            occupant_id = self.assignments.get(seat.id)
            if not occupant_id or not self.can_displace(occupant_id, seat, mover_seat, mover.id, set()):
                continue
            swap_guests(self.assignments, seat.id, mover_seat.id)
            return occupant_id
        return None

    def resolve(self, anchor: Guest, mover: Guest) -> bool:
        anchor_locked = anchor.id in self.locked
        if mover.id in self.locked:
            if anchor_locked:
                logger.debug("Sit-together %s & %s: both locked", anchor.name, mover.name)
                return False
            anchor, mover = mover, anchor
            anchor_locked = True

        anchor_seat = self.seat_of(anchor.id)
        mover_seat = self.seat_of(mover.id)
        if anchor_seat is None or mover_seat is None:
            return False
        if self.index.are_adjacent(anchor_seat.id, mover_seat.id):
            return True

        target = self.empty_seat_next_to(mover, anchor_seat)
        if target is not None:
            move_guest(self.assignments, mover.id, mover_seat.id, target.id)
            logger.debug("Moved %s next to %s", mover.name, anchor.name)
            return True

        displaced = self.swap_next_to(mover, anchor_seat, mover_seat)
        if displaced is not None:
            logger.debug("Swapped %s with %s to sit beside %s", mover.name, displaced, anchor.name)
            return True

        if not anchor_locked:
            target = self.empty_seat_next_to(anchor, mover_seat)
            if target is not None and not self.loses_partner(anchor.id, anchor_seat.id, target.id, mover.id):
                move_guest(self.assignments, anchor.id, anchor_seat.id, target.id)
                logger.debug("Moved %s next to %s", anchor.name, mover.name)
                return True
        return False


def resolve_sit_together_pairs(
    assignments: SeatAssignments,
    tables: List[Table],
    rules: ProximityRules,
    guests: Iterable[Guest],
    comparator: Comparator,
    locked: Dict[str, LockedGuestLocation],
    index: Optional[SeatIndex] = None,
) -> SeatAssignments:
    """Return a copy of ``assignments`` with each sit-together rule repaired on its own."""
    result = dict(assignments)
    if not rules.sit_together:
        return result
    index = index or SeatIndex(tables)
    lookup = {g.id: g for g in guests}
    repair = _SitTogetherPass(result, index, rules, lookup, locked)

    unresolved = 0
    for anchor, mover in _ordered_pairs(rules.sit_together, lookup, comparator):
        if not repair.resolve(anchor, mover):
            unresolved += 1
            logger.debug("Sit-together %s & %s left unresolved", anchor.name, mover.name)
    logger.info("Sit-together pass: %d rules, %d unresolved", len(rules.sit_together), unresolved)
    return result


def apply_sit_together(
    assignments: SeatAssignments,
    tables: List[Table],
    rules: ProximityRules,
    guests: Iterable[Guest],
    comparator: Comparator,
    locked: Dict[str, LockedGuestLocation],
    index: Optional[SeatIndex] = None,
) -> SeatAssignments:
    """Return a copy of ``assignments`` with sit-together guests pulled adjacent where possible.

    Clusters are first gathered onto one table and arranged there, then every
    rule still broken gets a pairwise repair.
    """
    result = dict(assignments)
    if not rules.sit_together:
        return result
    index = index or SeatIndex(tables)
    lookup = {g.id: g for g in guests}
    repair = _SitTogetherPass(result, index, rules, lookup, locked)

    for cluster in build_sit_together_clusters(rules.sit_together):
        members = comparator.sort(lookup[gid] for gid in cluster if gid in lookup)
        if len(members) < 2:
            continue
        moved = repair.consolidate(members) + repair.arrange(members)
        if moved:
            logger.debug("Cluster %s: %d moves", ", ".join(m.id for m in members), moved)
    return resolve_sit_together_pairs(result, tables, rules, lookup.values(), comparator, locked, index)


def apply_sit_away(
    assignments: SeatAssignments,
    tables: List[Table],
    rules: ProximityRules,
    guests: Iterable[Guest],
    comparator: Comparator,
    locked: Dict[str, LockedGuestLocation],
    index: Optional[SeatIndex] = None,
    max_attempts: int = DEFAULT_MAX_SIT_AWAY_ATTEMPTS,
) -> SeatAssignments:
    """Return a copy of ``assignments`` with adjacent sit-away pairs separated where possible.

    Only seats at the pair's own table are considered.
    """
    result = dict(assignments)
    if not rules.sit_away:
        return result
    index = index or SeatIndex(tables)
    lookup = {g.id: g for g in guests}

    unresolved = 0
    for higher, lower in _ordered_pairs(rules.sit_away, lookup, comparator):
        higher_locked = higher.id in locked
        lower_locked = lower.id in locked
        if higher_locked and lower_locked:
            logger.debug("Sit-away %s & %s: both locked", higher.name, lower.name)
            continue

        higher_seat = index.locate(higher.id, result)
        lower_seat = index.locate(lower.id, result)
        if higher_seat is None or lower_seat is None:
            continue
        table = index.table_of(higher_seat.id)
        if table is not index.table_of(lower_seat.id):
            continue
        if not index.are_adjacent(higher_seat.id, lower_seat.id):
            continue

        if lower_locked:
            mover, moving_seat, avoid_seat = higher, higher_seat, lower_seat
        else:
            mover, moving_seat, avoid_seat = lower, lower_seat, higher_seat

        baseline = count_violations(result, index, rules)
        candidates = [
            seat for seat in sorted_seats(table.seats)
            if not seat.locked
            and seat.id not in (moving_seat.id, avoid_seat.id)
            and can_place(mover, seat)
            and not index.are_adjacent(seat.id, avoid_seat.id)
        ]
        candidates.sort(key=lambda s: (1 if result.get(s.id) else 0, seat_order_key(s)))

        resolved = False
        attempts = 0
        for seat in candidates:
            if attempts >= max_attempts:
                break
            occupant_id = result.get(seat.id)
            if occupant_id:
                occupant = lookup.get(occupant_id)
                if occupant is None or not can_place(occupant, moving_seat):
                    continue
                attempts += 1
                swap_guests(result, seat.id, moving_seat.id)
                if count_violations(result, index, rules) < baseline:
                    resolved = True
                    break
                swap_guests(result, seat.id, moving_seat.id)
            else:
                attempts += 1
                move_guest(result, mover.id, moving_seat.id, seat.id)
                if count_violations(result, index, rules) < baseline:
                    resolved = True
                    break
                move_guest(result, mover.id, seat.id, moving_seat.id)

        if resolved:
            logger.debug("Separated %s from %s", mover.name, (lower if mover is higher else higher).name)
        else:
            unresolved += 1
            logger.debug("Sit-away %s & %s left unresolved after %d attempts", higher.name, lower.name, attempts)
    logger.info("Sit-away pass: %d rules, %d unresolved", len(rules.sit_away), unresolved)
    return result
