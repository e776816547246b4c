"""Seat lookups shared by the placement and optimization passes.

Occupancy is read from two places: the working assignment map for unlocked
seats and ``Seat.assigned_guest_id`` for locked ones.
"""
from __future__ import annotations

from typing import Dict, Iterable, List, Optional, Tuple

from .models import Guest, LockedGuestLocation, ProximityRules, Seat, SeatAssignments, Table

_NO_SEAT_NUMBER = 999


def can_place(guest: Guest, seat: Seat) -> bool:
    """True when the seat's mode accepts the guest's population."""
    return seat.mode.accepts(guest.internal)


def table_order_key(table: Table) -> int:
    if isinstance(table.number, int):
        return table.number
    try:
        return int(table.id)
    except (TypeError, ValueError):
        return 0


def seat_order_key(seat: Seat) -> int:
    return seat.seat_number if isinstance(seat.seat_number, int) else _NO_SEAT_NUMBER


def sorted_tables(tables: Iterable[Table]) -> List[Table]:
    return sorted(tables, key=table_order_key)


def sorted_seats(seats: Iterable[Seat]) -> List[Seat]:
    return sorted(seats, key=seat_order_key)


def build_locked_guest_map(tables: Iterable[Table]) -> Dict[str, LockedGuestLocation]:
    """Locked, occupied seats keyed by guest id."""
    locked: Dict[str, LockedGuestLocation] = {}
    for table in tables:
        for seat in table.seats:
            if seat.locked and seat.assigned_guest_id:
                locked[seat.assigned_guest_id] = LockedGuestLocation(seat.assigned_guest_id, table, seat)
    return locked


class SeatIndex:
    """Seat, table and neighbour lookups over one seat graph.

    Adjacency is symmetric and limited to a single table: B neighbours A when
    either seat lists the other. Neighbours keep the order of ``Seat.adjacent``,
    followed by seats that only list this one.
    """

    def __init__(self, tables: List[Table]) -> None:
        self.tables = tables
        self._location: Dict[str, Tuple[Table, Seat]] = {}
        self._neighbors: Dict[str, List[str]] = {}
        for table in tables:
            ids = {s.id for s in table.seats}
            for seat in table.seats:
                self._location[seat.id] = (table, seat)
                self._neighbors[seat.id] = [sid for sid in dict.fromkeys(seat.adjacent) if sid in ids and sid != seat.id]
            for seat in table.seats:
                for other_id in seat.adjacent:
                    if other_id in ids and other_id != seat.id and seat.id not in self._neighbors[other_id]:
                        self._neighbors[other_id].append(seat.id)

    def seat(self, seat_id: str) -> Seat:
        return self._location[seat_id][1]

    def table_of(self, seat_id: str) -> Table:
        return self._location[seat_id][0]

    def neighbor_ids(self, seat_id: str) -> List[str]:
        return self._neighbors.get(seat_id, [])

    def neighbors(self, seat_id: str) -> List[Seat]:
        return [self.seat(sid) for sid in self.neighbor_ids(seat_id)]

    def are_adjacent(self, seat1_id: str, seat2_id: str) -> bool:
        return seat2_id in self._neighbors.get(seat1_id, ())

    def locate(self, guest_id: str, assignments: SeatAssignments) -> Optional[Seat]:
        """Seat currently holding ``guest_id``, locked seats included."""
        for seat_id, assigned in assignments.items():
            if assigned == guest_id and seat_id in self._location:
                return self.seat(seat_id)
        for table in self.tables:
            for seat in table.seats:
                if seat.locked and seat.assigned_guest_id == guest_id:
                    return seat
        return None

    def occupancy(self, assignments: SeatAssignments) -> Dict[str, str]:
        """Guest id -> seat id for every seated guest."""
        seated: Dict[str, str] = {}
        for table in self.tables:
            for seat in table.seats:
                if seat.locked and seat.assigned_guest_id:
                    seated[seat.assigned_guest_id] = seat.id
        for seat_id, guest_id in assignments.items():
            if seat_id in self._location:
                seated.setdefault(guest_id, seat_id)
        return seated


def would_violate_sit_away_with_locked(
    guest_id: str,
    seat: Seat,
    index: SeatIndex,
    rules: ProximityRules,
) -> bool:
    """Would seating ``guest_id`` here put them beside a locked guest they must avoid?"""
    avoid = rules.away_partners(guest_id)
    if not avoid:
        return False
    for neighbor in index.neighbors(seat.id):
        if neighbor.locked and neighbor.assigned_guest_id in avoid:
            return True
    return False


def move_guest(assignments: SeatAssignments, guest_id: str, from_seat_id: str, to_seat_id: str) -> None:
    """Move into an empty seat."""
    del assignments[from_seat_id]
    assignments[to_seat_id] = guest_id


def swap_guests(assignments: SeatAssignments, seat1_id: str, seat2_id: str) -> None:
    """Exchange the occupants of two assigned seats."""
    assignments[seat1_id], assignments[seat2_id] = assignments[seat2_id], assignments[seat1_id]
