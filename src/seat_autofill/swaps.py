"""Swap candidate search for manual re-seating."""
from __future__ import annotations

import copy
import logging
from dataclasses import dataclass, field
from typing import List, Mapping, Optional, Tuple

from .models import Guest, ProximityRules, Seat, SeatMode, SwapError, Table, Violation
from .seating import can_place
from .violations import detect_violations

logger = logging.getLogger(__name__)


@dataclass
class SwapValidation:
    can_swap: bool
    reasons: List[str] = field(default_factory=list)
    guest1_fits_seat2: bool = True
    guest2_fits_seat1: bool = True


@dataclass
class SwapCandidate:
    table_id: str
    table_label: str
    seat_id: str
    seat_number: Optional[int]
    seat_mode: SeatMode
    guest_id: str
    violations: List[Violation] = field(default_factory=list)

    @property
    def violation_count(self) -> int:
        return len(self.violations)


@dataclass
class SwapSearchResult:
    """Candidates split by whether the swap leaves any violation behind."""

    perfect: List[SwapCandidate] = field(default_factory=list)
    imperfect: List[SwapCandidate] = field(default_factory=list)

    @property
    def all(self) -> List[SwapCandidate]:
        return self.perfect + self.imperfect


def _seat_name(seat: Seat) -> str:
    return str(seat.seat_number) if seat.seat_number is not None else seat.id


def _mode_reason(guest: Guest, seat: Seat) -> str:
    population = "internal" if guest.internal else "external"
    return f"{guest.name or guest.id} ({population}) cannot sit in {seat.mode.value} seat {_seat_name(seat)}"


def validate_swap(
    seat1: Optional[Seat],
    seat2: Optional[Seat],
    guest_lookup: Optional[Mapping[str, Guest]] = None,
) -> SwapValidation:
    """Can the occupants of two seats trade places?

    Both seats must exist, differ, be unlocked and occupied. With a guest
    lookup each guest must also be accepted by the other seat's mode.
    """
    if seat1 is None or seat2 is None:
        return SwapValidation(False, ["One or both seats do not exist"])
    if seat1.id == seat2.id:
        return SwapValidation(False, ["Cannot swap a seat with itself"])

    reasons = []
    for seat in (seat1, seat2):
        if seat.locked:
            reasons.append(f"Seat {_seat_name(seat)} is locked")
    for seat in (seat1, seat2):
        if not seat.assigned_guest_id:
            reasons.append(f"Seat {_seat_name(seat)} is empty")
    if reasons:
        return SwapValidation(False, reasons)

    if guest_lookup is None:
        return SwapValidation(True)

    guest1 = guest_lookup.get(seat1.assigned_guest_id)
    guest2 = guest_lookup.get(seat2.assigned_guest_id)
    fits12 = guest1 is None or can_place(guest1, seat2)
    fits21 = guest2 is None or can_place(guest2, seat1)
    if not fits12:
        reasons.append(_mode_reason(guest1, seat2))
    if not fits21:
        reasons.append(_mode_reason(guest2, seat1))
    return SwapValidation(fits12 and fits21, reasons, fits12, fits21)


def _find(tables: List[Table], seat_id: str) -> Tuple[Optional[Table], Optional[Seat]]:
    for table in tables:
        seat = table.seat_by_id(seat_id)
        if seat is not None:
            return table, seat
    return None, None


def predict_violations_after_swap(
    tables: List[Table],
    seat1_id: str,
    seat2_id: str,
    rules: ProximityRules,
    guest_lookup: Mapping[str, Guest],
) -> List[Violation]:
    """Violations of the arrangement with two seats' occupants exchanged."""
    simulated = copy.deepcopy(tables)
    _, seat1 = _find(simulated, seat1_id)
    _, seat2 = _find(simulated, seat2_id)
    if seat1 is None or seat2 is None:
        logger.warning("Swap simulation failed: seats %s/%s not found", seat1_id, seat2_id)
        return []
    seat1.assigned_guest_id, seat2.assigned_guest_id = seat2.assigned_guest_id, seat1.assigned_guest_id
    return detect_violations(simulated, rules, guest_lookup)


def find_swap_candidates(
    tables: List[Table],
    source_seat_id: str,
    rules: ProximityRules,
    guest_lookup: Mapping[str, Guest],
) -> SwapSearchResult:
    """Every seat the source seat's occupant could trade with, fewest violations first.

    Only predicts; nothing is swapped.
    """
    _, source = _find(tables, source_seat_id)
    if source is None or not source.assigned_guest_id:
        return SwapSearchResult()

    candidates: List[SwapCandidate] = []
    for table in tables:
        for seat in table.seats:
            if seat.id == source.id or not seat.assigned_guest_id:
                continue
            if not validate_swap(source, seat, guest_lookup).can_swap:
                continue
            candidates.append(SwapCandidate(
                table_id=table.id,
                table_label=table.display_label,
                seat_id=seat.id,
                seat_number=seat.seat_number,
                seat_mode=seat.mode,
                guest_id=seat.assigned_guest_id,
                violations=predict_violations_after_swap(tables, source.id, seat.id, rules, guest_lookup),
            ))

    candidates.sort(key=lambda c: c.violation_count)
    return SwapSearchResult(
        perfect=[c for c in candidates if c.violation_count == 0],
        imperfect=[c for c in candidates if c.violation_count > 0],
    )


def find_incompatible_swap_candidates(
    tables: List[Table],
    source_seat_id: str,
    guest_lookup: Mapping[str, Guest],
) -> List[Tuple[SwapCandidate, SwapValidation]]:
    """Occupied, unlocked seats ruled out only by seat mode."""
    _, source = _find(tables, source_seat_id)
    if source is None or not source.assigned_guest_id or source.locked:
        return []

    rejected = []
    for table in tables:
        for seat in table.seats:
            if seat.id == source.id or not seat.assigned_guest_id or seat.locked:
                continue
            validation = validate_swap(source, seat, guest_lookup)
            if validation.can_swap:
                continue
            rejected.append((
                SwapCandidate(
                    table_id=table.id,
                    table_label=table.display_label,
                    seat_id=seat.id,
                    seat_number=seat.seat_number,
                    seat_mode=seat.mode,
                    guest_id=seat.assigned_guest_id,
                ),
                validation,
            ))
    return rejected


def apply_swap(
    tables: List[Table],
    seat1_id: str,
    seat2_id: str,
    guest_lookup: Optional[Mapping[str, Guest]] = None,
) -> None:
    """Exchange two seats' occupants in place, or raise ``SwapError`` and change nothing."""
    _, seat1 = _find(tables, seat1_id)
    _, seat2 = _find(tables, seat2_id)
    validation = validate_swap(seat1, seat2, guest_lookup)
    if not validation.can_swap:
        raise SwapError(validation.reasons)
    seat1.assigned_guest_id, seat2.assigned_guest_id = seat2.assigned_guest_id, seat1.assigned_guest_id
    logger.info("Swapped seats %s and %s", seat1_id, seat2_id)
