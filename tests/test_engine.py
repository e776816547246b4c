import logging

import pytest

from seat_autofill.engine import AutoFillModel, materialize
from seat_autofill.models import (
    ConflictingRulesError,
    RandomizeOrder,
    RandomizePartition,
    SeatMode,
    SpacingRule,
    TableRules,
)
from seat_autofill.seating import SeatIndex
from factories import guest, ring_table, rules, seat_of


def solve(guests, tables, **kwargs):
    model = AutoFillModel(**kwargs)
    model.build(guests, tables)
    return model.solve()


def test_together_pair_seated_adjacent_from_the_start():
    table = ring_table("t", 6)
    guests = [guest("A", 1, internal=True), guest("B", 2)]
    result = solve(guests, [table], proximity_rules=rules(together=[("A", "B")]))

    assert result.assignments == {"t-0": "A", "t-1": "B"}
    assert result.violations == []


def test_together_partner_pulled_into_free_seat_beside_locked_guest():
    table = ring_table("t", 6, locked={0: "a", 1: "x"})
    guests = [guest("a", 2), guest("x", 3), guest("b", 9), guest("f1", 1)]
    result = solve(guests, [table], proximity_rules=rules(together=[("a", "b")]))

    index = SeatIndex(result.tables)
    assert index.are_adjacent(seat_of(result.tables, "a"), seat_of(result.tables, "b"))
    assert result.violations == []


def test_sit_away_pair_separated():
    table = ring_table("t", 6)
    guests = [guest("A", 1, internal=True), guest("B", 2)]
    result = solve(guests, [table], proximity_rules=rules(away=[("A", "B")]))

    index = SeatIndex(result.tables)
    assert not index.are_adjacent(seat_of(result.tables, "A"), seat_of(result.tables, "B"))
    assert result.violations == []


def test_restricted_seat_skips_higher_priority_guest():
    table = ring_table("t", 6, modes={2: SeatMode.INTERNAL_ONLY})
    guests = [guest("C", 1), guest("D", 2), guest("E", 3, internal=True), guest("F", 4)]
    result = solve(guests, [table])

    assert result.assignments["t-0"] == "C"
    assert result.assignments["t-2"] == "E"

    no_internal = solve([g for g in guests if not g.internal], [ring_table("t", 6, modes={2: SeatMode.INTERNAL_ONLY})])
    assert "t-2" not in no_internal.assignments


def test_locked_seats_preserved_and_inputs_untouched():
    table = ring_table("t", 4, locked={1: "L"})
    # Stale assignment on an unlocked seat
    table.seats[3].assigned_guest_id = "old"
    guests = [guest("L", 1), guest("a", 2), guest("b", 3)]
    result = solve(guests, [table])

    committed = result.tables[0]
    assert committed.seats[1].locked and committed.seats[1].assigned_guest_id == "L"
    assert "L" not in result.assignments.values()
    assert [s.assigned_guest_id for s in committed.seats] == ["a", "L", "b", None]
    assert table.seats[3].assigned_guest_id == "old"
    assert table.seats[0].assigned_guest_id is None


def test_no_double_booking_and_modes_respected():
    tables = [
        ring_table("t1", 5, number=1, modes={0: SeatMode.EXTERNAL_ONLY, 3: SeatMode.INTERNAL_ONLY}),
        ring_table("t2", 5, number=2, modes={1: SeatMode.INTERNAL_ONLY}, locked={4: "g0"}),
    ]
    guests = [guest(f"g{n}", n % 7, internal=n % 3 == 0) for n in range(12)]
    r = rules(together=[("g1", "g5"), ("g2", "g9")], away=[("g3", "g4"), ("g6", "g7")])
    result = solve(guests, tables, proximity_rules=r, table_rules=TableRules(spacing=SpacingRule(True, 1)))

    seated = [s.assigned_guest_id for t in result.tables for s in t.seats if s.assigned_guest_id]
    assert len(seated) == len(set(seated))
    lookup = {g.id: g for g in guests}
    for table in result.tables:
        for seat in table.seats:
            if seat.assigned_guest_id and not seat.locked:
                assert seat.mode.accepts(lookup[seat.assigned_guest_id].internal)


def test_runs_are_deterministic():
    guests = [guest(f"g{n}", n % 4, internal=n % 2 == 0) for n in range(10)]
    r = rules(together=[("g1", "g8")], away=[("g0", "g2")])
    randomize = RandomizeOrder(enabled=True, partitions=[RandomizePartition(0, 4)], seed=11)

    first = solve(guests, [ring_table("t", 6), ring_table("u", 6)], proximity_rules=r, randomize_order=randomize)
    second = solve(guests, [ring_table("t", 6), ring_table("u", 6)], proximity_rules=r, randomize_order=randomize)
    assert first.assignments == second.assignments


def test_deleted_guests_not_seated():
    guests = [guest("a", 1, deleted=True), guest("b", 2)]
    result = solve(guests, [ring_table("t", 2)])
    assert result.assignments == {"t-0": "b"}


def test_population_filters():
    guests = [guest("i", 1, internal=True), guest("e", 2)]
    result = solve(guests, [ring_table("t", 4)], include_internal=False)
    assert list(result.assignments.values()) == ["e"]


def test_no_population_selected_returns_empty(caplog):
    with caplog.at_level(logging.WARNING):
        result = solve([guest("a")], [ring_table("t", 2)], include_internal=False, include_external=False)
    assert result.assignments == {}
    assert result.tables == []
    assert "nothing to seat" in caplog.text


def test_conflicting_rules_rejected_at_build():
    model = AutoFillModel(proximity_rules=rules(together=[("a", "b")], away=[("a", "b")]))
    with pytest.raises(ConflictingRulesError):
        model.build([guest("a"), guest("b")], [ring_table("t", 2)])


def test_materialize_clears_unlocked_seats():
    table = ring_table("t", 3, locked={0: "x"})
    table.seats[2].assigned_guest_id = "stale"
    committed = materialize([table], {"t-1": "y"})
    assert [s.assigned_guest_id for s in committed[0].seats] == ["x", "y", None]
