from seat_autofill.models import RatioRule, SeatMode, SpacingRule, TableRules
from seat_autofill.placement import perform_initial_placement
from factories import guest, ring_table, rules


def population_pattern(assignments, table, lookup):
    return "".join(
        ("I" if lookup[assignments[s.id]].internal else "E") if s.id in assignments else "-"
        for s in table.seats
    )


def test_default_fill_follows_priority_and_table_number():
    late = ring_table("t9", 2, number=2)
    early = ring_table("t1", 2, number=1)
    candidates = [guest("a", 1), guest("b", 2), guest("c", 3)]

    assignments = perform_initial_placement([late, early], candidates, set())
    assert assignments == {"t1-0": "a", "t1-1": "b", "t9-0": "c"}


def test_seat_mode_overrides_priority():
    table = ring_table("t", 4, modes={1: SeatMode.INTERNAL_ONLY})
    candidates = [guest("e1", 1), guest("e2", 2), guest("i1", 3, internal=True)]

    assignments = perform_initial_placement([table], candidates, set())
    assert assignments == {"t-0": "e1", "t-1": "i1", "t-2": "e2"}


def test_restricted_seat_left_empty_without_eligible_guest():
    table = ring_table("t", 3, modes={0: SeatMode.INTERNAL_ONLY})
    assignments = perform_initial_placement([table], [guest("e1", 1), guest("e2", 2)], set())
    assert "t-0" not in assignments
    assert assignments == {"t-1": "e1", "t-2": "e2"}


def test_locked_seats_and_guests_untouched():
    table = ring_table("t", 3, locked={0: "vip"})
    candidates = [guest("vip", 1), guest("a", 2), guest("b", 3)]

    assignments = perform_initial_placement([table], candidates, {"vip"})
    assert assignments == {"t-1": "a", "t-2": "b"}
    assert table.seats[0].assigned_guest_id == "vip"


def test_spacing_alternates_populations():
    table = ring_table("t", 6)
    candidates = [guest(f"i{n}", n, True) for n in range(1, 4)] + [guest(f"e{n}", n) for n in range(1, 4)]
    lookup = {g.id: g for g in candidates}
    table_rules = TableRules(spacing=SpacingRule(enabled=True, spacing=1))

    assignments = perform_initial_placement([table], candidates, set(), table_rules)
    assert population_pattern(assignments, table, lookup) == "IEIEIE"


def test_spacing_starting_with_external():
    table = ring_table("t", 6)
    candidates = [guest("i1", 1, True), guest("i2", 2, True)] + [guest(f"e{n}", n + 2) for n in range(1, 5)]
    lookup = {g.id: g for g in candidates}
    table_rules = TableRules(spacing=SpacingRule(enabled=True, spacing=2, start_with_external=True))

    assignments = perform_initial_placement([table], candidates, set(), table_rules)
    assert population_pattern(assignments, table, lookup) == "EEIEEI"


def test_spacing_falls_back_to_priority_when_population_runs_out():
    table = ring_table("t", 5)
    candidates = [guest("i1", 1, True)] + [guest(f"e{n}", n + 1) for n in range(1, 5)]
    lookup = {g.id: g for g in candidates}
    table_rules = TableRules(spacing=SpacingRule(enabled=True, spacing=1))

    assignments = perform_initial_placement([table], candidates, set(), table_rules)
    assert population_pattern(assignments, table, lookup) == "IEEEE"


def test_ratio_targets_use_floor():
    table = ring_table("t", 8)
    candidates = [guest(f"e{n}", n) for n in range(1, 5)] + [guest(f"i{n}", n + 4, True) for n in range(1, 8)]
    lookup = {g.id: g for g in candidates}
    table_rules = TableRules(ratio=RatioRule(enabled=True, internal_ratio=3, external_ratio=1))

    assignments = perform_initial_placement([table], candidates, set(), table_rules)
    pattern = population_pattern(assignments, table, lookup)
    assert pattern.count("I") == 6
    assert pattern.count("E") == 2


def test_spacing_wins_over_ratio():
    table = ring_table("t", 4)
    candidates = [guest("i1", 1, True), guest("i2", 2, True), guest("i3", 3, True), guest("e1", 4), guest("e2", 5)]
    lookup = {g.id: g for g in candidates}
    table_rules = TableRules(
        ratio=RatioRule(enabled=True, internal_ratio=1, external_ratio=0),
        spacing=SpacingRule(enabled=True, spacing=1),
    )
    assignments = perform_initial_placement([table], candidates, set(), table_rules)
    assert population_pattern(assignments, table, lookup) == "IEIE"


def test_avoids_locked_sit_away_neighbour():
    table = ring_table("t", 4, locked={0: "boss"})
    candidates = [guest("a", 1), guest("b", 2), guest("c", 3)]

    assignments = perform_initial_placement(
        [table], candidates, {"boss"}, proximity_rules=rules(away=[("a", "boss")])
    )
    assert assignments["t-1"] == "b"
    assert assignments["t-2"] == "a"
    assert assignments["t-3"] == "c"


def test_no_guest_placed_twice():
    tables = [ring_table("t1", 4, number=1), ring_table("t2", 4, number=2)]
    candidates = [guest(f"g{n}", n, internal=n % 2 == 0) for n in range(6)]
    assignments = perform_initial_placement(tables, candidates, set())
    assert len(set(assignments.values())) == len(assignments) == 6
