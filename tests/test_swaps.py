import pytest

from seat_autofill.models import SeatMode, SwapError
from seat_autofill.swaps import apply_swap, find_incompatible_swap_candidates, find_swap_candidates, validate_swap
from factories import guest, ring_table, rules


def make_table(**kwargs):
    table = ring_table("t", 6, **kwargs)
    for i, gid in {0: "a", 1: "b", 3: "c", 4: "d"}.items():
        if not table.seats[i].locked:
            table.seats[i].assigned_guest_id = gid
    return table


GUESTS = {g.id: g for g in [guest("a", 1), guest("b", 2), guest("c", 3), guest("d", 4, internal=True)]}


def test_candidates_split_by_predicted_violations():
    table = make_table()
    result = find_swap_candidates([table], "t-1", rules(away=[("a", "b")]), GUESTS)

    assert [c.seat_id for c in result.perfect] == ["t-3", "t-4"]
    assert [c.seat_id for c in result.imperfect] == ["t-0"]
    assert result.imperfect[0].violation_count == 1
    assert [c.seat_id for c in result.all] == ["t-3", "t-4", "t-0"]
    # Search never applies a swap
    assert table.seats[1].assigned_guest_id == "b"


def test_candidates_respect_mode_and_locks():
    table = make_table(modes={4: SeatMode.INTERNAL_ONLY}, locked={3: "c"})
    result = find_swap_candidates([table], "t-1", rules(), GUESTS)
    assert [c.seat_id for c in result.all] == ["t-0"]

    rejected = find_incompatible_swap_candidates([table], "t-1", GUESTS)
    assert [(c.seat_id, v.guest1_fits_seat2) for c, v in rejected] == [("t-4", False)]


def test_empty_or_missing_source_has_no_candidates():
    table = make_table()
    assert find_swap_candidates([table], "t-2", rules(), GUESTS).all == []
    assert find_swap_candidates([table], "zzz", rules(), GUESTS).all == []


def test_validate_swap_reasons():
    table = make_table(locked={0: "a"})
    seats = table.seats
    assert validate_swap(seats[1], seats[1]).reasons == ["Cannot swap a seat with itself"]
    assert not validate_swap(seats[1], None).can_swap
    assert validate_swap(seats[0], seats[1]).reasons == ["Seat 0 is locked"]
    assert validate_swap(seats[1], seats[2]).reasons == ["Seat 2 is empty"]
    assert validate_swap(seats[1], seats[3], GUESTS).can_swap


def test_apply_swap_exchanges_occupants():
    table = make_table()
    apply_swap([table], "t-1", "t-3", GUESTS)
    assert table.seats[1].assigned_guest_id == "c"
    assert table.seats[3].assigned_guest_id == "b"


def test_apply_swap_rejects_without_changes():
    table = make_table(modes={4: SeatMode.INTERNAL_ONLY})
    with pytest.raises(SwapError) as exc:
        apply_swap([table], "t-1", "t-4", GUESTS)
    assert "internal-only" in str(exc.value)
    assert table.seats[1].assigned_guest_id == "b"
    assert table.seats[4].assigned_guest_id == "d"
