import io
import pathlib

import pytest

from seat_autofill import csv_loader
from seat_autofill.models import SeatMode

DATA = pathlib.Path(__file__).parent / "data"


def test_load_guests():
    guests = csv_loader.load_guests(DATA / "guests.csv")
    assert len(guests) == 9
    h1 = next(g for g in guests if g.id == "h1")
    assert h1.internal and h1.ranking == 2 and h1.country == "Norway"
    assert next(g for g in guests if g.id == "g6").deleted


def test_load_guests_missing_ranking_and_duplicates():
    guests = csv_loader.load_guests(io.StringIO("id,name,ranking\n1,Ann,\n2,Bo,3\n"))
    assert [g.ranking for g in guests] == [0, 3]
    assert guests[0].id == "1"
    with pytest.raises(ValueError):
        csv_loader.load_guests(io.StringIO("id,name\n1,Ann\n1,Bo\n"))


def test_load_seats_groups_tables():
    tables = csv_loader.load_seats(DATA / "seats.csv")
    assert [t.id for t in tables] == ["T1", "T2"]
    head = tables[0]
    assert head.label == "Head Table" and head.number == 1
    assert tables[1].display_label == "Table 2"
    assert head.seats[0].locked and head.seats[0].assigned_guest_id == "g1"
    assert head.seats[1].mode is SeatMode.INTERNAL_ONLY
    assert head.seats[1].assigned_guest_id is None
    assert head.seats[3].adjacent == ["T1-3", "T1-1"]


def test_load_seats_validates_references():
    with pytest.raises(ValueError):
        csv_loader.load_seats(DATA / "seats.csv", guest_ids={"g2"})
    bad = io.StringIO("table_id,seat_id,seat_number,adjacent\nT,S1,1,S9\n")
    with pytest.raises(ValueError):
        csv_loader.load_seats(bad)


def test_load_proximity_rules():
    r = csv_loader.load_proximity_rules(DATA / "rules.csv")
    assert [(x.guest1_id, x.guest2_id) for x in r.sit_together] == [("g2", "g4")]
    assert [(x.guest1_id, x.guest2_id) for x in r.sit_away] == [("g1", "g3")]
    with pytest.raises(ValueError):
        csv_loader.load_proximity_rules(DATA / "rules.csv", guest_ids={"g1"})
    with pytest.raises(ValueError):
        csv_loader.load_proximity_rules(io.StringIO("guest1_id,guest2_id,rule\na,b,near\n"))


def test_load_all_without_rules():
    guests, tables, rules = csv_loader.load_all(DATA / "guests.csv", DATA / "seats.csv")
    assert len(guests) == 9 and len(tables) == 2
    assert rules.sit_together == [] and rules.sit_away == []
