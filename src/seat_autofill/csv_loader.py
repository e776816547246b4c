"""CSV loading utilities."""
from __future__ import annotations

import math
from pathlib import Path
from typing import IO, Any, Dict, List, Optional, Set, Tuple

import pandas as pd

from .models import Guest, ProximityRule, ProximityRules, Seat, SeatMode, Table, parse_bool, parse_pipe_list


def _text(value: Any) -> str:
    """Cell as stripped text; pandas NaN becomes ``""``."""
    if value is None or (isinstance(value, float) and math.isnan(value)):
        return ""
    return str(value).strip()


def _optional_int(value: Any) -> Optional[int]:
    text = _text(value)
    if not text:
        return None
    try:
        return int(float(text))
    except ValueError:
        return None


def _number(value: Any) -> float:
    text = _text(value)
    if not text:
        return 0
    try:
        return float(text)
    except ValueError:
        return 0


def load_guests(path: Path | str | IO[Any]) -> List[Guest]:
    """Load guests from ``guests.csv``.

    Ids must be unique. A missing ``ranking`` counts as 0.
    """
    df = pd.read_csv(path, dtype={"id": str})
    guests: List[Guest] = []
    for _, row in df.iterrows():
        guests.append(
            Guest(
                id=_text(row["id"]),
                name=_text(row.get("name", "")),
                country=_text(row.get("country", "")),
                organization=_text(row.get("organization", "")),
                title=_text(row.get("title", "")),
                ranking=_number(row.get("ranking", 0)),
                internal=parse_bool(row.get("internal", "false")),
                deleted=parse_bool(row.get("deleted", "false")),
            )
        )

    seen: Set[str] = set()
    for g in guests:
        if g.id in seen:
            raise ValueError(f"Duplicate guest id: {g.id}")
        seen.add(g.id)
    return guests


def load_seats(path: Path | str | IO[Any], guest_ids: Set[str] | None = None) -> List[Table]:
    """Load one row per seat and group the rows into tables.

    Tables keep the order of their first row. ``adjacent`` is a pipe separated
    list of seat ids. If ``guest_ids`` is provided it validates that every
    pre-assigned guest exists.
    """
    df = pd.read_csv(path, dtype={"table_id": str, "seat_id": str, "assigned_guest_id": str})
    tables: Dict[str, Table] = {}
    for _, row in df.iterrows():
        table_id = _text(row["table_id"])
        table = tables.get(table_id)
        if table is None:
            table = Table(
                id=table_id,
                number=_optional_int(row.get("table_number")),
                label=_text(row.get("table_label", "")),
            )
            tables[table_id] = table

        assigned = _text(row.get("assigned_guest_id", "")) or None
        if assigned and guest_ids is not None and assigned not in guest_ids:
            raise ValueError(f"Seat {_text(row['seat_id'])} assigned to unknown guest: {assigned}")
        try:
            mode = SeatMode.parse(row.get("mode"))
        except ValueError:
            raise ValueError(f"Unknown seat mode for seat {_text(row['seat_id'])}: {row.get('mode')}")
        table.seats.append(
            Seat(
                id=_text(row["seat_id"]),
                seat_number=_optional_int(row.get("seat_number")),
                mode=mode,
                locked=parse_bool(row.get("locked", "false")),
                assigned_guest_id=assigned,
                adjacent=parse_pipe_list(row.get("adjacent", "")),
                label=_text(row.get("seat_label", "")),
            )
        )

    seat_ids = [s.id for t in tables.values() for s in t.seats]
    if len(seat_ids) != len(set(seat_ids)):
        raise ValueError("Duplicate seat ids in seats file")
    known = set(seat_ids)
    for table in tables.values():
        for seat in table.seats:
            for other in seat.adjacent:
                if other not in known:
                    raise ValueError(f"Seat {seat.id} lists unknown adjacent seat: {other}")
    return list(tables.values())


_RULE_KINDS = {
    "together": "sit_together",
    "sit-together": "sit_together",
    "sit_together": "sit_together",
    "away": "sit_away",
    "sit-away": "sit_away",
    "sit_away": "sit_away",
}


def load_proximity_rules(path: Path | str | IO[Any], guest_ids: Set[str] | None = None) -> ProximityRules:
    """Load sit-together and sit-away pairs.

    If ``guest_ids`` is provided it validates that both guests exist.
    """
    df = pd.read_csv(path, dtype={"guest1_id": str, "guest2_id": str})
    rules = ProximityRules()
    for i, row in df.iterrows():
        a = _text(row["guest1_id"])
        b = _text(row["guest2_id"])
        if guest_ids is not None and (a not in guest_ids or b not in guest_ids):
            raise ValueError(f"Proximity rule references unknown guest: {a}, {b}")
        kind = _RULE_KINDS.get(_text(row.get("rule", "")).lower())
        if kind is None:
            raise ValueError(f"Unknown proximity rule type on row {i + 1}: {row.get('rule')}")
        getattr(rules, kind).append(ProximityRule(a, b, _text(row.get("id", "")) or f"rule-{i + 1}"))
    return rules


def load_all(
    guests_path: Path | str,
    seats_path: Path | str,
    rules_path: Path | str | None = None,
) -> Tuple[List[Guest], List[Table], ProximityRules]:
    """Convenience wrapper returning guests, tables and proximity rules."""
    guests = load_guests(guests_path)
    guest_ids = {g.id for g in guests}
    tables = load_seats(seats_path, guest_ids)
    rules = load_proximity_rules(rules_path, guest_ids) if rules_path else ProximityRules()
    return guests, tables, rules
