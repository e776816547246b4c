"""
Guest ordering.

A comparator is built once from an ordered list of sort rules. Each rule names a
field from a fixed set and the accessor for that field is resolved when the
comparator is built. Ranking compares numerically, every other field compares
case-insensitively as text. Guests that tie on every rule fall back to their id
so the order is total and runs are repeatable.

Initial placement uses a variant that puts internal guests ahead of external
ones before the id fallback.
"""
from __future__ import annotations

import logging
import random
from functools import cmp_to_key
from typing import Callable, Dict, Iterable, List, Optional, Sequence, Tuple

from .models import Guest, RandomizeOrder, SortDirection, SortField, SortRule

logger = logging.getLogger(__name__)

DEFAULT_SORT_RULES = [SortRule(SortField.RANKING, SortDirection.ASC)]


def _ranking(guest: Guest) -> float:
    try:
        return float(guest.ranking or 0)
    except (TypeError, ValueError):
        return 0.0


_FIELD_ACCESSORS: Dict[SortField, Callable[[Guest], object]] = {
    SortField.NAME: lambda g: (g.name or "").lower(),
    SortField.COUNTRY: lambda g: (g.country or "").lower(),
    SortField.ORGANIZATION: lambda g: (g.organization or "").lower(),
    SortField.RANKING: _ranking,
}


def _cmp(a: object, b: object) -> int:
    if a < b:  # type: ignore[operator]
        return -1
    if a > b:  # type: ignore[operator]
        return 1
    return 0


class Comparator:
    """Total order over guests built from sort rules."""

    def __init__(self, rules: Sequence[SortRule], population_tiebreak: bool = False) -> None:
        self.rules = list(rules)
        self.population_tiebreak = population_tiebreak
        self._keys: List[Tuple[Callable[[Guest], object], int]] = [
            (_FIELD_ACCESSORS[SortField(r.field)], 1 if SortDirection(r.direction) is SortDirection.ASC else -1)
            for r in self.rules
        ]

    def __call__(self, a: Guest, b: Guest) -> int:
        for accessor, sign in self._keys:
            result = _cmp(accessor(a), accessor(b))
            if result:
                return sign * result
        if self.population_tiebreak and a.internal != b.internal:
            return -1 if a.internal else 1
        return _cmp(str(a.id), str(b.id))

    def sort(self, guests: Iterable[Guest]) -> List[Guest]:
        return sorted(guests, key=cmp_to_key(self))

    def first(self, a: Guest, b: Guest) -> Tuple[Guest, Guest]:
        """Return ``(higher, lower)`` priority of two guests."""
        return (a, b) if self(a, b) <= 0 else (b, a)


def make_comparator(rules: Optional[Sequence[SortRule]] = None) -> Comparator:
    """Comparator over ``rules`` with an id tie-break. Defaults to ranking ascending."""
    return Comparator(rules if rules else DEFAULT_SORT_RULES)


def sort_key(comparator: Comparator):
    return cmp_to_key(comparator)


def sort_guests(guests: Iterable[Guest], rules: Optional[Sequence[SortRule]] = None) -> List[Guest]:
    return make_comparator(rules).sort(guests)


def with_population_tiebreak(comparator: Comparator) -> Comparator:
    """Same rules, internal guests before external ones on a tie."""
    return Comparator(comparator.rules, population_tiebreak=True)


def is_randomize_applicable(rules: Sequence[SortRule]) -> bool:
    """Rank randomization only makes sense when ranking is the sole sort rule."""
    return len(rules) == 1 and SortField(rules[0].field) is SortField.RANKING


def apply_randomize_order(
    sorted_guests: List[Guest],
    config: Optional[RandomizeOrder],
    rng: Optional[random.Random] = None,
) -> List[Guest]:
    """Shuffle guests within each rank partition, keeping everyone else in place.

    Each partition covers ``min_rank <= ranking < max_rank``. The guests inside a
    partition only trade positions with each other, so the coarse ranking order
    of the list survives.
    """
    if config is None or not config.enabled or not config.partitions:
        return sorted_guests
    if rng is None:
        rng = random.Random(config.seed)

    result = list(sorted_guests)
    for partition in config.partitions:
        indices = [
            i for i, g in enumerate(result)
            if partition.min_rank <= _ranking(g) < partition.max_rank
        ]
        if len(indices) < 2:
            continue
        members = [result[i] for i in indices]
        rng.shuffle(members)
        for i, guest in zip(indices, members):
            result[i] = guest
        logger.debug(
            "Shuffled %d guests in rank partition [%s, %s)",
            len(members), partition.min_rank, partition.max_rank,
        )
    return result
