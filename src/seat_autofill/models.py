"""Data models for seat_autofill."""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Set, Tuple
import math


class SeatAutoFillError(Exception):
    """Base class for errors raised by seat_autofill."""


class ConflictingRulesError(SeatAutoFillError):
    """A guest pair is registered as both sit-together and sit-away."""

    def __init__(self, pairs: List[Tuple[str, str]]) -> None:
        self.pairs = pairs
        listed = ", ".join(f"{a}/{b}" for a, b in pairs)
        super().__init__(f"Pairs registered as both sit-together and sit-away: {listed}")


class SwapError(SeatAutoFillError):
    """A requested seat swap cannot be applied."""

    def __init__(self, reasons: List[str]) -> None:
        self.reasons = reasons
        super().__init__("; ".join(reasons))


def parse_pipe_list(value: object) -> List[str]:
    """Split a pipe separated string into a list.

    Empty values such as ``""`` or ``None`` return an empty list.
    ``pandas`` often provides ``float('nan')`` for missing values which is
    also treated as empty.
    """
    if value is None:
        return []
    if isinstance(value, float) and math.isnan(value):
        return []
    text = str(value).strip()
    if not text or text.lower() == "nan":
        return []
    return [part.strip() for part in text.split("|") if part.strip()]


def parse_bool(value: object) -> bool:
    """Parse common truthy strings into bool."""
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in ("true", "1", "yes", "y")


class SeatMode(str, Enum):
    """Which guest population may occupy a seat."""

    DEFAULT = "default"
    INTERNAL_ONLY = "internal-only"
    EXTERNAL_ONLY = "external-only"

    @classmethod
    def parse(cls, value: object) -> "SeatMode":
        if value is None or (isinstance(value, float) and math.isnan(value)):
            return cls.DEFAULT
        text = str(value).strip().lower()
        if not text:
            return cls.DEFAULT
        # "host-only" is the historic name of the internal population mode
        if text == "host-only":
            return cls.INTERNAL_ONLY
        return cls(text)

    def accepts(self, internal: bool) -> bool:
        if self is SeatMode.INTERNAL_ONLY:
            return internal
        if self is SeatMode.EXTERNAL_ONLY:
            return not internal
        return True


@dataclass
class Guest:
    """An attendee who can be seated."""

    id: str
    name: str = ""
    country: str = ""
    organization: str = ""
    title: str = ""
    ranking: float = 0
    internal: bool = False
    deleted: bool = False

    @property
    def is_vip(self) -> bool:
        return self.ranking <= 4


@dataclass
class Seat:
    """A single seat and its physical neighbours."""

    id: str
    seat_number: Optional[int] = None
    mode: SeatMode = SeatMode.DEFAULT
    locked: bool = False
    assigned_guest_id: Optional[str] = None
    adjacent: List[str] = field(default_factory=list)
    label: str = ""


@dataclass
class Table:
    """A table with its ordered seats."""

    id: str
    number: Optional[int] = None
    label: str = ""
    seats: List[Seat] = field(default_factory=list)

    def seat_by_id(self, seat_id: str) -> Optional[Seat]:
        for seat in self.seats:
            if seat.id == seat_id:
                return seat
        return None

    @property
    def display_label(self) -> str:
        if self.label:
            return self.label
        if self.number is not None:
            return f"Table {self.number}"
        return self.id


@dataclass
class ProximityRule:
    """Unordered guest pair."""

    guest1_id: str
    guest2_id: str
    id: str = ""

    @property
    def key(self) -> Tuple[str, str]:
        a, b = sorted((self.guest1_id, self.guest2_id))
        return a, b

    def involves(self, guest_id: str) -> bool:
        return guest_id in (self.guest1_id, self.guest2_id)

    def other(self, guest_id: str) -> str:
        return self.guest2_id if guest_id == self.guest1_id else self.guest1_id


@dataclass
class ProximityRules:
    """Sit-together and sit-away pair lists."""

    sit_together: List[ProximityRule] = field(default_factory=list)
    sit_away: List[ProximityRule] = field(default_factory=list)

    def guest_ids(self) -> Set[str]:
        ids: Set[str] = set()
        for rule in self.sit_together + self.sit_away:
            ids.add(rule.guest1_id)
            ids.add(rule.guest2_id)
        return ids

    def conflicting_pairs(self) -> List[Tuple[str, str]]:
        together = {r.key for r in self.sit_together}
        return sorted({r.key for r in self.sit_away if r.key in together})

    def validate(self) -> None:
        conflicts = self.conflicting_pairs()
        if conflicts:
            raise ConflictingRulesError(conflicts)

    def together_partners(self, guest_id: str) -> List[str]:
        partners: List[str] = []
        for rule in self.sit_together:
            if rule.involves(guest_id):
                other = rule.other(guest_id)
                if other not in partners:
                    partners.append(other)
        return partners

    def away_partners(self, guest_id: str) -> List[str]:
        return [rule.other(guest_id) for rule in self.sit_away if rule.involves(guest_id)]

    def should_sit_together(self, a: str, b: str) -> bool:
        key = tuple(sorted((a, b)))
        return any(r.key == key for r in self.sit_together)

    def should_sit_away(self, a: str, b: str) -> bool:
        key = tuple(sorted((a, b)))
        return any(r.key == key for r in self.sit_away)


@dataclass
class RatioRule:
    enabled: bool = False
    internal_ratio: float = 1
    external_ratio: float = 1


@dataclass
class SpacingRule:
    enabled: bool = False
    spacing: int = 1
    start_with_external: bool = False


@dataclass
class TableRules:
    """Per-table population distribution; spacing wins over ratio."""

    ratio: RatioRule = field(default_factory=RatioRule)
    spacing: SpacingRule = field(default_factory=SpacingRule)


class SortField(str, Enum):
    NAME = "name"
    COUNTRY = "country"
    ORGANIZATION = "organization"
    RANKING = "ranking"


class SortDirection(str, Enum):
    ASC = "asc"
    DESC = "desc"


@dataclass
class SortRule:
    field: SortField = SortField.RANKING
    direction: SortDirection = SortDirection.ASC


@dataclass
class RandomizePartition:
    """Rank window ``min_rank <= ranking < max_rank`` whose guests are shuffled."""

    min_rank: float
    max_rank: float


@dataclass
class RandomizeOrder:
    enabled: bool = False
    partitions: List[RandomizePartition] = field(default_factory=list)
    seed: Optional[int] = None


class ViolationKind(str, Enum):
    SIT_TOGETHER_UNMET = "sit-together-unmet"
    SIT_AWAY_BREACHED = "sit-away-breached"


@dataclass
class Violation:
    """A proximity rule broken by an arrangement."""

    kind: ViolationKind
    guest1_id: str
    guest2_id: str
    guest1_name: str = ""
    guest2_name: str = ""
    table_id: str = ""
    table_label: str = ""
    seat1_id: Optional[str] = None
    seat2_id: Optional[str] = None
    reason: str = ""


@dataclass
class LockedGuestLocation:
    guest_id: str
    table: Table
    seat: Seat


SeatAssignments = Dict[str, str]
