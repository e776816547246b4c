"""seat_autofill package."""
from .models import (
    ConflictingRulesError,
    Guest,
    ProximityRule,
    ProximityRules,
    RandomizeOrder,
    RandomizePartition,
    RatioRule,
    Seat,
    SeatAutoFillError,
    SeatMode,
    SortDirection,
    SortField,
    SortRule,
    SpacingRule,
    SwapError,
    Table,
    TableRules,
    Violation,
    ViolationKind,
)
from .csv_loader import (
    load_guests,
    load_seats,
    load_proximity_rules,
    load_all,
)
from .config import AutoFillOptions, ConfigurationError, load_options
from .engine import AutoFillModel, AutoFillResult
from .violations import detect_violations, validate_seat_assignment
from .swaps import apply_swap, find_swap_candidates, validate_swap

__all__ = [
    "ConflictingRulesError",
    "ConfigurationError",
    "SeatAutoFillError",
    "SwapError",
    "Guest",
    "Seat",
    "SeatMode",
    "Table",
    "ProximityRule",
    "ProximityRules",
    "RatioRule",
    "SpacingRule",
    "TableRules",
    "SortField",
    "SortDirection",
    "SortRule",
    "RandomizeOrder",
    "RandomizePartition",
    "Violation",
    "ViolationKind",
    "load_guests",
    "load_seats",
    "load_proximity_rules",
    "load_all",
    "AutoFillOptions",
    "load_options",
    "AutoFillModel",
    "AutoFillResult",
    "detect_violations",
    "validate_seat_assignment",
    "apply_swap",
    "find_swap_candidates",
    "validate_swap",
]
