"""Command line interface for seat_autofill."""
from __future__ import annotations

import argparse
import csv
import logging
from pathlib import Path
from typing import Sequence

from .config import AutoFillOptions, load_options
from .csv_loader import load_all
from .models import ProximityRules
from .seating import sorted_seats, sorted_tables

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Automatic seat assignment")
    parser.add_argument("--guests", required=True, help="Path to guests.csv")
    parser.add_argument("--seats", required=True, help="Path to seats.csv")
    parser.add_argument("--rules", help="Path to proximity rules CSV: guest1_id,guest2_id,rule")
    parser.add_argument("--config", type=Path, help="YAML run options.")
    parser.add_argument("--out-assignments", type=Path,
                        help="Write assignments CSV: table,seat,guest.")
    parser.add_argument("--out-violations", type=Path,
                        help="Write violations CSV.")
    parser.add_argument("-v", "--verbose", action="store_true",
                        help="Shortcut for --log-level DEBUG.")
    parser.add_argument("--log-level", default="WARNING",
                        choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    return parser


def main(argv: Sequence[str] | None = None) -> None:
    """Entry point used by ``python -m seat_autofill.cli``."""
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else getattr(logging, args.log_level),
        format="%(levelname)s %(name)s: %(message)s",
    )

    guests, tables, csv_rules = load_all(args.guests, args.seats, args.rules)
    options = load_options(args.config) if args.config else AutoFillOptions()
    # Rules from the CSV are added to any listed in the config file
    options.proximity_rules = ProximityRules(
        sit_together=options.proximity_rules.sit_together + csv_rules.sit_together,
        sit_away=options.proximity_rules.sit_away + csv_rules.sit_away,
    )

    model = options.to_model()
    model.build(guests, tables)
    result = model.solve()

    rows = []
    for table in sorted_tables(result.tables):
        for seat in sorted_seats(table.seats):
            if seat.assigned_guest_id:
                rows.append((table.display_label, seat.id, seat.assigned_guest_id, seat.locked))

    # Print simple assignments
    for _, seat_id, guest_id, _ in rows:
        print(f"{seat_id},{guest_id}")

    for v in result.violations:
        print(f"[VIOLATION] {v.kind.value} table={v.table_label} "
              f"guests={v.guest1_id},{v.guest2_id} reason={v.reason}")

    # Optional outputs
    if args.out_assignments:
        args.out_assignments.parent.mkdir(parents=True, exist_ok=True)
        with args.out_assignments.open("w", newline="") as f:
            w = csv.writer(f)
            w.writerow(["table", "seat", "guest", "locked"])
            for table_label, seat_id, guest_id, locked in rows:
                w.writerow([table_label, seat_id, guest_id, str(locked).lower()])

    if args.out_violations:
        args.out_violations.parent.mkdir(parents=True, exist_ok=True)
        with args.out_violations.open("w", newline="") as f:
            w = csv.DictWriter(f, fieldnames=[
                "kind", "guest1_id", "guest2_id", "table", "seat1_id", "seat2_id", "reason"
            ])
            w.writeheader()
            for v in result.violations:
                w.writerow({
                    "kind": v.kind.value,
                    "guest1_id": v.guest1_id,
                    "guest2_id": v.guest2_id,
                    "table": v.table_label,
                    "seat1_id": v.seat1_id or "",
                    "seat2_id": v.seat2_id or "",
                    "reason": v.reason,
                })

    logger.info("Wrote %d assignments and %d violations", len(rows), len(result.violations))


if __name__ == "__main__":  # pragma: no cover - CLI entry point
    main()
