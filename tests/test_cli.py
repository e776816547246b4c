import csv
import pathlib

from seat_autofill import cli

DATA = pathlib.Path(__file__).parent / "data"


def test_cli_prints_and_writes(tmp_path, capsys):
    out_assign = tmp_path / "out" / "assignments.csv"
    out_viol = tmp_path / "out" / "violations.csv"
    cli.main([
        "--guests", str(DATA / "guests.csv"),
        "--seats", str(DATA / "seats.csv"),
        "--rules", str(DATA / "rules.csv"),
        "--config", str(DATA / "options.yaml"),
        "--out-assignments", str(out_assign),
        "--out-violations", str(out_viol),
    ])
    lines = capsys.readouterr().out.splitlines()
    assert "T1-1,g1" in lines
    assert not any(line.startswith("[VIOLATION]") for line in lines)

    with out_assign.open() as f:
        rows = list(csv.DictReader(f))
    assert len(rows) == 8
    assert rows[0] == {"table": "Head Table", "seat": "T1-1", "guest": "g1", "locked": "true"}

    with out_viol.open() as f:
        assert list(csv.DictReader(f)) == []


def test_cli_reports_violations(tmp_path, capsys):
    rules = tmp_path / "rules.csv"
    # g1 is locked with one free external neighbour seat
    rules.write_text("guest1_id,guest2_id,rule\ng1,g2,together\ng1,g3,together\ng1,g4,together\n")
    cli.main(["--guests", str(DATA / "guests.csv"), "--seats", str(DATA / "seats.csv"), "--rules", str(rules)])
    out = capsys.readouterr().out
    assert "[VIOLATION] sit-together-unmet" in out
