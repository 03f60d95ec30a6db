from __future__ import annotations

import shutil
from datetime import datetime
from pathlib import Path

import pytest

from user_ledgers.config import LedgerSettings
from user_ledgers.driver import discover_log_files, process_directory
from user_ledgers.errors import InputDirectoryError, InputReadError

NOW = datetime(2025, 6, 1, 12, 0, 0)
SAMPLE_LOGS = Path(__file__).resolve().parent / "data" / "sample_logs"


def _read(path: Path) -> list[str]:
    return path.read_text(encoding="utf-8").split("\n")


# ---- Scenarios ---------------------------------------------------------------


def test_single_withdrawal(log_dir: Path, write_log):
    write_log("a.log", "[2024-01-01 10:00:00] user1 withdrew 50")

    summary = process_directory(log_dir, now=NOW)

    assert summary.output_dir == log_dir / "transactions_by_users"
    assert _read(summary.output_dir / "user1.log") == [
        "[2024-01-01 10:00:00] user1 withdrew 50",
        "[2025-06-01 12:00:00] user1 final balance -50.00",
    ]


def test_single_transfer(log_dir: Path, write_log):
    write_log("a.log", "[2024-01-01 10:00:00] user1 transferred 30 to user2")

    summary = process_directory(log_dir, now=NOW)

    out = summary.output_dir
    assert _read(out / "user1.log") == [
        "[2024-01-01 10:00:00] user1 transferred 30 to user2",
        "[2025-06-01 12:00:00] user1 final balance -30.00",
    ]
    assert _read(out / "user2.log") == [
        "[2024-01-01 10:00:00] user2 received 30.00 from user1",
        "[2025-06-01 12:00:00] user2 final balance 30.00",
    ]


def test_garbage_line_is_skipped_and_run_continues(log_dir: Path, write_log):
    write_log("a.log", "garbage text", "[2024-01-01 10:00:00] user1 withdrew 5")

    summary = process_directory(log_dir, now=NOW)

    assert [p.name for p in summary.written] == ["user1.log"]
    assert summary.stats.skipped == {"parse failure": 1}
    assert all("garbage" not in line for line in _read(summary.output_dir / "user1.log"))


def test_identical_timestamps_keep_input_order(log_dir: Path, write_log):
    write_log(
        "a.log",
        "[2024-01-01 10:00:00] user1 withdrew 2",
        "[2024-01-01 10:00:00] user1 withdrew 1",
        "[2024-01-01 09:00:00] user1 withdrew 3",
    )

    summary = process_directory(log_dir, now=NOW)

    assert _read(summary.output_dir / "user1.log")[:3] == [
        "[2024-01-01 09:00:00] user1 withdrew 3",
        "[2024-01-01 10:00:00] user1 withdrew 2",
        "[2024-01-01 10:00:00] user1 withdrew 1",
    ]


def test_inquiry_only_user_gets_zero_balance(log_dir: Path, write_log):
    write_log("a.log", "[2024-01-01 10:00:00] user5 balance inquiry 300")

    summary = process_directory(log_dir, now=NOW)

    assert _read(summary.output_dir / "user5.log")[-1] == (
        "[2025-06-01 12:00:00] user5 final balance 0.00"
    )


# ---- Cross-file behavior -----------------------------------------------------


def test_balances_carry_across_files(log_dir: Path, write_log):
    write_log("a.log", "[2024-01-02 10:00:00] user1 transferred 40 to user2")
    write_log("b.log", "[2024-01-01 10:00:00] user2 withdrew 15")

    summary = process_directory(log_dir, now=NOW)

    assert _read(summary.output_dir / "user2.log") == [
        "[2024-01-01 10:00:00] user2 withdrew 15",
        "[2024-01-02 10:00:00] user2 received 40.00 from user1",
        "[2025-06-01 12:00:00] user2 final balance 25.00",
    ]


def test_sample_directory_end_to_end(tmp_path: Path):
    logs = tmp_path / "sample"
    shutil.copytree(SAMPLE_LOGS, logs)

    summary = process_directory(logs, now=NOW)

    assert [p.name for p in summary.input_files] == ["01_morning.log", "02_evening.log"]
    assert [p.name for p in summary.written] == ["user1.log", "user2.log", "user3.log"]
    out = summary.output_dir
    assert _read(out / "user1.log") == [
        "[2025-05-10 09:00:00] user1 balance inquiry 1000",
        "[2025-05-10 09:05:00] user1 transferred 100 to user2",
        "[2025-05-10 09:05:00] user1 balance inquiry 900",
        "[2025-05-10 09:15:00] user1 received 12.35 from user3",
        "[2025-05-10 18:00:00] user1 withdrew 50",
        "[2025-06-01 12:00:00] user1 final balance -137.66",
    ]
    assert _read(out / "user2.log") == [
        "[2025-05-10 08:00:00] user2 transferred 10 to user3",
        "[2025-05-10 09:05:00] user2 received 100.00 from user1",
        "[2025-05-10 09:10:00] user2 withdrew 25.50",
        "[2025-06-01 12:00:00] user2 final balance 64.50",
    ]
    assert _read(out / "user3.log") == [
        "[2025-05-10 08:00:00] user3 received 10.00 from user2",
        "[2025-05-10 09:15:00] user3 transferred 12.345 to user1",
        "[2025-06-01 12:00:00] user3 final balance -2.35",
    ]
    stats = summary.stats
    assert stats.files_read == 2
    assert stats.lines_read == 10
    assert stats.lines_accepted == 7
    assert stats.skipped == {"parse failure": 1, "date failure": 1, "unknown operation": 1}


def test_every_output_line_traces_to_one_input_line(tmp_path: Path):
    logs = tmp_path / "sample"
    shutil.copytree(SAMPLE_LOGS, logs)
    inputs = [
        line
        for f in sorted(logs.glob("*.log"))
        for line in f.read_text(encoding="utf-8").splitlines()
    ]

    summary = process_directory(logs, now=NOW)

    for path in summary.written:
        body = _read(path)[:-1]
        for line in body:
            if " received " in line:
                # [ts] <target> received <amt> from <sender> -> one transfer line
                stamp, rest = line.split("] ", 1)
                target, _, _, _, sender = rest.split(" ")
                sources = [
                    i
                    for i in inputs
                    if i.startswith(f"{stamp}] {sender} transferred ")
                    and i.endswith(f" to {target}")
                ]
            else:
                sources = [i for i in inputs if i == line]
            assert len(sources) == 1, line


def test_large_amounts_are_exact_in_output(log_dir: Path, write_log):
    write_log(
        "a.log",
        "[2024-01-01 10:00:00] user1 transferred 100000000000000000000000000000 to user2",
        "[2024-01-01 11:00:00] user3 withdrew 12345678901234567890123456.789",
    )

    summary = process_directory(log_dir, now=NOW)

    out = summary.output_dir
    assert _read(out / "user2.log") == [
        "[2024-01-01 10:00:00] user2 received 100000000000000000000000000000.00 from user1",
        "[2025-06-01 12:00:00] user2 final balance 100000000000000000000000000000.00",
    ]
    assert _read(out / "user1.log")[-1] == (
        "[2025-06-01 12:00:00] user1 final balance -100000000000000000000000000000.00"
    )
    assert _read(out / "user3.log")[-1] == (
        "[2025-06-01 12:00:00] user3 final balance -12345678901234567890123456.79"
    )


def test_rerun_ignores_previous_output(log_dir: Path, write_log):
    write_log("a.log", "[2024-01-01 10:00:00] user1 withdrew 50")

    process_directory(log_dir, now=NOW)
    summary = process_directory(log_dir, now=NOW)

    assert [p.name for p in summary.input_files] == ["a.log"]
    assert _read(summary.output_dir / "user1.log")[-1].endswith("final balance -50.00")


# ---- Discovery ---------------------------------------------------------------


def test_discovery_is_flat_and_filtered(log_dir: Path, write_log):
    write_log("b.log", "x")
    write_log("a.log", "x")
    write_log("notes.txt", "x")
    nested = log_dir / "nested"
    nested.mkdir()
    (nested / "c.log").write_text("x\n", encoding="utf-8")
    (log_dir / "dir.log").mkdir()

    assert [p.name for p in discover_log_files(log_dir)] == ["a.log", "b.log"]
    assert sorted(p.name for p in discover_log_files(log_dir, sort=False)) == ["a.log", "b.log"]


def test_custom_output_dir_and_pattern(log_dir: Path, write_log):
    write_log("a.txt", "[2024-01-01 10:00:00] user1 withdrew 1")
    settings = LedgerSettings(output_dir_name="per_user", pattern="*.txt")

    summary = process_directory(log_dir, settings, now=NOW)

    assert summary.written == (log_dir / "per_user" / "user1.log",)


def test_empty_directory_creates_output_dir_only(log_dir: Path):
    summary = process_directory(log_dir, now=NOW)

    assert summary.written == ()
    assert summary.output_dir.is_dir()


# ---- Fatal errors ------------------------------------------------------------


def test_missing_directory(tmp_path: Path):
    with pytest.raises(InputDirectoryError, match="not found"):
        process_directory(tmp_path / "nope")


def test_file_instead_of_directory(tmp_path: Path):
    f = tmp_path / "a.log"
    f.write_text("", encoding="utf-8")

    with pytest.raises(InputDirectoryError, match="Not a directory"):
        process_directory(f)
    assert not (tmp_path / "transactions_by_users").exists()


def test_undecodable_input_is_fatal(log_dir: Path):
    (log_dir / "bad.log").write_bytes(b"\xff\xfe\xfa not utf-8\n")

    with pytest.raises(InputReadError) as info:
        process_directory(log_dir, now=NOW)

    assert info.value.path == log_dir / "bad.log"
