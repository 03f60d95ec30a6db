"""Ordering and emission of per-user ledger files.

Each user's records are sorted by timestamp (stable, so records sharing a
timestamp keep their append order), rendered verbatim, and closed with a
synthesized ``final balance`` line stamped with the emission time.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime
from decimal import Decimal
from pathlib import Path

from .errors import OutputWriteError
from .ledger import LedgerContext
from .logging_setup import get_logger
from .models import LedgerRecord, UserId
from .parser import format_amount, format_timestamp

logger = get_logger(__name__)


def sort_records(records: Iterable[LedgerRecord]) -> list[LedgerRecord]:
    """Return ``records`` ordered by timestamp; ties keep their input order."""

    # sorted() is stable; keying on the timestamp alone preserves tie order.
    return sorted(records, key=lambda r: r.timestamp)


def final_balance_line(user_id: UserId, balance: Decimal, now: datetime) -> str:
    return f"[{format_timestamp(now)}] {user_id} final balance {format_amount(balance)}"


def render_user_log(
    user_id: UserId,
    records: Iterable[LedgerRecord],
    balance: Decimal,
    *,
    now: datetime,
) -> list[str]:
    """Output lines for one user: sorted record texts plus the balance line."""

    lines = [r.raw_text for r in sort_records(records)]
    lines.append(final_balance_line(user_id, balance, now))
    return lines


def write_user_log(path: Path, lines: list[str], *, encoding: str = "utf-8") -> None:
    """Overwrite ``path`` with ``lines`` joined by ``\\n`` (no trailing newline)."""

    try:
        with path.open("w", encoding=encoding, newline="\n") as f:
            f.write("\n".join(lines))
    except OSError as exc:
        raise OutputWriteError(f"cannot write {path}: {exc}", path=path) from exc


def ensure_output_dir(path: Path) -> Path:
    try:
        path.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise OutputWriteError(f"cannot create output directory {path}: {exc}", path=path) from exc
    return path


def emit_ledgers(
    context: LedgerContext,
    output_dir: Path,
    *,
    now: datetime | None = None,
    encoding: str = "utf-8",
) -> list[Path]:
    """Write one ``<user>.log`` per user in ``context`` under ``output_dir``.

    ``now`` defaults to the current local time, taken once so every file of a
    run carries the same final-balance stamp. Returns the written paths in
    the order users were first seen. The first write failure aborts emission.
    """

    stamp = now if now is not None else datetime.now()
    ensure_output_dir(output_dir)
    written: list[Path] = []
    for user_id, records, balance in context.iter_ledgers():
        path = output_dir / f"{user_id}.log"
        write_user_log(
            path,
            render_user_log(user_id, records, balance, now=stamp),
            encoding=encoding,
        )
        logger.debug(
            "Wrote %s (%d records, balance %s)", path.name, len(records), format_amount(balance)
        )
        written.append(path)
    return written


__all__ = [
    "emit_ledgers",
    "ensure_output_dir",
    "final_balance_line",
    "render_user_log",
    "sort_records",
    "write_user_log",
]
