"""Ledger builder: turn parsed lines into owned records and running balances.

The work is split into two pure fan-out steps and one stateful sink:

- :func:`derive_records` maps a :class:`ParsedLine` to the one or two
  :class:`LedgerRecord` objects it produces (a transfer also yields a
  synthesized ``received`` record owned by the target user).
- :func:`balance_deltas` maps the same line to signed balance changes.
- :class:`LedgerContext` owns the per-user ledgers and balances for one run and
  applies both. Balances are shared across every file fed into the context.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from decimal import Decimal
from pathlib import Path

from .logging_setup import get_logger
from .models import IngestStats, LedgerRecord, Operation, ParsedLine, UserId
from .parser import add_amounts, format_amount, try_parse_line

logger = get_logger(__name__)


def received_text(parsed: ParsedLine) -> str:
    """Text of the credit line synthesized on the target side of a transfer."""

    return (
        f"[{parsed.timestamp_text}] {parsed.target_user_id} received "
        f"{format_amount(parsed.amount)} from {parsed.user_id}"
    )


def derive_records(parsed: ParsedLine) -> list[LedgerRecord]:
    """Return the records one parsed line contributes, in append order.

    The raw line is always kept under the acting user, balance inquiries
    included. Transfers add a second record for the receiver.
    """

    records = [LedgerRecord(parsed.timestamp, parsed.raw_text, parsed.user_id)]
    if parsed.operation is Operation.TRANSFERRED and parsed.target_user_id is not None:
        records.append(
            LedgerRecord(
                parsed.timestamp,
                received_text(parsed),
                parsed.target_user_id,
                derived=True,
            )
        )
    return records


def balance_deltas(parsed: ParsedLine) -> list[tuple[UserId, Decimal]]:
    """Signed balance changes implied by one parsed line."""

    match parsed.operation:
        case Operation.BALANCE_INQUIRY:
            return []
        case Operation.WITHDREW:
            return [(parsed.user_id, parsed.amount.copy_negate())]
        case Operation.TRANSFERRED if parsed.target_user_id is not None:
            return [
                (parsed.user_id, parsed.amount.copy_negate()),
                (parsed.target_user_id, parsed.amount),
            ]
    return []


class LedgerContext:
    """Aggregation state for one run: per-user ledgers plus running balances.

    Users are registered implicitly the first time they are referenced, either
    as the acting user or as a transfer target; their balance starts at zero.
    Ledger lists are append-only here; ordering happens at emission time.
    """

    def __init__(self) -> None:
        self._ledgers: dict[UserId, list[LedgerRecord]] = {}
        self._balances: dict[UserId, Decimal] = {}
        self.stats = IngestStats()

    # ---- mutation ---------------------------------------------------------

    def apply(self, parsed: ParsedLine) -> list[LedgerRecord]:
        """Append the line's records and apply its balance effect."""

        records = derive_records(parsed)
        for record in records:
            self._ledgers.setdefault(record.owner, []).append(record)
            self._balances.setdefault(record.owner, Decimal(0))
        for user_id, delta in balance_deltas(parsed):
            self._balances[user_id] = add_amounts(self.balance_of(user_id), delta)
        return records

    def ingest_line(
        self, line: str, *, source: Path | None = None, lineno: int | None = None
    ) -> ParsedLine | None:
        """Parse and apply one line; log and skip it when it doesn't parse.

        Returns the parsed line, or ``None`` when the line was skipped.
        """

        self.stats.lines_read += 1
        parsed = try_parse_line(
            line,
            source=source,
            lineno=lineno,
            on_skip=lambda exc: self.stats.record_skip(exc.category),
        )
        if parsed is None:
            return None
        self.apply(parsed)
        self.stats.lines_accepted += 1
        return parsed

    def ingest_lines(self, lines: Iterable[str], *, source: Path | None = None) -> int:
        """Feed lines in order; return how many were accepted."""

        accepted = 0
        for lineno, line in enumerate(lines, start=1):
            if self.ingest_line(line, source=source, lineno=lineno) is not None:
                accepted += 1
        return accepted

    def ingest_file(self, path: Path, *, encoding: str = "utf-8") -> int:
        """Read ``path`` line by line into the context.

        ``OSError`` and ``UnicodeDecodeError`` propagate to the caller.
        """

        with path.open(encoding=encoding, newline=None) as f:
            accepted = self.ingest_lines(f, source=path)
        self.stats.files_read += 1
        logger.info("Read %s (%d lines accepted)", path.name, accepted)
        return accepted

    # ---- read access ------------------------------------------------------

    @property
    def users(self) -> list[UserId]:
        """Users with at least one record, in first-seen order."""

        return list(self._ledgers)

    def records_for(self, user_id: UserId) -> list[LedgerRecord]:
        return list(self._ledgers.get(user_id, ()))

    def balance_of(self, user_id: UserId) -> Decimal:
        return self._balances.get(user_id, Decimal(0))

    def iter_ledgers(self) -> Iterator[tuple[UserId, list[LedgerRecord], Decimal]]:
        for user_id, records in self._ledgers.items():
            yield user_id, list(records), self.balance_of(user_id)


__all__ = [
    "LedgerContext",
    "balance_deltas",
    "derive_records",
    "received_text",
]
