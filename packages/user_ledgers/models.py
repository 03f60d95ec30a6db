"""Data models and type aliases for ``user_ledgers``.

Records are frozen ``dataclass`` instances: they are created while parsing or
deriving, live in memory for one run, and are consumed once during emission.
Amounts are always :class:`~decimal.Decimal`; floats never enter the ledger.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import StrEnum

# ---------------------------------------------------------------------------
# Type aliases
# ---------------------------------------------------------------------------

type UserId = str
"""A user identifier of the form ``user<digits>`` (e.g. ``"user42"``)."""


class Operation(StrEnum):
    """The three operations the log grammar recognizes."""

    BALANCE_INQUIRY = "balance inquiry"
    TRANSFERRED = "transferred"
    WITHDREW = "withdrew"


# ---------------------------------------------------------------------------
# Parsed input and owned records
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class ParsedLine:
    """One input line broken into its grammar fields.

    Attributes
    ----------
    timestamp:
        Parsed second-precision time of the transaction.
    timestamp_text:
        The bracketed timestamp exactly as written in the source line. Derived
        records reuse this text rather than re-rendering ``timestamp``.
    user_id:
        The acting user.
    operation:
        Which of the three operations the line records.
    amount:
        Non-negative amount at the precision it was written with.
    target_user_id:
        Receiving user for ``transferred``; ``None`` otherwise.
    raw_text:
        The line without its terminator, re-emitted verbatim.
    """

    timestamp: datetime
    timestamp_text: str
    user_id: UserId
    operation: Operation
    amount: Decimal
    target_user_id: UserId | None
    raw_text: str


@dataclass(frozen=True, slots=True)
class LedgerRecord:
    """A single line destined for one user's output file."""

    timestamp: datetime
    raw_text: str
    owner: UserId
    # True for records synthesized from another user's transfer.
    derived: bool = False


# ---------------------------------------------------------------------------
# Run statistics
# ---------------------------------------------------------------------------


@dataclass(slots=True)
class IngestStats:
    """Counters accumulated while ingesting input files."""

    files_read: int = 0
    lines_read: int = 0
    lines_accepted: int = 0
    skipped: dict[str, int] = field(default_factory=dict)

    @property
    def lines_skipped(self) -> int:
        return sum(self.skipped.values())

    def record_skip(self, category: str) -> None:
        self.skipped[category] = self.skipped.get(category, 0) + 1


__all__ = [
    "IngestStats",
    "LedgerRecord",
    "Operation",
    "ParsedLine",
    "UserId",
]
