"""Record parser: one transaction-log line → :class:`ParsedLine`.

Grammar (one line, no terminator)::

    [YYYY-MM-DD HH:MM:SS] user<digits> <operation> <amount>[ to user<digits>]

``<operation>`` is ``balance inquiry``, ``transferred`` or ``withdrew``;
``<amount>`` is a non-negative decimal with an optional fractional part. The
`` to user<digits>`` suffix is required for ``transferred`` and rejected for
every other operation.

Failures are raised as :class:`~user_ledgers.errors.LineParseError`
subclasses so callers can tell a grammar mismatch from a bad date or an
unknown operation. Parsing has no side effects.
"""

from __future__ import annotations

import re
from collections.abc import Callable
from datetime import datetime
from decimal import (
    MAX_EMAX,
    MAX_PREC,
    MIN_EMIN,
    ROUND_HALF_UP,
    Context,
    Decimal,
    InvalidOperation,
)
from pathlib import Path

from .errors import DateParseError, LineGrammarError, LineParseError, UnknownOperationError
from .logging_setup import get_logger
from .models import Operation, ParsedLine

logger = get_logger(__name__)

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"

# The operation slot accepts any run of lowercase words so that unknown
# operations are reported as such instead of as grammar mismatches.
_LINE_RE = re.compile(
    r"\[(?P<timestamp>[^\]]*)\]"
    r" (?P<user>user[0-9]+)"
    r" (?P<operation>[a-z]+(?: [a-z]+)*?)"
    r" (?P<amount>[0-9]+(?:\.[0-9]+)?)"
    r"(?: to (?P<target>user[0-9]+))?"
)
_TIMESTAMP_RE = re.compile(r"[0-9]{4}-[0-9]{2}-[0-9]{2} [0-9]{2}:[0-9]{2}:[0-9]{2}")

_CENT = Decimal("0.01")
_BOM = "\ufeff"

# Amounts keep every digit they were written with, so ledger arithmetic runs
# with unbounded precision instead of the default 28 significant digits.
EXACT = Context(prec=MAX_PREC, Emax=MAX_EMAX, Emin=MIN_EMIN, rounding=ROUND_HALF_UP)

# ---------------------------------------------------------------------------
# Helpers (amount/timestamp normalization)
# ---------------------------------------------------------------------------


def parse_timestamp(text: str) -> datetime:
    """Parse a ``YYYY-MM-DD HH:MM:SS`` string, rejecting any other shape.

    :func:`datetime.strptime` alone accepts single-digit fields, so the exact
    shape is checked first.
    """

    if not _TIMESTAMP_RE.fullmatch(text):
        raise ValueError(f"timestamp not in YYYY-MM-DD HH:MM:SS form: {text!r}")
    return datetime.strptime(text, TIMESTAMP_FORMAT)


def format_timestamp(moment: datetime) -> str:
    return moment.strftime(TIMESTAMP_FORMAT)


def parse_amount(text: str) -> Decimal:
    try:
        return Decimal(text)
    except InvalidOperation as exc:
        raise ValueError(f"invalid amount: {text!r}") from exc


def add_amounts(a: Decimal, b: Decimal) -> Decimal:
    """Exact sum of two amounts, whatever their size."""

    return EXACT.add(a, b)


def format_amount(value: Decimal) -> str:
    """Render ``value`` with exactly two decimals, rounding half-up.

    Always plain notation (``1E+3`` becomes ``1000.00``), at any magnitude.
    """

    q = value.quantize(_CENT, rounding=ROUND_HALF_UP, context=EXACT)
    # Collapse negative zero so -0.004 renders as 0.00.
    if q.is_zero():
        q = q.copy_abs()
    # An exponent of -2 keeps str() out of scientific notation.
    return str(q)


# ---------------------------------------------------------------------------
# Line parsing
# ---------------------------------------------------------------------------


def strip_terminator(line: str) -> str:
    """Drop the line terminator and a leading UTF-8 byte-order mark."""

    return line.removeprefix(_BOM).rstrip("\r\n")


def parse_line(line: str) -> ParsedLine:
    """Parse one log line.

    Raises
    ------
    LineGrammarError
        The line does not have the fixed shape at all, or the
        `` to user<digits>`` suffix is missing on a transfer (or present on
        another operation).
    DateParseError
        The bracketed timestamp is malformed or names an impossible moment.
    UnknownOperationError
        The operation slot holds something other than the three known
        operations.
    """

    raw = strip_terminator(line)
    m = _LINE_RE.fullmatch(raw)
    if m is None:
        raise LineGrammarError(f"line does not match log grammar: {raw!r}", line=raw)

    timestamp_text = m.group("timestamp")
    try:
        timestamp = parse_timestamp(timestamp_text)
    except ValueError as exc:
        raise DateParseError(f"cannot parse date {timestamp_text!r}", line=raw) from exc

    op_text = m.group("operation")
    try:
        operation = Operation(op_text)
    except ValueError as exc:
        raise UnknownOperationError(
            f"unknown operation {op_text!r}", operation=op_text, line=raw
        ) from exc

    target = m.group("target")
    if operation is Operation.TRANSFERRED and target is None:
        raise LineGrammarError(f"transfer without a target user: {raw!r}", line=raw)
    if operation is not Operation.TRANSFERRED and target is not None:
        raise LineGrammarError(f"unexpected target user on {operation.value!r}: {raw!r}", line=raw)

    return ParsedLine(
        timestamp=timestamp,
        timestamp_text=timestamp_text,
        user_id=m.group("user"),
        operation=operation,
        amount=parse_amount(m.group("amount")),
        target_user_id=target,
        raw_text=raw,
    )


def try_parse_line(
    line: str,
    *,
    source: Path | None = None,
    lineno: int | None = None,
    on_skip: Callable[[LineParseError], None] | None = None,
) -> ParsedLine | None:
    """Parse ``line``, or log why it was skipped and return ``None``.

    ``on_skip`` receives the located error before it is logged.
    """

    try:
        return parse_line(line)
    except LineParseError as exc:
        exc.located(source, lineno)
        if on_skip is not None:
            on_skip(exc)
        logger.warning("Skipping line (%s) at %s: %s", exc.category, exc.location, exc)
        return None


__all__ = [
    "EXACT",
    "TIMESTAMP_FORMAT",
    "add_amounts",
    "format_amount",
    "format_timestamp",
    "parse_amount",
    "parse_line",
    "parse_timestamp",
    "strip_terminator",
    "try_parse_line",
]
