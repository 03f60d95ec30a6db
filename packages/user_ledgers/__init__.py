"""Public interface for the ``user_ledgers`` package.

Splits a directory of transaction logs into one time-ordered ledger file per
user, each ending with that user's final balance. This module only re-exports
the stable import surface.
"""

from .config import LedgerSettings
from .driver import RunSummary, discover_log_files, process_directory
from .emit import emit_ledgers, render_user_log, sort_records
from .errors import (
    DateParseError,
    InputDirectoryError,
    InputReadError,
    LineGrammarError,
    LineParseError,
    OutputWriteError,
    UnknownOperationError,
    UserLedgersError,
)
from .ledger import LedgerContext, balance_deltas, derive_records
from .models import IngestStats, LedgerRecord, Operation, ParsedLine
from .parser import format_amount, parse_line, try_parse_line

__all__ = [
    # Pipeline
    "process_directory",
    "discover_log_files",
    "parse_line",
    "try_parse_line",
    "derive_records",
    "balance_deltas",
    "LedgerContext",
    "sort_records",
    "render_user_log",
    "emit_ledgers",
    "format_amount",
    # Models / settings
    "LedgerSettings",
    "RunSummary",
    "IngestStats",
    "LedgerRecord",
    "Operation",
    "ParsedLine",
    # Errors
    "UserLedgersError",
    "LineParseError",
    "LineGrammarError",
    "DateParseError",
    "UnknownOperationError",
    "InputDirectoryError",
    "InputReadError",
    "OutputWriteError",
]
