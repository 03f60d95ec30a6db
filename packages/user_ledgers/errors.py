"""Exception taxonomy for ``user_ledgers``.

Line-level errors (:class:`LineParseError` and subclasses) are recoverable:
the offending line is skipped with a diagnostic and processing continues.
Directory and output errors are fatal for the whole run.
"""

from __future__ import annotations

from pathlib import Path


class UserLedgersError(Exception):
    """Base class for all errors raised by this package."""


class LineParseError(UserLedgersError):
    """A single input line could not be turned into a transaction."""

    category = "parse failure"

    def __init__(
        self,
        message: str,
        *,
        line: str,
        source: Path | None = None,
        lineno: int | None = None,
    ) -> None:
        super().__init__(message)
        self.line = line
        self.source = source
        self.lineno = lineno

    def located(self, source: Path | None, lineno: int | None) -> LineParseError:
        """Attach the file and 1-based line number the error came from."""

        self.source = source
        self.lineno = lineno
        return self

    @property
    def location(self) -> str:
        if self.source is None:
            return "<input>" if self.lineno is None else f"<input>:{self.lineno}"
        name = self.source.name
        return name if self.lineno is None else f"{name}:{self.lineno}"


class LineGrammarError(LineParseError):
    """The line does not match ``[<timestamp>] <user> <operation> <amount>[ to <user>]``."""

    category = "parse failure"


class DateParseError(LineParseError):
    """The bracketed timestamp is not a valid ``YYYY-MM-DD HH:MM:SS`` value."""

    category = "date failure"


class UnknownOperationError(LineParseError):
    """The operation is none of ``balance inquiry``, ``transferred``, ``withdrew``."""

    category = "unknown operation"

    def __init__(self, message: str, *, operation: str, line: str, **kwargs) -> None:
        super().__init__(message, line=line, **kwargs)
        self.operation = operation


class InputDirectoryError(UserLedgersError):
    """The input path is missing or not a directory."""


class InputReadError(UserLedgersError):
    """An input log file could not be read or decoded."""

    def __init__(self, message: str, *, path: Path) -> None:
        super().__init__(message)
        self.path = path


class OutputWriteError(UserLedgersError):
    """The output directory or a per-user file could not be written."""

    def __init__(self, message: str, *, path: Path) -> None:
        super().__init__(message)
        self.path = path


__all__ = [
    "DateParseError",
    "InputDirectoryError",
    "InputReadError",
    "LineGrammarError",
    "LineParseError",
    "OutputWriteError",
    "UnknownOperationError",
    "UserLedgersError",
]
