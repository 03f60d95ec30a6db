"""Directory driver: discover input logs, build ledgers, write per-user files.

This is the only module that touches the input directory. Everything it
learns flows through one :class:`~user_ledgers.ledger.LedgerContext`, which
is created here and discarded when the run ends.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from pathlib import Path

from .config import LedgerSettings
from .emit import emit_ledgers
from .errors import InputDirectoryError, InputReadError
from .ledger import LedgerContext
from .logging_setup import get_logger
from .models import IngestStats

logger = get_logger(__name__)


@dataclass(frozen=True, slots=True)
class RunSummary:
    """What a directory run read and wrote."""

    input_dir: Path
    output_dir: Path
    input_files: tuple[Path, ...]
    written: tuple[Path, ...]
    stats: IngestStats


def validate_input_dir(path: Path) -> Path:
    if not path.exists():
        raise InputDirectoryError(f"Directory not found: {path}")
    if not path.is_dir():
        raise InputDirectoryError(f"Not a directory: {path}")
    return path


def discover_log_files(
    directory: Path, *, pattern: str = "*.log", sort: bool = True
) -> list[Path]:
    """Regular files matching ``pattern`` directly inside ``directory``.

    Sub-directories are never descended into, so a previous run's output
    directory is not picked up as input.
    """

    files = [p for p in directory.glob(pattern) if p.is_file()]
    if sort:
        files.sort(key=lambda p: p.name)
    return files


def build_ledgers(files: list[Path], *, encoding: str = "utf-8") -> LedgerContext:
    """Ingest ``files`` in order into a fresh context.

    Balances carry over between files; an unreadable file aborts the run.
    """

    context = LedgerContext()
    for path in files:
        try:
            context.ingest_file(path, encoding=encoding)
        except (OSError, UnicodeDecodeError) as exc:
            raise InputReadError(f"cannot read {path}: {exc}", path=path) from exc
    return context


def process_directory(
    input_dir: Path | str,
    settings: LedgerSettings | None = None,
    *,
    now: datetime | None = None,
) -> RunSummary:
    """Run the whole pipeline for one input directory.

    Raises
    ------
    InputDirectoryError
        ``input_dir`` is missing or not a directory. Nothing is written.
    InputReadError
        An input file could not be read or decoded.
    OutputWriteError
        The output directory or a user file could not be written. Files
        written before the failure are left in place.
    """

    settings = settings or LedgerSettings()
    root = validate_input_dir(Path(input_dir))
    output_dir = root / settings.output_dir_name

    files = discover_log_files(root, pattern=settings.pattern, sort=settings.sorted_inputs)
    if not files:
        logger.warning("No files matching %s in %s", settings.pattern, root)
    logger.info("Processing %d file(s) from %s", len(files), root)

    context = build_ledgers(files, encoding=settings.encoding)
    written = emit_ledgers(context, output_dir, now=now, encoding=settings.encoding)

    stats = context.stats
    logger.info(
        "Accepted %d of %d line(s); skipped %d; wrote %d user file(s) to %s",
        stats.lines_accepted,
        stats.lines_read,
        stats.lines_skipped,
        len(written),
        output_dir,
    )
    for category, count in sorted(stats.skipped.items()):
        logger.info("Skipped (%s): %d", category, count)

    return RunSummary(
        input_dir=root,
        output_dir=output_dir,
        input_files=tuple(files),
        written=tuple(written),
        stats=stats,
    )


__all__ = [
    "RunSummary",
    "build_ledgers",
    "discover_log_files",
    "process_directory",
    "validate_input_dir",
]
