"""CLI for the ``user_ledgers`` package.

Typer-based console interface. Environment variables (``USER_LEDGERS_*``) are
loaded from a local ``.env`` using ``python-dotenv`` before settings are
resolved; explicit options win over the environment. The pipeline itself lives
in :mod:`user_ledgers.driver`.
"""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer
from dotenv import load_dotenv
from pydantic import ValidationError
from typer.models import ArgumentInfo

from .config import LedgerSettings
from .driver import process_directory
from .errors import UserLedgersError
from .logging_setup import configure_logging, get_logger

logger = get_logger(__name__)


def cmd_split_ledgers(
    directory: str,
    *,
    output_dir_name: str | None = None,
    pattern: str | None = None,
    sorted_inputs: bool | None = None,
    encoding: str | None = None,
) -> int:
    """Build per-user ledgers for ``directory`` and report the outcome.

    Errors are written to stderr and a non-zero status is returned. On
    success the output folder is printed to stdout and ``0`` is returned.
    """

    try:
        settings = LedgerSettings.from_env(
            output_dir_name=output_dir_name,
            pattern=pattern,
            sorted_inputs=sorted_inputs,
            encoding=encoding,
        )
    except ValidationError as e:
        typer.echo(f"Error: invalid settings: {e}", err=True)
        return 1

    try:
        summary = process_directory(Path(directory), settings)
    except UserLedgersError as e:
        logger.error("Log processing failed: %s", e)
        typer.echo(f"Error: {e}", err=True)
        return 1

    typer.echo(f"Files saved in folder {summary.output_dir}")
    return 0


app = typer.Typer(
    add_completion=False,
    help="Split transaction logs into per-user, time-ordered ledgers with final balances.",
)

# Module-level argument object to satisfy ruff B008 (no calls in parameter
# defaults).
DIRECTORY_ARGUMENT: ArgumentInfo = typer.Argument(
    ...,
    help="Directory containing the *.log transaction files.",
    exists=False,  # reported by the driver with a clearer message
    file_okay=True,
    dir_okay=True,
)


@app.command()
def split(
    directory: Annotated[Path, DIRECTORY_ARGUMENT],
    *,
    output_dir_name: str | None = typer.Option(
        None,
        "--output-dir-name",
        help="Name of the output sub-directory (env USER_LEDGERS_OUTPUT_DIR).",
    ),
    pattern: str | None = typer.Option(
        None, "--pattern", help="Glob for input files (env USER_LEDGERS_PATTERN)."
    ),
    sorted_inputs: bool = typer.Option(
        True,
        "--sorted-inputs/--unsorted-inputs",
        envvar="USER_LEDGERS_SORTED_INPUTS",
        help="Process input files in name order (default) or file-system order.",
    ),
    encoding: str | None = typer.Option(
        None, "--encoding", help="Text encoding of input and output files."
    ),
    log_level: str | None = typer.Option(
        None, "--log-level", help="Logging level (env USER_LEDGERS_LOG_LEVEL, default INFO)."
    ),
) -> None:
    """Read every log file in DIRECTORY and write one ledger per user."""

    # Load environment from .env in CWD (override=False to keep existing env)
    load_dotenv(dotenv_path=Path.cwd() / ".env", override=False)

    try:
        configure_logging(log_level)
    except ValueError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1) from e

    code = cmd_split_ledgers(
        str(directory),
        output_dir_name=output_dir_name,
        pattern=pattern,
        sorted_inputs=sorted_inputs,
        encoding=encoding,
    )
    if code:
        raise typer.Exit(code)


def main() -> None:
    # Loaded before parsing too, so envvar-backed options see .env values.
    load_dotenv(dotenv_path=Path.cwd() / ".env", override=False)
    app()


if __name__ == "__main__":  # pragma: no cover
    main()
