"""Pytest configuration for test isolation.

The CLI reads ``USER_LEDGERS_*`` variables and a ``.env`` from the current
working directory, and configures the package logger once per process. To keep
tests hermetic, every test runs in its own temporary working directory with
those variables cleared and logging reset afterwards.
"""

from __future__ import annotations

import sys
from pathlib import Path

import pytest

# Make sure the workspace `packages/` dir is on sys.path so `user_ledgers` is importable
_ROOT = Path(__file__).resolve().parents[1]
_PKG_DIR = _ROOT / "packages"
if str(_PKG_DIR) not in sys.path:
    sys.path.insert(0, str(_PKG_DIR))

from user_ledgers.logging_setup import LOG_LEVEL_ENV, reset_logging  # noqa: E402

_ENV_VARS = (
    "USER_LEDGERS_OUTPUT_DIR",
    "USER_LEDGERS_PATTERN",
    "USER_LEDGERS_SORTED_INPUTS",
    "USER_LEDGERS_ENCODING",
    LOG_LEVEL_ENV,
)


@pytest.fixture(autouse=True)
def _isolate_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    """Clear package env vars, run from a scratch cwd, reset logging after."""

    for var in _ENV_VARS:
        monkeypatch.delenv(var, raising=False)
    workdir = tmp_path / "cwd"
    workdir.mkdir()
    monkeypatch.chdir(workdir)
    yield
    reset_logging()


@pytest.fixture
def log_dir(tmp_path: Path) -> Path:
    """An empty input directory for a run."""

    d = tmp_path / "logs"
    d.mkdir()
    return d


@pytest.fixture
def write_log(log_dir: Path):
    """Write ``lines`` to ``<log_dir>/<name>`` and return the path."""

    def _write(name: str, *lines: str) -> Path:
        path = log_dir / name
        path.write_text("".join(f"{line}\n" for line in lines), encoding="utf-8")
        return path

    return _write
