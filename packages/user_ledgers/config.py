"""Run settings for ``user_ledgers``.

Settings are a validated pydantic model. Values come from, in increasing
priority: the defaults below, ``USER_LEDGERS_*`` environment variables (which
the CLI may have populated from a local ``.env``), and explicit overrides.
"""

from __future__ import annotations

import codecs
import os
from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, ConfigDict, field_validator

DEFAULT_OUTPUT_DIR_NAME = "transactions_by_users"
DEFAULT_PATTERN = "*.log"
DEFAULT_ENCODING = "utf-8"

# Environment variable -> settings field
ENV_VARS: dict[str, str] = {
    "USER_LEDGERS_OUTPUT_DIR": "output_dir_name",
    "USER_LEDGERS_PATTERN": "pattern",
    "USER_LEDGERS_SORTED_INPUTS": "sorted_inputs",
    "USER_LEDGERS_ENCODING": "encoding",
}

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off"}


class LedgerSettings(BaseModel):
    """Validated settings for one directory run."""

    model_config = ConfigDict(frozen=True, extra="forbid", str_strip_whitespace=True)

    output_dir_name: str = DEFAULT_OUTPUT_DIR_NAME
    pattern: str = DEFAULT_PATTERN
    # Sort input file names lexically so runs are reproducible; file-system
    # listing order is otherwise unspecified.
    sorted_inputs: bool = True
    encoding: str = DEFAULT_ENCODING

    @field_validator("output_dir_name")
    @classmethod
    def _single_component(cls, v: str) -> str:
        if not v or v in {".", ".."} or "/" in v or "\\" in v:
            raise ValueError("output_dir_name must be a single directory name")
        return v

    @field_validator("pattern")
    @classmethod
    def _flat_pattern(cls, v: str) -> str:
        if not v:
            raise ValueError("pattern must be non-empty")
        if "/" in v or "**" in v:
            raise ValueError("pattern must match files directly inside the input directory")
        return v

    @field_validator("encoding")
    @classmethod
    def _known_codec(cls, v: str) -> str:
        try:
            codecs.lookup(v)
        except LookupError as exc:
            raise ValueError(f"unknown encoding: {v!r}") from exc
        return v

    @field_validator("sorted_inputs", mode="before")
    @classmethod
    def _parse_flag(cls, v: Any) -> Any:
        if isinstance(v, str):
            s = v.strip().lower()
            if s in _TRUE:
                return True
            if s in _FALSE:
                return False
            raise ValueError(f"expected a boolean flag, got {v!r}")
        return v

    @classmethod
    def from_env(
        cls,
        environ: Mapping[str, str] | None = None,
        **overrides: Any,
    ) -> LedgerSettings:
        """Build settings from ``USER_LEDGERS_*`` variables plus overrides.

        Overrides whose value is ``None`` are ignored so CLI options that were
        not given fall through to the environment.
        """

        env = os.environ if environ is None else environ
        values: dict[str, Any] = {}
        for var, field_name in ENV_VARS.items():
            raw = env.get(var)
            if raw is not None and raw.strip() != "":
                values[field_name] = raw
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)


__all__ = ["DEFAULT_OUTPUT_DIR_NAME", "ENV_VARS", "LedgerSettings"]
