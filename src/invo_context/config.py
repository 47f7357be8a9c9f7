"""
Configuration helpers for local storage and logging.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

from rich.logging import RichHandler


DEFAULT_DB_PATH = "~/.invo_context/context.duckdb"
ENV_DB_PATH = "INVO_CONTEXT_DB_PATH"
ENV_LOG_LEVEL = "INVO_CONTEXT_LOG_LEVEL"
DEFAULT_LOG_LEVEL = "WARNING"


def resolve_db_path(override_path: str | None = None) -> str:
    """
    Resolve the DuckDB path from CLI override, env var, or default.

    Precedence:
    1) explicit override_path
    2) INVO_CONTEXT_DB_PATH
    3) default path
    """
    raw_path = override_path or os.getenv(ENV_DB_PATH) or DEFAULT_DB_PATH
    resolved = Path(raw_path).expanduser().resolve()
    resolved.parent.mkdir(parents=True, exist_ok=True)
    return str(resolved)


def resolve_log_level(override_level: str | None = None) -> str:
    level = (override_level or os.getenv(ENV_LOG_LEVEL) or DEFAULT_LOG_LEVEL).upper()
    if not isinstance(logging.getLevelName(level), int):
        return DEFAULT_LOG_LEVEL
    return level


def configure_logging(level: str | None = None) -> None:
    """Route ``invo_context`` log records through rich."""
    resolved = resolve_log_level(level)
    logging.basicConfig(
        level=resolved,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(rich_tracebacks=True, show_path=False)],
        force=True,
    )
