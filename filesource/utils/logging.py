"""Logging setup for the worker plus key=value debug lines for tasks."""

from __future__ import annotations

import json
import logging
import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from rich.logging import RichHandler

from filesource.constants import DEFAULT_LOG_LEVEL, ENV_LOG_LEVEL

# The producer client logs every broker connection step at INFO.
QUIET_LOGGERS = ("kafka", "kafka.conn", "kafka.client", "kafka.producer")

_configured_level: int | None = None


def resolve_log_level(level: int | str | None = None) -> int:
    """Explicit level first, then ``FILESOURCE_LOG_LEVEL``, then INFO."""
    if isinstance(level, int):
        return level
    name = str(level or "").strip().upper() or os.getenv(ENV_LOG_LEVEL, "").strip().upper()
    name = name or DEFAULT_LOG_LEVEL
    if name.isdigit():
        return int(name)
    value = logging.getLevelName(name)
    if not isinstance(value, int):
        raise ValueError(f"Unknown log level: {level or name}")
    return value


def setup_logging(level: int | str | None = None, *, force: bool = False) -> int:
    global _configured_level

    target_level = resolve_log_level(level)
    if _configured_level == target_level and not force:
        return target_level

    handler = RichHandler(
        level=target_level,
        markup=False,
        rich_tracebacks=False,
        show_time=True,
        show_level=True,
        show_path=False,
    )
    logging.basicConfig(
        level=max(target_level, logging.WARNING),
        format="%(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        handlers=[handler],
        force=True,
    )
    logging.getLogger("filesource").setLevel(target_level)
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    _configured_level = target_level
    return target_level


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


def _format_field(value: Any) -> str:
    if isinstance(value, Path):
        return str(value)
    if isinstance(value, float):
        return f"{value:g}"
    if isinstance(value, str):
        return json.dumps(value, ensure_ascii=False)
    if isinstance(value, Mapping):
        # partitions and offsets: {"filename": ...}, {"position": ...}
        return json.dumps(dict(value), sort_keys=True, separators=(",", ":"), default=str)
    return str(value)


def debug_event(logger: logging.Logger, event: str, **fields: Any) -> None:
    if not logger.isEnabledFor(logging.DEBUG):
        return
    parts = [f"event={event}"]
    parts.extend(
        f"{key}={_format_field(value)}" for key, value in fields.items() if value is not None
    )
    logger.debug(" ".join(parts))
