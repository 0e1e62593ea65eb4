"""Logging configuration for r2pilot.

Diagnostics go to stderr through loguru so that stdout stays reserved for
command output (tables, JSON, completion scripts).
"""

from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import Any

from loguru import logger

_LEVELS = {"TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL"}


class JSONFormatter:
    """Serialize a loguru record to a single JSON line."""

    def __call__(self, record: dict[str, Any]) -> str:
        log_data = {
            "timestamp": record["time"].isoformat(),
            "level": record["level"].name,
            "message": record["message"],
            "module": record.get("module", ""),
            "function": record.get("function", ""),
            "line": record.get("line", 0),
        }

        exception = record.get("exception")
        if exception is not None:
            log_data["exception"] = {
                "type": exception.type.__name__ if exception.type else None,
                "value": str(exception.value) if exception.value else None,
            }

        extra = record.get("extra")
        if extra:
            log_data.update(extra)

        # loguru treats the returned string as a format template.
        return json.dumps(log_data, ensure_ascii=False, default=str).replace("{", "{{").replace("}", "}}") + "\n"


def normalize_level(level: str | None, default: str = "INFO") -> str:
    value = (level or "").strip().upper()
    if value == "WARN":
        value = "WARNING"
    return value if value in _LEVELS else default


def setup_logging(
    *,
    level: str = "INFO",
    json_format: bool = False,
    log_file: Path | None = None,
) -> None:
    """Configure loguru sinks.

    Args:
        level: Log level name (case-insensitive).
        json_format: Emit one JSON object per line instead of the pretty format.
        log_file: Optional file sink, rotated at 10 MB and kept for 7 days.
    """
    logger.remove()

    level = normalize_level(level)
    if json_format:
        formatter: Any = JSONFormatter()
    else:
        formatter = "<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan> | {message}"

    logger.add(sys.stderr, format=formatter, level=level, colorize=not json_format)

    if log_file:
        log_file = Path(log_file).expanduser()
        log_file.parent.mkdir(parents=True, exist_ok=True)
        logger.add(
            log_file,
            format=formatter,
            level=level,
            rotation="10 MB",
            retention="7 days",
            compression="zip",
        )
