"""Logging configuration using loguru.

Provides:
- Human-readable logging for terminals
- JSON lines for log collectors

Logs go to stderr so they never interleave with the prompts and URLs the
token flow prints to stdout.
"""

import json
import sys
from datetime import UTC, datetime

from loguru import logger


def _json_formatter(record: dict) -> str:
    """Format log record as a single JSON line."""
    log_entry = {
        "timestamp": datetime.now(UTC).isoformat(),
        "severity": record["level"].name,
        "message": record["message"],
        "logger": record["name"],
        "function": record["function"],
        "line": record["line"],
    }

    if record.get("extra"):
        for key, value in record["extra"].items():
            if key not in log_entry:
                log_entry[key] = value

    if record["exception"]:
        log_entry["exception"] = {
            "type": record["exception"].type.__name__ if record["exception"].type else None,
            "value": str(record["exception"].value) if record["exception"].value else None,
        }

    # loguru treats the returned string as a template; escape braces
    line = json.dumps(log_entry, default=str).replace("{", "{{").replace("}", "}}")
    return line + "\n"


_DEV_FORMAT = (
    "<green>{time:HH:mm:ss.SSS}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> | "
    "<level>{message}</level>\n"
    "{exception}"
)


def setup_logging(json_logs: bool = False, log_level: str = "WARNING") -> None:
    """Configure loguru for the application.

    Args:
        json_logs: If True, output JSON lines
        log_level: Minimum log level to output
    """
    logger.remove()

    if json_logs:
        logger.add(sys.stderr, format=_json_formatter, level=log_level, serialize=False)
    else:
        logger.add(sys.stderr, format=_DEV_FORMAT, level=log_level, colorize=None)


__all__ = ["logger", "setup_logging"]
