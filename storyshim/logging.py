"""Loguru configuration for the CLI."""

import sys
from typing import TYPE_CHECKING

from loguru import logger

if TYPE_CHECKING:
    from loguru import Record


def _log_format(record: "Record") -> str:
    fmt = "<dim>{time:HH:mm:ss}</dim> <level>{level: <8}</level> {name}: {message}"
    extra = record["extra"]
    if extra:
        extra_str = " ".join(f"{k}={v!r}" for k, v in extra.items())
        # Escape braces to prevent Loguru format string injection
        extra_str = extra_str.replace("{", "{{").replace("}", "}}")
        fmt += f" <dim>| {extra_str}</dim>"
    fmt += "\n"
    if record["exception"]:
        fmt += "{exception}\n"
    return fmt


def configure_logging(level: str = "WARNING") -> None:
    """Replace loguru's default handler with a compact stderr handler."""
    logger.remove()
    logger.add(sys.stderr, level=level.upper(), format=_log_format, colorize=True)
