"""
Console logging for the federation service.

Usage:
    from federation.log_config import init_logging
    init_logging("DEBUG")
    logging.getLogger("github").info("Token exchanged", extra={"appid": "root"})
"""

from __future__ import annotations

import logging
import sys
from datetime import datetime

COLORS = {
    "DEBUG": "\033[36m",  # Cyan
    "INFO": "\033[32m",  # Green
    "WARNING": "\033[33m",  # Yellow
    "ERROR": "\033[31m",  # Red
    "CRITICAL": "\033[35m",  # Magenta
    "RESET": "\033[0m",
}

TAG_COLORS = {
    "federation": "\033[94m",  # Blue
    "github": "\033[95m",  # Magenta
    "store": "\033[92m",  # Green
    "api": "\033[96m",  # Cyan
}


class ColoredConsoleFormatter(logging.Formatter):
    """Tag-style formatter: ``HH:MM:SS LEVEL [tag] message (appid=.., identifier=..)``."""

    def format(self, record: logging.LogRecord) -> str:
        level_color = COLORS.get(record.levelname, "")
        reset = COLORS["RESET"]

        tag = record.name
        tag_color = TAG_COLORS.get(tag, "\033[37m")

        timestamp = datetime.now().strftime("%H:%M:%S")
        level_str = f"{level_color}{record.levelname:8}{reset}"
        tag_str = f"{tag_color}[{tag}]{reset}"

        extra_parts = []
        if getattr(record, "appid", None):
            extra_parts.append(f"appid={record.appid}")
        if getattr(record, "identifier", None):
            extra_parts.append(f"identifier={record.identifier}")

        extra_str = f" ({', '.join(extra_parts)})" if extra_parts else ""
        msg = f"{timestamp} {level_str} {tag_str} {record.getMessage()}{extra_str}"

        if record.exc_info:
            msg += "\n" + self.formatException(record.exc_info)

        return msg


_initialized = False


def init_logging(level: str | int = "INFO") -> None:
    """Attach the console handler to the root logger. Safe to call twice."""
    global _initialized
    if _initialized:
        return

    if isinstance(level, str):
        level = getattr(logging, level.upper(), logging.INFO)

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(ColoredConsoleFormatter())

    root = logging.getLogger()
    root.setLevel(level)
    root.addHandler(handler)

    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)
    _initialized = True
