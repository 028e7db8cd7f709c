"""Centralized logging configuration.

This module provides:
- PlainFormatter for readable stderr output (default)
- JSONFormatter for structured, one-object-per-line output (--log-json)

Messages are written as ``[TAG] text``; the JSON formatter lifts the tag
into its own field.
"""

import getpass
import json
import logging
import re
import sys
from typing import Optional


class JSONFormatter(logging.Formatter):
    """JSON formatter for structured logging."""

    def __init__(self, operator: str = None, role: str = None):
        super().__init__()
        self.operator = operator or "unknown"
        self.role = role

    def format(self, record: logging.LogRecord) -> str:
        # Extract tag from message if present: [TAG] message
        tag = None
        message = record.getMessage()
        tag_match = re.match(r'\[([A-Z_]+)\]\s*(.*)', message, re.DOTALL)
        if tag_match:
            tag = tag_match.group(1)
            message = tag_match.group(2)

        log_entry = {
            "time": self.formatTime(record, "%Y-%m-%dT%H:%M:%S"),
            "operator": self.operator,
            "role": self.role,
            "level": record.levelname,
            "tag": tag,
            "message": message,
            "module": record.module,
        }

        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_entry)


class PlainFormatter(logging.Formatter):
    """Plain text formatter for stderr output."""

    def __init__(self):
        super().__init__(
            fmt='%(asctime)s [%(levelname)s] %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        )


def _current_operator() -> Optional[str]:
    try:
        return getpass.getuser()
    except (KeyError, OSError):
        return None


def setup_logging(
    verbose: bool = False,
    json_logs: bool = False,
    role: str = None,
) -> logging.Logger:
    """Configure root logging for the CLI.

    Args:
        verbose: Log at DEBUG instead of INFO.
        json_logs: Emit JSON lines instead of plain text.
        role: Signing role, recorded in JSON output.

    Returns:
        Configured root logger.
    """
    level = logging.DEBUG if verbose else logging.INFO

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers.clear()

    stderr_handler = logging.StreamHandler(sys.stderr)
    stderr_handler.setLevel(level)
    if json_logs:
        stderr_handler.setFormatter(JSONFormatter(_current_operator(), role))
    else:
        stderr_handler.setFormatter(PlainFormatter())
    root_logger.addHandler(stderr_handler)

    # Suppress noisy HTTP client logs
    logging.getLogger("urllib3").setLevel(logging.WARNING)
    logging.getLogger("requests").setLevel(logging.WARNING)

    return root_logger
