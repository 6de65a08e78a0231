# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Update Run Logging

Single responsibility: Route the package's log records to stderr as one JSON
object per line (unattended runs) or as plain text (interactive runs)

Every module logs through logging.getLogger(__name__); only the package root
logger gets a handler. Keyword fields passed as `extra` (see log_event) are
kept on the record and written by both formats.
"""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict

ROOT_LOGGER = "ecoregistry"
LOG_FORMATS = ("json", "text")

# Attributes every LogRecord has; anything else came in through `extra`.
_STANDARD_FIELDS = frozenset(
    logging.LogRecord("", logging.INFO, "", 0, "", None, None).__dict__
) | {"message", "asctime"}


def record_fields(record: logging.LogRecord) -> Dict[str, Any]:
    """Fields attached to a record through `extra`."""
    return {k: v for k, v in record.__dict__.items() if k not in _STANDARD_FIELDS}


class JSONLineFormatter(logging.Formatter):
    """One JSON object per record: time, level, logger, message, then fields."""

    def format(self, record: logging.LogRecord) -> str:
        line = {
            "time": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        line.update(record_fields(record))
        if record.exc_info:
            line["exc"] = self.formatException(record.exc_info)
        return json.dumps(line, default=str)


class KeyValueFormatter(logging.Formatter):
    """Plain text line with the record's fields appended as key=value."""

    def __init__(self):
        super().__init__("%(asctime)s %(levelname)-7s %(name)s: %(message)s", "%H:%M:%S")

    def format(self, record: logging.LogRecord) -> str:
        text = super().format(record)
        fields = record_fields(record)
        if fields:
            text += " " + " ".join(f"{k}={v}" for k, v in fields.items())
        return text


def configure_logging(log_level: str = "INFO", log_format: str = "json") -> logging.Logger:
    """
    Send the package's log records to stderr.

    Calling it again replaces the handler installed by the previous call.

    Args:
        log_level: Logging level name (DEBUG, INFO, WARNING, ERROR)
        log_format: "json" or "text"

    Returns:
        The package root logger

    Raises:
        ValueError: If the level or format is unknown
    """
    if log_format not in LOG_FORMATS:
        raise ValueError(f"unknown log format {log_format!r}, expected one of {LOG_FORMATS}")
    level = logging.getLevelName(log_level.upper())
    if not isinstance(level, int):
        raise ValueError(f"unknown log level {log_level!r}")

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(JSONLineFormatter() if log_format == "json" else KeyValueFormatter())

    root = logging.getLogger(ROOT_LOGGER)
    root.setLevel(level)
    for old in list(root.handlers):
        root.removeHandler(old)
    root.addHandler(handler)
    return root


def log_event(logger: logging.Logger, event: str, level: str = "INFO", **fields: Any) -> None:
    """Log an event name with keyword fields attached to the record."""
    getattr(logger, level.lower())(event, extra=fields)
