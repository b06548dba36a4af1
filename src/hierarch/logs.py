"""
Logging Setup

Structured JSON logging for scheduled runs, plain text for terminals.
Log calls attach run context through ``extra``:

    logger.info("Grace period started", extra={"user_id": "123"})
"""
from __future__ import annotations

import json
import logging
import os
import sys
from datetime import datetime, timezone
from typing import Optional

LOG_LEVEL_ENV = "HIERARCH_LOG_LEVEL"
CONTEXT_FIELDS = ("run_id", "period", "user_id", "phase")

TEXT_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"


class JSONFormatter(logging.Formatter):
    """JSON log formatter for structured logging."""

    def format(self, record):
        log_entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        # Add run context if present
        for name in CONTEXT_FIELDS:
            value = getattr(record, name, None)
            if value is not None:
                log_entry[name] = value
        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(log_entry)


def configure_logging(level: Optional[str] = None, fmt: str = "json") -> logging.Logger:
    """
    Attach a single stderr handler to the ``hierarch`` logger.

    Args:
        level: Level name; defaults to $HIERARCH_LOG_LEVEL, then INFO
        fmt: "json" or "text"
    """
    if level is None:
        level = os.environ.get(LOG_LEVEL_ENV, "INFO")
    if fmt not in ("json", "text"):
        raise ValueError(f"Unknown log format: {fmt}")

    logger = logging.getLogger("hierarch")
    logger.setLevel(level.upper())
    for existing in list(logger.handlers):
        logger.removeHandler(existing)

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(JSONFormatter() if fmt == "json" else logging.Formatter(TEXT_FORMAT))
    logger.addHandler(handler)
    return logger
