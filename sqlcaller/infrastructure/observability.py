"""Structured Logging — JSON formatter and setup for production observability.

Invariants:
    - All logs include timestamp, level, logger name, and message
    - Extra fields (facade, operation, sql, elapsed_ms, rowcount, error_code) surfaced when present
    - JSON format in production, human-readable in development

Design Decisions:
    - JSONFormatter on stdlib logging: no extra dependency
    - setup_logging replaces the handler it installed earlier: repeated
      lifecycle.startup() calls never stack root handlers
"""

import logging
import json
from datetime import datetime, timezone

EXTRA_FIELDS = (
    "facade", "operation", "sql", "elapsed_ms", "rowcount", "error_code",
)

_installed_handler: logging.Handler | None = None


class JSONFormatter(logging.Formatter):
    """Format logs as JSON for structured logging in production."""

    def format(self, record: logging.LogRecord) -> str:
        log = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for key in EXTRA_FIELDS:
            val = record.__dict__.get(key)
            if val is not None:
                log[key] = val
        if record.exc_info:
            log["exception"] = self.formatException(record.exc_info)
        return json.dumps(log, ensure_ascii=False, default=str)


def setup_logging(level: str = "INFO", fmt: str = "json") -> logging.Handler:
    """Configure root logging. Returns the installed handler."""
    global _installed_handler
    handler = logging.StreamHandler()
    if fmt == "json":
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(logging.Formatter(
            "%(asctime)s %(levelname)s %(name)s: %(message)s",
        ))
    if _installed_handler is not None:
        logging.root.removeHandler(_installed_handler)
    logging.root.addHandler(handler)
    _installed_handler = handler
    logging.root.setLevel(getattr(logging, level.upper(), logging.INFO))
    return handler
