"""Structured Logging — JSON or text lines, both carrying the student context extras.

Invariants:
    - Every line carries timestamp, level, logger name and message
    - Context extras (student_id, user_id, asset_url, attempt, error_code, path) are
      emitted only when set; a None extra is omitted, never rendered as "None"
    - setup_logging replaces the handler it installed earlier instead of stacking another

Design Decisions:
    - LOG_FORMAT=json for deployments, text for local runs; the text format appends the
      same extras as key=value so a student's trail can still be grepped
    - Timestamps come from record.created, not from the moment of formatting
"""

import logging
import json
from datetime import datetime, timezone

EXTRA_KEYS = (
    "student_id", "user_id", "asset_url", "attempt", "error_code", "path",
)


def log_context(record: logging.LogRecord) -> dict:
    """The context extras actually set on a record, in EXTRA_KEYS order."""
    return {
        key: record.__dict__[key]
        for key in EXTRA_KEYS
        if record.__dict__.get(key) is not None
    }


class JSONFormatter(logging.Formatter):
    """One JSON object per line."""

    def format(self, record: logging.LogRecord) -> str:
        log = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            **log_context(record),
        }
        if record.exc_info:
            log["exception"] = self.formatException(record.exc_info)
        return json.dumps(log, ensure_ascii=False)


class ContextTextFormatter(logging.Formatter):
    """Human-readable line with the context extras appended as key=value."""

    def __init__(self):
        super().__init__("%(asctime)s %(levelname)s %(name)s: %(message)s")

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        context = log_context(record)
        if not context:
            return line
        # Keep the extras on the first line, ahead of any traceback
        head, sep, tail = line.partition("\n")
        pairs = " ".join(f"{key}={value}" for key, value in context.items())
        return f"{head} [{pairs}]{sep}{tail}"


_handler: logging.Handler | None = None


def setup_logging(level: str = "INFO", fmt: str = "json"):
    """Install the root handler for LOG_FORMAT at LOG_LEVEL."""
    global _handler
    handler = logging.StreamHandler()
    handler.setFormatter(JSONFormatter() if fmt == "json" else ContextTextFormatter())
    if _handler is not None:
        logging.root.removeHandler(_handler)
    _handler = handler
    logging.root.addHandler(handler)
    logging.root.setLevel(getattr(logging, level.upper(), logging.INFO))
