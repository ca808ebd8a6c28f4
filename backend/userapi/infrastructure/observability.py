"""Structured Logging: one line per event, with the access fields grouped per request.

Invariants:
    - Every line has timestamp, level, logger name and message
    - Access fields (remote_addr, protocol, method, uri) go under "request";
      other known extras sit at the top level, only when present
    - The timestamp is the moment the record was created, in UTC
    - setup_logging is idempotent: calling it again replaces its own handler

Design Decisions:
    - stdlib logging with a JSON formatter, no third-party logging lib
    - The text format keeps the same fields as trailing key=value pairs
"""

import json
import logging
from datetime import datetime, timezone

REQUEST_FIELDS = ("remote_addr", "protocol", "method", "uri")
CONTEXT_FIELDS = ("error_code", "path", "user_id", "operation")


def _present(record: logging.LogRecord, keys: tuple[str, ...]) -> dict:
    return {
        key: record.__dict__[key]
        for key in keys
        if record.__dict__.get(key) is not None
    }


class JSONFormatter(logging.Formatter):
    """Format a record as a single JSON object."""

    def format(self, record: logging.LogRecord) -> str:
        log = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        request = _present(record, REQUEST_FIELDS)
        if request:
            log["request"] = request
        log.update(_present(record, CONTEXT_FIELDS))
        if record.exc_info:
            log["exception"] = self.formatException(record.exc_info)
        return json.dumps(log, ensure_ascii=False, default=str)


class TextFormatter(logging.Formatter):
    """Human-readable lines for local runs; context extras appended as key=value."""

    def __init__(self):
        super().__init__("%(asctime)s %(levelname)s %(name)s: %(message)s")

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        context = _present(record, CONTEXT_FIELDS)
        if not context:
            return line
        pairs = " ".join(f"{key}={value}" for key, value in context.items())
        head, sep, tail = line.partition("\n")
        return f"{head} [{pairs}]{sep}{tail}"


def setup_logging(level: str = "INFO", fmt: str = "json") -> logging.Handler:
    """Install the service's root handler, replacing one installed earlier."""
    handler = logging.StreamHandler()
    handler.set_name("userapi")
    handler.setFormatter(JSONFormatter() if fmt == "json" else TextFormatter())
    for existing in list(logging.root.handlers):
        if existing.get_name() == "userapi":
            logging.root.removeHandler(existing)
    logging.root.addHandler(handler)
    logging.root.setLevel(getattr(logging, level.upper(), logging.INFO))
    return handler
