"""
Logging setup for ibvault.

Library modules only create module loggers and attach context with
``extra={"extra_fields": {...}}``: verdict status, failed checks, the
payload checksum. This module decides how that context is rendered:

    KeyValueFormatter    one plain line, context appended as key=value
    StructuredFormatter  one JSON object per record

Respondent answers are never written to a log, whatever a caller attaches.
"""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict, Optional


REDACTED_FIELDS = frozenset({"answers"})
CORE_FIELDS = ("timestamp", "level", "logger", "message")


def record_context(record: logging.LogRecord) -> Dict[str, Any]:
    """The record's extra_fields, minus anything in REDACTED_FIELDS."""
    extra = getattr(record, "extra_fields", None)
    if not isinstance(extra, dict):
        return {}
    return {k: v for k, v in extra.items() if k not in REDACTED_FIELDS}


def _plain(value: Any) -> str:
    if isinstance(value, (list, tuple)):
        return ",".join(str(v) for v in value) or "-"
    return str(value)


class KeyValueFormatter(logging.Formatter):
    """
    Human-readable lines for terminals, e.g.

        ... WARNING ibvault.verification: Verification invalid: checksum status=invalid failed_checks=checksum
    """

    def __init__(self) -> None:
        super().__init__("%(asctime)s %(levelname)s %(name)s: %(message)s")

    def formatMessage(self, record: logging.LogRecord) -> str:
        line = super().formatMessage(record)
        context = record_context(record)
        if context:
            line += " " + " ".join(f"{k}={_plain(v)}" for k, v in context.items())
        return line


class StructuredFormatter(logging.Formatter):
    """
    JSON lines for log aggregation.

    Core keys are timestamp (UTC, milliseconds, Z), level, logger and
    message. Context keys follow and never replace a core key. Records at
    WARNING and above also carry their source location.
    """

    def format(self, record: logging.LogRecord) -> str:
        created = datetime.fromtimestamp(record.created, timezone.utc)
        entry: Dict[str, Any] = {
            "timestamp": created.isoformat(timespec="milliseconds").replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.levelno >= logging.WARNING:
            entry["location"] = f"{record.module}.{record.funcName}:{record.lineno}"

        for key, value in record_context(record).items():
            entry.setdefault(key, value)

        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(entry, default=str, ensure_ascii=False)


def configure_logging(
    level: str = "WARNING",
    json_format: bool = False,
    log_file: Optional[str] = None,
) -> None:
    """
    Install ibvault's handlers on the root logger, replacing existing ones.

    Args:
        level: Log level name (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_format: StructuredFormatter instead of KeyValueFormatter
        log_file: Also append records to this file
    """
    root = logging.getLogger()
    root.setLevel(getattr(logging, level.upper()))
    for handler in root.handlers[:]:
        root.removeHandler(handler)

    formatter = StructuredFormatter() if json_format else KeyValueFormatter()
    handlers = [logging.StreamHandler(sys.stderr)]
    if log_file:
        handlers.append(logging.FileHandler(log_file, encoding="utf-8"))
    for handler in handlers:
        handler.setFormatter(formatter)
        root.addHandler(handler)
