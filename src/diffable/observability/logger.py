"""Structured JSON logger for diffable.

Every log record is emitted as a single-line JSON object so it can be
consumed by log aggregation pipelines without additional parsing.

Typical structured output::

    {"ts": "2025-07-01T12:00:00.123456+00:00", "level": "WARNING",
     "logger": "diffable.datasource", "message": "Apply failed; keeping the previous snapshot",
     "op": "apply", "strategy": "diff", "coalesced": false}

Usage::

    from diffable.observability import get_logger

    log = get_logger(level="INFO")
    log.info("list loaded", extra={"extra_fields": {"items": 12}})

    # Or create a child logger for a sub-module
    log = get_logger("diffable.binding")
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any


class StructuredFormatter(logging.Formatter):
    """Format log records as single-line JSON objects.

    The formatter produces a JSON object with the following guaranteed keys:

    * ``ts`` -- ISO-8601 UTC timestamp
    * ``level`` -- Python log level name (``DEBUG``, ``INFO``, ...)
    * ``logger`` -- Logger name
    * ``message`` -- Formatted log message

    Any extra structured fields can be passed via
    ``extra={"extra_fields": {...}}`` on the logging call and will be merged
    into the top-level JSON object.  Identifiers that are not JSON types are
    rendered with ``str``.
    """

    def format(self, record: logging.LogRecord) -> str:
        log_entry: dict[str, Any] = {
            "ts": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        extra_fields: dict[str, Any] | None = getattr(
            record, "extra_fields", None
        )
        if extra_fields is not None:
            log_entry.update(extra_fields)

        if record.exc_info and record.exc_info[1] is not None:
            log_entry["exception"] = self.formatException(record.exc_info)

        if record.stack_info:
            log_entry["stack_info"] = self.formatStack(record.stack_info)

        return json.dumps(log_entry, default=str)


# ---------------------------------------------------------------------------
# One handler per logger name so that ``get_logger`` is idempotent.
# ---------------------------------------------------------------------------
_configured_loggers: set[str] = set()


def get_logger(
    name: str = "diffable",
    *,
    level: int | str = logging.WARNING,
    stream: Any | None = None,
) -> logging.Logger:
    """Get or create a structured JSON logger.

    Parameters
    ----------
    name:
        Logger name.  Defaults to ``"diffable"``.
    level:
        Minimum log level, as an ``int`` or a case-insensitive string.
        Defaults to ``WARNING`` so that a library user only hears about
        failures until they ask for more.
    stream:
        Output stream for the handler.  Defaults to ``sys.stderr``.

    Returns
    -------
    logging.Logger
        A logger with a :class:`StructuredFormatter` handler attached.
        Repeated calls with the same *name* return the same logger and do
        **not** add duplicate handlers.
    """
    logger = logging.getLogger(name)

    if name not in _configured_loggers:
        resolved_level = (
            logging.getLevelName(level.upper())
            if isinstance(level, str)
            else level
        )
        logger.setLevel(resolved_level)

        handler = logging.StreamHandler(stream or sys.stderr)
        handler.setFormatter(StructuredFormatter())
        logger.addHandler(handler)

        logger.propagate = False

        _configured_loggers.add(name)

    return logger
