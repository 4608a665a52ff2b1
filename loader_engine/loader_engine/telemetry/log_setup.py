"""Logging configuration for the loader.

Two output modes are supported:

* Plain text (default): ``time  LEVEL  logger  message``.
* Structured JSON (``SQLLOADER_STRUCTURED_LOGGING=true``): one JSON object
  per line, suitable for log aggregators.

Output schema per line in JSON mode::

    {
        "timestamp": "2025-08-29T10:30:00.123456+00:00",
        "level": "WARNING",
        "logger": "loader_engine.executor.batch_loader",
        "message": "Skipping statement ...",
        "statement": "INSERT INTO ...",   // present when passed via extra=
        "exc_info": "Traceback ..."       // present only on exceptions
    }
"""

from __future__ import annotations

import json
import logging
import traceback
from datetime import UTC, datetime
from typing import Any

_TEXT_FORMAT = "%(asctime)s  %(levelname)-8s  %(name)s  %(message)s"


class JSONFormatter(logging.Formatter):
    """Format log records as single-line JSON."""

    def format(self, record: logging.LogRecord) -> str:
        """Render *record* as a single JSON line."""
        payload: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        # Statement context attached via ``extra={"statement": ...}``.
        statement = getattr(record, "statement", None)
        if statement is not None:
            payload["statement"] = statement

        if record.exc_info and record.exc_info[0] is not None:
            payload["exc_info"] = "".join(traceback.format_exception(*record.exc_info))

        return json.dumps(payload, default=str, ensure_ascii=False)


def configure_logging(debug: bool = False, structured: bool = False) -> None:
    """Install a single stderr handler on the root logger."""
    root_logger = logging.getLogger()
    root_logger.handlers.clear()

    handler = logging.StreamHandler()
    if structured:
        handler.setFormatter(JSONFormatter())
    else:
        handler.setFormatter(logging.Formatter(_TEXT_FORMAT))

    root_logger.addHandler(handler)
    root_logger.setLevel(logging.DEBUG if debug else logging.INFO)
