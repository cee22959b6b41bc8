"""Logging configuration utilities for AI Code Tracker."""

import logging
import os
import sys
from typing import IO, Optional

_LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"

# Attributes every LogRecord carries; anything else came in through ``extra``
_RECORD_ATTRIBUTES = set(logging.makeLogRecord({}).__dict__) | {"message", "asctime"}


class ContextFormatter(logging.Formatter):
    """Appends the ``extra`` fields of a record as sorted ``key=value`` pairs."""

    def format(self, record: logging.LogRecord) -> str:
        text = super().format(record)
        context = {
            key: value
            for key, value in record.__dict__.items()
            if key not in _RECORD_ATTRIBUTES
        }
        if not context:
            return text
        pairs = " ".join(f"{key}={context[key]!r}" for key in sorted(context))
        return f"{text} | {pairs}"


def configure_logging(level: Optional[str] = None, stream: Optional[IO[str]] = None) -> None:
    """Configure application-wide logging once.

    Logs go to stderr so that CLI envelopes on stdout stay parseable. The
    level comes from ``level``, then AICT_LOG_LEVEL, then LOG_LEVEL.
    """
    root = logging.getLogger()
    if root.handlers:
        return

    log_level = level or os.getenv("AICT_LOG_LEVEL") or os.getenv("LOG_LEVEL", "INFO")
    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(ContextFormatter(_LOG_FORMAT))
    root.addHandler(handler)
    root.setLevel(log_level.upper())
