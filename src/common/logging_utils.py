"""Centralized logging helpers.

``configure_logging`` installs a single root handler whose level comes from the
``DEPDEDUPE_LOG_LEVEL`` environment variable. DEBUG traces carry structured
context passed through ``extra=extra_context(...)``; the formatter appends
those fields as ``key=value`` pairs so they survive plain-text log files.
"""

from __future__ import annotations

import logging
import os
import sys
import time
from typing import Any, Dict, Optional

from constants import Constants

_CONTEXT_ATTR = "dedupe_context"
_HANDLER_NAME = "depdedupe-root"


class ContextFormatter(logging.Formatter):
    """Formatter that renders structured context fields after the message."""

    def format(self, record: logging.LogRecord) -> str:
        base = super().format(record)
        context = getattr(record, _CONTEXT_ATTR, None)
        if not context:
            return base
        pairs = " ".join(f"{k}={v}" for k, v in context.items() if v is not None)
        return f"{base} [{pairs}]" if pairs else base


def _resolve_level(value: Optional[str]) -> int:
    if not value:
        return logging.INFO
    level = getattr(logging, str(value).strip().upper(), None)
    return level if isinstance(level, int) else logging.INFO


def configure_logging() -> None:
    """Install the project handler on the root logger.

    Safe to call more than once; an existing project handler is reused.
    """
    root = logging.getLogger()
    root.setLevel(_resolve_level(os.environ.get(Constants.LOG_LEVEL_ENV)))
    for handler in root.handlers:
        if handler.get_name() == _HANDLER_NAME:
            return
    handler = logging.StreamHandler(sys.stderr)
    handler.set_name(_HANDLER_NAME)
    handler.setFormatter(ContextFormatter(Constants.LOG_FORMAT))
    root.addHandler(handler)


def is_debug_enabled(logger: logging.Logger) -> bool:
    """Return True when DEBUG records from ``logger`` would be emitted."""
    return logger.isEnabledFor(logging.DEBUG)


def extra_context(**fields: Any) -> Dict[str, Dict[str, Any]]:
    """Build the ``extra`` mapping for a structured log call."""
    return {_CONTEXT_ATTR: dict(fields)}


class Timer:
    """Context manager measuring elapsed wall time."""

    def __init__(self) -> None:
        self._start = 0.0
        self._end: Optional[float] = None

    def __enter__(self) -> "Timer":
        self._start = time.perf_counter()
        self._end = None
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self._end = time.perf_counter()

    def duration_ms(self) -> float:
        """Elapsed milliseconds, measured up to now while still running."""
        end = self._end if self._end is not None else time.perf_counter()
        return round((end - self._start) * 1000.0, 3)
