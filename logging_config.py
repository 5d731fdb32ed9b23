"""
Logging setup for the PAYE calculator.

Modules log through ``logging.getLogger(__name__)``; this module attaches a
single stream handler to the root logger, either as plain text or as one
JSON object per line.
"""

from __future__ import annotations

import json
import logging
import sys
import threading
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Optional, TextIO

TEXT_FORMAT = "%(asctime)s %(levelname)-7s %(name)s: %(message)s"

_STDLIB_KEYS = frozenset(
    vars(logging.LogRecord("", 0, "", 0, "", (), None)).keys()
) | {"message", "asctime", "taskName"}


class _JSONEncoder(json.JSONEncoder):
    """Decimals (including Infinity) are written as strings."""

    def default(self, obj: Any) -> Any:
        if isinstance(obj, Decimal):
            return str(obj)
        if isinstance(obj, datetime):
            return obj.isoformat()
        return super().default(obj)


class StructuredFormatter(logging.Formatter):
    """Formats each log record as a single JSON line."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict = {
            "ts": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        # Fields passed via ``extra=``
        for key, val in vars(record).items():
            if key not in _STDLIB_KEYS and key not in payload:
                payload[key] = val

        if record.exc_info and record.exc_info[1] is not None:
            exc = record.exc_info[1]
            payload["exc_type"] = type(exc).__name__
            payload["exc_message"] = str(exc)
            payload["traceback"] = self.formatException(record.exc_info)

        return json.dumps(payload, cls=_JSONEncoder, default=str)


_handler: Optional[logging.Handler] = None
_lock = threading.Lock()


def _coerce_level(level: int | str) -> int:
    if isinstance(level, int):
        return level
    value = logging.getLevelName(level.upper())
    if not isinstance(value, int):
        raise ValueError(f"Unknown log level {level!r}")
    return value


def configure_logging(
    level: int | str = logging.WARNING,
    json_format: bool = False,
    stream: Optional[TextIO] = None,
) -> logging.Handler:
    """Install (or replace) the calculator's root handler.

    Parameters
    ----------
    level : int or str
        Root logger level, e.g. ``"DEBUG"`` or ``logging.INFO``.
    json_format : bool
        Emit JSON lines via ``StructuredFormatter`` instead of plain text.
    stream : file-like, optional
        Destination; defaults to stderr.

    Returns
    -------
    logging.Handler
        The handler now attached to the root logger.
    """
    global _handler
    root = logging.getLogger()
    root_level = _coerce_level(level)
    with _lock:
        if _handler is not None:
            root.removeHandler(_handler)
        handler = logging.StreamHandler(stream or sys.stderr)
        handler.setFormatter(StructuredFormatter() if json_format else logging.Formatter(TEXT_FORMAT))
        root.addHandler(handler)
        root.setLevel(root_level)
        _handler = handler
    return handler


def reset_logging() -> None:
    """Remove the installed handler. Used by tests."""
    global _handler
    with _lock:
        if _handler is not None:
            logging.getLogger().removeHandler(_handler)
            _handler = None
    logging.getLogger().setLevel(logging.WARNING)
