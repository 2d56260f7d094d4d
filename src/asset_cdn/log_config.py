"""
Logging setup for the asset CDN.

Log lines go to stdout as plain text or, for log shippers, as one JSON object
per line. Every line carries the id of the HTTP request that produced it
("-" outside a request), so a registration or a variant fallback can be
traced back to the call that triggered it.
"""
from __future__ import annotations

import contextvars
import json
import logging
import sys
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any, Dict, Iterator

from .settings import Settings

__all__ = [
    "PLAIN_FORMAT",
    "JsonFormatter",
    "RequestIdFilter",
    "configure_logging",
    "current_request_id",
    "request_scope",
]

NO_REQUEST = "-"

PLAIN_FORMAT = "%(asctime)s %(levelname)-7s [%(request_id)s] %(name)s: %(message)s"

# Client libraries that log every HTTP exchange at INFO
_CHATTY_LOGGERS = ("httpx", "azure.core.pipeline.policies.http_logging_policy", "uvicorn.access")

# Attributes every LogRecord has; anything else was passed via ``extra=``
_RECORD_ATTRS = frozenset(vars(logging.makeLogRecord({}))) | {"message", "asctime", "request_id"}

_request_id: contextvars.ContextVar[str] = contextvars.ContextVar("asset_cdn_request_id", default=NO_REQUEST)


def current_request_id() -> str:
    """Id of the request being handled in this context, or "-"."""
    return _request_id.get()


@contextmanager
def request_scope(request_id: str) -> Iterator[str]:
    """
    Tag log lines emitted inside the block with ``request_id``.

    The previous id is restored on exit, so scopes nest and concurrent
    requests running in separate contexts never see each other's ids.
    """
    token = _request_id.set(request_id)
    try:
        yield request_id
    finally:
        _request_id.reset(token)


class RequestIdFilter(logging.Filter):
    """Stamp ``record.request_id`` for the formatters."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = current_request_id()
        return True


class JsonFormatter(logging.Formatter):
    """
    One JSON object per line.

    Fixed keys are ``timestamp``, ``level``, ``logger``, ``request_id`` and
    ``message``; values passed through ``extra=`` (e.g. ``asset_id``) are
    added alongside them, never overwriting a fixed key.
    """

    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "request_id": getattr(record, "request_id", NO_REQUEST),
            "message": record.getMessage(),
        }
        extras = {
            key: value
            for key, value in vars(record).items()
            if key not in _RECORD_ATTRS and not key.startswith("_")
        }
        for key, value in extras.items():
            entry.setdefault(key, value)
        if record.exc_info:
            entry["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(entry, ensure_ascii=False, default=str)


def configure_logging(settings: Settings) -> None:
    """
    Install the stdout handler on the root logger.

    Replaces any handlers already installed, so calling it twice does not
    duplicate lines.

    Args:
        settings: Supplies ``log_level`` and ``log_json``
    """
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JsonFormatter() if settings.log_json else logging.Formatter(PLAIN_FORMAT))
    handler.addFilter(RequestIdFilter())

    root = logging.getLogger()
    root.handlers = [handler]
    root.setLevel(settings.log_level.upper())

    for name in _CHATTY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
