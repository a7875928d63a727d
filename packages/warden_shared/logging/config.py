"""Stream logging setup for Warden components.

One handler on the root logger writes either newline-delimited JSON or a plain
line with sorted ``key=value`` context. Context keys that name credentials are
masked before formatting. Audit records are not logs; the audit journal
service writes them.
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import UTC, datetime
from typing import Any, Mapping, TextIO

from . import fields
from .context import bind_context, get_context

REDACTED = "***"
_SECRET_MARKERS = ("secret", "private", "password", "token")


def redact(context: Mapping[str, Any]) -> dict[str, Any]:
    """Return ``context`` with credential-looking keys masked."""
    return {
        key: REDACTED if any(marker in key.lower() for marker in _SECRET_MARKERS) else value
        for key, value in context.items()
    }


class ContextFilter(logging.Filter):
    """Attach the current structured context to each record."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.context = redact(get_context())
        return True


class JsonFormatter(logging.Formatter):
    """One JSON object per line: core fields, then context, then exception."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            fields.TIMESTAMP: datetime.fromtimestamp(record.created, UTC).isoformat(),
            fields.LEVEL: record.levelname,
            fields.LOGGER: record.name,
            fields.MESSAGE: record.getMessage(),
        }
        payload.update(getattr(record, "context", None) or {})
        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str, separators=(",", ":"))


class PlainFormatter(logging.Formatter):
    """Timestamp, level, logger and message, followed by sorted context."""

    def __init__(self) -> None:
        super().__init__(
            fmt="%(asctime)s %(levelname)s %(name)s %(message)s",
            datefmt="%Y-%m-%dT%H:%M:%S%z",
        )

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        context = getattr(record, "context", None) or {}
        if not context:
            return line
        return line + " " + " ".join(f"{k}={context[k]}" for k in sorted(context))


def configure_logging(
    *,
    level: str = "INFO",
    json_output: bool = True,
    service: str | None = None,
    environment: str | None = None,
    stream: TextIO | None = None,
) -> None:
    """Install the single root handler, replacing any existing handlers.

    Safe to call repeatedly, as the CLI console loop does once per line.
    ``service`` and ``environment`` are bound into the current context.
    """
    resolved_level = level.upper()
    handler = logging.StreamHandler(stream=stream or sys.stdout)
    handler.setLevel(resolved_level)
    handler.addFilter(ContextFilter())
    handler.setFormatter(JsonFormatter() if json_output else PlainFormatter())

    root = logging.getLogger()
    root.handlers.clear()
    root.setLevel(resolved_level)
    root.addHandler(handler)

    bind_context(
        **{fields.SERVICE: service or None, fields.ENVIRONMENT: environment or None}
    )


def get_logger(name: str | None = None) -> logging.Logger:
    """Return a standard library logger."""
    return logging.getLogger(name)
