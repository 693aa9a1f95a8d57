"""Logging helpers."""

from __future__ import annotations

import logging
from typing import Optional


# Attributes every LogRecord carries; anything else arrived via ``extra=``.
_RESERVED_ATTRS = frozenset(
    vars(logging.LogRecord("", logging.INFO, "", 0, "", None, None)).keys()
) | {"message", "asctime", "taskName"}


class ContextFormatter(logging.Formatter):
    """Append ``extra={...}`` fields to the message as key=value pairs."""

    def format(self, record: logging.LogRecord) -> str:
        base = super().format(record)
        context = {
            key: value
            for key, value in vars(record).items()
            if key not in _RESERVED_ATTRS and not key.startswith("_")
        }
        if not context:
            return base
        pairs = " ".join(f"{key}={value}" for key, value in sorted(context.items()))
        return f"{base} {pairs}"


def configure_logging(level: str = "INFO") -> None:
    """Configure root logger once."""
    root = logging.getLogger()
    if not root.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(
            ContextFormatter("%(asctime)s %(levelname)s %(name)s %(message)s")
        )
        root.addHandler(handler)
    root.setLevel(level.upper())
    # Provider keys travel in headers and query params; keep httpx request logs quiet.
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Get a logger instance."""
    return logging.getLogger(name)
