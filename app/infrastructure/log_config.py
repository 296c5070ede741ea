"""Logging setup shared by the API, the queue worker and the scripts."""

from __future__ import annotations

import logging

from app.infrastructure.security import PiiRedactingFilter

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def configure_logging(level: str | int = "INFO") -> None:
    """Configure the root logger with the service format and PII redaction.

    Safe to call more than once; the redaction filter is only installed once
    per handler.
    """

    logging.basicConfig(level=level, format=LOG_FORMAT)
    root = logging.getLogger()
    root.setLevel(level)
    for handler in root.handlers:
        if not any(isinstance(existing, PiiRedactingFilter) for existing in handler.filters):
            handler.addFilter(PiiRedactingFilter())


__all__ = ["LOG_FORMAT", "configure_logging"]
