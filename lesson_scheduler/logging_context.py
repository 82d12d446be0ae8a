"""Correlation ID logging context for tracing validation runs.

Provides a run_id-aware logger that attaches a correlation ID to every
log message, so all checks performed for a single booking request can be
grouped together in the logs.

Usage:
    from lesson_scheduler.logging_context import get_run_logger, set_run_id

    set_run_id("VAL-1a2b3c4d")
    logger = get_run_logger(__name__)
    logger.info("Checking weekly limits")  # → [VAL-1a2b3c4d] ... Checking weekly limits
"""

import logging
import uuid
from contextvars import ContextVar
from typing import Optional, TextIO

_run_id: ContextVar[str] = ContextVar("run_id", default="NO_RUN_ID")


def new_run_id() -> str:
    """Generate a fresh validation-run ID."""
    return f"VAL-{uuid.uuid4().hex[:8]}"


def set_run_id(run_id: str) -> None:
    """Set the correlation ID for the current context."""
    _run_id.set(run_id)


def get_run_id() -> str:
    """Retrieve the current correlation ID."""
    return _run_id.get()


class RunIdFilter(logging.Filter):
    """Injects run_id into every log record."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.run_id = _run_id.get()  # type: ignore[attr-defined]
        return True


def get_run_logger(name: str) -> logging.Logger:
    """Return a logger with the RunIdFilter attached.

    The filter adds ``run_id`` to each record so formatters can
    include ``%(run_id)s`` in their format string.
    """
    logger = logging.getLogger(name)
    if not any(isinstance(f, RunIdFilter) for f in logger.filters):
        logger.addFilter(RunIdFilter())
    return logger


LOG_FORMAT = "%(asctime)s [%(run_id)s] [%(name)s] %(levelname)s: %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def run_id_handler(stream: Optional[TextIO] = None) -> logging.Handler:
    """Stream handler that stamps and prints the run id on every record.

    The filter sits on the handler, so records from any logger, not only
    those obtained through ``get_run_logger``, can use ``%(run_id)s``.
    """
    handler = logging.StreamHandler(stream)
    handler.addFilter(RunIdFilter())
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT))
    return handler
