"""
Log format shared by the API, the import script and the pipeline.

Every line reads ``<UTC timestamp> [source] LEVEL <context> message``, where
the context names the import run and batch the line belongs to:

    2026-01-06T14:05:52Z [api] ERROR run=3f2a9c1e batch=row102 Batch failed (50 records): ...

Several runs can share one API process, so the run id travels with the
asyncio task (and into ``asyncio.to_thread`` workers) through a ContextVar
rather than being threaded through every call.

LOG_LEVEL selects INFO (default), DEBUG for per-row decisions, or TRACE for
lookup chunk details.
"""

from __future__ import annotations

import logging
import os
import re
import sys
import time
from collections.abc import Iterator
from contextlib import AbstractContextManager, contextmanager
from contextvars import ContextVar

TRACE = 5
logging.addLevelName(TRACE, "TRACE")

_log_context: ContextVar[dict[str, str]] = ContextVar("fieldvisit_log_context", default={})

# Access lines for endpoints the UI polls every few seconds
_POLLED_REQUEST = re.compile(r'"GET (/health|/api/imports/run/[^/\s"]+) HTTP')


@contextmanager
def log_context(**fields: object) -> Iterator[None]:
    """Tag log lines emitted inside the block, e.g. ``log_context(run=run_id)``.

    Nested blocks add to the outer context; None values are dropped.
    """
    merged = {**_log_context.get(), **{k: str(v) for k, v in fields.items() if v is not None}}
    token = _log_context.set(merged)
    try:
        yield
    finally:
        _log_context.reset(token)


def run_logging_context(run_id: str) -> AbstractContextManager[None]:
    """Context for one import run; ids are shortened to their first 8 chars."""
    return log_context(run=run_id[:8])


def current_log_context() -> dict[str, str]:
    return dict(_log_context.get())


class ContextFormatter(logging.Formatter):
    """``<timestamp> [source] LEVEL <run/batch context> message``"""

    def __init__(self, source: str = "app"):
        super().__init__()
        self.source = source

    def format(self, record: logging.LogRecord) -> str:
        timestamp = time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime(record.created))
        context = " ".join(f"{key}={value}" for key, value in _log_context.get().items())
        message = record.getMessage()
        if context:
            message = f"{context} {message}"
        if record.exc_info:
            message = f"{message}\n{self.formatException(record.exc_info)}"
        return f"{timestamp} [{self.source}] {record.levelname} {message}"


class PollingAccessFilter(logging.Filter):
    """Drop access lines for health checks and run-status polling.

    They are kept when the handler runs at DEBUG or below.
    """

    def __init__(self, verbose: bool = False):
        super().__init__()
        self.verbose = verbose

    def filter(self, record: logging.LogRecord) -> bool:
        if self.verbose or not record.name.startswith("uvicorn.access"):
            return True
        return _POLLED_REQUEST.search(record.getMessage()) is None


def resolve_level(level: int | None = None, debug: bool | None = None) -> int:
    """Explicit level, then LOG_LEVEL, then the debug flag, then INFO."""
    if level is not None:
        return level
    env_level = os.getenv("LOG_LEVEL", "").upper()
    if env_level == "TRACE":
        return TRACE
    if env_level == "DEBUG" or debug:
        return logging.DEBUG
    return logging.INFO


def configure_logging(source: str = "app", level: int | None = None, debug: bool | None = None) -> logging.Logger:
    """Install the stdout handler on the root and uvicorn loggers.

    Returns:
        The root logger
    """
    level = resolve_level(level, debug)

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    handler.setFormatter(ContextFormatter(source=source))
    handler.addFilter(PollingAccessFilter(verbose=level <= logging.DEBUG))

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.setLevel(level)
    root_logger.addHandler(handler)

    for name in ("uvicorn", "uvicorn.error", "uvicorn.access"):
        uvicorn_logger = logging.getLogger(name)
        uvicorn_logger.handlers.clear()
        uvicorn_logger.addHandler(handler)
        uvicorn_logger.setLevel(level)
        uvicorn_logger.propagate = False

    # The PocketBase SDK logs every request through httpx
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)

    return root_logger
