"""Cooperative cancellation for import runs."""

from __future__ import annotations

import threading

from .errors import ImportCancelledError


class CancellationToken:
    """Flag a caller sets to stop a run between batches.

    Thread-safe so that an API request handler, a signal handler or another
    thread can cancel a run executing on the event loop.
    """

    def __init__(self) -> None:
        self._event = threading.Event()
        self.reason: str | None = None

    def cancel(self, reason: str = "Cancelled by caller") -> None:
        self.reason = reason
        self._event.set()

    @property
    def is_cancelled(self) -> bool:
        return self._event.is_set()

    def raise_if_cancelled(self) -> None:
        """Raise ImportCancelledError if cancellation was requested."""
        if self._event.is_set():
            raise ImportCancelledError(self.reason or "Cancelled")
