"""
Cooperative cancellation for comparisons.
"""

from __future__ import annotations

import threading

from devcompare.core.errors import ComparisonCancelled


class CancellationToken:
    """
    Shared flag used to stop a comparison between phases.

    The owner (usually a background worker) calls `cancel`; the
    engine only ever reads the flag.
    """

    def __init__(self):
        self._event = threading.Event()

    @property
    def is_cancelled(self) -> bool:
        """Check if cancellation was requested."""
        return self._event.is_set()

    def cancel(self) -> None:
        """Request cancellation."""
        self._event.set()

    def raise_if_cancelled(self) -> None:
        """Raise ComparisonCancelled if cancellation was requested."""
        if self._event.is_set():
            raise ComparisonCancelled()

    def __repr__(self) -> str:
        return f"CancellationToken(cancelled={self.is_cancelled})"
