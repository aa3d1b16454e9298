"""Cooperative cancellation signal."""
from __future__ import annotations

import threading

from .errors import TransferCancelled


class CancellationToken:
    """Thread-safe flag checked between chunks and between items.

    Setting the token never interrupts I/O already in progress; the
    transfer engine notices it at the next chunk boundary.
    """

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        """Request cancellation."""
        self._event.set()

    @property
    def is_cancelled(self) -> bool:
        return self._event.is_set()

    def raise_if_cancelled(self) -> None:
        """Raise TransferCancelled if cancellation was requested."""
        if self._event.is_set():
            raise TransferCancelled("transfer cancelled")
