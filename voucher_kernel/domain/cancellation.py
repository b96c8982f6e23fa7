"""Cooperative cancellation for long-running report generation."""

import threading

from voucher_kernel.exceptions import ReportCancelledError


class CancellationToken:
    """
    Thread-safe cancellation flag.

    The caller keeps the token and calls ``cancel()``; the report generator
    calls ``raise_if_cancelled()`` at each batch boundary and each row.
    """

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def is_cancelled(self) -> bool:
        return self._event.is_set()

    def raise_if_cancelled(self, report: str, processed: int = 0) -> None:
        """Raise ReportCancelledError if cancellation was requested."""
        if self._event.is_set():
            raise ReportCancelledError(report, processed)
