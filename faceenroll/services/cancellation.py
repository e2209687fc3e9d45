"""
Cooperative cancellation for enrollment sessions.

The token is a one-way latch: once a flag is set it stays set. It may be
written from the deadline timer, a UI thread and the event loop at once.
"""

import threading


class CancellationToken:
    """
    Distinguishes user cancellation from deadline (timeout) cancellation.

    The first setter wins: `timeout_cancel()` after a user `cancel()` leaves
    `is_timeout_cancellation` False, so the session still ends as a cancel.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._cancellation_requested = False
        self._timeout_cancellation = False

    @property
    def is_cancellation_requested(self) -> bool:
        return self._cancellation_requested

    @property
    def is_timeout_cancellation(self) -> bool:
        return self._timeout_cancellation

    def cancel(self) -> bool:
        """
        Request cancellation.

        Returns:
            True if this call set the flag, False if it was already set
        """
        with self._lock:
            if self._cancellation_requested:
                return False
            self._cancellation_requested = True
            return True

    def timeout_cancel(self) -> bool:
        """
        Request cancellation because the session deadline elapsed.

        A user cancel that already won the race is left as a plain cancel.

        Returns:
            True if this call set the flags, False otherwise
        """
        with self._lock:
            if self._cancellation_requested:
                return False
            self._timeout_cancellation = True
            self._cancellation_requested = True
            return True

    def __repr__(self) -> str:
        return (
            f"CancellationToken(cancellation_requested={self._cancellation_requested}, "
            f"timeout_cancellation={self._timeout_cancellation})"
        )
