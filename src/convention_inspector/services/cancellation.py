"""Cancellation signals polled by long-running searches."""
from __future__ import annotations

import threading
import time


class CancellationToken:
    """Thread-safe cancellation flag with an optional deadline.

    Another thread may call :meth:`cancel` at any time; searches poll
    :meth:`is_cancelled` between iterations.
    """

    def __init__(self, timeout: float | None = None) -> None:
        self._event = threading.Event()
        self._deadline = time.monotonic() + timeout if timeout is not None else None
        self._reason = ""

    @classmethod
    def with_timeout(cls, seconds: float) -> CancellationToken:
        return cls(timeout=seconds)

    def cancel(self, reason: str = "cancelled by caller") -> None:
        self._reason = reason
        self._event.set()

    def is_cancelled(self) -> bool:
        if self._event.is_set():
            return True
        if self._deadline is not None and time.monotonic() >= self._deadline:
            self._reason = "deadline exceeded"
            self._event.set()
            return True
        return False

    @property
    def reason(self) -> str:
        return self._reason


class _NeverCancelled:
    """Signal used when the caller supplies none."""

    def is_cancelled(self) -> bool:
        return False


NEVER_CANCELLED = _NeverCancelled()
