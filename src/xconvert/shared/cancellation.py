"""
Call Context - Deadlines and Cancellation for Outbound Work

A ``CallContext`` travels with one logical request. It lets provider calls
bound their HTTP timeouts by the time the caller has left, and lets retry
backoff waits return as soon as the caller cancels.

Files that USE this module:
- xconvert.application.currency_service (creates a context per operation)
- xconvert.adapters.resilience.retry (backoff waits)
- xconvert.adapters.providers.frankfurter (HTTP timeout bounding)

Files that this module USES:
- xconvert.domain.errors (OperationCancelledError)
"""
from __future__ import annotations

import threading
import time
from typing import Callable, Optional

from xconvert.domain.errors import OperationCancelledError


class CallContext:
    """
    Cancellation token with an optional deadline, safe to share across threads.

    Cancellation is cooperative. It is observed between attempts and during
    backoff waits, but an HTTP request already in flight keeps running until
    its own timeout; the result is discarded once it returns.
    """

    def __init__(self, timeout: Optional[float] = None, clock: Optional[Callable[[], float]] = None):
        """
        Create a context.

        Args:
            timeout: Seconds until the deadline, or None for no deadline
            clock: Monotonic clock (defaults to time.monotonic)
        """
        self._clock = clock or time.monotonic
        self._cancelled = threading.Event()
        self.deadline: Optional[float] = None
        if timeout is not None:
            self.deadline = self._clock() + timeout

    @classmethod
    def background(cls) -> CallContext:
        """Context with no deadline that is never cancelled unless asked."""
        return cls()

    def cancel(self) -> None:
        self._cancelled.set()

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    @property
    def expired(self) -> bool:
        return self.deadline is not None and self._clock() >= self.deadline

    def remaining(self) -> Optional[float]:
        """Seconds until the deadline (never negative), or None without one."""
        if self.deadline is None:
            return None
        return max(0.0, self.deadline - self._clock())

    def check(self) -> None:
        """
        Raise if the caller no longer wants the result.

        Raises:
            OperationCancelledError: If cancelled or past the deadline
        """
        if self.cancelled:
            raise OperationCancelledError("Operation was cancelled by the caller")
        if self.expired:
            raise OperationCancelledError("Operation deadline exceeded")

    def sleep(self, seconds: float) -> None:
        """
        Wait up to ``seconds``, returning early on cancellation.

        A wait that would overrun the deadline is not started; it fails
        immediately as a deadline failure.

        Raises:
            OperationCancelledError: If cancelled during the wait or the deadline would pass
        """
        self.check()
        remaining = self.remaining()
        if remaining is not None and seconds > remaining:
            raise OperationCancelledError("Operation deadline would pass during backoff")
        if seconds > 0:
            self._cancelled.wait(seconds)
        self.check()

    def bound_timeout(self, timeout: float) -> float:
        """
        Clamp a per-call timeout to the time left on this context.

        Raises:
            OperationCancelledError: If no time is left
        """
        self.check()
        remaining = self.remaining()
        if remaining is None:
            return timeout
        return min(timeout, remaining)
