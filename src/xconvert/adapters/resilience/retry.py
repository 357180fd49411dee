"""
Retry Policy - Bounded Retries with Exponential Backoff

Retries an operation while it fails with ``TransientProviderError``. Attempt
N (1-based retry number) waits ``backoff_base ** N`` seconds, so the default
schedule is 2s, 4s, 8s for up to four attempts in total. There is no jitter,
which keeps the schedule deterministic.

Files that USE this module:
- xconvert.adapters.resilience.policy (wrapped by the circuit breaker)
- tests.test_resilience (unit tests)

Files that this module USES:
- xconvert.domain.errors (TransientProviderError)
- xconvert.shared.cancellation (CallContext for backoff waits)
"""
from __future__ import annotations

import logging
from typing import Callable, List, Optional, TypeVar

from xconvert.domain.errors import OperationCancelledError, TransientProviderError
from xconvert.shared.cancellation import CallContext

log = logging.getLogger(__name__)

T = TypeVar("T")

Sleeper = Callable[[float, CallContext], None]


def _context_sleep(seconds: float, context: CallContext) -> None:
    context.sleep(seconds)


class RetryPolicy:
    """Retry transient failures with a fixed exponential schedule."""

    def __init__(self, retry_count: int = 3, backoff_base: float = 2.0, sleeper: Optional[Sleeper] = None):
        """
        Args:
            retry_count: Retries after the first attempt (0 disables retrying)
            backoff_base: Base of the exponential backoff in seconds
            sleeper: Wait function ``(seconds, context)``; defaults to a
                cancellable wait on the context
        """
        if retry_count < 0:
            raise ValueError("retry_count must be >= 0")
        if backoff_base <= 0:
            raise ValueError("backoff_base must be > 0")
        self.retry_count = retry_count
        self.backoff_base = backoff_base
        self._sleep = sleeper or _context_sleep

    def backoff_schedule(self) -> List[float]:
        """Delays in seconds before each retry."""
        return [self.backoff_base ** attempt for attempt in range(1, self.retry_count + 1)]

    def execute(self, operation: Callable[[], T], context: Optional[CallContext] = None) -> T:
        """
        Run ``operation`` until it succeeds, fails non-transiently, or retries run out.

        A deadline that cuts the retry loop short counts as running out of
        retries: the last transient failure is raised, not the deadline error.

        Args:
            operation: Zero-argument callable performing one attempt
            context: Cancellation context for backoff waits

        Returns:
            The operation's result

        Raises:
            TransientProviderError: The last transient failure once retries or time are exhausted
            OperationCancelledError: If the caller cancels, or the deadline passes before any attempt failed
            Exception: Any non-transient failure, unchanged and without retrying
        """
        context = context or CallContext.background()
        attempt = 0
        last_error: Optional[TransientProviderError] = None
        while True:
            try:
                context.check()
                return operation()
            except TransientProviderError as e:
                last_error = e
                attempt += 1
                if attempt > self.retry_count:
                    log.error("Request failed after %d attempts: %s", attempt, e)
                    raise
                delay = self.backoff_base ** attempt
                log.warning(
                    "Request failed with %s. Retrying in %ss. Attempt %d/%d",
                    e.status_code if e.status_code is not None else e,
                    delay,
                    attempt,
                    self.retry_count,
                )
            except OperationCancelledError:
                self._raise_if_deadline_exhausted(context, last_error, attempt)
                raise
            try:
                self._sleep(delay, context)
            except OperationCancelledError:
                self._raise_if_deadline_exhausted(context, last_error, attempt)
                raise

    @staticmethod
    def _raise_if_deadline_exhausted(
        context: CallContext,
        last_error: Optional[TransientProviderError],
        attempts: int,
    ) -> None:
        """Surface the last transient failure when the deadline, not the caller, ended the loop."""
        if last_error is None or context.cancelled:
            return
        log.error("Request failed after %d attempts, deadline reached: %s", attempts, last_error)
        raise last_error


def is_transient_status(status_code: int) -> bool:
    """
    Whether an HTTP status is worth retrying.

    Server errors (5xx), request timeout (408) and too-many-requests (429)
    are transient; every other 4xx is a permanent rejection.
    """
    return status_code >= 500 or status_code in (408, 429)
