"""
Resilience Policy - Circuit Breaker Wrapping Retry

Composes the two fault-tolerance layers by plain call wrapping:

    breaker.call(lambda: retry.execute(operation, context))

The breaker therefore counts the final outcome of each logical call, after
retries are exhausted, and an open circuit skips the retry loop entirely.
Each provider owns one instance.

Files that USE this module:
- xconvert.adapters.providers.frankfurter (wraps every HTTP round trip)
- xconvert.application.health (reads breaker state)

Files that this module USES:
- xconvert.adapters.resilience.retry (RetryPolicy)
- xconvert.adapters.resilience.circuit_breaker (CircuitBreaker)
- xconvert.shared.cancellation (CallContext)
"""
from __future__ import annotations

from typing import TYPE_CHECKING, Callable, Optional, TypeVar

from xconvert.adapters.resilience.circuit_breaker import CircuitBreaker
from xconvert.adapters.resilience.retry import RetryPolicy
from xconvert.domain.models import CircuitState
from xconvert.shared.cancellation import CallContext

if TYPE_CHECKING:
    from xconvert.config.settings import Settings

T = TypeVar("T")


class ResiliencePolicy:
    """Retry and circuit breaking for one upstream."""

    def __init__(self, retry: RetryPolicy, breaker: CircuitBreaker):
        self.retry = retry
        self.breaker = breaker

    @classmethod
    def from_settings(cls, settings: Settings, name: str = "upstream") -> ResiliencePolicy:
        """Build a policy from the resilience section of the settings."""
        return cls(
            retry=RetryPolicy(
                retry_count=settings.retry_count,
                backoff_base=settings.retry_backoff_base,
            ),
            breaker=CircuitBreaker(
                failure_threshold=settings.circuit_failure_threshold,
                break_duration=settings.circuit_break_seconds,
                name=name,
            ),
        )

    @property
    def state(self) -> CircuitState:
        return self.breaker.state

    def execute(self, operation: Callable[[], T], context: Optional[CallContext] = None) -> T:
        """
        Run one logical call through the breaker and the retry loop.

        Raises:
            CircuitOpenError: If the circuit is open (no attempt is made)
            TransientProviderError: If all retries failed transiently
            OperationCancelledError: If the context is cancelled
            Exception: Non-transient failures, unchanged
        """
        context = context or CallContext.background()
        context.check()
        return self.breaker.call(lambda: self.retry.execute(operation, context))
