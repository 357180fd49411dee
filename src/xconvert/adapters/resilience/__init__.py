"""
Resilience Adapters - Fault Tolerance for Outbound Calls

Retry with exponential backoff, a consecutive-failure circuit breaker, and the
policy that composes them.
"""

from xconvert.adapters.resilience.circuit_breaker import CircuitBreaker
from xconvert.adapters.resilience.policy import ResiliencePolicy
from xconvert.adapters.resilience.retry import RetryPolicy, is_transient_status

__all__ = [
    "CircuitBreaker",
    "ResiliencePolicy",
    "RetryPolicy",
    "is_transient_status",
]
