# src/xconvert/domain/errors.py
"""
Domain Errors - Business Logic Exceptions

This module defines the exception taxonomy shared by every layer. Each error
carries a ``category`` so that a transport boundary can map it to a response
without knowing the concrete class:

- client: caller supplied bad or forbidden input (never retried)
- configuration: the caller selected something that is not wired up
- server: the upstream provider failed or is being shielded by the breaker
- cancelled: the caller's context was cancelled or ran out of time

Files that USE this module:
- xconvert.application.currency_service (raises client errors)
- xconvert.adapters.providers.* (raise provider errors)
- xconvert.adapters.resilience.* (classify and raise resilience errors)
- xconvert.shared.cancellation (raises OperationCancelledError)
- tests.* (assert on error types)

Files that this module USES:
- None (pure domain layer)
"""
from typing import Optional

CATEGORY_CLIENT = "client"
CATEGORY_SERVER = "server"
CATEGORY_CONFIGURATION = "configuration"
CATEGORY_CANCELLED = "cancelled"


class CurrencyError(Exception):
    """Base exception for all currency access errors."""
    category = CATEGORY_SERVER


class ClientError(CurrencyError):
    """Raised for caller-caused problems (4xx-equivalent)."""
    category = CATEGORY_CLIENT


class InvalidArgumentError(ClientError, ValueError):
    """Raised when a required input is missing or malformed."""
    pass


class RestrictedCurrencyError(ClientError):
    """Raised when a restricted currency is used as an operation parameter."""

    def __init__(self, currency: str):
        super().__init__(f"Currency {currency} is restricted and cannot be used")
        self.currency = currency


class UnsupportedProviderError(CurrencyError):
    """Raised when an unknown provider name is requested."""
    category = CATEGORY_CONFIGURATION

    def __init__(self, provider_name: str):
        super().__init__(f"Provider '{provider_name}' is not supported.")
        self.provider_name = provider_name


class ProviderError(CurrencyError):
    """Base class for upstream provider failures (5xx-equivalent)."""
    category = CATEGORY_SERVER


class TransientProviderError(ProviderError):
    """
    Raised for failures that are likely to succeed on retry.

    Network faults carry no status code; HTTP failures carry the upstream
    status (5xx, 408 or 429).
    """

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class ProviderRequestError(ProviderError):
    """Raised when the upstream rejects a request with a non-transient status."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class CircuitOpenError(ProviderError):
    """Raised without contacting the upstream while the circuit is open."""
    pass


class DeserializationError(ProviderError):
    """Raised when the upstream returns a body that cannot be parsed."""
    pass


class OperationCancelledError(CurrencyError):
    """Raised when the calling context is cancelled or its deadline passes."""
    category = CATEGORY_CANCELLED
