"""
Domain Layer - Pure Business Objects

This package contains domain models and the error taxonomy.
No dependencies on infrastructure or external systems.
"""

from xconvert.domain.models import (
    CircuitState,
    ConversionRequest,
    ConversionResult,
    HistoricalEntry,
    HistoricalQuery,
    PagedResult,
    RateSnapshot,
)
from xconvert.domain.errors import (
    CircuitOpenError,
    ClientError,
    CurrencyError,
    DeserializationError,
    InvalidArgumentError,
    OperationCancelledError,
    ProviderError,
    ProviderRequestError,
    RestrictedCurrencyError,
    TransientProviderError,
    UnsupportedProviderError,
)

__all__ = [
    "RateSnapshot",
    "ConversionRequest",
    "ConversionResult",
    "HistoricalQuery",
    "HistoricalEntry",
    "PagedResult",
    "CircuitState",
    "CurrencyError",
    "ClientError",
    "InvalidArgumentError",
    "RestrictedCurrencyError",
    "UnsupportedProviderError",
    "ProviderError",
    "TransientProviderError",
    "ProviderRequestError",
    "CircuitOpenError",
    "DeserializationError",
    "OperationCancelledError",
]
