"""
Shared Utilities - Cross-cutting Concerns

This package contains shared utilities used across all layers:
- TTL cache store
- Call context (deadlines and cancellation)
- Validation and normalization
- Logging configuration
"""

from xconvert.shared.cache import CacheStore
from xconvert.shared.cancellation import CallContext
from xconvert.shared.validators import (
    is_positive_amount,
    normalize_currency,
    parse_currency_list,
    validate_http_url,
)

__all__ = [
    "CacheStore",
    "CallContext",
    "is_positive_amount",
    "normalize_currency",
    "parse_currency_list",
    "validate_http_url",
]
