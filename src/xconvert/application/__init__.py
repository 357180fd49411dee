"""
Application Layer - Use Cases and Services

This package contains application services that orchestrate domain logic.
No direct I/O dependencies - uses adapters through interfaces.
"""

from xconvert.application.currency_service import CurrencyPolicy, CurrencyService
from xconvert.application.health import HealthChecker, HealthStatus

__all__ = [
    "CurrencyPolicy",
    "CurrencyService",
    "HealthChecker",
    "HealthStatus",
]
