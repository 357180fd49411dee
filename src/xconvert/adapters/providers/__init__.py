"""
Provider Adapters - External API Clients

This package contains adapters for external exchange rate APIs.
All providers implement the RateProvider interface and are resolved by name
through the ProviderFactory.
"""

from xconvert.adapters.providers.base import HistoricalRates, RateProvider
from xconvert.adapters.providers.factory import ProviderFactory
from xconvert.adapters.providers.frankfurter import FrankfurterProvider

__all__ = [
    "HistoricalRates",
    "RateProvider",
    "ProviderFactory",
    "FrankfurterProvider",
]
