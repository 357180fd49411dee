# src/xconvert/adapters/providers/base.py
"""
Base Provider Interface for Exchange Rate Providers

This module defines the abstract base class for all exchange rate providers.
It establishes the contract that all provider implementations must follow:
one network round trip per logical call, shielded by the provider's own
resilience policy.

Files that USE this module:
- xconvert.adapters.providers.frankfurter (FrankfurterProvider implements RateProvider)
- xconvert.adapters.providers.factory (returns RateProvider instances)
- xconvert.application.currency_service (calls RateProvider methods)

Files that this module USES:
- xconvert.domain.models (RateSnapshot)
- xconvert.shared.cancellation (CallContext)
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import date
from decimal import Decimal
from typing import TYPE_CHECKING, Dict, Optional

from xconvert.domain.models import RateSnapshot
from xconvert.shared.cancellation import CallContext

if TYPE_CHECKING:
    from xconvert.adapters.resilience.policy import ResiliencePolicy

HistoricalRates = Dict[date, Dict[str, Decimal]]


class RateProvider(ABC):
    name: str
    policy: Optional[ResiliencePolicy] = None

    @abstractmethod
    def get_latest_rates(self, base_currency: str, context: Optional[CallContext] = None) -> RateSnapshot:
        """Return the most recent rates quoted against ``base_currency``."""
        raise NotImplementedError

    @abstractmethod
    def convert(
        self,
        amount: Decimal,
        from_currency: str,
        to_currency: str,
        context: Optional[CallContext] = None,
    ) -> RateSnapshot:
        """Return a snapshot quoting ``amount`` of ``from_currency`` in ``to_currency``."""
        raise NotImplementedError

    @abstractmethod
    def get_historical_rates(
        self,
        base_currency: str,
        start_date: date,
        end_date: date,
        context: Optional[CallContext] = None,
    ) -> HistoricalRates:
        """Return rates per date in ``[start_date, end_date]``, ordered by date."""
        raise NotImplementedError
